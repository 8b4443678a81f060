from __future__ import annotations

import httpx


class APIError(RuntimeError):
    """Transport failure, non-2xx response or unreadable body from the ticket backend."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response: httpx.Response | None = None,
        method: str | None = None,
        path: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.method = method
        self.path = path

    @property
    def retryable(self) -> bool:
        """Transport failures and server-side errors may succeed on a later save."""

        return self.status_code is None or self.status_code >= 500

    @property
    def endpoint(self) -> str:
        return " ".join(part for part in (self.method, self.path) if part)

    def __str__(self) -> str:
        prefix = f"[{self.status_code}] " if self.status_code is not None else ""
        return f"{prefix}{super().__str__()}"
