from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx
from opentelemetry import trace
from pydantic import ValidationError

from ticketdesk.api.errors import APIError
from ticketdesk.core.config import Settings
from ticketdesk.tickets.models import Ticket

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def _extract_error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or "Error desconocido del servidor"

    if isinstance(data, Mapping):
        for key in ("detail", "message", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, Mapping) and "msg" in value:
                return str(value["msg"])
    return response.text or "Ocurrió un error al procesar la solicitud"


@dataclass(slots=True)
class TicketAPIClient:
    """Async client for the ticket and directory endpoints."""

    base_url: str
    token: str | None = None
    timeout: float = 10.0
    transport: httpx.AsyncBaseTransport | None = None
    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TicketAPIClient":
        return cls(base_url=settings.api_base_url, token=settings.api_token, timeout=settings.api_timeout)

    async def __aenter__(self) -> "TicketAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(headers=headers, timeout=self.timeout, transport=self.transport)
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = self._build_url(path)
        with tracer.start_as_current_span(f"{method} {path}") as span:
            span.set_attribute("http.request.method", method)
            span.set_attribute("url.full", url)
            try:
                response = await self._http().request(method, url, **kwargs)
            except httpx.HTTPError as exc:
                logger.warning("%s %s failed: %s", method, url, exc)
                raise APIError(f"No se pudo contactar al servidor: {exc}", method=method, path=path) from exc

            span.set_attribute("http.response.status_code", response.status_code)
            if response.status_code >= 400:
                message = _extract_error_message(response)
                logger.warning("%s %s returned %s: %s", method, url, response.status_code, message)
                raise APIError(message, status_code=response.status_code, response=response, method=method, path=path)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise APIError(
                "Respuesta inválida del servidor",
                status_code=response.status_code,
                response=response,
                method=method,
                path=path,
            ) from exc

    def _build_url(self, path: str) -> str:
        normalized = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url.rstrip('/')}{normalized}"

    @staticmethod
    def _to_ticket(data: Any) -> Ticket:
        try:
            return Ticket.model_validate(data)
        except ValidationError as exc:
            raise APIError(f"El servidor devolvió un ticket inválido: {exc}") from exc

    async def get_ticket(self, ticket_id: str) -> Ticket:
        return self._to_ticket(await self._request("GET", f"/tickets/{ticket_id}"))

    async def update_ticket(self, ticket_id: str, payload: Mapping[str, Any]) -> Ticket:
        return self._to_ticket(await self._request("PUT", f"/tickets/{ticket_id}", json=dict(payload)))

    async def list_users(self) -> list[Mapping[str, Any]]:
        data = await self._request("GET", "/users")
        return list(data or [])

    async def list_groups(self) -> list[Mapping[str, Any]]:
        data = await self._request("GET", "/groups")
        return list(data or [])
