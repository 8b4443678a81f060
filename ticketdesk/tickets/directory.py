from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from .models import Group, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Directory:
    """Read-only users and groups fetched once per viewing session."""

    users: tuple[User, ...] = ()
    groups: tuple[Group, ...] = ()

    @classmethod
    def from_payloads(
        cls,
        users: Iterable[Mapping[str, Any]] | None = None,
        groups: Iterable[Mapping[str, Any]] | None = None,
    ) -> "Directory":
        """Parse raw directory listings, skipping entries that do not validate."""

        return cls(
            users=tuple(_parse_entries(User, users or (), "user")),
            groups=tuple(_parse_entries(Group, groups or (), "group")),
        )


def _parse_entries(model, payloads: Iterable[Any], kind: str) -> Iterable[Any]:
    for index, payload in enumerate(payloads):
        if not isinstance(payload, Mapping):
            logger.warning("Skipping malformed %s directory entry #%d: %r", kind, index, payload)
            continue
        try:
            yield model.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Skipping invalid %s directory entry #%d: %s", kind, index, exc)
