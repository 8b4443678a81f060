from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .state import Currency, TicketPriority, TicketStatus


class _WireModel(BaseModel):
    # Backend payloads are camelCase and may carry fields this core ignores.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
        frozen=True,
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Attachment(_WireModel):
    """File captured for an annotation, inlined as a data URL or stored remotely."""

    id: str
    name: str
    size: int = 0
    mime_type: str = Field(default="application/octet-stream", alias="type")
    data_url: str | None = None
    url: str | None = None

    @property
    def source(self) -> str | None:
        return self.url or self.data_url


class AudioNote(_WireModel):
    """Voice memo; the duration is wall-clock time measured while recording."""

    id: str
    created_at: str | None = None
    name: str | None = None
    size: int | None = None
    mime_type: str | None = Field(default=None, alias="type")
    data_url: str | None = None
    url: str | None = None
    duration_seconds: int | None = None

    @property
    def source(self) -> str | None:
        return self.url or self.data_url


class Annotation(_WireModel):
    """Audit entry of a ticket. ``created_at`` is the entry's identity key."""

    text: str
    created_at: str
    user: str | None = None
    avatar: str | None = None
    attachments: tuple[Attachment, ...] = ()
    audio_notes: tuple[AudioNote, ...] = ()

    @property
    def has_media(self) -> bool:
        return bool(self.attachments or self.audio_notes)


class Ticket(_WireModel):
    """Ticket as returned by ``GET /tickets/{id}``."""

    id: str
    title: str = ""
    client_id: str | None = None
    client_name: str | None = None
    status: TicketStatus = TicketStatus.NEW
    priority: TicketPriority = TicketPriority.MEDIUM
    visit: bool = False
    amount: float | None = None
    amount_currency: Currency | None = None
    description: str | None = None
    assigned_to: str | None = None
    assigned_group_id: str | None = None
    annotations: tuple[Annotation, ...] = ()
    created_at: str | None = None
    updated_at: str | None = None


class User(_WireModel):
    """Directory user. Records are keyed inconsistently across the backend."""

    id: str | None = None
    mongo_id: str | None = Field(default=None, alias="_id")
    name: str | None = None
    email: str | None = None
    avatar: str | None = None


class Group(_WireModel):
    id: str | None = None
    mongo_id: str | None = Field(default=None, alias="_id")
    name: str | None = None
    slug: str | None = None

    @property
    def key(self) -> str | None:
        return self.mongo_id or self.id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Serialise ``moment`` as ISO-8601 UTC with millisecond precision and ``Z``."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
