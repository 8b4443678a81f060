from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping, Protocol, TypeVar

from ticketdesk.api.errors import APIError

from .assignment import AssignmentResolver
from .diff import Author, ChangeDiffBuilder
from .directory import Directory
from .lock import LockGate
from .log import AnnotationLog
from .media import MediaDraftBuffer
from .models import Annotation, Ticket, utcnow
from .snapshot import SnapshotValidationError, TicketSnapshot
from .state import Currency
from .timeline import TimelinePoint, TimelineProjector

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TicketSessionError(RuntimeError):
    """Base error for ticket detail operations."""


class TicketNotLoadedError(TicketSessionError):
    """Raised when operating on a session before its ticket was loaded."""


class TicketLoadError(TicketSessionError):
    """Raised when the ticket or its directories could not be fetched."""


class TicketValidationError(TicketSessionError):
    """Raised when the draft is incomplete; no request is issued."""


class TicketSaveError(TicketSessionError):
    """Raised when a save was rejected; local draft state is left untouched."""


class TicketStore(Protocol):
    async def get_ticket(self, ticket_id: str) -> Ticket:
        ...

    async def update_ticket(self, ticket_id: str, payload: Mapping[str, Any]) -> Ticket:
        ...

    async def list_users(self) -> list[Mapping[str, Any]]:
        ...

    async def list_groups(self) -> list[Mapping[str, Any]]:
        ...


class CalendarProjection(Protocol):
    """Mirrors ticket status/assignment changes onto the schedule."""

    async def ticket_changed(self, previous: Ticket, current: Ticket) -> None:
        ...


@dataclass(slots=True)
class TicketMetrics:
    annotations: int
    queued_attachments: int
    queued_audio_notes: int
    visit_label: str


@dataclass(slots=True)
class TicketDetailSession:
    """State of one ticket detail view: draft fields, pending note/media and the audit log.

    Field edits are applied to ``draft`` through snapshot reducers. ``commit``
    is the only path that records an automatic annotation; annotation edits
    and deletes are saved straight away without diffing.
    """

    store: TicketStore
    author: Author
    directory: Directory = field(default_factory=Directory)
    calendar: CalendarProjection | None = None
    clock: Callable[[], datetime] = utcnow
    default_currency: Currency = Currency.UYU
    media: MediaDraftBuffer = field(default_factory=MediaDraftBuffer)
    lock: LockGate = field(default_factory=LockGate)
    ticket: Ticket | None = None
    draft: TicketSnapshot | None = None
    log: AnnotationLog = field(default_factory=AnnotationLog)
    note: str = ""
    notify_client: bool = False
    _tasks: set[asyncio.Task[Any]] = field(default_factory=set, repr=False)

    @property
    def baseline(self) -> TicketSnapshot:
        """Last snapshot acknowledged by the store."""

        return TicketSnapshot.from_ticket(self._require_ticket(), default_currency=self.default_currency)

    @property
    def resolver(self) -> AssignmentResolver:
        return AssignmentResolver(self.directory)

    async def load(self, ticket_id: str, *, with_directory: bool = True) -> Ticket:
        try:
            if with_directory:
                ticket, users, groups = await asyncio.gather(
                    self._track(self.store.get_ticket(ticket_id)),
                    self._track(self.store.list_users()),
                    self._track(self.store.list_groups()),
                )
                self.directory = Directory.from_payloads(users, groups)
            else:
                ticket = await self._track(self.store.get_ticket(ticket_id))
        except APIError as exc:
            logger.warning("Could not load ticket %s: %s", ticket_id, exc)
            raise TicketLoadError(str(exc)) from exc

        self.lock.reset()
        self.media.clear()
        self.note = ""
        self.notify_client = False
        self._apply(ticket)
        logger.info("Loaded ticket %s with %d annotation(s)", ticket.id, len(self.log))
        return ticket

    def edit(self, reducer: Callable[[TicketSnapshot], TicketSnapshot]) -> TicketSnapshot:
        """Apply a pure reducer to the draft, e.g. ``session.edit(lambda d: d.with_status("Abierto"))``."""

        if self.draft is None:
            raise TicketNotLoadedError("No ticket loaded")
        self.draft = reducer(self.draft)
        return self.draft

    def pending_annotation(self) -> Annotation | None:
        """Preview of the entry ``commit`` would record right now."""

        if self.draft is None:
            raise TicketNotLoadedError("No ticket loaded")
        builder = ChangeDiffBuilder(self.author, clock=self.clock)
        return builder.build(self.baseline, self.draft, self.note, self.media.snapshot(), self.directory)

    async def commit(self) -> Ticket:
        """Save the draft and, when there is something to record, a new annotation."""

        ticket = self._require_ticket()
        draft = self.draft
        if draft is None:
            raise TicketNotLoadedError("No ticket loaded")
        try:
            draft.validate()
        except SnapshotValidationError as exc:
            raise TicketValidationError(str(exc)) from exc

        media = self.media.snapshot()
        log = self.log.copy()
        builder = ChangeDiffBuilder(self.author, clock=self.clock)
        entry = builder.build(
            self.baseline,
            draft,
            self.note,
            media,
            self.directory,
            created_at=log.unique_key(self.clock()),
        )
        if entry is not None:
            log.prepend(entry)

        updated = await self._save(ticket.id, draft.to_payload(log.entries, notify_client=self.notify_client))

        self._apply(updated)
        # A note that produced no entry held only editor markup.
        self.note = ""
        if entry is not None:
            self.media.discard(media)
            logger.info("Recorded annotation %s on ticket %s", entry.created_at, ticket.id)
        await self._notify_calendar(ticket, updated)
        return updated

    async def edit_annotation(self, key: str, text: str) -> Ticket:
        log = self.log.copy()
        if not log.edit_by_key(key, text):
            return self._require_ticket()
        return await self._save_log(log, action="Edited", key=key)

    async def delete_annotation(self, key: str) -> Ticket:
        log = self.log.copy()
        if not log.delete_by_key(key):
            return self._require_ticket()
        return await self._save_log(log, action="Deleted", key=key)

    def history(self) -> list[Annotation]:
        return self.log.reverse_chronological()

    def timeline(self) -> list[TimelinePoint]:
        return TimelineProjector().project_log(self.log)

    def metrics(self) -> TicketMetrics:
        visit = self.draft.visit if self.draft is not None else False
        return TicketMetrics(
            annotations=len(self.log),
            queued_attachments=len(self.media.attachments),
            queued_audio_notes=len(self.media.audio_notes),
            visit_label="Programada" if visit else "Pendiente",
        )

    async def close(self) -> None:
        """Cancel in-flight requests and release the store."""

        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        self.lock.reset()
        self.media.clear()
        aclose = getattr(self.store, "aclose", None)
        if aclose is not None:
            await aclose()

    async def _save_log(self, log: AnnotationLog, *, action: str, key: str) -> Ticket:
        ticket = self._require_ticket()
        # Only the log changes here; uncommitted field edits stay in the draft.
        payload = self.baseline.to_payload(log.entries, notify_client=False)
        updated = await self._save(ticket.id, payload)

        draft = self.draft
        self._apply(updated)
        self.draft = draft
        logger.info("%s annotation %s on ticket %s", action, key, ticket.id)
        return updated

    async def _save(self, ticket_id: str, payload: Mapping[str, Any]) -> Ticket:
        try:
            return await self._track(self.store.update_ticket(ticket_id, payload))
        except APIError as exc:
            logger.warning(
                "Saving ticket %s failed (%s): %s",
                ticket_id,
                "retryable" if exc.retryable else "rejected",
                exc,
            )
            raise TicketSaveError(str(exc) or "No se pudo guardar el ticket.") from exc

    async def _track(self, awaitable: Awaitable[T]) -> T:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        try:
            return await task
        finally:
            self._tasks.discard(task)

    async def _notify_calendar(self, previous: Ticket, current: Ticket) -> None:
        if self.calendar is None:
            return
        if (previous.status, previous.assigned_to, previous.assigned_group_id) == (
            current.status,
            current.assigned_to,
            current.assigned_group_id,
        ):
            return
        try:
            await self.calendar.ticket_changed(previous, current)
        except Exception:  # pragma: no cover - the ticket is already saved
            logger.exception("Calendar projection failed for ticket %s", current.id)

    def _apply(self, ticket: Ticket) -> None:
        self.ticket = ticket
        self.draft = TicketSnapshot.from_ticket(ticket, default_currency=self.default_currency)
        self.log = AnnotationLog(ticket.annotations)

    def _require_ticket(self) -> Ticket:
        if self.ticket is None:
            raise TicketNotLoadedError("No ticket loaded")
        return self.ticket
