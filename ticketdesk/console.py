"""Build ticket detail sessions from settings."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from ticketdesk.api.client import TicketAPIClient
from ticketdesk.core.config import Settings, get_settings
from ticketdesk.core.logging import configure_logging, init_tracer, shutdown_tracer
from ticketdesk.tickets.audio import AudioCaptureSession, Recorder
from ticketdesk.tickets.diff import Author
from ticketdesk.tickets.service import TicketDetailSession, TicketStore
from ticketdesk.tickets.state import Currency


def operator_from_settings(settings: Settings) -> Author:
    return Author(name=settings.operator_name, avatar=settings.operator_avatar)


def create_session(settings: Settings | None = None, *, store: TicketStore | None = None) -> TicketDetailSession:
    settings = settings or get_settings()
    return TicketDetailSession(
        store=store if store is not None else TicketAPIClient.from_settings(settings),
        author=operator_from_settings(settings),
        default_currency=Currency(settings.default_currency),
    )


def create_audio_session(
    session: TicketDetailSession,
    recorder: Recorder,
    settings: Settings | None = None,
) -> AudioCaptureSession:
    """Voice memos recorded here land in the session's pending media."""

    settings = settings or get_settings()
    return AudioCaptureSession(recorder, session.media, mime_type=settings.audio_mime_type)


@asynccontextmanager
async def open_console(
    settings: Settings | None = None,
    *,
    store: TicketStore | None = None,
) -> AsyncIterator[TicketDetailSession]:
    settings = settings or get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)
    session = create_session(settings, store=store)
    logger.info("%s ready against %s", settings.app_name, settings.api_base_url)
    try:
        yield session
    finally:
        await session.close()
        shutdown_tracer(tracer_provider)
