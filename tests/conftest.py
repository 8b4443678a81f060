from __future__ import annotations

from datetime import datetime, timezone

import pytest

from ticketdesk.tickets.diff import Author
from ticketdesk.tickets.directory import Directory
from ticketdesk.tickets.models import Ticket
from ticketdesk.tickets.snapshot import TicketSnapshot

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)


def make_ticket(**overrides) -> Ticket:
    payload = {
        "id": "42",
        "title": "Impresora sin red",
        "clientId": "7",
        "clientName": "Farmacia Centro",
        "status": "Nuevo",
        "priority": "Media",
        "visit": False,
        "amountCurrency": "UYU",
        "description": "<p>No imprime</p>",
        "annotations": [],
    }
    payload.update(overrides)
    return Ticket.model_validate(payload)


def make_snapshot(**overrides) -> TicketSnapshot:
    fields = {"title": "Impresora sin red", "client_id": "7", "client_name": "Farmacia Centro"}
    fields.update(overrides)
    return TicketSnapshot(**fields)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def author() -> Author:
    return Author(name="Técnico Admin", avatar="/avatars/admin.png")


@pytest.fixture
def directory() -> Directory:
    return Directory.from_payloads(
        users=[
            {"id": "u-1", "name": "Ana Pérez", "email": "ana@example.com"},
            {"_id": "665f", "name": "Bruno Díaz", "email": "bruno@example.com"},
        ],
        groups=[
            {"_id": "g-1", "name": "Soporte"},
            {"_id": "g-2", "name": "Redes"},
        ],
    )


@pytest.fixture
def ticket_factory():
    return make_ticket


@pytest.fixture
def snapshot_factory():
    return make_snapshot
