import pytest

from ticketdesk.tickets.state import (
    TicketStateMachine,
    TicketStatus,
    is_pending_status,
    is_row_locked,
    is_visit_status,
    uses_visit_form,
)


def test_ticket_state_machine_allows_any_known_transition():
    assert TicketStateMachine.can_transition(TicketStatus.NEW, TicketStatus.PAID)
    assert TicketStateMachine.can_transition(TicketStatus.PAID, TicketStatus.NEW)
    assert TicketStateMachine.can_transition(TicketStatus.RESOLVED, TicketStatus.PENDING_CLIENT)
    assert TicketStateMachine.assert_transition(TicketStatus.NEW, "Visita Programada") is TicketStatus.VISIT_SCHEDULED


def test_ticket_state_machine_rejects_unknown_status():
    with pytest.raises(ValueError):
        TicketStateMachine.assert_transition(TicketStatus.NEW, "Archivado")


def test_ticket_state_machine_suggests_nominal_next_step():
    assert TicketStateMachine.initial_state() is TicketStatus.NEW
    assert TicketStateMachine.suggested_next(TicketStatus.NEW) is TicketStatus.OPEN
    assert TicketStateMachine.suggested_next(TicketStatus.VISIT_DONE) is TicketStatus.RESOLVED
    assert TicketStateMachine.suggested_next(TicketStatus.RESOLVED) is TicketStatus.TO_BILL
    assert TicketStateMachine.suggested_next(TicketStatus.PAID) is None
    assert TicketStateMachine.suggested_next(TicketStatus.PENDING_PAYMENT) is None


def test_status_classification_helpers():
    assert is_visit_status(TicketStatus.VISIT_TO_COORDINATE)
    assert uses_visit_form(TicketStatus.VISIT_CLOSE_REVIEW)
    assert not uses_visit_form(TicketStatus.IN_PROGRESS)
    assert is_row_locked(TicketStatus.RESOLVED)
    assert is_row_locked(TicketStatus.PAID)
    assert not is_row_locked(TicketStatus.TO_BILL)
    assert is_pending_status(TicketStatus.PENDING_THIRD_PARTY)
    assert not is_pending_status(TicketStatus.TO_BILL)
