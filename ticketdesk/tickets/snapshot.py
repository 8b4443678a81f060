from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable

from .assignment import Assignment
from .models import Annotation, Ticket
from .state import Currency, TicketPriority, TicketStateMachine, TicketStatus, implies_visit_flag


class SnapshotValidationError(ValueError):
    """Raised when a draft misses a field required before saving."""


@dataclass(frozen=True, slots=True)
class TicketSnapshot:
    """Field state of a ticket at one point in time.

    Snapshots are immutable; edits go through the ``with_*`` reducers, which
    return a new snapshot. The status is the source of truth for the visit
    flag: selecting ``Visita`` raises it, and it cannot be lowered while the
    status stays there. Other statuses leave the flag to the operator.
    """

    title: str
    client_id: str | None = None
    client_name: str | None = None
    status: TicketStatus = TicketStatus.NEW
    priority: TicketPriority = TicketPriority.MEDIUM
    visit: bool = False
    amount: float | None = None
    currency: Currency = Currency.UYU
    description: str = ""
    assignment: Assignment = field(default_factory=Assignment)

    def __post_init__(self) -> None:
        if implies_visit_flag(self.status) and not self.visit:
            object.__setattr__(self, "visit", True)

    @classmethod
    def from_ticket(cls, ticket: Ticket, *, default_currency: Currency = Currency.UYU) -> "TicketSnapshot":
        return cls(
            title=ticket.title,
            client_id=ticket.client_id,
            client_name=ticket.client_name,
            status=ticket.status,
            priority=ticket.priority,
            visit=ticket.visit,
            amount=ticket.amount,
            currency=ticket.amount_currency or default_currency,
            description=ticket.description or "",
            assignment=Assignment.from_fields(ticket.assigned_to, ticket.assigned_group_id),
        )

    @property
    def assigned_to(self) -> str | None:
        return self.assignment.assigned_to

    @property
    def assigned_group_id(self) -> str | None:
        return self.assignment.assigned_group_id

    def with_status(self, status: str | TicketStatus) -> "TicketSnapshot":
        target = TicketStateMachine.assert_transition(self.status, status)
        return replace(self, status=target, visit=self.visit or implies_visit_flag(target))

    def with_priority(self, priority: str | TicketPriority) -> "TicketSnapshot":
        return replace(self, priority=TicketPriority(priority))

    def with_visit(self, visit: bool) -> "TicketSnapshot":
        return replace(self, visit=bool(visit) or implies_visit_flag(self.status))

    def with_amount(self, amount: float | None, currency: str | Currency | None = None) -> "TicketSnapshot":
        if amount is not None and amount < 0:
            raise SnapshotValidationError("Amount cannot be negative")
        return replace(self, amount=amount, currency=Currency(currency) if currency else self.currency)

    def with_description(self, description: str | None) -> "TicketSnapshot":
        return replace(self, description=description or "")

    def with_assignment(self, assignment: Assignment | str) -> "TicketSnapshot":
        if isinstance(assignment, str):
            assignment = Assignment.parse(assignment)
        return replace(self, assignment=assignment)

    def assign_user(self, identity: str | None) -> "TicketSnapshot":
        return self.with_assignment(Assignment.user(identity))

    def assign_group(self, group_id: str | None) -> "TicketSnapshot":
        return self.with_assignment(Assignment.group(group_id))

    def unassign(self) -> "TicketSnapshot":
        return self.with_assignment(Assignment.none())

    def validate(self) -> None:
        if not self.title.strip():
            raise SnapshotValidationError("El título es obligatorio.")
        if not (self.client_id or (self.client_name or "").strip()):
            raise SnapshotValidationError("El cliente es obligatorio.")

    def to_payload(self, annotations: Iterable[Annotation], *, notify_client: bool = False) -> dict[str, Any]:
        """Body for ``PUT /tickets/{id}``."""

        return {
            "status": self.status.value,
            "priority": self.priority.value,
            "visit": self.visit,
            "amount": self.amount,
            "amountCurrency": self.currency.value,
            "description": self.description,
            "annotations": [annotation.to_payload() for annotation in annotations],
            "assignedTo": self.assigned_to,
            "assignedGroupId": self.assigned_group_id,
            "notifyClient": notify_client,
        }
