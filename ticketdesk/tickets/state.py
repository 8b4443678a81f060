from __future__ import annotations

from enum import Enum


class TicketStatus(str, Enum):
    """Supported states for a ticket's lifecycle."""

    NEW = "Nuevo"
    OPEN = "Abierto"
    IN_PROGRESS = "En proceso"
    IN_SUPPORT = "En proceso de soporte"
    VISIT = "Visita"
    VISIT_TO_COORDINATE = "Visita - Coordinar"
    VISIT_SCHEDULED = "Visita Programada"
    VISIT_DONE = "Visita Realizada"
    VISIT_CLOSE_REVIEW = "Revision Cerrar Visita"
    PENDING_COORDINATION = "Pendiente de Coordinación"
    PENDING_CLIENT = "Pendiente de Cliente"
    PENDING_THIRD_PARTY = "Pendiente de Tercero"
    PENDING_BILLING = "Pendiente de Facturación"
    PENDING_PAYMENT = "Pendiente de Pago"
    CLOSED = "Cerrado"
    RESOLVED = "Resuelto"
    TO_BILL = "Facturar"
    PAID = "Pagado"


class TicketPriority(str, Enum):
    HIGH = "Alta"
    MEDIUM = "Media"
    LOW = "Baja"


class Currency(str, Enum):
    UYU = "UYU"
    USD = "USD"


VISIT_STATUSES: frozenset[TicketStatus] = frozenset(
    {
        TicketStatus.VISIT,
        TicketStatus.VISIT_TO_COORDINATE,
        TicketStatus.VISIT_SCHEDULED,
        TicketStatus.VISIT_DONE,
        TicketStatus.VISIT_CLOSE_REVIEW,
    }
)

PENDING_STATUSES: frozenset[TicketStatus] = frozenset(
    {
        TicketStatus.PENDING_COORDINATION,
        TicketStatus.PENDING_CLIENT,
        TicketStatus.PENDING_THIRD_PARTY,
        TicketStatus.PENDING_BILLING,
        TicketStatus.PENDING_PAYMENT,
    }
)

# List views freeze rows in these states; nothing in the engine enforces it.
ROW_LOCKED_STATUSES: frozenset[TicketStatus] = frozenset({TicketStatus.RESOLVED, TicketStatus.PAID})


def is_visit_status(status: TicketStatus) -> bool:
    return status in VISIT_STATUSES


def uses_visit_form(status: TicketStatus) -> bool:
    """Visit-class statuses swap the note composer for the dedicated visit form."""

    return is_visit_status(status)


def is_pending_status(status: TicketStatus) -> bool:
    """Waiting on someone outside the desk; the ticket has no nominal next step."""

    return status in PENDING_STATUSES


def is_row_locked(status: TicketStatus) -> bool:
    return status in ROW_LOCKED_STATUSES


def implies_visit_flag(status: TicketStatus) -> bool:
    """Only the plain ``Visita`` status forces the ``visit`` flag on."""

    return status is TicketStatus.VISIT


class TicketStateMachine:
    """Describe ticket lifecycle progression.

    Operators may pick any status directly, so every transition between known
    states is allowed. The nominal order is kept to offer a "next step" hint.
    Pending states are reachable at any point and have no successor.
    """

    _PROGRESSION: tuple[TicketStatus, ...] = (
        TicketStatus.NEW,
        TicketStatus.OPEN,
        TicketStatus.IN_PROGRESS,
        TicketStatus.VISIT,
        TicketStatus.RESOLVED,
        TicketStatus.TO_BILL,
        TicketStatus.PAID,
    )

    @classmethod
    def initial_state(cls) -> TicketStatus:
        return TicketStatus.NEW

    @classmethod
    def parse(cls, value: str | TicketStatus) -> TicketStatus:
        try:
            return TicketStatus(value)
        except ValueError:
            raise ValueError(f"Unknown ticket status: {value!r}") from None

    @classmethod
    def can_transition(cls, current: TicketStatus, new: TicketStatus) -> bool:
        return isinstance(current, TicketStatus) and isinstance(new, TicketStatus)

    @classmethod
    def assert_transition(cls, current: TicketStatus, new: str | TicketStatus) -> TicketStatus:
        target = cls.parse(new)
        if not cls.can_transition(current, target):
            raise ValueError(f"Invalid ticket status transition: {current!s} -> {target!s}")
        return target

    @classmethod
    def suggested_next(cls, current: TicketStatus) -> TicketStatus | None:
        if current in VISIT_STATUSES:
            return TicketStatus.RESOLVED
        if current is TicketStatus.IN_SUPPORT:
            return TicketStatus.RESOLVED
        if current is TicketStatus.CLOSED or is_pending_status(current):
            return None
        try:
            index = cls._PROGRESSION.index(current)
        except ValueError:
            return None
        if index + 1 >= len(cls._PROGRESSION):
            return None
        return cls._PROGRESSION[index + 1]
