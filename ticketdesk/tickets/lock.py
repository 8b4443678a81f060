from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class LockGate:
    """View-local toggle that makes the field controls read-only.

    This is a UI affordance, not a permission. It is reset on every load and
    must never decide whether someone may change a ticket.
    """

    locked: bool = True

    @property
    def fields_editable(self) -> bool:
        return not self.locked

    def toggle(self) -> bool:
        self.locked = not self.locked
        return self.locked

    def lock(self) -> None:
        self.locked = True

    def unlock(self) -> None:
        self.locked = False

    def reset(self) -> None:
        self.locked = True
