"""Single-owner assignment of a ticket: nobody, one user, or one group."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from .directory import Directory
from .models import Group, User

logger = logging.getLogger(__name__)

UNASSIGNED_LABEL = "Sin asignar"
NO_GROUP_LABEL = "Sin grupo"


class AssignmentKind(str, Enum):
    NONE = "none"
    USER = "user"
    GROUP = "group"


@dataclass(frozen=True, slots=True)
class Assignment:
    """Tagged assignee encoded as ``none``, ``user:<identity>`` or ``group:<id>``.

    Holding one tag makes the user/group exclusion structural: building a user
    assignment can never leave a group behind, and the reverse.
    """

    kind: AssignmentKind = AssignmentKind.NONE
    value: str | None = None

    def __post_init__(self) -> None:
        if self.kind is AssignmentKind.NONE and self.value is not None:
            raise ValueError("An empty assignment cannot carry a value")
        if self.kind is not AssignmentKind.NONE and not self.value:
            raise ValueError(f"A {self.kind.value} assignment needs a value")

    @classmethod
    def none(cls) -> "Assignment":
        return cls()

    @classmethod
    def user(cls, identity: str | None) -> "Assignment":
        identity = (identity or "").strip()
        return cls(AssignmentKind.USER, identity) if identity else cls()

    @classmethod
    def group(cls, group_id: str | None) -> "Assignment":
        group_id = (group_id or "").strip()
        return cls(AssignmentKind.GROUP, group_id) if group_id else cls()

    @classmethod
    def parse(cls, token: str) -> "Assignment":
        if token == AssignmentKind.NONE.value:
            return cls()
        prefix, sep, value = token.partition(":")
        if sep:
            if prefix == AssignmentKind.USER.value:
                return cls.user(value)
            if prefix == AssignmentKind.GROUP.value:
                return cls.group(value)
        raise ValueError(f"Invalid assignment selection: {token!r}")

    @classmethod
    def from_fields(cls, assigned_to: str | None, assigned_group_id: str | None) -> "Assignment":
        """Build from the two wire fields; a user wins if both are present."""

        if assigned_to and assigned_group_id:
            logger.warning(
                "Ticket carries both user %r and group %r; keeping the user assignment",
                assigned_to,
                assigned_group_id,
            )
        if assigned_to:
            return cls.user(assigned_to)
        return cls.group(assigned_group_id)

    def encode(self) -> str:
        if self.kind is AssignmentKind.NONE:
            return AssignmentKind.NONE.value
        return f"{self.kind.value}:{self.value}"

    @property
    def assigned_to(self) -> str | None:
        return self.value if self.kind is AssignmentKind.USER else None

    @property
    def assigned_group_id(self) -> str | None:
        return self.value if self.kind is AssignmentKind.GROUP else None


UserMatcher = Callable[[User, str], bool]
GroupMatcher = Callable[[Group, str], bool]


def _same_email(user: User, key: str) -> bool:
    return bool(user.email) and user.email.strip().lower() == key.strip().lower()


# Stored assignees are not normalised on a single identity: depending on which
# screen wrote the ticket the value may be an id, a legacy ``_id``, a display
# name or an email. Matchers are tried in this order across the whole directory.
DEFAULT_USER_MATCHERS: tuple[tuple[str, UserMatcher], ...] = (
    ("id", lambda user, key: user.id == key),
    ("_id", lambda user, key: user.mongo_id == key),
    ("name", lambda user, key: user.name == key),
    ("email", _same_email),
)

DEFAULT_GROUP_MATCHERS: tuple[tuple[str, GroupMatcher], ...] = (
    ("_id", lambda group, key: group.mongo_id == key),
    ("id", lambda group, key: group.id == key),
)


class AssignmentResolver:
    """Resolve assignees against the directory for display."""

    def __init__(
        self,
        directory: Directory | None = None,
        *,
        user_matchers: Sequence[tuple[str, UserMatcher]] | None = None,
        group_matchers: Sequence[tuple[str, GroupMatcher]] | None = None,
    ) -> None:
        self.directory = directory or Directory()
        self.user_matchers = tuple(user_matchers or DEFAULT_USER_MATCHERS)
        self.group_matchers = tuple(group_matchers or DEFAULT_GROUP_MATCHERS)

    def find_user(self, identity: str | None) -> User | None:
        if not identity:
            return None
        for field_name, matcher in self.user_matchers:
            for user in self.directory.users:
                if matcher(user, identity):
                    logger.debug("Resolved assignee %r by %s", identity, field_name)
                    return user
        return None

    def find_group(self, group_id: str | None) -> Group | None:
        if not group_id:
            return None
        for _, matcher in self.group_matchers:
            for group in self.directory.groups:
                if matcher(group, group_id):
                    return group
        return None

    def user_label(self, identity: str | None) -> str:
        user = self.find_user(identity)
        if user is None:
            return UNASSIGNED_LABEL
        return user.name or user.email or UNASSIGNED_LABEL

    def group_label(self, group_id: str | None) -> str:
        group = self.find_group(group_id)
        if group is None or not group.name:
            return NO_GROUP_LABEL
        return group.name

    def describe(self, assignment: Assignment) -> str:
        if assignment.kind is AssignmentKind.USER:
            return self.user_label(assignment.value)
        if assignment.kind is AssignmentKind.GROUP:
            return self.group_label(assignment.value)
        return UNASSIGNED_LABEL

    def options(self) -> list[tuple[str, str]]:
        """Selectable ``(token, label)`` pairs: nobody, then users, then groups."""

        options = [(Assignment.none().encode(), UNASSIGNED_LABEL)]
        for user in self.directory.users:
            identity = user.id or user.mongo_id
            if identity:
                options.append((Assignment.user(identity).encode(), user.name or user.email or identity))
        for group in self.directory.groups:
            if group.key:
                options.append((Assignment.group(group.key).encode(), group.name or group.key))
        return options
