from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Iterator

from .models import Annotation, format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class DuplicateAnnotationKeyError(ValueError):
    """Raised when prepending an entry whose ``created_at`` is already present."""


class AnnotationLog:
    """Audit entries of one ticket, stored newest first.

    ``created_at`` identifies an entry. Edits and deletes address entries by
    that key and never reorder the log.
    """

    def __init__(self, entries: Iterable[Annotation] = ()) -> None:
        self._entries: list[Annotation] = list(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(self._entries)

    def __contains__(self, key: object) -> bool:
        return any(entry.created_at == key for entry in self._entries)

    @property
    def entries(self) -> tuple[Annotation, ...]:
        return tuple(self._entries)

    def copy(self) -> "AnnotationLog":
        return AnnotationLog(self._entries)

    def find(self, key: str) -> Annotation | None:
        for entry in self._entries:
            if entry.created_at == key:
                return entry
        return None

    def prepend(self, entry: Annotation) -> None:
        if entry.created_at in self:
            raise DuplicateAnnotationKeyError(f"Annotation {entry.created_at} already exists")
        self._entries.insert(0, entry)

    def edit_by_key(self, key: str, text: str) -> bool:
        for index, entry in enumerate(self._entries):
            if entry.created_at == key:
                self._entries[index] = entry.model_copy(update={"text": text})
                return True
        logger.debug("No annotation with key %s to edit", key)
        return False

    def delete_by_key(self, key: str) -> bool:
        for index, entry in enumerate(self._entries):
            if entry.created_at == key:
                del self._entries[index]
                return True
        logger.debug("No annotation with key %s to delete", key)
        return False

    def reverse_chronological(self) -> list[Annotation]:
        """Stored order, which is newest first as long as every insert was a prepend."""

        return list(self._entries)

    def chronological(self) -> list[Annotation]:
        """Entries sorted by ascending ``created_at``; ties keep stored order."""

        return sorted(self._entries, key=_sort_key)

    def unique_key(self, moment: datetime) -> str:
        """Timestamp key for a new entry, advanced a millisecond at a time past collisions."""

        key = format_timestamp(moment)
        while key in self:
            moment += timedelta(milliseconds=1)
            key = format_timestamp(moment)
        return key


def _sort_key(entry: Annotation) -> datetime:
    # Unparseable keys sort first instead of breaking the timeline.
    return parse_timestamp(entry.created_at) or _EPOCH
