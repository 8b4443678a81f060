from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Sequence

from .diff import strip_markup
from .log import AnnotationLog
from .models import Annotation

TITLE_MARKERS: tuple[str, ...] = ("Estado:", "Monto:", "Detalle")
TITLE_MAX_LENGTH = 140
UNTITLED = "(sin título)"

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class TimelinePoint:
    entry: Annotation
    percent: float


class TimelineProjector:
    """Place annotations evenly along a horizontal axis, oldest at 0%."""

    @staticmethod
    def position(index: int, count: int) -> float:
        if count == 1:
            return 0.0
        try:
            percent = index / (count - 1) * 100
        except (ZeroDivisionError, TypeError):
            return 0.0
        if not math.isfinite(percent):
            return 0.0
        return min(100.0, max(0.0, percent))

    def project(self, entries: Sequence[Annotation]) -> list[TimelinePoint]:
        count = len(entries)
        return [TimelinePoint(entry=entry, percent=self.position(index, count)) for index, entry in enumerate(entries)]

    def project_log(self, log: AnnotationLog) -> list[TimelinePoint]:
        return self.project(log.chronological())


def display_title(text: str | None) -> str:
    """Short label for an entry: the text before its first structured marker."""

    normalized = _WHITESPACE_RE.sub(" ", strip_markup(text)).strip()
    cut = normalized
    for marker in TITLE_MARKERS:
        index = cut.find(marker)
        if index > 0:
            cut = cut[:index]
    cut = cut.strip()
    if not cut:
        return UNTITLED
    if len(cut) > TITLE_MAX_LENGTH:
        return f"{cut[:TITLE_MAX_LENGTH]}…"
    return cut
