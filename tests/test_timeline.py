import math

from ticketdesk.tickets.log import AnnotationLog
from ticketdesk.tickets.models import Annotation
from ticketdesk.tickets.timeline import TimelineProjector, display_title


def _entries(count: int) -> list[Annotation]:
    return [Annotation(text=f"n{i}", created_at=f"2024-05-0{i + 1}T00:00:00.000Z") for i in range(count)]


def test_single_entry_sits_at_zero():
    points = TimelineProjector().project(_entries(1))
    assert points[0].percent == 0


def test_five_entries_are_evenly_spaced():
    points = TimelineProjector().project(_entries(5))

    assert [point.percent for point in points] == [0, 25, 50, 75, 100]
    assert points[4].percent == 100
    assert points[2].percent == 50


def test_empty_input_projects_nothing():
    assert TimelineProjector().project([]) == []


def test_position_coerces_corrupt_counts():
    assert TimelineProjector.position(0, 0) == 0
    assert TimelineProjector.position(3, 2) == 100
    assert TimelineProjector.position(1, math.nan) == 0
    assert TimelineProjector.position(1, -5) == 0


def test_project_log_uses_chronological_order():
    log = AnnotationLog(list(reversed(_entries(3))))

    points = TimelineProjector().project_log(log)

    assert [point.entry.text for point in points] == ["n0", "n1", "n2"]
    assert [point.percent for point in points] == [0, 50, 100]


def test_display_title_cuts_before_structured_markers():
    text = "<p>Llamó el cliente</p><p><strong>Detalle técnico</strong></p><p>algo</p>"
    assert display_title(text) == "Llamó el cliente"


def test_display_title_handles_empty_and_long_text():
    assert display_title("<p><strong>Cambios del ticket</strong></p><ul><li>Estado: a → b</li></ul>") == "Cambios del ticket"
    assert display_title("<p></p>") == "(sin título)"
    long_title = display_title("x" * 200)
    assert long_title.endswith("…")
    assert len(long_title) == 141
