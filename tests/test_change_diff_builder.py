from ticketdesk.tickets.diff import (
    CHANGES_HEADING,
    DETAIL_HEADING,
    MEDIA_ONLY_HEADING,
    ChangeDiffBuilder,
    note_has_content,
)
from ticketdesk.tickets.directory import Directory
from ticketdesk.tickets.media import MediaDraft
from ticketdesk.tickets.models import Attachment, AudioNote
from ticketdesk.tickets.state import TicketStatus


def _attachment(attachment_id: str = "a-1") -> Attachment:
    return Attachment(id=attachment_id, name="foto.jpg", size=2048, mime_type="image/jpeg", data_url="data:image/jpeg;base64,AA==")


def test_status_only_change_yields_single_line(author, fixed_clock, snapshot_factory):
    builder = ChangeDiffBuilder(author, clock=fixed_clock)
    previous = snapshot_factory()
    current = previous.with_status("Abierto")

    changes = builder.detect_changes(previous, current)
    annotation = builder.build(previous, current)

    assert [change.as_text() for change in changes] == ["Estado: Nuevo → Abierto"]
    assert annotation is not None
    assert CHANGES_HEADING in annotation.text
    assert DETAIL_HEADING not in annotation.text
    assert "<strong>Nuevo</strong> → <strong>Abierto</strong>" in annotation.text


def test_identical_snapshots_without_note_or_media_return_none(author, snapshot_factory):
    builder = ChangeDiffBuilder(author)
    snapshot = snapshot_factory()

    assert builder.build(snapshot, snapshot, "", MediaDraft()) is None
    assert builder.build(snapshot, snapshot, "<p><br></p>", MediaDraft()) is None
    assert builder.build(snapshot, snapshot, "<p>  &nbsp; </p>") is None


def test_note_only_produces_detail_block(author, fixed_clock, snapshot_factory):
    builder = ChangeDiffBuilder(author, clock=fixed_clock)
    snapshot = snapshot_factory()

    annotation = builder.build(snapshot, snapshot, "<p>Se reinició el router</p>")

    assert annotation is not None
    assert annotation.text == f"<p><strong>{DETAIL_HEADING}</strong></p><p>Se reinició el router</p>"
    assert CHANGES_HEADING not in annotation.text
    assert annotation.created_at == "2024-05-01T12:30:00.000Z"
    assert annotation.user == "Técnico Admin"
    assert annotation.avatar == "/avatars/admin.png"


def test_media_only_produces_placeholder_entry(author, snapshot_factory):
    builder = ChangeDiffBuilder(author)
    snapshot = snapshot_factory()
    media = MediaDraft(audio_notes=(AudioNote(id="v-1", duration_seconds=3),))

    annotation = builder.build(snapshot, snapshot, "", media)

    assert annotation is not None
    assert MEDIA_ONLY_HEADING in annotation.text
    assert [note.id for note in annotation.audio_notes] == ["v-1"]


def test_site_visit_scenario_combines_changes_note_and_attachment(author, fixed_clock, snapshot_factory):
    builder = ChangeDiffBuilder(author, clock=fixed_clock)
    previous = snapshot_factory(status=TicketStatus.NEW)
    current = previous.with_status("Visita").with_priority("Alta")
    media = MediaDraft(attachments=(_attachment(),))

    annotation = builder.build(previous, current, "Revisado en sitio", media)

    assert annotation is not None
    assert "Estado: <strong>Nuevo</strong> → <strong>Visita</strong>" in annotation.text
    assert "Prioridad: <strong>Media</strong> → <strong>Alta</strong>" in annotation.text
    assert f"<strong>{DETAIL_HEADING}</strong></p>Revisado en sitio" in annotation.text
    assert len(annotation.attachments) == 1


def test_changes_are_listed_in_fixed_order(author, directory, snapshot_factory):
    builder = ChangeDiffBuilder(author)
    previous = snapshot_factory(amount=100.0, description="<p>a</p>").assign_user("u-1")
    current = (
        previous.assign_group("g-2")
        .with_description("<p>b</p>")
        .with_amount(250.5, "USD")
        .with_visit(True)
        .with_priority("Baja")
        .with_status("En proceso")
    )

    changes = builder.detect_changes(previous, current, directory)

    assert [change.as_text() for change in changes] == [
        "Estado: Nuevo → En proceso",
        "Prioridad: Media → Baja",
        "Visita: No → Sí",
        "Monto: 100 UYU → 250.50 USD",
        "Descripción: actualizada",
        "Asignado a: Ana Pérez → Sin asignar",
        "Grupo: Sin grupo → Redes",
    ]


def test_currency_toggle_without_amount_is_not_a_change(author, snapshot_factory):
    previous = snapshot_factory()
    current = previous.with_amount(None, "USD")

    assert ChangeDiffBuilder(author).detect_changes(previous, current) == []


def test_unresolved_assignees_keep_fallback_label_and_raw_id(author, snapshot_factory):
    previous = snapshot_factory().assign_group("ghost")
    current = previous.assign_user("nobody@example.com")

    changes = ChangeDiffBuilder(author).detect_changes(previous, current)

    assert [change.as_text() for change in changes] == [
        "Asignado a: Sin asignar → Sin asignar (nobody@example.com)",
        "Grupo: Sin grupo (ghost) → Sin grupo",
    ]


def test_values_are_escaped_in_markup(author, snapshot_factory):
    directory = Directory.from_payloads(users=[{"id": "u-x", "name": "<b>Eve</b>"}])
    previous = snapshot_factory()
    annotation = ChangeDiffBuilder(author).build(previous, previous.assign_user("u-x"), directory=directory)

    assert annotation is not None
    assert "&lt;b&gt;Eve&lt;/b&gt;" in annotation.text


def test_note_has_content():
    assert note_has_content("<p>ok</p>")
    assert not note_has_content(None)
    assert not note_has_content("   ")
    assert not note_has_content("<p><br></p>")
    assert not note_has_content("<div><span></span></div>")
