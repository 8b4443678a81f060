import base64

import pytest

from ticketdesk.tickets.media import MediaDraftBuffer, MediaKind, format_bytes
from ticketdesk.tickets.models import AudioNote


def _ids():
    counter = iter(range(1, 100))
    return lambda: f"m-{next(counter)}"


@pytest.mark.asyncio
async def test_add_attachments_reads_files_as_data_urls(tmp_path):
    photo = tmp_path / "router.png"
    photo.write_bytes(b"\x89PNG")
    buffer = MediaDraftBuffer(id_factory=_ids())

    report = await buffer.add_attachments([photo])

    assert report.ok
    attachment = buffer.attachments[0]
    assert attachment.id == "m-1"
    assert attachment.name == "router.png"
    assert attachment.size == 4
    assert attachment.mime_type == "image/png"
    assert attachment.data_url == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()


@pytest.mark.asyncio
async def test_failed_reads_are_reported_without_rolling_back(tmp_path):
    good = tmp_path / "informe.txt"
    good.write_text("ok")
    missing = tmp_path / "no-existe.pdf"
    buffer = MediaDraftBuffer()

    report = await buffer.add_attachments([good, missing])

    assert [item.name for item in report.added] == ["informe.txt"]
    assert len(report.failures) == 1
    assert report.failures[0].path == missing
    assert [item.name for item in buffer.attachments] == ["informe.txt"]


def test_remove_and_flush():
    buffer = MediaDraftBuffer()
    buffer.add_audio(AudioNote(id="v-1"))
    buffer.add_audio(AudioNote(id="v-2"))

    assert buffer.remove(MediaKind.AUDIO, "v-1") is True
    assert buffer.remove("audio", "v-1") is False
    assert buffer.remove("attachment", "v-2") is False

    draft = buffer.flushed()
    assert [note.id for note in draft.audio_notes] == ["v-2"]
    assert buffer.is_empty


def test_discard_keeps_media_captured_after_snapshot():
    buffer = MediaDraftBuffer()
    buffer.add_audio(AudioNote(id="v-1"))
    committed = buffer.snapshot()
    buffer.add_audio(AudioNote(id="v-2"))

    buffer.discard(committed)

    assert [note.id for note in buffer.audio_notes] == ["v-2"]


@pytest.mark.parametrize(
    ("size", "expected"),
    [(None, "0 B"), (0, "0 B"), (512, "512 B"), (2048, "2 KB"), (5 * 1024 * 1024, "5 MB")],
)
def test_format_bytes(size, expected):
    assert format_bytes(size) == expected
