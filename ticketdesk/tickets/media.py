from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Sequence
from uuid import uuid4

from .models import Attachment, AudioNote

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


class MediaKind(str, Enum):
    ATTACHMENT = "attachment"
    AUDIO = "audio"


class MediaReadError(OSError):
    """A file picked for attachment could not be read."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path.name}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True, slots=True)
class MediaDraft:
    """Attachments and voice memos captured since the last commit."""

    attachments: tuple[Attachment, ...] = ()
    audio_notes: tuple[AudioNote, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.attachments and not self.audio_notes

    def __len__(self) -> int:
        return len(self.attachments) + len(self.audio_notes)


@dataclass(slots=True)
class MediaReadReport:
    added: list[Attachment] = field(default_factory=list)
    failures: list[MediaReadError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def to_data_url(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def format_bytes(value: int | None) -> str:
    """Human readable size, rounded to whole units."""

    if not value or value <= 0:
        return "0 B"
    units = ("B", "KB", "MB", "GB")
    size = float(value)
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    return f"{round(size)} {units[index]}"


class MediaDraftBuffer:
    """Holds media captured for the next annotation until it is committed.

    Preview handles created by a UI on top of these members are owned by that
    UI and must be released by it when a member is removed or flushed.
    """

    def __init__(self, *, id_factory: Callable[[], str] | None = None) -> None:
        self._id_factory = id_factory or (lambda: str(uuid4()))
        self._attachments: list[Attachment] = []
        self._audio_notes: list[AudioNote] = []

    @property
    def attachments(self) -> tuple[Attachment, ...]:
        return tuple(self._attachments)

    @property
    def audio_notes(self) -> tuple[AudioNote, ...]:
        return tuple(self._audio_notes)

    @property
    def is_empty(self) -> bool:
        return not self._attachments and not self._audio_notes

    def snapshot(self) -> MediaDraft:
        return MediaDraft(attachments=self.attachments, audio_notes=self.audio_notes)

    async def add_attachments(self, files: Iterable[str | Path]) -> MediaReadReport:
        """Read ``files`` concurrently into inline data URLs.

        Files that fail are reported; the ones read successfully are kept.
        """

        paths = [Path(item) for item in files]
        results = await asyncio.gather(*(self._read(path) for path in paths), return_exceptions=True)

        report = MediaReadReport()
        unexpected: BaseException | None = None
        for path, result in zip(paths, results):
            if isinstance(result, Attachment):
                self._attachments.append(result)
                report.added.append(result)
            elif isinstance(result, OSError):
                failure = result if isinstance(result, MediaReadError) else MediaReadError(path, str(result))
                logger.warning("Could not read attachment %s: %s", path, failure.reason)
                report.failures.append(failure)
            elif unexpected is None:
                unexpected = result
        if unexpected is not None:
            raise unexpected
        return report

    async def _read(self, path: Path) -> Attachment:
        data = await asyncio.to_thread(path.read_bytes)
        mime_type = mimetypes.guess_type(path.name)[0] or DEFAULT_MIME_TYPE
        return Attachment(
            id=self._id_factory(),
            name=path.name,
            size=len(data),
            mime_type=mime_type,
            data_url=to_data_url(data, mime_type),
        )

    def add_audio(self, note: AudioNote) -> None:
        self._audio_notes.append(note)

    def remove(self, kind: MediaKind | str, member_id: str) -> bool:
        kind = MediaKind(kind)
        members = self._attachments if kind is MediaKind.ATTACHMENT else self._audio_notes
        for index, member in enumerate(members):
            if member.id == member_id:
                del members[index]
                return True
        return False

    def discard(self, draft: MediaDraft) -> None:
        """Drop the members of ``draft``, keeping anything captured since."""

        attachment_ids = {item.id for item in draft.attachments}
        audio_ids = {item.id for item in draft.audio_notes}
        self._attachments = [item for item in self._attachments if item.id not in attachment_ids]
        self._audio_notes = [item for item in self._audio_notes if item.id not in audio_ids]

    def flushed(self) -> MediaDraft:
        draft = self.snapshot()
        self.clear()
        return draft

    def clear(self) -> None:
        self._attachments.clear()
        self._audio_notes.clear()


def merge_chunks(chunks: Sequence[bytes]) -> bytes:
    return b"".join(chunks)
