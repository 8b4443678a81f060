from __future__ import annotations

import logging
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Protocol, Sequence
from uuid import uuid4

from .media import MediaDraftBuffer, merge_chunks, to_data_url
from .models import AudioNote, format_timestamp, utcnow

logger = logging.getLogger(__name__)


class Recorder(Protocol):
    """Audio input device. ``start`` raises ``PermissionError``/``OSError`` on failure."""

    async def start(self) -> None:
        ...

    async def stop(self) -> Sequence[bytes]:
        ...


class CaptureState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"


class AudioCaptureError(RuntimeError):
    """Raised when a voice memo could not be captured."""


class RecordingInProgressError(AudioCaptureError):
    """Raised when starting while another recording is running."""


class NoActiveRecordingError(AudioCaptureError):
    """Raised when stopping without a running recording."""


class AudioCaptureSession:
    """Record one voice memo per start/stop cycle into a media buffer.

    Duration is the wall-clock time from the moment the recorder is running
    until stop, as read from ``clock``; it is not decoded from the audio and can drift from the playable
    length if the process is suspended while recording.
    """

    def __init__(
        self,
        recorder: Recorder,
        buffer: MediaDraftBuffer,
        *,
        mime_type: str = "audio/webm",
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._recorder = recorder
        self._buffer = buffer
        self._mime_type = mime_type
        self._clock = clock
        self._now = now
        self._id_factory = id_factory or (lambda: str(uuid4()))
        self._state = CaptureState.IDLE
        self._started_at: float | None = None

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is CaptureState.RECORDING

    async def start(self) -> None:
        if self._state is CaptureState.RECORDING:
            raise RecordingInProgressError("A recording is already in progress.")

        # Claim the session before awaiting the device so a second start fails fast.
        self._state = CaptureState.RECORDING
        try:
            await self._recorder.start()
        except OSError as exc:  # includes PermissionError
            self._reset()
            logger.warning("Recording could not start: %s", exc)
            raise AudioCaptureError("No se pudo iniciar la grabación.") from exc
        except BaseException:
            self._reset()
            raise
        # Time spent opening the device or waiting on a permission prompt is not recorded audio.
        self._started_at = self._clock()

    async def stop(self) -> AudioNote:
        if self._state is not CaptureState.RECORDING or self._started_at is None:
            raise NoActiveRecordingError("There is no recording to stop.")

        started_at = self._started_at
        try:
            chunks = await self._recorder.stop()
        except OSError as exc:
            logger.warning("Recording failed while stopping: %s", exc)
            raise AudioCaptureError("No se pudo completar la grabación.") from exc
        finally:
            stopped_at = self._clock()
            self._reset()

        data = merge_chunks(chunks)
        note = AudioNote(
            id=self._id_factory(),
            created_at=format_timestamp(self._now()),
            size=len(data),
            mime_type=self._mime_type,
            data_url=to_data_url(data, self._mime_type),
            duration_seconds=max(0, round(stopped_at - started_at)),
        )
        self._buffer.add_audio(note)
        logger.debug("Captured voice memo %s (%ss)", note.id, note.duration_seconds)
        return note

    def _reset(self) -> None:
        self._state = CaptureState.IDLE
        self._started_at = None
