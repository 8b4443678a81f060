"""Ticket lifecycle and change-audit engine."""

from .assignment import Assignment, AssignmentKind, AssignmentResolver
from .audio import AudioCaptureError, AudioCaptureSession, CaptureState
from .diff import Author, ChangeDiffBuilder, FieldChange
from .directory import Directory
from .lock import LockGate
from .log import AnnotationLog
from .media import MediaDraft, MediaDraftBuffer, MediaKind
from .models import Annotation, Attachment, AudioNote, Ticket
from .service import (
    TicketDetailSession,
    TicketLoadError,
    TicketNotLoadedError,
    TicketSaveError,
    TicketSessionError,
    TicketValidationError,
)
from .snapshot import TicketSnapshot
from .state import TicketPriority, TicketStateMachine, TicketStatus
from .timeline import TimelineProjector

__all__ = [
    "Annotation",
    "AnnotationLog",
    "Assignment",
    "AssignmentKind",
    "AssignmentResolver",
    "Attachment",
    "AudioCaptureError",
    "AudioCaptureSession",
    "AudioNote",
    "Author",
    "CaptureState",
    "ChangeDiffBuilder",
    "Directory",
    "FieldChange",
    "LockGate",
    "MediaDraft",
    "MediaDraftBuffer",
    "MediaKind",
    "Ticket",
    "TicketDetailSession",
    "TicketLoadError",
    "TicketNotLoadedError",
    "TicketPriority",
    "TicketSaveError",
    "TicketSessionError",
    "TicketSnapshot",
    "TicketStateMachine",
    "TicketStatus",
    "TicketValidationError",
    "TimelineProjector",
]
