"""Turn a committed edit into one human-readable audit entry."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Callable

from .assignment import NO_GROUP_LABEL, UNASSIGNED_LABEL, AssignmentResolver
from .directory import Directory
from .media import MediaDraft
from .models import Annotation, format_timestamp, utcnow
from .snapshot import TicketSnapshot
from .state import Currency

logger = logging.getLogger(__name__)

CHANGES_HEADING = "Cambios del ticket"
DETAIL_HEADING = "Detalle técnico"
MEDIA_ONLY_HEADING = "Cambios registrados"
BLOCK_SEPARATOR = "<hr>"

# Markup the rich-text editor leaves behind when the user clears it.
EMPTY_EDITOR_MARKUP: frozenset[str] = frozenset({"<p><br></p>", "<p><br/></p>", "<p></p>", "<br>"})

_TAG_RE = re.compile(r"<[^>]+>")


def strip_markup(text: str | None) -> str:
    if not text:
        return ""
    return _TAG_RE.sub("", text).replace("&nbsp;", " ").strip()


def note_has_content(note: str | None) -> bool:
    if not note or note.strip() in EMPTY_EDITOR_MARKUP:
        return False
    return bool(strip_markup(note))


@dataclass(frozen=True, slots=True)
class Author:
    name: str
    avatar: str | None = None


@dataclass(frozen=True, slots=True)
class FieldChange:
    """One ``<label>: <before> → <after>`` line. ``before`` is omitted for presence-only fields."""

    label: str
    after: str
    before: str | None = None

    def as_text(self) -> str:
        if self.before is None:
            return f"{self.label}: {self.after}"
        return f"{self.label}: {self.before} → {self.after}"

    def as_html(self) -> str:
        after = f"<strong>{escape(self.after)}</strong>"
        if self.before is None:
            return f"<li>{escape(self.label)}: {after}</li>"
        return f"<li>{escape(self.label)}: <strong>{escape(self.before)}</strong> → {after}</li>"


def _format_amount(amount: float | None, currency: Currency) -> str:
    if amount is None:
        return "Sin monto"
    value = str(int(amount)) if float(amount).is_integer() else f"{amount:.2f}"
    return f"{value} {currency.value}"


def _yes_no(value: bool) -> str:
    return "Sí" if value else "No"


def _user_audit_label(resolver: AssignmentResolver, identity: str | None) -> str:
    # Unresolved ids keep the fallback label and the raw id so the trail still shows what changed.
    if identity and resolver.find_user(identity) is None:
        return f"{UNASSIGNED_LABEL} ({identity})"
    return resolver.user_label(identity)


def _group_audit_label(resolver: AssignmentResolver, group_id: str | None) -> str:
    if group_id and resolver.find_group(group_id) is None:
        return f"{NO_GROUP_LABEL} ({group_id})"
    return resolver.group_label(group_id)



class ChangeDiffBuilder:
    """Compare two snapshots plus pending note/media and emit zero or one annotation."""

    def __init__(self, author: Author, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.author = author
        self._clock = clock

    def detect_changes(
        self,
        previous: TicketSnapshot,
        current: TicketSnapshot,
        directory: Directory | None = None,
    ) -> list[FieldChange]:
        resolver = AssignmentResolver(directory)
        changes: list[FieldChange] = []

        if previous.status != current.status:
            changes.append(FieldChange("Estado", before=previous.status.value, after=current.status.value))
        if previous.priority != current.priority:
            changes.append(FieldChange("Prioridad", before=previous.priority.value, after=current.priority.value))
        if previous.visit != current.visit:
            changes.append(FieldChange("Visita", before=_yes_no(previous.visit), after=_yes_no(current.visit)))

        # Amount and currency form one value; a currency toggle without an amount is not a change.
        if (previous.amount is not None or current.amount is not None) and (
            (previous.amount, previous.currency) != (current.amount, current.currency)
        ):
            changes.append(
                FieldChange(
                    "Monto",
                    before=_format_amount(previous.amount, previous.currency),
                    after=_format_amount(current.amount, current.currency),
                )
            )

        if (previous.description or "") != (current.description or ""):
            changes.append(FieldChange("Descripción", after="actualizada"))

        if previous.assigned_to != current.assigned_to:
            changes.append(
                FieldChange(
                    "Asignado a",
                    before=_user_audit_label(resolver, previous.assigned_to),
                    after=_user_audit_label(resolver, current.assigned_to),
                )
            )
        if previous.assigned_group_id != current.assigned_group_id:
            changes.append(
                FieldChange(
                    "Grupo",
                    before=_group_audit_label(resolver, previous.assigned_group_id),
                    after=_group_audit_label(resolver, current.assigned_group_id),
                )
            )
        return changes

    def build(
        self,
        previous: TicketSnapshot,
        current: TicketSnapshot,
        note: str | None = None,
        media: MediaDraft | None = None,
        directory: Directory | None = None,
        *,
        created_at: str | None = None,
    ) -> Annotation | None:
        media = media or MediaDraft()
        changes = self.detect_changes(previous, current, directory)

        blocks: list[str] = []
        if changes:
            lines = "".join(change.as_html() for change in changes)
            blocks.append(f"<p><strong>{CHANGES_HEADING}</strong></p><ul>{lines}</ul>")
        if note_has_content(note):
            blocks.append(f"<p><strong>{DETAIL_HEADING}</strong></p>{note}")
        if not blocks:
            if media.is_empty:
                logger.debug("Nothing to record for this commit")
                return None
            blocks.append(f"<p><strong>{MEDIA_ONLY_HEADING}</strong></p>")

        logger.debug("Built annotation with %d change(s) and %d media item(s)", len(changes), len(media))
        return Annotation(
            text=BLOCK_SEPARATOR.join(blocks),
            created_at=created_at or format_timestamp(self._clock()),
            user=self.author.name,
            avatar=self.author.avatar,
            attachments=media.attachments,
            audio_notes=media.audio_notes,
        )
