"""Presentation helpers layered over the raw note collection.

Nothing here touches storage: callers fetch notes with
:meth:`NoteStore.list` and shape them for display.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from note_store.models import Note

SOON_THRESHOLD_DAYS = 3


class DueStatus(str, Enum):
    OVERDUE = "overdue"
    TODAY = "today"
    SOON = "soon"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class DueInfo:
    """Where a due date falls relative to today."""

    status: DueStatus
    days: int

    @property
    def label(self) -> str:
        if self.status is DueStatus.OVERDUE:
            return "Overdue"
        if self.status is DueStatus.TODAY:
            return "Due today"
        return f"Due in {self.days} day{'s' if self.days > 1 else ''}"


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _parse(timestamp: str) -> datetime:
    return _aware(datetime.fromisoformat(timestamp))


def _sort_key(note: Note) -> float:
    try:
        return _parse(note.updated_at).timestamp()
    except ValueError:
        return 0.0


def sort_notes(notes: Iterable[Note]) -> list[Note]:
    """Pinned notes first, each group by most recently updated."""
    by_recency = sorted(notes, key=_sort_key, reverse=True)
    return [n for n in by_recency if n.pinned] + [n for n in by_recency if not n.pinned]


def filter_notes(
    notes: Iterable[Note],
    query: str | None = None,
    category: str | None = None,
    tag: str | None = None,
    archived: bool = False,
) -> list[Note]:
    """Select the notes a list view shows, pinned notes first.

    ``archived`` picks the archived or the active partition. ``query``
    matches title or content and ``category`` matches case-insensitively;
    ``tag`` must be an exact tag.
    """
    text = (query or "").strip().lower()
    selected = [
        n
        for n in notes
        if n.archived == archived
        and (not text or text in n.title.lower() or text in n.content.lower())
    ]
    if category:
        wanted = category.lower()
        selected = [n for n in selected if (n.category or "").lower() == wanted]
    if tag:
        selected = [n for n in selected if tag in n.tags]
    return [n for n in selected if n.pinned] + [n for n in selected if not n.pinned]


def categories(notes: Iterable[Note]) -> list[str]:
    """Distinct categories in use, sorted."""
    return sorted({n.category for n in notes if n.category}, key=str.casefold)


def all_tags(notes: Iterable[Note]) -> list[str]:
    """Distinct tags in use, sorted."""
    return sorted({t for n in notes for t in n.tags}, key=str.casefold)


def due_status(note: Note, now: Optional[datetime] = None) -> Optional[DueInfo]:
    """Classify the note's due date against today at midnight.

    Returns None when the note has no (parseable) due date.
    """
    if not note.due_date:
        return None
    try:
        due = _parse(note.due_date)
    except ValueError:
        return None

    now = _aware(now or datetime.now(UTC))
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    days = math.ceil((due - midnight) / timedelta(days=1))

    if days < 0:
        return DueInfo(DueStatus.OVERDUE, days)
    if days == 0:
        return DueInfo(DueStatus.TODAY, 0)
    if days <= SOON_THRESHOLD_DAYS:
        return DueInfo(DueStatus.SOON, days)
    return DueInfo(DueStatus.UPCOMING, days)


def relative_date(timestamp: str, now: Optional[datetime] = None) -> str:
    """Short human label for a timestamp: today, yesterday, days ago, or a date.

    Timestamps that do not parse are returned unchanged.
    """
    try:
        when = _parse(timestamp)
    except ValueError:
        return timestamp
    now = _aware(now or datetime.now(UTC))
    days = math.ceil(abs(now - when) / timedelta(days=1))
    if days <= 1:
        return "Today"
    if days == 2:
        return "Yesterday"
    if days <= 7:
        return f"{days - 1} days ago"
    return when.strftime("%d/%m/%Y")


def parse_tags(raw: str) -> list[str]:
    """Split comma-separated tag input, dropping blanks."""
    return [t.strip() for t in raw.split(",") if t.strip()]


def share_text(note: Note) -> str:
    """Plain-text rendering used when sharing a note."""
    return f"Title: {note.title}\n\n{note.content}\n\nTags: {', '.join(note.tags)}"
