"""Note persistence on top of a single key-value entry.

The whole collection lives as one JSON array under ``key``. Every
mutation reads the full collection, changes it in memory and writes it
back; there is no locking, so two concurrent writers end up with the
last write winning.
"""

from __future__ import annotations

import functools
import json
import logging
import time
from typing import Any, Callable, Optional

from pydantic import ValidationError

from note_store.backends import KeyValueBackend
from note_store.errors import StorageError, StorageReadError, StorageWriteError
from note_store.metrics import NOTE_OPERATION_DURATION, NOTE_OPERATIONS, NOTES_STORED
from note_store.models import (
    DEFAULT_COLOR,
    Note,
    NoteDraft,
    NoteList,
    NotePatch,
    new_note_id,
    utc_now,
)

logger = logging.getLogger(__name__)

DEFAULT_STORE_KEY = "NOTES_KEY"
DEFAULT_COPY_SUFFIX = " (copy)"


def _timed(operation: str):
    """Observe the wrapped coroutine's duration under ``operation``."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                NOTE_OPERATION_DURATION.labels(operation=operation).observe(
                    time.perf_counter() - start
                )

        return wrapper

    return decorator


def _record(operation: str, status: str) -> None:
    NOTE_OPERATIONS.labels(operation=operation, status=status).inc()


def _as_text(value: Any) -> str:
    """Coerce an imported JSON value to text; non-strings become their JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


class NoteStore:
    """CRUD, toggles and bulk transfer over the persisted note collection."""

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str = DEFAULT_STORE_KEY,
        clock: Callable[[], str] = utc_now,
        default_color: str = DEFAULT_COLOR,
        copy_suffix: str = DEFAULT_COPY_SUFFIX,
        duplicate_keeps_pinned: bool = True,
    ) -> None:
        self._backend = backend
        self._key = key
        self._clock = clock
        self._default_color = default_color
        self._copy_suffix = copy_suffix
        self._duplicate_keeps_pinned = duplicate_keeps_pinned

    async def close(self) -> None:
        """Release the backend connection."""
        await self._backend.close()

    # ------------------------------------------------------------------
    # Raw collection access
    # ------------------------------------------------------------------

    async def load(self) -> list[Note]:
        """Read the collection, raising :class:`StorageReadError` on failure.

        A missing entry is an empty collection, not an error.
        """
        try:
            raw = await self._backend.get_item(self._key)
        except Exception as exc:
            raise StorageReadError(f"Backend read failed for {self._key!r}: {exc}") from exc

        if raw is None:
            NOTES_STORED.set(0)
            return []

        try:
            notes = NoteList.validate_json(raw)
        except ValidationError as exc:
            raise StorageReadError(
                f"Stored value under {self._key!r} is not a list of notes: {exc}"
            ) from exc

        NOTES_STORED.set(len(notes))
        return notes

    async def _persist(self, notes: list[Note]) -> None:
        payload = NoteList.dump_json(notes, by_alias=True, exclude_none=True).decode()
        try:
            await self._backend.set_item(self._key, payload)
        except Exception as exc:
            raise StorageWriteError(f"Backend write failed for {self._key!r}: {exc}") from exc
        NOTES_STORED.set(len(notes))

    @staticmethod
    def _index_of(notes: list[Note], note_id: str) -> int:
        for index, note in enumerate(notes):
            if note.id == note_id:
                return index
        return -1

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @_timed("list")
    async def list(self) -> list[Note]:
        """Return every stored note in creation order.

        Unreadable or corrupt storage is logged and reported as an empty
        collection; use :meth:`load` to tell the two apart.
        """
        try:
            notes = await self.load()
        except StorageReadError as exc:
            logger.error("Failed to load notes: %s — treating as empty", exc)
            _record("list", "error")
            return []
        _record("list", "ok")
        return notes

    async def get_by_id(self, note_id: str) -> Optional[Note]:
        """Return the note with ``note_id``, or None."""
        notes = await self.list()
        index = self._index_of(notes, note_id)
        return notes[index] if index != -1 else None

    async def count(self) -> int:
        """Number of stored notes."""
        return len(await self.list())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @_timed("create")
    async def create(self, draft: NoteDraft) -> Note:
        """Create, append and persist a new note built from ``draft``."""
        notes = await self.list()
        now = self._clock()
        note = Note(
            id=new_note_id(),
            title=draft.title,
            content=draft.content,
            created_at=now,
            updated_at=now,
            pinned=draft.pinned,
            archived=draft.archived,
            tags=list(draft.tags),
            category=draft.category,
            color=draft.color or self._default_color,
            due_date=draft.due_date,
        )
        notes.append(note)
        await self._persist(notes)
        _record("create", "ok")
        logger.info("Saved note %s — '%s'", note.id, note.title)
        return note

    @_timed("update")
    async def update(self, note_id: str, patch: NotePatch) -> Optional[Note]:
        """Merge ``patch`` over the stored note and refresh ``updated_at``.

        Fields not set on the patch keep their stored value. Returns None
        when no note has ``note_id``.
        """
        notes = await self.list()
        index = self._index_of(notes, note_id)
        if index == -1:
            _record("update", "not_found")
            logger.warning("Update skipped, note %s not found", note_id)
            return None

        changes = patch.changes()
        if "tags" in changes:
            changes["tags"] = list(changes["tags"])
        changes["updated_at"] = self._clock()

        updated = notes[index].model_copy(update=changes)
        notes[index] = updated
        await self._persist(notes)
        _record("update", "ok")
        logger.info("Updated note %s (%s)", note_id, ", ".join(sorted(changes)))
        return updated

    @_timed("delete")
    async def delete(self, note_id: str) -> bool:
        """Remove the note with ``note_id``.

        Returns False when nothing matched or the write failed.
        """
        notes = await self.list()
        index = self._index_of(notes, note_id)
        if index == -1:
            _record("delete", "not_found")
            logger.warning("Delete skipped, note %s not found", note_id)
            return False

        removed = notes.pop(index)
        try:
            await self._persist(notes)
        except StorageError as exc:
            _record("delete", "error")
            logger.error("Failed to delete note %s: %s", note_id, exc)
            return False

        _record("delete", "ok")
        logger.info("Deleted note %s — '%s'", removed.id, removed.title)
        return True

    async def _toggle(self, operation: str, note_id: str, field: str) -> Optional[Note]:
        notes = await self.list()
        index = self._index_of(notes, note_id)
        if index == -1:
            _record(operation, "not_found")
            logger.warning("%s skipped, note %s not found", operation, note_id)
            return None

        current = notes[index]
        toggled = current.model_copy(
            update={field: not getattr(current, field), "updated_at": self._clock()}
        )
        notes[index] = toggled
        await self._persist(notes)
        _record(operation, "ok")
        logger.info("Note %s %s=%s", note_id, field, getattr(toggled, field))
        return toggled

    @_timed("toggle_pinned")
    async def toggle_pinned(self, note_id: str) -> Optional[Note]:
        """Flip ``pinned`` on the note; None if it does not exist."""
        return await self._toggle("toggle_pinned", note_id, "pinned")

    @_timed("toggle_archived")
    async def toggle_archived(self, note_id: str) -> Optional[Note]:
        """Flip ``archived`` on the note; None if it does not exist."""
        return await self._toggle("toggle_archived", note_id, "archived")

    @_timed("duplicate")
    async def duplicate_note(self, note_id: str) -> Optional[Note]:
        """Append a copy of the note under a new id and fresh timestamps.

        The copy's title gets the copy suffix. Pinned state is carried over
        unless the store was built with ``duplicate_keeps_pinned=False``.
        """
        notes = await self.list()
        index = self._index_of(notes, note_id)
        if index == -1:
            _record("duplicate", "not_found")
            logger.warning("Duplicate skipped, note %s not found", note_id)
            return None

        source = notes[index]
        now = self._clock()
        copy = source.model_copy(
            update={
                "id": new_note_id(),
                "title": f"{source.title}{self._copy_suffix}",
                "created_at": now,
                "updated_at": now,
                "tags": list(source.tags),
                "pinned": source.pinned if self._duplicate_keeps_pinned else False,
            }
        )
        notes.append(copy)
        await self._persist(notes)
        _record("duplicate", "ok")
        logger.info("Duplicated note %s as %s", source.id, copy.id)
        return copy

    # ------------------------------------------------------------------
    # Bulk transfer
    # ------------------------------------------------------------------

    @_timed("export")
    async def export_all(self) -> str:
        """Serialize every note as a pretty-printed JSON array."""
        notes = await self.list()
        _record("export", "ok")
        return json.dumps(
            [note.to_json_dict() for note in notes], indent=2, ensure_ascii=False
        )

    def _sanitize(self, raw: dict[str, Any], now: str) -> Note:
        tags = raw.get("tags")
        return Note(
            id=raw["id"],
            title=_as_text(raw["title"]) if raw.get("title") is not None else "",
            content=_as_text(raw["content"]) if raw.get("content") is not None else "",
            created_at=_as_text(raw["createdAt"]) if raw.get("createdAt") else now,
            updated_at=_as_text(raw["updatedAt"]) if raw.get("updatedAt") else now,
            pinned=bool(raw.get("pinned")),
            archived=bool(raw.get("archived")),
            tags=[_as_text(tag) for tag in tags] if isinstance(tags, list) else [],
            category=_as_text(raw["category"]) if raw.get("category") else None,
            color=_as_text(raw["color"]) if raw.get("color") else self._default_color,
            due_date=_as_text(raw["dueDate"]) if raw.get("dueDate") else None,
        )

    @_timed("import")
    async def import_all(self, text: str) -> Optional[int]:
        """Replace the whole collection with the notes in ``text``.

        ``text`` must be a JSON array. Elements that are not objects with a
        string ``id`` are skipped, as are repeats of an id already seen; the
        rest are coerced to well-formed notes. Returns the number of
        imported notes, or None when the payload is rejected or cannot be
        written.
        """
        try:
            parsed = json.loads(text)
        except (json.JSONDecodeError, TypeError) as exc:
            _record("import", "rejected")
            logger.warning("Import rejected, payload is not JSON: %s", exc)
            return None

        if not isinstance(parsed, list):
            _record("import", "rejected")
            logger.warning(
                "Import rejected, expected a JSON array, got %s", type(parsed).__name__
            )
            return None

        now = self._clock()
        sanitized: list[Note] = []
        seen: set[str] = set()
        for item in parsed:
            if not isinstance(item, dict) or not isinstance(item.get("id"), str):
                continue
            # first occurrence of an id wins
            if item["id"] in seen:
                continue
            seen.add(item["id"])
            sanitized.append(self._sanitize(item, now))

        try:
            await self._persist(sanitized)
        except StorageError as exc:
            _record("import", "error")
            logger.error("Failed to import notes: %s", exc)
            return None

        _record("import", "ok")
        logger.info(
            "Imported %d notes (%d skipped)", len(sanitized), len(parsed) - len(sanitized)
        )
        return len(sanitized)
