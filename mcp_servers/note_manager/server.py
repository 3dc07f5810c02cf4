"""
Note Manager MCP Server

Exposes tools for creating, editing, pinning, archiving, duplicating,
deleting, exporting and importing notes via the Model Context Protocol.
Runs on port 8001 with SSE transport and serves Prometheus metrics on
``/metrics``.
"""

import logging
from datetime import UTC, datetime

import anyio
from mcp.server.fastmcp import FastMCP
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import Response

from note_store import views
from note_store.backends import create_backend
from note_store.config import settings
from note_store.models import NoteDraft, NotePatch
from note_store.store import NoteStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("note_manager")

# ---------------------------------------------------------------------------
# MCP server + storage
# ---------------------------------------------------------------------------
mcp = FastMCP("note-manager", host=settings.server_host, port=settings.server_port)
store = NoteStore(
    create_backend(settings),
    key=settings.store_key,
    default_color=settings.default_color,
    copy_suffix=settings.copy_suffix,
    duplicate_keeps_pinned=settings.duplicate_keeps_pinned,
)


def _not_found(note_id: str) -> dict:
    return {"error": f"Note '{note_id}' not found."}


def _tag_list(tags: list[str] | str | None) -> list[str] | None:
    """Accept a tag list or comma-separated tag text."""
    if isinstance(tags, str):
        return views.parse_tags(tags)
    return tags


def _invalid(exc: ValidationError) -> dict:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'note'}: {err['msg']}"
        for err in exc.errors()
    )
    return {"error": f"Invalid note: {problems}"}


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def create_note(
    title: str,
    content: str,
    tags: list[str] | str | None = None,
    category: str | None = None,
    color: str | None = None,
    due_date: str | None = None,
    pinned: bool = False,
) -> dict:
    """Create a new note with a title, content and optional metadata.

    Use this tool when the user wants to write down, store, or remember a
    piece of information.

    Args:
        title: Short descriptive title for the note.
        content: The full body / text of the note.
        tags: Optional tags, as a list or comma-separated text, kept in
            the given order.
        category: Optional category name.
        color: Optional color token (e.g. "#ffeb3b").
        due_date: Optional ISO-8601 due date.
        pinned: Whether the note should be pinned right away.

    Returns:
        Dictionary with the created note and a confirmation message.
    """
    try:
        draft = NoteDraft(
            title=title,
            content=content,
            tags=_tag_list(tags) or [],
            category=category,
            color=color,
            due_date=due_date,
            pinned=pinned,
        )
    except ValidationError as exc:
        logger.warning("Tool create_note rejected — %s", exc.error_count())
        return _invalid(exc)

    note = await store.create(draft)
    logger.info("Tool create_note invoked — id=%s", note.id)
    return {
        "note": note.to_json_dict(),
        "message": f"Note '{note.title}' saved successfully.",
    }


@mcp.tool()
async def list_notes(
    query: str | None = None,
    category: str | None = None,
    tag: str | None = None,
    archived: bool = False,
) -> dict:
    """List notes the way the notes screen shows them.

    Pinned notes come first, then the most recently updated. By default
    only active (non-archived) notes are listed.

    Args:
        query: Optional text to match against title and content (case-insensitive).
        category: Optional category to match (case-insensitive).
        tag: Optional exact tag the note must carry.
        archived: List archived notes instead of active ones.

    Returns:
        Dictionary with the matching notes and their count.
    """
    notes = views.filter_notes(
        views.sort_notes(await store.list()),
        query=query,
        category=category,
        tag=tag,
        archived=archived,
    )
    now = datetime.now(UTC)
    payload = []
    for note in notes:
        item = note.to_json_dict()
        due = views.due_status(note, now)
        if due is not None:
            item["dueStatus"] = due.status.value
            item["dueLabel"] = due.label
        item["updatedLabel"] = views.relative_date(note.updated_at, now)
        payload.append(item)

    logger.info("Tool list_notes invoked — found=%d", len(payload))
    return {"count": len(payload), "notes": payload}


@mcp.tool()
async def get_note(note_id: str) -> dict:
    """Fetch a single note by id, including a shareable plain-text rendering.

    Args:
        note_id: Id of the note to fetch.

    Returns:
        Dictionary with the note and its share text, or an error.
    """
    note = await store.get_by_id(note_id)
    if note is None:
        return _not_found(note_id)
    return {"note": note.to_json_dict(), "share_text": views.share_text(note)}


@mcp.tool()
async def update_note(
    note_id: str,
    title: str | None = None,
    content: str | None = None,
    tags: list[str] | str | None = None,
    category: str | None = None,
    color: str | None = None,
    due_date: str | None = None,
    clear_category: bool = False,
    clear_due_date: bool = False,
) -> dict:
    """Edit an existing note. Only the fields you pass are changed.

    Args:
        note_id: Id of the note to edit.
        title: New title.
        content: New content.
        tags: Replacement tags, as a list or comma-separated text; pass an
            empty list or "" to remove all tags.
        category: New category.
        color: New color token.
        due_date: New ISO-8601 due date.
        clear_category: Remove the note's category.
        clear_due_date: Remove the note's due date.

    Returns:
        Dictionary with the updated note, or an error.
    """
    fields = {
        name: value
        for name, value in (
            ("title", title),
            ("content", content),
            ("tags", _tag_list(tags)),
            ("category", category),
            ("color", color),
            ("due_date", due_date),
        )
        if value is not None
    }
    if clear_category:
        fields["category"] = None
    if clear_due_date:
        fields["due_date"] = None

    try:
        patch = NotePatch(**fields)
    except ValidationError as exc:
        logger.warning("Tool update_note rejected — id=%s", note_id)
        return _invalid(exc)

    note = await store.update(note_id, patch)
    if note is None:
        return _not_found(note_id)
    logger.info("Tool update_note invoked — id=%s", note_id)
    return {"note": note.to_json_dict(), "message": f"Note '{note.title}' updated."}


@mcp.tool()
async def delete_note(note_id: str) -> dict:
    """Permanently delete a note.

    Args:
        note_id: Id of the note to delete.

    Returns:
        Dictionary with a ``deleted`` flag.
    """
    deleted = await store.delete(note_id)
    logger.info("Tool delete_note invoked — id=%s, deleted=%s", note_id, deleted)
    return {"deleted": deleted}


@mcp.tool()
async def toggle_pinned(note_id: str) -> dict:
    """Pin or unpin a note. Pinned notes are listed first.

    Args:
        note_id: Id of the note to pin or unpin.
    """
    note = await store.toggle_pinned(note_id)
    if note is None:
        return _not_found(note_id)
    return {
        "note": note.to_json_dict(),
        "message": "Note pinned." if note.pinned else "Note unpinned.",
    }


@mcp.tool()
async def toggle_archived(note_id: str) -> dict:
    """Archive or unarchive a note. Archived notes are hidden from the active list.

    Args:
        note_id: Id of the note to archive or unarchive.
    """
    note = await store.toggle_archived(note_id)
    if note is None:
        return _not_found(note_id)
    return {
        "note": note.to_json_dict(),
        "message": "Note archived." if note.archived else "Note restored.",
    }


@mcp.tool()
async def duplicate_note(note_id: str) -> dict:
    """Create a copy of a note under a new id.

    Args:
        note_id: Id of the note to copy.
    """
    note = await store.duplicate_note(note_id)
    if note is None:
        return _not_found(note_id)
    return {
        "note": note.to_json_dict(),
        "message": f"Note '{note.title}' created.",
    }


@mcp.tool()
async def export_notes() -> dict:
    """Export every note as a pretty-printed JSON array.

    Returns:
        Dictionary with the JSON text under ``data``.
    """
    data = await store.export_all()
    logger.info("Tool export_notes invoked — %d chars", len(data))
    return {"data": data}


@mcp.tool()
async def import_notes(data: str) -> dict:
    """Replace ALL stored notes with the notes in a JSON array.

    This is destructive: existing notes not present in ``data`` are lost.

    Args:
        data: JSON array of notes, as produced by export_notes.

    Returns:
        Dictionary with the number of imported notes, or an error.
    """
    imported = await store.import_all(data)
    if imported is None:
        return {"error": "Import failed: expected a JSON array of notes."}
    logger.info("Tool import_notes invoked — imported=%d", imported)
    return {"imported": imported}


@mcp.tool()
async def list_facets() -> dict:
    """List the categories and tags currently in use, for filtering."""
    notes = await store.list()
    return {"categories": views.categories(notes), "tags": views.all_tags(notes)}


@mcp.tool()
async def health_check() -> dict:
    """Check whether the Note Manager server is healthy.

    Use this tool to verify the server is running and responsive.

    Returns:
        Dictionary with server status, note count, and timestamp.
    """
    logger.info("Tool health_check invoked")
    return {
        "status": "healthy",
        "server": "note-manager",
        "total_notes": await store.count(),
        "timestamp": datetime.now(UTC).isoformat(),
    }


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


@mcp.custom_route("/metrics", methods=["GET"])
async def metrics(request: Request) -> Response:
    """Prometheus scrape endpoint."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    logger.info("Starting Note Manager MCP server on port %d ...", settings.server_port)
    try:
        mcp.run(transport="sse")
    finally:
        anyio.run(store.close)
