"""Pydantic models for notes and the inputs that create or change them.

Notes are persisted and exported with camelCase keys (``createdAt``,
``dueDate``, ...) while Python code uses snake_case attributes.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

DEFAULT_COLOR = "#ffffff"


def utc_now() -> str:
    """Current time as an ISO-8601 string."""
    return datetime.now(UTC).isoformat()


def new_note_id() -> str:
    return str(uuid4())


def _strip_required(value: str | None) -> str | None:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


def _normalise_category(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _check_iso_timestamp(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"not an ISO-8601 timestamp: {value!r}") from exc
    return value


class Note(BaseModel):
    """A single stored note."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    content: str
    created_at: str = Field(description="ISO-8601 creation timestamp")
    updated_at: str = Field(description="ISO-8601 last update timestamp")
    pinned: bool = False
    archived: bool = False
    tags: list[str] = Field(default_factory=list, description="Tags in entry order")
    category: str | None = None
    color: str = DEFAULT_COLOR
    due_date: str | None = Field(default=None, description="ISO-8601 due date")

    def to_json_dict(self) -> dict[str, Any]:
        """Wire representation: camelCase keys, unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


NoteList = TypeAdapter(list[Note])


class NoteDraft(BaseModel):
    """Fields supplied by the caller when creating a note.

    Title and content are trimmed and must not be blank. A blank category
    is treated as no category.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(..., max_length=200)
    content: str
    tags: list[str] = Field(default_factory=list)
    category: str | None = None
    color: str | None = None
    due_date: str | None = None
    pinned: bool = False
    archived: bool = False

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        return _strip_required(value)

    @field_validator("category")
    @classmethod
    def _category(cls, value: str | None) -> str | None:
        return _normalise_category(value)

    @field_validator("due_date")
    @classmethod
    def _due_date(cls, value: str | None) -> str | None:
        return _check_iso_timestamp(value)


_NOT_CLEARABLE = ("title", "content", "tags", "color", "pinned", "archived")


class NotePatch(BaseModel):
    """A partial update to merge over an existing note.

    Only fields explicitly passed are applied; everything else keeps its
    stored value. ``category`` and ``due_date`` may be set to ``None`` to
    clear them, and ``tags=[]`` clears the tags. Identity and timestamps
    are not patchable.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    title: str | None = Field(default=None, max_length=200)
    content: str | None = None
    tags: list[str] | None = None
    category: str | None = None
    color: str | None = None
    due_date: str | None = None
    pinned: bool | None = None
    archived: bool | None = None

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str | None) -> str | None:
        return _strip_required(value)

    @field_validator("category")
    @classmethod
    def _category(cls, value: str | None) -> str | None:
        return _normalise_category(value)

    @field_validator("due_date")
    @classmethod
    def _due_date(cls, value: str | None) -> str | None:
        return _check_iso_timestamp(value)

    @model_validator(mode="after")
    def _reject_cleared(self) -> "NotePatch":
        for name in _NOT_CLEARABLE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        return self

    def changes(self) -> dict[str, Any]:
        """Explicitly set fields, keyed by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}
