"""Unit tests for note_store.models — notes, drafts and patches."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from note_store.models import DEFAULT_COLOR, Note, NoteDraft, NoteList, NotePatch


def _note(**overrides) -> Note:
    fields = {
        "id": "n1",
        "title": "Groceries",
        "content": "Milk, eggs",
        "created_at": "2024-01-01T10:00:00+00:00",
        "updated_at": "2024-01-01T10:00:00+00:00",
    }
    fields.update(overrides)
    return Note(**fields)


class TestNote:
    def test_defaults(self) -> None:
        note = _note()
        assert note.pinned is False
        assert note.archived is False
        assert note.tags == []
        assert note.category is None
        assert note.color == DEFAULT_COLOR
        assert note.due_date is None

    def test_json_uses_camel_case_and_omits_unset(self) -> None:
        data = _note(due_date="2024-02-01T00:00:00+00:00").to_json_dict()
        assert data["createdAt"] == "2024-01-01T10:00:00+00:00"
        assert data["updatedAt"] == "2024-01-01T10:00:00+00:00"
        assert data["dueDate"] == "2024-02-01T00:00:00+00:00"
        assert "category" not in data
        assert "created_at" not in data

    def test_loads_from_camel_case(self) -> None:
        raw = json.dumps(
            [
                {
                    "id": "a",
                    "title": "T",
                    "content": "C",
                    "createdAt": "2024-01-01T00:00:00+00:00",
                    "updatedAt": "2024-01-02T00:00:00+00:00",
                    "category": "Work",
                }
            ]
        )
        notes = NoteList.validate_json(raw)
        assert notes[0].updated_at == "2024-01-02T00:00:00+00:00"
        assert notes[0].category == "Work"

    def test_empty_title_allowed_on_stored_note(self) -> None:
        """Stored notes are not validated for content; imports may carry blanks."""
        assert _note(title="").title == ""


class TestNoteDraft:
    def test_trims_title_and_content(self) -> None:
        draft = NoteDraft(title="  Hello ", content=" World  ")
        assert draft.title == "Hello"
        assert draft.content == "World"

    def test_blank_title_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NoteDraft(title="   ", content="body")

    def test_blank_content_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NoteDraft(title="ok", content="")

    def test_blank_category_becomes_none(self) -> None:
        assert NoteDraft(title="t", content="c", category="  ").category is None

    def test_invalid_due_date_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NoteDraft(title="t", content="c", due_date="next tuesday")

    def test_accepts_camel_case_due_date(self) -> None:
        draft = NoteDraft(title="t", content="c", dueDate="2024-05-01T00:00:00Z")
        assert draft.due_date == "2024-05-01T00:00:00Z"


class TestNotePatch:
    def test_empty_patch_has_no_changes(self) -> None:
        assert NotePatch().changes() == {}

    def test_only_explicit_fields_are_changes(self) -> None:
        patch = NotePatch(tags=["urgent"])
        assert patch.changes() == {"tags": ["urgent"]}

    def test_explicit_empty_tags_is_a_change(self) -> None:
        assert NotePatch(tags=[]).changes() == {"tags": []}

    def test_category_can_be_cleared(self) -> None:
        assert NotePatch(category=None).changes() == {"category": None}

    def test_title_cannot_be_cleared(self) -> None:
        with pytest.raises(ValidationError):
            NotePatch(title=None)

    def test_tags_cannot_be_none(self) -> None:
        with pytest.raises(ValidationError):
            NotePatch(tags=None)

    def test_blank_content_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NotePatch(content="  ")

    @pytest.mark.parametrize("field", ["id", "createdAt", "updatedAt", "created_at"])
    def test_identity_and_timestamps_not_patchable(self, field: str) -> None:
        with pytest.raises(ValidationError):
            NotePatch(**{field: "x"})
