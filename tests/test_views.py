"""Tests for note_store.views — sorting, filtering and display helpers."""

from datetime import UTC, datetime

from note_store.models import Note
from note_store.views import (
    DueStatus,
    all_tags,
    categories,
    due_status,
    filter_notes,
    parse_tags,
    relative_date,
    share_text,
    sort_notes,
)

NOW = datetime(2024, 3, 10, 15, 30, tzinfo=UTC)


def _note(note_id: str, updated: str = "2024-03-01T00:00:00+00:00", **kwargs) -> Note:
    fields = {
        "id": note_id,
        "title": f"Note {note_id}",
        "content": "body",
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": updated,
    }
    fields.update(kwargs)
    return Note(**fields)


# ---------------------------------------------------------------------------
# sort_notes / filter_notes
# ---------------------------------------------------------------------------


class TestSortNotes:
    def test_pinned_first_then_most_recent(self):
        notes = [
            _note("old", "2024-03-01T00:00:00+00:00"),
            _note("new", "2024-03-05T00:00:00+00:00"),
            _note("pinned-old", "2024-02-01T00:00:00+00:00", pinned=True),
            _note("pinned-new", "2024-03-02T00:00:00+00:00", pinned=True),
        ]
        assert [n.id for n in sort_notes(notes)] == [
            "pinned-new",
            "pinned-old",
            "new",
            "old",
        ]

    def test_unparseable_timestamp_sorts_last(self):
        notes = [_note("bad", "yesterday"), _note("ok")]
        assert [n.id for n in sort_notes(notes)] == ["ok", "bad"]


class TestFilterNotes:
    def setup_method(self):
        self.notes = [
            _note("1", title="Meeting notes", content="Discuss roadmap", category="Work", tags=["q1"]),
            _note("2", title="Shopping list", content="Buy milk", category="home", tags=["errands"]),
            _note("3", title="Old meeting", content="archived", category="Work", archived=True),
            _note("4", title="Pinned", content="milk again", pinned=True, tags=["errands"]),
        ]

    def _ids(self, notes):
        return [n.id for n in notes]

    def test_active_partition_by_default(self):
        assert self._ids(filter_notes(self.notes)) == ["4", "1", "2"]

    def test_archived_partition(self):
        assert self._ids(filter_notes(self.notes, archived=True)) == ["3"]

    def test_text_matches_title_or_content_case_insensitive(self):
        assert self._ids(filter_notes(self.notes, query="  MILK ")) == ["4", "2"]
        assert self._ids(filter_notes(self.notes, query="meeting")) == ["1"]

    def test_category_case_insensitive(self):
        assert self._ids(filter_notes(self.notes, category="HOME")) == ["2"]

    def test_tag_exact(self):
        assert self._ids(filter_notes(self.notes, tag="errands")) == ["4", "2"]
        assert filter_notes(self.notes, tag="Errands") == []

    def test_combined_filters(self):
        result = filter_notes(self.notes, query="meeting", category="work", archived=True)
        assert self._ids(result) == ["3"]


class TestFacets:
    def test_categories_distinct_sorted(self):
        notes = [
            _note("1", category="work"),
            _note("2", category="Home"),
            _note("3", category="work"),
            _note("4"),
        ]
        assert categories(notes) == ["Home", "work"]

    def test_all_tags_distinct_sorted(self):
        notes = [_note("1", tags=["b", "a"]), _note("2", tags=["a", "C"])]
        assert all_tags(notes) == ["a", "b", "C"]


# ---------------------------------------------------------------------------
# due_status / relative_date
# ---------------------------------------------------------------------------


class TestDueStatus:
    def test_no_due_date(self):
        assert due_status(_note("1"), NOW) is None

    def test_unparseable_due_date(self):
        assert due_status(_note("1", due_date="soon"), NOW) is None

    def test_overdue(self):
        info = due_status(_note("1", due_date="2024-03-09T00:00:00+00:00"), NOW)
        assert info.status is DueStatus.OVERDUE
        assert info.label == "Overdue"

    def test_today_at_midnight(self):
        info = due_status(_note("1", due_date="2024-03-10T00:00:00+00:00"), NOW)
        assert info.status is DueStatus.TODAY
        assert info.days == 0

    def test_soon(self):
        info = due_status(_note("1", due_date="2024-03-12T00:00:00+00:00"), NOW)
        assert info.status is DueStatus.SOON
        assert info.days == 2
        assert info.label == "Due in 2 days"

    def test_one_day_label(self):
        info = due_status(_note("1", due_date="2024-03-11T00:00:00+00:00"), NOW)
        assert info.label == "Due in 1 day"

    def test_upcoming(self):
        info = due_status(_note("1", due_date="2024-03-20T00:00:00+00:00"), NOW)
        assert info.status is DueStatus.UPCOMING
        assert info.days == 10

    def test_naive_values_treated_as_utc(self):
        info = due_status(_note("1", due_date="2024-03-12T00:00:00"), NOW.replace(tzinfo=None))
        assert info.days == 2


class TestRelativeDate:
    def test_today(self):
        assert relative_date("2024-03-10T09:00:00+00:00", NOW) == "Today"

    def test_yesterday(self):
        assert relative_date("2024-03-09T09:00:00+00:00", NOW) == "Yesterday"

    def test_days_ago(self):
        assert relative_date("2024-03-06T09:00:00+00:00", NOW) == "4 days ago"

    def test_older_shows_date(self):
        assert relative_date("2024-02-01T09:00:00+00:00", NOW) == "01/02/2024"

    def test_unparseable_returned_unchanged(self):
        assert relative_date("42", NOW) == "42"


# ---------------------------------------------------------------------------
# parse_tags / share_text
# ---------------------------------------------------------------------------


def test_parse_tags():
    assert parse_tags(" study, work ,, ,home") == ["study", "work", "home"]
    assert parse_tags("") == []


def test_share_text():
    note = _note("1", title="Groceries", content="Milk, eggs", tags=["home", "food"])
    assert share_text(note) == "Title: Groceries\n\nMilk, eggs\n\nTags: home, food"
