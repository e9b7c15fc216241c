"""Tests for sorting linked bugs."""

from datetime import datetime, timezone

from jira_bug_links.models import ASC, DESC, EnrichedIssue, SortState
from jira_bug_links.priorities import PriorityRanks
from jira_bug_links.sorting import (
    apply_sort,
    lookup_field,
    next_sort_state,
    parse_timestamp,
    sort_issues,
)

RANKS = PriorityRanks.from_payload([
    {"id": "1", "name": "Highest"},
    {"id": "2", "name": "High"},
    {"id": "3", "name": "Medium"},
    {"id": "4", "name": "Low"},
])


def _issue(issue_id, created_date="", **fields):
    return EnrichedIssue(
        id=issue_id, key=f"BUG-{issue_id}", link_id=f"L{issue_id}",
        fields=fields, created_date=created_date,
    )


def _ids(records):
    return [r.id for r in records]


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_parses_zulu(self):
        assert parse_timestamp("2023-01-05T00:00:00Z") == datetime(2023, 1, 5, tzinfo=timezone.utc)

    def test_parses_jira_compact_offset(self):
        parsed = parse_timestamp("2023-01-05T10:30:00.000+0100")
        assert parsed == datetime(2023, 1, 5, 9, 30, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_timestamp("2023-01-05").tzinfo == timezone.utc

    def test_returns_none_for_empty(self):
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None

    def test_returns_none_for_garbage(self):
        assert parse_timestamp("yesterday") is None


class TestLookupField:
    """Tests for lookup_field."""

    def test_nested(self):
        assert lookup_field({"status": {"name": "Done"}}, "status.name") == "Done"

    def test_missing_intermediate(self):
        assert lookup_field({"assignee": None}, "assignee.displayName") is None

    def test_top_level(self):
        assert lookup_field({"summary": "Crash"}, "summary") == "Crash"


class TestSortByPriority:
    """Tests for priority-ranked sorting."""

    def test_highest_first_ascending(self):
        records = [_issue("a", priority={"id": "3"}), _issue("b", priority={"id": "1"})]
        assert _ids(sort_issues(records, "priority.name", ASC, RANKS)) == ["b", "a"]

    def test_unresolved_sorts_first_ascending(self):
        records = [
            _issue("low", priority={"id": "4"}),
            _issue("none"),
            _issue("high", priority={"id": "1"}),
            _issue("unknown", priority={"id": "99"}),
        ]
        result = sort_issues(records, "priority.name", ASC, RANKS)
        assert _ids(result) == ["none", "unknown", "high", "low"]

    def test_unresolved_sorts_last_descending(self):
        records = [_issue("none"), _issue("high", priority={"id": "1"})]
        assert _ids(sort_issues(records, "priority.name", DESC, RANKS)) == ["high", "none"]

    def test_empty_cache_keeps_order(self):
        records = [_issue("a", priority={"id": "3"}), _issue("b", priority={"id": "1"})]
        assert _ids(sort_issues(records, "priority.name", ASC, PriorityRanks())) == ["a", "b"]


class TestSortByDate:
    """Tests for created date sorting."""

    def test_orders_chronologically(self):
        records = [
            _issue("feb", created_date="2023-02-01T00:00:00Z"),
            _issue("jan", created_date="2023-01-05T00:00:00Z"),
        ]
        assert _ids(sort_issues(records, "createdDate", ASC, RANKS)) == ["jan", "feb"]

    def test_mixed_offsets(self):
        records = [
            _issue("later", created_date="2023-01-05T01:30:00.000+0000"),
            _issue("earlier", created_date="2023-01-05T02:00:00.000+0100"),
        ]
        assert _ids(sort_issues(records, "createdDate", ASC, RANKS)) == ["earlier", "later"]

    def test_unparseable_is_earliest(self):
        records = [
            _issue("jan", created_date="2023-01-05T00:00:00Z"),
            _issue("empty"),
            _issue("bad", created_date="n/a"),
        ]
        assert _ids(sort_issues(records, "createdDate", ASC, RANKS)) == ["empty", "bad", "jan"]


class TestSortByValue:
    """Tests for plain field sorting."""

    def test_nested_field(self):
        records = [
            _issue("b", status={"name": "To Do"}),
            _issue("a", status={"name": "Done"}),
        ]
        assert _ids(sort_issues(records, "status.name", ASC, RANKS)) == ["a", "b"]

    def test_missing_values_are_minimal(self):
        records = [
            _issue("named", assignee={"displayName": "Ada"}),
            _issue("unassigned", assignee=None),
            _issue("blank", assignee={"displayName": ""}),
        ]
        result = sort_issues(records, "assignee.displayName", ASC, RANKS)
        assert _ids(result) == ["unassigned", "blank", "named"]

    def test_numbers_compare_numerically(self):
        records = [_issue("ten", points=10), _issue("two", points=2)]
        assert _ids(sort_issues(records, "points", ASC, RANKS)) == ["two", "ten"]

    def test_does_not_mutate_input(self):
        records = [_issue("b", summary="b"), _issue("a", summary="a")]
        sort_issues(records, "summary", ASC, RANKS)
        assert _ids(records) == ["b", "a"]


class TestSortLaws:
    """Tests for direction toggling and stability."""

    def test_descending_mirrors_ascending(self):
        records = [_issue(s, summary=s) for s in ["delta", "alpha", "charlie", "bravo"]]
        state, ascending = apply_sort(records, SortState(), "summary", RANKS)
        assert state == SortState("summary", ASC)

        state, descending = apply_sort(ascending, state, "summary", RANKS)
        assert state == SortState("summary", DESC)
        assert descending == list(reversed(ascending))

    def test_stable_for_equal_keys(self):
        records = [
            _issue("1", status={"name": "Open"}),
            _issue("2", status={"name": "Done"}),
            _issue("3", status={"name": "Open"}),
            _issue("4", status={"name": "Done"}),
        ]
        assert _ids(sort_issues(records, "status.name", ASC, RANKS)) == ["2", "4", "1", "3"]
        assert _ids(sort_issues(records, "status.name", DESC, RANKS)) == ["1", "3", "2", "4"]

    def test_repeated_sorts_are_reproducible(self):
        records = [_issue(str(i), priority={"id": "2"}) for i in range(5)]
        first = sort_issues(records, "priority.name", ASC, RANKS)
        second = sort_issues(first, "priority.name", ASC, RANKS)
        assert _ids(first) == _ids(second) == ["0", "1", "2", "3", "4"]


class TestNextSortState:
    """Tests for next_sort_state."""

    def test_new_field_is_ascending(self):
        assert next_sort_state(SortState(), "summary") == SortState("summary", ASC)

    def test_same_field_toggles(self):
        state = next_sort_state(SortState("summary", ASC), "summary")
        assert state.direction == DESC
        assert next_sort_state(state, "summary").direction == ASC

    def test_switching_field_resets(self):
        assert next_sort_state(SortState("summary", DESC), "status.name") == SortState(
            "status.name", ASC
        )
