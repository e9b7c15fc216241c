"""Sorting of enriched linked bugs by table column."""

import re
from datetime import datetime, timezone
from typing import Any

from jira_bug_links.models import ASC, DESC, EnrichedIssue, SortState
from jira_bug_links.priorities import PriorityRanks

PRIORITY_FIELD = "priority.name"
DATE_FIELD = "createdDate"

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)
_COMPACT_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a JIRA timestamp such as ``2023-01-05T10:00:00.000+0000``.

    Naive values are taken as UTC. Returns None for empty or unparseable input.
    """
    if not value:
        return None
    token = str(value).strip()
    if token.endswith("Z"):
        token = token[:-1] + "+00:00"
    token = _COMPACT_OFFSET_RE.sub(r"\1:\2", token)
    try:
        parsed = datetime.fromisoformat(token)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def lookup_field(fields: dict, path: str) -> Any:
    """Resolve a dotted path like ``status.name`` inside an issue's fields."""
    value: Any = fields
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _priority_key(issue: EnrichedIssue, priorities: PriorityRanks) -> int:
    priority = issue.fields.get("priority")
    priority_id = priority.get("id") if isinstance(priority, dict) else None
    return priorities.rank(priority_id)


def _date_key(issue: EnrichedIssue) -> datetime:
    return parse_timestamp(issue.created_date) or _EARLIEST


def _value_key(issue: EnrichedIssue, field: str) -> tuple:
    value = lookup_field(issue.fields, field)
    # Missing values sort lowest, numbers before text.
    if value is None or value == "":
        return (0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    return (2, str(value))


def sort_issues(
    records: list[EnrichedIssue],
    field: str,
    direction: str,
    priorities: PriorityRanks,
) -> list[EnrichedIssue]:
    """Return a new list of records ordered by ``field``.

    The sort is stable in both directions: records with equal keys keep
    their relative order.
    """
    if field == PRIORITY_FIELD:
        key = lambda issue: _priority_key(issue, priorities)  # noqa: E731
    elif field == DATE_FIELD:
        key = _date_key
    else:
        key = lambda issue: _value_key(issue, field)  # noqa: E731

    return sorted(records, key=key, reverse=direction == DESC)


def next_sort_state(previous: SortState, field: str) -> SortState:
    """Toggle direction when the same field is re-selected, else sort ascending."""
    if previous.field == field and previous.direction == ASC:
        return SortState(field=field, direction=DESC)
    return SortState(field=field, direction=ASC)


def apply_sort(
    records: list[EnrichedIssue],
    previous: SortState,
    field: str,
    priorities: PriorityRanks,
) -> tuple[SortState, list[EnrichedIssue]]:
    """Compute the next sort state for ``field`` and the records ordered by it."""
    state = next_sort_state(previous, field)
    return state, sort_issues(records, state.field, state.direction, priorities)
