"""Table projection of the panel for rendering."""

from jira_bug_links.models import EnrichedIssue
from jira_bug_links.panel import BugLinksPanel
from jira_bug_links.sorting import DATE_FIELD, PRIORITY_FIELD, lookup_field, parse_timestamp

COLUMNS = [
    {"key": "summary", "content": "Summary", "isSortable": True},
    {"key": DATE_FIELD, "content": "Create Date", "isSortable": True},
    {"key": "assignee.displayName", "content": "Assignee", "isSortable": True},
    {"key": "status.name", "content": "Status", "isSortable": True},
    {"key": PRIORITY_FIELD, "content": "Priority", "isSortable": True},
    {"key": "action", "content": "Action"},
]

SORTABLE_FIELDS = frozenset(c["key"] for c in COLUMNS if c.get("isSortable"))


def format_created_date(value: str) -> str:
    parsed = parse_timestamp(value)
    return parsed.date().isoformat() if parsed else ""


def issue_to_row(issue: EnrichedIssue) -> dict:
    """Render one linked bug as a table row."""
    fields = issue.fields
    return {
        "key": issue.id,
        "issue_key": issue.key,
        "link_id": issue.link_id,
        "cells": [
            {"key": "summary", "content": fields.get("summary") or ""},
            {"key": DATE_FIELD, "content": format_created_date(issue.created_date)},
            {
                "key": "assignee.displayName",
                "content": lookup_field(fields, "assignee.displayName") or "Unassigned",
            },
            {"key": "status.name", "content": lookup_field(fields, "status.name") or ""},
            {
                "key": PRIORITY_FIELD,
                "content": lookup_field(fields, PRIORITY_FIELD) or "No Priority",
            },
            {"key": "action", "content": "Delete Link", "link_id": issue.link_id},
        ],
    }


def panel_to_dict(panel: BugLinksPanel) -> dict:
    """Convert the panel state to a JSON-serializable table."""
    if not panel.context.ready:
        return {"status": "loading"}

    return {
        "status": panel.status,
        "issue_id": panel.context.issue_id,
        "issue_key": panel.context.issue_key,
        "error": str(panel.last_error) if panel.last_error else None,
        "sort": {
            "field": panel.sort_state.field,
            "direction": panel.sort_state.direction,
        },
        "columns": COLUMNS,
        "rows": [issue_to_row(issue) for issue in panel.issues],
    }
