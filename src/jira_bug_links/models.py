"""Data models for the linked bugs panel."""

from dataclasses import dataclass, field
from typing import Any

ASC = "asc"
DESC = "desc"


@dataclass(frozen=True)
class HostContext:
    """The work item the panel is framed on. ``issue_id`` is None until the host supplies it."""

    issue_id: str | None = None
    issue_key: str | None = None

    @property
    def ready(self) -> bool:
        return bool(self.issue_id)

    @classmethod
    def from_product_context(cls, context: dict | None) -> "HostContext":
        """Build from a product context shaped like ``{"extension": {"issue": {...}}}``.

        Any level that is missing or not an object gives a context that is not ready.
        """
        issue: object = context
        for level in ("extension", "issue"):
            issue = issue.get(level) if isinstance(issue, dict) else None
        if not isinstance(issue, dict):
            return cls()

        issue_id = issue.get("id")
        if isinstance(issue_id, bool) or not isinstance(issue_id, (str, int)):
            issue_id = None
        issue_key = issue.get("key")
        return cls(
            issue_id=str(issue_id) if issue_id else None,
            issue_key=issue_key if isinstance(issue_key, str) else None,
        )


@dataclass(frozen=True)
class PriorityLevel:
    """A priority level and its position in the host-defined order."""

    id: str
    name: str
    rank: int


@dataclass
class EnrichedIssue:
    """A linked bug merged from its link stub, detail fields and changelog."""

    id: str
    key: str
    link_id: str
    fields: dict[str, Any] = field(default_factory=dict)
    created_date: str = ""


@dataclass(frozen=True)
class SortState:
    """Last sorted field and its direction."""

    field: str | None = None
    direction: str = ASC
