"""Panel state machine tying context, aggregation, sorting and deletion together."""

import logging
from dataclasses import dataclass

from jira_bug_links import links
from jira_bug_links.exceptions import BugLinksError
from jira_bug_links.jira_client import JiraClient
from jira_bug_links.models import EnrichedIssue, HostContext, SortState
from jira_bug_links.priorities import PriorityRanks
from jira_bug_links.sorting import apply_sort, sort_issues

logger = logging.getLogger(__name__)

UNREADY = "unready"
AGGREGATING = "aggregating"
READY = "ready"

IDLE = "idle"
DELETING = "deleting"


@dataclass(frozen=True)
class ContextReady:
    context: HostContext


@dataclass(frozen=True)
class AggregationComplete:
    issue_id: str
    cycle: int
    issues: list[EnrichedIssue] | None  # None when the links call failed
    error: BugLinksError | None = None


@dataclass(frozen=True)
class DeletionComplete:
    link_id: str
    succeeded: bool
    error: BugLinksError | None = None


class BugLinksPanel:
    """Holds the linked bugs of one framed issue.

    ``status`` moves unready -> aggregating -> ready, ``mutation`` moves
    idle -> deleting -> idle. Completed work is applied through ``dispatch``;
    the collection is only ever replaced wholesale or loses one record.
    Each aggregation run gets a cycle number, and only the latest cycle for
    the current issue may publish.
    """

    def __init__(self, client: JiraClient, priorities: PriorityRanks | None = None) -> None:
        self.client = client
        self.priorities = priorities or PriorityRanks()
        self.context = HostContext()
        self.status = UNREADY
        self.mutation = IDLE
        self.issues: list[EnrichedIssue] = []
        self.sort_state = SortState()
        self.last_error: BugLinksError | None = None
        self.cycle = 0

    def dispatch(self, event) -> bool:
        """Apply an event to the panel state. Returns False if it was ignored."""
        if isinstance(event, ContextReady):
            return self._on_context_ready(event)
        if isinstance(event, AggregationComplete):
            return self._on_aggregation_complete(event)
        if isinstance(event, DeletionComplete):
            return self._on_deletion_complete(event)
        raise TypeError(f"Unknown panel event: {event!r}")

    def _start_cycle(self) -> int:
        self.status = AGGREGATING
        self.cycle += 1
        return self.cycle

    def _on_context_ready(self, event: ContextReady) -> bool:
        context = event.context
        if not context.ready:
            logger.debug("Waiting for context to load...")
            return False
        if self.status != UNREADY and context.issue_id == self.context.issue_id:
            return False

        if context.issue_id != self.context.issue_id:
            self.sort_state = SortState()
        self.context = context
        self._start_cycle()
        logger.info("Panel framed on issue %s", context.issue_id)
        return True

    def _on_aggregation_complete(self, event: AggregationComplete) -> bool:
        if event.issue_id != self.context.issue_id or event.cycle != self.cycle:
            logger.info(
                "Discarding stale aggregation for issue %s cycle %d (panel is on %s cycle %d)",
                event.issue_id,
                event.cycle,
                self.context.issue_id,
                self.cycle,
            )
            return False

        self.status = READY
        self.last_error = event.error
        if event.issues is None:
            return True

        issues = list(event.issues)
        if self.sort_state.field:
            issues = sort_issues(
                issues, self.sort_state.field, self.sort_state.direction, self.priorities
            )
        self.issues = issues
        return True

    def _on_deletion_complete(self, event: DeletionComplete) -> bool:
        self.mutation = IDLE
        self.last_error = event.error
        if not event.succeeded:
            return False
        self.issues = [issue for issue in self.issues if issue.link_id != event.link_id]
        return True

    async def set_context(self, context: HostContext) -> None:
        """React to a host context update, aggregating if it frames a new issue."""
        if self.dispatch(ContextReady(context)):
            await self._aggregate(context.issue_id, self.cycle)

    async def refresh(self) -> None:
        """Re-run aggregation for the current issue."""
        if not self.context.ready:
            return
        cycle = self._start_cycle()
        await self._aggregate(self.context.issue_id, cycle)

    async def _aggregate(self, issue_id: str, cycle: int) -> None:
        try:
            issues = await links.aggregate(self.client, issue_id, self.priorities)
        except BugLinksError as e:
            logger.exception("Error fetching linked issues for %s", issue_id)
            self.dispatch(AggregationComplete(issue_id=issue_id, cycle=cycle, issues=None, error=e))
            return
        self.dispatch(AggregationComplete(issue_id=issue_id, cycle=cycle, issues=issues))

    def sort(self, field: str) -> list[EnrichedIssue]:
        self.sort_state, self.issues = apply_sort(
            self.issues, self.sort_state, field, self.priorities
        )
        return self.issues

    async def delete_link(self, link_id: str) -> bool:
        """Delete a link and drop its record once JIRA confirms. Returns success."""
        if self.mutation == DELETING:
            logger.warning("Ignoring delete of link %s: another delete is in progress", link_id)
            return False

        self.mutation = DELETING
        try:
            await links.delete_link(self.client, link_id)
        except BugLinksError as e:
            logger.exception("Error deleting link %s", link_id)
            self.dispatch(DeletionComplete(link_id=link_id, succeeded=False, error=e))
            return False

        self.dispatch(DeletionComplete(link_id=link_id, succeeded=True))
        return True
