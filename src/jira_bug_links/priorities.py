"""Priority rank cache used by priority sorts."""

import asyncio
import logging

from jira_bug_links.exceptions import BugLinksError
from jira_bug_links.jira_client import JiraClient
from jira_bug_links.models import PriorityLevel

logger = logging.getLogger(__name__)

UNRANKED = -1


class PriorityRanks:
    """Ordered priority levels as defined by the JIRA instance.

    Rank 0 is the highest precedence. Lookups for unknown ids return
    ``UNRANKED``, which sorts ahead of every known level in ascending order.
    """

    def __init__(self, levels: list[PriorityLevel] | None = None) -> None:
        self._levels: list[PriorityLevel] = []
        self._by_id: dict[str, PriorityLevel] = {}
        self._set_levels(levels or [])

    def _set_levels(self, levels: list[PriorityLevel]) -> None:
        self._levels = list(levels)
        self._by_id = {level.id: level for level in self._levels}

    @property
    def levels(self) -> list[PriorityLevel]:
        return list(self._levels)

    @classmethod
    def from_payload(cls, payload: list) -> "PriorityRanks":
        """Build ranks from a ``/priority`` response, ranking by list position."""
        levels = [
            PriorityLevel(id=str(item.get("id", "")), name=item.get("name", ""), rank=index)
            for index, item in enumerate(payload)
            if isinstance(item, dict)
        ]
        return cls(levels)

    async def load(self, client: JiraClient) -> list[PriorityLevel]:
        """Fetch the priority order, keeping the current levels on any failure."""
        try:
            payload = await asyncio.to_thread(client.get_priorities)
        except BugLinksError:
            logger.exception("Error fetching priority ordering")
            return self.levels

        if not isinstance(payload, list):
            logger.error("Wrong priority list structure: %r", payload)
            return self.levels

        self._set_levels(PriorityRanks.from_payload(payload).levels)
        logger.debug("Loaded %d priority levels", len(self._levels))
        return self.levels

    def rank(self, priority_id: str | None) -> int:
        if priority_id is None:
            return UNRANKED
        level = self._by_id.get(str(priority_id))
        return level.rank if level else UNRANKED
