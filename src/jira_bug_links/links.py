"""Linked bug discovery, enrichment and link removal."""

import asyncio
import logging

from jira_bug_links.exceptions import BugLinksError, MalformedResponseError
from jira_bug_links.jira_client import JiraClient
from jira_bug_links.models import EnrichedIssue
from jira_bug_links.priorities import PriorityRanks

logger = logging.getLogger(__name__)

BUG_ISSUE_TYPE = "Bug"


def is_bug_link(link: dict) -> bool:
    """True when the link points outward at an issue of type exactly "Bug"."""
    outward = link.get("outwardIssue")
    if not outward:
        return False
    issue_type = (outward.get("fields") or {}).get("issuetype") or {}
    return issue_type.get("name") == BUG_ISSUE_TYPE


async def fetch_issue_details(client: JiraClient, issue_id: str) -> dict:
    """Return the issue's current fields, or {} if they cannot be fetched."""
    try:
        data = await asyncio.to_thread(client.get_issue, issue_id)
    except BugLinksError:
        logger.exception("Error fetching details for issue %s", issue_id)
        return {}

    fields = data.get("fields") if isinstance(data, dict) else None
    if not isinstance(fields, dict):
        logger.error("Issue %s returned no fields: %r", issue_id, data)
        return {}
    return fields


async def fetch_created_date(client: JiraClient, issue_id: str) -> str:
    """Return the timestamp of the issue's first changelog entry, or ""."""
    try:
        data = await asyncio.to_thread(client.get_changelog, issue_id)
    except BugLinksError:
        logger.exception("Error fetching changelog for issue %s", issue_id)
        return ""

    values = data.get("values") if isinstance(data, dict) else None
    if not isinstance(values, list):
        logger.error("Changelog for issue %s has no values: %r", issue_id, data)
        return ""
    if not values or not isinstance(values[0], dict):
        return ""
    return values[0].get("created") or ""


async def _enrich(client: JiraClient, link: dict) -> EnrichedIssue:
    stub = link["outwardIssue"]
    issue_id = str(stub.get("id", ""))

    created_date, details = await asyncio.gather(
        fetch_created_date(client, issue_id),
        fetch_issue_details(client, issue_id),
    )

    return EnrichedIssue(
        id=issue_id,
        key=stub.get("key", ""),
        link_id=str(link.get("id", "")),
        fields={**(stub.get("fields") or {}), **details},
        created_date=created_date,
    )


async def aggregate(
    client: JiraClient,
    issue_id: str,
    priorities: PriorityRanks,
) -> list[EnrichedIssue]:
    """Collect the outward bug links of an issue, enriched with details and dates.

    Priority ranks are refreshed first so a later priority sort can use them.
    Per-link failures degrade to empty fields or an empty date for that link
    only; the result is returned once every link has been enriched.

    Raises:
        BugLinksError: If the hosting issue's links cannot be retrieved
    """
    await priorities.load(client)

    data = await asyncio.to_thread(client.get_issue, issue_id, "issuelinks")
    fields = data.get("fields") if isinstance(data, dict) else None
    links = (fields or {}).get("issuelinks")
    if not isinstance(links, list):
        raise MalformedResponseError(f"Issue {issue_id} returned no issue links")

    bug_links = [link for link in links if isinstance(link, dict) and is_bug_link(link)]
    logger.info(
        "Issue %s has %d links, %d outward bugs", issue_id, len(links), len(bug_links)
    )

    enriched = await asyncio.gather(*(_enrich(client, link) for link in bug_links))
    return list(enriched)


async def delete_link(client: JiraClient, link_id: str) -> None:
    """Delete an issue link.

    Raises:
        BugLinksError: If JIRA rejects or cannot process the deletion
    """
    await asyncio.to_thread(client.delete_issue_link, link_id)
    logger.info("Deleted issue link %s", link_id)
