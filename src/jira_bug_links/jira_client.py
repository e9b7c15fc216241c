"""JIRA REST client used as the panel's transport."""

import logging
from typing import Any

import requests
from jira import JIRA, JIRAError

from jira_bug_links.config import Config
from jira_bug_links.exceptions import (
    JiraAuthError,
    JiraConnectionError,
    JiraRateLimitError,
    JiraRequestError,
    MalformedResponseError,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/rest/api/3"


def _translate_jira_error(e: JIRAError) -> Exception:
    if e.status_code == 401:
        return JiraAuthError("Authentication failed. Check your email and API token.")
    if e.status_code == 429:
        return JiraRateLimitError("Rate limited by JIRA. Please wait and try again.")
    return JiraRequestError(f"JIRA request failed: {e.text}", status_code=e.status_code)


class JiraClient:
    """Client for the handful of JIRA Cloud endpoints the panel consumes."""

    def __init__(self, config: Config) -> None:
        """Initialize JIRA client with configuration."""
        self.config = config
        self.server = config.jira_url.rstrip("/")
        self._client: JIRA | None = None

    def _get_client(self) -> JIRA:
        """Get or create JIRA client instance."""
        if self._client is None:
            try:
                # Failures are final for each request, so the session must not retry.
                self._client = JIRA(
                    server=self.server,
                    basic_auth=(self.config.jira_email, self.config.jira_api_token),
                    timeout=self.config.timeout,
                    max_retries=0,
                )
            except JIRAError as e:
                raise _translate_jira_error(e) from e
            except requests.exceptions.RequestException as e:
                raise JiraConnectionError(
                    f"Cannot connect to JIRA server at {self.server}. "
                    "Check the URL and your network connection."
                ) from e
        return self._client

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Send a request to a JIRA REST path and return the decoded JSON body.

        Args:
            method: HTTP method, e.g. "GET" or "DELETE"
            path: Absolute REST path, e.g. "/rest/api/3/priority"
            params: Optional query string parameters

        Returns:
            Decoded JSON payload, or None for an empty body

        Raises:
            JiraAuthError: If authentication fails
            JiraRateLimitError: If rate limited
            JiraConnectionError: If the server cannot be reached
            JiraRequestError: For any other error status
            MalformedResponseError: If the body is not valid JSON
        """
        client = self._get_client()
        url = f"{self.server}{path}"
        logger.debug("%s %s params=%s", method, path, params)

        try:
            response = client._session.request(
                method,
                url,
                params=params,
                headers={"Accept": "application/json"},
            )
        except JIRAError as e:
            raise _translate_jira_error(e) from e
        except requests.exceptions.RequestException as e:
            raise JiraConnectionError(f"Cannot reach JIRA at {url}: {e}") from e

        if response.status_code >= 400:
            raise JiraRequestError(
                f"{method} {path} failed {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"{method} {path} returned invalid JSON") from e

    def get_priorities(self) -> Any:
        return self.request("GET", f"{API_PREFIX}/priority")

    def get_issue(self, issue_id: str, expand: str | None = None) -> Any:
        params = {"expand": expand} if expand else None
        return self.request("GET", f"{API_PREFIX}/issue/{issue_id}", params=params)

    def get_changelog(self, issue_id: str) -> Any:
        return self.request("GET", f"{API_PREFIX}/issue/{issue_id}/changelog")

    def delete_issue_link(self, link_id: str) -> None:
        self.request("DELETE", f"{API_PREFIX}/issueLink/{link_id}")
