"""Exception hierarchy for the linked bugs panel."""


class BugLinksError(Exception):
    """Base exception for linked bugs panel errors."""

    pass


class ConfigNotFoundError(BugLinksError):
    """Configuration file not found."""

    pass


class InvalidConfigError(BugLinksError):
    """Configuration is invalid."""

    pass


class JiraAuthError(BugLinksError):
    """JIRA authentication failed."""

    pass


class JiraConnectionError(BugLinksError):
    """Cannot connect to JIRA server."""

    pass


class JiraRateLimitError(BugLinksError):
    """JIRA rate limit exceeded."""

    pass


class JiraRequestError(BugLinksError):
    """JIRA answered a request with an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(BugLinksError):
    """JIRA returned a payload with an unexpected shape."""

    pass
