"""Configuration management for the linked bugs panel.

The panel reads one TOML file, ``~/.jira-bug-links/config.toml``::

    [jira]
    url = "https://example.atlassian.net"
    email = "me@example.com"
    api_token = "..."
    timeout = 15
"""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

import tomli_w

DEFAULT_TIMEOUT = 15.0


@dataclass
class Config:
    """Credentials and HTTP settings for reaching JIRA."""

    jira_url: str
    jira_email: str
    jira_api_token: str
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_toml(cls, data: dict) -> "Config":
        jira = data.get("jira", {})
        return cls(
            jira_url=jira.get("url", ""),
            jira_email=jira.get("email", ""),
            jira_api_token=jira.get("api_token", ""),
            timeout=jira.get("timeout", DEFAULT_TIMEOUT),
        )

    def to_toml(self) -> dict:
        jira: dict = {
            "url": self.jira_url,
            "email": self.jira_email,
            "api_token": self.jira_api_token,
        }
        if self.timeout != DEFAULT_TIMEOUT:
            jira["timeout"] = self.timeout
        return {"jira": jira}

    def validate(self) -> list[str]:
        """Return one message per problem; an empty list means usable."""
        errors: list[str] = []

        url = urlparse(self.jira_url or "")
        if not self.jira_url:
            errors.append("JIRA URL is required")
        elif url.scheme not in ("http", "https") or not url.netloc:
            errors.append("JIRA URL must be an http(s) address such as https://example.atlassian.net")

        if "@" not in (self.jira_email or ""):
            errors.append("JIRA email must be the address of the API token's owner")

        if not self.jira_api_token:
            errors.append("JIRA API token is required")

        # bool is an int subclass and must not pass as a number of seconds
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            errors.append("JIRA timeout must be a number of seconds")
        elif self.timeout <= 0:
            errors.append("JIRA timeout must be greater than zero")

        return errors


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    return Path.home() / ".jira-bug-links"


def get_config_path() -> Path:
    """Get the configuration file path."""
    return get_config_dir() / "config.toml"


def config_exists() -> bool:
    return get_config_path().exists()


def load_config() -> Config:
    """Read and validate the configuration file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If the file is not valid TOML or its values are invalid
    """
    path = get_config_path()
    if not path.exists():
        raise FileNotFoundError(
            f"Configuration not found at {path}. "
            "Create ~/.jira-bug-links/config.toml to set up."
        )

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid configuration: {path} is not valid TOML ({e})") from e

    config = Config.from_toml(data)
    errors = config.validate()
    if errors:
        raise ValueError(f"Invalid configuration: {'; '.join(errors)}")
    return config


def save_config(config: Config) -> None:
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(tomli_w.dumps(config.to_toml()).encode("utf-8"))
