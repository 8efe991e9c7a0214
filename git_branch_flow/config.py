"""Configuration handling for git-branch-flow"""

import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

from git_branch_flow.constants import (
    DEFAULT_GH_TIMEOUT_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY_MS,
    DEFAULT_RETRY_DELAY_MS,
    ENV_GH_TIMEOUT_MS,
    ENV_JIRA_API_TOKEN,
    ENV_JIRA_EMAIL,
    ENV_MAX_RETRIES,
    ENV_MAX_RETRY_DELAY_MS,
    ENV_RETRY_DELAY_MS,
)
from git_branch_flow.logging_config import get_logger

logger = get_logger(__name__)

# field name -> (environment variable, default, minimum accepted value)
_INT_ENV_FIELDS = {
    "max_retries": (ENV_MAX_RETRIES, DEFAULT_MAX_RETRIES, 0),
    "retry_delay_ms": (ENV_RETRY_DELAY_MS, DEFAULT_RETRY_DELAY_MS, 1),
    "max_retry_delay_ms": (ENV_MAX_RETRY_DELAY_MS, DEFAULT_MAX_RETRY_DELAY_MS, 1),
    "gh_timeout_ms": (ENV_GH_TIMEOUT_MS, DEFAULT_GH_TIMEOUT_MS, 0),
}


@dataclass
class Config:
    """Configuration for git-branch-flow with validation."""

    # Execution modes
    verbose: bool = False
    debug: bool = False
    force: bool = False  # Skip confirmations
    no_fork: bool = False  # Allow dev branches in a repository that is not a fork

    # Retry policy for network operations
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    max_retry_delay_ms: int = DEFAULT_MAX_RETRY_DELAY_MS

    # Pause after gh mutations so GitHub state settles before the next read
    gh_timeout_ms: int = DEFAULT_GH_TIMEOUT_MS

    # Jira credentials, consumed by an external ticket lookup
    jira_api_token: Optional[str] = None
    jira_email: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_max_retries()
        self._validate_retry_delays()
        self._validate_gh_timeout()

    def _validate_max_retries(self):
        """Validate max_retries is not negative."""
        if self.max_retries < 0:
            raise ValueError(f"max_retries must not be negative, got {self.max_retries}")

    def _validate_retry_delays(self):
        """Validate retry delays are positive and ordered."""
        if self.retry_delay_ms <= 0:
            raise ValueError(f"retry_delay_ms must be positive, got {self.retry_delay_ms}")
        if self.max_retry_delay_ms <= 0:
            raise ValueError(f"max_retry_delay_ms must be positive, got {self.max_retry_delay_ms}")
        if self.max_retry_delay_ms < self.retry_delay_ms:
            raise ValueError(
                f"max_retry_delay_ms ({self.max_retry_delay_ms}) must not be less than "
                f"retry_delay_ms ({self.retry_delay_ms})"
            )

    def _validate_gh_timeout(self):
        """Validate gh_timeout_ms is not negative."""
        if self.gh_timeout_ms < 0:
            raise ValueError(f"gh_timeout_ms must not be negative, got {self.gh_timeout_ms}")

    @property
    def retry_delay(self) -> float:
        """Initial retry delay in seconds."""
        return self.retry_delay_ms / 1000

    @property
    def max_retry_delay(self) -> float:
        """Retry delay cap in seconds."""
        return self.max_retry_delay_ms / 1000

    @property
    def gh_timeout(self) -> float:
        """Post-mutation pause in seconds."""
        return self.gh_timeout_ms / 1000

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "Config":
        """Create Config from environment variables plus explicit overrides.

        Numeric variables that are missing, unparsable or below their minimum
        fall back to the built-in default.

        Args:
            environ: Mapping to read variables from (defaults to os.environ)
            **overrides: Field values that take precedence over the environment

        Returns:
            Validated Config
        """
        if environ is None:
            environ = os.environ

        values = {}
        for name, (env_name, default, minimum) in _INT_ENV_FIELDS.items():
            values[name] = _read_int(environ, env_name, default, minimum)

        if values["max_retry_delay_ms"] < values["retry_delay_ms"]:
            logger.warning(
                f"{ENV_MAX_RETRY_DELAY_MS} is lower than {ENV_RETRY_DELAY_MS}, using defaults"
            )
            values["retry_delay_ms"] = DEFAULT_RETRY_DELAY_MS
            values["max_retry_delay_ms"] = DEFAULT_MAX_RETRY_DELAY_MS

        values["jira_api_token"] = environ.get(ENV_JIRA_API_TOKEN) or None
        values["jira_email"] = environ.get(ENV_JIRA_EMAIL) or None

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(values)


def _read_int(environ: Mapping[str, str], env_name: str, default: int, minimum: int) -> int:
    raw = environ.get(env_name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning(f"Invalid {env_name} value '{raw}', using default {default}")
        return default
    if value < minimum:
        logger.warning(f"{env_name} must be at least {minimum}, got {value}; using default {default}")
        return default
    return value
