"""Retry with backoff for network-bound git and gh operations"""

import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar, TYPE_CHECKING

from git_branch_flow.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY_MS,
    DEFAULT_RETRY_DELAY_MS,
)
from git_branch_flow.exceptions import NonRetryableError, RetryExhaustedError
from git_branch_flow.logging_config import get_logger

if TYPE_CHECKING:
    from git_branch_flow.config import Config

logger = get_logger(__name__)

T = TypeVar("T")


def exponential_backoff(attempt: int, delay: float, max_delay: float) -> float:
    """Delay before retry number attempt + 1: delay * 2^attempt, capped."""
    return min(delay * (2 ** attempt), max_delay)


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry a failing operation.

    `max_retries` counts retries, so an operation is invoked at most
    `max_retries + 1` times. Delays are in seconds.
    """
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay: float = DEFAULT_RETRY_DELAY_MS / 1000
    max_delay: float = DEFAULT_MAX_RETRY_DELAY_MS / 1000
    backoff: Callable[[int, float, float], float] = exponential_backoff
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    @classmethod
    def from_config(cls, config: "Config", **kwargs) -> "RetryPolicy":
        """Build a policy from the retry settings of a Config."""
        return cls(
            max_retries=config.max_retries,
            initial_delay=config.retry_delay,
            max_delay=config.max_retry_delay,
            **kwargs,
        )

    def delay_for(self, retry_number: int) -> float:
        """Seconds to wait before the given retry (1-based)."""
        return self.backoff(retry_number - 1, self.initial_delay, self.max_delay)

    def run(self, operation: Callable[[], T], description: str = "operation") -> T:
        """Invoke operation until it succeeds or the retries run out.

        Args:
            operation: Zero-argument callable performing the work
            description: Human-readable name used in logs and errors

        Returns:
            Whatever operation returns on its first success

        Raises:
            NonRetryableError: Propagated at once, e.g. a divergence
            RetryExhaustedError: Every attempt failed; chained from the last error
        """
        attempts = self.max_retries + 1
        last_error = None
        for attempt in range(attempts):
            if attempt > 0:
                delay = self.delay_for(attempt)
                logger.debug(f"Retrying {description} in {delay:.2f}s (attempt {attempt + 1}/{attempts})")
                self.sleep(delay)
            try:
                return operation()
            except NonRetryableError:
                raise
            except Exception as e:
                last_error = e
                logger.debug(f"{description} failed on attempt {attempt + 1}/{attempts}: {e}")

        raise RetryExhaustedError(description, attempts, last_error) from last_error
