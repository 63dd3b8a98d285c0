"""Bounded retry loop for transient upstream unavailability."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, FrozenSet, Optional, TypeVar

from config import RETRY_MAX_ATTEMPTS, RETRY_DELAY_SECONDS, RETRYABLE_STATUS_CODES

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-delay retry policy keyed on HTTP status codes."""
    max_attempts: int = RETRY_MAX_ATTEMPTS
    delay_seconds: float = RETRY_DELAY_SECONDS
    retryable_status_codes: FrozenSet[int] = field(default=RETRYABLE_STATUS_CODES)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def is_retryable(self, status_code: Optional[int]) -> bool:
        return status_code is not None and status_code in self.retryable_status_codes


class RetryExhaustedError(Exception):
    """Raised when every attempt ended in a retryable status."""

    def __init__(self, attempts: int, last_status: Optional[int], last_outcome: Any = None):
        self.attempts = attempts
        self.last_status = last_status
        self.last_outcome = last_outcome
        super().__init__(
            f"Upstream unavailable after {attempts} attempts (last status {last_status})"
        )


async def run_with_retry(
    operation: Callable[[int], Awaitable[T]],
    policy: RetryPolicy,
    classify: Callable[[T], Optional[int]],
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Run ``operation`` until it yields a non-retryable outcome or attempts run out.

    Args:
        operation: Coroutine factory receiving the 1-based attempt number
        policy: Retry policy
        classify: Maps an outcome to the status code used for the retry decision,
            or None when the outcome is final
        sleep: Awaitable delay function (injectable for tests)

    Returns:
        The first outcome whose status is not retryable

    Raises:
        RetryExhaustedError: If all attempts returned a retryable status
    """
    last_outcome: Optional[T] = None
    last_status: Optional[int] = None

    for attempt in range(1, policy.max_attempts + 1):
        outcome = await operation(attempt)
        status = classify(outcome)
        if not policy.is_retryable(status):
            return outcome

        last_outcome = outcome
        last_status = status
        if attempt < policy.max_attempts:
            logger.warning(
                f"Transient status {status} on attempt {attempt}/{policy.max_attempts}, "
                f"retrying in {policy.delay_seconds}s",
                extra={"attempt": attempt, "status_code": status},
            )
            await sleep(policy.delay_seconds)

    logger.error(
        f"Giving up after {policy.max_attempts} attempts (last status {last_status})",
        extra={"attempt": policy.max_attempts, "status_code": last_status},
    )
    raise RetryExhaustedError(policy.max_attempts, last_status, last_outcome)
