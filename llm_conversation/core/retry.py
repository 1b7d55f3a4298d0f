"""Retry executor for outbound provider calls.

Runs an async operation with bounded exponential backoff. Which failures
are worth retrying is decided by a classifier function rather than by the
operation raising special exception types, so the loop stays the same for
provider calls and viewer uploads alike.

Backoff schedule, for retry n (1-based):

    bound(n) = min(max_delay_ms, min_delay_ms * factor ** (n - 1))

With ``randomize`` on, the actual delay is drawn uniformly from
[bound(n) / 2, bound(n)], so it never exceeds the bound.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from llm_conversation.core.constants import RETRYABLE_STATUS_CODES, RetryDefaults
from llm_conversation.core.exceptions import ProviderError, UploadError
from llm_conversation.core.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")

Classifier = Callable[[BaseException], bool]
Sleeper = Callable[[float], Awaitable[Any]]


def is_retryable(error: BaseException) -> bool:
    """Classify an error as transient (retry) or fatal (give up).

    Retryable:
        - ProviderError / UploadError with status 429, 500, 502, 503, 504
        - httpx.HTTPStatusError with one of those statuses
        - httpx.TransportError (connection reset, timeouts)

    Everything else, including 400/401/403 and payload-embedded provider
    errors (no status code), is fatal.
    """
    if isinstance(error, (ProviderError, UploadError)):
        return error.status_code in RETRYABLE_STATUS_CODES
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(error, httpx.TransportError)


def retry_everything(error: BaseException) -> bool:
    """Classifier that retries any Exception (used for viewer uploads)."""
    return isinstance(error, Exception)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration.

    Attributes:
        max_attempts: Total attempts including the first one.
        min_delay_ms: Bound for the first retry's delay.
        max_delay_ms: Bound for any single delay.
        factor: Exponential growth factor.
        randomize: Apply jitter within the bound.
    """

    max_attempts: int = RetryDefaults.MAX_ATTEMPTS
    min_delay_ms: int = RetryDefaults.MIN_DELAY_MS
    max_delay_ms: int = RetryDefaults.MAX_DELAY_MS
    factor: float = RetryDefaults.FACTOR
    randomize: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def from_settings(cls, settings: Any) -> RetryPolicy:
        """Build the provider-call policy from Settings."""
        return cls(
            max_attempts=settings.retry_max_attempts,
            min_delay_ms=settings.retry_min_delay_ms,
            max_delay_ms=settings.retry_max_delay_ms,
            factor=settings.retry_factor,
            randomize=settings.retry_randomize,
        )

    def delay_bound_ms(self, retry_number: int) -> float:
        """Upper bound of the delay before retry ``retry_number`` (1-based)."""
        return min(
            float(self.max_delay_ms),
            self.min_delay_ms * self.factor ** (retry_number - 1),
        )


class RetryExecutor:
    """Execute async operations with exponential backoff.

    Example:
        ```python
        executor = RetryExecutor(RetryPolicy(max_attempts=3))
        data = await executor.run(lambda: client.post("/messages", json=payload))
        ```
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        classifier: Classifier = is_retryable,
        sleep: Sleeper = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            policy: Retry configuration. Defaults to RetryPolicy().
            classifier: Decides whether an error is worth retrying.
            sleep: Async sleep used between attempts (seconds).
            rng: Random source for jitter.
        """
        self.policy = policy or RetryPolicy()
        self.classifier = classifier
        self._sleep = sleep
        self._rng = rng or random.Random()

    def compute_delay_ms(self, retry_number: int) -> float:
        """Delay before retry ``retry_number``, jittered if configured."""
        bound = self.policy.delay_bound_ms(retry_number)
        if not self.policy.randomize:
            return bound
        return self._rng.uniform(bound / 2, bound)

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "operation") -> T:
        """Run ``operation`` until it succeeds or the retry budget is spent.

        Args:
            operation: Zero-argument coroutine factory.
            description: Label used in log lines.

        Returns:
            The operation's result.

        Raises:
            The last error raised by ``operation``, unchanged.
        """
        max_attempts = self.policy.max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                return await operation()
            except Exception as e:
                retries_left = max_attempts - attempt
                retryable = self.classifier(e)
                logger.warning(
                    f"Attempt {attempt} failed. There are {retries_left} retries left.",
                    operation=description,
                    error=str(e),
                    retryable=retryable,
                )
                if not retryable or retries_left == 0:
                    raise
                delay_ms = self.compute_delay_ms(attempt)
                logger.info(
                    "Retrying after backoff",
                    operation=description,
                    reason="rate limiting" if _status_of(e) == 429 else "transient error",
                    delay_ms=round(delay_ms),
                )
                await self._sleep(delay_ms / 1000)

        # range() is never empty because max_attempts >= 1
        raise RuntimeError("unreachable")


def _status_of(error: BaseException) -> int | None:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return getattr(error, "status_code", None)
