"""Bounded retries for transient request failures.

Reads and mutations get separate caps. Only network and 5xx errors are
retried, each retry after a jittered pause; 4xx, session expiry and requests
that could not be built fail immediately.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from dashboard.app.api.errors import ApiError
from dashboard.app.config import Settings

T = TypeVar("T")

logger = logging.getLogger(__name__)

READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for one class of request."""

    max_retries: int
    jitter_min_ms: int = 200
    jitter_max_ms: int = 500

    def should_retry(self, error: ApiError, retries_so_far: int) -> bool:
        """Decide whether another attempt is allowed after `error`."""
        return error.is_transient and retries_so_far < self.max_retries

    def next_delay_seconds(self) -> float:
        return random.uniform(self.jitter_min_ms, self.jitter_max_ms) / 1000

    def with_max_retries(self, max_retries: int) -> "RetryPolicy":
        return RetryPolicy(
            max_retries=max_retries,
            jitter_min_ms=self.jitter_min_ms,
            jitter_max_ms=self.jitter_max_ms,
        )


@dataclass(frozen=True)
class RetryPolicies:
    """Read and mutation policies, picked by HTTP method."""

    read: RetryPolicy
    mutation: RetryPolicy

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicies":
        return cls(
            read=RetryPolicy(
                max_retries=settings.read_retry_count,
                jitter_min_ms=settings.retry_jitter_min_ms,
                jitter_max_ms=settings.retry_jitter_max_ms,
            ),
            mutation=RetryPolicy(
                max_retries=settings.mutation_retry_count,
                jitter_min_ms=settings.retry_jitter_min_ms,
                jitter_max_ms=settings.retry_jitter_max_ms,
            ),
        )

    def for_method(self, method: str) -> RetryPolicy:
        return self.read if method.upper() in READ_METHODS else self.mutation


async def call_with_retries(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    description: str = "request",
    sleep_fn: Callable[[float], Awaitable[None]] | None = None,
) -> T:
    """Run `fn`, retrying transient ApiErrors as the policy allows.

    Args:
        fn: Zero-argument coroutine factory; called once per attempt
        policy: Retry caps and jitter
        description: Label used in log messages
        sleep_fn: Injectable sleep (default: asyncio.sleep)

    Returns:
        The first successful result

    Raises:
        ApiError: The last error once retries are exhausted or not allowed
    """
    sleep = sleep_fn or asyncio.sleep
    retries = 0
    while True:
        try:
            return await fn()
        except ApiError as e:
            if not policy.should_retry(e, retries):
                raise
            retries += 1
            delay = policy.next_delay_seconds()
            logger.info(
                f"[retry] {description} failed ({e.kind.value}, status={e.status_code}); "
                f"retry {retries}/{policy.max_retries} in {delay:.2f}s"
            )
            await sleep(delay)
