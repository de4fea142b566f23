"""Explicit retry policy for network and backend calls.

A `RetryPolicy` is handed to whoever talks to an external system (the
query collectors, the insight client) instead of being baked into a shared
helper, so each boundary states how it retries.
"""

import time
from typing import Any, Callable, Optional, TypeVar

from core.exceptions import ConfigurationError
from core.logger import get_logger

logger = get_logger("core.retry")

R = TypeVar("R")


def exponential_backoff(attempt: int, base_delay: float) -> float:
    """Delay before retry number `attempt` (1-based): base, 2*base, 4*base..."""
    return base_delay * (2 ** (attempt - 1))


class RetryPolicy:
    """Run a callable up to `max_attempts` times with backoff between tries.

    Attributes:
        max_attempts: Total attempts including the first one.
        base_delay: Seconds fed to `backoff` for the first retry.
        backoff: Callable `(attempt, base_delay) -> seconds`.
        sleep: Callable used to wait; injectable for tests.
        retry_on: Predicate deciding whether an exception is worth another
            attempt; errors it rejects are raised immediately.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        backoff: Callable[[int, float], float] = exponential_backoff,
        sleep: Callable[[float], Any] = time.sleep,
        retry_on: Optional[Callable[[BaseException], bool]] = None,
    ):
        if max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1", config_key="max_attempts")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.backoff = backoff
        self.sleep = sleep
        self.retry_on = retry_on

    def call(self, fn: Callable[..., R], *args, **kwargs) -> R:
        """Invoke `fn`, retrying retryable exceptions; re-raise the last failure."""
        last_exc: Optional[BaseException] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return fn(*args, **kwargs)
            except Exception as exc:
                last_exc = exc
                if self.retry_on is not None and not self.retry_on(exc):
                    raise
                if attempt == self.max_attempts:
                    break
                delay = self.backoff(attempt, self.base_delay)
                logger.warning(
                    "Attempt %s/%s of %s failed (%s); retrying in %.2fs",
                    attempt,
                    self.max_attempts,
                    getattr(fn, "__name__", repr(fn)),
                    exc,
                    delay,
                )
                self.sleep(delay)
        raise last_exc


def no_retry() -> RetryPolicy:
    """Policy that makes a single attempt."""
    return RetryPolicy(max_attempts=1, base_delay=0.0)
