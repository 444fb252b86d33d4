"""Retry policies applied to failed token exchanges."""

import random
from typing import Protocol

from pkjwt.core.errors import ExchangeError
from pkjwt.core.settings import ClientSettings


class RetryPolicy(Protocol):
    """Decides whether, and after how long, a failed exchange is retried."""

    def next_delay(self, error: ExchangeError, attempt: int) -> float | None:
        """Return the delay before retry ``attempt`` + 1, or None to give up."""
        ...


class FailFastPolicy:
    """Never retry: every exchange failure is fatal."""

    def next_delay(self, error: ExchangeError, attempt: int) -> float | None:
        return None


class ExponentialBackoffPolicy:
    """Capped exponential backoff for retryable failures only.

    Credential rejections (4xx other than 429) are never retried.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
    ) -> None:
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    def next_delay(self, error: ExchangeError, attempt: int) -> float | None:
        if not error.retryable or attempt >= self.max_attempts:
            return None
        delay = min(
            self.base_delay * (self.exponential_base ** (attempt - 1)),
            self.max_delay,
        )
        if self.jitter:
            delay *= 0.5 + random.random() * 0.5
        return delay


def policy_from_settings(settings: ClientSettings) -> RetryPolicy:
    """Build the retry policy named in settings."""
    if settings.retry_policy == "backoff":
        return ExponentialBackoffPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
        )
    return FailFastPolicy()
