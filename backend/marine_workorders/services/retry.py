"""Retry policy for idempotent second-phase store writes"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from marine_workorders.config import settings
from marine_workorders.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff for writes that are safe to replay"""

    attempts: int = 3
    multiplier: float = 0.1
    max_wait: float = 2.0

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(attempts=settings.store_retry_attempts, max_wait=settings.store_retry_max_wait)

    def retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception_type(StoreUnavailable),
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.multiplier, max=self.max_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def call(self, fn: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Run fn until it succeeds or attempts run out; re-raises the last StoreUnavailable"""
        async for attempt in self.retrying():
            with attempt:
                return await fn(*args, **kwargs)
