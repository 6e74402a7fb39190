"""Retry logic with a fixed delay between attempts."""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, TypeVar

from .exceptions import RetryExhaustedError
from .timeout import TimeoutManager

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AttemptOutcome(str, Enum):
    STARTED = "started"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class AttemptEvent:
    """A discrete, observable step of a retry sequence."""

    service_name: str
    attempt_number: int
    max_attempts: int
    outcome: AttemptOutcome
    error: Optional[BaseException] = None
    elapsed_ms: Optional[int] = None


AttemptListener = Callable[[AttemptEvent], None]


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 10
    delay: float = 5.0  # Fixed delay between attempts, in seconds
    attempt_timeout: Optional[float] = None  # Per-attempt bound, in seconds

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")


class RetryManager:
    """
    Runs an async operation until it succeeds or the attempt budget is spent.

    Every attempt start and outcome is reported to the registered listeners
    as an ``AttemptEvent``. The wait between attempts is an ``asyncio.sleep``
    so other tasks keep running while a retry is pending.
    """

    def __init__(
        self,
        service_name: str,
        config: Optional[RetryConfig] = None,
        listeners: Optional[List[AttemptListener]] = None,
    ):
        self.service_name = service_name
        self.config = config or RetryConfig()
        self.listeners: List[AttemptListener] = list(listeners or [])

    async def execute(self, func: Callable[[], Awaitable[T]]) -> T:
        """
        Execute ``func`` with retry logic.

        Returns:
            The result of the first successful attempt

        Raises:
            RetryExhaustedError: If all retry attempts are exhausted
        """
        last_exception: Optional[BaseException] = None
        max_attempts = self.config.max_attempts

        for attempt in range(1, max_attempts + 1):
            self._emit(attempt, AttemptOutcome.STARTED)
            logger.debug(
                f"Attempting call to service '{self.service_name}' "
                f"(attempt {attempt}/{max_attempts})"
            )
            started = time.perf_counter()

            try:
                result = await self._run_attempt(func)
            except Exception as e:
                elapsed_ms = int((time.perf_counter() - started) * 1000)
                last_exception = e
                self._emit(attempt, AttemptOutcome.FAILED, error=e, elapsed_ms=elapsed_ms)

                if attempt < max_attempts:
                    logger.warning(
                        f"Service '{self.service_name}' call failed on attempt {attempt}: {e}. "
                        f"Retrying in {self.config.delay:g}s..."
                    )
                    await asyncio.sleep(self.config.delay)
                continue

            elapsed_ms = int((time.perf_counter() - started) * 1000)
            self._emit(attempt, AttemptOutcome.SUCCEEDED, elapsed_ms=elapsed_ms)
            if attempt > 1:
                logger.info(
                    f"Service '{self.service_name}' call succeeded on attempt {attempt}"
                )
            return result

        logger.error(
            f"Service '{self.service_name}' call failed on final attempt {max_attempts}: {last_exception}"
        )
        raise RetryExhaustedError(self.service_name, max_attempts, last_exception)

    async def _run_attempt(self, func: Callable[[], Awaitable[T]]) -> T:
        if self.config.attempt_timeout is None:
            return await func()
        return await TimeoutManager(self.service_name, self.config.attempt_timeout).execute(func)

    def _emit(
        self,
        attempt: int,
        outcome: AttemptOutcome,
        error: Optional[BaseException] = None,
        elapsed_ms: Optional[int] = None,
    ) -> None:
        event = AttemptEvent(
            service_name=self.service_name,
            attempt_number=attempt,
            max_attempts=self.config.max_attempts,
            outcome=outcome,
            error=error,
            elapsed_ms=elapsed_ms,
        )
        for listener in self.listeners:
            listener(event)
