"""Timeout management for dependency calls."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from .exceptions import TimeoutError as ResilienceTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TimeoutManager:
    """
    Bounds an async call by a timeout.

    A call that exceeds the timeout is cancelled, so the callee's cleanup
    (``finally`` blocks, ``except CancelledError``) runs before the
    timeout error is raised.
    """

    def __init__(self, service_name: str, timeout_seconds: float):
        self.service_name = service_name
        self.timeout_seconds = timeout_seconds

    async def execute(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """
        Execute an async function with timeout protection.

        Raises:
            TimeoutError: If the operation times out
            Exception: Any exception raised by the function
        """
        logger.debug(
            f"Executing call to service '{self.service_name}' "
            f"with timeout {self.timeout_seconds}s"
        )
        try:
            return await asyncio.wait_for(func(*args, **kwargs), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(
                f"Service '{self.service_name}' call timed out after {self.timeout_seconds}s"
            )
            raise ResilienceTimeoutError(self.service_name, self.timeout_seconds)
