"""
Resilience patterns for dependency calls.

This module provides fixed-delay retry with observable attempts and
timeout handling for calls to services this process depends on.
"""

from .retry import (
    AttemptEvent,
    AttemptListener,
    AttemptOutcome,
    RetryConfig,
    RetryManager,
)
from .timeout import TimeoutManager
from .exceptions import (
    ResilienceError,
    RetryExhaustedError,
    TimeoutError,
)

__all__ = [
    "AttemptEvent",
    "AttemptListener",
    "AttemptOutcome",
    "RetryConfig",
    "RetryManager",
    "TimeoutManager",
    "ResilienceError",
    "RetryExhaustedError",
    "TimeoutError",
]
