"""Runtime services: dependency supervision and health aggregation."""

from .connection_supervisor import (
    ConnectionAttemptState,
    ConnectionState,
    ConnectionSupervisor,
    DependencyConnector,
    SupervisorState,
)
from .health_check_service import (
    HealthAggregator,
    HealthSnapshot,
    format_uptime,
    memory_usage,
)

__all__ = [
    "ConnectionAttemptState",
    "ConnectionState",
    "ConnectionSupervisor",
    "DependencyConnector",
    "SupervisorState",
    "HealthAggregator",
    "HealthSnapshot",
    "format_uptime",
    "memory_usage",
]
