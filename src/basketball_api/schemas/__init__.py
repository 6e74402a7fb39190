from .error import ErrorResponse
from .health import (
    DatabaseHealth,
    HealthMetrics,
    HealthResponse,
    LivenessResponse,
    ReadinessResponse,
    UptimeMetrics,
)

__all__ = [
    "ErrorResponse",
    "DatabaseHealth",
    "HealthMetrics",
    "HealthResponse",
    "LivenessResponse",
    "ReadinessResponse",
    "UptimeMetrics",
]
