"""
Response schemas for the liveness, readiness and health endpoints.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class LivenessResponse(BaseModel):
    """Body of ``GET /live``."""

    status: str = Field("alive", description="Always 'alive' while the process answers")
    timestamp: datetime = Field(..., description="Response timestamp")
    service: str = Field(..., description="Service name")
    uptime: float = Field(..., description="Process uptime in seconds")


class ReadinessResponse(BaseModel):
    """Body of ``GET /ready``."""

    status: str = Field(..., description="'ready' or 'not ready'")
    timestamp: datetime = Field(..., description="Response timestamp")
    service: str = Field(..., description="Service name")
    database: str = Field(..., description="Database connection state label")
    reason: Optional[str] = Field(None, description="Why the service is not ready")


class DatabaseHealth(BaseModel):
    """Dependency section of the health report."""

    state: str = Field(..., description="Database connection state label")
    healthy: bool = Field(..., description="Whether the live probe succeeded")
    response_time_ms: Optional[int] = Field(None, description="Probe latency in milliseconds")
    error: Optional[str] = Field(None, description="Probe or connection error")


class UptimeMetrics(BaseModel):
    seconds: float
    human: str


class HealthMetrics(BaseModel):
    memory_usage: Dict[str, float] = Field(default_factory=dict)
    uptime: UptimeMetrics


class HealthResponse(BaseModel):
    """Body of ``GET /health``."""

    status: str = Field(..., description="'healthy' or 'unhealthy'")
    timestamp: datetime = Field(..., description="Health check timestamp")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment label")
    uptime: float = Field(..., description="Process uptime in seconds")
    memory: Dict[str, float] = Field(default_factory=dict, description="Process memory in MB")
    database: DatabaseHealth
    metrics: HealthMetrics
