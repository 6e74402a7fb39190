"""
Liveness, readiness and health endpoints.

- ``/live`` answers 200 while the process runs.
- ``/ready`` answers 200 only while the database is connected; a lost
  connection is re-checked so a restored one is reported ready again.
- ``/health`` runs a live database probe on every call.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from basketball_api.schemas.health import (
    DatabaseHealth,
    HealthMetrics,
    HealthResponse,
    LivenessResponse,
    ReadinessResponse,
    UptimeMetrics,
)
from basketball_api.services.health_check_service import HealthAggregator, format_uptime

router = APIRouter(tags=["health"])


def _aggregator(request: Request) -> HealthAggregator:
    return request.app.state.health


@router.get("/live", response_model=LivenessResponse)
async def live(request: Request):
    health = _aggregator(request)
    return LivenessResponse(
        status="alive",
        timestamp=datetime.now(timezone.utc),
        service=health.service_name,
        uptime=health.uptime_seconds(),
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def ready(request: Request):
    health = _aggregator(request)
    is_ready = await health.check_readiness()
    body = ReadinessResponse(
        status="ready",
        timestamp=datetime.now(timezone.utc),
        service=health.service_name,
        database=health.dependency_state().value,
    )

    if not is_ready:
        body.status = "not ready"
        body.reason = "Database not connected"
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(mode="json"),
        )
    return body


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def health_check(request: Request):
    health = _aggregator(request)
    snapshot = await health.healthiness()

    body = HealthResponse(
        status=snapshot.status,
        timestamp=snapshot.timestamp,
        service=health.service_name,
        version=health.version,
        environment=health.environment,
        uptime=snapshot.uptime_seconds,
        memory=snapshot.memory,
        database=DatabaseHealth(
            state=snapshot.dependency_state.value,
            healthy=snapshot.healthy,
            response_time_ms=snapshot.probe_latency_ms,
            error=snapshot.dependency_error,
        ),
        metrics=HealthMetrics(
            memory_usage=snapshot.memory,
            uptime=UptimeMetrics(
                seconds=snapshot.uptime_seconds,
                human=format_uptime(snapshot.uptime_seconds),
            ),
        ),
    )

    if not snapshot.healthy:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(mode="json"),
        )
    return body
