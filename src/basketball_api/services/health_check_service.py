"""
Service health aggregation.

Three distinct signals are reported:
- liveness: the process is running and able to answer
- readiness: the required dependency is connected
- healthiness: a live probe of the dependency succeeds within its timeout

Snapshots are computed on every query and never cached.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import psutil

from basketball_api.config.settings import ServiceSettings
from basketball_api.exceptions import HealthCheckException
from basketball_api.logging_config import get_logger
from basketball_api.resilience import TimeoutManager, TimeoutError as ResilienceTimeoutError
from basketball_api.services.connection_supervisor import (
    ConnectionState,
    ConnectionSupervisor,
)

logger = get_logger(__name__)


def format_uptime(seconds: float) -> str:
    """Render a duration as ``"1d 2h 3m 4s"``, omitting leading zero units."""
    total = int(seconds)
    days, remainder = divmod(total, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, secs = divmod(remainder, 60)

    if days > 0:
        return f"{days}d {hours}h {minutes}m {secs}s"
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def memory_usage() -> Dict[str, float]:
    """Process memory figures in megabytes."""
    process = psutil.Process()
    info = process.memory_info()
    return {
        "rss_mb": round(info.rss / (1024 ** 2), 2),
        "vms_mb": round(info.vms / (1024 ** 2), 2),
        "percent": round(process.memory_percent(), 2),
    }


@dataclass
class HealthSnapshot:
    """Point-in-time health of the process and its dependency."""

    liveness: bool
    readiness: bool
    healthy: bool
    dependency_state: ConnectionState
    uptime_seconds: float
    dependency_error: Optional[str] = None
    probe_latency_ms: Optional[int] = None
    memory: Dict[str, float] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def status(self) -> str:
        return "healthy" if self.healthy else "unhealthy"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
            "liveness": self.liveness,
            "readiness": self.readiness,
            "healthy": self.healthy,
            "dependency_state": self.dependency_state.value,
            "dependency_error": self.dependency_error,
            "probe_latency_ms": self.probe_latency_ms,
            "uptime_seconds": self.uptime_seconds,
            "memory": self.memory,
        }


class HealthAggregator:
    """
    Combines process liveness, supervisor state and a live dependency probe.

    The probe goes through the supervisor's connector and is bounded by
    ``probe_timeout`` seconds; a probe that overruns is cancelled and the
    dependency reported unhealthy even while the supervisor says connected.
    """

    def __init__(
        self,
        supervisor: ConnectionSupervisor,
        probe_timeout: float = 2.0,
        service_name: str = "basketball-api",
        version: str = "0.0.0",
        environment: str = "development",
    ):
        self.supervisor = supervisor
        self.probe_timeout = probe_timeout
        self.service_name = service_name
        self.version = version
        self.environment = environment
        self.started_at = time.monotonic()

    @classmethod
    def from_settings(
        cls,
        supervisor: ConnectionSupervisor,
        settings: ServiceSettings,
        version: str,
    ) -> "HealthAggregator":
        return cls(
            supervisor,
            probe_timeout=settings.health_probe_timeout,
            service_name=settings.service_name,
            version=version,
            environment=settings.environment,
        )

    def uptime_seconds(self) -> float:
        return round(time.monotonic() - self.started_at, 3)

    def liveness(self) -> bool:
        return True

    def readiness(self) -> bool:
        return self.supervisor.is_connected

    def dependency_state(self) -> ConnectionState:
        return self.supervisor.connection_state

    async def probe(self) -> int:
        """
        Run the live dependency probe.

        Returns:
            Probe latency in milliseconds

        Raises:
            HealthCheckException: If the probe fails or times out
        """
        started = time.perf_counter()
        timeout_manager = TimeoutManager(self.supervisor.name, self.probe_timeout)
        try:
            await timeout_manager.execute(self.supervisor.connector.ping)
        except ResilienceTimeoutError as e:
            raise HealthCheckException(
                f"Probe timed out after {self.probe_timeout:g}s",
                check_name=self.supervisor.name,
            ) from e
        except HealthCheckException:
            raise
        except Exception as e:
            raise HealthCheckException(str(e), check_name=self.supervisor.name) from e
        return int((time.perf_counter() - started) * 1000)

    async def check_readiness(self) -> bool:
        """
        Readiness, re-checking a connection that was lost.

        A successful live check after a connection loss restores the supervisor
        to CONNECTED; otherwise this is the same as ``readiness()``.
        """
        if self.supervisor.connection_lost:
            try:
                await self.probe()
            except HealthCheckException as e:
                logger.debug(f"{self.supervisor.name} still unavailable: {e.message}")
            else:
                self.supervisor.mark_reconnected()
        return self.readiness()

    async def healthiness(self) -> HealthSnapshot:
        """Compute a fresh health snapshot."""
        healthy = False
        error: Optional[str] = None
        latency_ms: Optional[int] = None

        # A lost connection is checked too so a restored one is noticed
        if self.readiness() or self.supervisor.connection_lost:
            try:
                latency_ms = await self.probe()
                healthy = True
            except HealthCheckException as e:
                error = e.message
                logger.error(
                    f"Health probe failed: {e.message}",
                    extra={"check_name": self.supervisor.name, "error_code": e.error_code.value},
                )
            else:
                self.supervisor.mark_reconnected()

        state = self.dependency_state()
        ready = self.readiness()
        if error is None and not ready:
            error = f"Database is {state.value}"
            healthy = False

        return HealthSnapshot(
            liveness=self.liveness(),
            readiness=ready,
            healthy=healthy,
            dependency_state=state,
            uptime_seconds=self.uptime_seconds(),
            dependency_error=error,
            probe_latency_ms=latency_ms,
            memory=memory_usage(),
        )
