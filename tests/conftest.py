import asyncio
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from basketball_api.config import EnvironmentConfig, ServiceSettings, register_service_keys

SECURE_SECRET = "f3a9c1e7b5d2468091a7c3e5b9d1f204"
SECURE_SECRET_2 = "9b1d7e3f5a2c4086b4e6d8f0a2c4e6b8"


class FakeConnector:
    """In-memory stand-in for ``DatabaseConnector`` with scripted failures."""

    name = "database"

    def __init__(
        self,
        failures: int = 0,
        connect_delay: float = 0.0,
        ping_error: Optional[BaseException] = None,
        ping_delay: float = 0.0,
    ):
        self.failures = failures
        self.connect_delay = connect_delay
        self.ping_error = ping_error
        self.ping_delay = ping_delay
        self.connect_calls = 0
        self.ping_calls = 0
        self.closed = False
        self._disconnect_listeners: List[Callable[[BaseException], None]] = []
        self._reconnect_listeners: List[Callable[[], None]] = []

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.connect_calls <= self.failures:
            raise ConnectionError(f"connection refused (call {self.connect_calls})")

    async def ping(self) -> None:
        self.ping_calls += 1
        if self.ping_delay:
            await asyncio.sleep(self.ping_delay)
        if self.ping_error is not None:
            raise self.ping_error

    async def close(self) -> None:
        self.closed = True

    def on_disconnect(self, listener: Callable[[BaseException], None]) -> None:
        self._disconnect_listeners.append(listener)

    def simulate_disconnect(self, error: Optional[BaseException] = None) -> None:
        for listener in self._disconnect_listeners:
            listener(error or ConnectionError("connection lost"))

    def on_reconnect(self, listener: Callable[[], None]) -> None:
        self._reconnect_listeners.append(listener)

    def simulate_reconnect(self) -> None:
        for listener in self._reconnect_listeners:
            listener()


@pytest.fixture
def env_dir(tmp_path: Path) -> Callable[..., Path]:
    """Write ``.env*`` files into a temporary directory.

    Usage: ``env_dir(**{".env": "PORT=3000\\n"})``
    """

    def _write(**files: str) -> Path:
        for name, content in files.items():
            (tmp_path / name).write_text(content, encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def base_values() -> Dict[str, str]:
    return {
        "ENVIRONMENT": "test",
        "PORT": "3000",
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "LOG_LEVEL": "info",
    }


@pytest.fixture
def production_values() -> Dict[str, str]:
    return {
        "ENVIRONMENT": "production",
        "PORT": "8080",
        "DATABASE_URL": "postgresql+asyncpg://app:s3cr3t-pa55@db:5432/basketball",
        "SESSION_SECRET": SECURE_SECRET,
        "JWT_SECRET": SECURE_SECRET_2,
    }


@pytest.fixture
def make_config() -> Callable[..., EnvironmentConfig]:
    """Build a registered, validated configuration from a plain mapping."""

    def _make(values: Dict[str, str], validate: bool = True) -> EnvironmentConfig:
        config = EnvironmentConfig(values, environment=values.get("ENVIRONMENT", "development"))
        register_service_keys(config)
        if validate:
            config.validate()
        return config

    return _make


@pytest.fixture
def test_settings(make_config, base_values) -> ServiceSettings:
    values = dict(
        base_values,
        DB_CONNECT_MAX_ATTEMPTS="3",
        DB_CONNECT_RETRY_DELAY_MS="10",
        DB_CONNECT_TIMEOUT_MS="1000",
        HEALTH_PROBE_TIMEOUT_MS="200",
    )
    return ServiceSettings.from_config(make_config(values))


@pytest.fixture
def fake_connector() -> Callable[..., FakeConnector]:
    """Factory for scripted dependency connectors."""
    return FakeConnector
