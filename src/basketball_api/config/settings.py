"""
Typed settings for the Basketball API service.

The service declares which keys it requires and which are secrets, then
builds a frozen ``ServiceSettings`` from the validated configuration. All
parsing goes through the typed accessors of ``EnvironmentConfig``; pydantic
enforces ranges and constraints.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from basketball_api.exceptions import ConfigurationException

from .environment import ENVIRONMENT_KEY, EnvironmentConfig

REQUIRED_KEYS = (ENVIRONMENT_KEY, "PORT", "DATABASE_URL")
SECRET_KEYS = ("SESSION_SECRET", "JWT_SECRET", "DATABASE_URL")

VALID_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def register_service_keys(config: EnvironmentConfig) -> EnvironmentConfig:
    """Declare the keys this service requires and the keys that are secrets."""
    return config.require(*REQUIRED_KEYS).secrets(*SECRET_KEYS)


class ServiceSettings(BaseModel):
    """Validated, immutable settings consumed by the HTTP and database layers."""

    model_config = ConfigDict(frozen=True)

    environment: str = Field(default="development", min_length=1)
    service_name: str = Field(default="basketball-api", min_length=1)
    host: str = Field(default="0.0.0.0", min_length=1)
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: str = Field(default="info")
    log_file: Optional[str] = None
    enable_request_logging: bool = True
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3001"])
    api_base_url: str = "http://localhost:3000"

    database_url: str = Field(..., min_length=1)
    db_max_pool_size: int = Field(default=10, ge=1)
    db_connect_timeout_ms: int = Field(default=5000, gt=0)
    db_connect_max_attempts: int = Field(default=10, ge=1)
    db_connect_retry_delay_ms: int = Field(default=5000, ge=0)
    health_probe_timeout_ms: int = Field(default=2000, gt=0)

    @property
    def db_connect_timeout(self) -> float:
        return self.db_connect_timeout_ms / 1000

    @property
    def db_connect_retry_delay(self) -> float:
        return self.db_connect_retry_delay_ms / 1000

    @property
    def health_probe_timeout(self) -> float:
        return self.health_probe_timeout_ms / 1000

    @classmethod
    def from_config(cls, config: EnvironmentConfig) -> "ServiceSettings":
        """
        Build settings from a resolved configuration.

        Raises:
            ConfigurationException: If a value violates a field constraint
        """
        defaults = cls.model_fields
        log_level = (config.get_string("LOG_LEVEL") or defaults["log_level"].default).lower()
        if log_level not in VALID_LOG_LEVELS:
            raise ConfigurationException(
                f"Invalid log level '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}",
                config_key="LOG_LEVEL",
            )

        try:
            return cls(
                environment=config.environment,
                host=config.get_string("HOST", defaults["host"].default),
                port=config.get_int("PORT", defaults["port"].default),
                log_level=log_level,
                log_file=config.get_string("LOG_FILE") or None,
                enable_request_logging=config.get_bool("ENABLE_REQUEST_LOGGING", True),
                cors_origins=config.get_string_list(
                    "CORS_ORIGINS", ["http://localhost:3001"]
                ),
                api_base_url=config.get_string(
                    "API_BASE_URL", defaults["api_base_url"].default
                ),
                database_url=config.get_string("DATABASE_URL", ""),
                db_max_pool_size=config.get_int(
                    "DB_MAX_POOL_SIZE", defaults["db_max_pool_size"].default
                ),
                db_connect_timeout_ms=config.get_int(
                    "DB_CONNECT_TIMEOUT_MS", defaults["db_connect_timeout_ms"].default
                ),
                db_connect_max_attempts=config.get_int(
                    "DB_CONNECT_MAX_ATTEMPTS", defaults["db_connect_max_attempts"].default
                ),
                db_connect_retry_delay_ms=config.get_int(
                    "DB_CONNECT_RETRY_DELAY_MS", defaults["db_connect_retry_delay_ms"].default
                ),
                health_probe_timeout_ms=config.get_int(
                    "HEALTH_PROBE_TIMEOUT_MS", defaults["health_probe_timeout_ms"].default
                ),
            )
        except ValidationError as e:
            err = e.errors()[0]
            field = ".".join(str(part) for part in err.get("loc", ()))
            raise ConfigurationException(
                f"Invalid configuration for {field}: {err.get('msg')}",
                config_key=field.upper() or None,
            ) from e
