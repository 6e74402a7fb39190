"""
Application assembly and process entry point.

Configuration is loaded and validated before anything listens. The HTTP
server and the database connection sequence then run side by side on one
event loop so ``/live`` and ``/ready`` answer while connection attempts are
still being retried. Exhausting the attempts stops the server and the
process exits with status 1.
"""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Mapping, Optional, Tuple, Union

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from basketball_api import __version__
from basketball_api.api import health_router
from basketball_api.config import (
    EnvironmentConfig,
    ServiceSettings,
    mask_url_credentials,
    register_service_keys,
)
from basketball_api.database import DatabaseConnector
from basketball_api.handlers import register_exception_handlers
from basketball_api.logging_config import get_logger, setup_logging
from basketball_api.middleware import RequestLoggingMiddleware
from basketball_api.services import ConnectionSupervisor, HealthAggregator

logger = get_logger(__name__)

APP_VERSION = __version__


def load_configuration(
    working_dir: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
    configure_logging: bool = True,
) -> Tuple[EnvironmentConfig, ServiceSettings]:
    """
    Resolve, validate and freeze configuration, then build the typed settings.

    Raises:
        ConfigurationException: If required keys are missing, a production
            secret is insecure, or a value violates a settings constraint
    """
    config = EnvironmentConfig.load(working_dir=working_dir, environ=environ)

    if configure_logging:
        setup_logging(
            environment=config.environment,
            log_level=config.get_string("LOG_LEVEL") or "info",
            log_file=config.get_string("LOG_FILE") or None,
            version=APP_VERSION,
        )

    register_service_keys(config)
    config.validate()
    config.log_configuration()
    logger.debug("Configuration sources", extra={"config_summary": config.summary()})

    settings = ServiceSettings.from_config(config)
    return config, settings


def build_services(settings: ServiceSettings) -> Tuple[ConnectionSupervisor, HealthAggregator]:
    """Wire the database connector, its supervisor and the health aggregator."""
    connector = DatabaseConnector(
        settings.database_url,
        pool_size=settings.db_max_pool_size,
    )
    supervisor = ConnectionSupervisor.from_settings(connector, settings)
    health = HealthAggregator.from_settings(supervisor, settings, version=APP_VERSION)
    return supervisor, health


def create_app(
    config: EnvironmentConfig,
    settings: ServiceSettings,
    supervisor: ConnectionSupervisor,
    health: HealthAggregator,
) -> FastAPI:
    """Build the FastAPI application around already-constructed services."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting Basketball API v{APP_VERSION}")
        # Idempotent; the entry point may already have started it
        supervisor.start()
        try:
            yield
        finally:
            logger.info("Shutting down gracefully...")
            await supervisor.close()

    app = FastAPI(
        title="Basketball API",
        description="CRUD API for basketball clubs, schedules and stats",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.settings = settings
    app.state.supervisor = supervisor
    app.state.health = health

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.enable_request_logging:
        exclude_paths = ["/health"] if config.is_production else []
        app.add_middleware(RequestLoggingMiddleware, exclude_paths=exclude_paths)

    register_exception_handlers(app)
    app.include_router(health_router)

    return app


def log_startup(settings: ServiceSettings) -> None:
    logger.info(f"Server running on port {settings.port}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"API URL: {settings.api_base_url}")
    logger.info(f"Database: {mask_url_credentials(settings.database_url)}")
    logger.info(f"CORS origins: {', '.join(settings.cors_origins)}")


async def serve(config: EnvironmentConfig, settings: ServiceSettings) -> int:
    """
    Run the HTTP server and the database connection sequence together.

    Returns:
        Process exit code: 0 after a normal shutdown, 1 if the database
        could not be reached or the server failed to start
    """
    supervisor, health = build_services(settings)
    app = create_app(config, settings, supervisor, health)

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_config=None,
            lifespan="on",
        )
    )

    log_startup(settings)
    server_task = asyncio.create_task(server.serve(), name="http-server")
    connect_task = supervisor.start()

    await asyncio.wait({server_task, connect_task}, return_when=asyncio.FIRST_COMPLETED)

    if connect_task.done() and not connect_task.cancelled():
        error = connect_task.exception()
        if error is not None:
            logger.critical(f"Fatal: {error}")
            server.should_exit = True
            await server_task
            return 1

    await server_task
    return 0 if server.started else 1
