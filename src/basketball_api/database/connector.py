"""Database engine lifecycle for the service's required dependency."""

from typing import Callable, List, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import ExceptionContext
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from basketball_api.config.environment import mask_url_credentials
from basketball_api.exceptions import HealthCheckException
from basketball_api.logging_config import get_logger

logger = get_logger(__name__)

DisconnectListener = Callable[[BaseException], None]
ReconnectListener = Callable[[], None]


class DatabaseConnector:
    """
    Owns the SQLAlchemy async engine.

    ``connect`` builds the engine and proves it with ``SELECT 1``; a failed
    or cancelled attempt disposes the engine so no pool is left behind.
    Errors that SQLAlchemy classifies as disconnects are forwarded to the
    disconnect listeners; every fresh DBAPI connection the pool opens is
    reported to the reconnect listeners.
    """

    name = "database"

    def __init__(
        self,
        database_url: str,
        pool_size: int = 10,
        echo: bool = False,
    ):
        self.database_url = database_url
        self.pool_size = pool_size
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._disconnect_listeners: List[DisconnectListener] = []
        self._reconnect_listeners: List[ReconnectListener] = []

    @property
    def engine(self) -> Optional[AsyncEngine]:
        return self._engine

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def on_disconnect(self, listener: DisconnectListener) -> None:
        """Register a callback for connection-loss errors."""
        self._disconnect_listeners.append(listener)

    def on_reconnect(self, listener: ReconnectListener) -> None:
        """Register a callback for fresh connections opened by the pool."""
        self._reconnect_listeners.append(listener)

    def _create_engine(self) -> AsyncEngine:
        if self.is_sqlite:
            engine = create_async_engine(
                self.database_url,
                echo=self.echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_async_engine(
                self.database_url,
                echo=self.echo,
                pool_size=self.pool_size,
                pool_pre_ping=True,
            )

        event.listen(engine.sync_engine, "handle_error", self._handle_error)
        event.listen(engine.sync_engine, "connect", self._handle_connect)
        return engine

    def _handle_error(self, context: ExceptionContext) -> None:
        if not context.is_disconnect:
            return
        error = context.original_exception
        logger.warning(f"Database disconnected: {error}")
        for listener in self._disconnect_listeners:
            listener(error)

    def _handle_connect(self, dbapi_connection, connection_record) -> None:
        for listener in self._reconnect_listeners:
            listener()

    async def connect(self) -> None:
        """Create the engine and verify connectivity."""
        if self._engine is not None:
            return

        engine = self._create_engine()
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except BaseException:
            # Includes cancellation by the per-attempt timeout
            await engine.dispose()
            raise

        self._engine = engine
        logger.info(f"Connected to database {mask_url_credentials(self.database_url)}")

    async def ping(self) -> None:
        """
        Run a trivial query against the live engine.

        Raises:
            HealthCheckException: If no engine is connected or the query misbehaves
        """
        if self._engine is None:
            raise HealthCheckException("Database engine is not connected", check_name=self.name)

        async with self._engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            if result.scalar() != 1:
                raise HealthCheckException("Unexpected ping result", check_name=self.name)

    async def close(self) -> None:
        """Dispose the engine and its pooled connections."""
        if self._engine is None:
            return
        engine, self._engine = self._engine, None
        await engine.dispose()
        logger.info("Database connection closed")
