"""
Supervised connection to a required dependency.

State machine::

    IDLE -> ATTEMPTING -> CONNECTED -> DISCONNECTING -> DISCONNECTED
                       \\-> FAILED       \\-> DISCONNECTED (connection lost)
                                              \\-> CONNECTED (connection restored)

Attempts are retried with a fixed delay up to a bounded count. Exhausting
the budget is fatal: the supervisor moves to FAILED and raises
``DependencyConnectionExhaustedException`` so the process can exit instead
of masking a permanently misconfigured target.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol

from basketball_api.config.settings import ServiceSettings
from basketball_api.exceptions import (
    DependencyConnectionException,
    DependencyConnectionExhaustedException,
)
from basketball_api.logging_config import get_logger
from basketball_api.resilience import (
    AttemptEvent,
    AttemptListener,
    AttemptOutcome,
    RetryConfig,
    RetryExhaustedError,
    RetryManager,
)

logger = get_logger(__name__)


class DependencyConnector(Protocol):
    """What the supervisor needs from a dependency client."""

    name: str

    async def connect(self) -> None: ...

    async def ping(self) -> None: ...

    async def close(self) -> None: ...


class ConnectionState(str, Enum):
    """Externally reported dependency connection state."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


class SupervisorState(str, Enum):
    """Internal lifecycle state of the supervisor."""

    IDLE = "idle"
    ATTEMPTING = "attempting"
    CONNECTED = "connected"
    FAILED = "failed"
    DISCONNECTING = "disconnecting"
    DISCONNECTED = "disconnected"

    @property
    def connection_state(self) -> ConnectionState:
        return _CONNECTION_STATES[self]


_CONNECTION_STATES = {
    SupervisorState.IDLE: ConnectionState.DISCONNECTED,
    SupervisorState.ATTEMPTING: ConnectionState.CONNECTING,
    SupervisorState.CONNECTED: ConnectionState.CONNECTED,
    SupervisorState.FAILED: ConnectionState.DISCONNECTED,
    SupervisorState.DISCONNECTING: ConnectionState.DISCONNECTING,
    SupervisorState.DISCONNECTED: ConnectionState.DISCONNECTED,
}


@dataclass
class ConnectionAttemptState:
    """Progress of the active attempt sequence."""

    attempt_number: int
    max_attempts: int
    last_error: Optional[BaseException] = None
    resolved: bool = False


class ConnectionSupervisor:
    """
    Establishes and tracks the connection to one dependency.

    At most one attempt sequence runs for the lifetime of a supervisor:
    ``start`` is idempotent and every ``connect`` call awaits the same task.
    """

    def __init__(
        self,
        connector: DependencyConnector,
        max_attempts: int = 10,
        retry_delay: float = 5.0,
        attempt_timeout: Optional[float] = 5.0,
        listeners: Optional[List[AttemptListener]] = None,
    ):
        self.connector = connector
        self.retry_config = RetryConfig(
            max_attempts=max_attempts,
            delay=retry_delay,
            attempt_timeout=attempt_timeout,
        )
        self.attempts: List[AttemptEvent] = []
        self._listeners: List[AttemptListener] = list(listeners or [])
        self._state = SupervisorState.IDLE
        self._attempt_state: Optional[ConnectionAttemptState] = None
        self._last_error: Optional[BaseException] = None
        self._task: Optional[asyncio.Task] = None
        self._connection_lost = False

        on_disconnect: Optional[Callable] = getattr(connector, "on_disconnect", None)
        if on_disconnect is not None:
            on_disconnect(self.mark_disconnected)

        on_reconnect: Optional[Callable] = getattr(connector, "on_reconnect", None)
        if on_reconnect is not None:
            on_reconnect(self.mark_reconnected)

    @classmethod
    def from_settings(
        cls, connector: DependencyConnector, settings: ServiceSettings
    ) -> "ConnectionSupervisor":
        return cls(
            connector,
            max_attempts=settings.db_connect_max_attempts,
            retry_delay=settings.db_connect_retry_delay,
            attempt_timeout=settings.db_connect_timeout,
        )

    # --- State ---

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def connection_state(self) -> ConnectionState:
        return self._state.connection_state

    @property
    def is_connected(self) -> bool:
        return self._state is SupervisorState.CONNECTED

    @property
    def connection_lost(self) -> bool:
        """True after an established connection dropped and before it is restored or closed."""
        return self._connection_lost

    @property
    def attempt_state(self) -> Optional[ConnectionAttemptState]:
        return self._attempt_state

    @property
    def last_error(self) -> Optional[BaseException]:
        return self._last_error

    @property
    def name(self) -> str:
        return self.connector.name

    def add_listener(self, listener: AttemptListener) -> None:
        self._listeners.append(listener)

    def attempt_count(self) -> int:
        """Number of attempts started so far."""
        return sum(1 for event in self.attempts if event.outcome is AttemptOutcome.STARTED)

    # --- Lifecycle ---

    def start(self) -> asyncio.Task:
        """Start the attempt sequence in the background, once."""
        if self._task is None:
            self._task = asyncio.create_task(
                self._run(), name=f"connect-{self.connector.name}"
            )
            self._task.add_done_callback(self._on_task_done)
        return self._task

    async def connect(self) -> None:
        """
        Wait until the dependency is connected.

        Raises:
            DependencyConnectionExhaustedException: If every attempt failed
        """
        # Shield so a cancelled caller does not abort the shared sequence
        await asyncio.shield(self.start())

    async def _run(self) -> None:
        self._state = SupervisorState.ATTEMPTING
        self._attempt_state = ConnectionAttemptState(
            attempt_number=1, max_attempts=self.retry_config.max_attempts
        )
        manager = RetryManager(
            self.connector.name, self.retry_config, listeners=[self._record_attempt]
        )

        try:
            await manager.execute(self.connector.connect)
        except RetryExhaustedError as e:
            self._state = SupervisorState.FAILED
            self._last_error = e.last_exception
            self._attempt_state = None
            logger.critical(
                f"Max retries reached. Unable to connect to {self.connector.name} "
                f"after {e.attempts} attempts"
            )
            raise DependencyConnectionExhaustedException(
                self.connector.name, e.attempts, e.last_exception
            ) from e.last_exception

        self._state = SupervisorState.CONNECTED
        self._last_error = None
        self._attempt_state = None
        logger.info(f"Successfully connected to {self.connector.name}")

    def _record_attempt(self, event: AttemptEvent) -> None:
        self.attempts.append(event)

        if self._attempt_state is not None:
            self._attempt_state.attempt_number = event.attempt_number
            if event.outcome is AttemptOutcome.FAILED:
                self._attempt_state.last_error = event.error
            elif event.outcome is AttemptOutcome.SUCCEEDED:
                self._attempt_state.resolved = True

        if event.outcome is AttemptOutcome.STARTED:
            logger.info(
                f"Attempting to connect to {self.connector.name} "
                f"(attempt {event.attempt_number}/{event.max_attempts})..."
            )
        elif event.outcome is AttemptOutcome.FAILED:
            self._last_error = event.error
            failure = DependencyConnectionException(
                self.connector.name, event.attempt_number, event.max_attempts, event.error
            )
            logger.error(failure.message, extra={"error_data": failure.to_dict()})

        for listener in self._listeners:
            listener(event)

    def _on_task_done(self, task: asyncio.Task) -> None:
        # Retrieve the exception so an unobserved failure is not reported twice
        if not task.cancelled():
            task.exception()

    def mark_disconnected(self, error: Optional[BaseException] = None) -> None:
        """Record that an established connection was lost."""
        if self._state is not SupervisorState.CONNECTED:
            return
        self._state = SupervisorState.DISCONNECTED
        self._connection_lost = True
        self._last_error = error
        logger.warning(f"{self.connector.name} disconnected")

    def mark_reconnected(self) -> None:
        """
        Record that a lost connection works again.

        Called when the connector's pool opens a fresh connection or a live
        health check succeeds. Only a connection lost after CONNECTED is restored;
        a closed or failed supervisor stays where it is.
        """
        if not self._connection_lost or self._state is not SupervisorState.DISCONNECTED:
            return
        self._state = SupervisorState.CONNECTED
        self._connection_lost = False
        self._last_error = None
        logger.info(f"{self.connector.name} connection restored")

    async def close(self) -> None:
        """Stop any pending attempts and close an established connection."""
        self._connection_lost = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._state = SupervisorState.DISCONNECTED
            self._attempt_state = None
            logger.info(f"Pending {self.connector.name} connection attempts cancelled")
            return

        if self._state in (SupervisorState.CONNECTED, SupervisorState.DISCONNECTED):
            self._state = SupervisorState.DISCONNECTING
            try:
                await self.connector.close()
            finally:
                self._state = SupervisorState.DISCONNECTED
            logger.info(f"{self.connector.name} connection closed")
