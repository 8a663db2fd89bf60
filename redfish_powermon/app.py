"""Main application entry-point for redfish-powermon."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import aiohttp

from .config import PowerMonConfig, load_config
from .dashboard import Dashboard, DashboardTerminal
from .logging import configure_logging
from .poller import SensorPoller
from .session import SessionAcquisitionError, acquire_tokens, create_client_session
from .snapshot_store import SnapshotStore
from .terminal import TerminalSession, TerminalSetupError

LOGGER = logging.getLogger(__name__)


class PowerMonApp:
    """Coordinates startup and shutdown.

    Startup logs into every controller, then runs the sensor poller as a
    background task next to the dashboard. The two only share the
    snapshot store. When the dashboard returns, the poller is stopped and
    the HTTP session closed.

    The HTTP session and terminal factories can be injected for testing.
    """

    def __init__(
        self,
        config: Optional[PowerMonConfig] = None,
        *,
        session_factory: Optional[Callable[[], aiohttp.ClientSession]] = None,
        terminal_factory: Optional[Callable[[], DashboardTerminal]] = None,
    ) -> None:
        self._config = config or load_config()
        self._session_factory = session_factory or self._default_session
        self._terminal_factory = terminal_factory or TerminalSession
        self._store = SnapshotStore()
        self._poller: Optional[SensorPoller] = None
        self._dashboard: Optional[Dashboard] = None
        self._tokens: list[str] = []

    @property
    def store(self) -> SnapshotStore:
        return self._store

    @property
    def poller(self) -> Optional[SensorPoller]:
        return self._poller

    @property
    def tokens(self) -> list[str]:
        return list(self._tokens)

    def _default_session(self) -> aiohttp.ClientSession:
        controllers = self._config.controllers
        return create_client_session(
            verify_tls=controllers.verify_tls,
            request_timeout=controllers.request_timeout_seconds,
        )

    async def run(self) -> None:
        """Log in, then poll and render until the quit key is pressed."""

        config = self._config
        addresses = config.addresses
        LOGGER.info(
            "redfish-powermon starting for %d controller(s): %s",
            len(addresses),
            ", ".join(addresses),
        )

        session = self._session_factory()
        try:
            self._tokens = await acquire_tokens(
                session,
                addresses,
                username=config.credentials.username,
                password=config.credentials.password,
                scheme=config.controllers.scheme,
            )

            self._poller = SensorPoller(
                session,
                addresses,
                self._tokens,
                self._store,
                interval_seconds=config.polling.interval_seconds,
                scheme=config.controllers.scheme,
            )
            self._dashboard = Dashboard(
                addresses,
                self._store,
                tick_seconds=config.ui.tick_seconds,
                quit_key=config.ui.quit_key,
            )

            self._poller.start()
            try:
                await self._dashboard.run(self._terminal_factory())
            finally:
                LOGGER.info(
                    "Stopping sensor poller after %d cycle(s)", self._poller.cycles
                )
                await self._poller.stop()
        finally:
            await session.close()

    @classmethod
    def start(cls, config: Optional[PowerMonConfig] = None) -> None:
        instance = cls(config=config)
        # the dashboard owns the terminal, so records only go to the log file
        configure_logging(
            instance._config.logging.level,
            log_path=instance._config.logging.path,
            log_network=instance._config.logging.log_network,
            console=False,
        )
        try:
            asyncio.run(instance.run())
        except KeyboardInterrupt:
            LOGGER.info("redfish-powermon received shutdown signal")
        except (SessionAcquisitionError, TerminalSetupError) as exc:
            LOGGER.error("Startup failed: %s", exc)
            raise
