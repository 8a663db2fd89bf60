"""Render loop drawing the latest snapshot once per tick."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional, Protocol, Sequence

from rich.console import RenderableType

from . import constants
from .render import build_layout
from .snapshot_store import SnapshotStore

LOGGER = logging.getLogger(__name__)


class DashboardTerminal(Protocol):
    """What the render loop needs from the terminal."""

    def __enter__(self) -> Any:
        ...

    def __exit__(self, *exc_info: Any) -> Any:
        ...

    def update(self, renderable: RenderableType) -> None:
        ...

    async def read_key(self, timeout: float) -> Optional[str]:
        ...


class Dashboard:
    """Draws one panel per controller until the quit key is pressed.

    Each iteration draws the current snapshot and then waits for whichever
    comes first: a keypress or the rest of the tick. The tick marker only
    advances once a full tick has elapsed, so other keys trigger a redraw
    without stretching the refresh schedule.
    """

    def __init__(
        self,
        addresses: Sequence[str],
        store: SnapshotStore,
        *,
        tick_seconds: float = constants.DEFAULT_TICK_SECONDS,
        quit_key: str = constants.DEFAULT_QUIT_KEY,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._addresses = tuple(addresses)
        self._store = store
        self._tick = tick_seconds if tick_seconds > 0 else constants.DEFAULT_TICK_SECONDS
        self._quit_key = quit_key
        self._monotonic = monotonic
        self._frames = 0

    @property
    def frames(self) -> int:
        return self._frames

    async def run(self, terminal: DashboardTerminal) -> None:
        """Own ``terminal`` for the lifetime of the loop."""
        with terminal:
            last_tick = self._monotonic()
            while True:
                await self.draw(terminal)

                remaining = max(self._tick - (self._monotonic() - last_tick), 0.0)
                key = await terminal.read_key(remaining)
                if key == self._quit_key:
                    LOGGER.info("Quit key pressed after %d frame(s)", self._frames)
                    break

                if self._monotonic() - last_tick >= self._tick:
                    last_tick = self._monotonic()

    async def draw(self, terminal: DashboardTerminal) -> None:
        async with self._store.read() as snapshot:
            layout = build_layout(self._addresses, snapshot)
        terminal.update(layout)
        self._frames += 1
