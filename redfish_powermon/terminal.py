"""Scoped ownership of the interactive terminal."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import termios
from typing import Any, Optional, TextIO

from rich.console import Console, RenderableType
from rich.live import Live

LOGGER = logging.getLogger(__name__)


class TerminalSetupError(RuntimeError):
    """Raised when the terminal cannot be switched into dashboard mode."""


class TerminalSession:
    """Alternate screen plus unbuffered key input, released exactly once.

    Entering saves the stdin termios attributes, turns off canonical mode
    and echo, and starts a :class:`rich.live.Live` on the alternate screen.
    Leaving undoes both on every exit path; repeated exits are no-ops.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        *,
        stdin: Optional[TextIO] = None,
    ) -> None:
        self._console = console or Console()
        self._stdin = stdin or sys.stdin
        self._fd: Optional[int] = None
        self._saved_attrs: Optional[list[Any]] = None
        self._live: Optional[Live] = None
        self._active = False
        self._eof = False

    @property
    def active(self) -> bool:
        return self._active

    def __enter__(self) -> "TerminalSession":
        if self._active:
            raise TerminalSetupError("terminal session already active")

        try:
            fd = self._stdin.fileno()
        except (AttributeError, OSError, ValueError) as exc:
            raise TerminalSetupError("standard input has no file descriptor") from exc
        if not os.isatty(fd):
            raise TerminalSetupError("standard input is not a terminal")

        try:
            saved = termios.tcgetattr(fd)
            attrs = termios.tcgetattr(fd)
            attrs[3] &= ~(termios.ICANON | termios.ECHO)
            attrs[6][termios.VMIN] = 0
            attrs[6][termios.VTIME] = 0
            termios.tcsetattr(fd, termios.TCSANOW, attrs)
        except termios.error as exc:
            raise TerminalSetupError(f"cannot switch terminal mode: {exc}") from exc

        self._fd = fd
        self._saved_attrs = saved
        self._eof = False

        live = Live(console=self._console, screen=True, auto_refresh=False)
        try:
            live.start()
        except BaseException:
            self._restore_input()
            raise

        self._live = live
        self._active = True
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if not self._active:
            return
        self._active = False
        live, self._live = self._live, None
        try:
            if live is not None:
                live.stop()
        finally:
            self._restore_input()

    def _restore_input(self) -> None:
        fd, saved = self._fd, self._saved_attrs
        self._fd = None
        self._saved_attrs = None
        if fd is None or saved is None:
            return
        try:
            termios.tcsetattr(fd, termios.TCSANOW, saved)
        except termios.error as exc:
            LOGGER.warning("Failed to restore terminal attributes: %s", exc)

    def update(self, renderable: RenderableType) -> None:
        if self._live is None:
            raise RuntimeError("terminal session is not active")
        self._live.update(renderable, refresh=True)

    async def read_key(self, timeout: float) -> Optional[str]:
        """Wait up to ``timeout`` seconds for one keypress.

        Returns the first character typed, or ``None`` when the wait
        expired. The event loop stays free while waiting.
        """
        timeout = max(timeout, 0.0)
        if self._fd is None or self._eof:
            await asyncio.sleep(timeout)
            return None

        loop = asyncio.get_running_loop()
        readable: asyncio.Future[None] = loop.create_future()

        def _on_readable() -> None:
            if not readable.done():
                readable.set_result(None)

        fd = self._fd
        loop.add_reader(fd, _on_readable)
        try:
            await asyncio.wait_for(readable, timeout=timeout)
        except asyncio.TimeoutError:
            return None
        finally:
            loop.remove_reader(fd)

        data = os.read(fd, 64)
        if not data:
            self._eof = True
            return None
        return data.decode("utf-8", errors="ignore")[:1] or None
