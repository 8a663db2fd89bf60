"""Background sensor poller.

One cycle requests the threshold sensor list from every controller, keeps
the controllers that answered with a usable payload, and installs the
result as a fresh snapshot. Cycles are scheduled from their start time, so
a slow cycle eats into the next wait instead of pushing the schedule back.

Design principles:
- A failing controller only loses its own entry for the cycle
- The snapshot is replaced whole, never patched
- Graceful cancellation on shutdown
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import time
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

import aiohttp

from . import constants
from .models import (
    METRIC_FIELDS,
    PollFailure,
    PollOutcome,
    PollSuccess,
    SensorReading,
    Snapshot,
)
from .session import build_url
from .snapshot_store import SnapshotStore

LOGGER = logging.getLogger(__name__)


class SensorPayloadError(ValueError):
    """Raised when a sensor response does not carry a ``Sensors`` list."""


def _reading_value(value: Any) -> Optional[int]:
    # bool is an int subclass; floats and negatives are not readings either
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def parse_sensor_payload(payload: Any) -> SensorReading:
    """Build a SensorReading from a ``ThresholdSensors`` response body.

    Only exact matches against :data:`METRIC_FIELDS` are used. A matched
    sensor without a non-negative integer ``Reading`` leaves the metric
    absent rather than zero.
    """

    if not isinstance(payload, dict):
        raise SensorPayloadError("response body is not an object")
    sensors = payload.get("Sensors")
    if not isinstance(sensors, list):
        raise SensorPayloadError("response has no 'Sensors' list")

    values: Dict[str, Optional[int]] = {}
    for sensor in sensors:
        if not isinstance(sensor, dict):
            continue
        name = sensor.get("Name")
        field_name = METRIC_FIELDS.get(name) if isinstance(name, str) else None
        if field_name is None:
            continue
        values[field_name] = _reading_value(sensor.get("Reading"))

    return replace(SensorReading(), **values)


class SensorPoller:
    """Polls every controller on a fixed interval and feeds the snapshot store."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        addresses: Sequence[str],
        tokens: Sequence[str],
        store: SnapshotStore,
        *,
        interval_seconds: float = constants.DEFAULT_POLL_INTERVAL_SECONDS,
        scheme: str = constants.DEFAULT_SCHEME,
        stop_event: Optional[asyncio.Event] = None,
        monotonic: Callable[[], float] = time.monotonic,
        wait: Optional[Callable[[float], Awaitable[bool]]] = None,
    ) -> None:
        """Initialize the poller.

        Args:
            session: HTTP session shared with the login step
            addresses: Controller addresses, in display order
            tokens: Auth tokens parallel to ``addresses``
            store: Snapshot slot replaced after every cycle
            interval_seconds: Seconds between cycle starts
            scheme: URL scheme used to reach the controllers
            stop_event: Event signaling shutdown
            monotonic: Clock used to measure cycle duration
            wait: Coroutine waiting up to the given delay; returns True when
                the poller should stop. Defaults to waiting on ``stop_event``.
        """
        self._session = session
        self._addresses = tuple(addresses)
        self._tokens = tuple(tokens)
        self._store = store
        self._interval = interval_seconds if interval_seconds > 0 else 1.0
        self._scheme = scheme
        self._stop_event = stop_event or asyncio.Event()
        self._monotonic = monotonic
        self._wait = wait or self._wait_for_stop
        self._task: Optional[asyncio.Task[None]] = None
        self._last_outcomes: tuple[PollOutcome, ...] = ()
        self._cycles = 0

    @property
    def cycles(self) -> int:
        return self._cycles

    @property
    def last_outcomes(self) -> tuple[PollOutcome, ...]:
        return self._last_outcomes

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background polling task."""
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Signal shutdown and wait for the polling task to finish."""
        self._stop_event.set()
        if self._task is None:
            return

        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def run(self) -> None:
        """Poll until the stop event is set."""
        while not self._stop_event.is_set():
            started = self._monotonic()
            await self.poll_cycle()

            elapsed = self._monotonic() - started
            delay = max(self._interval - elapsed, 0.0)
            if await self._wait(delay):
                break

    async def poll_cycle(self) -> Snapshot:
        """Poll every controller once and install the resulting snapshot."""
        outcomes = []
        for address, token in zip(self._addresses, self._tokens):
            outcomes.append(await self.poll_address(address, token))

        entries = {
            outcome.address: outcome.reading
            for outcome in outcomes
            if isinstance(outcome, PollSuccess)
        }
        snapshot = await self._store.replace(entries)

        self._last_outcomes = tuple(outcomes)
        self._cycles += 1
        return snapshot

    async def poll_address(self, address: str, token: str) -> PollOutcome:
        """Fetch and parse one controller's sensor list."""
        url = build_url(self._scheme, address, constants.THRESHOLD_SENSORS_PATH)
        try:
            async with self._session.get(
                url, headers={constants.AUTH_TOKEN_HEADER: token}
            ) as response:
                body = await response.read()
            reading = parse_sensor_payload(json.loads(body))
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            return self._failure(address, "request timed out")
        except aiohttp.ClientError as exc:
            return self._failure(address, f"request failed: {exc}")
        except ValueError as exc:
            return self._failure(address, f"unusable response: {exc}")
        except Exception as exc:  # e.g. RecursionError on deeply nested JSON
            return self._failure(address, f"unusable response: {exc!r}")

        return PollSuccess(address=address, reading=reading)

    def _failure(self, address: str, reason: str) -> PollFailure:
        LOGGER.debug("Skipping %s this cycle: %s", address, reason)
        return PollFailure(address=address, reason=reason)

    async def _wait_for_stop(self, delay: float) -> bool:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
            return True  # Stop event was set
        except asyncio.TimeoutError:
            return False
