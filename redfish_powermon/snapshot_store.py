"""Shared snapshot slot between the sensor poller and the dashboard."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from types import MappingProxyType
from typing import AsyncIterator, Mapping

from .models import SensorReading, Snapshot

LOGGER = logging.getLogger(__name__)

EMPTY_SNAPSHOT: Snapshot = MappingProxyType({})


class ReadWriteLock:
    """Writer-preferring reader/writer lock for coroutines.

    Any number of readers may hold the lock together. A writer holds it
    alone, and once a writer is waiting no new reader is admitted.
    """

    def __init__(self) -> None:
        self._condition = asyncio.Condition()
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writer_active(self) -> bool:
        return self._writer_active

    @contextlib.asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._condition:
            await self._condition.wait_for(
                lambda: not self._writer_active and not self._writers_waiting
            )
            self._readers += 1
        try:
            yield
        finally:
            async with self._condition:
                self._readers -= 1
                if not self._readers:
                    self._condition.notify_all()

    @contextlib.asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._condition:
            self._writers_waiting += 1
            try:
                await self._condition.wait_for(
                    lambda: not self._writer_active and not self._readers
                )
            except BaseException:
                # readers parked behind this writer must be re-checked
                self._writers_waiting -= 1
                self._condition.notify_all()
                raise
            self._writers_waiting -= 1
            self._writer_active = True
        try:
            yield
        finally:
            async with self._condition:
                self._writer_active = False
                self._condition.notify_all()


class SnapshotStore:
    """Holds the most recently completed poll cycle.

    The stored value is an immutable mapping. ``replace`` swaps the whole
    value under the write lock; it is never mutated in place, so a reader
    only ever sees one cycle's data.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._snapshot: Snapshot = EMPTY_SNAPSHOT
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def current(self) -> Snapshot:
        return self._snapshot

    @contextlib.asynccontextmanager
    async def read(self) -> AsyncIterator[Snapshot]:
        async with self._lock.read():
            yield self._snapshot

    async def replace(self, entries: Mapping[str, SensorReading]) -> Snapshot:
        snapshot: Snapshot = MappingProxyType(dict(entries))
        async with self._lock.write():
            self._snapshot = snapshot
            self._version += 1
        LOGGER.debug(
            "Installed snapshot v%d with %d controller(s)", self._version, len(snapshot)
        )
        return snapshot
