"""Append-only history store for benchmark entries.

This module provides HistoryStore, the owner of the history document.
It serializes appends per group, makes the idempotency check and the
append a single critical section, and serves series queries from
immutable snapshots.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from benchwatch.benchmarks.models import HistoryDocument, SeriesPoint
from benchwatch.benchmarks.storage import JSONFileStore, StorageProtocol
from benchwatch.core.exceptions import StoreTimeoutError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator

    from benchwatch.benchmarks.models import BenchmarkRecord, Entry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AppendStatus(str, Enum):
    """Outcome of an append."""

    APPENDED = "appended"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class AppendResult:
    """Result of HistoryStore.append.

    A DUPLICATE status is the successful idempotent outcome: an entry with
    the same commit id and tool already existed and nothing was written.

    Attributes:
        status: Whether the entry was appended or already present.
        position: Index of the entry within its group.
        entry: The stored entry (the existing one for duplicates).
    """

    status: AppendStatus
    position: int
    entry: Entry

    @property
    def appended(self) -> bool:
        """Whether this call wrote a new entry."""
        return self.status is AppendStatus.APPENDED


class HistoryStore:
    """Owner of the benchmark history document.

    Append is the only mutation. The in-memory document is replaced only
    after the backend has saved the new version, so a failed, timed-out or
    cancelled append leaves the store exactly as it was.

    Example:
        >>> store = HistoryStore(JSONFileStore("dev/bench/data.js"))
        >>> result = await store.append("Benchmark", entry)
        >>> points = list(await store.query("Benchmark", "go", "BenchmarkThroughput", max_points=10))
    """

    def __init__(
        self,
        storage: StorageProtocol | None = None,
        io_timeout: float | None = 30.0,
        repo_url: str = "",
    ) -> None:
        """Initialize with a storage backend.

        Args:
            storage: Storage backend (default: JSONFileStore).
            io_timeout: Bound in seconds on each backend call (None = unbounded).
            repo_url: Repository URL recorded when the stored document has none.
        """
        self._storage: StorageProtocol = storage or JSONFileStore()
        self._io_timeout = io_timeout
        self._repo_url = repo_url
        self._document: HistoryDocument | None = None
        self._load_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._group_locks: dict[str, asyncio.Lock] = {}

    async def _bounded(self, operation: Awaitable[T], action: str) -> T:
        try:
            return await asyncio.wait_for(operation, timeout=self._io_timeout)
        except asyncio.TimeoutError as e:
            msg = f"{action} did not complete within {self._io_timeout}s"
            raise StoreTimeoutError(msg) from e

    def _group_lock(self, group_key: str) -> asyncio.Lock:
        return self._group_locks.setdefault(group_key, asyncio.Lock())

    async def open(self) -> HistoryDocument:
        """Load the document from the backend once.

        Returns:
            The current document snapshot.

        Raises:
            PersistenceError: If the backend cannot be read.
            StoreTimeoutError: If loading exceeds the I/O bound.
        """
        if self._document is None:
            async with self._load_lock:
                if self._document is None:
                    document = await self._bounded(self._storage.load(), "Loading history")
                    if not document.repo_url and self._repo_url:
                        document = document.model_copy(update={"repo_url": self._repo_url})
                    self._document = document
                    logger.debug(f"History opened with groups: {sorted(document.entries)}")
        return self._document

    async def snapshot(self) -> HistoryDocument:
        """Get the current immutable document."""
        return await self.open()

    async def group_keys(self) -> list[str]:
        """List the group keys present in the document."""
        document = await self.open()
        return list(document.entries)

    async def names(self, group_key: str, tool: str | None = None) -> list[str]:
        """List benchmark names of a group in first-seen order.

        Args:
            group_key: Group to inspect.
            tool: Restrict to entries of one tool (None for all).

        Returns:
            Unique benchmark names.
        """
        document = await self.open()
        seen: dict[str, None] = {}
        for entry in document.group(group_key):
            if tool is None or entry.tool == tool:
                for bench in entry.benches:
                    seen.setdefault(bench.name, None)
        return list(seen)

    async def find(self, group_key: str, commit_id: str, tool: str) -> int | None:
        """Find the position of the entry for (commit id, tool).

        Returns:
            Index within the group, or None if absent.
        """
        document = await self.open()
        return _find(document, group_key, commit_id, tool)

    async def append(self, group_key: str, entry: Entry) -> AppendResult:
        """Append an entry to a group unless it is already present.

        The existence check and the write form one critical section per
        group. Appends to different groups only contend for the final
        whole-document save.

        Args:
            group_key: Group to append to.
            entry: Entry to append.

        Returns:
            AppendResult with APPENDED or DUPLICATE status. An entry dated
            before the current lastUpdate is stored with that date instead.

        Raises:
            PersistenceError: If the backend write fails (retryable).
            StoreTimeoutError: If the write exceeds the I/O bound (retryable).
        """
        await self.open()
        async with self._group_lock(group_key):
            existing = self._existing(group_key, entry.commit.id, entry.tool)
            if existing is not None:
                return existing
            return await self._write(group_key, entry)

    async def append_with(
        self,
        group_key: str,
        commit_id: str,
        tool: str,
        build: Callable[[], Awaitable[Entry | None]],
    ) -> AppendResult | None:
        """Build and append an entry inside the group's critical section.

        ``build`` runs only when no entry for (commit id, tool) exists yet,
        while the group is locked, so reads it makes through ``query`` or
        ``latest`` see exactly the entries the new one will follow.
        Exceptions raised by ``build`` propagate and nothing is written.

        Args:
            group_key: Group to append to.
            commit_id: Commit id of the entry to build.
            tool: Tool of the entry to build.
            build: Coroutine function returning the entry, or None to skip.

        Returns:
            AppendResult with APPENDED or DUPLICATE status, or None if
            ``build`` returned None.

        Raises:
            ValueError: If the built entry has another commit id or tool.
            PersistenceError: If the backend write fails (retryable).
            StoreTimeoutError: If the write exceeds the I/O bound (retryable).
        """
        await self.open()
        async with self._group_lock(group_key):
            existing = self._existing(group_key, commit_id, tool)
            if existing is not None:
                return existing

            entry = await build()
            if entry is None:
                logger.debug(f"Nothing to append for {commit_id} ({tool}) in '{group_key}'")
                return None
            if entry.commit.id != commit_id or entry.tool != tool:
                msg = f"Built entry {entry.commit.id} ({entry.tool}) does not match {commit_id} ({tool})"
                raise ValueError(msg)
            return await self._write(group_key, entry)

    def _existing(self, group_key: str, commit_id: str, tool: str) -> AppendResult | None:
        document = self._current()
        position = _find(document, group_key, commit_id, tool)
        if position is None:
            return None
        logger.debug(f"Entry for {commit_id} ({tool}) already in '{group_key}' at {position}")
        return AppendResult(AppendStatus.DUPLICATE, position, document.group(group_key)[position])

    async def _write(self, group_key: str, entry: Entry) -> AppendResult:
        # Caller holds the group lock
        async with self._write_lock:
            current = self._current()
            if entry.date < current.last_update:
                # Keep lastUpdate monotonic and equal to the newest entry's date
                entry = entry.model_copy(update={"date": current.last_update})
            updated = current.with_entry(group_key, entry)
            await self._bounded(self._storage.save(updated), f"Saving '{group_key}'")
            # Commit point
            self._document = updated

        position = len(updated.group(group_key)) - 1
        logger.info(
            f"Appended {len(entry.benches)} benches for {entry.commit.id} ({entry.tool}) "
            f"to '{group_key}' at {position}"
        )
        return AppendResult(AppendStatus.APPENDED, position, entry)

    async def query(
        self,
        group_key: str,
        tool: str,
        name: str,
        max_points: int | None = None,
        *,
        before: int | None = None,
    ) -> Iterator[SeriesPoint]:
        """Query the series of one benchmark.

        The returned iterator walks a snapshot taken at call time; call
        again to recompute.

        Args:
            group_key: Group to read.
            tool: Producing tool.
            name: Benchmark name.
            max_points: Keep only the most recent points (None for all).
            before: Only consider entries before this group position.

        Returns:
            Iterator of points in ascending date order.
        """
        document = await self.open()
        entries = document.group(group_key)
        if before is not None:
            entries = entries[:before]
        return _iter_series(entries, tool, name, max_points)

    async def latest(self, group_key: str, tool: str, name: str) -> BenchmarkRecord | None:
        """Get the most recent record of a series.

        Returns:
            The record, or None if the series has no entries yet.
        """
        document = await self.open()
        latest: BenchmarkRecord | None = None
        for entry in _by_date(document.group(group_key)):
            if entry.tool == tool:
                record = entry.record(name)
                if record is not None:
                    latest = record
        return latest

    def _current(self) -> HistoryDocument:
        if self._document is None:
            msg = "HistoryStore used before open()"
            raise RuntimeError(msg)
        return self._document

    def stats(self) -> dict[str, Any]:
        """Summarize the loaded document for diagnostics."""
        document = self._document or HistoryDocument()
        return {
            "last_update": document.last_update,
            "groups": {key: len(entries) for key, entries in document.entries.items()},
        }


def _find(document: HistoryDocument, group_key: str, commit_id: str, tool: str) -> int | None:
    for position, entry in enumerate(document.group(group_key)):
        if entry.commit.id == commit_id and entry.tool == tool:
            return position
    return None


def _by_date(entries: tuple[Entry, ...]) -> list[Entry]:
    # Stable: entries sharing a date keep append order
    return sorted(entries, key=lambda e: e.date)


def _iter_series(
    entries: tuple[Entry, ...],
    tool: str,
    name: str,
    max_points: int | None,
) -> Iterator[SeriesPoint]:
    if max_points is not None and max_points <= 0:
        return
    window: deque[SeriesPoint] = deque(maxlen=max_points)
    for entry in _by_date(entries):
        if entry.tool != tool:
            continue
        record = entry.record(name)
        if record is not None:
            window.append(
                SeriesPoint(
                    date=entry.date,
                    value=record.value,
                    unit=record.unit,
                    commit_id=entry.commit.id,
                    extra=record.extra,
                )
            )
    yield from window
