"""Benchmark history module for benchwatch.

This module provides the data model and the append-only store for
benchmark results tracked across commits.

Example:
    >>> from benchwatch.benchmarks import HistoryStore, JSONFileStore
    >>>
    >>> store = HistoryStore(JSONFileStore("dev/bench/data.js"))
    >>> result = await store.append("Benchmark", entry)
    >>> latest = await store.latest("Benchmark", "go", "BenchmarkThroughput")
"""

from __future__ import annotations

from benchwatch.benchmarks.history import AppendResult, AppendStatus, HistoryStore
from benchwatch.benchmarks.models import (
    BenchmarkRecord,
    CommitInfo,
    Entry,
    HistoryDocument,
    Person,
    SeriesPoint,
    comparable_unit,
)
from benchwatch.benchmarks.storage import JSONFileStore, MemoryStore, StorageProtocol

__all__ = [
    "AppendResult",
    "AppendStatus",
    "BenchmarkRecord",
    "CommitInfo",
    "Entry",
    "HistoryDocument",
    "HistoryStore",
    "JSONFileStore",
    "MemoryStore",
    "Person",
    "SeriesPoint",
    "StorageProtocol",
    "comparable_unit",
]
