"""Models for the benchmark history document.

This module provides the pydantic models persisted by the history store:
records, commit provenance, entries and the root document. Field aliases
match the on-disk format (``lastUpdate``, ``repoUrl``).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def comparable_unit(unit: str) -> str:
    """Return the part of a unit string that must stay stable in a series.

    Go primary records carry a composite unit such as
    ``"ns/op\\t0 B/op\\t0 allocs/op"``; only the leading segment names the
    scale of ``value``.

    Args:
        unit: Unit string as stored.

    Returns:
        The first tab-separated segment, stripped.
    """
    return unit.split("\t", 1)[0].strip()


class BenchmarkRecord(BaseModel):
    """One measured metric from one run.

    Attributes:
        name: Benchmark name, unique within a run and tool.
        value: Measured value (finite).
        unit: Free-form unit, stable across a series.
        range: Optional spread indicator (e.g. stddev).
        extra: Optional free-form metadata (sample count, procs).

    Example:
        >>> record = BenchmarkRecord(name="BenchmarkThroughput - ns/op", value=528.2, unit="ns/op")
        >>> record.comparable_unit
        'ns/op'
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Benchmark name")
    value: float = Field(..., description="Measured value")
    unit: str = Field(..., description="Unit of the value")
    range: str | None = Field(default=None, description="Optional spread indicator")
    extra: str | None = Field(default=None, description="Optional free-form metadata")

    @field_validator("value")
    @classmethod
    def _validate_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            msg = f"value must be finite, got {value}"
            raise ValueError(msg)
        return value

    @property
    def comparable_unit(self) -> str:
        """Unit segment used for series continuity checks."""
        return comparable_unit(self.unit)


class Person(BaseModel):
    """Commit author or committer."""

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str = Field(default="", description="Display name")
    email: str = Field(default="", description="Email address")
    username: str | None = Field(default=None, description="VCS handle")


class CommitInfo(BaseModel):
    """Provenance of a benchmark run.

    Unknown keys supplied by the CI trigger (``distinct``, ``tree_id``, ...)
    are kept so that a load/save cycle never drops data.

    Attributes:
        id: Commit hash, the primary identity of an entry.
        message: Commit message.
        timestamp: ISO-8601 commit timestamp.
        url: Link to the commit.
        author: Commit author.
        committer: Commit committer.

    Example:
        >>> commit = CommitInfo(id="e53b4318", message="add workflow", timestamp="2026-01-04T17:15:21-05:00")
        >>> commit.committed_at.year
        2026
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str = Field(..., min_length=1, description="Commit hash")
    message: str = Field(default="", description="Commit message")
    timestamp: str | None = Field(default=None, description="ISO-8601 commit timestamp")
    url: str = Field(default="", description="Commit URL")
    author: Person | None = Field(default=None, description="Commit author")
    committer: Person | None = Field(default=None, description="Commit committer")

    @field_validator("timestamp")
    @classmethod
    def _validate_timestamp(cls, value: str | None) -> str | None:
        if value is not None:
            _parse_iso(value)
        return value

    @property
    def committed_at(self) -> datetime | None:
        """Commit timestamp as a datetime, if present."""
        return _parse_iso(self.timestamp) if self.timestamp else None


def _parse_iso(value: str) -> datetime:
    # fromisoformat() only accepts a trailing "Z" from 3.11 on
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class Entry(BaseModel):
    """One run's full result set, the unit of append.

    Attributes:
        commit: Commit provenance.
        date: Ingestion timestamp in epoch milliseconds.
        tool: Benchmark harness that produced the results.
        benches: Records in tool order.
    """

    model_config = ConfigDict(frozen=True)

    commit: CommitInfo
    date: int = Field(..., ge=0, description="Ingestion time, epoch millis")
    tool: str = Field(..., min_length=1, description="Producing benchmark harness")
    benches: tuple[BenchmarkRecord, ...] = Field(default=(), description="Records in tool order")

    def record(self, name: str) -> BenchmarkRecord | None:
        """Get the record with the given name, if present."""
        for bench in self.benches:
            if bench.name == name:
                return bench
        return None

    def identity(self) -> tuple[str, str]:
        """Deterministic identity used for idempotent appends."""
        return (self.commit.id, self.tool)


class HistoryDocument(BaseModel):
    """Root of the persisted history.

    Attributes:
        last_update: Epoch millis of the most recent append (``lastUpdate``).
        repo_url: Repository URL (``repoUrl``).
        entries: Entries per group key, in append order.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    last_update: int = Field(default=0, alias="lastUpdate", ge=0)
    repo_url: str = Field(default="", alias="repoUrl")
    entries: dict[str, tuple[Entry, ...]] = Field(default_factory=dict)

    def group(self, group_key: str) -> tuple[Entry, ...]:
        """Entries of one group, empty if the group does not exist."""
        return self.entries.get(group_key, ())

    def with_entry(self, group_key: str, entry: Entry) -> HistoryDocument:
        """Return a new document with ``entry`` appended to ``group_key``.

        The receiver is left untouched.
        """
        entries = dict(self.entries)
        entries[group_key] = (*self.group(group_key), entry)
        return self.model_copy(
            update={
                "entries": entries,
                "last_update": max(self.last_update, entry.date),
            }
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the on-disk dictionary layout."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryDocument:
        """Create a document from its on-disk dictionary layout."""
        return cls.model_validate(data)


@dataclass(frozen=True)
class SeriesPoint:
    """One point of a series as returned by a history query.

    Attributes:
        date: Entry date in epoch millis.
        value: Recorded value.
        unit: Recorded unit.
        commit_id: Commit that produced the value.
        extra: Free-form metadata of the record.
    """

    date: int
    value: float
    unit: str
    commit_id: str
    extra: str | None = None
