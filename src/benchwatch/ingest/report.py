"""Ingestion report models.

An IngestionReport tells downstream alerting and rendering what happened
to every record of one run: its verdict, ratio, and whether it was
appended, a duplicate no-op, or rejected.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from benchwatch.regression.models import Verdict

if TYPE_CHECKING:
    from benchwatch.benchmarks.models import BenchmarkRecord
    from benchwatch.regression.models import Evaluation


@dataclass
class RecordReport:
    """Outcome for a single record.

    Attributes:
        name: Benchmark name.
        value: Measured value.
        unit: Unit of the value.
        verdict: Verdict, or None if the record was rejected.
        ratio: Oriented ratio to the baseline (None on first observation or rejection).
        threshold_used: Regression ratio threshold applied.
        baseline: Baseline value, if any.
        appended: Whether the record was written by this ingestion.
        duplicate: Whether the run was already stored (idempotent no-op).
        error: Rejection reason, e.g. a unit mismatch.
        message: Human-readable description.
    """

    name: str
    value: float
    unit: str
    verdict: Verdict | None
    ratio: float | None = None
    threshold_used: float | None = None
    baseline: float | None = None
    appended: bool = False
    duplicate: bool = False
    error: str | None = None
    message: str = ""

    @classmethod
    def from_evaluation(cls, evaluation: Evaluation, *, appended: bool, duplicate: bool) -> RecordReport:
        """Build a report from an evaluation."""
        return cls(
            name=evaluation.name,
            value=evaluation.value,
            unit=evaluation.unit,
            verdict=evaluation.verdict,
            ratio=evaluation.ratio,
            threshold_used=evaluation.threshold_used,
            baseline=evaluation.baseline,
            appended=appended,
            duplicate=duplicate,
            message=evaluation.message,
        )

    @classmethod
    def rejected(cls, record: BenchmarkRecord, error: Exception, *, duplicate: bool = False) -> RecordReport:
        """Build a report for a record that could not be evaluated."""
        return cls(
            name=record.name,
            value=record.value,
            unit=record.unit,
            verdict=None,
            duplicate=duplicate,
            error=str(error),
            message=f"'{record.name}' rejected: {error}",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        ratio: float | str | None = self.ratio
        if ratio is not None and not math.isfinite(ratio):
            ratio = "inf"
        return {
            "name": self.name,
            "value": self.value,
            "unit": self.unit,
            "verdict": self.verdict.value if self.verdict else None,
            "ratio": ratio,
            "threshold_used": self.threshold_used,
            "baseline": self.baseline,
            "appended": self.appended,
            "duplicate": self.duplicate,
            "error": self.error,
            "message": self.message,
        }


@dataclass
class IngestionReport:
    """Result of ingesting one run.

    Attributes:
        group_key: Group the run was ingested into.
        tool: Producing tool.
        commit_id: Commit of the run.
        appended: Whether a new entry was written.
        duplicate: Whether the run was already stored.
        position: Position of the entry within its group, if stored.
        date: Date of the stored entry, if stored.
        records: Per-record outcomes in tool order.
        timestamp: When the ingestion was performed.

    Example:
        >>> report = await ingestor.ingest("Benchmark", commit, "go", raw_results)
        >>> if report.has_regressions:
        ...     print(report.summary())
    """

    group_key: str
    tool: str
    commit_id: str
    appended: bool
    duplicate: bool
    position: int | None
    date: int | None
    records: list[RecordReport]
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def regressions(self) -> list[RecordReport]:
        """Records whose verdict is REGRESSED."""
        return [r for r in self.records if r.verdict is Verdict.REGRESSED]

    @property
    def improvements(self) -> list[RecordReport]:
        """Records whose verdict is IMPROVED."""
        return [r for r in self.records if r.verdict is Verdict.IMPROVED]

    @property
    def rejected(self) -> list[RecordReport]:
        """Records rejected during evaluation."""
        return [r for r in self.records if r.error is not None]

    @property
    def has_regressions(self) -> bool:
        """Check if any record regressed."""
        return len(self.regressions) > 0

    def summary(self) -> str:
        """Generate a human-readable summary.

        Returns:
            Multi-line summary string.
        """
        if self.duplicate:
            status = f"duplicate of entry {self.position}"
        elif self.appended:
            status = f"appended at {self.position}"
        else:
            status = "not appended"

        lines = [
            f"Ingestion of {self.commit_id} ({self.tool}) into '{self.group_key}': {status}",
            f"  Records: {len(self.records)}, Regressions: {len(self.regressions)}, "
            f"Improvements: {len(self.improvements)}, Rejected: {len(self.rejected)}",
        ]

        flagged = [r for r in self.records if r.error or r.verdict in (Verdict.REGRESSED, Verdict.IMPROVED)]
        if flagged:
            lines.append("")
            for record in flagged:
                marker = "[REJECTED]" if record.error else f"[{record.verdict.value.upper()}]"  # type: ignore[union-attr]
                lines.append(f"  {marker} {record.message}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "group_key": self.group_key,
            "tool": self.tool,
            "commit_id": self.commit_id,
            "appended": self.appended,
            "duplicate": self.duplicate,
            "position": self.position,
            "date": self.date,
            "has_regressions": self.has_regressions,
            "records": [r.to_dict() for r in self.records],
            "timestamp": self.timestamp.isoformat(),
        }
