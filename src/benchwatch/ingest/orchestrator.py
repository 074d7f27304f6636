"""Ingestion of benchmark runs.

This module provides Ingestor, the entry point that turns one run's raw
results into a stored entry and a per-record regression report.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from benchwatch.benchmarks.models import Entry
from benchwatch.core.exceptions import NormalizationError, UnitMismatchError
from benchwatch.ingest.report import IngestionReport, RecordReport
from benchwatch.normalize import ToolKind, normalize_all
from benchwatch.regression import RegressionConfig, RegressionEvaluator

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from benchwatch.benchmarks.history import HistoryStore
    from benchwatch.benchmarks.models import BenchmarkRecord, CommitInfo
    from benchwatch.regression.models import Evaluation

logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


class Ingestor:
    """Coordinate normalization, append and regression evaluation.

    A run is normalized completely before anything is written, so a bad
    result never leaves a partial entry behind. The entry's identity is
    (commit id, tool), which makes retries after a persistence failure
    safe.

    Unit mismatches reject only the offending record: it is reported with
    an error and left out of the entry while its siblings are evaluated
    and stored. Set ``fail_on_unit_mismatch`` to abort the whole run
    instead.

    Example:
        >>> ingestor = Ingestor(HistoryStore(JSONFileStore("dev/bench/data.js")))
        >>> report = await ingestor.ingest("Benchmark", commit, "go", raw_results)
        >>> report.has_regressions
        False
    """

    def __init__(
        self,
        store: HistoryStore,
        config: RegressionConfig | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """Initialize the ingestor.

        Args:
            store: History store to append to.
            config: Regression configuration. Defaults to RegressionConfig().
            clock: Source of entry dates in epoch millis (default: wall clock).
        """
        self.store = store
        self.config = config or RegressionConfig()
        self.evaluator = RegressionEvaluator(store, self.config)
        self._clock = clock or _now_millis

    async def _evaluate(
        self,
        group_key: str,
        tool: str,
        records: list[BenchmarkRecord],
        before: int | None = None,
    ) -> dict[str, Evaluation | UnitMismatchError]:
        outcomes: dict[str, Evaluation | UnitMismatchError] = {}
        for record in records:
            try:
                outcomes[record.name] = await self.evaluator.evaluate(group_key, tool, record, before=before)
            except UnitMismatchError as e:
                outcomes[record.name] = e
        return outcomes

    async def ingest(
        self,
        group_key: str,
        commit: CommitInfo,
        tool: ToolKind | str,
        raw_results: list[Mapping[str, Any]],
    ) -> IngestionReport:
        """Ingest one run.

        Args:
            group_key: Group to store the entry in.
            commit: Provenance of the run.
            tool: Producing tool.
            raw_results: Raw results in the tool's shape.

        Returns:
            IngestionReport with a RecordReport per normalized record.

        Raises:
            NormalizationError: If any raw result is malformed (nothing is written).
            UnitMismatchError: If ``fail_on_unit_mismatch`` is set and a unit changed.
            PersistenceError: If the append cannot be persisted (retryable).
            StoreTimeoutError: If persistence exceeds its bound (retryable).
        """
        kind = ToolKind.parse(tool)
        records = normalize_all(list(raw_results), kind)
        if not records:
            msg = f"Run for {commit.id} ({kind.value}) has no benchmark results"
            raise NormalizationError(msg)

        outcomes: dict[str, Evaluation | UnitMismatchError] = {}

        async def build() -> Entry | None:
            # Runs under the group lock, so the window is the committed history
            outcomes.update(await self._evaluate(group_key, kind.value, records))
            mismatches = [o for o in outcomes.values() if isinstance(o, UnitMismatchError)]
            if mismatches and self.config.fail_on_unit_mismatch:
                raise mismatches[0]
            for mismatch in mismatches:
                logger.warning(f"Rejected record for {commit.id}: {mismatch}")

            accepted = [r for r in records if not isinstance(outcomes[r.name], UnitMismatchError)]
            if not accepted:
                logger.warning(f"No records of {commit.id} ({kind.value}) accepted, nothing appended")
                return None
            return Entry(commit=commit, date=self._clock(), tool=kind.value, benches=tuple(accepted))

        result = await self.store.append_with(group_key, commit.id, kind.value, build)
        if result is None:
            return IngestionReport(
                group_key=group_key,
                tool=kind.value,
                commit_id=commit.id,
                appended=False,
                duplicate=False,
                position=None,
                date=None,
                records=[RecordReport.rejected(r, outcomes[r.name]) for r in records],  # type: ignore[arg-type]
            )
        if not result.appended:
            return await self._duplicate_report(group_key, commit, kind, records, result.position)

        reports: list[RecordReport] = []
        for record in records:
            outcome = outcomes[record.name]
            if isinstance(outcome, UnitMismatchError):
                reports.append(RecordReport.rejected(record, outcome))
            else:
                reports.append(RecordReport.from_evaluation(outcome, appended=True, duplicate=False))

        report = IngestionReport(
            group_key=group_key,
            tool=kind.value,
            commit_id=commit.id,
            appended=True,
            duplicate=False,
            position=result.position,
            date=result.entry.date,
            records=reports,
        )
        if report.has_regressions:
            logger.warning(f"{len(report.regressions)} regression(s) detected for {commit.id} ({kind.value})")
        return report

    async def _duplicate_report(
        self,
        group_key: str,
        commit: CommitInfo,
        kind: ToolKind,
        records: list[BenchmarkRecord],
        position: int,
    ) -> IngestionReport:
        logger.debug(f"Run {commit.id} ({kind.value}) already stored in '{group_key}' at {position}")
        snapshot = await self.store.snapshot()
        stored = snapshot.group(group_key)[position]

        outcomes = await self._evaluate(group_key, kind.value, records, before=position)
        reports: list[RecordReport] = []
        for record in records:
            outcome = outcomes[record.name]
            if isinstance(outcome, UnitMismatchError):
                reports.append(RecordReport.rejected(record, outcome, duplicate=True))
            else:
                reports.append(RecordReport.from_evaluation(outcome, appended=False, duplicate=True))

        return IngestionReport(
            group_key=group_key,
            tool=kind.value,
            commit_id=commit.id,
            appended=False,
            duplicate=True,
            position=position,
            date=stored.date,
            records=reports,
        )
