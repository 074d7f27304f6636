"""Regression evaluator for benchmark series.

This module provides the RegressionEvaluator class, which compares an
incoming record against a window of prior records of the same series.
"""

from __future__ import annotations

import logging
import statistics
from typing import TYPE_CHECKING

from benchwatch.benchmarks.models import comparable_unit
from benchwatch.core.exceptions import UnitMismatchError
from benchwatch.regression.models import (
    Aggregation,
    Direction,
    Evaluation,
    RegressionConfig,
    Verdict,
)

if TYPE_CHECKING:
    from benchwatch.benchmarks.history import HistoryStore
    from benchwatch.benchmarks.models import BenchmarkRecord, SeriesPoint

logger = logging.getLogger(__name__)

# Built-in directions for known tools; unknown tools are lower-is-better
TOOL_DIRECTIONS: dict[str, Direction] = {
    "go": Direction.LOWER_IS_BETTER,
    "customSmallerIsBetter": Direction.LOWER_IS_BETTER,
    "pytest": Direction.HIGHER_IS_BETTER,
    "customBiggerIsBetter": Direction.HIGHER_IS_BETTER,
}


class RegressionEvaluator:
    """Classify new measurements against prior history.

    Attributes:
        store: History store providing prior points.
        config: Thresholds, window and direction configuration.

    Example:
        >>> evaluator = RegressionEvaluator(store, RegressionConfig(alert_threshold=0.05))
        >>> evaluation = await evaluator.evaluate("Benchmark", "go", record)
        >>> evaluation.verdict
        <Verdict.REGRESSED: 'regressed'>
    """

    def __init__(self, store: HistoryStore, config: RegressionConfig | None = None) -> None:
        """Initialize evaluator with its history source.

        Args:
            store: History store to read prior points from.
            config: Regression configuration. Defaults to RegressionConfig().
        """
        self.store = store
        self.config = config or RegressionConfig()

    def direction_for(self, tool: str, name: str) -> Direction:
        """Resolve the direction of a metric.

        Precedence: per-name override, per-tool setting, built-in tool
        default, lower-is-better.
        """
        if name in self.config.name_directions:
            return self.config.name_directions[name]
        if tool in self.config.tool_directions:
            return self.config.tool_directions[tool]
        return TOOL_DIRECTIONS.get(tool, Direction.LOWER_IS_BETTER)

    def _baseline(self, values: list[float]) -> float:
        if self.config.aggregation is Aggregation.MEAN:
            return statistics.fmean(values)
        if self.config.aggregation is Aggregation.MEDIAN:
            return statistics.median(values)
        return values[-1]

    async def evaluate(
        self,
        group_key: str,
        tool: str,
        record: BenchmarkRecord,
        *,
        before: int | None = None,
    ) -> Evaluation:
        """Evaluate a record against the prior entries of its series.

        Args:
            group_key: Group holding the series.
            tool: Producing tool.
            record: Incoming record.
            before: Only treat entries before this group position as prior.

        Returns:
            Evaluation with verdict, ratio and threshold used.

        Raises:
            UnitMismatchError: If the record's unit differs from any unit in the window.
        """
        window = list(
            await self.store.query(group_key, tool, record.name, self.config.window_size, before=before)
        )
        return self.compare(tool, record, window)

    def compare(self, tool: str, record: BenchmarkRecord, window: list[SeriesPoint]) -> Evaluation:
        """Evaluate a record against an explicit window of prior points.

        Args:
            tool: Producing tool.
            record: Incoming record.
            window: Prior points in ascending date order.

        Returns:
            Evaluation with verdict, ratio and threshold used.

        Raises:
            UnitMismatchError: If the record's unit differs from any unit in the window.
        """
        direction = self.direction_for(tool, record.name)
        threshold = self.config.alert_ratio

        if not window:
            return Evaluation(
                name=record.name,
                verdict=Verdict.OK,
                ratio=None,
                threshold_used=threshold,
                direction=direction,
                value=record.value,
                unit=record.unit,
            )

        # Newest first, so the reported unit is the most recent one that differs
        for point in reversed(window):
            expected = comparable_unit(point.unit)
            if record.comparable_unit != expected:
                raise UnitMismatchError(record.name, expected, record.comparable_unit)

        values = [point.value for point in window]
        baseline = self._baseline(values)
        ratio = _ratio(record.value, baseline, direction)

        if ratio > self.config.alert_ratio:
            verdict = Verdict.REGRESSED
        elif ratio < self.config.improvement_ratio:
            verdict = Verdict.IMPROVED
        else:
            verdict = Verdict.OK

        evaluation = Evaluation(
            name=record.name,
            verdict=verdict,
            ratio=ratio,
            threshold_used=threshold,
            direction=direction,
            value=record.value,
            unit=record.unit,
            baseline=baseline,
            window_values=values,
        )
        if verdict is Verdict.REGRESSED:
            logger.warning(evaluation.message)
        else:
            logger.debug(evaluation.message)
        return evaluation


def _ratio(value: float, baseline: float, direction: Direction) -> float:
    """Current/baseline ratio oriented so that larger is worse.

    Zero denominators: equal values are a tie (1.0); otherwise the ratio
    is infinite in the bad direction or zero in the good one.
    """
    worse, better = (value, baseline) if direction is Direction.LOWER_IS_BETTER else (baseline, value)
    if worse == better:
        return 1.0
    if better == 0:
        return float("inf") if worse > 0 else 0.0
    return worse / better
