"""Regression detection module for benchwatch.

This module classifies new benchmark measurements as OK, IMPROVED or
REGRESSED relative to the prior entries of their series.

Example:
    >>> from benchwatch.regression import RegressionConfig, RegressionEvaluator
    >>>
    >>> evaluator = RegressionEvaluator(store, RegressionConfig(alert_threshold=0.05))
    >>> evaluation = await evaluator.evaluate("Benchmark", "go", record)
    >>> if evaluation.verdict is Verdict.REGRESSED:
    ...     print(evaluation.message)
"""

from __future__ import annotations

from benchwatch.regression.evaluator import TOOL_DIRECTIONS, RegressionEvaluator
from benchwatch.regression.models import (
    Aggregation,
    Direction,
    Evaluation,
    RegressionConfig,
    Verdict,
)

__all__ = [
    "TOOL_DIRECTIONS",
    "Aggregation",
    "Direction",
    "Evaluation",
    "RegressionConfig",
    "RegressionEvaluator",
    "Verdict",
]
