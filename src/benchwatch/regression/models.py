"""Models for regression detection.

This module provides the regression configuration, verdicts and the
per-record evaluation result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class Verdict(str, Enum):
    """Classification of a measurement relative to its baseline."""

    OK = "ok"
    IMPROVED = "improved"
    REGRESSED = "regressed"


class Direction(str, Enum):
    """Which way a metric improves."""

    LOWER_IS_BETTER = "lower_is_better"
    HIGHER_IS_BETTER = "higher_is_better"


class Aggregation(str, Enum):
    """How the comparison window is reduced to a single baseline."""

    LATEST = "latest"
    MEAN = "mean"
    MEDIAN = "median"


class RegressionConfig(BaseModel):
    """Configuration for regression detection.

    A measurement regresses when its ratio to the baseline exceeds
    ``1 + alert_threshold`` and improves when it falls below
    ``1 - improvement_threshold``. The ratio is oriented so that larger
    always means worse.

    Attributes:
        window_size: Number of prior entries considered (default 1).
        aggregation: Reduction of the window to a baseline (default latest).
        alert_threshold: Regression threshold as a fraction (default 0.5, i.e. 150%).
        improvement_threshold: Improvement threshold as a fraction (default 0.5).
        tool_directions: Direction per tool, overriding the tool's built-in default.
        name_directions: Direction per benchmark name, overriding everything else.
        fail_on_unit_mismatch: Abort the whole ingestion on a unit mismatch.

    Example:
        >>> config = RegressionConfig(alert_threshold=0.05)
        >>> config.alert_ratio
        1.05
    """

    model_config = {"frozen": True}

    window_size: int = Field(default=1, ge=1, description="Number of prior entries compared against")
    aggregation: Aggregation = Field(default=Aggregation.LATEST, description="Window reduction")
    alert_threshold: float = Field(default=0.5, ge=0, description="Regression threshold (fraction)")
    improvement_threshold: float = Field(default=0.5, ge=0, le=1, description="Improvement threshold (fraction)")
    tool_directions: dict[str, Direction] = Field(default_factory=dict, description="Direction per tool")
    name_directions: dict[str, Direction] = Field(default_factory=dict, description="Direction per benchmark name")
    fail_on_unit_mismatch: bool = Field(default=False, description="Abort ingestion on unit mismatch")

    @property
    def alert_ratio(self) -> float:
        """Ratio above which a measurement regresses."""
        return 1 + self.alert_threshold

    @property
    def improvement_ratio(self) -> float:
        """Ratio below which a measurement improves."""
        return 1 - self.improvement_threshold

    @classmethod
    def from_yaml(cls, path: Path | str) -> RegressionConfig:
        """Load regression configuration from a YAML file.

        The settings may sit at the top level or under a ``regression`` key.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            RegressionConfig loaded from the file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the YAML content is invalid.
        """
        import yaml

        path = Path(path)
        if not path.exists():
            msg = f"Configuration file not found: {path}"
            raise FileNotFoundError(msg)

        data = yaml.safe_load(path.read_text())
        if data is None:
            return cls()
        if not isinstance(data, dict):
            msg = f"Regression configuration in {path} must be a mapping"
            raise ValueError(msg)

        return cls.model_validate(data.get("regression", data))

    def to_yaml(self, path: Path | str) -> None:
        """Save regression configuration to a YAML file.

        Args:
            path: Path to the output YAML file.
        """
        import yaml

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {"regression": self.model_dump(mode="json")}
        path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))


@dataclass
class Evaluation:
    """Outcome of evaluating one record against its history.

    Attributes:
        name: Benchmark name.
        verdict: OK, IMPROVED or REGRESSED.
        ratio: Current/baseline ratio oriented so that larger is worse
            (None on first observation).
        threshold_used: Ratio the measurement had to exceed to regress.
        direction: Direction applied to the metric.
        value: Current value.
        unit: Current unit.
        baseline: Baseline value (None on first observation).
        window_values: Prior values the baseline was computed from.

    Example:
        >>> evaluation.message
        "'BenchmarkIO' regressed: 526 ns/op vs baseline 500 (ratio 1.05, threshold 1.05)"
    """

    name: str
    verdict: Verdict
    ratio: float | None
    threshold_used: float
    direction: Direction
    value: float
    unit: str
    baseline: float | None = None
    window_values: list[float] = field(default_factory=list)

    @property
    def is_first_observation(self) -> bool:
        """Whether there was no history to compare against."""
        return self.baseline is None

    @property
    def message(self) -> str:
        """Human-readable description of the evaluation.

        Returns:
            Formatted message.
        """
        if self.baseline is None:
            return f"'{self.name}' first observation: {self.value:g} {self.unit}"

        ratio = "inf" if self.ratio == float("inf") else f"{self.ratio:.2f}"
        return (
            f"'{self.name}' {self.verdict.value}: {self.value:g} {self.unit} vs baseline {self.baseline:g} "
            f"(ratio {ratio}, threshold {self.threshold_used:.2f})"
        )
