"""Configuration management for benchwatch.

This module provides configuration classes using pydantic-settings
for environment variable management and validation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from benchwatch.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from benchwatch.regression.models import RegressionConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables with
    the BENCHWATCH_ prefix.

    Example:
        >>> # export BENCHWATCH_DATA_FILE=dev/bench/data.js
        >>> # export BENCHWATCH_ALERT_THRESHOLD=0.25
        >>> settings = Settings()
        >>> settings.regression_config().alert_threshold
        0.25

    Environment Variables:
        BENCHWATCH_DATA_FILE: History document path (default: dev/bench/data.js)
        BENCHWATCH_GROUP_KEY: Default group key (default: Benchmark)
        BENCHWATCH_REPO_URL: Repository URL stored in new documents
        BENCHWATCH_IO_TIMEOUT_SECONDS: Persistence timeout (default: 30.0)
        BENCHWATCH_LOG_LEVEL: Logging level (default: INFO)
        BENCHWATCH_WINDOW_SIZE: Comparison window (default: 1)
        BENCHWATCH_AGGREGATION: latest, mean or median (default: latest)
        BENCHWATCH_ALERT_THRESHOLD: Regression threshold (default: 0.5)
        BENCHWATCH_IMPROVEMENT_THRESHOLD: Improvement threshold (default: 0.5)
        BENCHWATCH_FAIL_ON_UNIT_MISMATCH: Abort ingestion on unit mismatch
        BENCHWATCH_REGRESSION_FILE: Optional YAML file overriding the above
    """

    model_config = SettingsConfigDict(
        env_prefix="BENCHWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage settings
    data_file: str = Field(
        default="dev/bench/data.js",
        description="Path to the history document (.js or .json)",
    )
    group_key: str = Field(
        default="Benchmark",
        description="Default group key for ingested entries",
    )
    repo_url: str = Field(
        default="",
        description="Repository URL recorded in newly created documents",
    )
    io_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Bound on each persistence operation in seconds",
    )

    # Regression settings
    window_size: int = Field(default=1, ge=1, description="Number of prior entries to compare against")
    aggregation: Literal["latest", "mean", "median"] = Field(
        default="latest",
        description="How the comparison window is reduced to a baseline",
    )
    alert_threshold: float = Field(default=0.5, ge=0, description="Regression threshold as a fraction")
    improvement_threshold: float = Field(
        default=0.5,
        ge=0,
        le=1,
        description="Improvement threshold as a fraction",
    )
    fail_on_unit_mismatch: bool = Field(
        default=False,
        description="Abort the whole ingestion on a unit mismatch",
    )
    regression_file: str | None = Field(
        default=None,
        description="Optional YAML file with regression configuration",
    )

    # General settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    def regression_config(self) -> RegressionConfig:
        """Build the regression configuration.

        A YAML file named by ``regression_file`` takes precedence over
        the individual settings.

        Returns:
            RegressionConfig for the evaluator.

        Raises:
            ConfigurationError: If the regression file is missing, unreadable or invalid.
        """
        import yaml

        from benchwatch.regression.models import Aggregation, RegressionConfig

        if self.regression_file:
            try:
                return RegressionConfig.from_yaml(self.regression_file)
            except (OSError, ValueError, yaml.YAMLError) as e:
                msg = f"Invalid regression configuration {self.regression_file}: {e}"
                raise ConfigurationError(msg) from e

        return RegressionConfig(
            window_size=self.window_size,
            aggregation=Aggregation(self.aggregation),
            alert_threshold=self.alert_threshold,
            improvement_threshold=self.improvement_threshold,
            fail_on_unit_mismatch=self.fail_on_unit_mismatch,
        )
