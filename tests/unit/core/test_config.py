"""Unit tests for application settings."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from benchwatch.core.config import Settings
from benchwatch.core.exceptions import ConfigurationError
from benchwatch.regression import Aggregation, RegressionConfig

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run without host BENCHWATCH_ variables or .env file."""
    for name in list(os.environ):
        if name.startswith("BENCHWATCH_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        """Defaults match the github-action-benchmark layout."""
        settings = Settings()

        assert settings.data_file == "dev/bench/data.js"
        assert settings.group_key == "Benchmark"
        assert settings.io_timeout_seconds == 30.0
        assert settings.log_level == "INFO"

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """BENCHWATCH_ variables override defaults."""
        monkeypatch.setenv("BENCHWATCH_DATA_FILE", "out/history.json")
        monkeypatch.setenv("BENCHWATCH_ALERT_THRESHOLD", "0.25")
        monkeypatch.setenv("BENCHWATCH_AGGREGATION", "median")
        monkeypatch.setenv("BENCHWATCH_WINDOW_SIZE", "5")

        settings = Settings()
        config = settings.regression_config()

        assert settings.data_file == "out/history.json"
        assert config.alert_threshold == 0.25
        assert config.aggregation is Aggregation.MEDIAN
        assert config.window_size == 5

    def test_dotenv(self, tmp_path: Path) -> None:
        """Settings are read from a .env file."""
        (tmp_path / ".env").write_text("BENCHWATCH_GROUP_KEY=Nightly\n")

        assert Settings().group_key == "Nightly"

    def test_validation(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Invalid values are rejected."""
        monkeypatch.setenv("BENCHWATCH_AGGREGATION", "p99")

        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_timeout(self) -> None:
        """The I/O timeout must be positive."""
        with pytest.raises(ValidationError):
            Settings(io_timeout_seconds=0)

    def test_default_regression_config(self) -> None:
        """Without overrides the regression defaults apply."""
        assert Settings().regression_config() == RegressionConfig()

    def test_regression_file_takes_precedence(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A YAML file replaces the individual settings."""
        path = tmp_path / "regression.yaml"
        RegressionConfig(alert_threshold=0.1, fail_on_unit_mismatch=True).to_yaml(path)
        monkeypatch.setenv("BENCHWATCH_ALERT_THRESHOLD", "0.9")
        monkeypatch.setenv("BENCHWATCH_REGRESSION_FILE", str(path))

        config = Settings().regression_config()

        assert config.alert_threshold == 0.1
        assert config.fail_on_unit_mismatch is True

    def test_missing_regression_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A missing regression file is a configuration error."""
        monkeypatch.setenv("BENCHWATCH_REGRESSION_FILE", str(tmp_path / "missing.yaml"))

        with pytest.raises(ConfigurationError, match="missing.yaml"):
            Settings().regression_config()

    @pytest.mark.parametrize(
        "content",
        [
            "regression:\n  window_size: 0\n",
            "- 0.1\n",
            "regression: [unclosed\n",
        ],
    )
    def test_invalid_regression_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, content: str) -> None:
        """Invalid regression files are configuration errors."""
        path = tmp_path / "regression.yaml"
        path.write_text(content)
        monkeypatch.setenv("BENCHWATCH_REGRESSION_FILE", str(path))

        with pytest.raises(ConfigurationError, match="Invalid regression configuration"):
            Settings().regression_config()
