"""Unit tests for record normalization and tool output extraction."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path

from benchwatch.core.exceptions import NormalizationError
from benchwatch.normalize import (
    ToolKind,
    format_number,
    load_pytest_benchmark,
    load_raw_results,
    normalize,
    normalize_all,
    parse_go_bench_output,
)

GO_OUTPUT = """goos: linux
goarch: amd64
pkg: github.com/catdevman/workerpool
cpu: AMD EPYC 7763 64-Core Processor
BenchmarkThroughput-4     	 2294203	       528.2 ns/op	       0 B/op	       0 allocs/op
BenchmarkAllocations-4    	  414596	      2897 ns/op	     288 B/op	       6 allocs/op
BenchmarkIOBound/slow-4   	     100	  10234567 ns/op
PASS
ok  	github.com/catdevman/workerpool	3.456s
"""

# ============================================================================
# ToolKind Tests
# ============================================================================


class TestToolKind:
    """Tests for ToolKind."""

    def test_parse(self) -> None:
        """Tool names resolve to kinds."""
        assert ToolKind.parse("go") is ToolKind.GO
        assert ToolKind.parse(ToolKind.PYTEST) is ToolKind.PYTEST
        assert ToolKind.parse("customBiggerIsBetter") is ToolKind.CUSTOM_BIGGER_IS_BETTER

    def test_parse_unknown(self) -> None:
        """Unknown tools are a normalization error."""
        with pytest.raises(NormalizationError, match="Unknown tool kind 'jmh'"):
            ToolKind.parse("jmh")

    def test_lower_is_better(self) -> None:
        """Directions follow the tool."""
        assert ToolKind.GO.lower_is_better is True
        assert ToolKind.CUSTOM_SMALLER_IS_BETTER.lower_is_better is True
        assert ToolKind.PYTEST.lower_is_better is False
        assert ToolKind.CUSTOM_BIGGER_IS_BETTER.lower_is_better is False


# ============================================================================
# Go Tests
# ============================================================================


class TestNormalizeGo:
    """Tests for Go results."""

    def test_metrics_fan_out(self) -> None:
        """Each metric becomes its own named record."""
        records = normalize(
            {
                "name": "BenchmarkThroughput",
                "metrics": {"ns/op": 528.2, "B/op": 0, "allocs/op": 0},
                "runs": 2294203,
                "procs": 4,
            },
            "go",
        )

        assert [r.name for r in records] == [
            "BenchmarkThroughput",
            "BenchmarkThroughput - ns/op",
            "BenchmarkThroughput - B/op",
            "BenchmarkThroughput - allocs/op",
        ]
        assert records[0].value == 528.2
        assert records[0].unit == "ns/op\t0 B/op\t0 allocs/op"
        assert records[0].comparable_unit == "ns/op"
        assert [r.unit for r in records[1:]] == ["ns/op", "B/op", "allocs/op"]
        assert all(r.extra == "2294203 times\n4 procs" for r in records)

    def test_single_metric_has_no_fan_out(self) -> None:
        """A lone metric produces only the primary record."""
        records = normalize({"name": "BenchmarkIO", "value": 1200, "unit": "ns/op"}, ToolKind.GO)

        assert len(records) == 1
        assert records[0].unit == "ns/op"
        assert records[0].extra is None

    def test_composite_unit(self) -> None:
        """A stored composite unit string is split into metrics."""
        records = normalize(
            {
                "name": "BenchmarkThroughput",
                "value": 528.2,
                "unit": "ns/op\t       0 B/op\t       0 allocs/op",
                "extra": "2294203 times\n4 procs",
            },
            "go",
        )

        assert len(records) == 4
        assert records[2].name == "BenchmarkThroughput - B/op"
        assert records[2].value == 0.0
        assert records[3].unit == "allocs/op"

    def test_fan_out_is_deterministic(self) -> None:
        """Normalizing the same input twice gives equal records."""
        raw = {"name": "BenchmarkX", "metrics": {"ns/op": 3.5, "B/op": 16}}
        assert normalize(raw, "go") == normalize(raw, "go")

    def test_negative_value(self) -> None:
        """Durations and counts cannot be negative."""
        with pytest.raises(NormalizationError, match="negative"):
            normalize({"name": "BenchmarkX", "value": -1, "unit": "ns/op"}, "go")

    def test_missing_unit(self) -> None:
        """A value without unit is rejected."""
        with pytest.raises(NormalizationError, match="no unit"):
            normalize({"name": "BenchmarkX", "value": 1}, "go")

    def test_malformed_unit_segment(self) -> None:
        """Composite segments need a value and a unit."""
        with pytest.raises(NormalizationError, match="malformed"):
            normalize({"name": "BenchmarkX", "value": 1, "unit": "ns/op\tB/op"}, "go")

    def test_empty_metrics(self) -> None:
        """An empty metrics mapping is rejected."""
        with pytest.raises(NormalizationError):
            normalize({"name": "BenchmarkX", "metrics": {}}, "go")


# ============================================================================
# pytest-benchmark Tests
# ============================================================================


class TestNormalizePytest:
    """Tests for pytest-benchmark results."""

    def test_stats(self) -> None:
        """ops becomes the value; stddev, mean and rounds are kept as text."""
        records = normalize(
            {
                "name": "test_parse",
                "fullname": "tests/test_bench.py::test_parse",
                "stats": {"ops": 1000.5, "mean": 0.0009995, "stddev": 0.0001, "rounds": 50},
            },
            "pytest",
        )

        assert len(records) == 1
        record = records[0]
        assert record.name == "test_parse"
        assert record.value == 1000.5
        assert record.unit == "iter/sec"
        assert record.range == "stddev: 0.0001"
        assert record.extra == "mean: 0.0009995 sec\nrounds: 50"

    def test_fullname_fallback(self) -> None:
        """fullname is used when name is missing."""
        records = normalize({"fullname": "tests/a.py::test_a", "stats": {"ops": 1}}, "pytest")

        assert records[0].name == "tests/a.py::test_a"
        assert records[0].range is None
        assert records[0].extra is None

    def test_missing_stats(self) -> None:
        """Results without stats are rejected."""
        with pytest.raises(NormalizationError, match="no stats"):
            normalize({"name": "test_a"}, "pytest")


# ============================================================================
# Custom Tool Tests
# ============================================================================


class TestNormalizeCustom:
    """Tests for custom tools."""

    def test_pass_through(self) -> None:
        """Custom records keep their fields; numbers become text."""
        records = normalize(
            {"name": "Throughput", "value": "1500", "unit": "req/s", "range": "± 3%", "extra": 12},
            "customBiggerIsBetter",
        )

        assert records[0].value == 1500.0
        assert records[0].range == "± 3%"
        assert records[0].extra == "12"

    @pytest.mark.parametrize(
        ("raw", "match"),
        [
            ({"value": 1, "unit": "ms"}, "no name"),
            ({"name": "  ", "value": 1, "unit": "ms"}, "no name"),
            ({"name": "X", "unit": "ms"}, "no numeric value"),
            ({"name": "X", "value": True, "unit": "ms"}, "no numeric value"),
            ({"name": "X", "value": "fast", "unit": "ms"}, "unparseable"),
            ({"name": "X", "value": "nan", "unit": "ms"}, "non-finite"),
            ({"name": "X", "value": 1}, "no unit"),
            ({"name": "X", "value": 1, "unit": "ms", "extra": {"a": 1}}, "unsupported extra"),
        ],
    )
    def test_invalid(self, raw: dict, match: str) -> None:
        """Malformed raw results raise NormalizationError."""
        with pytest.raises(NormalizationError, match=match):
            normalize(raw, "customSmallerIsBetter")

    def test_non_mapping(self) -> None:
        """Raw results must be mappings."""
        with pytest.raises(NormalizationError, match="mapping"):
            normalize(["X", 1], "customSmallerIsBetter")  # type: ignore[arg-type]


# ============================================================================
# normalize_all Tests
# ============================================================================


class TestNormalizeAll:
    """Tests for whole-run normalization."""

    def test_flattens_in_order(self) -> None:
        """Records keep tool order, fan-out included."""
        records = normalize_all(
            [
                {"name": "BenchmarkA", "metrics": {"ns/op": 1, "B/op": 2}},
                {"name": "BenchmarkB", "value": 3, "unit": "ns/op"},
            ],
            "go",
        )

        assert [r.name for r in records] == [
            "BenchmarkA",
            "BenchmarkA - ns/op",
            "BenchmarkA - B/op",
            "BenchmarkB",
        ]

    def test_duplicate_names(self) -> None:
        """Names must be unique within a run."""
        with pytest.raises(NormalizationError, match="Duplicate"):
            normalize_all(
                [
                    {"name": "X", "value": 1, "unit": "ms"},
                    {"name": "X", "value": 2, "unit": "ms"},
                ],
                "customSmallerIsBetter",
            )

    def test_one_bad_result_fails_run(self) -> None:
        """A single malformed result fails the whole run."""
        with pytest.raises(NormalizationError):
            normalize_all([{"name": "X", "value": 1, "unit": "ms"}, {"name": "Y"}], "customSmallerIsBetter")

    def test_format_number(self) -> None:
        """Integral numbers print without a decimal point."""
        assert format_number(0) == "0"
        assert format_number(2294203.0) == "2294203"
        assert format_number(528.2) == "528.2"


# ============================================================================
# Extraction Tests
# ============================================================================


class TestExtract:
    """Tests for tool output extraction."""

    def test_parse_go_bench_output(self) -> None:
        """Benchmark lines are parsed; other lines are skipped."""
        results = parse_go_bench_output(GO_OUTPUT)

        assert [r["name"] for r in results] == [
            "BenchmarkThroughput",
            "BenchmarkAllocations",
            "BenchmarkIOBound/slow",
        ]
        assert results[0]["procs"] == 4
        assert results[0]["runs"] == 2294203
        assert results[0]["metrics"] == {"ns/op": 528.2, "B/op": 0.0, "allocs/op": 0.0}
        assert results[2]["metrics"] == {"ns/op": 10234567.0}

    def test_go_output_normalizes(self) -> None:
        """Parsed Go output normalizes to the stored record layout."""
        records = normalize_all(parse_go_bench_output(GO_OUTPUT), "go")

        throughput = records[0]
        assert throughput.name == "BenchmarkThroughput"
        assert throughput.extra == "2294203 times\n4 procs"
        assert len(records) == 4 + 4 + 1

    def test_go_without_procs_suffix(self) -> None:
        """The -N suffix is optional."""
        results = parse_go_bench_output("BenchmarkX   10   5 ns/op")

        assert results[0]["name"] == "BenchmarkX"
        assert "procs" not in results[0]

    def test_go_unpaired_tokens(self) -> None:
        """A value without unit fails the parse."""
        with pytest.raises(NormalizationError, match="Unpaired"):
            parse_go_bench_output("BenchmarkX-4   10   5 ns/op   7")

    def test_load_pytest_benchmark(self) -> None:
        """The benchmarks list is extracted from a report."""
        report = json.dumps({"machine_info": {}, "benchmarks": [{"name": "test_a", "stats": {"ops": 5.0}}]})

        assert load_pytest_benchmark(report) == [{"name": "test_a", "stats": {"ops": 5.0}}]

    @pytest.mark.parametrize("text", ["{broken", "[]", '{"machine_info": {}}'])
    def test_load_pytest_benchmark_invalid(self, text: str) -> None:
        """Malformed reports raise NormalizationError."""
        with pytest.raises(NormalizationError):
            load_pytest_benchmark(text)

    def test_load_raw_results_custom(self, tmp_path: Path) -> None:
        """Custom tools read a JSON list."""
        path = tmp_path / "out.json"
        path.write_text('[{"name": "X", "value": 1, "unit": "ms"}]')

        assert load_raw_results(path, "customSmallerIsBetter") == [{"name": "X", "value": 1, "unit": "ms"}]

    def test_load_raw_results_custom_not_list(self, tmp_path: Path) -> None:
        """Custom output must be a list."""
        path = tmp_path / "out.json"
        path.write_text('{"name": "X"}')

        with pytest.raises(NormalizationError, match="list"):
            load_raw_results(path, "customSmallerIsBetter")

    def test_load_raw_results_go(self, tmp_path: Path) -> None:
        """Go output files are parsed as text."""
        path = tmp_path / "output.txt"
        path.write_text(GO_OUTPUT)

        assert len(load_raw_results(path, "go")) == 3
