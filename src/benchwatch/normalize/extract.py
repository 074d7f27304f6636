"""Extraction of raw results from benchmark tool output.

Turns the text or JSON a harness writes into the raw mappings that
``normalize`` understands.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from benchwatch.core.exceptions import NormalizationError
from benchwatch.normalize.normalizer import ToolKind

# BenchmarkName[-procs]  <runs>  <value> <unit> [<value> <unit> ...]
_GO_LINE = re.compile(r"^(?P<name>Benchmark\S+?)(?:-(?P<procs>\d+))?\s+(?P<runs>\d+)\s+(?P<rest>.+)$")


def parse_go_bench_output(text: str) -> list[dict[str, Any]]:
    """Parse ``go test -bench`` output.

    Args:
        text: Captured stdout of the benchmark run.

    Returns:
        Raw results for ToolKind.GO, in output order.

    Raises:
        NormalizationError: If a benchmark line has unparseable measurements.

    Example:
        >>> parse_go_bench_output("BenchmarkIO-4  1000  1200 ns/op  64 B/op")[0]["metrics"]
        {'ns/op': 1200.0, 'B/op': 64.0}
    """
    results: list[dict[str, Any]] = []
    for line in text.splitlines():
        match = _GO_LINE.match(line.strip())
        if match is None:
            continue
        tokens = match.group("rest").split()
        if len(tokens) % 2:
            msg = f"Unpaired value/unit in benchmark line: {line.strip()!r}"
            raise NormalizationError(msg)

        metrics: dict[str, float] = {}
        for value, unit in zip(tokens[::2], tokens[1::2]):
            try:
                metrics[unit] = float(value)
            except ValueError as e:
                msg = f"Unparseable value {value!r} in benchmark line: {line.strip()!r}"
                raise NormalizationError(msg) from e

        result: dict[str, Any] = {
            "name": match.group("name"),
            "metrics": metrics,
            "runs": int(match.group("runs")),
        }
        if match.group("procs"):
            result["procs"] = int(match.group("procs"))
        results.append(result)
    return results


def load_pytest_benchmark(text: str) -> list[dict[str, Any]]:
    """Read a pytest-benchmark JSON report.

    Raises:
        NormalizationError: If the report is not valid JSON or lacks benchmarks.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Invalid pytest-benchmark report: {e}"
        raise NormalizationError(msg) from e
    benchmarks = data.get("benchmarks") if isinstance(data, dict) else None
    if not isinstance(benchmarks, list):
        msg = "pytest-benchmark report has no 'benchmarks' list"
        raise NormalizationError(msg)
    return benchmarks


def load_raw_results(path: str | Path, tool_kind: ToolKind | str) -> list[dict[str, Any]]:
    """Load raw results for a tool from a file.

    Go output is parsed as text, pytest as a pytest-benchmark report and
    custom tools as a JSON list of ``{name, value, unit, ...}`` objects.

    Args:
        path: Output file of the benchmark run.
        tool_kind: Producing tool.

    Returns:
        Raw results ready for ``normalize_all``.
    """
    kind = ToolKind.parse(tool_kind)
    text = Path(path).read_text(encoding="utf-8")

    if kind is ToolKind.GO:
        return parse_go_bench_output(text)
    if kind is ToolKind.PYTEST:
        return load_pytest_benchmark(text)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Invalid benchmark JSON in {path}: {e}"
        raise NormalizationError(msg) from e
    if not isinstance(data, list):
        msg = f"Expected a JSON list of benchmarks in {path}"
        raise NormalizationError(msg)
    return data
