"""Record normalization for benchwatch.

Example:
    >>> from benchwatch.normalize import normalize_all, parse_go_bench_output
    >>> records = normalize_all(parse_go_bench_output(output), "go")
"""

from __future__ import annotations

from benchwatch.normalize.extract import load_pytest_benchmark, load_raw_results, parse_go_bench_output
from benchwatch.normalize.normalizer import ToolKind, format_number, normalize, normalize_all

__all__ = [
    "ToolKind",
    "format_number",
    "load_pytest_benchmark",
    "load_raw_results",
    "normalize",
    "normalize_all",
    "parse_go_bench_output",
]
