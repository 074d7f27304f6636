"""Normalization of raw benchmark results into BenchmarkRecords.

Each tool kind has its own raw shape. Secondary metrics (e.g. B/op and
allocs/op next to ns/op for Go) fan out into synthetic records named
``"<name> - <unit>"`` so every metric is tracked as its own scalar series.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import ValidationError

from benchwatch.benchmarks.models import BenchmarkRecord
from benchwatch.core.exceptions import NormalizationError


class ToolKind(str, Enum):
    """Supported benchmark harnesses.

    Values match the ``tool`` field stored in history entries.
    """

    GO = "go"
    PYTEST = "pytest"
    CUSTOM_SMALLER_IS_BETTER = "customSmallerIsBetter"
    CUSTOM_BIGGER_IS_BETTER = "customBiggerIsBetter"

    @property
    def lower_is_better(self) -> bool:
        """Whether an increase in the primary value is a regression."""
        return self in {ToolKind.GO, ToolKind.CUSTOM_SMALLER_IS_BETTER}

    @classmethod
    def parse(cls, tool: ToolKind | str) -> ToolKind:
        """Resolve a tool name.

        Raises:
            NormalizationError: If the tool kind is unknown.
        """
        try:
            return cls(tool)
        except ValueError as e:
            supported = ", ".join(kind.value for kind in cls)
            msg = f"Unknown tool kind '{tool}' (supported: {supported})"
            raise NormalizationError(msg) from e


def format_number(value: float) -> str:
    """Render a number the way benchmark tools print it."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _require_name(raw: Mapping[str, Any], *keys: str) -> str:
    for key in keys or ("name",):
        name = raw.get(key)
        if isinstance(name, str) and name.strip():
            return name.strip()
    msg = f"Raw result has no name: {dict(raw)!r}"
    raise NormalizationError(msg)


def _parse_value(value: Any, name: str) -> float:
    if value is None or isinstance(value, bool):
        msg = f"Benchmark '{name}' has no numeric value"
        raise NormalizationError(msg)
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        msg = f"Benchmark '{name}' has an unparseable value: {value!r}"
        raise NormalizationError(msg) from e
    if not math.isfinite(number):
        msg = f"Benchmark '{name}' has a non-finite value: {value!r}"
        raise NormalizationError(msg)
    if number < 0:
        msg = f"Benchmark '{name}' has a negative value: {value!r}"
        raise NormalizationError(msg)
    return number


def _text(value: Any, field: str, name: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_number(value)
    msg = f"Benchmark '{name}' has an unsupported {field}: {value!r}"
    raise NormalizationError(msg)


def _record(**fields: Any) -> BenchmarkRecord:
    try:
        return BenchmarkRecord(**fields)
    except ValidationError as e:
        msg = f"Invalid benchmark record '{fields.get('name')}': {e}"
        raise NormalizationError(msg) from e


def _go_metrics(raw: Mapping[str, Any], name: str) -> list[tuple[str, float]]:
    metrics = raw.get("metrics")
    if metrics is not None:
        if not isinstance(metrics, Mapping) or not metrics:
            msg = f"Benchmark '{name}' has no metrics"
            raise NormalizationError(msg)
        return [(str(unit), _parse_value(value, name)) for unit, value in metrics.items()]

    unit = raw.get("unit")
    if not isinstance(unit, str) or not unit.strip():
        msg = f"Benchmark '{name}' has no unit"
        raise NormalizationError(msg)

    # Composite unit as printed by `go test -benchmem`: "ns/op\t0 B/op\t0 allocs/op"
    first, *others = (segment.strip() for segment in unit.split("\t") if segment.strip())
    pairs = [(first, _parse_value(raw.get("value"), name))]
    for segment in others:
        parts = segment.split(None, 1)
        if len(parts) != 2:
            msg = f"Benchmark '{name}' has a malformed unit segment: {segment!r}"
            raise NormalizationError(msg)
        pairs.append((parts[1], _parse_value(parts[0], name)))
    return pairs


def _go_extra(raw: Mapping[str, Any], name: str) -> str | None:
    if raw.get("extra") is not None:
        return _text(raw["extra"], "extra", name)
    lines = []
    if raw.get("runs") is not None:
        lines.append(f"{raw['runs']} times")
    if raw.get("procs") is not None:
        lines.append(f"{raw['procs']} procs")
    return "\n".join(lines) or None


def _normalize_go(raw: Mapping[str, Any]) -> list[BenchmarkRecord]:
    name = _require_name(raw)
    metrics = _go_metrics(raw, name)
    extra = _go_extra(raw, name)

    (first_unit, first_value), others = metrics[0], metrics[1:]
    unit = "\t".join([first_unit, *(f"{format_number(value)} {u}" for u, value in others)])
    records = [_record(name=name, value=first_value, unit=unit, extra=extra)]
    if others:
        records.extend(_record(name=f"{name} - {u}", value=value, unit=u, extra=extra) for u, value in metrics)
    return records


def _normalize_pytest(raw: Mapping[str, Any]) -> list[BenchmarkRecord]:
    name = _require_name(raw, "name", "fullname")
    stats = raw.get("stats")
    if not isinstance(stats, Mapping):
        msg = f"Benchmark '{name}' has no stats"
        raise NormalizationError(msg)

    ops = _parse_value(stats.get("ops"), name)
    stddev = stats.get("stddev")
    extra_lines = []
    if stats.get("mean") is not None:
        extra_lines.append(f"mean: {_text(stats['mean'], 'mean', name)} sec")
    if stats.get("rounds") is not None:
        extra_lines.append(f"rounds: {_text(stats['rounds'], 'rounds', name)}")

    return [
        _record(
            name=name,
            value=ops,
            unit="iter/sec",
            range=f"stddev: {_text(stddev, 'stddev', name)}" if stddev is not None else None,
            extra="\n".join(extra_lines) or None,
        )
    ]


def _normalize_custom(raw: Mapping[str, Any]) -> list[BenchmarkRecord]:
    name = _require_name(raw)
    unit = raw.get("unit")
    if not isinstance(unit, str) or not unit.strip():
        msg = f"Benchmark '{name}' has no unit"
        raise NormalizationError(msg)
    return [
        _record(
            name=name,
            value=_parse_value(raw.get("value"), name),
            unit=unit,
            range=_text(raw.get("range"), "range", name),
            extra=_text(raw.get("extra"), "extra", name),
        )
    ]


_NORMALIZERS = {
    ToolKind.GO: _normalize_go,
    ToolKind.PYTEST: _normalize_pytest,
    ToolKind.CUSTOM_SMALLER_IS_BETTER: _normalize_custom,
    ToolKind.CUSTOM_BIGGER_IS_BETTER: _normalize_custom,
}


def normalize(raw: Mapping[str, Any], tool_kind: ToolKind | str) -> list[BenchmarkRecord]:
    """Normalize one raw result into its records.

    The first record is the primary one; any further records are the
    fanned-out secondary metrics, in tool order.

    Args:
        raw: Raw result in the shape expected by ``tool_kind``.
        tool_kind: Producing tool.

    Returns:
        Non-empty list of records.

    Raises:
        NormalizationError: If the raw result is malformed or the tool is unknown.

    Example:
        >>> records = normalize({"name": "BenchmarkIO", "metrics": {"ns/op": 1200, "B/op": 64}}, "go")
        >>> [r.name for r in records]
        ['BenchmarkIO', 'BenchmarkIO - ns/op', 'BenchmarkIO - B/op']
    """
    kind = ToolKind.parse(tool_kind)
    if not isinstance(raw, Mapping):
        msg = f"Raw result must be a mapping, got {type(raw).__name__}"
        raise NormalizationError(msg)
    return _NORMALIZERS[kind](raw)


def normalize_all(raws: list[Mapping[str, Any]], tool_kind: ToolKind | str) -> list[BenchmarkRecord]:
    """Normalize a whole run, failing on the first bad result.

    Args:
        raws: Raw results of one run.
        tool_kind: Producing tool.

    Returns:
        All records of the run, fully materialized.

    Raises:
        NormalizationError: If any result is malformed or names collide.
    """
    records: list[BenchmarkRecord] = []
    seen: set[str] = set()
    for raw in raws:
        for record in normalize(raw, tool_kind):
            if record.name in seen:
                msg = f"Duplicate benchmark name in run: '{record.name}'"
                raise NormalizationError(msg)
            seen.add(record.name)
            records.append(record)
    return records
