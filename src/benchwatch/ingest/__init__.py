"""Ingestion module for benchwatch.

Example:
    >>> from benchwatch.ingest import Ingestor
    >>>
    >>> ingestor = Ingestor(store, RegressionConfig(alert_threshold=0.05))
    >>> report = await ingestor.ingest("Benchmark", commit, "go", raw_results)
    >>> for record in report.regressions:
    ...     print(record.message)
"""

from __future__ import annotations

from benchwatch.ingest.orchestrator import Ingestor
from benchwatch.ingest.report import IngestionReport, RecordReport

__all__ = [
    "IngestionReport",
    "Ingestor",
    "RecordReport",
]
