"""benchwatch: Benchmark history store and regression detector."""

from __future__ import annotations

from benchwatch.benchmarks import (
    BenchmarkRecord,
    CommitInfo,
    Entry,
    HistoryDocument,
    HistoryStore,
    JSONFileStore,
    MemoryStore,
)
from benchwatch.core.exceptions import (
    BenchwatchError,
    NormalizationError,
    PersistenceError,
    StoreTimeoutError,
    UnitMismatchError,
)
from benchwatch.ingest import IngestionReport, Ingestor
from benchwatch.normalize import ToolKind, normalize
from benchwatch.regression import RegressionConfig, RegressionEvaluator, Verdict

__version__ = "0.3.0"
__all__ = [
    # History
    "BenchmarkRecord",
    "CommitInfo",
    "Entry",
    "HistoryDocument",
    "HistoryStore",
    "JSONFileStore",
    "MemoryStore",
    # Errors
    "BenchwatchError",
    "NormalizationError",
    "PersistenceError",
    "StoreTimeoutError",
    "UnitMismatchError",
    # Ingestion
    "IngestionReport",
    "Ingestor",
    # Normalization
    "ToolKind",
    "normalize",
    # Regression
    "RegressionConfig",
    "RegressionEvaluator",
    "Verdict",
    # Version
    "__version__",
]
