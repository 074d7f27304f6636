"""Custom exceptions for benchwatch.

This module defines the exception hierarchy used throughout the library.
All exceptions inherit from BenchwatchError for easy catching.
"""

from __future__ import annotations


class BenchwatchError(Exception):
    """Base exception for all benchwatch errors.

    Example:
        >>> try:
        ...     await ingestor.ingest("Benchmark", commit, "go", raw)
        ... except BenchwatchError as e:
        ...     print(f"benchwatch error: {e}")
    """


class NormalizationError(BenchwatchError):
    """Raised when a raw benchmark result cannot be normalized.

    Covers missing names, unparseable or non-finite values and
    unknown tool kinds. Never leaves partial state in the store.

    Example:
        >>> raise NormalizationError("Raw result has no name: {'value': 1.0}")
    """


class UnitMismatchError(BenchwatchError):
    """Raised when a record's unit differs from its series' recorded unit.

    Attributes:
        name: Benchmark name.
        expected: Unit recorded by the prior entry that differs.
        actual: Unit of the incoming record.
    """

    def __init__(self, name: str, expected: str, actual: str) -> None:
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(f"Unit mismatch for '{name}': series uses '{expected}', got '{actual}'")


class PersistenceError(BenchwatchError):
    """Raised when the history document cannot be read or written.

    Retryable: appends are idempotent on (commit id, tool).
    """


class CorruptDocumentError(PersistenceError):
    """Raised when a persisted history document cannot be decoded."""


class StoreTimeoutError(BenchwatchError, TimeoutError):
    """Raised when a persistence operation exceeds its time bound.

    Retryable, like PersistenceError.
    """


class ConfigurationError(BenchwatchError):
    """Raised when configuration is invalid or missing.

    Example:
        >>> raise ConfigurationError("Invalid regression configuration regression.yaml: ...")
    """
