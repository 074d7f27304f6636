"""Core module for benchwatch.

This module contains the exceptions and configuration used
throughout the library.
"""

from __future__ import annotations

from benchwatch.core.config import Settings
from benchwatch.core.exceptions import (
    BenchwatchError,
    ConfigurationError,
    CorruptDocumentError,
    NormalizationError,
    PersistenceError,
    StoreTimeoutError,
    UnitMismatchError,
)

__all__ = [
    "BenchwatchError",
    "ConfigurationError",
    "CorruptDocumentError",
    "NormalizationError",
    "PersistenceError",
    "Settings",
    "StoreTimeoutError",
    "UnitMismatchError",
]
