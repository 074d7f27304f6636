"""Base protocol for history storage backends.

This module defines the StorageProtocol that all storage backends must implement.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from benchwatch.benchmarks.models import HistoryDocument


@runtime_checkable
class StorageProtocol(Protocol):
    """Protocol for history storage backends.

    A backend persists the whole history document. Concurrency control and
    idempotency live in HistoryStore; a backend only has to make ``save``
    all-or-nothing.

    Example:
        >>> class MyStorage:
        ...     async def load(self) -> HistoryDocument: ...
        ...     async def save(self, document: HistoryDocument) -> None: ...
        >>> isinstance(MyStorage(), StorageProtocol)
        True
    """

    async def load(self) -> HistoryDocument:
        """Load the history document.

        Returns:
            The persisted document, or an empty one if nothing is stored yet.

        Raises:
            PersistenceError: If the backend cannot be read.
            CorruptDocumentError: If the stored data cannot be decoded.
        """
        ...

    async def save(self, document: HistoryDocument) -> None:
        """Persist the history document atomically.

        Args:
            document: The full document to store.

        Raises:
            PersistenceError: If the backend cannot be written.
        """
        ...
