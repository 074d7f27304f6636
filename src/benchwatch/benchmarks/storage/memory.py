"""In-memory storage backend for the history document."""

from __future__ import annotations

import asyncio

from benchwatch.benchmarks.models import HistoryDocument
from benchwatch.core.exceptions import PersistenceError


class MemoryStore:
    """Keep the history document in process memory.

    Useful for embedding and tests. ``fail_next_save`` and
    ``save_delay`` let callers exercise persistence failures and timeouts.

    Example:
        >>> store = MemoryStore()
        >>> store.fail_next_save = True
        >>> await store.save(HistoryDocument())  # raises PersistenceError
    """

    def __init__(self, document: HistoryDocument | None = None) -> None:
        self.document = document or HistoryDocument()
        self.save_count = 0
        self.fail_next_save = False
        self.save_delay = 0.0

    async def load(self) -> HistoryDocument:
        return self.document

    async def save(self, document: HistoryDocument) -> None:
        if self.save_delay:
            await asyncio.sleep(self.save_delay)
        if self.fail_next_save:
            self.fail_next_save = False
            msg = "Simulated write failure"
            raise PersistenceError(msg)
        self.document = document
        self.save_count += 1
