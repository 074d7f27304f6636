"""JSON file storage for the history document.

This module provides a file-based storage backend. A ``.js`` path is
written as a script assigning ``window.BENCHMARK_DATA`` so that a static
dashboard can load it directly; any other path holds plain JSON.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from benchwatch.benchmarks.models import HistoryDocument
from benchwatch.core.exceptions import CorruptDocumentError, PersistenceError

logger = logging.getLogger(__name__)

JS_PREFIX = "window.BENCHMARK_DATA = "


class JSONFileStore:
    """JSON file storage for the history document.

    Uses atomic writes (temp file + rename) for safety. Blocking file I/O
    runs in a worker thread.

    Example:
        >>> store = JSONFileStore("dev/bench/data.js")
        >>> document = await store.load()
        >>> await store.save(document)
    """

    def __init__(self, path: str | Path = "dev/bench/data.js", indent: int = 2) -> None:
        """Initialize the JSON file store.

        Args:
            path: Path to the document (``.js`` or ``.json``).
            indent: JSON indentation used when writing.
        """
        self._path = Path(path)
        self._indent = indent

    @property
    def path(self) -> Path:
        """Path of the backing file."""
        return self._path

    @property
    def is_script(self) -> bool:
        """Whether the file is wrapped as a ``window.BENCHMARK_DATA`` script."""
        return self._path.suffix == ".js"

    def _decode(self, content: str) -> HistoryDocument:
        text = content.strip()
        if text.startswith(JS_PREFIX):
            text = text[len(JS_PREFIX) :].rstrip().rstrip(";")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            msg = f"Failed to decode history document {self._path}: {e}"
            raise CorruptDocumentError(msg) from e
        if not isinstance(data, dict):
            msg = f"History document {self._path} is not an object"
            raise CorruptDocumentError(msg)
        try:
            return HistoryDocument.from_dict(data)
        except ValidationError as e:
            msg = f"Invalid history document {self._path}: {e}"
            raise CorruptDocumentError(msg) from e

    def _encode(self, document: HistoryDocument) -> str:
        content = json.dumps(document.to_dict(), indent=self._indent, ensure_ascii=False)
        if self.is_script:
            return f"{JS_PREFIX}{content}\n"
        return content + "\n"

    def _read(self) -> HistoryDocument:
        if not self._path.exists():
            return HistoryDocument()
        try:
            content = self._path.read_text(encoding="utf-8")
        except OSError as e:
            msg = f"Failed to read history document {self._path}: {e}"
            raise PersistenceError(msg) from e
        if not content.strip():
            return HistoryDocument()
        return self._decode(content)

    def _write(self, content: str) -> None:
        try:
            # Ensure parent directory exists
            self._path.parent.mkdir(parents=True, exist_ok=True)

            # Atomic write: write to temp file, then rename
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=".benchwatch_",
                suffix=".tmp",
            )
        except OSError as e:
            msg = f"Failed to prepare write of {self._path}: {e}"
            raise PersistenceError(msg) from e
        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
            Path(temp_path).replace(self._path)
        except OSError as e:
            Path(temp_path).unlink(missing_ok=True)
            msg = f"Failed to write history document {self._path}: {e}"
            raise PersistenceError(msg) from e

    async def load(self) -> HistoryDocument:
        """Load the history document.

        Returns:
            The stored document, or an empty one if the file is missing or empty.

        Raises:
            PersistenceError: If the file cannot be read.
            CorruptDocumentError: If the file content cannot be decoded.
        """
        document = await asyncio.to_thread(self._read)
        logger.debug(f"Loaded history document from {self._path} ({len(document.entries)} groups)")
        return document

    async def save(self, document: HistoryDocument) -> None:
        """Persist the history document with an atomic write.

        Args:
            document: The full document to store.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        content = self._encode(document)
        await asyncio.to_thread(self._write, content)
