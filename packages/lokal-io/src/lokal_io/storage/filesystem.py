"""Filesystem-backed JSONL log store and atomic file writes."""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path

from lokal_core.ports.storage import (
    LogStoreProtocol,
    StorageError,
    StorageErrorCode,
    StorageErrorInfo,
)
from lokal_schemas.logs import LogEntry
from lokal_schemas.primitives import RunId


class FileSystemLogStore(LogStoreProtocol):
    """Append log entries to ``<logs_dir>/<run_id>.jsonl``."""

    def __init__(self, logs_dir: str | Path) -> None:
        """Initialize the log store."""
        self._logs_dir = Path(logs_dir)

    async def append_log(self, entry: LogEntry) -> None:
        """Append a single log entry.

        Raises:
            StorageError: If the log entry cannot be written.
        """
        path = Path(self.log_path(entry.run_id))
        try:
            await asyncio.to_thread(_append_jsonl, path, entry)
        except OSError as exc:
            raise StorageError(
                StorageErrorInfo(
                    code=StorageErrorCode.IO_ERROR, message=str(exc), path=str(path)
                )
            ) from exc

    def log_path(self, run_id: RunId) -> str:
        """Return the JSONL path for a run."""
        return str(self._logs_dir / f"{run_id}.jsonl")


def _append_jsonl(path: Path, entry: LogEntry) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(entry.model_dump_json(exclude_none=False) + "\n")


def write_text_atomic(path: Path, payload: str) -> None:
    """Write UTF-8 text so readers see either the old or the new file.

    The payload goes to a temp file in the target directory, which then
    replaces the target in one rename.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(payload)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise
