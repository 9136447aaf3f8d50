"""Log sinks that route run events to the console and the JSONL log store."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from typing import TextIO

from lokal_core.ports.orchestrator import LogSinkProtocol
from lokal_core.ports.storage import LogStoreProtocol, StorageError
from lokal_schemas.config import LoggingConfig, LogSinkConfig
from lokal_schemas.logs import LogEntry
from lokal_schemas.primitives import LogLevel, LogSinkType

_log = logging.getLogger(__name__)

_LEVEL_ORDER = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
}


def level_enabled(entry_level: LogLevel, min_level: LogLevel) -> bool:
    """Return True when an entry at ``entry_level`` passes ``min_level``."""
    return _LEVEL_ORDER[entry_level] >= _LEVEL_ORDER[min_level]


class RunLogFileSink(LogSinkProtocol):
    """Append entries to the per-run JSONL file.

    The first store failure is reported once through ``logging`` and the sink
    stops writing for the rest of the process, so a full disk does not produce
    one warning per translated key.
    """

    def __init__(
        self, store: LogStoreProtocol, *, min_level: LogLevel = LogLevel.DEBUG
    ) -> None:
        """Initialize the sink with a log store and a minimum level."""
        self._store = store
        self._min_level = min_level
        self._disabled = False

    @property
    def disabled(self) -> bool:
        """Return True once a store failure has switched the sink off."""
        return self._disabled

    async def emit_log(self, entry: LogEntry) -> None:
        """Persist a log entry unless it is filtered or the sink is off."""
        if self._disabled or not level_enabled(entry.level, self._min_level):
            return
        try:
            await self._store.append_log(entry)
        except StorageError as exc:
            self._disabled = True
            _log.warning(
                "Run log file disabled after write failure: %s", exc.info.message
            )


class FanOutLogSink(LogSinkProtocol):
    """Forward entries to each configured sink in order."""

    def __init__(self, sinks: Iterable[LogSinkProtocol]) -> None:
        """Initialize the fan-out sink."""
        self._sinks = list(sinks)

    async def emit_log(self, entry: LogEntry) -> None:
        """Forward a log entry to every child sink."""
        for sink in self._sinks:
            await sink.emit_log(entry)


class ConsoleLogSink(LogSinkProtocol):
    """Write entries at or above a minimum level as JSONL to stderr."""

    def __init__(
        self, stream: TextIO | None = None, *, min_level: LogLevel = LogLevel.INFO
    ) -> None:
        """Initialize the console log sink.

        Args:
            stream: Output stream for JSONL log entries.
            min_level: Entries below this level are skipped.
        """
        self._stream = stream or sys.stderr
        self._min_level = min_level

    async def emit_log(self, entry: LogEntry) -> None:
        """Write the entry as one compact JSON line."""
        if not level_enabled(entry.level, self._min_level):
            return
        self._stream.write(entry.model_dump_json(exclude_none=True) + "\n")
        self._stream.flush()


class NoopLogSink(LogSinkProtocol):
    """Drop every entry."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Ignore log entries."""
        return None


def _build_one(
    sink_config: LogSinkConfig,
    log_store: LogStoreProtocol,
    stream: TextIO | None,
) -> LogSinkProtocol:
    if sink_config.type == LogSinkType.FILE:
        return RunLogFileSink(log_store, min_level=sink_config.level)
    if sink_config.type == LogSinkType.CONSOLE:
        return ConsoleLogSink(stream=stream, min_level=sink_config.level)
    if sink_config.type == LogSinkType.NOOP:
        return NoopLogSink()
    raise ValueError(f"Unsupported log sink type: {sink_config.type}")


def build_log_sink(
    logging_config: LoggingConfig,
    log_store: LogStoreProtocol,
    *,
    stream: TextIO | None = None,
) -> LogSinkProtocol:
    """Build the run log sink from the ``[logging]`` table.

    Args:
        logging_config: Logging configuration.
        log_store: Store backing ``file`` sinks.
        stream: Optional stream for ``console`` sinks.

    Returns:
        LogSinkProtocol: The single configured sink, or a fan-out over all of
        them.

    Raises:
        ValueError: If an unsupported log sink type is configured.
    """
    sinks = [
        _build_one(sink_config, log_store, stream)
        for sink_config in logging_config.sinks
    ]
    if len(sinks) == 1:
        return sinks[0]
    return FanOutLogSink(sinks)
