"""Chunked, concurrency-bounded dispatch of translation entries."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from uuid import uuid4

from lokal_core.ports.orchestrator import LogSinkProtocol, emit_log_entry
from lokal_core.ports.provider import (
    TranslationClientProtocol,
    build_batch_completed_log,
    build_batch_entry_failed_log,
    build_batch_progress_log,
    build_batch_started_log,
)
from lokal_schemas.config import ConcurrencyConfig
from lokal_schemas.logs import LogEntry
from lokal_schemas.primitives import RunId, Timestamp
from lokal_schemas.translation import (
    BatchSummary,
    TranslationEntry,
    TranslationErrorKind,
    TranslationOutcome,
)

type SleepFn = Callable[[float], Awaitable[None]]

PROGRESS_LOG_INTERVAL = 10


class BatchScheduler:
    """Fan translation entries out to a client under a concurrency cap.

    Entries are split into chunks that run strictly one after another. Inside
    a chunk at most ``concurrency_limit`` requests are in flight. Each request
    keeps its slot for ``request_pause_s`` after it finishes, and chunks are
    separated by ``chunk_pause_s``.
    """

    def __init__(
        self,
        client: TranslationClientProtocol,
        *,
        chunk_size: int = 50,
        request_pause_s: float = 0.3,
        chunk_pause_s: float = 0.5,
        log_sink: LogSinkProtocol | None = None,
        sleep: SleepFn | None = None,
        clock: Callable[[], Timestamp] | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            client: Client used to translate each entry.
            chunk_size: Entries per sequential chunk.
            request_pause_s: Pause held inside the slot after each request.
            chunk_pause_s: Pause between consecutive chunks.
            log_sink: Optional sink for progress and summary logs.
            sleep: Optional async sleep function.
            clock: Optional timestamp provider.

        Raises:
            ValueError: If chunk_size is not positive or a pause is negative.
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if request_pause_s < 0 or chunk_pause_s < 0:
            raise ValueError("pauses must not be negative")
        self._client = client
        self._chunk_size = chunk_size
        self._request_pause_s = request_pause_s
        self._chunk_pause_s = chunk_pause_s
        self._log_sink = log_sink
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or _now_timestamp

    @classmethod
    def from_config(
        cls,
        client: TranslationClientProtocol,
        config: ConcurrencyConfig,
        *,
        log_sink: LogSinkProtocol | None = None,
        sleep: SleepFn | None = None,
        clock: Callable[[], Timestamp] | None = None,
    ) -> BatchScheduler:
        """Create a scheduler from concurrency settings.

        Returns:
            BatchScheduler: Configured scheduler.
        """
        return cls(
            client,
            chunk_size=config.chunk_size,
            request_pause_s=config.request_pause_s,
            chunk_pause_s=config.chunk_pause_s,
            log_sink=log_sink,
            sleep=sleep,
            clock=clock,
        )

    async def run_batch(
        self,
        entries: list[TranslationEntry],
        concurrency_limit: int,
        *,
        run_id: RunId | None = None,
    ) -> dict[str, TranslationOutcome]:
        """Translate entries and return outcomes keyed by entry key.

        Exceptions raised by the client are recorded as failed outcomes.

        Args:
            entries: Entries to translate.
            concurrency_limit: Maximum in-flight requests.
            run_id: Run identifier attached to log entries.

        Returns:
            dict[str, TranslationOutcome]: One outcome per submitted key, in
            submission order.

        Raises:
            ValueError: If concurrency_limit is not positive.
        """
        if concurrency_limit <= 0:
            raise ValueError("concurrency_limit must be positive")
        if not entries:
            return {}
        run_id = run_id or uuid4()
        started = time.perf_counter()
        chunks = [
            entries[index : index + self._chunk_size]
            for index in range(0, len(entries), self._chunk_size)
        ]
        await self._emit(
            build_batch_started_log(self._clock(), run_id, len(entries), len(chunks))
        )

        semaphore = asyncio.Semaphore(concurrency_limit)
        collected: dict[str, TranslationOutcome] = {}
        completed = 0
        succeeded = 0

        async def _dispatch(entry: TranslationEntry) -> None:
            nonlocal completed, succeeded
            async with semaphore:
                try:
                    outcome = await self._client.translate(entry)
                except Exception as exc:
                    outcome = _contained_failure(entry, exc)
                await self._sleep(self._request_pause_s)
            collected[entry.key] = outcome
            completed += 1
            if outcome.succeeded:
                succeeded += 1
            else:
                await self._emit(
                    build_batch_entry_failed_log(self._clock(), run_id, outcome)
                )
            if completed % PROGRESS_LOG_INTERVAL == 0:
                await self._emit(
                    build_batch_progress_log(
                        self._clock(), run_id, completed, len(entries), succeeded
                    )
                )

        for index, chunk in enumerate(chunks):
            if index > 0:
                await self._sleep(self._chunk_pause_s)
            async with asyncio.TaskGroup() as group:
                for entry in chunk:
                    group.create_task(_dispatch(entry))

        outcomes = {
            entry.key: collected[entry.key]
            for entry in entries
            if entry.key in collected
        }
        summary = BatchSummary.from_outcomes(outcomes, time.perf_counter() - started)
        await self._emit(build_batch_completed_log(self._clock(), run_id, summary))
        return outcomes

    async def _emit(self, entry: LogEntry) -> None:
        await emit_log_entry(self._log_sink, entry)


def _contained_failure(entry: TranslationEntry, exc: Exception) -> TranslationOutcome:
    return TranslationOutcome(
        key=entry.key,
        text=entry.source_text,
        succeeded=False,
        error_kind=TranslationErrorKind.UNEXPECTED,
        error_detail=f"{type(exc).__name__}: {exc}",
        attempts=1,
    )


def _now_timestamp() -> Timestamp:
    value = datetime.now(tz=UTC).isoformat()
    return value.replace("+00:00", "Z")
