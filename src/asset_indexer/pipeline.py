"""Indexing pipeline consuming decoded events from Redis Streams.

A single consumer reads the stream through a consumer group and applies
each event with the dispatcher, strictly in stream order. An entry is
acknowledged only after its unit of work has been committed, so a crash
between commit and ack re-delivers an event the ledger already knows and
the dispatcher skips it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from asset_indexer.engine import repository
from asset_indexer.engine.dispatcher import DispatchResult, DispatchStatus, EventDispatcher
from asset_indexer.engine.errors import IndexerError
from asset_indexer.health import HealthMonitor, PipelineState
from asset_indexer.ingestor.models import DecodedEvent
from asset_indexer.ingestor.replay import read_events
from asset_indexer.ingestor.stream import EventStream, StreamEntry
from asset_indexer.storage.sql import SqlAlchemyStore

if TYPE_CHECKING:
    from asset_indexer.config import Settings
    from asset_indexer.storage.base import Store

logger = logging.getLogger(__name__)

MAX_READ_BACKOFF = 30.0


class PipelineHaltedError(IndexerError):
    """Raised when an event still fails after every retry."""

    def __init__(self, event_id: str, attempts: int) -> None:
        self.event_id = event_id
        self.attempts = attempts
        super().__init__(f"Event {event_id} failed after {attempts} attempts")


@dataclass
class PipelineStats:
    """Counters for one pipeline run."""

    entries_read: int = 0
    entries_acked: int = 0
    applied: int = 0
    duplicates: int = 0
    unhandled: int = 0
    failures: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def record(self, result: DispatchResult) -> None:
        """Count a dispatch outcome."""
        if result.applied:
            self.applied += 1
        elif result.status is DispatchStatus.DUPLICATE:
            self.duplicates += 1
        else:
            self.unhandled += 1


class Pipeline:
    """Single-consumer indexing loop.

    On start the pipeline first drains entries left pending by an earlier
    run, then blocks on new entries. A failing event is retried with
    exponential backoff; once ``max_retries`` attempts have failed the
    pipeline halts with the entry still pending rather than skip it.

    Example:
        ```python
        pipeline = Pipeline(settings)
        await pipeline.start()
        await pipeline.wait()
        await pipeline.stop()
        ```
    """

    def __init__(
        self,
        settings: Settings,
        *,
        store: Store | None = None,
        redis: Redis | None = None,
        monitor: HealthMonitor | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            settings: Application settings.
            store: Store to index into. Created from the database settings
                when omitted.
            redis: Redis client. Created from the Redis settings when omitted.
            monitor: Health monitor receiving progress updates.
        """
        self._settings = settings
        self._store = store
        self._owns_store = store is None
        self._redis = redis
        self._owns_redis = redis is None
        self.monitor = monitor or HealthMonitor()

        self._stream: EventStream | None = None
        self._dispatcher: EventDispatcher | None = None
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._error: BaseException | None = None
        self.stats = PipelineStats()

    @property
    def is_running(self) -> bool:
        """Return True if the consumer loop is running."""
        return self._running

    @property
    def error(self) -> BaseException | None:
        """Return the error that halted the pipeline, if any."""
        return self._error

    @property
    def dispatcher(self) -> EventDispatcher | None:
        """Return the dispatcher once the store is open."""
        return self._dispatcher

    async def _open_store(self) -> Store:
        if self._store is None:
            sql_store = SqlAlchemyStore.from_url(
                self._settings.database.url,
                echo=self._settings.database.echo,
            )
            await sql_store.create_all()
            self._store = sql_store
        self._dispatcher = EventDispatcher(
            self._store,
            asset_decimals=self._settings.indexer.asset_decimals,
            default_decimals=self._settings.indexer.default_decimals,
        )
        return self._store

    async def start(self) -> None:
        """Open connections and start the consumer loop in the background."""
        if self._running:
            logger.warning("Pipeline already running")
            return

        await self._open_store()

        if self._redis is None:
            self._redis = Redis.from_url(self._settings.redis.url)
        self._stream = EventStream(self._redis, self._settings.stream.name)
        created = await self._stream.ensure_consumer_group(self._settings.stream.group)
        if not created:
            logger.info(f"Joining existing consumer group '{self._settings.stream.group}'")

        self._running = True
        self._error = None
        self.monitor.set_state(PipelineState.RUNNING)
        self._task = asyncio.create_task(self._run())
        logger.info(
            f"Pipeline started: stream={self._settings.stream.name} "
            f"group={self._settings.stream.group} consumer={self._settings.stream.consumer}"
        )

    async def wait(self) -> None:
        """Wait until the consumer loop exits."""
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    async def stop(self) -> None:
        """Stop the consumer loop and release owned connections."""
        self._running = False

        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

        await self._cleanup()

        if self.monitor.state != PipelineState.HALTED:
            self.monitor.set_state(PipelineState.STOPPED)
        logger.info(
            f"Pipeline stopped: applied={self.stats.applied} "
            f"duplicates={self.stats.duplicates} unhandled={self.stats.unhandled}"
        )

    async def _cleanup(self) -> None:
        if self._owns_redis and self._redis is not None:
            try:
                await self._redis.aclose()
            except RedisError as e:
                logger.debug("Error closing Redis client: %s", e)
            self._redis = None

        if self._owns_store and isinstance(self._store, SqlAlchemyStore):
            await self._store.close()
            self._store = None

    async def _run(self) -> None:
        """Consume pending entries, then new entries, until stopped."""
        assert self._stream is not None
        settings = self._settings.stream

        try:
            while self._running:
                pending = await self._stream.read_pending(
                    settings.group, settings.consumer, count=settings.batch_size
                )
                if not pending:
                    break
                logger.info(f"Re-processing {len(pending)} pending entries")
                await self._process_entries(pending)

            delay = settings.retry_backoff
            while self._running:
                try:
                    entries = await self._stream.read_events(
                        settings.group,
                        settings.consumer,
                        count=settings.batch_size,
                        block_ms=settings.block_ms,
                    )
                except RedisError as e:
                    logger.warning("Reading stream failed: %s (retrying in %.1fs)", e, delay)
                    self.monitor.set_state(PipelineState.RETRYING, str(e))
                    await asyncio.sleep(delay)
                    delay = min(delay * 2, MAX_READ_BACKOFF)
                    continue

                delay = settings.retry_backoff
                if self.monitor.state == PipelineState.RETRYING:
                    self.monitor.set_state(PipelineState.RUNNING)
                if entries:
                    await self._process_entries(entries)
                    self.monitor.set_stream_length(await self._stream.get_stream_length())

        except IndexerError as e:
            logger.error(f"Pipeline halted: {e}")
            self._error = e
            self.monitor.set_state(PipelineState.HALTED, str(e))
        finally:
            self._running = False

    async def _process_entries(self, entries: list[StreamEntry]) -> None:
        assert self._stream is not None
        self.stats.entries_read += len(entries)

        for entry in entries:
            if not self._running:
                return
            await self._apply_with_retry(entry.event)
            self.stats.entries_acked += await self._stream.ack(
                self._settings.stream.group, entry.entry_id
            )

    async def _apply_with_retry(self, event: DecodedEvent) -> DispatchResult:
        """Apply one event, retrying with exponential backoff.

        Raises:
            PipelineHaltedError: If every attempt failed.
        """
        assert self._dispatcher is not None
        max_retries = self._settings.stream.max_retries
        delay = self._settings.stream.retry_backoff

        for attempt in range(1, max_retries + 1):
            started = time.perf_counter()
            try:
                result = await self._dispatcher.process(event)
            except Exception as e:
                self.stats.failures += 1
                self.monitor.record_failure(e)
                if attempt == max_retries:
                    raise PipelineHaltedError(
                        repository.event_id(event.transaction_hash, event.log_index), attempt
                    ) from e

                logger.warning(
                    "Applying %s at block %d failed (attempt %d/%d): %s",
                    event.name,
                    event.block_number,
                    attempt,
                    max_retries,
                    e,
                )
                self.monitor.set_state(PipelineState.RETRYING, str(e))
                await asyncio.sleep(delay)
                delay *= 2
                continue

            self.stats.record(result)
            self.monitor.record_result(
                result,
                block_number=event.block_number,
                processing_time=time.perf_counter() - started,
            )
            return result

        raise PipelineHaltedError(
            repository.event_id(event.transaction_hash, event.log_index), max_retries
        )

    async def replay(self, path: str | Path) -> PipelineStats:
        """Apply every event of a JSON-lines file without Redis.

        Events are applied in file order. The first failing event stops
        the replay; events before it stay applied and replaying the same
        file again skips them.

        Args:
            path: Path of the replay file.

        Returns:
            PipelineStats for the replay.

        Raises:
            IndexerError: If an event cannot be applied or the file is
                malformed.
        """
        await self._open_store()
        assert self._dispatcher is not None
        self.monitor.set_state(PipelineState.RUNNING)
        stats = PipelineStats()

        try:
            for event in read_events(path):
                stats.entries_read += 1
                result = await self._dispatcher.process(event)
                stats.record(result)
                self.monitor.record_result(result, block_number=event.block_number)
        finally:
            await self._cleanup()

        self.stats = stats
        logger.info(
            f"Replayed {stats.entries_read} events from {path}: applied={stats.applied} "
            f"duplicates={stats.duplicates} unhandled={stats.unhandled}"
        )
        return stats

    async def __aenter__(self) -> Pipeline:
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.stop()
