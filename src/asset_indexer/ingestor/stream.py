"""Redis Streams transport for decoded contract events.

The upstream decoder publishes events in chain order to a single stream.
The indexer reads them through a consumer group so unacknowledged entries
survive a restart and are re-delivered before any new entry.
"""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import ResponseError

from asset_indexer.engine.errors import IndexerError

from .models import DecodedEvent

logger = logging.getLogger(__name__)


# Default configuration
DEFAULT_STREAM_NAME = "contract-events"
DEFAULT_MAX_LEN = 1_000_000
DEFAULT_BLOCK_MS = 1000
DEFAULT_COUNT = 100


class StreamError(IndexerError):
    """Base exception for event stream errors."""

    pass


class ConsumerGroupExistsError(StreamError):
    """Raised when trying to create a consumer group that already exists."""

    pass


class EntryDecodeError(StreamError):
    """Raised when a stream entry cannot be decoded into an event."""

    def __init__(self, entry_id: str, reason: str) -> None:
        self.entry_id = entry_id
        super().__init__(f"Cannot decode stream entry {entry_id}: {reason}")


@dataclass
class StreamEntry:
    """Represents an entry read from a Redis Stream."""

    entry_id: str
    event: DecodedEvent


def _serialize_event(event: DecodedEvent) -> dict[str, str]:
    """Serialize a DecodedEvent to a dict suitable for Redis Streams.

    Redis Streams require string key-value pairs. Metadata fields become
    strings and the parameters are stored as one JSON document.

    Args:
        event: The DecodedEvent to serialize.

    Returns:
        Dictionary with string keys and values.
    """
    data = event.to_dict()
    params = data.pop("params")
    serialized = {key: str(value) for key, value in data.items()}
    serialized["params"] = json.dumps(params, separators=(",", ":"))
    return serialized


def _deserialize_event(data: dict[bytes | str, bytes | str]) -> DecodedEvent:
    """Deserialize a DecodedEvent from Redis Stream data.

    Args:
        data: The raw data from Redis Stream (may have bytes keys/values).

    Returns:
        DecodedEvent instance.
    """
    decoded: dict[str, Any] = {}
    for k, v in data.items():
        key = k.decode() if isinstance(k, bytes) else k
        value = v.decode() if isinstance(v, bytes) else v
        decoded[key] = value

    decoded["params"] = json.loads(decoded.get("params") or "{}")
    return DecodedEvent.from_dict(decoded)


def _entry_id(entry_id: bytes | str) -> str:
    return entry_id.decode() if isinstance(entry_id, bytes) else str(entry_id)


class EventStream:
    """Decoded event stream using Redis Streams.

    This class wraps Redis Streams to provide:
    - Publishing single or batch events
    - Consumer group management
    - Reading pending and new entries as a consumer

    Entries that cannot be decoded raise ``EntryDecodeError`` instead of
    being skipped, since skipping would break event ordering.

    Example:
        ```python
        redis = Redis.from_url("redis://localhost:6379")
        stream = EventStream(redis)

        await stream.ensure_consumer_group("indexer")

        entries = await stream.read_events("indexer", "indexer-1")
        for entry in entries:
            await dispatcher.process(entry.event)
            await stream.ack("indexer", entry.entry_id)
        ```
    """

    def __init__(
        self,
        redis: Redis,
        stream_name: str = DEFAULT_STREAM_NAME,
        *,
        max_len: int = DEFAULT_MAX_LEN,
    ) -> None:
        """Initialize the event stream.

        Args:
            redis: Redis async client.
            stream_name: Name of the Redis Stream.
            max_len: Maximum number of entries to keep in stream.
        """
        self._redis = redis
        self._stream_name = stream_name
        self._max_len = max_len

    @property
    def stream_name(self) -> str:
        """Return the stream name."""
        return self._stream_name

    async def publish(self, event: DecodedEvent) -> str:
        """Publish a single event to the stream.

        Args:
            event: The DecodedEvent to publish.

        Returns:
            The entry ID assigned by Redis.
        """
        data = _serialize_event(event)
        # redis-py typing expects broader dict type than dict[str, str]
        entry_id = await self._redis.xadd(
            self._stream_name,
            data,  # type: ignore[arg-type]
            maxlen=self._max_len,
            approximate=True,
        )
        return _entry_id(entry_id)

    async def publish_batch(self, events: Sequence[DecodedEvent]) -> list[str]:
        """Publish multiple events in order.

        Uses a Redis pipeline for efficiency.

        Args:
            events: Sequence of DecodedEvents to publish.

        Returns:
            List of entry IDs assigned by Redis.
        """
        if not events:
            return []

        pipe = self._redis.pipeline()
        for event in events:
            data = _serialize_event(event)
            pipe.xadd(self._stream_name, data, maxlen=self._max_len, approximate=True)  # type: ignore[arg-type]

        results = await pipe.execute()
        return [_entry_id(entry_id) for entry_id in results]

    async def create_consumer_group(
        self,
        group_name: str,
        start_id: str = "0",
        *,
        mkstream: bool = True,
    ) -> None:
        """Create a consumer group for the stream.

        Args:
            group_name: Name of the consumer group.
            start_id: ID to start reading from ("0" = beginning, "$" = new only).
            mkstream: Create the stream if it doesn't exist.

        Raises:
            ConsumerGroupExistsError: If the group already exists.
        """
        try:
            await self._redis.xgroup_create(
                self._stream_name,
                group_name,
                id=start_id,
                mkstream=mkstream,
            )
            logger.info(f"Created consumer group '{group_name}' on stream '{self._stream_name}'")
        except ResponseError as e:
            if "BUSYGROUP" in str(e):
                raise ConsumerGroupExistsError(
                    f"Consumer group '{group_name}' already exists"
                ) from e
            raise

    async def ensure_consumer_group(
        self,
        group_name: str,
        start_id: str = "0",
    ) -> bool:
        """Ensure a consumer group exists, creating it if needed.

        Args:
            group_name: Name of the consumer group.
            start_id: ID to start reading from if creating.

        Returns:
            True if the group was created, False if it already existed.
        """
        try:
            await self.create_consumer_group(group_name, start_id)
            return True
        except ConsumerGroupExistsError:
            return False

    def _parse(self, results: Any, trimmed: list[str] | None = None) -> list[StreamEntry]:
        entries: list[StreamEntry] = []
        if not results:
            return entries

        # Results format: [[stream_name, [(entry_id, data), ...]]]
        for _stream_name, stream_entries in results:
            for entry_id, data in stream_entries:
                entry_id_str = _entry_id(entry_id)

                # Pending entries deleted from the stream come back without data
                if trimmed is not None and not data:
                    trimmed.append(entry_id_str)
                    continue

                try:
                    event = _deserialize_event(data)
                except (KeyError, ValueError, TypeError) as e:
                    raise EntryDecodeError(entry_id_str, str(e)) from e
                entries.append(StreamEntry(entry_id=entry_id_str, event=event))

        return entries

    async def read_events(
        self,
        group_name: str,
        consumer_name: str,
        *,
        count: int = DEFAULT_COUNT,
        block_ms: int = DEFAULT_BLOCK_MS,
    ) -> list[StreamEntry]:
        """Read new events from the stream as a consumer.

        Args:
            group_name: Consumer group name.
            consumer_name: Name of this consumer within the group.
            count: Maximum number of entries to read.
            block_ms: Milliseconds to block waiting for new entries.

        Returns:
            List of StreamEntry in stream order.

        Raises:
            EntryDecodeError: If an entry cannot be decoded.
        """
        # ">" means entries never delivered to this group
        results = await self._redis.xreadgroup(
            group_name,
            consumer_name,
            {self._stream_name: ">"},
            count=count,
            block=block_ms,
        )
        return self._parse(results)

    async def read_pending(
        self,
        group_name: str,
        consumer_name: str,
        *,
        count: int = DEFAULT_COUNT,
    ) -> list[StreamEntry]:
        """Read pending (unacknowledged) entries for a consumer.

        Entries delivered before a crash or a failed dispatch are returned
        again, oldest first. Pending entries trimmed from the stream are
        acknowledged and skipped, so an empty result means nothing is
        pending anymore.

        Args:
            group_name: Consumer group name.
            consumer_name: Name of this consumer.
            count: Maximum number of entries to read.

        Returns:
            List of pending StreamEntry.

        Raises:
            EntryDecodeError: If an entry cannot be decoded.
        """
        while True:
            # "0" means all entries pending for this consumer
            results = await self._redis.xreadgroup(
                group_name,
                consumer_name,
                {self._stream_name: "0"},
                count=count,
            )
            trimmed: list[str] = []
            entries = self._parse(results, trimmed)
            if trimmed:
                logger.warning(
                    f"Acknowledging {len(trimmed)} pending entries no longer in stream: "
                    f"{', '.join(trimmed)}"
                )
                await self.ack(group_name, *trimmed)
            if entries or not trimmed:
                return entries

    async def ack(self, group_name: str, *entry_ids: str) -> int:
        """Acknowledge that entries have been processed.

        Args:
            group_name: Consumer group name.
            *entry_ids: Entry IDs to acknowledge.

        Returns:
            Number of entries acknowledged.
        """
        if not entry_ids:
            return 0
        result = await self._redis.xack(self._stream_name, group_name, *entry_ids)
        return int(result)

    async def get_stream_length(self) -> int:
        """Get the current length of the stream.

        Returns:
            Number of entries in the stream.
        """
        result = await self._redis.xlen(self._stream_name)
        return int(result)
