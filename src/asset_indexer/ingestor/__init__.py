"""Data ingestion layer - Decoded contract events from Redis or files."""

from asset_indexer.ingestor.models import (
    ZERO_ADDRESS,
    ContractKind,
    DecodedEvent,
    normalize_address,
)
from asset_indexer.ingestor.replay import ReplayError, read_events
from asset_indexer.ingestor.stream import (
    ConsumerGroupExistsError,
    EntryDecodeError,
    EventStream,
    StreamEntry,
    StreamError,
)

__all__ = [
    # Models
    "ZERO_ADDRESS",
    "ContractKind",
    "DecodedEvent",
    "normalize_address",
    # Replay
    "ReplayError",
    "read_events",
    # Stream
    "ConsumerGroupExistsError",
    "EntryDecodeError",
    "EventStream",
    "StreamEntry",
    "StreamError",
]
