"""Indexing engine - Derived state from decoded contract events."""

from asset_indexer.engine.context import EventContext
from asset_indexer.engine.dispatcher import (
    DispatcherStats,
    DispatchResult,
    DispatchStatus,
    EventDispatcher,
)
from asset_indexer.engine.errors import (
    CounterUnderflowError,
    IndexerError,
    InvariantError,
    MalformedEventError,
    NegativeBalanceError,
)
from asset_indexer.engine.holders import (
    block_user,
    reconcile_balances_count,
    reconcile_holder_count,
    unblock_user,
)
from asset_indexer.engine.identity import decode_key_purpose, decode_key_type
from asset_indexer.engine.repository import blocked_user_id, event_id, fetch_or_create

__all__ = [
    # Dispatcher
    "DispatcherStats",
    "DispatchResult",
    "DispatchStatus",
    "EventContext",
    "EventDispatcher",
    # Errors
    "CounterUnderflowError",
    "IndexerError",
    "InvariantError",
    "MalformedEventError",
    "NegativeBalanceError",
    # Holders and block list
    "block_user",
    "reconcile_balances_count",
    "reconcile_holder_count",
    "unblock_user",
    # Identity
    "decode_key_purpose",
    "decode_key_type",
    # Repository
    "blocked_user_id",
    "event_id",
    "fetch_or_create",
]
