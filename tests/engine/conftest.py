"""Fixtures for engine tests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import pytest

from asset_indexer.engine.dispatcher import DispatchResult, EventDispatcher
from asset_indexer.ingestor.models import DecodedEvent
from asset_indexer.storage.memory import MemoryStore

# Decimals configured for the default test asset.
ASSET_DECIMALS = {"0x" + "a1" * 20: 6}


@pytest.fixture
def dispatcher(store: MemoryStore) -> EventDispatcher:
    """Create a dispatcher over the test store."""
    return EventDispatcher(store, asset_decimals=ASSET_DECIMALS)


@pytest.fixture
def apply(dispatcher: EventDispatcher) -> Callable[..., Awaitable[list[DispatchResult]]]:
    """Create a helper applying events in order."""

    async def _apply(*events: DecodedEvent) -> list[DispatchResult]:
        return await dispatcher.process_batch(events)

    return _apply
