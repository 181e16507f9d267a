"""Shared fixtures for the test suite."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import Any

import pytest

from asset_indexer.ingestor.models import ContractKind, DecodedEvent
from asset_indexer.storage.memory import MemoryStore

ASSET = "0x" + "a1" * 20
ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20
CAROL = "0x" + "33" * 20
DEPLOYER = "0x" + "de" * 20
VAULT = "0x" + "fa" * 20
IDENTITY = "0x" + "1d" * 20
REGISTRY = "0x" + "4e" * 20
SYSTEM = "0x" + "5e" * 20
TX_HASH = "0x" + "ab" * 32

EventFactory = Callable[..., DecodedEvent]


@pytest.fixture
def store() -> MemoryStore:
    """Create an empty in-memory store."""
    return MemoryStore()


@pytest.fixture
def make_event() -> EventFactory:
    """Create a factory for decoded events at increasing log positions."""
    counter = itertools.count()

    def factory(
        contract: ContractKind,
        event_name: str,
        emitter: str = ASSET,
        *,
        block_number: int = 100,
        block_timestamp: int = 1_700_000_000,
        transaction_hash: str = TX_HASH,
        transaction_from: str = DEPLOYER,
        log_index: int | None = None,
        **params: Any,
    ) -> DecodedEvent:
        return DecodedEvent(
            contract=contract,
            name=event_name,
            emitter=emitter,
            block_number=block_number,
            block_timestamp=block_timestamp,
            transaction_hash=transaction_hash,
            transaction_from=transaction_from,
            log_index=next(counter) if log_index is None else log_index,
            params=params,
        )

    return factory
