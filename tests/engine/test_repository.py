"""Tests for id builders and fetch-or-create access."""

import pytest

from asset_indexer.engine.models import Account, Asset, AssetType, Vault
from asset_indexer.engine.repository import (
    asset_balance_id,
    blocked_user_id,
    concat_ids,
    event_id,
    fetch_asset,
    fetch_asset_activity,
    fetch_asset_balance,
    fetch_or_create,
    fetch_vault,
    vault_confirmation_id,
    vault_transaction_id,
)
from asset_indexer.storage.base import UnitOfWork
from asset_indexer.storage.memory import MemoryStore

ASSET = "0x" + "a1" * 20
ALICE = "0x" + "11" * 20
VAULT = "0x" + "fa" * 20


class TestIdBuilders:
    """Tests for deterministic ids."""

    def test_concat_ids_strips_prefixes(self) -> None:
        assert concat_ids("0xABCD", "0x0102") == "0xabcd0102"

    def test_concat_ids_without_prefix(self) -> None:
        assert concat_ids("ab", "0Xcd") == "0xabcd"

    def test_event_id_little_endian_log_index(self) -> None:
        tx_hash = "0x" + "ab" * 32
        assert event_id(tx_hash, 1) == tx_hash + "01000000"
        assert event_id(tx_hash, 0x0102) == tx_hash + "02010000"

    def test_event_id_is_unique_per_log(self) -> None:
        tx_hash = "0x" + "ab" * 32
        assert event_id(tx_hash, 0) != event_id(tx_hash, 1)

    def test_balance_and_block_ids_are_pure(self) -> None:
        assert asset_balance_id(ASSET, ALICE) == asset_balance_id(ASSET, ALICE)
        assert blocked_user_id(ASSET, ALICE) == "0x" + "a1" * 20 + "11" * 20

    def test_vault_ids(self) -> None:
        tx_id = vault_transaction_id(VAULT, 3)
        assert tx_id == f"{VAULT}-3"
        assert vault_confirmation_id(tx_id, ALICE) == f"{VAULT}-3-{ALICE}"


class TestFetchOrCreate:
    """Tests for fetch-or-create."""

    @pytest.mark.asyncio
    async def test_creates_and_saves(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)

        account = await fetch_or_create(uow, Account, ALICE)
        await uow.commit()

        assert account == Account(id=ALICE)
        assert await store.get(Account, ALICE) == account

    @pytest.mark.asyncio
    async def test_returns_existing(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)
        first = await fetch_or_create(uow, Account, ALICE)
        first.balances_count = 1

        second = await fetch_or_create(uow, Account, ALICE)

        assert second is first

    @pytest.mark.asyncio
    async def test_asset_defaults(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)

        asset = await fetch_asset(uow, ASSET, decimals=6)

        assert isinstance(asset, Asset)
        assert asset.decimals == 6
        assert asset.type is AssetType.UNKNOWN

    @pytest.mark.asyncio
    async def test_asset_balance_keys(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)

        balance = await fetch_asset_balance(uow, ASSET, ALICE)

        assert balance.id == asset_balance_id(ASSET, ALICE)
        assert (balance.asset, balance.account) == (ASSET, ALICE)

    @pytest.mark.asyncio
    async def test_asset_activity_keyed_by_type(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)

        activity = await fetch_asset_activity(uow, AssetType.EQUITY)

        assert activity.id == "equity"

    @pytest.mark.asyncio
    async def test_vault_creates_account(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)

        vault = await fetch_vault(uow, VAULT, 42)
        await uow.commit()

        assert isinstance(vault, Vault)
        assert vault.deployed_on == 42
        assert await store.get(Account, VAULT) is not None
