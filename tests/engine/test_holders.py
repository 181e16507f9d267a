"""Tests for holder tracking, block and allow lists."""

import logging
from decimal import Decimal

import pytest

from asset_indexer.engine.errors import NegativeBalanceError
from asset_indexer.engine.holders import (
    allow_user,
    block_user,
    disallow_user,
    holders,
    is_allowed,
    is_blocked,
    reconcile_balances_count,
    reconcile_holder_count,
    set_paused,
    unblock_user,
    update_balance,
)
from asset_indexer.engine.models import Account, Asset, AssetBalance, BlockedUser
from asset_indexer.engine.repository import blocked_user_id
from asset_indexer.storage.base import ChangeSet, UnitOfWork
from asset_indexer.storage.memory import MemoryStore

ASSET = "0x" + "a1" * 20
ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20


def _balance(account: str, value: int = 0) -> AssetBalance:
    return AssetBalance(id=account, asset=ASSET, account=account, value_exact=value)


class TestUpdateBalance:
    """Tests for holder transitions."""

    def test_zero_to_nonzero_adds_holder(self) -> None:
        asset = Asset(id=ASSET, decimals=6)
        account = Account(id=ALICE)
        balance = _balance(ALICE)

        update_balance(asset, account, balance, 1_000_000, 5)

        assert asset.total_holders == 1
        assert account.balances_count == 1
        assert account.total_balance_exact == 1_000_000
        assert balance.value == Decimal(1)
        assert balance.last_activity == 5

    def test_nonzero_to_zero_removes_holder(self) -> None:
        asset = Asset(id=ASSET, total_holders=1)
        account = Account(id=ALICE, balances_count=1, total_balance_exact=10)
        balance = _balance(ALICE, 10)

        update_balance(asset, account, balance, 0, 5)

        assert asset.total_holders == 0
        assert account.balances_count == 0
        assert account.total_balance_exact == 0

    def test_nonzero_to_nonzero_keeps_counts(self) -> None:
        asset = Asset(id=ASSET, total_holders=1)
        account = Account(id=ALICE, balances_count=1, total_balance_exact=10)
        balance = _balance(ALICE, 10)

        update_balance(asset, account, balance, 20, 5)

        assert asset.total_holders == 1
        assert account.balances_count == 1

    def test_negative_raises(self) -> None:
        with pytest.raises(NegativeBalanceError):
            update_balance(Asset(id=ASSET), Account(id=ALICE), _balance(ALICE, 1), -1, 5)

    def test_paused_asset_tracks_paused_balance(self) -> None:
        asset = Asset(id=ASSET, paused=True)
        account = Account(id=ALICE)

        update_balance(asset, account, _balance(ALICE), 7, 5)

        assert account.paused_balances_count == 1
        assert account.paused_balance_exact == 7


class TestSetPaused:
    """Tests for pausing an asset."""

    def test_pause_and_unpause(self) -> None:
        asset = Asset(id=ASSET)
        account = Account(id=ALICE)
        pairs = [(account, _balance(ALICE, 4))]

        assert set_paused(asset, pairs, True)
        assert account.paused_balances_count == 1
        assert account.paused_balance_exact == 4

        assert set_paused(asset, pairs, False)
        assert account.paused_balances_count == 0
        assert account.paused_balance_exact == 0

    def test_repeat_is_noop(self) -> None:
        asset = Asset(id=ASSET, paused=True)
        account = Account(id=ALICE, paused_balances_count=1)

        assert not set_paused(asset, [(account, _balance(ALICE, 4))], True)
        assert account.paused_balances_count == 1


class TestReconcile:
    """Tests for drift repair."""

    @pytest.mark.asyncio
    async def test_reconcile_holder_count(
        self, store: MemoryStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        await store.apply(
            ChangeSet(
                upserts=[
                    Asset(id=ASSET, total_holders=5),
                    _balance(ALICE, 1),
                    _balance(BOB, 0),
                ]
            )
        )
        uow = UnitOfWork(store)
        asset = await uow.get(Asset, ASSET)
        assert asset is not None

        with caplog.at_level(logging.WARNING):
            count = await reconcile_holder_count(uow, asset)
        await uow.commit()

        assert count == 1
        assert "drift" in caplog.text
        stored = await store.get(Asset, ASSET)
        assert stored is not None
        assert stored.total_holders == 1

    @pytest.mark.asyncio
    async def test_reconciled_count_matches_holders(self, store: MemoryStore) -> None:
        await store.apply(ChangeSet(upserts=[_balance(ALICE, 3), _balance(BOB, 9)]))
        uow = UnitOfWork(store)
        asset = Asset(id=ASSET, total_holders=2)

        assert await reconcile_holder_count(uow, asset) == len(await holders(uow, ASSET))
        assert uow.changes().is_empty

    @pytest.mark.asyncio
    async def test_reconcile_balances_count(self, store: MemoryStore) -> None:
        await store.apply(ChangeSet(upserts=[_balance(ALICE, 3)]))
        uow = UnitOfWork(store)
        account = Account(id=ALICE, balances_count=0)

        assert await reconcile_balances_count(uow, account) == 1
        assert account.balances_count == 1


class TestBlockList:
    """Tests for presence-as-truth block and allow lists."""

    @pytest.mark.asyncio
    async def test_block_and_unblock(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)
        entry = await block_user(uow, ASSET, ALICE, 10)
        await uow.commit()

        assert entry.id == blocked_user_id(ASSET, ALICE)
        assert await store.get(BlockedUser, blocked_user_id(ASSET, ALICE)) is not None

        uow = UnitOfWork(store)
        assert await unblock_user(uow, ASSET, ALICE)
        await uow.commit()

        assert await store.get(BlockedUser, blocked_user_id(ASSET, ALICE)) is None
        assert not await is_blocked(UnitOfWork(store), ASSET, ALICE)

    @pytest.mark.asyncio
    async def test_block_twice_keeps_first_timestamp(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)
        await block_user(uow, ASSET, ALICE, 10)
        entry = await block_user(uow, ASSET, ALICE, 20)

        assert entry.blocked_at == 10

    @pytest.mark.asyncio
    async def test_unblock_unknown_user(self, store: MemoryStore) -> None:
        assert not await unblock_user(UnitOfWork(store), ASSET, ALICE)

    @pytest.mark.asyncio
    async def test_allow_list(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)
        await allow_user(uow, ASSET, BOB, 10)
        assert await is_allowed(uow, ASSET, BOB)

        assert await disallow_user(uow, ASSET, BOB)
        assert not await is_allowed(uow, ASSET, BOB)
