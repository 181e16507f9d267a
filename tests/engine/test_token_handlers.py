"""Tests for asset token event handlers."""

from decimal import Decimal

import pytest

from asset_indexer.engine.models import (
    Account,
    ActivityLogEntry,
    Asset,
    AssetActivity,
    AssetActivityEvent,
    AssetBalance,
    AssetStatsData,
    AssetType,
    BlockedUser,
    PortfolioStatsData,
)
from asset_indexer.engine.repository import asset_balance_id, blocked_user_id
from asset_indexer.engine.roles import Role, role_hash
from asset_indexer.ingestor.models import ZERO_ADDRESS, ContractKind
from asset_indexer.storage.memory import MemoryStore

ASSET = "0x" + "a1" * 20
ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20
ADMIN = "0x" + "ad" * 20
DEPLOYER = "0x" + "de" * 20


def _transfer(make_event, sender: str, receiver: str, value: int):
    return make_event(
        ContractKind.TOKEN, "Transfer", **{"from": sender, "to": receiver, "value": value}
    )


async def _asset(store: MemoryStore) -> Asset:
    asset = await store.get(Asset, ASSET)
    assert asset is not None
    return asset


async def _balance(store: MemoryStore, account: str) -> AssetBalance:
    balance = await store.get(AssetBalance, asset_balance_id(ASSET, account))
    assert balance is not None
    return balance


async def _account(store: MemoryStore, address: str) -> Account:
    account = await store.get(Account, address)
    assert account is not None
    return account


class TestTransfer:
    """Tests for mints, burns and transfers."""

    @pytest.mark.asyncio
    async def test_mint(self, apply, store: MemoryStore, make_event) -> None:
        await apply(_transfer(make_event, ZERO_ADDRESS, ALICE, 2_000_000))

        asset = await _asset(store)
        assert asset.total_supply_exact == 2_000_000
        assert asset.total_supply == Decimal(2)
        assert asset.total_holders == 1
        assert (await _balance(store, ALICE)).value == Decimal(2)

        activity = await store.get(AssetActivity, AssetType.UNKNOWN.value)
        assert activity is not None
        assert activity.mint_event_count == 1

        events = await store.find(AssetActivityEvent, event_name="Mint")
        assert len(events) == 1
        assert events[0].to_account == ALICE
        assert events[0].amount == Decimal(2)

    @pytest.mark.asyncio
    async def test_mint_appends_stats(self, apply, store: MemoryStore, make_event) -> None:
        await apply(_transfer(make_event, ZERO_ADDRESS, ALICE, 500))

        [stats] = await store.find(AssetStatsData)
        assert stats.minted_exact == 500
        assert stats.supply_exact == 500
        [portfolio] = await store.find(PortfolioStatsData)
        assert portfolio.account == ALICE
        assert portfolio.balance_exact == 500

    @pytest.mark.asyncio
    async def test_burn(self, apply, store: MemoryStore, make_event) -> None:
        await apply(
            _transfer(make_event, ZERO_ADDRESS, ALICE, 1_000),
            _transfer(make_event, ALICE, ZERO_ADDRESS, 400),
        )

        asset = await _asset(store)
        assert asset.total_supply_exact == 600
        assert asset.total_burned_exact == 400
        assert asset.total_holders == 1
        assert (await _balance(store, ALICE)).value_exact == 600

    @pytest.mark.asyncio
    async def test_transfer_moves_holder(self, apply, store: MemoryStore, make_event) -> None:
        await apply(
            _transfer(make_event, ZERO_ADDRESS, ALICE, 1_000),
            _transfer(make_event, ALICE, BOB, 1_000),
        )

        asset = await _asset(store)
        assert asset.total_holders == 1
        assert asset.total_supply_exact == 1_000
        assert (await _balance(store, ALICE)).value_exact == 0
        assert (await _account(store, ALICE)).balances_count == 0
        assert (await _account(store, BOB)).balances_count == 1

        activity = await store.get(AssetActivity, AssetType.UNKNOWN.value)
        assert activity is not None
        assert activity.transfer_event_count == 1

    @pytest.mark.asyncio
    async def test_account_total_balance(self, apply, store: MemoryStore, make_event) -> None:
        await apply(
            _transfer(make_event, ZERO_ADDRESS, ALICE, 1_000),
            _transfer(make_event, ALICE, BOB, 250),
        )

        assert (await _account(store, ALICE)).total_balance_exact == 750
        assert (await _account(store, BOB)).total_balance_exact == 250

    @pytest.mark.asyncio
    async def test_clawback(self, apply, store: MemoryStore, make_event) -> None:
        await apply(
            _transfer(make_event, ZERO_ADDRESS, ALICE, 1_000),
            make_event(ContractKind.TOKEN, "Clawback", **{"from": ALICE, "to": BOB, "amount": 300}),
        )

        assert (await _balance(store, ALICE)).value_exact == 700
        assert (await _balance(store, BOB)).value_exact == 300
        activity = await store.get(AssetActivity, AssetType.UNKNOWN.value)
        assert activity is not None
        assert activity.clawback_event_count == 1

    @pytest.mark.asyncio
    async def test_approval(self, apply, store: MemoryStore, make_event) -> None:
        await apply(
            make_event(ContractKind.TOKEN, "Approval", owner=ALICE, spender=BOB, value=3_000_000)
        )

        balance = await _balance(store, ALICE)
        assert balance.approved_exact == 3_000_000
        assert balance.approved == Decimal(3)
        assert await store.get(Account, BOB) is not None


class TestActivitySender:
    """Tests for the account credited with each activity log entry."""

    @staticmethod
    async def _sender(store: MemoryStore, event_name: str) -> str:
        (entry,) = await store.find(ActivityLogEntry, event_name=event_name)
        return entry.sender

    @pytest.mark.asyncio
    async def test_holder_sends_transfer_and_burn(
        self, apply, store: MemoryStore, make_event
    ) -> None:
        await apply(
            _transfer(make_event, ZERO_ADDRESS, ALICE, 1_000),
            _transfer(make_event, ALICE, BOB, 100),
            _transfer(make_event, BOB, ZERO_ADDRESS, 50),
        )

        assert await self._sender(store, "Mint") == DEPLOYER
        assert await self._sender(store, "Transfer") == ALICE
        assert await self._sender(store, "Burn") == BOB
        assert (await _account(store, ALICE)).activity_events_count == 1
        assert (await _account(store, DEPLOYER)).activity_events_count == 1

    @pytest.mark.asyncio
    async def test_owner_sends_approval(self, apply, store: MemoryStore, make_event) -> None:
        await apply(
            make_event(ContractKind.TOKEN, "Approval", owner=ALICE, spender=BOB, value=1)
        )

        assert await self._sender(store, "Approval") == ALICE
        record = await store.get(AssetActivityEvent, (await store.find(ActivityLogEntry))[0].id)
        assert record is not None
        assert record.sender == ALICE
        assert await store.get(Account, DEPLOYER) is None

    @pytest.mark.asyncio
    async def test_sender_parameter_wins(self, apply, store: MemoryStore, make_event) -> None:
        await apply(
            make_event(
                ContractKind.TOKEN,
                "UserBlocked",
                user=BOB,
                sender=ADMIN,
            )
        )

        assert await self._sender(store, "UserBlocked") == ADMIN


class TestFreezing:
    """Tests for frozen amounts."""

    @pytest.mark.asyncio
    async def test_frozen_sets_absolute_amount(
        self, apply, store: MemoryStore, make_event
    ) -> None:
        await apply(
            make_event(ContractKind.TOKEN, "TokensFrozen", user=ALICE, amount=5),
            make_event(ContractKind.TOKEN, "TokensFrozen", user=ALICE, amount=7),
        )

        assert (await _balance(store, ALICE)).frozen_exact == 7

    @pytest.mark.asyncio
    async def test_unfrozen_releases_part(self, apply, store: MemoryStore, make_event) -> None:
        await apply(
            make_event(ContractKind.TOKEN, "TokensFrozen", user=ALICE, amount=7),
            make_event(ContractKind.TOKEN, "TokensUnfrozen", user=ALICE, amount=3),
        )

        balance = await _balance(store, ALICE)
        assert balance.frozen_exact == 4
        activity = await store.get(AssetActivity, AssetType.UNKNOWN.value)
        assert activity is not None
        assert activity.frozen_event_count == 1
        assert activity.unfrozen_event_count == 1


class TestUserLists:
    """Tests for blocking and allowing users."""

    @pytest.mark.asyncio
    async def test_block_and_unblock(self, apply, store: MemoryStore, make_event) -> None:
        await apply(make_event(ContractKind.TOKEN, "UserBlocked", user=ALICE))

        assert await store.get(BlockedUser, blocked_user_id(ASSET, ALICE)) is not None
        assert (await _balance(store, ALICE)).blocked

        await apply(make_event(ContractKind.TOKEN, "UserUnblocked", user=ALICE))

        assert await store.get(BlockedUser, blocked_user_id(ASSET, ALICE)) is None
        assert not (await _balance(store, ALICE)).blocked

    @pytest.mark.asyncio
    async def test_user_allowed(self, apply, store: MemoryStore, make_event) -> None:
        await apply(
            make_event(ContractKind.TOKEN, "UserAllowed", user=BOB),
            make_event(ContractKind.TOKEN, "UserDisallowed", user=BOB),
        )

        assert (await _balance(store, BOB)).blocked


class TestPause:
    """Tests for pausing and unpausing an asset."""

    @pytest.mark.asyncio
    async def test_pause_moves_holder_balances(
        self, apply, store: MemoryStore, make_event
    ) -> None:
        await apply(
            _transfer(make_event, ZERO_ADDRESS, ALICE, 1_000),
            make_event(ContractKind.TOKEN, "Paused", account=ADMIN),
        )

        assert (await _asset(store)).paused
        alice = await _account(store, ALICE)
        assert alice.paused_balances_count == 1
        assert alice.paused_balance_exact == 1_000

        await apply(make_event(ContractKind.TOKEN, "Unpaused", account=ADMIN))

        alice = await _account(store, ALICE)
        assert alice.paused_balances_count == 0
        assert alice.paused_balance_exact == 0

    @pytest.mark.asyncio
    async def test_repeated_pause_counts_once(
        self, apply, store: MemoryStore, make_event
    ) -> None:
        await apply(
            make_event(ContractKind.TOKEN, "Paused", account=ADMIN),
            make_event(ContractKind.TOKEN, "Paused", account=ADMIN),
        )

        activity = await store.get(AssetActivity, AssetType.UNKNOWN.value)
        assert activity is not None
        assert activity.paused_count == 1


class TestRolesAndCollateral:
    """Tests for role changes and collateral updates."""

    @pytest.mark.asyncio
    async def test_role_granted_and_revoked(
        self, apply, store: MemoryStore, make_event
    ) -> None:
        role = role_hash(Role.SUPPLY_MANAGEMENT)
        await apply(make_event(ContractKind.TOKEN, "RoleGranted", role=role, account=ALICE))

        assert (await _asset(store)).supply_managers == [ALICE]

        await apply(make_event(ContractKind.TOKEN, "RoleRevoked", role=role, account=ALICE))

        assert (await _asset(store)).supply_managers == []

    @pytest.mark.asyncio
    async def test_untracked_role_is_logged_only(
        self, apply, store: MemoryStore, make_event
    ) -> None:
        [result] = await apply(
            make_event(ContractKind.TOKEN, "RoleGranted", role="0x" + "ff" * 32, account=ALICE)
        )

        assert result.applied
        asset = await _asset(store)
        assert asset.admins == []
        assert asset.supply_managers == []

    @pytest.mark.asyncio
    async def test_collateral_updated(self, apply, store: MemoryStore, make_event) -> None:
        await apply(
            make_event(
                ContractKind.TOKEN,
                "CollateralUpdated",
                block_timestamp=1_700_000_500,
                oldAmount=0,
                newAmount=4_500_000,
            )
        )

        asset = await _asset(store)
        assert asset.collateral_exact == 4_500_000
        assert asset.collateral == Decimal("4.5")
        assert asset.last_collateral_update == 1_700_000_500
