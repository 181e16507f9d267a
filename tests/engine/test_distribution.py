"""Tests for holder concentration statistics."""

from decimal import Decimal

import pytest

from asset_indexer.engine.distribution import (
    rank_holders,
    refresh_distribution,
    segment_index,
    top_holders_share,
)
from asset_indexer.engine.models import (
    Asset,
    AssetBalance,
    AssetDistribution,
    AssetDistributionStatsData,
    AssetTopHolder,
)
from asset_indexer.engine.repository import asset_balance_id
from asset_indexer.ingestor.models import ZERO_ADDRESS, ContractKind
from asset_indexer.storage.base import UnitOfWork
from asset_indexer.storage.memory import MemoryStore

ASSET = "0x" + "a1" * 20
ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20
CAROL = "0x" + "33" * 20
DAVE = "0x" + "44" * 20
EVE = "0x" + "55" * 20
FRANK = "0x" + "66" * 20


def _mint(make_event, receiver: str, value: int):
    return make_event(
        ContractKind.TOKEN, "Transfer", **{"from": ZERO_ADDRESS, "to": receiver, "value": value}
    )


def _transfer(make_event, sender: str, receiver: str, value: int):
    return make_event(
        ContractKind.TOKEN, "Transfer", **{"from": sender, "to": receiver, "value": value}
    )


async def _distribution(store: MemoryStore) -> AssetDistribution:
    distribution = await store.get(AssetDistribution, ASSET)
    assert distribution is not None
    return distribution


async def _top_holders(store: MemoryStore) -> list[tuple[int, str, int]]:
    records = await store.find(AssetTopHolder, asset=ASSET)
    return sorted((record.rank, record.account, record.balance_exact) for record in records)


class TestSegmentIndex:
    """Tests for segment boundaries."""

    @pytest.mark.parametrize(
        ("balance", "expected"),
        [
            (0, 0),
            (2, 0),
            (29, 0),
            (30, 1),
            (100, 1),
            (109, 1),
            (110, 2),
            (200, 2),
            (210, 3),
            (400, 3),
            (410, 4),
            (1_000, 4),
        ],
    )
    def test_percent_of_top_balance(self, balance: int, expected: int) -> None:
        assert segment_index(balance, 1_000) == expected

    def test_top_holder_in_last_segment(self) -> None:
        assert segment_index(7, 7) == 4


class TestRanking:
    """Tests for holder ordering and the top holders share."""

    def test_largest_first_then_account(self) -> None:
        balances = [
            AssetBalance(id="c", asset=ASSET, account=CAROL, value_exact=5),
            AssetBalance(id="b", asset=ASSET, account=BOB, value_exact=9),
            AssetBalance(id="a", asset=ASSET, account=ALICE, value_exact=5),
        ]

        assert [b.account for b in rank_holders(balances)] == [BOB, ALICE, CAROL]

    def test_share(self) -> None:
        assert top_holders_share(750, 1_000) == Decimal(75)

    def test_share_without_supply(self) -> None:
        assert top_holders_share(0, 0) == Decimal(0)


class TestRefreshDistribution:
    """Tests for recomputing the distribution after balance moves."""

    @pytest.mark.asyncio
    async def test_segments_and_top_holders(self, apply, store: MemoryStore, make_event) -> None:
        await apply(
            _mint(make_event, ALICE, 1_000),
            _mint(make_event, BOB, 300),
            _mint(make_event, CAROL, 100),
            _mint(make_event, DAVE, 15),
            _mint(make_event, EVE, 200),
            _mint(make_event, FRANK, 150),
        )

        distribution = await _distribution(store)
        counts = [getattr(distribution, f"balances_count_segment{n}") for n in range(1, 6)]
        totals = [getattr(distribution, f"total_value_segment{n}_exact") for n in range(1, 6)]
        assert counts == [1, 1, 2, 1, 1]
        assert totals == [15, 100, 350, 300, 1_000]
        assert distribution.percentage_owned_by_top5_holders == Decimal(175_000) / Decimal(1_765)

        assert await _top_holders(store) == [
            (1, ALICE, 1_000),
            (2, BOB, 300),
            (3, EVE, 200),
            (4, FRANK, 150),
            (5, CAROL, 100),
        ]

    @pytest.mark.asyncio
    async def test_segments_follow_top_balance(
        self, apply, store: MemoryStore, make_event
    ) -> None:
        await apply(_mint(make_event, ALICE, 1_000), _mint(make_event, BOB, 300))
        assert (await _distribution(store)).balances_count_segment4 == 1

        await apply(_transfer(make_event, ALICE, CAROL, 900))

        distribution = await _distribution(store)
        # CAROL now holds the largest balance
        assert distribution.balances_count_segment5 == 1
        assert distribution.total_value_segment5_exact == 900
        assert distribution.balances_count_segment4 == 1
        assert distribution.total_value_segment4_exact == 300
        assert distribution.balances_count_segment3 == 1
        assert distribution.total_value_segment3_exact == 100

    @pytest.mark.asyncio
    async def test_emptied_holder_leaves_top_holders(
        self, apply, store: MemoryStore, make_event
    ) -> None:
        await apply(
            _mint(make_event, ALICE, 100),
            _mint(make_event, BOB, 50),
            _transfer(make_event, BOB, ALICE, 50),
        )

        assert await _top_holders(store) == [(1, ALICE, 150)]
        distribution = await _distribution(store)
        assert distribution.balances_count_segment5 == 1
        assert distribution.percentage_owned_by_top5_holders == Decimal(100)

    @pytest.mark.asyncio
    async def test_row_per_change(self, apply, store: MemoryStore, make_event) -> None:
        await apply(
            _mint(make_event, ALICE, 100),
            _transfer(make_event, ALICE, BOB, 0),
            _mint(make_event, BOB, 10),
        )

        rows = await store.find(AssetDistributionStatsData, asset=ASSET)
        assert len(rows) == 2
        assert rows[-1].balances_count_segment2 == 1
        assert rows[-1].total_value_segment2_exact == 10

    @pytest.mark.asyncio
    async def test_direct_refresh(self, store: MemoryStore) -> None:
        asset = Asset(id=ASSET, decimals=2, total_supply_exact=500)
        uow = UnitOfWork(store)
        uow.save(asset)
        uow.save(
            AssetBalance(
                id=asset_balance_id(ASSET, ALICE), asset=ASSET, account=ALICE, value_exact=500
            )
        )

        row = await refresh_distribution(uow, asset, 1_700_000_000)
        again = await refresh_distribution(uow, asset, 1_700_000_100)

        assert row is not None
        assert row.total_value_segment5 == Decimal("5")
        assert row.percentage_owned_by_top5_holders == Decimal(100)
        assert again is None
        assert uow.changes().appends == [row]
