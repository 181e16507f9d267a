"""Holder concentration statistics.

Every holder of an asset falls in one of five segments by its balance as
a percentage of the largest balance, rounded down: up to 2, 10, 20 and 40
percent, and above 40. The largest holder is always in the last segment.

The distribution is recomputed from the asset's balance rows after each
event that moves balances, so segment membership follows changes of the
largest balance. A time-series row is appended whenever the result
differs from the stored one.
"""

from __future__ import annotations

import dataclasses
import logging
from decimal import Decimal

from asset_indexer.engine.balances import set_value_with_decimals
from asset_indexer.engine.holders import holders
from asset_indexer.engine.models import (
    ZERO,
    Asset,
    AssetBalance,
    AssetDistribution,
    AssetDistributionStatsData,
    AssetTopHolder,
)
from asset_indexer.engine.repository import fetch_asset_distribution, top_holder_id
from asset_indexer.storage.base import UnitOfWork

logger = logging.getLogger(__name__)

# Inclusive upper percentage of segments 1 to 4. Segment 5 holds the rest.
SEGMENT_BOUNDS = (2, 10, 20, 40)
SEGMENT_COUNT = len(SEGMENT_BOUNDS) + 1
TOP_HOLDERS = 5


def segment_index(balance: int, top_balance: int) -> int:
    """Return the zero-based segment of a balance.

    Args:
        balance: Raw balance of the holder.
        top_balance: Largest raw balance of the asset, greater than zero.

    Returns:
        Index into the five segments.
    """
    percentage = balance * 100 // top_balance
    for index, bound in enumerate(SEGMENT_BOUNDS):
        if percentage <= bound:
            return index
    return len(SEGMENT_BOUNDS)


def rank_holders(balances: list[AssetBalance]) -> list[AssetBalance]:
    """Order balances largest first. Equal balances are ordered by account."""
    return sorted(balances, key=lambda balance: (-balance.value_exact, balance.account))


def top_holders_share(top_total: int, total_supply: int) -> Decimal:
    """Return the percentage of the supply held by the top holders."""
    if total_supply == 0:
        return ZERO
    return Decimal(top_total * 100) / Decimal(total_supply)


def _segments(ranked: list[AssetBalance]) -> tuple[list[int], list[int]]:
    counts = [0] * SEGMENT_COUNT
    totals = [0] * SEGMENT_COUNT
    if not ranked:
        return counts, totals
    top_balance = ranked[0].value_exact
    for balance in ranked:
        index = segment_index(balance.value_exact, top_balance)
        counts[index] += 1
        totals[index] += balance.value_exact
    return counts, totals


async def _update_top_holders(uow: UnitOfWork, asset: Asset, top: list[AssetBalance]) -> None:
    wanted = {top_holder_id(asset.id, balance.account): balance for balance in top}
    for record in await uow.find(AssetTopHolder, asset=asset.id):
        if record.id not in wanted:
            uow.remove(AssetTopHolder, record.id)

    for rank, (record_id, balance) in enumerate(wanted.items(), start=1):
        record = await uow.get(AssetTopHolder, record_id)
        if record is None:
            record = AssetTopHolder(id=record_id, asset=asset.id, account=balance.account)
            uow.save(record)
        record.rank = rank
        set_value_with_decimals(record, "balance", balance.value_exact, asset.decimals)


def new_distribution_stats(
    distribution: AssetDistribution, timestamp: int
) -> AssetDistributionStatsData:
    """Build a time-series row from the current distribution of an asset."""
    row = AssetDistributionStatsData(
        timestamp=timestamp,
        asset=distribution.id,
        percentage_owned_by_top5_holders=distribution.percentage_owned_by_top5_holders,
    )
    for number in range(1, SEGMENT_COUNT + 1):
        for name in (
            f"balances_count_segment{number}",
            f"total_value_segment{number}_exact",
            f"total_value_segment{number}",
        ):
            setattr(row, name, getattr(distribution, name))
    return row


async def refresh_distribution(
    uow: UnitOfWork, asset: Asset, timestamp: int
) -> AssetDistributionStatsData | None:
    """Recompute an asset's segments and top holders from its balances.

    Args:
        uow: Current unit of work.
        asset: Asset whose balances changed.
        timestamp: Block timestamp of the event.

    Returns:
        The appended time-series row, or None if the distribution is
        unchanged.
    """
    ranked = rank_holders(await holders(uow, asset.id))
    distribution = await fetch_asset_distribution(uow, asset.id)
    before = dataclasses.replace(distribution)

    counts, totals = _segments(ranked)
    for number, (count, total) in enumerate(zip(counts, totals), start=1):
        setattr(distribution, f"balances_count_segment{number}", count)
        set_value_with_decimals(distribution, f"total_value_segment{number}", total, asset.decimals)

    top = ranked[:TOP_HOLDERS]
    distribution.percentage_owned_by_top5_holders = top_holders_share(
        sum(balance.value_exact for balance in top), asset.total_supply_exact
    )
    await _update_top_holders(uow, asset, top)

    if distribution == before:
        return None
    distribution.last_updated = timestamp
    row = new_distribution_stats(distribution, timestamp)
    uow.append(row)
    logger.debug("Distribution of asset %s: %s holders", asset.id, len(ranked))
    return row
