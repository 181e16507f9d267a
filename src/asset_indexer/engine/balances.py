"""Balance aggregation with fixed-point decimal scaling.

Amount fields are stored twice: ``<field>_exact`` keeps the raw on-chain
integer and ``<field>`` keeps it divided by ``10**decimals``. Both halves
are always written together by ``set_value_with_decimals``.
"""

from __future__ import annotations

import logging
from dataclasses import fields
from decimal import Decimal
from typing import Any

from asset_indexer.engine.errors import NegativeBalanceError
from asset_indexer.engine.models import (
    Account,
    Asset,
    AssetBalance,
    AssetStatsData,
    PortfolioStatsData,
    VaultTransaction,
)

logger = logging.getLogger(__name__)

# Account totals sum balances across assets with different precisions.
ACCOUNT_DECIMALS = 18


def to_decimals(raw: int, decimals: int) -> Decimal:
    """Scale a raw integer amount by ``10**decimals`` without rounding.

    Args:
        raw: Raw on-chain amount.
        decimals: Number of decimals of the asset.

    Returns:
        Exact decimal value.
    """
    if decimals < 0:
        raise ValueError(f"Decimals must be non-negative, got {decimals}")
    return Decimal(f"{raw}e-{decimals}")


def _amount_fields(target: Any) -> set[str]:
    return {f.name for f in fields(target)}


def set_value_with_decimals(target: Any, field: str, raw: int, decimals: int) -> None:
    """Write a raw amount and its scaled value into a field pair.

    Args:
        target: Entity record owning the ``<field>``/``<field>_exact`` pair.
        field: Base name of the pair.
        raw: Raw on-chain amount.
        decimals: Number of decimals used for scaling.

    Raises:
        AttributeError: If the record has no such field pair.
        NegativeBalanceError: If ``raw`` is negative.
    """
    names = _amount_fields(target)
    if field not in names or f"{field}_exact" not in names:
        raise AttributeError(f"{type(target).__name__} has no amount field '{field}'")
    if raw < 0:
        raise NegativeBalanceError(getattr(target, "id", "?"), f"{field}_exact", raw)
    setattr(target, f"{field}_exact", raw)
    setattr(target, field, to_decimals(raw, decimals))


# Asset balance


def set_balance_value(balance: AssetBalance, raw: int, decimals: int) -> None:
    set_value_with_decimals(balance, "value", raw, decimals)


def set_balance_approved(balance: AssetBalance, raw: int, decimals: int) -> None:
    set_value_with_decimals(balance, "approved", raw, decimals)


def set_balance_frozen(balance: AssetBalance, raw: int, decimals: int) -> None:
    set_value_with_decimals(balance, "frozen", raw, decimals)


# Asset


def set_total_supply(asset: Asset, raw: int) -> None:
    set_value_with_decimals(asset, "total_supply", raw, asset.decimals)


def set_total_burned(asset: Asset, raw: int) -> None:
    set_value_with_decimals(asset, "total_burned", raw, asset.decimals)


def set_collateral(asset: Asset, raw: int) -> None:
    set_value_with_decimals(asset, "collateral", raw, asset.decimals)


def rescale_asset(asset: Asset) -> None:
    """Recompute the scaled asset amounts after its decimals changed."""
    set_total_supply(asset, asset.total_supply_exact)
    set_total_burned(asset, asset.total_burned_exact)
    set_collateral(asset, asset.collateral_exact)


def rescale_balance(balance: AssetBalance, decimals: int) -> None:
    """Recompute the scaled balance amounts after the asset decimals changed."""
    set_balance_value(balance, balance.value_exact, decimals)
    set_balance_approved(balance, balance.approved_exact, decimals)
    set_balance_frozen(balance, balance.frozen_exact, decimals)


# Account


def set_total_balance(account: Account, raw: int) -> None:
    set_value_with_decimals(account, "total_balance", raw, ACCOUNT_DECIMALS)


def set_paused_balance(account: Account, raw: int) -> None:
    set_value_with_decimals(account, "paused_balance", raw, ACCOUNT_DECIMALS)


# Vault transaction


def set_transaction_value(transaction: VaultTransaction, raw: int, decimals: int) -> None:
    set_value_with_decimals(transaction, "value", raw, decimals)


# Time series


def new_asset_stats(asset: Asset, timestamp: int) -> AssetStatsData:
    """Create an asset stats row carrying the current supply."""
    stats = AssetStatsData(timestamp=timestamp, asset=asset.id, asset_type=asset.type)
    set_value_with_decimals(stats, "supply", asset.total_supply_exact, asset.decimals)
    return stats


def new_portfolio_stats(
    balance: AssetBalance, asset: Asset, timestamp: int
) -> PortfolioStatsData:
    """Create a portfolio stats row carrying the current balance."""
    stats = PortfolioStatsData(
        timestamp=timestamp,
        account=balance.account,
        asset=asset.id,
        asset_type=asset.type,
    )
    set_value_with_decimals(stats, "balance", balance.value_exact, asset.decimals)
    return stats
