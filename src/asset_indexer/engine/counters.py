"""Typed counter maintenance.

One function per counter field. Decrements check the current value and
raise ``CounterUnderflowError`` instead of clamping, since a counter going
negative means an earlier handler skipped its guard.
"""

from __future__ import annotations

from asset_indexer.engine.errors import CounterUnderflowError
from asset_indexer.engine.models import (
    Account,
    Asset,
    AssetActivity,
    Vault,
    VaultTransaction,
)


def _add(current: int, amount: int) -> int:
    if amount < 0:
        raise ValueError(f"Counter amount must be non-negative, got {amount}")
    return current + amount


def _subtract(entity_id: str, counter: str, current: int, amount: int) -> int:
    if amount < 0:
        raise ValueError(f"Counter amount must be non-negative, got {amount}")
    if current < amount:
        raise CounterUnderflowError(entity_id, counter, current, amount)
    return current - amount


# Account


def increase_balances_count(account: Account, amount: int = 1) -> None:
    account.balances_count = _add(account.balances_count, amount)


def decrease_balances_count(account: Account, amount: int = 1) -> None:
    account.balances_count = _subtract(
        account.id, "balances_count", account.balances_count, amount
    )


def increase_activity_events_count(account: Account, amount: int = 1) -> None:
    account.activity_events_count = _add(account.activity_events_count, amount)


def increase_paused_balances_count(account: Account, amount: int = 1) -> None:
    account.paused_balances_count = _add(account.paused_balances_count, amount)


def decrease_paused_balances_count(account: Account, amount: int = 1) -> None:
    account.paused_balances_count = _subtract(
        account.id, "paused_balances_count", account.paused_balances_count, amount
    )


# Asset


def increase_total_holders(asset: Asset, amount: int = 1) -> None:
    asset.total_holders = _add(asset.total_holders, amount)


def decrease_total_holders(asset: Asset, amount: int = 1) -> None:
    asset.total_holders = _subtract(asset.id, "total_holders", asset.total_holders, amount)


# Asset activity


def increase_mint_event_count(activity: AssetActivity) -> None:
    activity.mint_event_count = _add(activity.mint_event_count, 1)


def increase_burn_event_count(activity: AssetActivity) -> None:
    activity.burn_event_count = _add(activity.burn_event_count, 1)


def increase_transfer_event_count(activity: AssetActivity) -> None:
    activity.transfer_event_count = _add(activity.transfer_event_count, 1)


def increase_frozen_event_count(activity: AssetActivity) -> None:
    activity.frozen_event_count = _add(activity.frozen_event_count, 1)


def increase_unfrozen_event_count(activity: AssetActivity) -> None:
    activity.unfrozen_event_count = _add(activity.unfrozen_event_count, 1)


def increase_clawback_event_count(activity: AssetActivity) -> None:
    activity.clawback_event_count = _add(activity.clawback_event_count, 1)


def increase_paused_count(activity: AssetActivity) -> None:
    activity.paused_count = _add(activity.paused_count, 1)


def decrease_paused_count(activity: AssetActivity) -> None:
    activity.paused_count = _subtract(activity.id, "paused_count", activity.paused_count, 1)


# Vault


def increase_pending_transactions_count(vault: Vault, amount: int = 1) -> None:
    vault.pending_transactions_count = _add(vault.pending_transactions_count, amount)


def decrease_pending_transactions_count(vault: Vault, amount: int = 1) -> None:
    vault.pending_transactions_count = _subtract(
        vault.id, "pending_transactions_count", vault.pending_transactions_count, amount
    )


def increase_executed_transactions_count(vault: Vault, amount: int = 1) -> None:
    vault.executed_transactions_count = _add(vault.executed_transactions_count, amount)


def increase_confirmations_count(transaction: VaultTransaction) -> None:
    transaction.confirmations_count = _add(transaction.confirmations_count, 1)


def decrease_confirmations_count(transaction: VaultTransaction) -> None:
    transaction.confirmations_count = _subtract(
        transaction.id, "confirmations_count", transaction.confirmations_count, 1
    )
