"""Holder set and block/allow list tracking.

An account holds an asset while its balance row has ``value_exact != 0``.
The incremental ``Asset.total_holders`` and ``Account.balances_count``
counters follow every zero/nonzero transition, and the reconcile functions
recompute both from the balance rows when they disagree.

Block and allow list membership is the presence of a record keyed by
(asset, user). Removing membership deletes the record.
"""

from __future__ import annotations

import logging

from asset_indexer.engine import counters
from asset_indexer.engine.balances import (
    set_balance_value,
    set_paused_balance,
    set_total_balance,
)
from asset_indexer.engine.errors import NegativeBalanceError
from asset_indexer.engine.models import (
    Account,
    AllowedUser,
    Asset,
    AssetBalance,
    BlockedUser,
)
from asset_indexer.engine.repository import (
    allowed_user_id,
    blocked_user_id,
    fetch_account,
)
from asset_indexer.storage.base import UnitOfWork

logger = logging.getLogger(__name__)


def has_balance(balance: AssetBalance) -> bool:
    """Return True if the balance counts its account as a holder."""
    return balance.value_exact != 0


def update_balance(
    asset: Asset,
    account: Account,
    balance: AssetBalance,
    new_value: int,
    timestamp: int,
) -> None:
    """Set a balance and keep holder counters and account totals in step.

    Args:
        asset: Asset the balance belongs to.
        account: Account owning the balance.
        balance: Balance row to update.
        new_value: New raw balance.
        timestamp: Block timestamp of the event.

    Raises:
        NegativeBalanceError: If ``new_value`` is negative.
    """
    if new_value < 0:
        raise NegativeBalanceError(balance.id, "value_exact", new_value)

    was_holder = has_balance(balance)
    delta = new_value - balance.value_exact

    set_balance_value(balance, new_value, asset.decimals)
    balance.last_activity = timestamp
    set_total_balance(account, account.total_balance_exact + delta)

    is_holder = has_balance(balance)
    if is_holder and not was_holder:
        counters.increase_total_holders(asset)
        counters.increase_balances_count(account)
    elif was_holder and not is_holder:
        counters.decrease_total_holders(asset)
        counters.decrease_balances_count(account)

    if asset.paused:
        set_paused_balance(account, account.paused_balance_exact + delta)
        if is_holder and not was_holder:
            counters.increase_paused_balances_count(account)
        elif was_holder and not is_holder:
            counters.decrease_paused_balances_count(account)


def set_paused(
    asset: Asset, holders_with_balances: list[tuple[Account, AssetBalance]], paused: bool
) -> bool:
    """Pause or unpause an asset and move its holders' balances accordingly.

    Holder accounts count each balance in a paused asset in
    ``paused_balances_count`` and ``paused_balance``.

    Returns:
        True if the paused state changed.
    """
    if asset.paused == paused:
        return False
    asset.paused = paused
    for account, balance in holders_with_balances:
        if paused:
            counters.increase_paused_balances_count(account)
            set_paused_balance(account, account.paused_balance_exact + balance.value_exact)
        else:
            counters.decrease_paused_balances_count(account)
            set_paused_balance(account, account.paused_balance_exact - balance.value_exact)
    return True


async def holders(uow: UnitOfWork, asset_id: str) -> list[AssetBalance]:
    """Return the balance rows of an asset with a nonzero value."""
    balances = await uow.find(AssetBalance, asset=asset_id)
    return [balance for balance in balances if has_balance(balance)]


async def reconcile_holder_count(uow: UnitOfWork, asset: Asset) -> int:
    """Recompute ``total_holders`` from the balance rows.

    The recomputed value replaces the counter when they differ.

    Returns:
        The reconciled holder count.
    """
    actual = len(await holders(uow, asset.id))
    if actual != asset.total_holders:
        logger.warning(
            "Holder count drift on asset %s: counter=%d actual=%d",
            asset.id,
            asset.total_holders,
            actual,
        )
        asset.total_holders = actual
        uow.save(asset)
    return actual


async def reconcile_balances_count(uow: UnitOfWork, account: Account) -> int:
    """Recompute ``balances_count`` from the account's balance rows.

    Returns:
        The reconciled count of nonzero balances.
    """
    balances = await uow.find(AssetBalance, account=account.id)
    actual = sum(1 for balance in balances if has_balance(balance))
    if actual != account.balances_count:
        logger.warning(
            "Balances count drift on account %s: counter=%d actual=%d",
            account.id,
            account.balances_count,
            actual,
        )
        account.balances_count = actual
        uow.save(account)
    return actual


async def block_user(uow: UnitOfWork, asset: str, user: str, timestamp: int) -> BlockedUser:
    """Add a user to an asset's block list.

    Blocking an already blocked user keeps the original ``blocked_at``.
    """
    entry_id = blocked_user_id(asset, user)
    entry = await uow.get(BlockedUser, entry_id)
    if entry is None:
        entry = BlockedUser(id=entry_id, asset=asset, user=user, blocked_at=timestamp)
        uow.save(entry)
        logger.info("Blocked user %s on asset %s", user, asset)
    return entry


async def unblock_user(uow: UnitOfWork, asset: str, user: str) -> bool:
    """Remove a user from an asset's block list.

    Returns:
        True if the user was blocked.
    """
    entry_id = blocked_user_id(asset, user)
    if await uow.get(BlockedUser, entry_id) is None:
        return False
    uow.remove(BlockedUser, entry_id)
    logger.info("Unblocked user %s on asset %s", user, asset)
    return True


async def is_blocked(uow: UnitOfWork, asset: str, user: str) -> bool:
    """Return True if the user is on the asset's block list."""
    return await uow.get(BlockedUser, blocked_user_id(asset, user)) is not None


async def allow_user(uow: UnitOfWork, asset: str, user: str, timestamp: int) -> AllowedUser:
    """Add a user to an asset's allow list."""
    entry_id = allowed_user_id(asset, user)
    entry = await uow.get(AllowedUser, entry_id)
    if entry is None:
        entry = AllowedUser(id=entry_id, asset=asset, user=user, allowed_at=timestamp)
        uow.save(entry)
        logger.info("Allowed user %s on asset %s", user, asset)
    return entry


async def disallow_user(uow: UnitOfWork, asset: str, user: str) -> bool:
    """Remove a user from an asset's allow list.

    Returns:
        True if the user was allowed.
    """
    entry_id = allowed_user_id(asset, user)
    if await uow.get(AllowedUser, entry_id) is None:
        return False
    uow.remove(AllowedUser, entry_id)
    logger.info("Disallowed user %s on asset %s", user, asset)
    return True


async def is_allowed(uow: UnitOfWork, asset: str, user: str) -> bool:
    """Return True if the user is on the asset's allow list."""
    return await uow.get(AllowedUser, allowed_user_id(asset, user)) is not None


async def holder_accounts(uow: UnitOfWork, asset_id: str) -> list[tuple[Account, AssetBalance]]:
    """Return each holder of an asset with its balance row."""
    return [
        (await fetch_account(uow, balance.account), balance)
        for balance in await holders(uow, asset_id)
    ]
