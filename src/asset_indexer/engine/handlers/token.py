"""Handlers for events emitted by asset token contracts."""

from __future__ import annotations

import logging

from asset_indexer.engine import counters
from asset_indexer.engine.activity import asset_activity_event, create_activity_log_entry
from asset_indexer.engine.balances import (
    new_asset_stats,
    new_portfolio_stats,
    set_balance_approved,
    set_balance_frozen,
    set_collateral,
    set_total_burned,
    set_total_supply,
    set_value_with_decimals,
)
from asset_indexer.engine.context import EventContext, Handler
from asset_indexer.engine.distribution import refresh_distribution
from asset_indexer.engine.holders import (
    allow_user,
    block_user,
    disallow_user,
    holder_accounts,
    set_paused,
    unblock_user,
    update_balance,
)
from asset_indexer.engine.models import Asset
from asset_indexer.engine.repository import (
    fetch_account,
    fetch_asset,
    fetch_asset_activity,
    fetch_asset_balance,
)
from asset_indexer.engine.roles import decode_role, grant_asset_role, revoke_asset_role
from asset_indexer.ingestor.models import ZERO_ADDRESS

logger = logging.getLogger(__name__)


async def _load_asset(ctx: EventContext) -> Asset:
    asset = await fetch_asset(ctx.uow, ctx.emitter, decimals=ctx.decimals_for(ctx.emitter))
    asset.last_activity = ctx.timestamp
    return asset


async def _move(ctx: EventContext, asset: Asset, address: str, amount: int) -> None:
    """Add ``amount`` (negative to debit) to an account's balance in an asset."""
    account = await fetch_account(ctx.uow, address)
    balance = await fetch_asset_balance(ctx.uow, asset.id, address)
    update_balance(asset, account, balance, balance.value_exact + amount, ctx.timestamp)
    ctx.uow.append(new_portfolio_stats(balance, asset, ctx.timestamp))


async def handle_transfer(ctx: EventContext) -> None:
    """Apply a mint, burn or transfer.

    Transfers from the zero address mint and transfers to it burn.
    """
    asset = await _load_asset(ctx)
    sender = ctx.param_address("from")
    receiver = ctx.param_address("to")
    value = ctx.param_int("value")
    activity = await fetch_asset_activity(ctx.uow, asset.type)

    if sender == ZERO_ADDRESS:
        await create_activity_log_entry(
            ctx, "Mint", [receiver], sender=ctx.param_actor("sender")
        )
        await _move(ctx, asset, receiver, value)
        set_total_supply(asset, asset.total_supply_exact + value)
        counters.increase_mint_event_count(activity)

        stats = new_asset_stats(asset, ctx.timestamp)
        set_value_with_decimals(stats, "minted", value, asset.decimals)
        await asset_activity_event(ctx, asset, "Mint", to_account=receiver, amount=value)
    elif receiver == ZERO_ADDRESS:
        await create_activity_log_entry(
            ctx, "Burn", [sender], sender=ctx.param_actor("sender", "from")
        )
        await _move(ctx, asset, sender, -value)
        set_total_supply(asset, asset.total_supply_exact - value)
        set_total_burned(asset, asset.total_burned_exact + value)
        counters.increase_burn_event_count(activity)

        stats = new_asset_stats(asset, ctx.timestamp)
        set_value_with_decimals(stats, "burned", value, asset.decimals)
        await asset_activity_event(ctx, asset, "Burn", from_account=sender, amount=value)
    else:
        await create_activity_log_entry(
            ctx, "Transfer", [sender, receiver], sender=ctx.param_actor("sender", "from")
        )
        await _move(ctx, asset, sender, -value)
        await _move(ctx, asset, receiver, value)
        counters.increase_transfer_event_count(activity)

        stats = new_asset_stats(asset, ctx.timestamp)
        set_value_with_decimals(stats, "volume", value, asset.decimals)
        stats.transfers = 1
        await asset_activity_event(
            ctx, asset, "Transfer", from_account=sender, to_account=receiver, amount=value
        )

    await refresh_distribution(ctx.uow, asset, ctx.timestamp)
    ctx.uow.append(stats)


async def handle_clawback(ctx: EventContext) -> None:
    """Move tokens from one holder to another by force."""
    asset = await _load_asset(ctx)
    sender = ctx.param_address("from")
    receiver = ctx.param_address("to")
    amount = ctx.param_int("amount")

    await create_activity_log_entry(
        ctx, "Clawback", [sender, receiver], sender=ctx.param_actor("sender")
    )
    await _move(ctx, asset, sender, -amount)
    await _move(ctx, asset, receiver, amount)
    await refresh_distribution(ctx.uow, asset, ctx.timestamp)

    activity = await fetch_asset_activity(ctx.uow, asset.type)
    counters.increase_clawback_event_count(activity)

    stats = new_asset_stats(asset, ctx.timestamp)
    set_value_with_decimals(stats, "volume", amount, asset.decimals)
    ctx.uow.append(stats)
    await asset_activity_event(
        ctx, asset, "Clawback", from_account=sender, to_account=receiver, amount=amount
    )


async def handle_approval(ctx: EventContext) -> None:
    asset = await _load_asset(ctx)
    owner = ctx.param_address("owner")
    spender = ctx.param_address("spender")
    value = ctx.param_int("value")

    await create_activity_log_entry(ctx, "Approval", [owner, spender], sender=owner)
    await fetch_account(ctx.uow, spender)
    balance = await fetch_asset_balance(ctx.uow, asset.id, owner)
    set_balance_approved(balance, value, asset.decimals)
    balance.last_activity = ctx.timestamp
    await asset_activity_event(
        ctx, asset, "Approval", from_account=owner, to_account=spender, amount=value
    )


async def handle_tokens_frozen(ctx: EventContext) -> None:
    """Record the frozen amount of a holder's balance."""
    asset = await _load_asset(ctx)
    user = ctx.param_address("user")
    amount = ctx.param_int("amount")

    await create_activity_log_entry(ctx, "TokensFrozen", [user], sender=ctx.param_actor("sender"))
    balance = await fetch_asset_balance(ctx.uow, asset.id, user)
    set_balance_frozen(balance, amount, asset.decimals)
    balance.last_activity = ctx.timestamp

    activity = await fetch_asset_activity(ctx.uow, asset.type)
    counters.increase_frozen_event_count(activity)

    stats = new_asset_stats(asset, ctx.timestamp)
    set_value_with_decimals(stats, "frozen", amount, asset.decimals)
    ctx.uow.append(stats)
    logger.info("Froze %d of %s on asset %s", amount, user, asset.id)
    await asset_activity_event(ctx, asset, "TokensFrozen", user=user, amount=amount)


async def handle_tokens_unfrozen(ctx: EventContext) -> None:
    """Release part of a holder's frozen amount."""
    asset = await _load_asset(ctx)
    user = ctx.param_address("user")
    amount = ctx.param_int("amount")

    await create_activity_log_entry(ctx, "TokensUnfrozen", [user], sender=ctx.param_actor("sender"))
    balance = await fetch_asset_balance(ctx.uow, asset.id, user)
    set_balance_frozen(balance, balance.frozen_exact - amount, asset.decimals)
    balance.last_activity = ctx.timestamp

    activity = await fetch_asset_activity(ctx.uow, asset.type)
    counters.increase_unfrozen_event_count(activity)
    logger.info("Unfroze %d of %s on asset %s", amount, user, asset.id)
    await asset_activity_event(ctx, asset, "TokensUnfrozen", user=user, amount=amount)


async def handle_user_blocked(ctx: EventContext) -> None:
    asset = await _load_asset(ctx)
    user = ctx.param_address("user")

    await create_activity_log_entry(ctx, "UserBlocked", [user], sender=ctx.param_actor("sender"))
    await block_user(ctx.uow, asset.id, user, ctx.timestamp)
    balance = await fetch_asset_balance(ctx.uow, asset.id, user)
    balance.blocked = True
    balance.last_activity = ctx.timestamp
    await asset_activity_event(ctx, asset, "UserBlocked", user=user)


async def handle_user_unblocked(ctx: EventContext) -> None:
    asset = await _load_asset(ctx)
    user = ctx.param_address("user")

    await create_activity_log_entry(ctx, "UserUnblocked", [user], sender=ctx.param_actor("sender"))
    await unblock_user(ctx.uow, asset.id, user)
    balance = await fetch_asset_balance(ctx.uow, asset.id, user)
    balance.blocked = False
    balance.last_activity = ctx.timestamp
    await asset_activity_event(ctx, asset, "UserUnblocked", user=user)


async def handle_user_allowed(ctx: EventContext) -> None:
    asset = await _load_asset(ctx)
    user = ctx.param_address("user")

    await create_activity_log_entry(ctx, "UserAllowed", [user], sender=ctx.param_actor("sender"))
    await allow_user(ctx.uow, asset.id, user, ctx.timestamp)
    balance = await fetch_asset_balance(ctx.uow, asset.id, user)
    balance.blocked = False
    balance.last_activity = ctx.timestamp
    await asset_activity_event(ctx, asset, "UserAllowed", user=user)


async def handle_user_disallowed(ctx: EventContext) -> None:
    asset = await _load_asset(ctx)
    user = ctx.param_address("user")

    await create_activity_log_entry(ctx, "UserDisallowed", [user], sender=ctx.param_actor("sender"))
    await disallow_user(ctx.uow, asset.id, user)
    balance = await fetch_asset_balance(ctx.uow, asset.id, user)
    balance.blocked = True
    balance.last_activity = ctx.timestamp
    await asset_activity_event(ctx, asset, "UserDisallowed", user=user)


async def _pause(ctx: EventContext, paused: bool) -> None:
    asset = await _load_asset(ctx)
    account = ctx.param_address("account")
    event_name = "Pause" if paused else "Unpause"

    await create_activity_log_entry(ctx, event_name, [account], sender=account)
    changed = set_paused(asset, await holder_accounts(ctx.uow, asset.id), paused)
    if changed:
        activity = await fetch_asset_activity(ctx.uow, asset.type)
        if paused:
            counters.increase_paused_count(activity)
        else:
            counters.decrease_paused_count(activity)
        logger.info("Asset %s %s by %s", asset.id, "paused" if paused else "unpaused", account)
    else:
        logger.warning(
            "Asset %s already %s, ignoring %s", asset.id, "paused" if paused else "unpaused", ctx.id
        )
    await asset_activity_event(ctx, asset, event_name, user=account)


async def handle_paused(ctx: EventContext) -> None:
    await _pause(ctx, True)


async def handle_unpaused(ctx: EventContext) -> None:
    await _pause(ctx, False)


async def handle_role_granted(ctx: EventContext) -> None:
    asset = await _load_asset(ctx)
    account = ctx.param_address("account")
    role = decode_role(ctx.param_bytes("role"))

    await create_activity_log_entry(ctx, "RoleGranted", [account], sender=ctx.param_actor("sender"))
    if grant_asset_role(asset, role, account):
        logger.info("Granted %s on asset %s to %s", role, asset.id, account)


async def handle_role_revoked(ctx: EventContext) -> None:
    asset = await _load_asset(ctx)
    account = ctx.param_address("account")
    role = decode_role(ctx.param_bytes("role"))

    await create_activity_log_entry(ctx, "RoleRevoked", [account], sender=ctx.param_actor("sender"))
    if revoke_asset_role(asset, role, account):
        logger.info("Revoked %s on asset %s from %s", role, asset.id, account)


async def handle_role_admin_changed(ctx: EventContext) -> None:
    await _load_asset(ctx)
    await create_activity_log_entry(ctx, "RoleAdminChanged", sender=ctx.param_actor("sender"))


async def handle_collateral_updated(ctx: EventContext) -> None:
    asset = await _load_asset(ctx)
    new_amount = ctx.param_int("newAmount")

    await create_activity_log_entry(ctx, "CollateralUpdated", sender=ctx.param_actor("sender"))
    set_collateral(asset, new_amount)
    asset.last_collateral_update = ctx.timestamp
    await asset_activity_event(ctx, asset, "CollateralUpdated", amount=new_amount)


HANDLERS: dict[str, Handler] = {
    "Transfer": handle_transfer,
    "Approval": handle_approval,
    "Clawback": handle_clawback,
    "TokensFrozen": handle_tokens_frozen,
    "TokensUnfrozen": handle_tokens_unfrozen,
    "UserBlocked": handle_user_blocked,
    "UserUnblocked": handle_user_unblocked,
    "UserAllowed": handle_user_allowed,
    "UserDisallowed": handle_user_disallowed,
    "Paused": handle_paused,
    "Unpaused": handle_unpaused,
    "RoleGranted": handle_role_granted,
    "RoleRevoked": handle_role_revoked,
    "RoleAdminChanged": handle_role_admin_changed,
    "CollateralUpdated": handle_collateral_updated,
}
