"""Handlers for the system, its token registries and asset registration."""

from __future__ import annotations

import logging

from asset_indexer.engine.activity import create_activity_log_entry
from asset_indexer.engine.balances import rescale_asset, rescale_balance
from asset_indexer.engine.context import EventContext, Handler
from asset_indexer.engine.distribution import refresh_distribution
from asset_indexer.engine.models import AssetBalance, AssetType, System, TokenRegistry
from asset_indexer.engine.repository import (
    fetch_account,
    fetch_asset,
    fetch_system,
    fetch_token_registry,
)
from asset_indexer.engine.roles import decode_role, grant_admin, revoke_admin

logger = logging.getLogger(__name__)


def asset_type_for(type_name: str) -> AssetType:
    """Map a registry type name such as ``"bond"`` to an AssetType."""
    try:
        return AssetType(type_name.strip().lower())
    except ValueError:
        logger.warning("Unknown asset type name %r", type_name)
        return AssetType.UNKNOWN


async def handle_system_created(ctx: EventContext) -> None:
    address = ctx.param_address("system")
    deployer = ctx.param_address("sender")
    await create_activity_log_entry(ctx, "SystemCreated", [deployer], sender=deployer)

    account = await fetch_account(ctx.uow, address)
    account.is_contract = True
    system = await fetch_system(ctx.uow, address)
    if not system.deployed_in_transaction:
        system.deployer = deployer
        system.deployed_at = ctx.timestamp
        system.deployed_in_transaction = ctx.transaction_hash
    system.last_activity = ctx.timestamp
    logger.info("System %s deployed by %s", address, deployer)


async def handle_token_registry_created(ctx: EventContext) -> None:
    """Register a token registry created by a system."""
    address = ctx.param_address("registry")
    await create_activity_log_entry(ctx, "TokenRegistryCreated", sender=ctx.param_actor("sender"))

    system = await fetch_system(ctx.uow, ctx.emitter)
    system.last_activity = ctx.timestamp
    account = await fetch_account(ctx.uow, address)
    account.is_contract = True

    registry = await fetch_token_registry(ctx.uow, address)
    registry.system = system.id
    registry.type_name = ctx.param_str("typeName")
    registry.deployed_at = registry.deployed_at or ctx.timestamp
    registry.last_activity = ctx.timestamp


async def handle_asset_created(ctx: EventContext) -> None:
    """Register an asset with its type, metadata and decimals.

    When balances were indexed before the registration with a different
    precision, every scaled amount of the asset is recomputed.
    """
    address = ctx.param_address("asset")
    creator = ctx.param_address("creator")
    decimals = ctx.param_int("decimals")
    await create_activity_log_entry(ctx, "AssetCreated", [creator], sender=creator)

    registry = await fetch_token_registry(ctx.uow, ctx.emitter)
    registry.last_activity = ctx.timestamp
    account = await fetch_account(ctx.uow, address)
    account.is_contract = True
    await fetch_account(ctx.uow, creator)

    asset = await fetch_asset(ctx.uow, address, decimals=decimals)
    asset.type = asset_type_for(registry.type_name)
    asset.name = ctx.param_str("name", "")
    asset.symbol = ctx.param_str("symbol", "")
    asset.registry = registry.id
    asset.creator = creator
    asset.deployed_on = ctx.timestamp
    asset.last_activity = ctx.timestamp

    if asset.decimals != decimals:
        logger.warning(
            "Rescaling asset %s from %d to %d decimals", address, asset.decimals, decimals
        )
        asset.decimals = decimals
        rescale_asset(asset)
        for balance in await ctx.uow.find(AssetBalance, asset=address):
            rescale_balance(balance, decimals)
        await refresh_distribution(ctx.uow, asset, ctx.timestamp)
    logger.info("Asset %s (%s) registered as %s", address, asset.symbol, asset.type.value)


async def _role_change(ctx: EventContext, target: System | TokenRegistry, granted: bool) -> None:
    account = ctx.param_address("account")
    await create_activity_log_entry(
        ctx,
        "RoleGranted" if granted else "RoleRevoked",
        [account],
        sender=ctx.param_actor("sender"),
    )
    role = decode_role(ctx.param_bytes("role"))
    if granted:
        grant_admin(target, role, account)
    else:
        revoke_admin(target, role, account)
    target.last_activity = ctx.timestamp


async def handle_system_role_granted(ctx: EventContext) -> None:
    await _role_change(ctx, await fetch_system(ctx.uow, ctx.emitter), True)


async def handle_system_role_revoked(ctx: EventContext) -> None:
    await _role_change(ctx, await fetch_system(ctx.uow, ctx.emitter), False)


async def handle_registry_role_granted(ctx: EventContext) -> None:
    await _role_change(ctx, await fetch_token_registry(ctx.uow, ctx.emitter), True)


async def handle_registry_role_revoked(ctx: EventContext) -> None:
    await _role_change(ctx, await fetch_token_registry(ctx.uow, ctx.emitter), False)


SYSTEM_HANDLERS: dict[str, Handler] = {
    "SystemCreated": handle_system_created,
    "TokenRegistryCreated": handle_token_registry_created,
    "RoleGranted": handle_system_role_granted,
    "RoleRevoked": handle_system_role_revoked,
}

REGISTRY_HANDLERS: dict[str, Handler] = {
    "AssetCreated": handle_asset_created,
    "RoleGranted": handle_registry_role_granted,
    "RoleRevoked": handle_registry_role_revoked,
}
