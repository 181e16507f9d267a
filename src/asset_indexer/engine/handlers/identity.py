"""Handlers for identity contracts and the identity registry."""

from __future__ import annotations

import logging

from asset_indexer.engine.activity import create_activity_log_entry
from asset_indexer.engine.context import EventContext, Handler
from asset_indexer.engine.identity import (
    decode_key_purpose,
    decode_key_type,
    fetch_identity_claim,
    fetch_identity_key,
    find_claims_by_signature_hash,
)
from asset_indexer.engine.models import Identity, IdentityKey
from asset_indexer.engine.repository import fetch_account, fetch_identity, identity_key_id

logger = logging.getLogger(__name__)


async def _load_identity(ctx: EventContext) -> Identity:
    identity = await fetch_identity(ctx.uow, ctx.emitter)
    if not identity.deployed_in_transaction:
        identity.deployed_in_transaction = ctx.transaction_hash
    identity.last_activity = ctx.timestamp
    return identity


async def handle_key_added(ctx: EventContext) -> None:
    """Store a key with its decoded purpose and type."""
    identity = await _load_identity(ctx)
    await create_activity_log_entry(ctx, "KeyAdded")

    key = await fetch_identity_key(
        ctx.uow, identity, ctx.param_bytes("key"), ctx.transaction_hash
    )
    key.purpose = decode_key_purpose(ctx.param_int("purpose"))
    key.type = decode_key_type(ctx.param_int("keyType"))


async def handle_key_removed(ctx: EventContext) -> None:
    identity = await _load_identity(ctx)
    await create_activity_log_entry(ctx, "KeyRemoved")

    key_id = identity_key_id(identity.id, ctx.param_bytes("key"))
    if await ctx.uow.get(IdentityKey, key_id) is None:
        logger.warning("Removal of unknown key %s", key_id)
        return
    ctx.uow.remove(IdentityKey, key_id)


async def _store_claim(ctx: EventContext, event_name: str) -> None:
    identity = await _load_identity(ctx)
    issuer = ctx.param_address("issuer")
    await create_activity_log_entry(ctx, event_name, [issuer])

    await fetch_identity(ctx.uow, issuer)
    claim = await fetch_identity_claim(
        ctx.uow, identity, ctx.param_bytes("claimId"), ctx.transaction_hash
    )
    claim.topic = ctx.param_int("topic")
    claim.scheme = ctx.param_int("scheme")
    claim.issuer = issuer
    claim.signature = ctx.param_bytes("signature")
    claim.data = ctx.param_bytes("data")
    claim.uri = ctx.param_str("uri", "")
    claim.revoked = False


async def handle_claim_added(ctx: EventContext) -> None:
    await _store_claim(ctx, "ClaimAdded")


async def handle_claim_changed(ctx: EventContext) -> None:
    await _store_claim(ctx, "ClaimChanged")


async def handle_claim_removed(ctx: EventContext) -> None:
    """Mark a claim as revoked. Claim records are kept for history."""
    identity = await _load_identity(ctx)
    await create_activity_log_entry(ctx, "ClaimRemoved")

    claim = await fetch_identity_claim(
        ctx.uow, identity, ctx.param_bytes("claimId"), ctx.transaction_hash
    )
    claim.revoked = True


async def handle_claim_revoked(ctx: EventContext) -> None:
    """Revoke every claim whose signature hashes to the event signature."""
    identity = await _load_identity(ctx)
    await create_activity_log_entry(ctx, "ClaimRevoked")

    claims = await find_claims_by_signature_hash(ctx.uow, identity, ctx.param_bytes("signature"))
    if not claims:
        logger.warning("No claim on identity %s matches revoked signature", identity.id)
    for claim in claims:
        claim.revoked = True


async def handle_identity_log_only(ctx: EventContext) -> None:
    await _load_identity(ctx)
    await create_activity_log_entry(ctx, ctx.name)


async def _registered_identity(ctx: EventContext, investor: str) -> Identity | None:
    matches = await ctx.uow.find(Identity, account=investor, registry=ctx.emitter, registered=True)
    return matches[0] if matches else None


async def handle_identity_registered(ctx: EventContext) -> None:
    """Link an investor account to its identity in a registry."""
    investor = ctx.param_address("investorAddress")
    address = ctx.param_address("identity")
    await create_activity_log_entry(
        ctx, "IdentityRegistered", [investor], sender=ctx.param_actor("sender")
    )

    await fetch_account(ctx.uow, investor)
    identity = await fetch_identity(ctx.uow, address)
    identity.account = investor
    identity.registry = ctx.emitter
    identity.registered = True
    identity.last_activity = ctx.timestamp
    if not identity.deployed_in_transaction:
        identity.deployed_in_transaction = ctx.transaction_hash


async def handle_identity_removed(ctx: EventContext) -> None:
    investor = ctx.param_address("investorAddress")
    address = ctx.param_address("identity")
    await create_activity_log_entry(
        ctx, "IdentityRemoved", [investor], sender=ctx.param_actor("sender")
    )

    identity = await fetch_identity(ctx.uow, address)
    identity.registered = False
    identity.last_activity = ctx.timestamp


async def handle_country_updated(ctx: EventContext) -> None:
    """Store an investor's country. Unregistered investors are skipped."""
    investor = ctx.param_address("investorAddress")
    await create_activity_log_entry(
        ctx, "CountryUpdated", [investor], sender=ctx.param_actor("sender")
    )

    identity = await _registered_identity(ctx, investor)
    if identity is None:
        logger.warning("Country update for unregistered investor %s", investor)
        return
    identity.country = ctx.param_int("country")
    identity.last_activity = ctx.timestamp


HANDLERS: dict[str, Handler] = {
    "KeyAdded": handle_key_added,
    "KeyRemoved": handle_key_removed,
    "ClaimAdded": handle_claim_added,
    "ClaimChanged": handle_claim_changed,
    "ClaimRemoved": handle_claim_removed,
    "ClaimRevoked": handle_claim_revoked,
    "Approved": handle_identity_log_only,
    "Executed": handle_identity_log_only,
    "ExecutionRequested": handle_identity_log_only,
    "ExecutionFailed": handle_identity_log_only,
}

REGISTRY_HANDLERS: dict[str, Handler] = {
    "IdentityRegistered": handle_identity_registered,
    "IdentityRemoved": handle_identity_removed,
    "CountryUpdated": handle_country_updated,
}
