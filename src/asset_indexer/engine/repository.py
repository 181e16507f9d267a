"""Fetch-or-create access to entities and deterministic id builders.

Every entity is keyed by an id derived from immutable on-chain facts:
contract addresses, transaction hashes and log indexes. Fetching the same
id twice therefore always resolves to the same record, which is what makes
replaying an event converge on the same state.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from asset_indexer.engine.models import (
    Account,
    Asset,
    AssetActivity,
    AssetBalance,
    AssetDistribution,
    AssetType,
    Identity,
    System,
    TokenRegistry,
    Vault,
)
from asset_indexer.storage.base import UnitOfWork

logger = logging.getLogger(__name__)

E = TypeVar("E")


def _strip(part: str) -> str:
    return part[2:] if part.startswith(("0x", "0X")) else part


def concat_ids(*parts: str) -> str:
    """Concatenate hex identifiers into one composite id.

    Args:
        *parts: Hex strings, with or without ``0x`` prefix.

    Returns:
        Lowercase ``0x``-prefixed concatenation of the parts.
    """
    return "0x" + "".join(_strip(part).lower() for part in parts)


def event_id(transaction_hash: str, log_index: int) -> str:
    """Build the id of an event from its transaction hash and log index.

    The log index is appended as four little-endian bytes.
    """
    return concat_ids(transaction_hash, (log_index & 0xFFFFFFFF).to_bytes(4, "little").hex())


def asset_balance_id(asset: str, account: str) -> str:
    """Return the id of an account's balance in an asset."""
    return concat_ids(asset, account)


def top_holder_id(asset: str, account: str) -> str:
    """Return the id of a top holder record."""
    return concat_ids(asset, account)


def blocked_user_id(asset: str, user: str) -> str:
    """Return the id of a block list entry."""
    return concat_ids(asset, user)


def allowed_user_id(asset: str, user: str) -> str:
    """Return the id of an allow list entry."""
    return concat_ids(asset, user)


def identity_key_id(identity: str, key: str) -> str:
    """Return the id of a key held by an identity."""
    return concat_ids(identity, key)


def identity_claim_id(identity: str, claim_id: str) -> str:
    """Return the id of a claim attached to an identity."""
    return concat_ids(identity, claim_id)


def vault_transaction_id(vault: str, tx_index: int) -> str:
    """Return the id of a vault transaction."""
    return f"{vault}-{tx_index}"


def vault_confirmation_id(transaction_id: str, signer: str) -> str:
    """Return the id of a signer's confirmation of a vault transaction."""
    return f"{transaction_id}-{signer}"


async def fetch_or_create(uow: UnitOfWork, kind: type[E], entity_id: str, **defaults: Any) -> E:
    """Return the stored record, creating it with defaults when absent.

    A newly created record is saved to the unit of work before it is
    returned, so later reads in the same event see it.

    Args:
        uow: Current unit of work.
        kind: Entity class.
        entity_id: Deterministic id of the record.
        **defaults: Field values for a new record beyond the zeroed ones.

    Returns:
        The existing or newly created record.
    """
    entity = await uow.get(kind, entity_id)
    if entity is None:
        entity = kind(id=entity_id, **defaults)  # type: ignore[call-arg]
        uow.save(entity)
        logger.debug("Created %s %s", kind.__name__, entity_id)
    return entity


async def fetch_account(uow: UnitOfWork, address: str) -> Account:
    """Return the account shadow of an address."""
    return await fetch_or_create(uow, Account, address)


async def fetch_asset(uow: UnitOfWork, address: str, *, decimals: int = 18) -> Asset:
    """Return an asset, creating it with the given decimals when unseen.

    Assets created here have type ``unknown`` until their registration
    event is processed.
    """
    return await fetch_or_create(uow, Asset, address, decimals=decimals)


async def fetch_asset_balance(uow: UnitOfWork, asset: str, account: str) -> AssetBalance:
    """Return the balance of an account in an asset."""
    return await fetch_or_create(
        uow,
        AssetBalance,
        asset_balance_id(asset, account),
        asset=asset,
        account=account,
    )


async def fetch_asset_distribution(uow: UnitOfWork, asset: str) -> AssetDistribution:
    """Return the holder concentration record of an asset."""
    return await fetch_or_create(uow, AssetDistribution, asset)


async def fetch_asset_activity(uow: UnitOfWork, asset_type: AssetType) -> AssetActivity:
    """Return the event counters of an asset type."""
    return await fetch_or_create(uow, AssetActivity, asset_type.value, asset_type=asset_type)


async def fetch_identity(uow: UnitOfWork, address: str) -> Identity:
    """Return the shadow of an identity contract."""
    return await fetch_or_create(uow, Identity, address)


async def fetch_vault(uow: UnitOfWork, address: str, timestamp: int) -> Vault:
    """Return a vault, creating it as deployed at ``timestamp`` when unseen."""
    vault = await uow.get(Vault, address)
    if vault is None:
        await fetch_account(uow, address)
        vault = Vault(id=address, account=address, deployed_on=timestamp)
        uow.save(vault)
        logger.debug("Created Vault %s", address)
    return vault


async def fetch_system(uow: UnitOfWork, address: str) -> System:
    """Return a system shadow."""
    return await fetch_or_create(uow, System, address)


async def fetch_token_registry(uow: UnitOfWork, address: str) -> TokenRegistry:
    """Return a token registry shadow."""
    return await fetch_or_create(uow, TokenRegistry, address)
