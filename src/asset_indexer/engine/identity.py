"""Identity and key state tracking.

Key purposes and types arrive as numeric codes. ``decode_key_purpose`` and
``decode_key_type`` are the only places those codes are interpreted; codes
missing from the tables decode to ``UNKNOWN`` with a warning so a contract
upgrade adding new purposes cannot halt indexing.
"""

from __future__ import annotations

import logging

from web3 import Web3

from asset_indexer.engine.models import (
    Identity,
    IdentityClaim,
    IdentityKey,
    KeyPurpose,
    KeyType,
)
from asset_indexer.engine.repository import (
    fetch_or_create,
    identity_claim_id,
    identity_key_id,
)
from asset_indexer.storage.base import UnitOfWork

logger = logging.getLogger(__name__)

KEY_PURPOSES: dict[int, KeyPurpose] = {
    1: KeyPurpose.MANAGEMENT,
    2: KeyPurpose.DEPOSIT,
    3: KeyPurpose.CLAIM_SIGNER,
    4: KeyPurpose.ENCRYPTION,
}

KEY_TYPES: dict[int, KeyType] = {
    1: KeyType.ECDSA,
    2: KeyType.RSA,
}


def decode_key_purpose(code: int) -> KeyPurpose:
    """Decode a numeric key purpose.

    Args:
        code: Purpose code from the KeyAdded event.

    Returns:
        The matching KeyPurpose, or KeyPurpose.UNKNOWN.
    """
    purpose = KEY_PURPOSES.get(code)
    if purpose is None:
        logger.warning("Unknown identity key purpose code %s", code)
        return KeyPurpose.UNKNOWN
    return purpose


def decode_key_type(code: int) -> KeyType:
    """Decode a numeric key type.

    Args:
        code: Key type code from the KeyAdded event.

    Returns:
        The matching KeyType, or KeyType.UNKNOWN.
    """
    key_type = KEY_TYPES.get(code)
    if key_type is None:
        logger.warning("Unknown identity key type code %s", code)
        return KeyType.UNKNOWN
    return key_type


async def fetch_identity_key(
    uow: UnitOfWork, identity: Identity, key: str, transaction_hash: str = ""
) -> IdentityKey:
    """Return a key of an identity, created with unknown purpose and type.

    Args:
        uow: Current unit of work.
        identity: Identity holding the key.
        key: Key bytes as hex.
        transaction_hash: Transaction that added the key, for new records.

    Returns:
        The existing or newly created IdentityKey.
    """
    return await fetch_or_create(
        uow,
        IdentityKey,
        identity_key_id(identity.id, key),
        identity=identity.id,
        key=key.lower(),
        deployed_in_transaction=transaction_hash,
    )


async def fetch_identity_claim(
    uow: UnitOfWork, identity: Identity, claim_id: str, transaction_hash: str = ""
) -> IdentityClaim:
    """Return a claim attached to an identity."""
    return await fetch_or_create(
        uow,
        IdentityClaim,
        identity_claim_id(identity.id, claim_id),
        identity=identity.id,
        claim_id=claim_id.lower(),
        deployed_in_transaction=transaction_hash,
    )


def signature_hash(signature: str) -> str:
    """Return the keccak256 hash of a hex encoded claim signature."""
    return "0x" + Web3.keccak(hexstr=signature).hex().removeprefix("0x")


async def find_claims_by_signature_hash(
    uow: UnitOfWork, identity: Identity, digest: str
) -> list[IdentityClaim]:
    """Return the identity's claims whose signature hashes to ``digest``."""
    digest = digest.lower()
    return [
        claim
        for claim in await uow.find(IdentityClaim, identity=identity.id)
        if claim.signature and signature_hash(claim.signature) == digest
    ]
