"""Access-control role tracking.

Role ids are 32-byte hashes. ``DEFAULT_ADMIN_ROLE`` is all zeros and every
other role is the keccak256 hash of its name.
"""

from __future__ import annotations

import logging
from enum import Enum

from web3 import Web3

from asset_indexer.engine.models import Asset, System, TokenRegistry, Vault

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Roles tracked by the indexer."""

    ADMIN = "DEFAULT_ADMIN_ROLE"
    SUPPLY_MANAGEMENT = "SUPPLY_MANAGEMENT_ROLE"
    USER_MANAGEMENT = "USER_MANAGEMENT_ROLE"
    AUDITOR = "AUDITOR_ROLE"
    SIGNER = "SIGNER_ROLE"


def role_hash(role: Role) -> str:
    """Return the 32-byte id of a role as hex."""
    if role is Role.ADMIN:
        return "0x" + "00" * 32
    return "0x" + Web3.keccak(text=role.value).hex().removeprefix("0x")


ROLES_BY_HASH: dict[str, Role] = {role_hash(role): role for role in Role}


def decode_role(role: str) -> Role | None:
    """Return the tracked role with the given id, or None."""
    decoded = ROLES_BY_HASH.get(role.lower())
    if decoded is None:
        logger.debug("Untracked role %s", role)
    return decoded


def _add(members: list[str], account: str) -> bool:
    if account in members:
        return False
    members.append(account)
    return True


def _discard(members: list[str], account: str) -> bool:
    if account not in members:
        return False
    members.remove(account)
    return True


def _asset_members(asset: Asset, role: Role) -> list[str] | None:
    if role is Role.ADMIN:
        return asset.admins
    if role is Role.SUPPLY_MANAGEMENT:
        return asset.supply_managers
    if role is Role.USER_MANAGEMENT:
        return asset.user_managers
    if role is Role.AUDITOR:
        return asset.auditors
    return None


def _vault_members(vault: Vault, role: Role) -> list[str] | None:
    if role is Role.ADMIN:
        return vault.admins
    if role is Role.SIGNER:
        return vault.signers
    return None


def grant_asset_role(asset: Asset, role: Role | None, account: str) -> bool:
    """Add an account to an asset role list. Returns True if it changed."""
    members = _asset_members(asset, role) if role is not None else None
    return members is not None and _add(members, account)


def revoke_asset_role(asset: Asset, role: Role | None, account: str) -> bool:
    """Remove an account from an asset role list. Returns True if it changed."""
    members = _asset_members(asset, role) if role is not None else None
    return members is not None and _discard(members, account)


def grant_vault_role(vault: Vault, role: Role | None, account: str) -> bool:
    """Add an account to a vault role list and refresh ``total_signers``."""
    members = _vault_members(vault, role) if role is not None else None
    changed = members is not None and _add(members, account)
    vault.total_signers = len(vault.signers)
    return changed


def revoke_vault_role(vault: Vault, role: Role | None, account: str) -> bool:
    """Remove an account from a vault role list and refresh ``total_signers``."""
    members = _vault_members(vault, role) if role is not None else None
    changed = members is not None and _discard(members, account)
    vault.total_signers = len(vault.signers)
    return changed


def grant_admin(target: System | TokenRegistry, role: Role | None, account: str) -> bool:
    """Add an admin to a system or registry. Other roles are ignored."""
    return role is Role.ADMIN and _add(target.admins, account)


def revoke_admin(target: System | TokenRegistry, role: Role | None, account: str) -> bool:
    """Remove an admin from a system or registry. Other roles are ignored."""
    return role is Role.ADMIN and _discard(target.admins, account)
