"""Handlers for multisig vault events."""

from __future__ import annotations

import logging

from asset_indexer.engine import counters
from asset_indexer.engine.activity import create_activity_log_entry
from asset_indexer.engine.balances import set_transaction_value
from asset_indexer.engine.context import EventContext, Handler
from asset_indexer.engine.models import (
    Asset,
    Vault,
    VaultTransaction,
    VaultTransactionConfirmation,
    VaultTransactionType,
)
from asset_indexer.engine.repository import (
    fetch_account,
    fetch_vault,
    vault_confirmation_id,
    vault_transaction_id,
)
from asset_indexer.engine.roles import decode_role, grant_vault_role, revoke_vault_role

logger = logging.getLogger(__name__)

NATIVE_DECIMALS = 18


async def _load_vault(ctx: EventContext) -> Vault:
    vault = await fetch_vault(ctx.uow, ctx.emitter, ctx.timestamp)
    vault.last_activity = ctx.timestamp
    return vault


async def handle_vault_created(ctx: EventContext) -> None:
    """Register a vault deployed by the vault factory."""
    address = ctx.param_address("vault")
    creator = ctx.param_address("creator")

    await create_activity_log_entry(ctx, "VaultCreated", [address, creator], sender=creator)
    vault = await fetch_vault(ctx.uow, address, ctx.timestamp)
    account = await fetch_account(ctx.uow, address)
    account.is_contract = True
    await fetch_account(ctx.uow, creator)

    vault.creator = creator
    vault.required_signers = ctx.param_int("required")
    vault.last_activity = ctx.timestamp
    logger.info("Vault %s created by %s", address, creator)


async def _pause(ctx: EventContext, paused: bool) -> None:
    vault = await _load_vault(ctx)
    account = ctx.param_address("account")
    await create_activity_log_entry(
        ctx, "Pause" if paused else "Unpause", [account], sender=account
    )
    vault.paused = paused
    logger.info("Vault %s %s by %s", vault.id, "paused" if paused else "unpaused", account)


async def handle_paused(ctx: EventContext) -> None:
    await _pause(ctx, True)


async def handle_unpaused(ctx: EventContext) -> None:
    await _pause(ctx, False)


async def handle_deposit(ctx: EventContext) -> None:
    await _load_vault(ctx)
    depositor = ctx.param_address("sender")
    await create_activity_log_entry(ctx, "Deposit", [depositor], sender=depositor)


async def handle_requirement_changed(ctx: EventContext) -> None:
    vault = await _load_vault(ctx)
    account = ctx.param_address("account")
    await create_activity_log_entry(ctx, "RequirementChanged", [account], sender=account)
    vault.required_signers = ctx.param_int("required")


async def handle_role_granted(ctx: EventContext) -> None:
    vault = await _load_vault(ctx)
    account = ctx.param_address("account")
    await create_activity_log_entry(ctx, "RoleGranted", [account], sender=ctx.param_actor("sender"))
    grant_vault_role(vault, decode_role(ctx.param_bytes("role")), account)


async def handle_role_revoked(ctx: EventContext) -> None:
    vault = await _load_vault(ctx)
    account = ctx.param_address("account")
    await create_activity_log_entry(ctx, "RoleRevoked", [account], sender=ctx.param_actor("sender"))
    revoke_vault_role(vault, decode_role(ctx.param_bytes("role")), account)


async def _submit(
    ctx: EventContext,
    vault: Vault,
    tx_type: VaultTransactionType,
    to: str,
) -> VaultTransaction | None:
    signer = ctx.param_address("signer")
    tx_index = ctx.param_int("txIndex")
    tx_id = vault_transaction_id(vault.id, tx_index)

    if await ctx.uow.get(VaultTransaction, tx_id) is not None:
        logger.warning("Vault transaction %s already submitted", tx_id)
        return None

    await fetch_account(ctx.uow, signer)
    await fetch_account(ctx.uow, to)
    transaction = VaultTransaction(
        id=tx_id,
        vault=vault.id,
        tx_index=tx_index,
        type=tx_type,
        submitter=signer,
        created_at=ctx.timestamp,
        comment=ctx.param_str("comment", ""),
        to=to,
    )
    ctx.uow.save(transaction)
    counters.increase_pending_transactions_count(vault)
    return transaction


async def handle_submit_transaction(ctx: EventContext) -> None:
    """Record a native currency transfer awaiting confirmations."""
    vault = await _load_vault(ctx)
    to = ctx.param_address("to")
    signer = ctx.param_address("signer")
    await create_activity_log_entry(ctx, "SubmitTransaction", [signer, to], sender=signer)

    transaction = await _submit(ctx, vault, VaultTransactionType.NATIVE_CURRENCY_TRANSFER, to)
    if transaction is not None:
        set_transaction_value(transaction, ctx.param_int("value"), NATIVE_DECIMALS)
        transaction.data = ctx.param_bytes("data")


async def handle_submit_erc20_transfer(ctx: EventContext) -> None:
    """Record a token transfer awaiting confirmations."""
    vault = await _load_vault(ctx)
    to = ctx.param_address("to")
    token = ctx.param_address("token")
    signer = ctx.param_address("signer")
    await create_activity_log_entry(
        ctx, "SubmitERC20TransferTransaction", [signer, to, token], sender=signer
    )

    transaction = await _submit(ctx, vault, VaultTransactionType.ERC20_TRANSFER, to)
    if transaction is not None:
        asset = await ctx.uow.get(Asset, token)
        decimals = asset.decimals if asset is not None else ctx.decimals_for(token)
        transaction.token = token
        set_transaction_value(transaction, ctx.param_int("amount"), decimals)


async def handle_submit_contract_call(ctx: EventContext) -> None:
    """Record a contract call awaiting confirmations."""
    vault = await _load_vault(ctx)
    target = ctx.param_address("target")
    signer = ctx.param_address("signer")
    await create_activity_log_entry(
        ctx, "SubmitContractCallTransaction", [signer, target], sender=signer
    )

    transaction = await _submit(ctx, vault, VaultTransactionType.CONTRACT_CALL, target)
    if transaction is not None:
        set_transaction_value(transaction, ctx.param_int("value"), NATIVE_DECIMALS)
        transaction.selector = ctx.param_bytes("selector")
        transaction.abi_encoded_arguments = ctx.param_bytes("abiEncodedArguments")


async def handle_confirm_transaction(ctx: EventContext) -> None:
    """Record a signer's confirmation.

    Confirmations of unknown transactions and repeated confirmations by the
    same signer are logged and otherwise ignored.
    """
    vault = await _load_vault(ctx)
    signer = ctx.param_address("signer")
    tx_id = vault_transaction_id(vault.id, ctx.param_int("txIndex"))
    await create_activity_log_entry(ctx, "ConfirmTransaction", [signer], sender=signer)

    transaction = await ctx.uow.get(VaultTransaction, tx_id)
    if transaction is None:
        logger.warning("Confirmation for unknown vault transaction %s", tx_id)
        return

    confirmation_id = vault_confirmation_id(tx_id, signer)
    if await ctx.uow.get(VaultTransactionConfirmation, confirmation_id) is not None:
        logger.warning("Duplicate confirmation of %s by %s", tx_id, signer)
        return

    ctx.uow.save(
        VaultTransactionConfirmation(
            id=confirmation_id,
            transaction=tx_id,
            signer=signer,
            confirmed_at=ctx.timestamp,
        )
    )
    counters.increase_confirmations_count(transaction)


async def handle_revoke_confirmation(ctx: EventContext) -> None:
    vault = await _load_vault(ctx)
    signer = ctx.param_address("signer")
    tx_id = vault_transaction_id(vault.id, ctx.param_int("txIndex"))
    await create_activity_log_entry(ctx, "RevokeConfirmation", [signer], sender=signer)

    confirmation_id = vault_confirmation_id(tx_id, signer)
    if await ctx.uow.get(VaultTransactionConfirmation, confirmation_id) is None:
        logger.warning("No confirmation of %s by %s to revoke", tx_id, signer)
        return

    ctx.uow.remove(VaultTransactionConfirmation, confirmation_id)
    transaction = await ctx.uow.get(VaultTransaction, tx_id)
    if transaction is None:
        logger.warning("Revoked confirmation for unknown vault transaction %s", tx_id)
        return
    counters.decrease_confirmations_count(transaction)


async def handle_execute_transaction(ctx: EventContext) -> None:
    """Mark a transaction executed and move it from pending to executed."""
    vault = await _load_vault(ctx)
    executor = ctx.param_address("signer")
    tx_id = vault_transaction_id(vault.id, ctx.param_int("txIndex"))
    await create_activity_log_entry(ctx, "ExecuteTransaction", [executor], sender=executor)

    transaction = await ctx.uow.get(VaultTransaction, tx_id)
    if transaction is None:
        logger.warning("Execution of unknown vault transaction %s", tx_id)
        return
    if transaction.executed:
        logger.warning("Vault transaction %s already executed", tx_id)
        return

    transaction.executed = True
    transaction.executed_at = ctx.timestamp
    transaction.executor = executor
    counters.decrease_pending_transactions_count(vault)
    counters.increase_executed_transactions_count(vault)
    logger.info("Vault transaction %s executed by %s", tx_id, executor)


FACTORY_HANDLERS: dict[str, Handler] = {
    "VaultCreated": handle_vault_created,
}

HANDLERS: dict[str, Handler] = {
    "Paused": handle_paused,
    "Unpaused": handle_unpaused,
    "Deposit": handle_deposit,
    "RequirementChanged": handle_requirement_changed,
    "RoleGranted": handle_role_granted,
    "RoleRevoked": handle_role_revoked,
    "SubmitTransaction": handle_submit_transaction,
    "SubmitERC20TransferTransaction": handle_submit_erc20_transfer,
    "SubmitContractCallTransaction": handle_submit_contract_call,
    "ConfirmTransaction": handle_confirm_transaction,
    "RevokeConfirmation": handle_revoke_confirmation,
    "ExecuteTransaction": handle_execute_transaction,
}
