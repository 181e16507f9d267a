"""Tests for the handler context and roles."""

import pytest

from asset_indexer.engine.context import EventContext
from asset_indexer.engine.errors import MalformedEventError
from asset_indexer.engine.models import Asset, Vault
from asset_indexer.engine.roles import (
    Role,
    decode_role,
    grant_asset_role,
    grant_vault_role,
    revoke_vault_role,
    role_hash,
)
from asset_indexer.ingestor.models import ContractKind
from asset_indexer.storage.base import UnitOfWork
from asset_indexer.storage.memory import MemoryStore

ASSET = "0x" + "a1" * 20
ALICE = "0x" + "11" * 20
MIXED = "0x" + "AB" * 20


@pytest.fixture
def ctx(store: MemoryStore, make_event) -> EventContext:
    event = make_event(
        ContractKind.TOKEN,
        "Transfer",
        ASSET,
        log_index=1,
        to=MIXED,
        value="0x10",
        amount="250",
        flag=True,
        data="0xABCD",
        label=7,
    )
    return EventContext(event=event, uow=UnitOfWork(store), asset_decimals={ASSET: 6})


class TestEventContext:
    """Tests for parameter accessors."""

    def test_id(self, ctx: EventContext) -> None:
        assert ctx.id == ctx.transaction_hash + "01000000"

    def test_param_address_normalizes(self, ctx: EventContext) -> None:
        assert ctx.param_address("to") == MIXED.lower()

    def test_param_int_hex_and_decimal(self, ctx: EventContext) -> None:
        assert ctx.param_int("value") == 16
        assert ctx.param_int("amount") == 250

    def test_param_int_rejects_bool(self, ctx: EventContext) -> None:
        with pytest.raises(MalformedEventError):
            ctx.param_int("flag")

    def test_param_bytes_lowercases(self, ctx: EventContext) -> None:
        assert ctx.param_bytes("data") == "0xabcd"

    def test_missing_param(self, ctx: EventContext) -> None:
        with pytest.raises(MalformedEventError, match="missing parameter 'from'"):
            ctx.param_address("from")

    def test_param_str_default(self, ctx: EventContext) -> None:
        assert ctx.param_str("comment", "") == ""
        with pytest.raises(MalformedEventError):
            ctx.param_str("label")

    def test_decimals_for(self, ctx: EventContext) -> None:
        assert ctx.decimals_for(ASSET) == 6
        assert ctx.decimals_for(ALICE) == 18

    def test_param_actor(self, ctx: EventContext) -> None:
        assert ctx.param_actor("sender", "to") == MIXED.lower()
        assert ctx.param_actor("sender", "owner") == ctx.event.transaction_from

    def test_param_actor_malformed(self, ctx: EventContext) -> None:
        with pytest.raises(MalformedEventError):
            ctx.param_actor("value")


class TestRoles:
    """Tests for role decoding and membership lists."""

    def test_admin_role_is_zero(self) -> None:
        assert role_hash(Role.ADMIN) == "0x" + "00" * 32

    def test_decode_round_trip(self) -> None:
        for role in Role:
            assert decode_role(role_hash(role)) is role

    def test_untracked_role(self) -> None:
        assert decode_role("0x" + "ff" * 32) is None

    def test_asset_roles(self) -> None:
        asset = Asset(id=ASSET)

        assert grant_asset_role(asset, Role.SUPPLY_MANAGEMENT, ALICE)
        assert not grant_asset_role(asset, Role.SUPPLY_MANAGEMENT, ALICE)
        assert not grant_asset_role(asset, Role.SIGNER, ALICE)

        assert asset.supply_managers == [ALICE]

    def test_vault_signers(self) -> None:
        vault = Vault(id="0x01", account="0x01")

        grant_vault_role(vault, Role.SIGNER, ALICE)
        assert vault.total_signers == 1

        revoke_vault_role(vault, Role.SIGNER, ALICE)
        assert vault.total_signers == 0
