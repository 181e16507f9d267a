"""Tests for system, token registry and asset registration handlers."""

from decimal import Decimal

import pytest

from asset_indexer.engine.handlers.system import asset_type_for
from asset_indexer.engine.models import (
    Account,
    Asset,
    AssetBalance,
    AssetType,
    System,
    TokenRegistry,
)
from asset_indexer.engine.repository import asset_balance_id
from asset_indexer.engine.roles import Role, role_hash
from asset_indexer.ingestor.models import ZERO_ADDRESS, ContractKind
from asset_indexer.storage.memory import MemoryStore

SYSTEM = "0x" + "5e" * 20
REGISTRY = "0x" + "4e" * 20
ASSET = "0x" + "a1" * 20
DEPLOYER = "0x" + "de" * 20
ALICE = "0x" + "11" * 20


@pytest.fixture
def system_created(make_event):
    return make_event(
        ContractKind.SYSTEM, "SystemCreated", SYSTEM, system=SYSTEM, sender=DEPLOYER
    )


@pytest.fixture
def registry_created(make_event):
    return make_event(
        ContractKind.SYSTEM,
        "TokenRegistryCreated",
        SYSTEM,
        registry=REGISTRY,
        typeName="Bond",
    )


@pytest.fixture
def asset_created(make_event):
    return make_event(
        ContractKind.TOKEN_REGISTRY,
        "AssetCreated",
        REGISTRY,
        asset=ASSET,
        creator=DEPLOYER,
        name="Treasury 2030",
        symbol="T30",
        decimals=2,
    )


class TestAssetTypeFor:
    """Tests for registry type name mapping."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("bond", AssetType.BOND),
            ("Equity", AssetType.EQUITY),
            (" stablecoin ", AssetType.STABLECOIN),
            ("art", AssetType.UNKNOWN),
        ],
    )
    def test_mapping(self, name: str, expected: AssetType) -> None:
        assert asset_type_for(name) is expected


class TestSystem:
    """Tests for system and registry deployment."""

    @pytest.mark.asyncio
    async def test_system_created(self, apply, store: MemoryStore, system_created) -> None:
        await apply(system_created)

        system = await store.get(System, SYSTEM)
        assert system is not None
        assert system.deployer == DEPLOYER
        account = await store.get(Account, SYSTEM)
        assert account is not None
        assert account.is_contract

    @pytest.mark.asyncio
    async def test_registry_created(
        self, apply, store: MemoryStore, system_created, registry_created
    ) -> None:
        await apply(system_created, registry_created)

        registry = await store.get(TokenRegistry, REGISTRY)
        assert registry is not None
        assert registry.system == SYSTEM
        assert registry.type_name == "Bond"

    @pytest.mark.asyncio
    async def test_admin_roles(self, apply, store: MemoryStore, make_event) -> None:
        admin = role_hash(Role.ADMIN)
        await apply(
            make_event(ContractKind.SYSTEM, "RoleGranted", SYSTEM, role=admin, account=ALICE),
            make_event(
                ContractKind.TOKEN_REGISTRY, "RoleGranted", REGISTRY, role=admin, account=ALICE
            ),
            make_event(
                ContractKind.SYSTEM,
                "RoleGranted",
                SYSTEM,
                role=role_hash(Role.AUDITOR),
                account=DEPLOYER,
            ),
        )

        system = await store.get(System, SYSTEM)
        registry = await store.get(TokenRegistry, REGISTRY)
        assert system is not None
        assert registry is not None
        assert system.admins == [ALICE]
        assert registry.admins == [ALICE]


class TestAssetCreated:
    """Tests for asset registration."""

    @pytest.mark.asyncio
    async def test_registers_asset(
        self, apply, store: MemoryStore, registry_created, asset_created
    ) -> None:
        await apply(registry_created, asset_created)

        asset = await store.get(Asset, ASSET)
        assert asset is not None
        assert asset.type is AssetType.BOND
        assert asset.symbol == "T30"
        assert asset.decimals == 2
        assert asset.registry == REGISTRY
        assert asset.creator == DEPLOYER

    @pytest.mark.asyncio
    async def test_rescales_existing_balances(
        self, apply, store: MemoryStore, make_event, registry_created, asset_created
    ) -> None:
        # Minted while the asset is only known through its configured 6 decimals.
        mint = make_event(
            ContractKind.TOKEN, "Transfer", **{"from": ZERO_ADDRESS, "to": ALICE, "value": 1_000}
        )

        await apply(mint, registry_created, asset_created)

        asset = await store.get(Asset, ASSET)
        assert asset is not None
        assert asset.total_supply_exact == 1_000
        assert asset.total_supply == Decimal(10)
        balance = await store.get(AssetBalance, asset_balance_id(ASSET, ALICE))
        assert balance is not None
        assert balance.value == Decimal(10)

    @pytest.mark.asyncio
    async def test_rescales_approved_and_frozen(
        self, apply, store: MemoryStore, make_event, registry_created
    ) -> None:
        # Not configured, so first seen with 18 decimals.
        other = "0x" + "a2" * 20
        whole = 10**18
        approval = make_event(
            ContractKind.TOKEN, "Approval", other, owner=ALICE, spender=DEPLOYER, value=whole
        )
        frozen = make_event(ContractKind.TOKEN, "TokensFrozen", other, user=ALICE, amount=whole)
        created = make_event(
            ContractKind.TOKEN_REGISTRY,
            "AssetCreated",
            REGISTRY,
            asset=other,
            creator=DEPLOYER,
            name="Note",
            symbol="NT",
            decimals=6,
        )

        await apply(approval, frozen, registry_created, created)

        balance = await store.get(AssetBalance, asset_balance_id(other, ALICE))
        assert balance is not None
        assert balance.approved_exact == whole
        assert balance.approved == Decimal(1_000_000_000_000)
        assert balance.frozen_exact == whole
        assert balance.frozen == Decimal(1_000_000_000_000)
        assert balance.value == Decimal(0)
