"""SQLAlchemy models for persistent storage.

This module defines one table per derived entity. Column names match the
dataclass field names in ``engine.models`` so rows convert to records
field by field. Raw on-chain amounts are uint256 values and are stored
losslessly through ``Uint256``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Enum,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from asset_indexer.engine.models import (
    AssetType,
    KeyPurpose,
    KeyType,
    VaultTransactionType,
)

ID_LENGTH = 255


class Uint256(TypeDecorator[int]):
    """Unsigned 256-bit integer.

    PostgreSQL stores it as NUMERIC(78, 0). SQLite has no wide integer type,
    so the decimal string is stored instead.
    """

    impl = Numeric(78, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> Any:
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(78))
        return dialect.type_descriptor(Numeric(78, 0))

    def process_bind_param(self, value: int | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        if dialect.name == "sqlite":
            return str(value)
        return Decimal(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> int | None:
        if value is None:
            return None
        return int(value)


class ScaledDecimal(TypeDecorator[Decimal]):
    """Arbitrary precision decimal for amounts divided by token decimals."""

    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> Any:
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(160))
        return dialect.type_descriptor(Numeric())

    def process_bind_param(self, value: Decimal | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        if dialect.name == "sqlite":
            return str(value)
        return value

    def process_result_value(self, value: Any, dialect: Dialect) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


def _enum_column(enum_type: type) -> Enum:
    return Enum(
        enum_type,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class AccountModel(Base):
    """Wallet or contract reference."""

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    is_contract: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    balances_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    activity_events_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_balance_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_balance: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    paused_balances_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    paused_balance_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    paused_balance: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    last_activity: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class SystemModel(Base):
    """Deployed platform system."""

    __tablename__ = "systems"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    deployer: Mapped[str] = mapped_column(String(42), nullable=False)
    deployed_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    deployed_in_transaction: Mapped[str] = mapped_column(String(66), nullable=False)
    admins: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    last_activity: Mapped[int] = mapped_column(BigInteger, nullable=False)


class TokenRegistryModel(Base):
    """Registry creating assets of one type."""

    __tablename__ = "token_registries"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    system: Mapped[str] = mapped_column(String(42), nullable=False)
    type_name: Mapped[str] = mapped_column(String(64), nullable=False)
    deployed_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    admins: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    last_activity: Mapped[int] = mapped_column(BigInteger, nullable=False)


class AssetModel(Base):
    """Tokenized asset contract."""

    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    type: Mapped[AssetType] = mapped_column(_enum_column(AssetType), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    symbol: Mapped[str] = mapped_column(String(64), nullable=False)
    decimals: Mapped[int] = mapped_column(Integer, nullable=False)
    registry_id: Mapped[str | None] = mapped_column("registry", String(42), nullable=True)
    creator: Mapped[str | None] = mapped_column(String(42), nullable=True)
    deployed_on: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_supply_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_supply: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    total_burned_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_burned: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    total_holders: Mapped[int] = mapped_column(Integer, nullable=False)
    paused: Mapped[bool] = mapped_column(Boolean, nullable=False)
    collateral_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    collateral: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    last_collateral_update: Mapped[int] = mapped_column(BigInteger, nullable=False)
    admins: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    supply_managers: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    user_managers: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    auditors: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    last_activity: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (Index("idx_assets_type", "type"),)


class AssetBalanceModel(Base):
    """Balance of one account in one asset."""

    __tablename__ = "asset_balances"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    asset: Mapped[str] = mapped_column(String(42), nullable=False)
    account: Mapped[str] = mapped_column(String(42), nullable=False)
    value_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    value: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    approved_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    approved: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    frozen_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    frozen: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    blocked: Mapped[bool] = mapped_column(Boolean, nullable=False)
    last_activity: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        Index("idx_asset_balances_asset", "asset"),
        Index("idx_asset_balances_account", "account"),
    )


class BlockedUserModel(Base):
    """Block list membership."""

    __tablename__ = "blocked_users"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    asset: Mapped[str] = mapped_column(String(42), nullable=False)
    user: Mapped[str] = mapped_column(String(42), nullable=False)
    blocked_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (Index("idx_blocked_users_asset", "asset"),)


class AllowedUserModel(Base):
    """Allow list membership."""

    __tablename__ = "allowed_users"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    asset: Mapped[str] = mapped_column(String(42), nullable=False)
    user: Mapped[str] = mapped_column(String(42), nullable=False)
    allowed_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (Index("idx_allowed_users_asset", "asset"),)


class AssetActivityModel(Base):
    """Event counters per asset type."""

    __tablename__ = "asset_activities"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    asset_type: Mapped[AssetType] = mapped_column(_enum_column(AssetType), nullable=False)
    mint_event_count: Mapped[int] = mapped_column(Integer, nullable=False)
    burn_event_count: Mapped[int] = mapped_column(Integer, nullable=False)
    transfer_event_count: Mapped[int] = mapped_column(Integer, nullable=False)
    frozen_event_count: Mapped[int] = mapped_column(Integer, nullable=False)
    unfrozen_event_count: Mapped[int] = mapped_column(Integer, nullable=False)
    clawback_event_count: Mapped[int] = mapped_column(Integer, nullable=False)
    paused_count: Mapped[int] = mapped_column(Integer, nullable=False)


class IdentityModel(Base):
    """Identity contract shadow."""

    __tablename__ = "identities"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    account: Mapped[str | None] = mapped_column(String(42), nullable=True)
    registry_id: Mapped[str | None] = mapped_column("registry", String(42), nullable=True)
    country: Mapped[int | None] = mapped_column(Integer, nullable=True)
    registered: Mapped[bool] = mapped_column(Boolean, nullable=False)
    deployed_in_transaction: Mapped[str] = mapped_column(String(66), nullable=False)
    last_activity: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (Index("idx_identities_account", "account"),)


class IdentityKeyModel(Base):
    """Identity key."""

    __tablename__ = "identity_keys"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    identity: Mapped[str] = mapped_column(String(42), nullable=False)
    key: Mapped[str] = mapped_column(String(66), nullable=False)
    purpose: Mapped[KeyPurpose] = mapped_column(_enum_column(KeyPurpose), nullable=False)
    type: Mapped[KeyType] = mapped_column(_enum_column(KeyType), nullable=False)
    deployed_in_transaction: Mapped[str] = mapped_column(String(66), nullable=False)

    __table_args__ = (Index("idx_identity_keys_identity", "identity"),)


class IdentityClaimModel(Base):
    """Identity claim."""

    __tablename__ = "identity_claims"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    identity: Mapped[str] = mapped_column(String(42), nullable=False)
    claim_id: Mapped[str] = mapped_column(String(66), nullable=False)
    topic: Mapped[int] = mapped_column(Uint256, nullable=False)
    scheme: Mapped[int] = mapped_column(Uint256, nullable=False)
    issuer: Mapped[str] = mapped_column(String(42), nullable=False)
    signature: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)
    uri: Mapped[str] = mapped_column(Text, nullable=False)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False)
    deployed_in_transaction: Mapped[str] = mapped_column(String(66), nullable=False)

    __table_args__ = (Index("idx_identity_claims_identity", "identity"),)


class ActivityLogEntryModel(Base):
    """Activity log entry."""

    __tablename__ = "activity_log_entries"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    event_name: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    emitter: Mapped[str] = mapped_column(String(42), nullable=False)
    sender: Mapped[str] = mapped_column(String(42), nullable=False)
    transaction_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    involved: Mapped[list[str]] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        Index("idx_activity_log_emitter", "emitter"),
        Index("idx_activity_log_timestamp", "timestamp"),
    )


class AssetActivityEventModel(Base):
    """Asset-level event with payload."""

    __tablename__ = "asset_activity_events"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    event_name: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    emitter: Mapped[str] = mapped_column(String(42), nullable=False)
    sender: Mapped[str] = mapped_column(String(42), nullable=False)
    asset_type: Mapped[AssetType] = mapped_column(_enum_column(AssetType), nullable=False)
    user: Mapped[str | None] = mapped_column(String(42), nullable=True)
    from_account: Mapped[str | None] = mapped_column(String(42), nullable=True)
    to_account: Mapped[str | None] = mapped_column(String(42), nullable=True)
    amount_exact: Mapped[int | None] = mapped_column(Uint256, nullable=True)
    amount: Mapped[Decimal | None] = mapped_column(ScaledDecimal, nullable=True)

    __table_args__ = (Index("idx_asset_activity_events_emitter", "emitter"),)


class ProcessedEventModel(Base):
    """Processed event ledger."""

    __tablename__ = "processed_events"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    event_name: Mapped[str] = mapped_column(String(64), nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (Index("idx_processed_events_block", "block_number"),)


class VaultModel(Base):
    """Multisig vault."""

    __tablename__ = "vaults"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    account: Mapped[str] = mapped_column(String(42), nullable=False)
    creator: Mapped[str] = mapped_column(String(42), nullable=False)
    signers: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    admins: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    pending_transactions_count: Mapped[int] = mapped_column(Integer, nullable=False)
    executed_transactions_count: Mapped[int] = mapped_column(Integer, nullable=False)
    required_signers: Mapped[int] = mapped_column(Integer, nullable=False)
    total_signers: Mapped[int] = mapped_column(Integer, nullable=False)
    paused: Mapped[bool] = mapped_column(Boolean, nullable=False)
    deployed_on: Mapped[int] = mapped_column(BigInteger, nullable=False)
    last_activity: Mapped[int] = mapped_column(BigInteger, nullable=False)


class VaultTransactionModel(Base):
    """Vault transaction."""

    __tablename__ = "vault_transactions"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    vault: Mapped[str] = mapped_column(String(42), nullable=False)
    tx_index: Mapped[int] = mapped_column(Uint256, nullable=False)
    type: Mapped[VaultTransactionType] = mapped_column(
        _enum_column(VaultTransactionType), nullable=False
    )
    submitter: Mapped[str] = mapped_column(String(42), nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    to: Mapped[str | None] = mapped_column(String(42), nullable=True)
    token: Mapped[str | None] = mapped_column(String(42), nullable=True)
    value_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    value: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)
    selector: Mapped[str] = mapped_column(String(10), nullable=False)
    abi_encoded_arguments: Mapped[str] = mapped_column(Text, nullable=False)
    confirmations_count: Mapped[int] = mapped_column(Integer, nullable=False)
    executed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    executed_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    executor: Mapped[str | None] = mapped_column(String(42), nullable=True)

    __table_args__ = (Index("idx_vault_transactions_vault", "vault"),)


class VaultTransactionConfirmationModel(Base):
    """Signer confirmation of a vault transaction."""

    __tablename__ = "vault_transaction_confirmations"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    transaction: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    signer: Mapped[str] = mapped_column(String(42), nullable=False)
    confirmed_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (Index("idx_vault_confirmations_transaction", "transaction"),)


class AssetDistributionModel(Base):
    """Holder concentration of an asset."""

    __tablename__ = "asset_distributions"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    percentage_owned_by_top5_holders: Mapped[Decimal] = mapped_column(
        ScaledDecimal, nullable=False
    )
    balances_count_segment1: Mapped[int] = mapped_column(Integer, nullable=False)
    total_value_segment1_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_value_segment1: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    balances_count_segment2: Mapped[int] = mapped_column(Integer, nullable=False)
    total_value_segment2_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_value_segment2: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    balances_count_segment3: Mapped[int] = mapped_column(Integer, nullable=False)
    total_value_segment3_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_value_segment3: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    balances_count_segment4: Mapped[int] = mapped_column(Integer, nullable=False)
    total_value_segment4_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_value_segment4: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    balances_count_segment5: Mapped[int] = mapped_column(Integer, nullable=False)
    total_value_segment5_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_value_segment5: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    last_updated: Mapped[int] = mapped_column(BigInteger, nullable=False)


class AssetTopHolderModel(Base):
    """Largest holders of an asset."""

    __tablename__ = "asset_top_holders"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    asset: Mapped[str] = mapped_column(String(42), nullable=False)
    account: Mapped[str] = mapped_column(String(42), nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    balance: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)

    __table_args__ = (Index("idx_asset_top_holders_asset", "asset"),)


class EventStatsDataModel(Base):
    """Per-event time-series row."""

    __tablename__ = "event_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    account: Mapped[str] = mapped_column(String(42), nullable=False)
    event_name: Mapped[str] = mapped_column(String(64), nullable=False)

    __table_args__ = (Index("idx_event_stats_account_timestamp", "account", "timestamp"),)


class AssetStatsDataModel(Base):
    """Per-asset time-series row."""

    __tablename__ = "asset_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    asset: Mapped[str] = mapped_column(String(42), nullable=False)
    asset_type: Mapped[AssetType] = mapped_column(_enum_column(AssetType), nullable=False)
    supply_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    supply: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    minted_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    minted: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    burned_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    burned: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    volume_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    volume: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    frozen_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    frozen: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    transfers: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (Index("idx_asset_stats_asset_timestamp", "asset", "timestamp"),)


class PortfolioStatsDataModel(Base):
    """Per-account, per-asset balance time-series row."""

    __tablename__ = "portfolio_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    account: Mapped[str] = mapped_column(String(42), nullable=False)
    asset: Mapped[str] = mapped_column(String(42), nullable=False)
    asset_type: Mapped[AssetType] = mapped_column(_enum_column(AssetType), nullable=False)
    balance_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    balance: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)

    __table_args__ = (
        Index("idx_portfolio_stats_account_timestamp", "account", "timestamp"),
    )


class AssetDistributionStatsDataModel(Base):
    """Per-asset holder concentration time-series row."""

    __tablename__ = "asset_distribution_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    asset: Mapped[str] = mapped_column(String(42), nullable=False)
    percentage_owned_by_top5_holders: Mapped[Decimal] = mapped_column(
        ScaledDecimal, nullable=False
    )
    balances_count_segment1: Mapped[int] = mapped_column(Integer, nullable=False)
    total_value_segment1_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_value_segment1: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    balances_count_segment2: Mapped[int] = mapped_column(Integer, nullable=False)
    total_value_segment2_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_value_segment2: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    balances_count_segment3: Mapped[int] = mapped_column(Integer, nullable=False)
    total_value_segment3_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_value_segment3: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    balances_count_segment4: Mapped[int] = mapped_column(Integer, nullable=False)
    total_value_segment4_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_value_segment4: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)
    balances_count_segment5: Mapped[int] = mapped_column(Integer, nullable=False)
    total_value_segment5_exact: Mapped[int] = mapped_column(Uint256, nullable=False)
    total_value_segment5: Mapped[Decimal] = mapped_column(ScaledDecimal, nullable=False)

    __table_args__ = (
        Index("idx_asset_distribution_stats_asset_timestamp", "asset", "timestamp"),
    )
