"""Entity records maintained by the indexing engine.

Every entity is a plain dataclass keyed by a deterministic ``id``: either
a contract address, or a composite key built by concatenating byte
sequences (see ``engine.repository``). Amount fields always come in pairs,
``<name>_exact`` holding the raw on-chain integer and ``<name>`` holding the
value scaled by the asset decimals.

Time-series rows (``EventStatsData``, ``AssetStatsData``,
``PortfolioStatsData``) carry an integer ``id`` assigned by the store when
the row is appended.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

ZERO = Decimal("0")


class AssetType(str, Enum):
    """Kind of tokenized asset."""

    BOND = "bond"
    CRYPTOCURRENCY = "cryptocurrency"
    DEPOSIT = "deposit"
    EQUITY = "equity"
    FUND = "fund"
    STABLECOIN = "stablecoin"
    UNKNOWN = "unknown"


class KeyPurpose(str, Enum):
    """Purpose of an identity key."""

    MANAGEMENT = "management"
    DEPOSIT = "deposit"
    CLAIM_SIGNER = "claimSigner"
    ENCRYPTION = "encryption"
    UNKNOWN = "unknown"


class KeyType(str, Enum):
    """Cryptographic scheme of an identity key."""

    ECDSA = "ecdsa"
    RSA = "rsa"
    UNKNOWN = "unknown"


class VaultTransactionType(str, Enum):
    """Kind of transaction submitted to a vault."""

    NATIVE_CURRENCY_TRANSFER = "NativeCurrencyTransfer"
    ERC20_TRANSFER = "ERC20Transfer"
    CONTRACT_CALL = "ContractCall"


@dataclass
class Account:
    """Wallet or contract reference. Created lazily, never deleted."""

    id: str
    is_contract: bool = False
    balances_count: int = 0
    activity_events_count: int = 0
    total_balance_exact: int = 0
    total_balance: Decimal = ZERO
    paused_balances_count: int = 0
    paused_balance_exact: int = 0
    paused_balance: Decimal = ZERO
    last_activity: int = 0


@dataclass
class System:
    """Deployed platform system and its access-control configuration."""

    id: str
    deployer: str = ""
    deployed_at: int = 0
    deployed_in_transaction: str = ""
    admins: list[str] = field(default_factory=list)
    last_activity: int = 0


@dataclass
class TokenRegistry:
    """Registry through which assets of one type are created."""

    id: str
    system: str = ""
    type_name: str = ""
    deployed_at: int = 0
    admins: list[str] = field(default_factory=list)
    last_activity: int = 0


@dataclass
class Asset:
    """Tokenized asset contract."""

    id: str
    type: AssetType = AssetType.UNKNOWN
    name: str = ""
    symbol: str = ""
    decimals: int = 18
    registry: str | None = None
    creator: str | None = None
    deployed_on: int = 0
    total_supply_exact: int = 0
    total_supply: Decimal = ZERO
    total_burned_exact: int = 0
    total_burned: Decimal = ZERO
    total_holders: int = 0
    paused: bool = False
    collateral_exact: int = 0
    collateral: Decimal = ZERO
    last_collateral_update: int = 0
    admins: list[str] = field(default_factory=list)
    supply_managers: list[str] = field(default_factory=list)
    user_managers: list[str] = field(default_factory=list)
    auditors: list[str] = field(default_factory=list)
    last_activity: int = 0


@dataclass
class AssetBalance:
    """Balance of one account in one asset."""

    id: str
    asset: str
    account: str
    value_exact: int = 0
    value: Decimal = ZERO
    approved_exact: int = 0
    approved: Decimal = ZERO
    frozen_exact: int = 0
    frozen: Decimal = ZERO
    blocked: bool = False
    last_activity: int = 0


@dataclass
class BlockedUser:
    """Presence of this record means the user is blocked from the asset."""

    id: str
    asset: str
    user: str
    blocked_at: int = 0


@dataclass
class AllowedUser:
    """Presence of this record means the user is on the asset allow list."""

    id: str
    asset: str
    user: str
    allowed_at: int = 0


@dataclass
class AssetActivity:
    """Event counters aggregated per asset type."""

    id: str
    asset_type: AssetType = AssetType.UNKNOWN
    mint_event_count: int = 0
    burn_event_count: int = 0
    transfer_event_count: int = 0
    frozen_event_count: int = 0
    unfrozen_event_count: int = 0
    clawback_event_count: int = 0
    paused_count: int = 0


@dataclass
class Identity:
    """Shadow of an on-chain identity contract."""

    id: str
    account: str | None = None
    registry: str | None = None
    country: int | None = None
    registered: bool = False
    deployed_in_transaction: str = ""
    last_activity: int = 0


@dataclass
class IdentityKey:
    """Key held by an identity contract."""

    id: str
    identity: str
    key: str
    purpose: KeyPurpose = KeyPurpose.UNKNOWN
    type: KeyType = KeyType.UNKNOWN
    deployed_in_transaction: str = ""


@dataclass
class IdentityClaim:
    """Claim attached to an identity contract."""

    id: str
    identity: str
    claim_id: str
    topic: int = 0
    scheme: int = 0
    issuer: str = ""
    signature: str = ""
    data: str = ""
    uri: str = ""
    revoked: bool = False
    deployed_in_transaction: str = ""


@dataclass
class ActivityLogEntry:
    """Immutable record of one processed contract event."""

    id: str
    event_name: str
    timestamp: int
    emitter: str
    sender: str
    transaction_hash: str
    block_number: int
    involved: list[str] = field(default_factory=list)


@dataclass
class AssetActivityEvent:
    """Immutable record of an asset-level event with its payload."""

    id: str
    event_name: str
    timestamp: int
    emitter: str
    sender: str
    asset_type: AssetType = AssetType.UNKNOWN
    user: str | None = None
    from_account: str | None = None
    to_account: str | None = None
    amount_exact: int | None = None
    amount: Decimal | None = None


@dataclass
class ProcessedEvent:
    """Ledger entry marking an event id as applied."""

    id: str
    event_name: str
    block_number: int
    timestamp: int


@dataclass
class Vault:
    """Multisig vault."""

    id: str
    account: str
    creator: str = ""
    signers: list[str] = field(default_factory=list)
    admins: list[str] = field(default_factory=list)
    pending_transactions_count: int = 0
    executed_transactions_count: int = 0
    required_signers: int = 0
    total_signers: int = 0
    paused: bool = False
    deployed_on: int = 0
    last_activity: int = 0


@dataclass
class VaultTransaction:
    """Transaction submitted to a vault for multisig approval."""

    id: str
    vault: str
    tx_index: int
    type: VaultTransactionType
    submitter: str
    created_at: int
    comment: str = ""
    to: str | None = None
    token: str | None = None
    value_exact: int = 0
    value: Decimal = ZERO
    data: str = ""
    selector: str = ""
    abi_encoded_arguments: str = ""
    confirmations_count: int = 0
    executed: bool = False
    executed_at: int | None = None
    executor: str | None = None


@dataclass
class VaultTransactionConfirmation:
    """A signer's confirmation of a vault transaction."""

    id: str
    transaction: str
    signer: str
    confirmed_at: int


@dataclass
class AssetDistribution:
    """Holder concentration of an asset.

    Holders are split into five segments by their balance as a percentage
    of the largest balance: up to 2, 10, 20 and 40 percent, and above 40.
    """

    id: str
    percentage_owned_by_top5_holders: Decimal = ZERO
    balances_count_segment1: int = 0
    total_value_segment1_exact: int = 0
    total_value_segment1: Decimal = ZERO
    balances_count_segment2: int = 0
    total_value_segment2_exact: int = 0
    total_value_segment2: Decimal = ZERO
    balances_count_segment3: int = 0
    total_value_segment3_exact: int = 0
    total_value_segment3: Decimal = ZERO
    balances_count_segment4: int = 0
    total_value_segment4_exact: int = 0
    total_value_segment4: Decimal = ZERO
    balances_count_segment5: int = 0
    total_value_segment5_exact: int = 0
    total_value_segment5: Decimal = ZERO
    last_updated: int = 0


@dataclass
class AssetTopHolder:
    """One of the five largest holders of an asset."""

    id: str
    asset: str
    account: str
    rank: int = 0
    balance_exact: int = 0
    balance: Decimal = ZERO


@dataclass
class EventStatsData:
    """Time-series row, one per processed event."""

    timestamp: int
    account: str
    event_name: str
    id: int | None = None


@dataclass
class AssetStatsData:
    """Time-series row with asset supply and flow figures."""

    timestamp: int
    asset: str
    asset_type: AssetType
    supply_exact: int = 0
    supply: Decimal = ZERO
    minted_exact: int = 0
    minted: Decimal = ZERO
    burned_exact: int = 0
    burned: Decimal = ZERO
    volume_exact: int = 0
    volume: Decimal = ZERO
    frozen_exact: int = 0
    frozen: Decimal = ZERO
    transfers: int = 0
    id: int | None = None


@dataclass
class PortfolioStatsData:
    """Time-series row with an account's balance in one asset."""

    timestamp: int
    account: str
    asset: str
    asset_type: AssetType
    balance_exact: int = 0
    balance: Decimal = ZERO
    id: int | None = None


@dataclass
class AssetDistributionStatsData:
    """Time-series row with an asset's holder concentration."""

    timestamp: int
    asset: str
    percentage_owned_by_top5_holders: Decimal = ZERO
    balances_count_segment1: int = 0
    total_value_segment1_exact: int = 0
    total_value_segment1: Decimal = ZERO
    balances_count_segment2: int = 0
    total_value_segment2_exact: int = 0
    total_value_segment2: Decimal = ZERO
    balances_count_segment3: int = 0
    total_value_segment3_exact: int = 0
    total_value_segment3: Decimal = ZERO
    balances_count_segment4: int = 0
    total_value_segment4_exact: int = 0
    total_value_segment4: Decimal = ZERO
    balances_count_segment5: int = 0
    total_value_segment5_exact: int = 0
    total_value_segment5: Decimal = ZERO
    id: int | None = None


KEYED_ENTITIES: tuple[type, ...] = (
    Account,
    System,
    TokenRegistry,
    Asset,
    AssetBalance,
    BlockedUser,
    AllowedUser,
    AssetActivity,
    Identity,
    IdentityKey,
    IdentityClaim,
    ActivityLogEntry,
    AssetActivityEvent,
    ProcessedEvent,
    Vault,
    VaultTransaction,
    VaultTransactionConfirmation,
    AssetDistribution,
    AssetTopHolder,
)

SERIES_ENTITIES: tuple[type, ...] = (
    EventStatsData,
    AssetStatsData,
    PortfolioStatsData,
    AssetDistributionStatsData,
)
