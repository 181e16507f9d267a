"""Data models for the ingestor module."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from web3 import Web3

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class ContractKind(str, Enum):
    """Kind of contract that emitted an event."""

    SYSTEM = "system"
    TOKEN_REGISTRY = "token_registry"
    VAULT_FACTORY = "vault_factory"
    TOKEN = "token"
    VAULT = "vault"
    IDENTITY = "identity"
    IDENTITY_REGISTRY = "identity_registry"


def normalize_address(value: str) -> str:
    """Return an address as lowercase ``0x``-prefixed hex.

    Args:
        value: Address in any casing.

    Returns:
        Normalized address.

    Raises:
        ValueError: If the value is not a 20-byte address.
    """
    if not Web3.is_address(value):
        raise ValueError(f"Invalid address: {value!r}")
    return value.lower() if value.startswith("0x") else "0x" + value.lower()


@dataclass(frozen=True)
class DecodedEvent:
    """A contract event decoded from a raw log.

    Events are produced upstream in chain order. ``params`` holds the
    decoded arguments: addresses and byte strings as hex, integers as
    Python ints.
    """

    contract: ContractKind
    name: str
    emitter: str
    block_number: int
    block_timestamp: int
    transaction_hash: str
    transaction_from: str
    log_index: int
    params: dict[str, Any] = field(default_factory=dict, hash=False)

    @property
    def key(self) -> tuple[ContractKind, str]:
        """Return the dispatch key of the event."""
        return (self.contract, self.name)

    @property
    def position(self) -> tuple[int, int]:
        """Return the ordering position of the event in the chain."""
        return (self.block_number, self.log_index)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DecodedEvent":
        """Create a DecodedEvent from a dictionary.

        Integer fields may be given as ints or decimal strings, so payloads
        read back from Redis parse the same way as JSON input.
        """
        return cls(
            contract=ContractKind(data["contract"]),
            name=str(data["name"]),
            emitter=normalize_address(str(data["emitter"])),
            block_number=int(data["block_number"]),
            block_timestamp=int(data["block_timestamp"]),
            transaction_hash=str(data["transaction_hash"]).lower(),
            transaction_from=normalize_address(str(data["transaction_from"])),
            log_index=int(data["log_index"]),
            params=dict(data.get("params") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "contract": self.contract.value,
            "name": self.name,
            "emitter": self.emitter,
            "block_number": self.block_number,
            "block_timestamp": self.block_timestamp,
            "transaction_hash": self.transaction_hash,
            "transaction_from": self.transaction_from,
            "log_index": self.log_index,
            "params": dict(self.params),
        }
