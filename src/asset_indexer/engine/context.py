"""Handler context built from a decoded event."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from asset_indexer.engine.errors import MalformedEventError
from asset_indexer.engine.repository import event_id
from asset_indexer.ingestor.models import DecodedEvent, normalize_address
from asset_indexer.storage.base import UnitOfWork

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 18


@dataclass
class EventContext:
    """Everything a handler needs to process one event.

    Handlers read event metadata and parameters from the context and make
    all entity changes through ``uow``.

    Attributes:
        event: The decoded event.
        uow: Unit of work the event is applied in.
        asset_decimals: Configured decimals per asset address, used when an
            asset is first seen without a registration event.
        default_decimals: Decimals for assets missing from ``asset_decimals``.
    """

    event: DecodedEvent
    uow: UnitOfWork
    asset_decimals: Mapping[str, int] = field(default_factory=dict)
    default_decimals: int = DEFAULT_DECIMALS

    @property
    def id(self) -> str:
        """Return the event id derived from transaction hash and log index."""
        return event_id(self.event.transaction_hash, self.event.log_index)

    @property
    def name(self) -> str:
        return self.event.name

    @property
    def emitter(self) -> str:
        return self.event.emitter

    @property
    def sender(self) -> str:
        """Return the sender of the transaction carrying the event."""
        return self.event.transaction_from

    @property
    def timestamp(self) -> int:
        return self.event.block_timestamp

    @property
    def block_number(self) -> int:
        return self.event.block_number

    @property
    def transaction_hash(self) -> str:
        return self.event.transaction_hash

    def decimals_for(self, asset: str) -> int:
        """Return the configured decimals of an asset."""
        return self.asset_decimals.get(asset, self.default_decimals)

    def _param(self, name: str) -> Any:
        try:
            return self.event.params[name]
        except KeyError as e:
            raise MalformedEventError(
                f"{self.event.name} event {self.id} is missing parameter '{name}'"
            ) from e

    def _malformed(self, name: str, kind: str, value: Any) -> MalformedEventError:
        return MalformedEventError(
            f"{self.event.name} event {self.id} parameter '{name}' is not {kind}: {value!r}"
        )

    def param_address(self, name: str) -> str:
        """Return a parameter as a normalized address."""
        value = self._param(name)
        try:
            return normalize_address(str(value))
        except ValueError as e:
            raise self._malformed(name, "an address", value) from e

    def param_int(self, name: str) -> int:
        """Return a parameter as an integer.

        Decimal strings and ``0x`` hex strings are accepted.
        """
        value = self._param(name)
        if isinstance(value, bool):
            raise self._malformed(name, "an integer", value)
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                return int(value, 16) if value.startswith("0x") else int(value)
            except ValueError as e:
                raise self._malformed(name, "an integer", value) from e
        raise self._malformed(name, "an integer", value)

    def param_bytes(self, name: str) -> str:
        """Return a parameter as lowercase ``0x``-prefixed hex."""
        value = self._param(name)
        if isinstance(value, bytes):
            return "0x" + value.hex()
        if isinstance(value, str) and value.startswith("0x"):
            try:
                bytes.fromhex(value[2:])
            except ValueError as e:
                raise self._malformed(name, "hex bytes", value) from e
            return value.lower()
        raise self._malformed(name, "hex bytes", value)

    def param_str(self, name: str, default: str | None = None) -> str:
        """Return a parameter as a string, or ``default`` when absent."""
        if default is not None and name not in self.event.params:
            return default
        value = self._param(name)
        if not isinstance(value, str):
            raise self._malformed(name, "a string", value)
        return value

    def param_actor(self, *names: str) -> str:
        """Return the first of ``names`` present as an address parameter.

        Events that do not name the account acting on the contract fall
        back to the transaction sender.
        """
        for name in names:
            if name in self.event.params:
                return self.param_address(name)
        return self.sender

    def param_bool(self, name: str) -> bool:
        value = self._param(name)
        if not isinstance(value, bool):
            raise self._malformed(name, "a boolean", value)
        return value


Handler = Callable[[EventContext], Awaitable[None]]
