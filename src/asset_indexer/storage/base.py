"""Store protocol and the unit of work handlers mutate.

Handlers never talk to a store directly. Each event is processed inside a
``UnitOfWork`` that reads through to the store and keeps an identity map so
the same record is loaded once per event. Saves, removals, time-series
appends and in-place mutations of loaded records are all buffered.
``commit`` hands the buffered changes to the store in a single ``apply``
call, which must be atomic: either every change of the event becomes
visible or none does.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E")

EntityKey = tuple[type, str]


@dataclass
class ChangeSet:
    """Changes produced by one unit of work."""

    upserts: list[Any] = field(default_factory=list)
    removals: list[EntityKey] = field(default_factory=list)
    appends: list[Any] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Return True if there is nothing to apply."""
        return not (self.upserts or self.removals or self.appends)


class Store(Protocol):
    """Protocol for derived-state stores.

    ``get`` and ``find`` must return records the caller may mutate freely
    without affecting stored state until ``apply`` is called.
    """

    async def get(self, kind: type[E], entity_id: str) -> E | None:
        """Load a keyed record, or None if absent."""
        ...

    async def find(self, kind: type[E], **criteria: Any) -> list[E]:
        """Load all records of a kind whose attributes equal the criteria."""
        ...

    async def apply(self, changes: ChangeSet) -> None:
        """Atomically persist a change set."""
        ...


def matches(entity: Any, criteria: dict[str, Any]) -> bool:
    """Return True if every criterion equals the entity attribute."""
    return all(getattr(entity, name) == value for name, value in criteria.items())


class UnitOfWork:
    """Buffered read-mutate-write scope for a single event.

    Example:
        ```python
        uow = UnitOfWork(store)
        account = await uow.get(Account, address)
        account.balances_count += 1
        uow.save(account)
        await uow.commit()
        ```
    """

    def __init__(self, store: Store) -> None:
        """Initialize the unit of work.

        Args:
            store: Backing store read through and committed to.
        """
        self._store = store
        self._identity: dict[EntityKey, Any] = {}
        self._originals: dict[EntityKey, Any] = {}
        self._dirty: dict[EntityKey, None] = {}
        self._removed: dict[EntityKey, None] = {}
        self._appended: list[Any] = []
        self._committed = False

    @property
    def committed(self) -> bool:
        """Return True once the changes have been applied."""
        return self._committed

    async def get(self, kind: type[E], entity_id: str) -> E | None:
        """Load a record, preferring the version already held by this unit."""
        key = (kind, entity_id)
        if key in self._removed:
            return None
        if key in self._identity:
            entity: E = self._identity[key]
            return entity
        loaded = await self._store.get(kind, entity_id)
        if loaded is not None:
            self._identity[key] = loaded
            self._originals[key] = copy.deepcopy(loaded)
        return loaded

    async def find(self, kind: type[E], **criteria: Any) -> list[E]:
        """Find records matching criteria, including unsaved changes."""
        results: dict[EntityKey, E] = {}
        for loaded in await self._store.find(kind, **criteria):
            key = (kind, loaded.id)  # type: ignore[attr-defined]
            if key in self._removed:
                continue
            if key not in self._identity:
                self._identity[key] = loaded
                self._originals[key] = copy.deepcopy(loaded)
            results[key] = self._identity[key]

        for key, entity in self._identity.items():
            if key[0] is kind and key not in results:
                results[key] = entity

        return [entity for entity in results.values() if matches(entity, criteria)]

    def save(self, entity: Any) -> None:
        """Mark a record to be written on commit."""
        key = (type(entity), entity.id)
        self._identity[key] = entity
        self._removed.pop(key, None)
        self._dirty[key] = None

    def remove(self, kind: type, entity_id: str) -> None:
        """Mark a record to be deleted on commit."""
        key = (kind, entity_id)
        self._identity.pop(key, None)
        self._dirty.pop(key, None)
        self._removed[key] = None

    def append(self, row: Any) -> None:
        """Buffer a time-series row."""
        self._appended.append(row)

    def _modified(self) -> list[EntityKey]:
        keys = list(self._dirty)
        for key, entity in self._identity.items():
            if key not in self._dirty and entity != self._originals.get(key):
                keys.append(key)
        return keys

    def changes(self) -> ChangeSet:
        """Return the buffered changes without applying them.

        Records loaded through this unit and mutated in place are included
        even when ``save`` was not called for them.
        """
        return ChangeSet(
            upserts=[self._identity[key] for key in self._modified()],
            removals=list(self._removed),
            appends=list(self._appended),
        )

    async def commit(self) -> ChangeSet:
        """Apply buffered changes to the store.

        Returns:
            The applied ChangeSet.

        Raises:
            RuntimeError: If the unit of work was already committed.
        """
        if self._committed:
            raise RuntimeError("Unit of work already committed")

        changes = self.changes()
        if not changes.is_empty:
            await self._store.apply(changes)
        self._committed = True

        logger.debug(
            "Committed %d upserts, %d removals, %d appends",
            len(changes.upserts),
            len(changes.removals),
            len(changes.appends),
        )
        return changes
