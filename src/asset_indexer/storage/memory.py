"""In-memory store used for tests and file replays."""

from __future__ import annotations

import copy
import logging
from collections import defaultdict
from dataclasses import asdict
from typing import Any, TypeVar

from asset_indexer.engine.models import SERIES_ENTITIES
from asset_indexer.storage.base import ChangeSet, matches

logger = logging.getLogger(__name__)

E = TypeVar("E")


class MemoryStore:
    """Dictionary-backed store.

    Records are deep-copied on the way in and out, so mutations made by a
    unit of work never leak into stored state before ``apply``.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._tables: dict[type, dict[str, Any]] = defaultdict(dict)
        self._series: dict[type, list[Any]] = defaultdict(list)

    async def get(self, kind: type[E], entity_id: str) -> E | None:
        """Load a keyed record, or None if absent."""
        entity = self._tables[kind].get(entity_id)
        return copy.deepcopy(entity) if entity is not None else None

    async def find(self, kind: type[E], **criteria: Any) -> list[E]:
        """Load all records of a kind whose attributes equal the criteria."""
        rows = self._series[kind] if kind in SERIES_ENTITIES else self._tables[kind].values()
        return [copy.deepcopy(row) for row in rows if matches(row, criteria)]

    async def apply(self, changes: ChangeSet) -> None:
        """Persist a change set.

        All copies are made before any table is touched.
        """
        upserts = [copy.deepcopy(entity) for entity in changes.upserts]
        appends = [copy.deepcopy(row) for row in changes.appends]

        for entity in upserts:
            self._tables[type(entity)][entity.id] = entity
        for kind, entity_id in changes.removals:
            self._tables[kind].pop(entity_id, None)
        for original, row in zip(changes.appends, appends, strict=True):
            series = self._series[type(row)]
            row.id = len(series) + 1
            original.id = row.id
            series.append(row)

    def count(self, kind: type) -> int:
        """Return the number of stored records of a kind."""
        if kind in SERIES_ENTITIES:
            return len(self._series[kind])
        return len(self._tables[kind])

    def snapshot(self) -> dict[str, Any]:
        """Return a plain-data copy of everything stored.

        Useful for comparing derived state across replays.
        """
        state: dict[str, Any] = {}
        for kind, table in self._tables.items():
            if table:
                state[kind.__name__] = {key: asdict(value) for key, value in table.items()}
        for kind, series in self._series.items():
            if series:
                state[kind.__name__] = [asdict(row) for row in series]
        return state
