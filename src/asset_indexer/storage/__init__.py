"""Storage module - Stores for derived entities and the unit of work."""

from asset_indexer.storage.base import ChangeSet, Store, UnitOfWork
from asset_indexer.storage.memory import MemoryStore
from asset_indexer.storage.sql import SqlAlchemyStore, normalize_database_url

__all__ = [
    # Protocol and unit of work
    "ChangeSet",
    "Store",
    "UnitOfWork",
    # Implementations
    "MemoryStore",
    "SqlAlchemyStore",
    "normalize_database_url",
]
