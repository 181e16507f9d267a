"""SQLAlchemy-backed store.

Each ``apply`` runs in its own database transaction, so a unit of work is
either fully persisted or not at all.
"""

from __future__ import annotations

import logging
from dataclasses import fields
from typing import Any, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from asset_indexer.engine import models as entities
from asset_indexer.storage import models as orm
from asset_indexer.storage.base import ChangeSet

logger = logging.getLogger(__name__)

E = TypeVar("E")

MODEL_MAP: dict[type, type[orm.Base]] = {
    entities.Account: orm.AccountModel,
    entities.System: orm.SystemModel,
    entities.TokenRegistry: orm.TokenRegistryModel,
    entities.Asset: orm.AssetModel,
    entities.AssetBalance: orm.AssetBalanceModel,
    entities.BlockedUser: orm.BlockedUserModel,
    entities.AllowedUser: orm.AllowedUserModel,
    entities.AssetActivity: orm.AssetActivityModel,
    entities.Identity: orm.IdentityModel,
    entities.IdentityKey: orm.IdentityKeyModel,
    entities.IdentityClaim: orm.IdentityClaimModel,
    entities.ActivityLogEntry: orm.ActivityLogEntryModel,
    entities.AssetActivityEvent: orm.AssetActivityEventModel,
    entities.ProcessedEvent: orm.ProcessedEventModel,
    entities.Vault: orm.VaultModel,
    entities.VaultTransaction: orm.VaultTransactionModel,
    entities.VaultTransactionConfirmation: orm.VaultTransactionConfirmationModel,
    entities.AssetDistribution: orm.AssetDistributionModel,
    entities.AssetTopHolder: orm.AssetTopHolderModel,
    entities.EventStatsData: orm.EventStatsDataModel,
    entities.AssetStatsData: orm.AssetStatsDataModel,
    entities.PortfolioStatsData: orm.PortfolioStatsDataModel,
    entities.AssetDistributionStatsData: orm.AssetDistributionStatsDataModel,
}

# Entity fields stored under a different ORM attribute name.
RENAMED_ATTRIBUTES = {"registry": "registry_id"}


def _attribute(name: str) -> str:
    return RENAMED_ATTRIBUTES.get(name, name)


def normalize_database_url(url: str) -> str:
    """Select the async driver for a database URL.

    Args:
        url: Database URL as configured.

    Returns:
        URL using asyncpg for PostgreSQL and aiosqlite for SQLite.
    """
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url.removeprefix("postgresql://")
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url.removeprefix("postgres://")
    if url.startswith("sqlite://"):
        return "sqlite+aiosqlite://" + url.removeprefix("sqlite://")
    return url


def to_row(entity: Any) -> orm.Base:
    """Convert an entity record into its ORM row."""
    model = MODEL_MAP[type(entity)]
    values = {_attribute(f.name): getattr(entity, f.name) for f in fields(entity)}
    for name, value in values.items():
        if isinstance(value, list):
            values[name] = list(value)
    if values.get("id", "") is None:
        del values["id"]
    return model(**values)


def from_row(kind: type[E], row: orm.Base) -> E:
    """Convert an ORM row into an entity record."""
    values = {
        f.name: getattr(row, _attribute(f.name))
        for f in fields(kind)  # type: ignore[arg-type]
    }
    for name, value in values.items():
        if isinstance(value, list):
            values[name] = list(value)
    return kind(**values)


class SqlAlchemyStore:
    """Store persisting entities through SQLAlchemy.

    Example:
        ```python
        store = SqlAlchemyStore.from_url("postgresql://localhost/indexer")
        await store.create_all()
        dispatcher = EventDispatcher(store)
        ```
    """

    def __init__(self, engine: AsyncEngine) -> None:
        """Initialize the store.

        Args:
            engine: SQLAlchemy async engine.
        """
        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, url: str, *, echo: bool = False) -> SqlAlchemyStore:
        """Create a store from a database URL.

        In-memory SQLite shares a single connection so every session sees
        the same database.

        Args:
            url: Database URL.
            echo: Log emitted SQL.

        Returns:
            Configured SqlAlchemyStore.
        """
        url = normalize_database_url(url)
        if url.startswith("sqlite") and (":memory:" in url or url.endswith("://")):
            engine = create_async_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            engine = create_async_engine(url, echo=echo, pool_pre_ping=True)
        return cls(engine)

    @property
    def engine(self) -> AsyncEngine:
        """Return the underlying engine."""
        return self._engine

    async def create_all(self) -> None:
        """Create every table that does not exist yet."""
        async with self._engine.begin() as conn:
            await conn.run_sync(orm.Base.metadata.create_all)
        logger.info("Database schema ready")

    async def close(self) -> None:
        """Dispose the engine and its connection pool."""
        await self._engine.dispose()

    async def get(self, kind: type[E], entity_id: str) -> E | None:
        """Load a keyed record, or None if absent."""
        async with self._sessions() as session:
            row = await session.get(MODEL_MAP[kind], entity_id)
            return from_row(kind, row) if row is not None else None

    async def find(self, kind: type[E], **criteria: Any) -> list[E]:
        """Load all records of a kind whose columns equal the criteria."""
        model = MODEL_MAP[kind]
        criteria = {_attribute(name): value for name, value in criteria.items()}
        async with self._sessions() as session:
            result = await session.execute(
                select(model).filter_by(**criteria).order_by(model.id)  # type: ignore[attr-defined]
            )
            return [from_row(kind, row) for row in result.scalars().all()]

    async def apply(self, changes: ChangeSet) -> None:
        """Persist a change set in one transaction."""
        async with self._sessions() as session, session.begin():
            for entity in changes.upserts:
                await session.merge(to_row(entity))
            for kind, entity_id in changes.removals:
                model = MODEL_MAP[kind]
                await session.execute(
                    delete(model).where(model.id == entity_id)  # type: ignore[attr-defined]
                )

            rows = [to_row(row) for row in changes.appends]
            session.add_all(rows)
            await session.flush()
            for original, row in zip(changes.appends, rows, strict=True):
                original.id = row.id  # type: ignore[attr-defined]
