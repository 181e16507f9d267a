"""Tests for the unit of work."""

from unittest.mock import AsyncMock

import pytest

from asset_indexer.engine.models import Account, BlockedUser, EventStatsData
from asset_indexer.storage.base import ChangeSet, UnitOfWork
from asset_indexer.storage.memory import MemoryStore

ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20


async def _seed(store: MemoryStore, *entities: object) -> None:
    await store.apply(ChangeSet(upserts=list(entities)))


class TestUnitOfWorkReads:
    """Tests for reading through the unit of work."""

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)
        assert await uow.get(Account, ALICE) is None

    @pytest.mark.asyncio
    async def test_get_returns_same_instance(self, store: MemoryStore) -> None:
        """Repeated reads resolve to one record per unit of work."""
        await _seed(store, Account(id=ALICE))
        uow = UnitOfWork(store)

        first = await uow.get(Account, ALICE)
        second = await uow.get(Account, ALICE)

        assert first is second

    @pytest.mark.asyncio
    async def test_find_includes_unsaved_records(self, store: MemoryStore) -> None:
        await _seed(store, Account(id=ALICE, balances_count=1))
        uow = UnitOfWork(store)
        uow.save(Account(id=BOB, balances_count=1))

        found = await uow.find(Account, balances_count=1)

        assert sorted(account.id for account in found) == [ALICE, BOB]

    @pytest.mark.asyncio
    async def test_find_sees_in_place_changes(self, store: MemoryStore) -> None:
        await _seed(store, Account(id=ALICE, balances_count=1))
        uow = UnitOfWork(store)
        account = await uow.get(Account, ALICE)
        assert account is not None
        account.balances_count = 0

        assert await uow.find(Account, balances_count=1) == []

    @pytest.mark.asyncio
    async def test_removed_record_is_hidden(self, store: MemoryStore) -> None:
        entry = BlockedUser(id="0x01", asset=ALICE, user=BOB)
        await _seed(store, entry)
        uow = UnitOfWork(store)

        uow.remove(BlockedUser, "0x01")

        assert await uow.get(BlockedUser, "0x01") is None
        assert await uow.find(BlockedUser) == []


class TestUnitOfWorkCommit:
    """Tests for committing buffered changes."""

    @pytest.mark.asyncio
    async def test_nothing_written_before_commit(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)
        uow.save(Account(id=ALICE))

        assert await store.get(Account, ALICE) is None

        await uow.commit()
        assert await store.get(Account, ALICE) == Account(id=ALICE)

    @pytest.mark.asyncio
    async def test_in_place_mutation_is_committed(self, store: MemoryStore) -> None:
        """Loaded records changed without save() are still written."""
        await _seed(store, Account(id=ALICE))
        uow = UnitOfWork(store)
        account = await uow.get(Account, ALICE)
        assert account is not None
        account.activity_events_count = 3

        changes = await uow.commit()

        assert len(changes.upserts) == 1
        stored = await store.get(Account, ALICE)
        assert stored is not None
        assert stored.activity_events_count == 3

    @pytest.mark.asyncio
    async def test_unchanged_reads_are_not_written(self, store: MemoryStore) -> None:
        await _seed(store, Account(id=ALICE))
        uow = UnitOfWork(store)
        await uow.get(Account, ALICE)

        changes = await uow.commit()

        assert changes.is_empty

    @pytest.mark.asyncio
    async def test_appends_receive_ids(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)
        row = EventStatsData(timestamp=1, account=ALICE, event_name="Transfer")
        uow.append(row)

        await uow.commit()

        assert row.id == 1
        assert store.count(EventStatsData) == 1

    @pytest.mark.asyncio
    async def test_double_commit_raises(self, store: MemoryStore) -> None:
        uow = UnitOfWork(store)
        await uow.commit()

        assert uow.committed
        with pytest.raises(RuntimeError, match="already committed"):
            await uow.commit()

    @pytest.mark.asyncio
    async def test_empty_commit_skips_store(self) -> None:
        backing = AsyncMock()
        uow = UnitOfWork(backing)

        await uow.commit()

        backing.apply.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_apply_leaves_unit_uncommitted(self) -> None:
        backing = AsyncMock()
        backing.apply.side_effect = ConnectionError("database down")
        uow = UnitOfWork(backing)
        uow.save(Account(id=ALICE))

        with pytest.raises(ConnectionError):
            await uow.commit()
        assert not uow.committed
