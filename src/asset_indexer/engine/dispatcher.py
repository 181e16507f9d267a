"""Event dispatcher routing decoded events to their handlers."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from asset_indexer.engine.activity import track_event_stats
from asset_indexer.engine.context import DEFAULT_DECIMALS, EventContext, Handler
from asset_indexer.engine.handlers import HANDLERS
from asset_indexer.engine.models import ProcessedEvent
from asset_indexer.ingestor.models import ContractKind, DecodedEvent
from asset_indexer.storage.base import Store, UnitOfWork

logger = logging.getLogger(__name__)


class DispatchStatus(Enum):
    """Outcome of dispatching one event."""

    APPLIED = "applied"
    DUPLICATE = "duplicate"
    UNHANDLED = "unhandled"


@dataclass
class DispatchResult:
    """Result of dispatching one event."""

    event_id: str
    status: DispatchStatus
    upserts: int = 0
    removals: int = 0
    appends: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def applied(self) -> bool:
        """Return True if the event changed the store."""
        return self.status is DispatchStatus.APPLIED


@dataclass
class DispatcherStats:
    """Running totals of dispatch outcomes."""

    applied: int = 0
    duplicates: int = 0
    unhandled: int = 0


class EventDispatcher:
    """Dispatcher applying decoded events to a store.

    Every event is applied in its own unit of work. The handler, the event
    statistics row and the processed-event ledger entry are committed
    together, so an event is either fully applied or not at all. Events
    already in the ledger are skipped, which makes re-delivery harmless.

    Example:
        ```python
        dispatcher = EventDispatcher(MemoryStore())
        result = await dispatcher.process(event)
        ```
    """

    def __init__(
        self,
        store: Store,
        *,
        asset_decimals: Mapping[str, int] | None = None,
        default_decimals: int = DEFAULT_DECIMALS,
        handlers: Mapping[tuple[ContractKind, str], Handler] | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            store: Store receiving derived state.
            asset_decimals: Decimals per asset address for assets seen
                before their registration event.
            default_decimals: Decimals for assets not in ``asset_decimals``.
            handlers: Handler table, defaults to every known handler.
        """
        self.store = store
        self.asset_decimals = dict(asset_decimals or {})
        self.default_decimals = default_decimals
        self._handlers = dict(handlers if handlers is not None else HANDLERS)
        self.stats = DispatcherStats()

    def handler_for(self, event: DecodedEvent) -> Handler | None:
        """Return the handler of an event, or None if it is not indexed."""
        return self._handlers.get(event.key)

    async def process(self, event: DecodedEvent) -> DispatchResult:
        """Apply one event to the store.

        Args:
            event: Decoded event to apply.

        Returns:
            DispatchResult describing the outcome.

        Raises:
            IndexerError: If the handler rejects the event. Nothing is
                written in that case.
        """
        uow = UnitOfWork(self.store)
        ctx = EventContext(
            event=event,
            uow=uow,
            asset_decimals=self.asset_decimals,
            default_decimals=self.default_decimals,
        )

        handler = self.handler_for(event)
        if handler is None:
            logger.debug(f"No handler for {event.contract.value}.{event.name}, dropping {ctx.id}")
            self.stats.unhandled += 1
            return DispatchResult(event_id=ctx.id, status=DispatchStatus.UNHANDLED)

        if await uow.get(ProcessedEvent, ctx.id) is not None:
            logger.debug(f"Skipping already processed event {ctx.id} ({event.name})")
            self.stats.duplicates += 1
            return DispatchResult(event_id=ctx.id, status=DispatchStatus.DUPLICATE)

        await handler(ctx)
        track_event_stats(ctx)
        uow.save(
            ProcessedEvent(
                id=ctx.id,
                event_name=event.name,
                block_number=event.block_number,
                timestamp=event.block_timestamp,
            )
        )
        changes = await uow.commit()
        self.stats.applied += 1

        return DispatchResult(
            event_id=ctx.id,
            status=DispatchStatus.APPLIED,
            upserts=len(changes.upserts),
            removals=len(changes.removals),
            appends=len(changes.appends),
        )

    async def process_batch(self, events: Iterable[DecodedEvent]) -> list[DispatchResult]:
        """Apply events one at a time in the given order.

        Processing stops at the first failing event; earlier events stay
        applied.

        Args:
            events: Events in chain order.

        Returns:
            List of DispatchResult for each event.
        """
        results = []
        for event in events:
            result = await self.process(event)
            results.append(result)
        return results
