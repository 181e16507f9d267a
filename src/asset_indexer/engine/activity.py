"""Activity log and statistics writer.

Activity records are keyed by the event id, so writing the same event
twice resolves to the same row. Statistics rows are appended with a store
assigned sequence id and are not deduplicated here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from asset_indexer.engine import counters
from asset_indexer.engine.balances import to_decimals
from asset_indexer.engine.context import EventContext
from asset_indexer.engine.models import (
    ActivityLogEntry,
    Asset,
    AssetActivityEvent,
    EventStatsData,
)
from asset_indexer.engine.repository import fetch_account

logger = logging.getLogger(__name__)


async def create_activity_log_entry(
    ctx: EventContext,
    event_name: str,
    involved: Iterable[str] = (),
    *,
    sender: str | None = None,
) -> ActivityLogEntry:
    """Record an event in the activity log.

    The sender's ``activity_events_count`` is incremented only when the
    entry did not exist yet.

    Args:
        ctx: Context of the event being processed.
        event_name: Name recorded for the event.
        involved: Accounts the event concerns.
        sender: Account that acted on the contract. Defaults to the
            transaction sender.

    Returns:
        The new or existing ActivityLogEntry.
    """
    entry = await ctx.uow.get(ActivityLogEntry, ctx.id)
    if entry is not None:
        return entry

    involved_accounts = list(dict.fromkeys(involved))
    for address in involved_accounts:
        account = await fetch_account(ctx.uow, address)
        account.last_activity = ctx.timestamp

    sender = sender or ctx.sender
    sender_account = await fetch_account(ctx.uow, sender)
    counters.increase_activity_events_count(sender_account)
    sender_account.last_activity = ctx.timestamp

    entry = ActivityLogEntry(
        id=ctx.id,
        event_name=event_name,
        timestamp=ctx.timestamp,
        emitter=ctx.emitter,
        sender=sender,
        transaction_hash=ctx.transaction_hash,
        block_number=ctx.block_number,
        involved=involved_accounts,
    )
    ctx.uow.save(entry)
    return entry


async def asset_activity_event(
    ctx: EventContext,
    asset: Asset,
    event_name: str,
    *,
    user: str | None = None,
    from_account: str | None = None,
    to_account: str | None = None,
    amount: int | None = None,
) -> AssetActivityEvent:
    """Record an asset event together with its payload.

    Shares its id and sender with the activity log entry of the same event.
    Counters are maintained by ``create_activity_log_entry`` only.
    """
    record = await ctx.uow.get(AssetActivityEvent, ctx.id)
    if record is not None:
        return record

    entry = await ctx.uow.get(ActivityLogEntry, ctx.id)

    record = AssetActivityEvent(
        id=ctx.id,
        event_name=event_name,
        timestamp=ctx.timestamp,
        emitter=ctx.emitter,
        sender=entry.sender if entry is not None else ctx.sender,
        asset_type=asset.type,
        user=user,
        from_account=from_account,
        to_account=to_account,
        amount_exact=amount,
        amount=to_decimals(amount, asset.decimals) if amount is not None else None,
    )
    ctx.uow.save(record)
    return record


def track_event_stats(ctx: EventContext) -> EventStatsData:
    """Append a statistics row for the event, keyed by its emitter."""
    row = EventStatsData(
        timestamp=ctx.timestamp,
        account=ctx.emitter,
        event_name=ctx.name,
    )
    ctx.uow.append(row)
    return row
