"""
Registry event log — one row per successful mutating registry call.

Events are fire-and-forget for the registry: they are written in the same
session as the state change (so they roll back with it) and logged.
"""
import json
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import RegistryEvent
from domain.enums import RegistryEventType

logger = logging.getLogger(__name__)


async def emit(
    db: AsyncSession,
    event_type: RegistryEventType,
    *,
    token_id: Optional[int] = None,
    wallet: Optional[str] = None,
    **fields,
) -> RegistryEvent:
    """Persist an event and log it."""
    payload = dict(fields)
    if token_id is not None:
        payload.setdefault("token_id", token_id)

    event = RegistryEvent(
        event_type=event_type.value,
        token_id=token_id,
        wallet_address=wallet,
        payload=json.dumps(payload, sort_keys=True),
    )
    db.add(event)
    await db.flush()

    logger.info(f"Event {event_type.value}: {payload}")
    return event


def event_to_dict(event: RegistryEvent) -> dict:
    return {
        "id": event.id,
        "event": event.event_type,
        "token_id": event.token_id,
        "wallet": event.wallet_address,
        "data": json.loads(event.payload or "{}"),
        "created_at": event.created_at.isoformat() if event.created_at else None,
    }


async def list_events(
    db: AsyncSession,
    limit: int = 50,
    offset: int = 0,
    token_id: Optional[int] = None,
    event_type: Optional[RegistryEventType] = None,
) -> tuple[list[RegistryEvent], int]:
    """Events newest-first, with the total count for pagination."""
    query = select(RegistryEvent)
    count_query = select(func.count()).select_from(RegistryEvent)
    if token_id is not None:
        query = query.where(RegistryEvent.token_id == token_id)
        count_query = count_query.where(RegistryEvent.token_id == token_id)
    if event_type is not None:
        query = query.where(RegistryEvent.event_type == event_type.value)
        count_query = count_query.where(RegistryEvent.event_type == event_type.value)

    result = await db.execute(
        query.order_by(RegistryEvent.id.desc()).limit(limit).offset(offset)
    )
    total = (await db.execute(count_query)).scalar_one()
    return list(result.scalars().all()), total
