"""Write paths for the ticket-only legacy tables, still used by the old admin screens."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import atomic
from app.models.legacy import LegacyTicketHospitality, LegacyTicketMarkup
from app.services.hospitality_admin import ReplaceResult
from app.services.markup_rules import validate_markup
from app.services.resolution_types import (
    CENTS,
    MarkupResult,
    MarkupType,
    ResolutionSourceName,
    apply_markup,
    require_cents,
    to_decimal,
)
from app.services.rule_store import upsert_by_unique_key
from app.services.scope import Level

logger = logging.getLogger(__name__)

TICKET_MARKUP_UPDATE_COLUMNS = (
    "markup_type",
    "markup_price_usd",
    "markup_percentage",
    "base_price_usd",
    "final_price_usd",
    "updated_by",
)


def build_ticket_markup_values(event_id: str, entry: Mapping[str, Any]) -> dict[str, Any]:
    """Derive the stored USD columns from a base price and a fixed/percentage markup."""
    ticket_id = str(entry.get("ticket_id") or "").strip()
    if not ticket_id:
        raise ValueError("ticket_id is required for every ticket markup")
    base_price = require_cents(to_decimal(entry.get("base_price_usd", 0)), "base_price_usd")
    if base_price < 0:
        raise ValueError("base_price_usd must be non-negative")
    markup_type, amount = validate_markup(entry.get("markup_type", MarkupType.FIXED), entry.get("markup_amount", 0))

    markup = MarkupResult(
        level=Level.TICKET,
        source=ResolutionSourceName.LEGACY,
        markup_type=markup_type,
        markup_amount=amount,
    )
    final_price = apply_markup(base_price, markup)
    return {
        "event_id": event_id,
        "ticket_id": ticket_id,
        "markup_type": markup_type.value,
        "markup_price_usd": (final_price - base_price).quantize(CENTS),
        "markup_percentage": amount if markup_type is MarkupType.PERCENTAGE else None,
        "base_price_usd": base_price.quantize(CENTS),
        "final_price_usd": final_price,
    }


async def batch_upsert_ticket_markups(
    db: AsyncSession,
    event_id: str,
    entries: Iterable[Mapping[str, Any]],
    actor_id: int | None,
) -> int:
    event_id = str(event_id or "").strip()
    if not event_id:
        raise ValueError("event_id is required")
    rows = [build_ticket_markup_values(event_id, entry) for entry in entries]

    try:
        async with atomic(db):
            for values in rows:
                await upsert_by_unique_key(
                    db,
                    LegacyTicketMarkup,
                    values={**values, "created_by": actor_id, "updated_by": actor_id},
                    conflict_columns=("event_id", "ticket_id"),
                    update_columns=TICKET_MARKUP_UPDATE_COLUMNS,
                )
    except Exception:
        logger.exception("ticket_markup_batch_failed", extra={"event_id": event_id, "entries": len(rows)})
        raise

    logger.info("ticket_markups_upserted", extra={"event_id": event_id, "count": len(rows), "actor_id": actor_id})
    return len(rows)


async def list_ticket_markups(db: AsyncSession, event_id: str) -> list[LegacyTicketMarkup]:
    stmt = (
        select(LegacyTicketMarkup)
        .where(LegacyTicketMarkup.event_id == event_id)
        .order_by(LegacyTicketMarkup.ticket_id)
        .execution_options(populate_existing=True)
    )
    return list((await db.execute(stmt)).scalars().all())


async def delete_ticket_markup(db: AsyncSession, event_id: str, ticket_id: str) -> bool:
    async with atomic(db):
        result = await db.execute(
            delete(LegacyTicketMarkup).where(
                LegacyTicketMarkup.event_id == event_id,
                LegacyTicketMarkup.ticket_id == ticket_id,
            )
        )
    return bool(result.rowcount)


async def delete_ticket_markups_for_event(db: AsyncSession, event_id: str) -> int:
    async with atomic(db):
        result = await db.execute(delete(LegacyTicketMarkup).where(LegacyTicketMarkup.event_id == event_id))
    deleted_count = result.rowcount or 0
    logger.info("ticket_markups_deleted_for_event", extra={"event_id": event_id, "deleted_count": deleted_count})
    return deleted_count


def _ticket_hospitality_ids(hospitality_ids: Iterable[Any]) -> list[int]:
    try:
        return list(dict.fromkeys(int(hospitality_id) for hospitality_id in hospitality_ids))
    except (TypeError, ValueError) as exc:
        raise ValueError("hospitality_ids must be integers") from exc


async def _replace_ticket_links(
    db: AsyncSession,
    event_id: str,
    ticket_id: str,
    ids: list[int],
    actor_id: int | None,
) -> int:
    result = await db.execute(
        delete(LegacyTicketHospitality).where(
            LegacyTicketHospitality.event_id == event_id,
            LegacyTicketHospitality.ticket_id == ticket_id,
        )
    )
    db.add_all(
        LegacyTicketHospitality(
            event_id=event_id,
            ticket_id=ticket_id,
            hospitality_id=hospitality_id,
            created_by=actor_id,
        )
        for hospitality_id in ids
    )
    await db.flush()
    return result.rowcount or 0


async def assign_ticket_hospitalities(
    db: AsyncSession,
    event_id: str,
    ticket_id: str,
    hospitality_ids: Iterable[Any],
    actor_id: int | None,
) -> ReplaceResult:
    """Replace the legacy hospitality set of one ticket."""
    ids = _ticket_hospitality_ids(hospitality_ids)
    async with atomic(db):
        deleted_count = await _replace_ticket_links(db, event_id, ticket_id, ids, actor_id)
    logger.info(
        "ticket_hospitalities_assigned",
        extra={"event_id": event_id, "ticket_id": ticket_id, "inserted_count": len(ids), "actor_id": actor_id},
    )
    return ReplaceResult(deleted_count=deleted_count, inserted_count=len(ids))


async def batch_assign_ticket_hospitalities(
    db: AsyncSession,
    event_id: str,
    tickets: Mapping[str, Iterable[Any]],
    actor_id: int | None,
) -> ReplaceResult:
    """Replace the legacy sets of several tickets of one event, all or nothing.

    ``tickets`` maps ticket_id to its new hospitality ids; an empty list clears
    that ticket. Tickets not named keep their links.
    """
    event_id = str(event_id or "").strip()
    if not event_id:
        raise ValueError("event_id is required")
    plan: dict[str, list[int]] = {}
    for ticket_id, hospitality_ids in tickets.items():
        clean_ticket_id = str(ticket_id or "").strip()
        if not clean_ticket_id:
            raise ValueError("ticket_id is required for every ticket")
        plan[clean_ticket_id] = _ticket_hospitality_ids(hospitality_ids)

    deleted_count = 0
    try:
        async with atomic(db):
            for ticket_id, ids in plan.items():
                deleted_count += await _replace_ticket_links(db, event_id, ticket_id, ids, actor_id)
    except Exception:
        logger.exception("ticket_hospitalities_batch_failed", extra={"event_id": event_id, "tickets": len(plan)})
        raise

    inserted_count = sum(len(ids) for ids in plan.values())
    logger.info(
        "ticket_hospitalities_batch_assigned",
        extra={
            "event_id": event_id,
            "tickets": len(plan),
            "deleted_count": deleted_count,
            "inserted_count": inserted_count,
            "actor_id": actor_id,
        },
    )
    return ReplaceResult(deleted_count=deleted_count, inserted_count=inserted_count)


async def remove_event_ticket_hospitalities(db: AsyncSession, event_id: str) -> int:
    async with atomic(db):
        result = await db.execute(
            delete(LegacyTicketHospitality).where(LegacyTicketHospitality.event_id == event_id)
        )
    deleted_count = result.rowcount or 0
    logger.info("ticket_hospitalities_removed_for_event", extra={"event_id": event_id, "deleted_count": deleted_count})
    return deleted_count
