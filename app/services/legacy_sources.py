"""Read side of the ticket-only ticket_markups / ticket_hospitalities tables.

These rows predate the hierarchical tables and always resolve at ticket
level. Both sources run first in their resolution chains.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.hospitality import Hospitality
from app.models.legacy import LegacyTicketHospitality, LegacyTicketMarkup
from app.services.resolution_types import (
    HospitalityRecord,
    MarkupResult,
    MarkupType,
    ResolutionSourceName,
)
from app.services.scope import EventAncestry, Level

logger = logging.getLogger(__name__)


def legacy_markup_result(row: LegacyTicketMarkup) -> MarkupResult:
    markup_type = MarkupType.parse(row.markup_type or MarkupType.FIXED)
    if markup_type is MarkupType.PERCENTAGE and row.markup_percentage is not None:
        amount = row.markup_percentage
    else:
        # Rows written before markup_percentage existed carry only the USD figure.
        markup_type = MarkupType.FIXED
        amount = row.markup_price_usd
    return MarkupResult(
        level=Level.TICKET,
        source=ResolutionSourceName.LEGACY,
        markup_type=markup_type,
        markup_amount=amount,
        rule_id=row.id,
        markup_price_usd=row.markup_price_usd,
        base_price_usd=row.base_price_usd,
        final_price_usd=row.final_price_usd,
    )


class LegacyMarkupSource:
    name = ResolutionSourceName.LEGACY

    async def load(
        self, db: AsyncSession, ancestry: EventAncestry, ticket_ids: Sequence[str]
    ) -> dict[str, MarkupResult]:
        if not ticket_ids:
            return {}
        stmt = select(LegacyTicketMarkup).where(
            LegacyTicketMarkup.event_id == ancestry.event_id,
            LegacyTicketMarkup.ticket_id.in_(list(ticket_ids)),
        )
        rows = (await db.execute(stmt)).scalars().all()
        logger.debug(
            "Legacy markups loaded",
            extra={"event_id": ancestry.event_id, "tickets": len(ticket_ids), "rows": len(rows)},
        )
        return {row.ticket_id: legacy_markup_result(row) for row in rows}


class LegacyHospitalitySource:
    name = ResolutionSourceName.LEGACY

    async def load(
        self, db: AsyncSession, ancestry: EventAncestry, ticket_ids: Sequence[str]
    ) -> dict[str, list[HospitalityRecord]]:
        if not ticket_ids:
            return {}
        stmt = (
            select(LegacyTicketHospitality, Hospitality)
            .join(Hospitality, LegacyTicketHospitality.hospitality_id == Hospitality.id)
            .where(
                LegacyTicketHospitality.event_id == ancestry.event_id,
                LegacyTicketHospitality.ticket_id.in_(list(ticket_ids)),
                Hospitality.is_active.is_(True),
            )
            .order_by(LegacyTicketHospitality.id)
        )
        by_ticket: dict[str, list[HospitalityRecord]] = defaultdict(list)
        for link, hospitality in (await db.execute(stmt)).all():
            by_ticket[link.ticket_id].append(
                HospitalityRecord(
                    hospitality_id=hospitality.id,
                    name=hospitality.name,
                    description=hospitality.description,
                    sort_order=hospitality.sort_order,
                    level=Level.TICKET,
                    source=ResolutionSourceName.LEGACY,
                    assignment_id=link.id,
                    custom_price_usd=link.custom_price_usd,
                )
            )
        return dict(by_ticket)
