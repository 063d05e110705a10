"""Additive hospitality resolution.

Every source and every covering level contributes. When the same service
shows up more than once for a ticket, the occurrence at the most specific
level is kept; at equal level the earlier source wins, which puts legacy
ticket_hospitalities ahead of ticket-level hospitality_assignments.

Batch resolution shares the queries between tickets but builds each
ticket's list on its own, from only the rows that cover that ticket.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.hospitality import Hospitality
from app.models.hospitality_assignment import HospitalityAssignment
from app.services.legacy_sources import LegacyHospitalitySource
from app.services.resolution_types import (
    HospitalityRecord,
    HospitalitySource,
    ResolutionSourceName,
)
from app.services.rule_store import fetch_assignment_candidates
from app.services.scope import EventAncestry, ScopeKey, TicketAncestry, normalize_ticket_ids

logger = logging.getLogger(__name__)


def assignment_record(assignment: HospitalityAssignment, hospitality: Hospitality, scope: ScopeKey) -> HospitalityRecord:
    return HospitalityRecord(
        hospitality_id=hospitality.id,
        name=hospitality.name,
        description=hospitality.description,
        sort_order=hospitality.sort_order,
        level=scope.level,
        source=ResolutionSourceName.RULES,
        assignment_id=assignment.id,
    )


class AssignmentHospitalitySource:
    name = ResolutionSourceName.RULES

    async def load(
        self, db: AsyncSession, ancestry: EventAncestry, ticket_ids: Sequence[str]
    ) -> dict[str, list[HospitalityRecord]]:
        if not ticket_ids:
            return {}
        candidates = [
            (ScopeKey.from_row(assignment), assignment, hospitality)
            for assignment, hospitality in await fetch_assignment_candidates(db, ancestry, ticket_ids)
        ]
        by_ticket: dict[str, list[HospitalityRecord]] = {}
        for ticket_id in ticket_ids:
            ticket = ancestry.for_ticket(ticket_id)
            records = [
                assignment_record(assignment, hospitality, scope)
                for scope, assignment, hospitality in candidates
                if scope.covers(ticket)
            ]
            if records:
                by_ticket[ticket_id] = records
        return by_ticket


HOSPITALITY_SOURCES: tuple[HospitalitySource, ...] = (LegacyHospitalitySource(), AssignmentHospitalitySource())


def merge_most_specific(contributions: Iterable[Iterable[HospitalityRecord]]) -> list[HospitalityRecord]:
    """Deduplicate by hospitality_id. ``contributions`` must be in source order."""
    kept: dict[int, HospitalityRecord] = {}
    for records in contributions:
        for record in records:
            current = kept.get(record.hospitality_id)
            if current is None or record.level > current.level:
                kept[record.hospitality_id] = record
    return sorted(kept.values(), key=lambda record: record.display_key)


async def resolve_hospitalities_for_event(
    db: AsyncSession,
    ancestry: EventAncestry,
    ticket_ids: Iterable[str],
    *,
    sources: Sequence[HospitalitySource] = HOSPITALITY_SOURCES,
) -> dict[str, list[HospitalityRecord]]:
    ids = normalize_ticket_ids(ticket_ids)
    if not ids:
        return {}

    loaded = [await source.load(db, ancestry, ids) for source in sources]
    resolved = {
        ticket_id: merge_most_specific(per_source.get(ticket_id, []) for per_source in loaded) for ticket_id in ids
    }
    logger.debug(
        "Hospitalities resolved",
        extra={
            "event_id": ancestry.event_id,
            "tickets": len(ids),
            "records": sum(len(records) for records in resolved.values()),
        },
    )
    return resolved


async def resolve_hospitalities(
    db: AsyncSession,
    ancestry: TicketAncestry,
    *,
    sources: Sequence[HospitalitySource] = HOSPITALITY_SOURCES,
) -> list[HospitalityRecord]:
    resolved = await resolve_hospitalities_for_event(db, ancestry.event, [ancestry.ticket_id], sources=sources)
    return resolved[ancestry.ticket_id]
