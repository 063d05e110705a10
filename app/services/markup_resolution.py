"""Most-specific-wins markup resolution.

Sources are consulted in order. A ticket answered by one source is never
offered to the next, so the legacy ticket_markups table outranks every
hierarchical rule, including a ticket-level one. Within the hierarchical
table the covering rule with the highest ``Level`` wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.markup_rule import MarkupRule
from app.services.legacy_sources import LegacyMarkupSource
from app.services.resolution_types import (
    MarkupResult,
    MarkupSource,
    MarkupType,
    ResolutionSourceName,
)
from app.services.rule_store import fetch_markup_candidates
from app.services.scope import (
    DISPLAY_NAME_FIELDS,
    EventAncestry,
    ScopeKey,
    TicketAncestry,
    normalize_ticket_ids,
)

logger = logging.getLogger(__name__)


def _precedence(rule: MarkupRule, scope: ScopeKey) -> tuple[int, int, int]:
    # Level first. The other two only separate rows at the same level whose
    # optional ancestor fields differ.
    return (int(scope.level), scope.field_count, rule.id)


def rule_markup_result(rule: MarkupRule) -> MarkupResult:
    scope = ScopeKey.from_row(rule)
    return MarkupResult(
        level=scope.level,
        source=ResolutionSourceName.RULES,
        markup_type=MarkupType.parse(rule.markup_type),
        markup_amount=rule.markup_amount,
        rule_id=rule.id,
        display_names={name: getattr(rule, name) for name in DISPLAY_NAME_FIELDS},
    )


def pick_most_specific(rules: Iterable[MarkupRule], ancestry: TicketAncestry) -> MarkupRule | None:
    best: MarkupRule | None = None
    best_key: tuple[int, int, int] | None = None
    for rule in rules:
        scope = ScopeKey.from_row(rule)
        if not scope.covers(ancestry):
            continue
        key = _precedence(rule, scope)
        if best_key is None or key > best_key:
            best, best_key = rule, key
    return best


class RuleMarkupSource:
    name = ResolutionSourceName.RULES

    async def load(
        self, db: AsyncSession, ancestry: EventAncestry, ticket_ids: Sequence[str]
    ) -> dict[str, MarkupResult]:
        if not ticket_ids:
            return {}
        candidates = await fetch_markup_candidates(db, ancestry, ticket_ids)
        resolved: dict[str, MarkupResult] = {}
        for ticket_id in ticket_ids:
            rule = pick_most_specific(candidates, ancestry.for_ticket(ticket_id))
            if rule is not None:
                resolved[ticket_id] = rule_markup_result(rule)
        return resolved


MARKUP_SOURCES: tuple[MarkupSource, ...] = (LegacyMarkupSource(), RuleMarkupSource())


async def resolve_markups_for_event(
    db: AsyncSession,
    ancestry: EventAncestry,
    ticket_ids: Iterable[str],
    *,
    sources: Sequence[MarkupSource] = MARKUP_SOURCES,
) -> dict[str, MarkupResult | None]:
    """Resolve every ticket of one event with a single query per source."""
    ids = normalize_ticket_ids(ticket_ids)
    resolved: dict[str, MarkupResult | None] = dict.fromkeys(ids)
    pending = list(ids)
    for source in sources:
        if not pending:
            break
        answered = await source.load(db, ancestry, pending)
        for ticket_id in pending:
            if ticket_id in answered:
                resolved[ticket_id] = answered[ticket_id]
        pending = [ticket_id for ticket_id in pending if resolved[ticket_id] is None]

    logger.debug(
        "Markups resolved",
        extra={
            "event_id": ancestry.event_id,
            "tickets": len(ids),
            "unresolved": len(pending),
        },
    )
    return resolved


async def resolve_markup(
    db: AsyncSession,
    ancestry: TicketAncestry,
    *,
    sources: Sequence[MarkupSource] = MARKUP_SOURCES,
) -> MarkupResult | None:
    resolved = await resolve_markups_for_event(db, ancestry.event, [ancestry.ticket_id], sources=sources)
    return resolved[ancestry.ticket_id]
