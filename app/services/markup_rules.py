import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import atomic
from app.models.markup_rule import MarkupRule
from app.services.pagination import Page
from app.services.resolution_types import MAX_PERCENTAGE, MarkupType, require_cents, to_decimal
from app.services.rule_store import load_fresh, scope_values, upsert_by_unique_key
from app.services.scope import DISPLAY_NAME_FIELDS, Level, ScopeKey, display_names_from

logger = logging.getLogger(__name__)

RULE_UPDATE_COLUMNS = ("markup_type", "markup_amount", *DISPLAY_NAME_FIELDS, "level", "is_active", "updated_by")

# Listing order: sport first, ticket last.
LEVEL_ORDER = case({level.label: int(level) for level in Level}, value=MarkupRule.level, else_=0)


def validate_markup(markup_type: Any, markup_amount: Any) -> tuple[MarkupType, Decimal]:
    parsed_type = MarkupType.parse(markup_type)
    amount = to_decimal(markup_amount)
    if not amount.is_finite() or amount < 0:
        raise ValueError("markup_amount must be a non-negative number")
    require_cents(amount, "markup_amount")
    if parsed_type is MarkupType.PERCENTAGE and amount > MAX_PERCENTAGE:
        raise ValueError("Percentage markup cannot exceed 100")
    return parsed_type, amount


async def _upsert_rule_row(
    db: AsyncSession,
    scope: ScopeKey,
    markup_type: MarkupType,
    markup_amount: Decimal,
    actor_id: int | None,
    display_names: Mapping[str, Any] | None,
    is_active: bool,
) -> int:
    values = {
        **scope_values(scope),
        "markup_type": markup_type.value,
        "markup_amount": markup_amount,
        **display_names_from(display_names),
        "is_active": is_active,
        "created_by": actor_id,
        "updated_by": actor_id,
    }
    return await upsert_by_unique_key(
        db,
        MarkupRule,
        values=values,
        conflict_columns=("scope_key",),
        update_columns=RULE_UPDATE_COLUMNS,
    )


async def upsert_rule(
    db: AsyncSession,
    scope_data: Mapping[str, Any],
    markup_type: Any,
    markup_amount: Any,
    actor_id: int | None,
    *,
    display_names: Mapping[str, Any] | None = None,
    is_active: bool = True,
) -> MarkupRule:
    """Create the rule at this exact scope, or overwrite the one already there."""
    scope = ScopeKey.from_mapping(scope_data)
    parsed_type, amount = validate_markup(markup_type, markup_amount)
    async with atomic(db):
        rule_id = await _upsert_rule_row(db, scope, parsed_type, amount, actor_id, display_names, is_active)
    rule = await load_fresh(db, MarkupRule, rule_id)
    logger.info(
        "markup_rule_upserted",
        extra={"rule_id": rule.id, "level": rule.level, "scope_key": rule.scope_key, "actor_id": actor_id},
    )
    return rule


async def batch_upsert_rules(
    db: AsyncSession,
    entries: Iterable[Mapping[str, Any]],
    actor_id: int | None,
) -> list[MarkupRule]:
    """Upsert several rules in one transaction. Each entry carries its scope and markup fields."""
    prepared = []
    for entry in entries:
        scope = ScopeKey.from_mapping(entry)
        parsed_type, amount = validate_markup(entry.get("markup_type", MarkupType.FIXED), entry.get("markup_amount", 0))
        prepared.append((scope, parsed_type, amount, entry, bool(entry.get("is_active", True))))

    rule_ids: list[int] = []
    try:
        async with atomic(db):
            for scope, parsed_type, amount, entry, is_active in prepared:
                rule_ids.append(await _upsert_rule_row(db, scope, parsed_type, amount, actor_id, entry, is_active))
    except Exception:
        logger.exception("markup_rule_batch_failed", extra={"entries": len(prepared), "actor_id": actor_id})
        raise

    logger.info("markup_rules_batch_upserted", extra={"count": len(rule_ids), "actor_id": actor_id})
    return [await load_fresh(db, MarkupRule, rule_id) for rule_id in rule_ids]


async def get_rule(db: AsyncSession, rule_id: int) -> MarkupRule | None:
    return await db.get(MarkupRule, rule_id)


async def update_rule(
    db: AsyncSession,
    rule: MarkupRule,
    *,
    actor_id: int | None,
    markup_type: Any | None = None,
    markup_amount: Any | None = None,
    is_active: bool | None = None,
) -> MarkupRule:
    parsed_type, amount = validate_markup(
        markup_type if markup_type is not None else rule.markup_type,
        markup_amount if markup_amount is not None else rule.markup_amount,
    )
    async with atomic(db):
        rule.markup_type = parsed_type.value
        rule.markup_amount = amount
        if is_active is not None:
            rule.is_active = is_active
        rule.updated_by = actor_id
        await db.flush()
    await db.refresh(rule)
    return rule


async def delete_rule(db: AsyncSession, rule: MarkupRule) -> None:
    rule_id, scope_key = rule.id, rule.scope_key
    async with atomic(db):
        await db.delete(rule)
    logger.info("markup_rule_deleted", extra={"rule_id": rule_id, "scope_key": scope_key})


def _rule_filters(filters: Mapping[str, Any]) -> list:
    conditions = []
    level = filters.get("level")
    if level:
        conditions.append(MarkupRule.level == Level.from_label(level).label)
    for name in ("sport_type", "tournament_id", "team_id", "event_id"):
        value = filters.get(name)
        if value:
            conditions.append(getattr(MarkupRule, name) == value)
    if filters.get("is_active") is not None:
        conditions.append(MarkupRule.is_active.is_(bool(filters["is_active"])))
    return conditions


async def list_rules(
    db: AsyncSession,
    filters: Mapping[str, Any] | None = None,
    *,
    page: int = 1,
    limit: int = 50,
) -> Page:
    page = max(1, page)
    limit = max(1, limit)
    conditions = _rule_filters(filters or {})

    total = (await db.execute(select(func.count(MarkupRule.id)).where(*conditions))).scalar_one()
    stmt = (
        select(MarkupRule)
        .where(*conditions)
        .order_by(
            LEVEL_ORDER,
            MarkupRule.sport_name,
            MarkupRule.tournament_name,
            MarkupRule.team_name,
            MarkupRule.event_name,
            MarkupRule.ticket_name,
            MarkupRule.updated_at.desc(),
            MarkupRule.id,
        )
        .limit(limit)
        .offset((page - 1) * limit)
    )
    items = list((await db.execute(stmt)).scalars().all())
    return Page(items=items, page=page, per_page=limit, total_records=int(total))


async def list_rules_for_sport(db: AsyncSession, sport_type: str) -> list[MarkupRule]:
    stmt = (
        select(MarkupRule)
        .where(MarkupRule.sport_type == sport_type, MarkupRule.is_active.is_(True))
        .order_by(LEVEL_ORDER, MarkupRule.id)
    )
    return list((await db.execute(stmt)).scalars().all())

