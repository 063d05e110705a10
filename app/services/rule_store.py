"""Queries over the hierarchical markup_rules / hospitality_assignments tables."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any, TypeVar

from sqlalchemy import ColumnElement, and_, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.hospitality import Hospitality
from app.models.hospitality_assignment import HospitalityAssignment
from app.models.markup_rule import MarkupRule
from app.services.scope import EventAncestry, Level, ScopeKey

ScopedModel = TypeVar("ScopedModel", MarkupRule, HospitalityAssignment)


def scope_values(scope: ScopeKey) -> dict[str, Any]:
    values: dict[str, Any] = scope.as_dict()
    values["scope_key"] = scope.scope_key
    values["level"] = scope.level.label
    return values


def exact_scope_clause(model: type[ScopedModel], scope: ScopeKey) -> ColumnElement[bool]:
    return model.scope_key == scope.scope_key


def coverage_clause(
    model: type[ScopedModel],
    ancestry: EventAncestry,
    ticket_ids: Sequence[str],
) -> ColumnElement[bool]:
    """Pre-filter for rows that may cover any of the tickets.

    Matches on the anchor column of each level only. ``ScopeKey.covers`` makes
    the final per-ticket decision on the rows this returns.
    """
    clauses: list[ColumnElement[bool]] = [
        and_(model.level == Level.SPORT.label, model.sport_type == ancestry.sport_type),
        and_(model.level == Level.EVENT.label, model.event_id == ancestry.event_id),
    ]
    if ancestry.tournament_id is not None:
        clauses.append(and_(model.level == Level.TOURNAMENT.label, model.tournament_id == ancestry.tournament_id))
    if ancestry.team_id is not None:
        clauses.append(and_(model.level == Level.TEAM.label, model.team_id == ancestry.team_id))
    if ticket_ids:
        clauses.append(and_(model.level == Level.TICKET.label, model.ticket_id.in_(list(ticket_ids))))
    return or_(*clauses)


async def fetch_markup_candidates(
    db: AsyncSession,
    ancestry: EventAncestry,
    ticket_ids: Sequence[str],
) -> list[MarkupRule]:
    stmt = (
        select(MarkupRule)
        .where(MarkupRule.is_active.is_(True), coverage_clause(MarkupRule, ancestry, ticket_ids))
        .order_by(MarkupRule.id)
    )
    return list((await db.execute(stmt)).scalars().all())


async def fetch_assignment_candidates(
    db: AsyncSession,
    ancestry: EventAncestry,
    ticket_ids: Sequence[str],
) -> list[tuple[HospitalityAssignment, Hospitality]]:
    stmt = (
        select(HospitalityAssignment, Hospitality)
        .join(Hospitality, HospitalityAssignment.hospitality_id == Hospitality.id)
        .where(
            HospitalityAssignment.is_active.is_(True),
            Hospitality.is_active.is_(True),
            coverage_clause(HospitalityAssignment, ancestry, ticket_ids),
        )
        .order_by(HospitalityAssignment.id)
    )
    return [(assignment, hospitality) for assignment, hospitality in (await db.execute(stmt)).all()]


def dialect_insert(db: AsyncSession, model: type):
    dialect_name = db.get_bind().dialect.name
    if dialect_name == "postgresql":
        return pg_insert(model)
    if dialect_name == "sqlite":
        return sqlite_insert(model)
    raise RuntimeError(f"Upsert is not supported for the {dialect_name} dialect")


async def upsert_by_unique_key(
    db: AsyncSession,
    model: type,
    *,
    values: dict[str, Any],
    conflict_columns: Sequence[str],
    update_columns: Sequence[str],
) -> int:
    """INSERT ... ON CONFLICT DO UPDATE, returning the row id either way."""
    now = datetime.now(UTC)
    insert_values = {"created_at": now, "updated_at": now, **values}
    insert_stmt = dialect_insert(db, model).values(**insert_values)
    set_ = {column: insert_stmt.excluded[column] for column in update_columns}
    set_["updated_at"] = now
    stmt = insert_stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=set_).returning(model.id)
    return (await db.execute(stmt)).scalar_one()


async def load_fresh(db: AsyncSession, model: type[ScopedModel], row_id: int) -> ScopedModel:
    stmt = select(model).where(model.id == row_id).execution_options(populate_existing=True)
    return (await db.execute(stmt)).scalar_one()

