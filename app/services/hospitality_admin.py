import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import atomic
from app.models.hospitality import Hospitality
from app.models.hospitality_assignment import HospitalityAssignment
from app.models.legacy import LegacyTicketHospitality
from app.services.pagination import Page
from app.services.resolution_types import require_cents, to_decimal
from app.services.rule_store import exact_scope_clause, load_fresh, scope_values, upsert_by_unique_key
from app.services.scope import DISPLAY_NAME_FIELDS, SCOPE_FIELDS, Level, ScopeKey, display_names_from

logger = logging.getLogger(__name__)

ASSIGNMENT_UPDATE_COLUMNS = (*DISPLAY_NAME_FIELDS, "level", "is_active", "updated_by")
HOSPITALITY_FIELDS = ("name", "description", "price_usd", "is_active", "sort_order")

LEVEL_ORDER = case({level.label: int(level) for level in Level}, value=HospitalityAssignment.level, else_=0)


@dataclass(frozen=True)
class ReplaceResult:
    deleted_count: int
    inserted_count: int


def _clean_hospitality_ids(hospitality_ids: Iterable[Any]) -> list[int]:
    cleaned: list[int] = []
    for raw in hospitality_ids:
        try:
            cleaned.append(int(raw))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid hospitality id: {raw!r}") from exc
    return list(dict.fromkeys(cleaned))


# ---------------------------------------------------------------------------
# hospitality services
# ---------------------------------------------------------------------------


async def list_hospitalities(db: AsyncSession, *, active_only: bool = False) -> list[Hospitality]:
    stmt = select(Hospitality).order_by(Hospitality.sort_order, Hospitality.name, Hospitality.id)
    if active_only:
        stmt = stmt.where(Hospitality.is_active.is_(True))
    return list((await db.execute(stmt)).scalars().all())


async def get_hospitality(db: AsyncSession, hospitality_id: int) -> Hospitality | None:
    return await db.get(Hospitality, hospitality_id)


def _hospitality_values(data: Mapping[str, Any]) -> dict[str, Any]:
    values = {key: data[key] for key in HOSPITALITY_FIELDS if key in data}
    if "name" in values:
        values["name"] = str(values["name"] or "").strip()
        if not values["name"]:
            raise ValueError("Hospitality name is required")
    if values.get("price_usd") is not None:
        values["price_usd"] = require_cents(to_decimal(values["price_usd"]), "price_usd")
    return values


async def create_hospitality(db: AsyncSession, data: Mapping[str, Any], actor_id: int | None) -> Hospitality:
    values = _hospitality_values(data)
    if "name" not in values:
        raise ValueError("Hospitality name is required")
    hospitality = Hospitality(**values, created_by=actor_id, updated_by=actor_id)
    async with atomic(db):
        db.add(hospitality)
    await db.refresh(hospitality)
    logger.info("hospitality_created", extra={"hospitality_id": hospitality.id, "actor_id": actor_id})
    return hospitality


async def update_hospitality(
    db: AsyncSession, hospitality: Hospitality, data: Mapping[str, Any], actor_id: int | None
) -> Hospitality:
    values = _hospitality_values(data)
    async with atomic(db):
        for key, value in values.items():
            setattr(hospitality, key, value)
        hospitality.updated_by = actor_id
        await db.flush()
    await db.refresh(hospitality)
    return hospitality


async def delete_hospitality(db: AsyncSession, hospitality: Hospitality) -> None:
    """Delete a service. Its hierarchical and legacy assignments cascade with it."""
    hospitality_id = hospitality.id
    async with atomic(db):
        await db.execute(
            delete(LegacyTicketHospitality).where(LegacyTicketHospitality.hospitality_id == hospitality_id)
        )
        await db.execute(delete(HospitalityAssignment).where(HospitalityAssignment.hospitality_id == hospitality_id))
        await db.delete(hospitality)
    logger.info("hospitality_deleted", extra={"hospitality_id": hospitality_id})


# ---------------------------------------------------------------------------
# hierarchical assignments
# ---------------------------------------------------------------------------


async def _upsert_assignment_row(
    db: AsyncSession,
    scope: ScopeKey,
    hospitality_id: int,
    actor_id: int | None,
    display_names: Mapping[str, Any] | None,
    is_active: bool,
) -> int:
    values = {
        **scope_values(scope),
        "hospitality_id": hospitality_id,
        **display_names_from(display_names),
        "is_active": is_active,
        "created_by": actor_id,
        "updated_by": actor_id,
    }
    return await upsert_by_unique_key(
        db,
        HospitalityAssignment,
        values=values,
        conflict_columns=("hospitality_id", "scope_key"),
        update_columns=ASSIGNMENT_UPDATE_COLUMNS,
    )


async def upsert_assignment(
    db: AsyncSession,
    scope_data: Mapping[str, Any],
    hospitality_id: int,
    actor_id: int | None,
    *,
    is_active: bool = True,
) -> HospitalityAssignment:
    scope = ScopeKey.from_mapping(scope_data)
    (clean_id,) = _clean_hospitality_ids([hospitality_id])
    async with atomic(db):
        assignment_id = await _upsert_assignment_row(db, scope, clean_id, actor_id, scope_data, is_active)
    assignment = await load_fresh(db, HospitalityAssignment, assignment_id)
    logger.info(
        "hospitality_assignment_upserted",
        extra={
            "assignment_id": assignment.id,
            "hospitality_id": clean_id,
            "level": assignment.level,
            "scope_key": assignment.scope_key,
            "actor_id": actor_id,
        },
    )
    return assignment


async def batch_upsert_assignments(
    db: AsyncSession,
    scope_data: Mapping[str, Any],
    hospitality_ids: Iterable[Any],
    actor_id: int | None,
) -> list[HospitalityAssignment]:
    """Assign several services at one scope, all or nothing."""
    scope = ScopeKey.from_mapping(scope_data)
    ids = _clean_hospitality_ids(hospitality_ids)
    assignment_ids: list[int] = []
    try:
        async with atomic(db):
            for hospitality_id in ids:
                assignment_ids.append(
                    await _upsert_assignment_row(db, scope, hospitality_id, actor_id, scope_data, True)
                )
    except Exception:
        logger.exception(
            "hospitality_assignment_batch_failed",
            extra={"scope_key": scope.scope_key, "hospitality_ids": ids, "actor_id": actor_id},
        )
        raise
    logger.info(
        "hospitality_assignments_batch_upserted",
        extra={"scope_key": scope.scope_key, "count": len(assignment_ids), "actor_id": actor_id},
    )
    return [await load_fresh(db, HospitalityAssignment, assignment_id) for assignment_id in assignment_ids]


async def replace_assignments_at_scope(
    db: AsyncSession,
    scope_data: Mapping[str, Any],
    hospitality_ids: Iterable[Any],
    actor_id: int | None,
) -> ReplaceResult:
    """Make ``hospitality_ids`` the complete set of services at this exact scope.

    Delete and re-insert run in one transaction; if any insert fails the
    previous set is left exactly as it was and the storage error propagates.
    """
    scope = ScopeKey.from_mapping(scope_data)
    ids = _clean_hospitality_ids(hospitality_ids)
    try:
        async with atomic(db):
            result = await db.execute(
                delete(HospitalityAssignment).where(exact_scope_clause(HospitalityAssignment, scope))
            )
            deleted_count = result.rowcount or 0
            for hospitality_id in ids:
                await _upsert_assignment_row(db, scope, hospitality_id, actor_id, scope_data, True)
    except Exception:
        logger.exception(
            "hospitality_assignment_replace_failed",
            extra={"scope_key": scope.scope_key, "hospitality_ids": ids, "actor_id": actor_id},
        )
        raise

    logger.info(
        "hospitality_assignments_replaced",
        extra={
            "scope_key": scope.scope_key,
            "deleted_count": deleted_count,
            "inserted_count": len(ids),
            "actor_id": actor_id,
        },
    )
    return ReplaceResult(deleted_count=deleted_count, inserted_count=len(ids))


async def remove_assignments_at_scope(
    db: AsyncSession,
    scope_data: Mapping[str, Any],
    hospitality_ids: Iterable[Any] | None = None,
) -> int:
    """Remove assignments at this exact scope; all of them unless ids are given."""
    scope = ScopeKey.from_mapping(scope_data)
    stmt = delete(HospitalityAssignment).where(exact_scope_clause(HospitalityAssignment, scope))
    if hospitality_ids is not None:
        ids = _clean_hospitality_ids(hospitality_ids)
        if not ids:
            return 0
        stmt = stmt.where(HospitalityAssignment.hospitality_id.in_(ids))
    async with atomic(db):
        result = await db.execute(stmt)
    return result.rowcount or 0


async def list_assignments_at_scope(db: AsyncSession, scope_data: Mapping[str, Any]) -> list[HospitalityAssignment]:
    scope = ScopeKey.from_mapping(scope_data)
    stmt = (
        select(HospitalityAssignment)
        .join(Hospitality, HospitalityAssignment.hospitality_id == Hospitality.id)
        .where(exact_scope_clause(HospitalityAssignment, scope))
        .order_by(Hospitality.sort_order, Hospitality.name, HospitalityAssignment.id)
    )
    return list((await db.execute(stmt)).scalars().all())


async def list_assignments(
    db: AsyncSession,
    filters: Mapping[str, Any] | None = None,
    *,
    page: int = 1,
    limit: int = 50,
) -> Page:
    filters = filters or {}
    page = max(1, page)
    limit = max(1, limit)
    conditions = []
    if filters.get("level"):
        conditions.append(HospitalityAssignment.level == Level.from_label(filters["level"]).label)
    for name in ("hospitality_id", *SCOPE_FIELDS):
        value = filters.get(name)
        if value:
            conditions.append(getattr(HospitalityAssignment, name) == value)
    if filters.get("is_active") is not None:
        conditions.append(HospitalityAssignment.is_active.is_(bool(filters["is_active"])))

    total = (await db.execute(select(func.count(HospitalityAssignment.id)).where(*conditions))).scalar_one()
    stmt = (
        select(HospitalityAssignment)
        .where(*conditions)
        .order_by(LEVEL_ORDER, HospitalityAssignment.updated_at.desc(), HospitalityAssignment.id)
        .limit(limit)
        .offset((page - 1) * limit)
    )
    items = list((await db.execute(stmt)).scalars().all())
    return Page(items=items, page=page, per_page=limit, total_records=int(total))


async def get_assignment(db: AsyncSession, assignment_id: int) -> HospitalityAssignment | None:
    return await db.get(HospitalityAssignment, assignment_id)


async def delete_assignment(db: AsyncSession, assignment: HospitalityAssignment) -> None:
    async with atomic(db):
        await db.delete(assignment)


async def hospitality_stats(db: AsyncSession) -> dict:
    total = (await db.execute(select(func.count(Hospitality.id)))).scalar_one()
    active = (await db.execute(select(func.count(Hospitality.id)).where(Hospitality.is_active.is_(True)))).scalar_one()
    assignments = (
        await db.execute(
            select(func.count(HospitalityAssignment.id)).where(HospitalityAssignment.is_active.is_(True))
        )
    ).scalar_one()
    legacy = (await db.execute(select(func.count(LegacyTicketHospitality.id)))).scalar_one()

    by_level_rows = (
        await db.execute(
            select(HospitalityAssignment.level, func.count(HospitalityAssignment.id))
            .where(HospitalityAssignment.is_active.is_(True))
            .group_by(HospitalityAssignment.level)
        )
    ).all()
    by_level = sorted(by_level_rows, key=lambda row: Level.from_label(row[0]))

    assignment_count = func.count(HospitalityAssignment.id).label("assignment_count")
    top_rows = (
        await db.execute(
            select(Hospitality.id, Hospitality.name, assignment_count)
            .outerjoin(
                HospitalityAssignment,
                (HospitalityAssignment.hospitality_id == Hospitality.id) & HospitalityAssignment.is_active.is_(True),
            )
            .group_by(Hospitality.id, Hospitality.name)
            .order_by(assignment_count.desc(), Hospitality.id)
            .limit(5)
        )
    ).all()

    return {
        "total_hospitalities": int(total),
        "active_hospitalities": int(active),
        "total_assignments": int(assignments),
        "legacy_assignments": int(legacy),
        "assignments_by_level": [{"level": level, "count": int(count)} for level, count in by_level],
        "top_hospitalities": [
            {"id": row_id, "name": name, "assignment_count": int(count)} for row_id, name, count in top_rows
        ],
    }
