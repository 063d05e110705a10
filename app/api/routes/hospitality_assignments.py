from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_actor_id, http_error_for
from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.hospitality import (
    AssignmentListOut,
    AssignmentOut,
    AssignmentRemoveRequest,
    AssignmentSetRequest,
    AssignmentUpsertRequest,
    ReplaceResultOut,
)
from app.services.hospitality_admin import (
    batch_upsert_assignments,
    delete_assignment,
    get_assignment,
    list_assignments,
    list_assignments_at_scope,
    remove_assignments_at_scope,
    replace_assignments_at_scope,
    upsert_assignment,
)
from app.services.hospitality_resolution import resolve_hospitalities
from app.services.scope import TicketAncestry

router = APIRouter()
settings = get_settings()


@router.get("", response_model=AssignmentListOut)
async def list_hospitality_assignments(
    level: str | None = Query(None),
    hospitality_id: int | None = Query(None),
    sport_type: str | None = Query(None, max_length=100),
    tournament_id: str | None = Query(None, max_length=100),
    team_id: str | None = Query(None, max_length=100),
    event_id: str | None = Query(None, max_length=100),
    ticket_id: str | None = Query(None, max_length=100),
    is_active: bool | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.admin_list_default_limit, ge=1, le=settings.admin_list_max_limit),
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> AssignmentListOut:
    filters = {
        "level": level,
        "hospitality_id": hospitality_id,
        "sport_type": sport_type,
        "tournament_id": tournament_id,
        "team_id": team_id,
        "event_id": event_id,
        "ticket_id": ticket_id,
        "is_active": is_active,
    }
    try:
        result = await list_assignments(db, filters, page=page, limit=limit)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return AssignmentListOut(
        items=[AssignmentOut.model_validate(row) for row in result.items],
        pagination=result.pagination(),
    )


@router.get("/at-scope", response_model=list[AssignmentOut])
async def list_hospitality_assignments_at_scope(
    sport_type: str | None = Query(None, max_length=100),
    tournament_id: str | None = Query(None, max_length=100),
    team_id: str | None = Query(None, max_length=100),
    event_id: str | None = Query(None, max_length=100),
    ticket_id: str | None = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> list[AssignmentOut]:
    scope_data = {
        "sport_type": sport_type,
        "tournament_id": tournament_id,
        "team_id": team_id,
        "event_id": event_id,
        "ticket_id": ticket_id,
    }
    try:
        rows = await list_assignments_at_scope(db, scope_data)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return [AssignmentOut.model_validate(row) for row in rows]


@router.get("/resolve")
async def preview_hospitalities(
    sport_type: str = Query(..., max_length=100),
    event_id: str = Query(..., max_length=100),
    ticket_id: str = Query(..., max_length=100),
    tournament_id: str | None = Query(None, max_length=100),
    team_id: str | None = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> dict:
    try:
        ancestry = TicketAncestry(
            sport_type=sport_type,
            tournament_id=tournament_id,
            team_id=team_id,
            event_id=event_id,
            ticket_id=ticket_id,
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    records = await resolve_hospitalities(db, ancestry)
    return {"ticket_id": ancestry.ticket_id, "hospitalities": [record.to_dict() for record in records]}


@router.post("", response_model=AssignmentOut)
async def upsert_hospitality_assignment(
    payload: AssignmentUpsertRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: int = Depends(get_actor_id),
) -> AssignmentOut:
    try:
        assignment = await upsert_assignment(
            db, payload.model_dump(), payload.hospitality_id, actor_id, is_active=payload.is_active
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    await db.commit()
    return AssignmentOut.model_validate(assignment)


@router.post("/batch", response_model=list[AssignmentOut])
async def batch_upsert_hospitality_assignments(
    payload: AssignmentSetRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: int = Depends(get_actor_id),
) -> list[AssignmentOut]:
    try:
        rows = await batch_upsert_assignments(db, payload.model_dump(), payload.hospitality_ids, actor_id)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    await db.commit()
    return [AssignmentOut.model_validate(row) for row in rows]


@router.put("/replace", response_model=ReplaceResultOut)
async def replace_hospitality_assignments(
    payload: AssignmentSetRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: int = Depends(get_actor_id),
) -> ReplaceResultOut:
    try:
        result = await replace_assignments_at_scope(db, payload.model_dump(), payload.hospitality_ids, actor_id)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    await db.commit()
    return ReplaceResultOut.model_validate(result)


@router.post("/remove")
async def remove_hospitality_assignments(
    payload: AssignmentRemoveRequest,
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> dict:
    try:
        removed = await remove_assignments_at_scope(db, payload.model_dump(), payload.hospitality_ids)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    await db.commit()
    return {"removed": removed}


@router.get("/{assignment_id}", response_model=AssignmentOut)
async def get_hospitality_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> AssignmentOut:
    assignment = await get_assignment(db, assignment_id)
    if assignment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    return AssignmentOut.model_validate(assignment)


@router.delete("/{assignment_id}")
async def delete_hospitality_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> dict:
    assignment = await get_assignment(db, assignment_id)
    if assignment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    await delete_assignment(db, assignment)
    await db.commit()
    return {"status": "deleted", "id": assignment_id}
