from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_actor_id, http_error_for
from app.core.database import get_db
from app.schemas.hospitality import ReplaceResultOut, TicketHospitalitiesBatchRequest, TicketHospitalitiesRequest
from app.schemas.markup import TicketMarkupBatchRequest, TicketMarkupOut
from app.services.legacy_markups import (
    assign_ticket_hospitalities,
    batch_assign_ticket_hospitalities,
    batch_upsert_ticket_markups,
    delete_ticket_markup,
    delete_ticket_markups_for_event,
    list_ticket_markups,
    remove_event_ticket_hospitalities,
)

router = APIRouter()


@router.get("/events/{event_id}/ticket-markups", response_model=list[TicketMarkupOut])
async def list_event_ticket_markups(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> list[TicketMarkupOut]:
    rows = await list_ticket_markups(db, event_id)
    return [TicketMarkupOut.model_validate(row) for row in rows]


@router.post("/events/{event_id}/ticket-markups", response_model=list[TicketMarkupOut])
async def upsert_event_ticket_markups(
    event_id: str,
    payload: TicketMarkupBatchRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: int = Depends(get_actor_id),
) -> list[TicketMarkupOut]:
    try:
        await batch_upsert_ticket_markups(db, event_id, [entry.model_dump() for entry in payload.markups], actor_id)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    await db.commit()
    rows = await list_ticket_markups(db, event_id)
    return [TicketMarkupOut.model_validate(row) for row in rows]


@router.delete("/events/{event_id}/tickets/{ticket_id}/markup")
async def delete_event_ticket_markup(
    event_id: str,
    ticket_id: str,
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> dict:
    deleted = await delete_ticket_markup(db, event_id, ticket_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket markup not found")
    await db.commit()
    return {"status": "deleted", "event_id": event_id, "ticket_id": ticket_id}


@router.put("/events/{event_id}/tickets/{ticket_id}/hospitalities", response_model=ReplaceResultOut)
async def replace_ticket_hospitalities(
    event_id: str,
    ticket_id: str,
    payload: TicketHospitalitiesRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: int = Depends(get_actor_id),
) -> ReplaceResultOut:
    result = await assign_ticket_hospitalities(db, event_id, ticket_id, payload.hospitality_ids, actor_id)
    await db.commit()
    return ReplaceResultOut.model_validate(result)


@router.delete("/events/{event_id}/ticket-markups")
async def delete_event_ticket_markups(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> dict:
    deleted_count = await delete_ticket_markups_for_event(db, event_id)
    await db.commit()
    return {"status": "deleted", "event_id": event_id, "deleted_count": deleted_count}


@router.put("/events/{event_id}/ticket-hospitalities", response_model=ReplaceResultOut)
async def replace_event_ticket_hospitalities(
    event_id: str,
    payload: TicketHospitalitiesBatchRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: int = Depends(get_actor_id),
) -> ReplaceResultOut:
    try:
        result = await batch_assign_ticket_hospitalities(db, event_id, payload.tickets, actor_id)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    await db.commit()
    return ReplaceResultOut.model_validate(result)


@router.delete("/events/{event_id}/ticket-hospitalities")
async def delete_event_ticket_hospitalities(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> dict:
    deleted_count = await remove_event_ticket_hospitalities(db, event_id)
    await db.commit()
    return {"status": "deleted", "event_id": event_id, "deleted_count": deleted_count}
