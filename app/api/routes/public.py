from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import http_error_for, parse_ticket_ids
from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.hospitality import HospitalityOut
from app.services.hospitality_admin import list_hospitalities
from app.services.hospitality_resolution import resolve_hospitalities, resolve_hospitalities_for_event
from app.services.markup_resolution import resolve_markup, resolve_markups_for_event
from app.services.resolution_types import apply_markup
from app.services.scope import EventAncestry, TicketAncestry

router = APIRouter()
settings = get_settings()


def _event_ancestry(event_id: str, sport_type: str, tournament_id: str | None, team_id: str | None) -> EventAncestry:
    try:
        return EventAncestry(sport_type=sport_type, event_id=event_id, tournament_id=tournament_id, team_id=team_id)
    except ValueError as exc:
        raise http_error_for(exc) from exc


def _ticket_ancestry(
    event_id: str, ticket_id: str, sport_type: str, tournament_id: str | None, team_id: str | None
) -> TicketAncestry:
    try:
        return TicketAncestry(
            sport_type=sport_type,
            event_id=event_id,
            ticket_id=ticket_id,
            tournament_id=tournament_id,
            team_id=team_id,
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc


@router.get("/events/{event_id}/markups")
async def event_markups(
    event_id: str,
    sport_type: str = Query(..., max_length=100),
    tournament_id: str | None = Query(None, max_length=100),
    team_id: str | None = Query(None, max_length=100),
    ticket_ids: str | None = Query(None, description="Comma-separated ticket ids"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    ancestry = _event_ancestry(event_id, sport_type, tournament_id, team_id)
    ids = parse_ticket_ids(ticket_ids, max_tickets=settings.event_batch_max_tickets)
    resolved = await resolve_markups_for_event(db, ancestry, ids)
    return {
        "event_id": ancestry.event_id,
        "markups": {
            ticket_id: result.to_dict() if result is not None else None for ticket_id, result in resolved.items()
        },
    }


@router.get("/events/{event_id}/tickets/{ticket_id}/markup")
async def ticket_markup(
    event_id: str,
    ticket_id: str,
    sport_type: str = Query(..., max_length=100),
    tournament_id: str | None = Query(None, max_length=100),
    team_id: str | None = Query(None, max_length=100),
    base_price_usd: Decimal | None = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
) -> dict:
    ancestry = _ticket_ancestry(event_id, ticket_id, sport_type, tournament_id, team_id)
    result = await resolve_markup(db, ancestry)
    payload: dict = {
        "event_id": ancestry.event_id,
        "ticket_id": ancestry.ticket_id,
        "markup": result.to_dict() if result is not None else None,
    }
    if base_price_usd is not None:
        payload["final_price_usd"] = float(apply_markup(base_price_usd, result))
    return payload


@router.get("/events/{event_id}/hospitalities")
async def event_hospitalities(
    event_id: str,
    sport_type: str = Query(..., max_length=100),
    tournament_id: str | None = Query(None, max_length=100),
    team_id: str | None = Query(None, max_length=100),
    ticket_ids: str | None = Query(None, description="Comma-separated ticket ids"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    ancestry = _event_ancestry(event_id, sport_type, tournament_id, team_id)
    ids = parse_ticket_ids(ticket_ids, max_tickets=settings.event_batch_max_tickets)
    resolved = await resolve_hospitalities_for_event(db, ancestry, ids)
    return {
        "event_id": ancestry.event_id,
        "hospitalities": {
            ticket_id: [record.to_dict() for record in records] for ticket_id, records in resolved.items()
        },
    }


@router.get("/events/{event_id}/tickets/{ticket_id}/hospitalities")
async def ticket_hospitalities(
    event_id: str,
    ticket_id: str,
    sport_type: str = Query(..., max_length=100),
    tournament_id: str | None = Query(None, max_length=100),
    team_id: str | None = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
) -> dict:
    ancestry = _ticket_ancestry(event_id, ticket_id, sport_type, tournament_id, team_id)
    records = await resolve_hospitalities(db, ancestry)
    return {
        "event_id": ancestry.event_id,
        "ticket_id": ancestry.ticket_id,
        "hospitalities": [record.to_dict() for record in records],
    }


@router.get("/hospitalities", response_model=list[HospitalityOut])
async def active_hospitalities(db: AsyncSession = Depends(get_db)) -> list[HospitalityOut]:
    rows = await list_hospitalities(db, active_only=True)
    return [HospitalityOut.model_validate(row) for row in rows]
