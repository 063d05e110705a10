from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_actor_id, http_error_for
from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.markup import (
    MarkupRuleBatchRequest,
    MarkupRuleListOut,
    MarkupRuleOut,
    MarkupRuleUpdateRequest,
    MarkupRuleUpsertRequest,
)
from app.services.markup_resolution import resolve_markup
from app.services.markup_rules import (
    batch_upsert_rules,
    delete_rule,
    get_rule,
    list_rules,
    list_rules_for_sport,
    update_rule,
    upsert_rule,
)
from app.services.scope import TicketAncestry

router = APIRouter()
settings = get_settings()


async def _rule_or_404(db: AsyncSession, rule_id: int):
    rule = await get_rule(db, rule_id)
    if rule is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Markup rule not found")
    return rule


@router.get("", response_model=MarkupRuleListOut)
async def list_markup_rules(
    level: str | None = Query(None),
    sport_type: str | None = Query(None, max_length=100),
    tournament_id: str | None = Query(None, max_length=100),
    team_id: str | None = Query(None, max_length=100),
    event_id: str | None = Query(None, max_length=100),
    is_active: bool | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.admin_list_default_limit, ge=1, le=settings.admin_list_max_limit),
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> MarkupRuleListOut:
    filters = {
        "level": level,
        "sport_type": sport_type,
        "tournament_id": tournament_id,
        "team_id": team_id,
        "event_id": event_id,
        "is_active": is_active,
    }
    try:
        result = await list_rules(db, filters, page=page, limit=limit)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return MarkupRuleListOut(
        items=[MarkupRuleOut.model_validate(rule) for rule in result.items],
        pagination=result.pagination(),
    )


@router.get("/sports/{sport_type}", response_model=list[MarkupRuleOut])
async def list_markup_rules_for_sport(
    sport_type: str,
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> list[MarkupRuleOut]:
    rules = await list_rules_for_sport(db, sport_type)
    return [MarkupRuleOut.model_validate(rule) for rule in rules]


@router.get("/resolve")
async def preview_markup(
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
    result = await resolve_markup(db, ancestry)
    return {"ticket_id": ancestry.ticket_id, "markup": result.to_dict() if result is not None else None}


@router.post("", response_model=MarkupRuleOut)
async def upsert_markup_rule(
    payload: MarkupRuleUpsertRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: int = Depends(get_actor_id),
) -> MarkupRuleOut:
    data = payload.model_dump()
    try:
        rule = await upsert_rule(
            db,
            data,
            payload.markup_type,
            payload.markup_amount,
            actor_id,
            display_names=data,
            is_active=payload.is_active,
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    await db.commit()
    return MarkupRuleOut.model_validate(rule)


@router.post("/batch", response_model=list[MarkupRuleOut])
async def batch_upsert_markup_rules(
    payload: MarkupRuleBatchRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: int = Depends(get_actor_id),
) -> list[MarkupRuleOut]:
    try:
        rules = await batch_upsert_rules(db, [entry.model_dump() for entry in payload.rules], actor_id)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    await db.commit()
    return [MarkupRuleOut.model_validate(rule) for rule in rules]


@router.get("/{rule_id}", response_model=MarkupRuleOut)
async def get_markup_rule(
    rule_id: int,
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> MarkupRuleOut:
    return MarkupRuleOut.model_validate(await _rule_or_404(db, rule_id))


@router.put("/{rule_id}", response_model=MarkupRuleOut)
async def update_markup_rule(
    rule_id: int,
    payload: MarkupRuleUpdateRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: int = Depends(get_actor_id),
) -> MarkupRuleOut:
    rule = await _rule_or_404(db, rule_id)
    try:
        rule = await update_rule(
            db,
            rule,
            actor_id=actor_id,
            markup_type=payload.markup_type,
            markup_amount=payload.markup_amount,
            is_active=payload.is_active,
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    await db.commit()
    return MarkupRuleOut.model_validate(rule)


@router.delete("/{rule_id}")
async def delete_markup_rule(
    rule_id: int,
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> dict:
    rule = await _rule_or_404(db, rule_id)
    await delete_rule(db, rule)
    await db.commit()
    return {"status": "deleted", "id": rule_id}
