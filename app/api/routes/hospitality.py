from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_actor_id, http_error_for
from app.core.database import get_db
from app.schemas.hospitality import (
    HospitalityCreateRequest,
    HospitalityOut,
    HospitalityStatsOut,
    HospitalityUpdateRequest,
)
from app.services.hospitality_admin import (
    create_hospitality,
    delete_hospitality,
    get_hospitality,
    hospitality_stats,
    list_hospitalities,
    update_hospitality,
)

router = APIRouter()


async def _hospitality_or_404(db: AsyncSession, hospitality_id: int):
    hospitality = await get_hospitality(db, hospitality_id)
    if hospitality is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hospitality not found")
    return hospitality


@router.get("", response_model=list[HospitalityOut])
async def list_hospitality_services(
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> list[HospitalityOut]:
    rows = await list_hospitalities(db, active_only=active_only)
    return [HospitalityOut.model_validate(row) for row in rows]


@router.get("/stats", response_model=HospitalityStatsOut)
async def get_hospitality_stats(
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> HospitalityStatsOut:
    return HospitalityStatsOut(**await hospitality_stats(db))


@router.post("", response_model=HospitalityOut, status_code=status.HTTP_201_CREATED)
async def create_hospitality_service(
    payload: HospitalityCreateRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: int = Depends(get_actor_id),
) -> HospitalityOut:
    try:
        hospitality = await create_hospitality(db, payload.model_dump(), actor_id)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    await db.commit()
    return HospitalityOut.model_validate(hospitality)


@router.get("/{hospitality_id}", response_model=HospitalityOut)
async def get_hospitality_service(
    hospitality_id: int,
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> HospitalityOut:
    return HospitalityOut.model_validate(await _hospitality_or_404(db, hospitality_id))


@router.put("/{hospitality_id}", response_model=HospitalityOut)
async def update_hospitality_service(
    hospitality_id: int,
    payload: HospitalityUpdateRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: int = Depends(get_actor_id),
) -> HospitalityOut:
    hospitality = await _hospitality_or_404(db, hospitality_id)
    try:
        hospitality = await update_hospitality(db, hospitality, payload.model_dump(exclude_unset=True), actor_id)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    await db.commit()
    return HospitalityOut.model_validate(hospitality)


@router.delete("/{hospitality_id}")
async def delete_hospitality_service(
    hospitality_id: int,
    db: AsyncSession = Depends(get_db),
    _actor_id: int = Depends(get_actor_id),
) -> dict:
    hospitality = await _hospitality_or_404(db, hospitality_id)
    await delete_hospitality(db, hospitality)
    await db.commit()
    return {"status": "deleted", "id": hospitality_id}
