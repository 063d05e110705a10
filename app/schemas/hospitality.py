from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.schemas.markup import PaginationOut, ScopeIn, ScopeOut


class HospitalityCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price_usd: Decimal | None = None
    is_active: bool = True
    sort_order: int = 0


class HospitalityUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price_usd: Decimal | None = None
    is_active: bool | None = None
    sort_order: int | None = None


class HospitalityOut(BaseModel):
    id: int
    name: str
    description: str | None
    price_usd: float | None
    is_active: bool
    sort_order: int

    model_config = {"from_attributes": True}


class LevelCount(BaseModel):
    level: str
    count: int


class TopHospitality(BaseModel):
    id: int
    name: str
    assignment_count: int


class HospitalityStatsOut(BaseModel):
    total_hospitalities: int
    active_hospitalities: int
    total_assignments: int
    legacy_assignments: int
    assignments_by_level: list[LevelCount]
    top_hospitalities: list[TopHospitality]


class AssignmentUpsertRequest(ScopeIn):
    hospitality_id: int
    is_active: bool = True


class AssignmentSetRequest(ScopeIn):
    hospitality_ids: list[int]


class AssignmentRemoveRequest(ScopeIn):
    # None removes every assignment at the scope.
    hospitality_ids: list[int] | None = None


class AssignmentOut(ScopeOut):
    id: int
    hospitality_id: int
    is_active: bool
    created_by: int | None
    updated_by: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AssignmentListOut(BaseModel):
    items: list[AssignmentOut]
    pagination: PaginationOut


class ReplaceResultOut(BaseModel):
    deleted_count: int
    inserted_count: int

    model_config = {"from_attributes": True}


class TicketHospitalitiesRequest(BaseModel):
    hospitality_ids: list[int]


class TicketHospitalitiesBatchRequest(BaseModel):
    tickets: dict[str, list[int]] = Field(min_length=1)
