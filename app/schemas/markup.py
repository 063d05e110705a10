from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ScopeIn(BaseModel):
    sport_type: str | None = Field(default=None, max_length=100)
    tournament_id: str | None = Field(default=None, max_length=100)
    team_id: str | None = Field(default=None, max_length=100)
    event_id: str | None = Field(default=None, max_length=100)
    ticket_id: str | None = Field(default=None, max_length=100)

    sport_name: str | None = Field(default=None, max_length=255)
    tournament_name: str | None = Field(default=None, max_length=255)
    team_name: str | None = Field(default=None, max_length=255)
    event_name: str | None = Field(default=None, max_length=255)
    ticket_name: str | None = Field(default=None, max_length=255)


class ScopeOut(BaseModel):
    sport_type: str | None
    tournament_id: str | None
    team_id: str | None
    event_id: str | None
    ticket_id: str | None
    level: str
    sport_name: str | None
    tournament_name: str | None
    team_name: str | None
    event_name: str | None
    ticket_name: str | None


class MarkupRuleUpsertRequest(ScopeIn):
    markup_type: str = "fixed"
    markup_amount: Decimal
    is_active: bool = True


class MarkupRuleBatchRequest(BaseModel):
    rules: list[MarkupRuleUpsertRequest] = Field(min_length=1)


class MarkupRuleUpdateRequest(BaseModel):
    markup_type: str | None = None
    markup_amount: Decimal | None = None
    is_active: bool | None = None


class MarkupRuleOut(ScopeOut):
    id: int
    markup_type: str
    markup_amount: float
    is_active: bool
    created_by: int | None
    updated_by: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaginationOut(BaseModel):
    current_page: int
    per_page: int
    total_records: int
    total_pages: int
    has_more: bool


class MarkupRuleListOut(BaseModel):
    items: list[MarkupRuleOut]
    pagination: PaginationOut


class TicketMarkupIn(BaseModel):
    ticket_id: str = Field(min_length=1, max_length=100)
    base_price_usd: Decimal
    markup_type: str = "fixed"
    markup_amount: Decimal


class TicketMarkupBatchRequest(BaseModel):
    markups: list[TicketMarkupIn] = Field(min_length=1)


class TicketMarkupOut(BaseModel):
    id: int
    event_id: str
    ticket_id: str
    markup_type: str
    markup_price_usd: float
    markup_percentage: float | None
    base_price_usd: float
    final_price_usd: float
    created_by: int | None
    updated_by: int | None
    updated_at: datetime

    model_config = {"from_attributes": True}
