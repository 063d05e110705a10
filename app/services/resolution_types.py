"""Value types returned by markup and hospitality resolution."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.scope import DISPLAY_NAME_FIELDS, EventAncestry, Level

CENTS = Decimal("0.01")
MAX_PERCENTAGE = Decimal("100")


class MarkupType(StrEnum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"

    @classmethod
    def parse(cls, value: Any) -> "MarkupType":
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"markup_type must be 'fixed' or 'percentage', got {value!r}") from exc


class ResolutionSourceName(StrEnum):
    LEGACY = "legacy"
    RULES = "rules"


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (ArithmeticError, ValueError) as exc:
        raise ValueError(f"Not a valid amount: {value!r}") from exc


def require_cents(value: Decimal, field_name: str) -> Decimal:
    """Reject amounts that a two-decimal Numeric column would round on write."""
    if not value.is_finite():
        raise ValueError(f"{field_name} must be a finite number")
    if value.normalize().as_tuple().exponent < -2:
        raise ValueError(f"{field_name} cannot have more than 2 decimal places")
    return value


@dataclass(frozen=True, slots=True)
class MarkupResult:
    level: Level
    source: ResolutionSourceName
    markup_type: MarkupType
    markup_amount: Decimal
    rule_id: int | None = None
    display_names: dict[str, str | None] = field(default_factory=dict)
    # Populated for legacy rows, which store the computed USD figures.
    markup_price_usd: Decimal | None = None
    base_price_usd: Decimal | None = None
    final_price_usd: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.label,
            "source": self.source.value,
            "markup_type": self.markup_type.value,
            "markup_amount": float(self.markup_amount),
            "markup_percentage": float(self.markup_amount) if self.markup_type is MarkupType.PERCENTAGE else None,
            "rule_id": self.rule_id,
            **{name: self.display_names.get(name) for name in DISPLAY_NAME_FIELDS},
            "markup_price_usd": float(self.markup_price_usd) if self.markup_price_usd is not None else None,
            "base_price_usd": float(self.base_price_usd) if self.base_price_usd is not None else None,
            "final_price_usd": float(self.final_price_usd) if self.final_price_usd is not None else None,
        }


def apply_markup(base_price: Decimal | float | str, result: MarkupResult | None) -> Decimal:
    """Price after markup, rounded half-up to cents. Base price comes from the caller."""
    base = to_decimal(base_price)
    if result is None:
        return base.quantize(CENTS, rounding=ROUND_HALF_UP)
    if result.markup_type is MarkupType.PERCENTAGE:
        marked_up = base + base * result.markup_amount / Decimal(100)
    else:
        marked_up = base + result.markup_amount
    return marked_up.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class HospitalityRecord:
    hospitality_id: int
    name: str
    description: str | None
    sort_order: int
    level: Level
    source: ResolutionSourceName
    assignment_id: int | None = None
    custom_price_usd: Decimal | None = None

    @property
    def display_key(self) -> tuple[int, str, int]:
        return (self.sort_order, self.name, self.hospitality_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hospitality_id": self.hospitality_id,
            "name": self.name,
            "description": self.description,
            "sort_order": self.sort_order,
            "level": self.level.label,
            "source": self.source.value,
            "assignment_id": self.assignment_id,
            "custom_price_usd": float(self.custom_price_usd) if self.custom_price_usd is not None else None,
        }


class MarkupSource(Protocol):
    """One link in the markup chain. Answers only for tickets it has a markup for."""

    name: ResolutionSourceName

    async def load(
        self, db: AsyncSession, ancestry: EventAncestry, ticket_ids: Sequence[str]
    ) -> dict[str, MarkupResult]: ...


class HospitalitySource(Protocol):
    """Contributes hospitality records per ticket; every source is consulted."""

    name: ResolutionSourceName

    async def load(
        self, db: AsyncSession, ancestry: EventAncestry, ticket_ids: Sequence[str]
    ) -> dict[str, list[HospitalityRecord]]: ...
