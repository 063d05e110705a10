"""Pre-hierarchy ticket-only tables. Still written by the legacy admin screens."""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin


class LegacyTicketMarkup(Base, TimestampMixin):
    __tablename__ = "ticket_markups"
    __table_args__ = (UniqueConstraint("event_id", "ticket_id", name="uq_ticket_markups_event_ticket"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    ticket_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    markup_type: Mapped[str] = mapped_column(String(16), nullable=False, default="fixed")
    # Always the USD amount, computed from the percentage for percentage rows.
    markup_price_usd: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    markup_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    base_price_usd: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    final_price_usd: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_by: Mapped[int | None] = mapped_column(Integer, nullable=True)


class LegacyTicketHospitality(Base):
    __tablename__ = "ticket_hospitalities"
    __table_args__ = (
        UniqueConstraint(
            "event_id", "ticket_id", "hospitality_id", name="uq_ticket_hospitalities_event_ticket_hospitality"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    ticket_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    hospitality_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("hospitalities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    custom_price_usd: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
