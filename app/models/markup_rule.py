from decimal import Decimal

from sqlalchemy import Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin
from app.models.scoped import ScopeColumnsMixin


class MarkupRule(Base, ScopeColumnsMixin, TimestampMixin):
    __tablename__ = "markup_rules"
    __table_args__ = (UniqueConstraint("scope_key", name="uq_markup_rules_scope_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    markup_type: Mapped[str] = mapped_column(String(16), nullable=False, default="fixed")
    markup_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
