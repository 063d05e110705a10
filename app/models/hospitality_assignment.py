from sqlalchemy import ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin
from app.models.scoped import ScopeColumnsMixin


class HospitalityAssignment(Base, ScopeColumnsMixin, TimestampMixin):
    __tablename__ = "hospitality_assignments"
    __table_args__ = (
        UniqueConstraint("hospitality_id", "scope_key", name="uq_hospitality_assignments_hospitality_scope"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hospitality_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("hospitalities.id", ondelete="CASCADE"), nullable=False, index=True
    )

    hospitality = relationship("Hospitality", back_populates="assignments")
