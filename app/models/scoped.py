"""Columns shared by every table addressed by a sport/tournament/team/event/ticket scope."""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column


class ScopeColumnsMixin:
    sport_type: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    tournament_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    team_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    event_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    ticket_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    # "sport|tournament|team|event|ticket" with empty segments for NULL.
    # Unique constraints go through this column because NULLs never collide.
    scope_key: Mapped[str] = mapped_column(String(520), nullable=False)
    level: Mapped[str] = mapped_column(String(16), nullable=False, index=True)

    # Display names for the admin UI only, never read by resolution.
    sport_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tournament_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    team_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    event_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ticket_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
