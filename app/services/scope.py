"""Scope keys for the sport > tournament > team > event > ticket hierarchy.

A scope addresses one rung of the hierarchy. Its ``level`` is decided by the
most specific field that is set; less specific fields may also be filled in
(the admin UI sends the full path) but never change the level.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from enum import IntEnum
from typing import Any

SCOPE_FIELDS: tuple[str, ...] = ("sport_type", "tournament_id", "team_id", "event_id", "ticket_id")
DISPLAY_NAME_FIELDS: tuple[str, ...] = ("sport_name", "tournament_name", "team_name", "event_name", "ticket_name")
SCOPE_KEY_SEPARATOR = "|"


class InvalidScopeError(ValueError):
    """Raised when a scope has no identifying field at all."""


class Level(IntEnum):
    """Hierarchy rung. Higher ordinal means more specific."""

    SPORT = 1
    TOURNAMENT = 2
    TEAM = 3
    EVENT = 4
    TICKET = 5

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def anchor_field(self) -> str:
        return _ANCHOR_FIELDS[self]

    @classmethod
    def from_label(cls, value: str) -> "Level":
        try:
            return cls[value.strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown level: {value!r}") from exc


_ANCHOR_FIELDS: dict[Level, str] = {
    Level.SPORT: "sport_type",
    Level.TOURNAMENT: "tournament_id",
    Level.TEAM: "team_id",
    Level.EVENT: "event_id",
    Level.TICKET: "ticket_id",
}

# Most specific first, the order derive_level inspects fields in.
LEVELS_MOST_SPECIFIC_FIRST: tuple[Level, ...] = tuple(sorted(Level, reverse=True))


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def derive_level(partial_scope: Mapping[str, Any]) -> Level:
    for level in LEVELS_MOST_SPECIFIC_FIRST:
        if _clean(partial_scope.get(level.anchor_field)) is not None:
            return level
    raise InvalidScopeError("At least one hierarchy level identifier must be provided (sport_type at minimum)")


@dataclass(frozen=True, slots=True)
class ScopeKey:
    sport_type: str | None = None
    tournament_id: str | None = None
    team_id: str | None = None
    event_id: str | None = None
    ticket_id: str | None = None

    def __post_init__(self) -> None:
        for name in SCOPE_FIELDS:
            object.__setattr__(self, name, _clean(getattr(self, name)))
        derive_level(self.as_dict())

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ScopeKey":
        return cls(**{name: data.get(name) for name in SCOPE_FIELDS})

    @classmethod
    def from_row(cls, row: Any) -> "ScopeKey":
        return cls(**{name: getattr(row, name) for name in SCOPE_FIELDS})

    @property
    def level(self) -> Level:
        return derive_level(self.as_dict())

    @property
    def scope_key(self) -> str:
        return SCOPE_KEY_SEPARATOR.join(getattr(self, name) or "" for name in SCOPE_FIELDS)

    @property
    def field_count(self) -> int:
        return sum(1 for name in SCOPE_FIELDS if getattr(self, name) is not None)

    def as_dict(self) -> dict[str, str | None]:
        return {name: getattr(self, name) for name in SCOPE_FIELDS}

    def covers(self, ancestry: "TicketAncestry") -> bool:
        """True when a rule stored at this scope applies to the ticket.

        The anchor field must equal the ticket's value. Any other field set on
        the scope must agree with the ticket wherever the ticket supplies one.
        """
        anchor = self.level.anchor_field
        for name in SCOPE_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            ticket_value = getattr(ancestry, name)
            if name == anchor:
                if value != ticket_value:
                    return False
            elif ticket_value is not None and value != ticket_value:
                return False
        return True


@dataclass(frozen=True, slots=True)
class EventAncestry:
    sport_type: str
    event_id: str
    tournament_id: str | None = None
    team_id: str | None = None

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, _clean(getattr(self, f.name)))
        if self.sport_type is None:
            raise InvalidScopeError("sport_type is required to resolve a ticket")
        if self.event_id is None:
            raise InvalidScopeError("event_id is required to resolve a ticket")

    def for_ticket(self, ticket_id: str) -> "TicketAncestry":
        return TicketAncestry(
            sport_type=self.sport_type,
            tournament_id=self.tournament_id,
            team_id=self.team_id,
            event_id=self.event_id,
            ticket_id=ticket_id,
        )


@dataclass(frozen=True, slots=True)
class TicketAncestry:
    sport_type: str
    event_id: str
    ticket_id: str
    tournament_id: str | None = None
    team_id: str | None = None

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, _clean(getattr(self, f.name)))
        if self.sport_type is None:
            raise InvalidScopeError("sport_type is required to resolve a ticket")
        if self.event_id is None:
            raise InvalidScopeError("event_id is required to resolve a ticket")
        if self.ticket_id is None:
            raise InvalidScopeError("ticket_id is required to resolve a ticket")

    @property
    def event(self) -> EventAncestry:
        return EventAncestry(
            sport_type=self.sport_type,
            tournament_id=self.tournament_id,
            team_id=self.team_id,
            event_id=self.event_id,
        )


def normalize_ticket_ids(ticket_ids: Iterable[Any]) -> list[str]:
    """Strip, drop blanks and de-duplicate while keeping caller order."""
    cleaned = (_clean(ticket_id) for ticket_id in ticket_ids)
    return list(dict.fromkeys(ticket_id for ticket_id in cleaned if ticket_id is not None))


def display_names_from(data: Mapping[str, Any] | None) -> dict[str, str | None]:
    data = data or {}
    return {name: _clean(data.get(name)) for name in DISPLAY_NAME_FIELDS}
