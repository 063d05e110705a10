"""Hospitality resolution: additive across levels, deduplicated by service."""
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.hospitality import Hospitality
from app.services.hospitality_admin import create_hospitality, update_hospitality, upsert_assignment
from app.services.hospitality_resolution import resolve_hospitalities, resolve_hospitalities_for_event
from app.services.legacy_markups import assign_ticket_hospitalities
from app.services.resolution_types import ResolutionSourceName
from app.services.scope import EventAncestry, Level, TicketAncestry

EVENT = EventAncestry(sport_type="soccer", tournament_id="T1", team_id="TM1", event_id="E1")
TICKET = EVENT.for_ticket("K1")


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------

async def _seed_hospitality(db_session: AsyncSession, name: str, sort_order: int = 0) -> Hospitality:
    return await create_hospitality(db_session, {"name": name, "sort_order": sort_order}, actor_id=1)


# ---------------------------------------------------------------------------
# single ticket
# ---------------------------------------------------------------------------

async def test_services_from_every_level_are_combined(db_session: AsyncSession):
    lounge = await _seed_hospitality(db_session, "Lounge", sort_order=2)
    parking = await _seed_hospitality(db_session, "Parking", sort_order=1)
    meal = await _seed_hospitality(db_session, "Meal", sort_order=3)
    await upsert_assignment(db_session, {"sport_type": "soccer"}, lounge.id, actor_id=1)
    await upsert_assignment(db_session, {"sport_type": "soccer", "team_id": "TM1"}, parking.id, actor_id=1)
    await upsert_assignment(db_session, {"event_id": "E1", "ticket_id": "K1"}, meal.id, actor_id=1)

    records = await resolve_hospitalities(db_session, TICKET)

    assert [record.hospitality_id for record in records] == [parking.id, lounge.id, meal.id]
    assert [record.level for record in records] == [Level.TEAM, Level.SPORT, Level.TICKET]


async def test_duplicate_service_keeps_most_specific_level(db_session: AsyncSession):
    lounge = await _seed_hospitality(db_session, "Lounge")
    await upsert_assignment(db_session, {"sport_type": "soccer"}, lounge.id, actor_id=1)
    event_assignment = await upsert_assignment(
        db_session, {"sport_type": "soccer", "event_id": "E1"}, lounge.id, actor_id=1
    )

    records = await resolve_hospitalities(db_session, TICKET)

    assert len(records) == 1
    assert records[0].level is Level.EVENT
    assert records[0].assignment_id == event_assignment.id


async def test_legacy_link_wins_tie_with_ticket_assignment(db_session: AsyncSession):
    lounge = await _seed_hospitality(db_session, "Lounge")
    await upsert_assignment(db_session, {"event_id": "E1", "ticket_id": "K1"}, lounge.id, actor_id=1)
    await assign_ticket_hospitalities(db_session, "E1", "K1", [lounge.id], actor_id=1)

    records = await resolve_hospitalities(db_session, TICKET)

    assert len(records) == 1
    assert records[0].source is ResolutionSourceName.LEGACY
    assert records[0].level is Level.TICKET


async def test_inactive_services_and_assignments_are_hidden(db_session: AsyncSession):
    retired = await _seed_hospitality(db_session, "Retired")
    paused = await _seed_hospitality(db_session, "Paused")
    await upsert_assignment(db_session, {"sport_type": "soccer"}, retired.id, actor_id=1)
    await upsert_assignment(db_session, {"sport_type": "soccer"}, paused.id, actor_id=1, is_active=False)
    await assign_ticket_hospitalities(db_session, "E1", "K1", [retired.id], actor_id=1)
    await update_hospitality(db_session, retired, {"is_active": False}, actor_id=1)

    assert await resolve_hospitalities(db_session, TICKET) == []


async def test_sorting_falls_back_to_name(db_session: AsyncSession):
    bar = await _seed_hospitality(db_session, "Bar")
    atrium = await _seed_hospitality(db_session, "Atrium")
    await upsert_assignment(db_session, {"sport_type": "soccer"}, bar.id, actor_id=1)
    await upsert_assignment(db_session, {"sport_type": "soccer"}, atrium.id, actor_id=1)

    records = await resolve_hospitalities(db_session, TICKET)
    assert [record.name for record in records] == ["Atrium", "Bar"]


async def test_nothing_assigned_returns_empty_list(db_session: AsyncSession):
    await _seed_hospitality(db_session, "Lounge")
    assert await resolve_hospitalities(db_session, TICKET) == []


# ---------------------------------------------------------------------------
# batch
# ---------------------------------------------------------------------------

async def test_ticket_level_assignment_stays_with_its_ticket(db_session: AsyncSession):
    lounge = await _seed_hospitality(db_session, "Lounge")
    meal = await _seed_hospitality(db_session, "Meal")
    await upsert_assignment(db_session, {"sport_type": "soccer"}, lounge.id, actor_id=1)
    await upsert_assignment(db_session, {"event_id": "E1", "ticket_id": "K1"}, meal.id, actor_id=1)

    resolved = await resolve_hospitalities_for_event(db_session, EVENT, ["K1", "K2"])

    assert {record.hospitality_id for record in resolved["K1"]} == {lounge.id, meal.id}
    assert [record.hospitality_id for record in resolved["K2"]] == [lounge.id]


async def test_legacy_links_stay_with_their_ticket(db_session: AsyncSession):
    meal = await _seed_hospitality(db_session, "Meal")
    await assign_ticket_hospitalities(db_session, "E1", "K2", [meal.id], actor_id=1)

    resolved = await resolve_hospitalities_for_event(db_session, EVENT, ["K1", "K2"])

    assert resolved["K1"] == []
    assert [record.hospitality_id for record in resolved["K2"]] == [meal.id]


async def test_batch_matches_single_resolution(db_session: AsyncSession):
    lounge = await _seed_hospitality(db_session, "Lounge", sort_order=1)
    meal = await _seed_hospitality(db_session, "Meal", sort_order=2)
    parking = await _seed_hospitality(db_session, "Parking", sort_order=3)
    await upsert_assignment(db_session, {"sport_type": "soccer"}, lounge.id, actor_id=1)
    await upsert_assignment(db_session, {"sport_type": "soccer", "event_id": "E1"}, lounge.id, actor_id=1)
    await upsert_assignment(db_session, {"event_id": "E1", "ticket_id": "K2"}, meal.id, actor_id=1)
    await assign_ticket_hospitalities(db_session, "E1", "K3", [parking.id], actor_id=1)

    ticket_ids = ["K1", "K2", "K3"]
    batch = await resolve_hospitalities_for_event(db_session, EVENT, ticket_ids)

    for ticket_id in ticket_ids:
        assert batch[ticket_id] == await resolve_hospitalities(db_session, EVENT.for_ticket(ticket_id))


async def test_batch_issues_one_query_per_source(db_session: AsyncSession, sql_statements: list[str]):
    lounge = await _seed_hospitality(db_session, "Lounge", sort_order=1)
    meal = await _seed_hospitality(db_session, "Meal", sort_order=2)
    await upsert_assignment(db_session, {"sport_type": "soccer"}, lounge.id, actor_id=1)
    await upsert_assignment(db_session, {"event_id": "E1", "ticket_id": "K3"}, meal.id, actor_id=1)
    await assign_ticket_hospitalities(db_session, "E1", "K4", [meal.id], actor_id=1)

    for count in (1, 50):
        sql_statements.clear()
        resolved = await resolve_hospitalities_for_event(db_session, EVENT, [f"K{index}" for index in range(count)])
        assert len(resolved) == count
        assert len(sql_statements) == 2


async def test_batch_with_no_tickets_is_empty(db_session: AsyncSession):
    assert await resolve_hospitalities_for_event(db_session, EVENT, []) == {}


async def test_event_from_other_sport_sees_nothing(db_session: AsyncSession):
    lounge = await _seed_hospitality(db_session, "Lounge")
    await upsert_assignment(db_session, {"sport_type": "soccer"}, lounge.id, actor_id=1)

    other = TicketAncestry(sport_type="tennis", event_id="E1", ticket_id="K1")
    assert await resolve_hospitalities(db_session, other) == []
