from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.legacy import LegacyTicketHospitality
from app.services.hospitality_admin import create_hospitality
from app.services.legacy_markups import (
    assign_ticket_hospitalities,
    batch_assign_ticket_hospitalities,
    batch_upsert_ticket_markups,
    build_ticket_markup_values,
    delete_ticket_markup,
    delete_ticket_markups_for_event,
    list_ticket_markups,
    remove_event_ticket_hospitalities,
)


async def _linked_ids(db_session: AsyncSession, event_id: str, ticket_id: str) -> set[int]:
    stmt = select(LegacyTicketHospitality.hospitality_id).where(
        LegacyTicketHospitality.event_id == event_id,
        LegacyTicketHospitality.ticket_id == ticket_id,
    )
    return set((await db_session.execute(stmt)).scalars().all())


# ---------------------------------------------------------------------------
# price computation
# ---------------------------------------------------------------------------

def test_percentage_markup_values():
    values = build_ticket_markup_values(
        "E1", {"ticket_id": "K1", "base_price_usd": "200", "markup_type": "percentage", "markup_amount": "12.5"}
    )
    assert values["markup_type"] == "percentage"
    assert values["markup_percentage"] == Decimal("12.5")
    assert values["markup_price_usd"] == Decimal("25.00")
    assert values["final_price_usd"] == Decimal("225.00")


def test_fixed_markup_values():
    values = build_ticket_markup_values("E1", {"ticket_id": "K1", "base_price_usd": "99.90", "markup_amount": "10"})
    assert values["markup_type"] == "fixed"
    assert values["markup_percentage"] is None
    assert values["markup_price_usd"] == Decimal("10.00")
    assert values["final_price_usd"] == Decimal("109.90")


@pytest.mark.parametrize(
    "entry",
    [
        {"ticket_id": "", "base_price_usd": "10", "markup_amount": "1"},
        {"ticket_id": "K1", "base_price_usd": "-10", "markup_amount": "1"},
        {"ticket_id": "K1", "base_price_usd": "10", "markup_type": "percentage", "markup_amount": "120"},
        {"ticket_id": "K1", "base_price_usd": "NaN", "markup_amount": "1"},
        {"ticket_id": "K1", "base_price_usd": "10.005", "markup_amount": "1"},
    ],
)
def test_invalid_entries_are_rejected(entry):
    with pytest.raises(ValueError):
        build_ticket_markup_values("E1", entry)


# ---------------------------------------------------------------------------
# ticket_markups
# ---------------------------------------------------------------------------

async def test_batch_upsert_overwrites_existing_ticket(db_session: AsyncSession):
    await batch_upsert_ticket_markups(
        db_session,
        "E1",
        [
            {"ticket_id": "K1", "base_price_usd": "100", "markup_amount": "5"},
            {"ticket_id": "K2", "base_price_usd": "100", "markup_amount": "6"},
        ],
        actor_id=1,
    )
    count = await batch_upsert_ticket_markups(
        db_session,
        "E1",
        [{"ticket_id": "K1", "base_price_usd": "100", "markup_type": "percentage", "markup_amount": "20"}],
        actor_id=2,
    )

    rows = await list_ticket_markups(db_session, "E1")

    assert count == 1
    assert [row.ticket_id for row in rows] == ["K1", "K2"]
    assert rows[0].markup_type == "percentage"
    assert rows[0].final_price_usd == Decimal("120")
    assert rows[0].updated_by == 2
    assert rows[1].final_price_usd == Decimal("106")


async def test_batch_upsert_requires_event(db_session: AsyncSession):
    with pytest.raises(ValueError):
        await batch_upsert_ticket_markups(db_session, " ", [], actor_id=1)


async def test_delete_ticket_markup(db_session: AsyncSession):
    await batch_upsert_ticket_markups(
        db_session, "E1", [{"ticket_id": "K1", "base_price_usd": "100", "markup_amount": "5"}], actor_id=1
    )

    assert await delete_ticket_markup(db_session, "E1", "K1") is True
    assert await delete_ticket_markup(db_session, "E1", "K1") is False
    assert await list_ticket_markups(db_session, "E1") == []


async def test_delete_ticket_markups_for_event_leaves_other_events(db_session: AsyncSession):
    entries = [
        {"ticket_id": "K1", "base_price_usd": "100", "markup_amount": "5"},
        {"ticket_id": "K2", "base_price_usd": "100", "markup_amount": "5"},
    ]
    await batch_upsert_ticket_markups(db_session, "E1", entries, actor_id=1)
    await batch_upsert_ticket_markups(db_session, "E2", entries[:1], actor_id=1)

    assert await delete_ticket_markups_for_event(db_session, "E1") == 2
    assert await list_ticket_markups(db_session, "E1") == []
    assert [row.ticket_id for row in await list_ticket_markups(db_session, "E2")] == ["K1"]


# ---------------------------------------------------------------------------
# ticket_hospitalities
# ---------------------------------------------------------------------------

async def test_assign_ticket_hospitalities_replaces_set(db_session: AsyncSession):
    lounge = await create_hospitality(db_session, {"name": "Lounge"}, actor_id=1)
    meal = await create_hospitality(db_session, {"name": "Meal"}, actor_id=1)

    first = await assign_ticket_hospitalities(db_session, "E1", "K1", [lounge.id, meal.id], actor_id=1)
    second = await assign_ticket_hospitalities(db_session, "E1", "K1", [meal.id], actor_id=1)

    assert (first.deleted_count, first.inserted_count) == (0, 2)
    assert (second.deleted_count, second.inserted_count) == (2, 1)
    assert await _linked_ids(db_session, "E1", "K1") == {meal.id}


async def test_assign_ticket_hospitalities_rolls_back_on_bad_id(db_session: AsyncSession):
    lounge = await create_hospitality(db_session, {"name": "Lounge"}, actor_id=1)
    await assign_ticket_hospitalities(db_session, "E1", "K1", [lounge.id], actor_id=1)

    with pytest.raises(IntegrityError):
        await assign_ticket_hospitalities(db_session, "E1", "K1", [999_999], actor_id=1)

    assert await _linked_ids(db_session, "E1", "K1") == {lounge.id}


async def test_batch_assign_replaces_named_tickets_only(db_session: AsyncSession):
    lounge = await create_hospitality(db_session, {"name": "Lounge"}, actor_id=1)
    meal = await create_hospitality(db_session, {"name": "Meal"}, actor_id=1)
    await assign_ticket_hospitalities(db_session, "E1", "K1", [lounge.id], actor_id=1)
    await assign_ticket_hospitalities(db_session, "E1", "K3", [lounge.id], actor_id=1)

    result = await batch_assign_ticket_hospitalities(
        db_session,
        "E1",
        {"K1": [meal.id], "K2": [lounge.id, meal.id]},
        actor_id=2,
    )

    assert (result.deleted_count, result.inserted_count) == (1, 3)
    assert await _linked_ids(db_session, "E1", "K1") == {meal.id}
    assert await _linked_ids(db_session, "E1", "K2") == {lounge.id, meal.id}
    assert await _linked_ids(db_session, "E1", "K3") == {lounge.id}


async def test_batch_assign_rolls_back_every_ticket_on_bad_id(db_session: AsyncSession):
    lounge = await create_hospitality(db_session, {"name": "Lounge"}, actor_id=1)
    await assign_ticket_hospitalities(db_session, "E1", "K1", [lounge.id], actor_id=1)

    with pytest.raises(IntegrityError):
        await batch_assign_ticket_hospitalities(db_session, "E1", {"K1": [], "K2": [999_999]}, actor_id=1)

    assert await _linked_ids(db_session, "E1", "K1") == {lounge.id}
    assert await _linked_ids(db_session, "E1", "K2") == set()


async def test_batch_assign_validates_input(db_session: AsyncSession):
    with pytest.raises(ValueError):
        await batch_assign_ticket_hospitalities(db_session, " ", {"K1": [1]}, actor_id=1)
    with pytest.raises(ValueError):
        await batch_assign_ticket_hospitalities(db_session, "E1", {"K1": ["abc"]}, actor_id=1)


async def test_remove_event_ticket_hospitalities(db_session: AsyncSession):
    lounge = await create_hospitality(db_session, {"name": "Lounge"}, actor_id=1)
    await batch_assign_ticket_hospitalities(db_session, "E1", {"K1": [lounge.id], "K2": [lounge.id]}, actor_id=1)
    await assign_ticket_hospitalities(db_session, "E2", "K1", [lounge.id], actor_id=1)

    assert await remove_event_ticket_hospitalities(db_session, "E1") == 2
    assert await _linked_ids(db_session, "E1", "K1") == set()
    assert await _linked_ids(db_session, "E2", "K1") == {lounge.id}
