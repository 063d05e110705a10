from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.markup_rule import MarkupRule
from app.services.markup_resolution import resolve_markup
from app.services.markup_rules import (
    batch_upsert_rules,
    delete_rule,
    get_rule,
    list_rules,
    list_rules_for_sport,
    update_rule,
    upsert_rule,
    validate_markup,
)
from app.services.resolution_types import MarkupType
from app.services.scope import InvalidScopeError, TicketAncestry


async def _rule_count(db_session: AsyncSession) -> int:
    return (await db_session.execute(select(func.count(MarkupRule.id)))).scalar_one()


# ---------------------------------------------------------------------------
# validation
# ---------------------------------------------------------------------------

def test_validate_markup_accepts_bounds():
    assert validate_markup("fixed", "0") == (MarkupType.FIXED, Decimal("0"))
    assert validate_markup("PERCENTAGE", 100) == (MarkupType.PERCENTAGE, Decimal("100"))


@pytest.mark.parametrize(
    ("markup_type", "amount"),
    [
        ("fixed", "-1"),
        ("percentage", "100.01"),
        ("discount", "5"),
        ("fixed", "not-a-number"),
        ("fixed", "NaN"),
        ("percentage", "8.125"),
        ("fixed", "0.001"),
    ],
)
def test_validate_markup_rejects_bad_values(markup_type, amount):
    with pytest.raises(ValueError):
        validate_markup(markup_type, amount)


# ---------------------------------------------------------------------------
# upsert
# ---------------------------------------------------------------------------

async def test_sport_level_rule_round_trip(db_session: AsyncSession):
    rule = await upsert_rule(db_session, {"sport_type": "soccer"}, "percentage", 10, actor_id=1)

    assert rule.level == "sport"
    assert rule.sport_type == "soccer"
    assert (rule.tournament_id, rule.team_id, rule.event_id, rule.ticket_id) == (None, None, None, None)
    assert rule.markup_type == "percentage"
    assert rule.markup_amount == Decimal("10")
    assert rule.created_by == 1
    assert rule.is_active is True


async def test_upsert_overwrites_rule_at_same_scope(db_session: AsyncSession):
    first = await upsert_rule(
        db_session,
        {"sport_type": "soccer", "event_id": "E1"},
        "fixed",
        "5",
        actor_id=1,
        display_names={"event_name": "Derby"},
    )
    second = await upsert_rule(db_session, {"sport_type": " soccer", "event_id": "E1 "}, "percentage", "7.5", actor_id=2)

    assert second.id == first.id
    assert second.markup_type == "percentage"
    assert second.markup_amount == Decimal("7.5")
    assert second.updated_by == 2
    assert second.event_name is None
    assert await _rule_count(db_session) == 1


async def test_rules_at_different_scopes_coexist(db_session: AsyncSession):
    await upsert_rule(db_session, {"sport_type": "soccer", "team_id": "TM1"}, "fixed", "3", actor_id=1)
    await upsert_rule(db_session, {"team_id": "TM1"}, "fixed", "4", actor_id=1)
    assert await _rule_count(db_session) == 2


async def test_invalid_input_never_reaches_storage(db_session: AsyncSession):
    with pytest.raises(InvalidScopeError):
        await upsert_rule(db_session, {"sport_name": "Football"}, "fixed", "5", actor_id=1)
    with pytest.raises(ValueError):
        await upsert_rule(db_session, {"sport_type": "soccer"}, "percentage", "150", actor_id=1)
    assert await _rule_count(db_session) == 0


async def test_sub_cent_amount_is_rejected_not_rounded(db_session: AsyncSession):
    with pytest.raises(ValueError, match="2 decimal places"):
        await upsert_rule(db_session, {"sport_type": "tennis"}, "percentage", "8.125", actor_id=1)
    assert await _rule_count(db_session) == 0

    rule = await upsert_rule(db_session, {"sport_type": "tennis"}, "percentage", "8.130", actor_id=1)
    resolved = await resolve_markup(db_session, TicketAncestry(sport_type="tennis", event_id="E1", ticket_id="K1"))

    assert rule.markup_amount == Decimal("8.13")
    assert resolved.markup_amount == Decimal("8.13")


async def test_batch_upsert_is_all_or_nothing_on_validation(db_session: AsyncSession):
    entries = [
        {"sport_type": "soccer", "markup_type": "fixed", "markup_amount": "2"},
        {"sport_type": "tennis", "markup_type": "percentage", "markup_amount": "250"},
    ]
    with pytest.raises(ValueError):
        await batch_upsert_rules(db_session, entries, actor_id=1)
    assert await _rule_count(db_session) == 0

    entries[1]["markup_amount"] = "25"
    rules = await batch_upsert_rules(db_session, entries, actor_id=1)
    assert [rule.sport_type for rule in rules] == ["soccer", "tennis"]


# ---------------------------------------------------------------------------
# update / delete
# ---------------------------------------------------------------------------

async def test_update_rule_changes_only_given_fields(db_session: AsyncSession):
    rule = await upsert_rule(db_session, {"sport_type": "soccer"}, "fixed", "5", actor_id=1)

    updated = await update_rule(db_session, rule, actor_id=3, is_active=False)

    assert updated.markup_type == "fixed"
    assert updated.markup_amount == Decimal("5")
    assert updated.is_active is False
    assert updated.updated_by == 3

    with pytest.raises(ValueError):
        await update_rule(db_session, rule, actor_id=3, markup_type="percentage", markup_amount="101")


async def test_delete_rule(db_session: AsyncSession):
    rule = await upsert_rule(db_session, {"sport_type": "soccer"}, "fixed", "5", actor_id=1)
    rule_id = rule.id

    await delete_rule(db_session, rule)

    assert await get_rule(db_session, rule_id) is None


# ---------------------------------------------------------------------------
# listing
# ---------------------------------------------------------------------------

async def test_list_rules_orders_sport_first(db_session: AsyncSession):
    await upsert_rule(db_session, {"event_id": "E1", "ticket_id": "K1"}, "fixed", "5", actor_id=1)
    await upsert_rule(db_session, {"sport_type": "soccer", "event_id": "E1"}, "fixed", "4", actor_id=1)
    await upsert_rule(db_session, {"sport_type": "soccer"}, "fixed", "1", actor_id=1)
    await upsert_rule(db_session, {"sport_type": "soccer", "tournament_id": "T1"}, "fixed", "2", actor_id=1)

    page = await list_rules(db_session)
    assert [rule.level for rule in page.items] == ["sport", "tournament", "event", "ticket"]

    first = await list_rules(db_session, page=1, limit=3)
    assert first.total_pages == 2
    assert first.pagination()["has_more"] is True

    events = await list_rules(db_session, {"level": "event"})
    assert [rule.event_id for rule in events.items] == ["E1"]


async def test_list_rules_for_sport_skips_inactive(db_session: AsyncSession):
    await upsert_rule(db_session, {"sport_type": "soccer"}, "fixed", "1", actor_id=1)
    await upsert_rule(db_session, {"sport_type": "soccer", "team_id": "TM1"}, "fixed", "3", actor_id=1, is_active=False)
    await upsert_rule(db_session, {"sport_type": "tennis"}, "fixed", "1", actor_id=1)

    rules = await list_rules_for_sport(db_session, "soccer")
    assert [rule.level for rule in rules] == ["sport"]
