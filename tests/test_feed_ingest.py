# tests/test_feed_ingest.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from payroll_recon.core.commission_engine import generate_report
from payroll_recon.core.errors import InputError
from payroll_recon.core.feed_ingest import agent_name_from_identifier, parse_money
from payroll_recon.models.agent import Agent
from payroll_recon.models.plan import Plan
from payroll_recon.models.white_glove_entry import WhiteGloveEntry

INSTALLS = "Order Id,Plan Name,Payout,Day Of\nX1,100M,$50,2024-01-15\n"
WHITE_GLOVE = (
    "Order Number,Internet Speed,Agent Seller Information,Customer Name,Voice_Qty\n"
    "X1,100M,Rep: Jane Doe,Ann Smith,1\n"
)


def test_parse_money_and_agent_names():
    assert parse_money("$1,050.5") == Decimal("1050.50")
    assert parse_money("  ") is None
    with pytest.raises(ValueError):
        parse_money("fifty")

    assert agent_name_from_identifier("Rep: Jane Doe") == "Jane Doe"
    assert agent_name_from_identifier("Jane Doe") == "Jane Doe"


@pytest.mark.asyncio
async def test_single_matched_order_end_to_end(store):
    run = await generate_report(store, INSTALLS, WHITE_GLOVE)

    (plan,) = await store.select(Plan)
    assert plan.name == "100M"
    assert plan.commission_amount == Decimal("50.00")

    (agent,) = await store.select(Agent)
    assert agent.name == "Jane Doe"
    assert agent.identifier == "Rep: Jane Doe"

    (entry,) = await store.select(WhiteGloveEntry)
    assert entry.order_number == "X1"
    assert entry.customer_name == "Ann Smith"
    assert entry.voice_qty == 1
    assert entry.install_date.replace(tzinfo=None) == datetime(2024, 1, 15)

    # no personal payscale -> no credited accounts -> not reported
    assert run.lines == []
    assert len(run.matched) == 1


@pytest.mark.asyncio
async def test_resubmitting_feeds_keeps_one_entry_and_its_paid_flags(store):
    await generate_report(store, INSTALLS, WHITE_GLOVE)
    (entry,) = await store.select(WhiteGloveEntry)
    await store.update(
        WhiteGloveEntry, WhiteGloveEntry.id == entry.id, values={"frontend_paid": True, "backend_paid": True}
    )

    changed = WHITE_GLOVE.replace("Ann Smith", "Ann Jones")
    await generate_report(store, INSTALLS, changed)

    entries = await store.select(WhiteGloveEntry)
    assert len(entries) == 1
    assert entries[0].id == entry.id
    assert entries[0].customer_name == "Ann Jones"
    assert entries[0].frontend_paid is True
    assert entries[0].backend_paid is True


@pytest.mark.asyncio
async def test_unparsable_payout_rejects_before_any_write(store):
    bad = "Order Id,Plan Name,Payout,Day Of\nX1,100M,fifty,2024-01-15\n"

    with pytest.raises(InputError) as exc:
        await generate_report(store, bad, WHITE_GLOVE)

    assert "Payout" in exc.value.message
    assert await store.count(Plan) == 0
    assert await store.count(Agent) == 0
    assert await store.count(WhiteGloveEntry) == 0


@pytest.mark.asyncio
async def test_unparsable_install_date_is_rejected(store):
    bad = "Order Id,Plan Name,Payout,Day Of\nX1,100M,$50,not a date\n"

    with pytest.raises(InputError):
        await generate_report(store, bad, WHITE_GLOVE)
    assert await store.count(WhiteGloveEntry) == 0


@pytest.mark.asyncio
async def test_plan_without_payout_keeps_stored_amount(store):
    await store.insert(Plan, [{"name": "1G", "commission_amount": Decimal("75.00")}])
    installs = "Order Id,Plan Name,Payout,Day Of\nX1,100M,$50,\nX2,1G,,\n"
    wg = (
        "Order Number,Internet Speed,Agent Seller Information\n"
        "X1,100M,Rep: Jane Doe\n"
        "X2,1G,Rep: Jane Doe\n"
    )

    await generate_report(store, installs, wg)

    plans = {p.name: p.commission_amount for p in await store.select(Plan)}
    assert plans == {"100M": Decimal("50.00"), "1G": Decimal("75.00")}


@pytest.mark.asyncio
async def test_existing_agent_is_not_renamed_by_feed(store):
    await store.insert(Agent, [{"identifier": "Rep: Jane Doe", "name": "Janet D."}])

    await generate_report(store, INSTALLS, WHITE_GLOVE)

    (agent,) = await store.select(Agent)
    assert agent.name == "Janet D."


@pytest.mark.asyncio
async def test_missing_feed_content_is_an_input_error(store):
    with pytest.raises(InputError):
        await generate_report(store, "", WHITE_GLOVE)
