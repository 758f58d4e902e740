# tests/test_record_store.py
from __future__ import annotations

from decimal import Decimal

import pytest

from payroll_recon.core.errors import ConflictError, StoreError
from payroll_recon.models.plan import Plan


@pytest.mark.asyncio
async def test_upsert_collapses_duplicate_keys_last_wins(store):
    rows = [
        {"name": "100M", "commission_amount": Decimal("10")},
        {"name": "100M", "commission_amount": Decimal("30")},
        {"name": "1G", "commission_amount": Decimal("70")},
    ]
    stored = await store.upsert(Plan, rows, conflict_key="name")

    assert sorted(p.name for p in stored) == ["100M", "1G"]
    assert await store.count(Plan) == 2
    (plan,) = await store.select(Plan, Plan.name == "100M")
    assert plan.commission_amount == Decimal("30.00")


@pytest.mark.asyncio
async def test_upsert_update_fields(store):
    (original,) = await store.insert(Plan, [{"name": "100M", "commission_amount": Decimal("10")}])

    # insert-if-absent leaves the existing row alone
    await store.upsert(Plan, [{"name": "100M", "commission_amount": Decimal("99")}], conflict_key="name", update_fields=())
    (plan,) = await store.select(Plan)
    assert plan.commission_amount == Decimal("10.00")

    await store.upsert(
        Plan,
        [{"name": "100M", "commission_amount": Decimal("55")}],
        conflict_key="name",
        update_fields=("commission_amount",),
    )
    (plan,) = await store.select(Plan)
    assert plan.commission_amount == Decimal("55.00")
    assert plan.id == original.id


@pytest.mark.asyncio
async def test_unfiltered_update_and_delete_are_refused(store):
    await store.insert(Plan, [{"name": "100M"}])

    with pytest.raises(StoreError):
        await store.update(Plan, values={"commission_amount": Decimal("1")})
    with pytest.raises(StoreError):
        await store.delete(Plan)

    assert await store.count(Plan) == 1


@pytest.mark.asyncio
async def test_unique_violation_is_a_conflict_and_session_stays_usable(store):
    await store.insert(Plan, [{"name": "100M"}])

    with pytest.raises(ConflictError):
        await store.insert(Plan, [{"name": "100M"}])

    assert await store.count(Plan) == 1
    assert await store.delete(Plan, Plan.name == "100M") == 1
    assert await store.upsert(Plan, [], conflict_key="name") == []
