# payroll_recon/crud/plans.py
from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Optional

from payroll_recon.core.errors import InputError, NotFoundError
from payroll_recon.db.store import RecordStore
from payroll_recon.models.plan import Plan

logger = logging.getLogger(__name__)


async def list_plans(store: RecordStore) -> list[Plan]:
    return await store.select(Plan, order_by=(Plan.created_at, Plan.name))


async def get_plan(store: RecordStore, plan_id: uuid.UUID) -> Plan:
    plan = await store.get(Plan, plan_id)
    if plan is None:
        raise NotFoundError("Plan not found")
    return plan


async def add_plan(store: RecordStore, name: str) -> Optional[Plan]:
    """
    New plan with a 0 commission amount.
    A blank name is ignored and returns None. A duplicate name is a ConflictError.
    """
    clean = (name or "").strip()
    if not clean:
        return None
    (plan,) = await store.insert(Plan, [{"name": clean, "commission_amount": Decimal("0.00")}])
    logger.info("Added plan %r", clean)
    return plan


async def update_plan_commission(store: RecordStore, plan_id: uuid.UUID, commission_amount: Decimal) -> Plan:
    if commission_amount < 0:
        raise InputError("Commission amount must not be negative")
    await get_plan(store, plan_id)
    (plan,) = await store.update(Plan, Plan.id == plan_id, values={"commission_amount": commission_amount})
    logger.info("Plan %s commission amount set to %s", plan_id, commission_amount)
    return plan
