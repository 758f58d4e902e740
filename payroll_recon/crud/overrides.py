# payroll_recon/crud/overrides.py
from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Sequence

from payroll_recon.core.errors import InputError, NotFoundError
from payroll_recon.db.store import RecordStore
from payroll_recon.models.agent import Agent, AgentManager
from payroll_recon.models.payscale import FIXED_AMOUNT, ManagerAgentOverride
from payroll_recon.models.plan import Plan
from payroll_recon.schemas.reference import OverrideIn

logger = logging.getLogger(__name__)


async def _get_manager(store: RecordStore, manager_id: uuid.UUID) -> Agent:
    manager = await store.get(Agent, manager_id)
    if manager is None:
        raise NotFoundError("Manager not found")
    if not manager.is_manager:
        raise InputError("Agent is not a manager")
    return manager


async def assigned_agents(store: RecordStore, manager_id: uuid.UUID) -> list[Agent]:
    """Agents reporting to `manager_id`, i.e. the only valid override targets."""
    edges = await store.select(AgentManager, AgentManager.manager_id == manager_id)
    ids = [e.agent_id for e in edges]
    if not ids:
        return []
    return await store.select(Agent, Agent.id.in_(ids), order_by=(Agent.name, Agent.identifier))


async def list_overrides(store: RecordStore, manager_id: uuid.UUID) -> list[ManagerAgentOverride]:
    await _get_manager(store, manager_id)
    return await store.select(ManagerAgentOverride, ManagerAgentOverride.manager_id == manager_id)


async def replace_overrides(
    store: RecordStore,
    manager_id: uuid.UUID,
    overrides: Sequence[OverrideIn],
) -> list[ManagerAgentOverride]:
    """
    Replace every override of a manager.

    Zero values mean "no override" and are dropped. Repeated (agent, plan)
    pairs keep the last value.
    """
    await _get_manager(store, manager_id)

    allowed = {a.id for a in await assigned_agents(store, manager_id)}
    plan_ids = {p.id for p in await store.select(Plan)}

    wanted: dict[tuple[uuid.UUID, uuid.UUID], Decimal] = {}
    for o in overrides:
        if o.agent_id not in allowed:
            raise InputError(f"Agent {o.agent_id} is not assigned to this manager")
        if o.plan_id not in plan_ids:
            raise InputError(f"Unknown plan id: {o.plan_id}")
        wanted[(o.agent_id, o.plan_id)] = o.commission_value

    rows = [
        {
            "manager_id": manager_id,
            "agent_id": agent_id,
            "plan_id": plan_id,
            "commission_type": FIXED_AMOUNT,
            "commission_value": value,
        }
        for (agent_id, plan_id), value in wanted.items()
        if value != 0
    ]

    removed = await store.delete(ManagerAgentOverride, ManagerAgentOverride.manager_id == manager_id)
    await store.insert(ManagerAgentOverride, rows)

    logger.info("Manager %s overrides replaced: %s removed, %s stored", manager_id, removed, len(rows))
    return await store.select(ManagerAgentOverride, ManagerAgentOverride.manager_id == manager_id)
