# payroll_recon/crud/agents.py
from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from payroll_recon.core.errors import InputError, NotFoundError
from payroll_recon.db.store import RecordStore
from payroll_recon.models.agent import Agent, AgentManager
from payroll_recon.models.payscale import ManagerPayscale, PersonalPayscale

logger = logging.getLogger(__name__)


async def list_agents(store: RecordStore) -> list[Agent]:
    return await store.select(Agent, order_by=(Agent.name, Agent.identifier))


async def get_agent(store: RecordStore, agent_id: uuid.UUID) -> Agent:
    agent = await store.get(Agent, agent_id)
    if agent is None:
        raise NotFoundError("Agent not found")
    return agent


async def _check_payscales(
    store: RecordStore,
    personal_payscale_id: Optional[uuid.UUID],
    manager_payscale_id: Optional[uuid.UUID],
) -> None:
    if personal_payscale_id is not None and await store.get(PersonalPayscale, personal_payscale_id) is None:
        raise NotFoundError("Personal payscale not found")
    if manager_payscale_id is not None and await store.get(ManagerPayscale, manager_payscale_id) is None:
        raise NotFoundError("Manager payscale not found")


def agent_values(
    *,
    name: str,
    identifier: str,
    is_manager: bool,
    personal_payscale_id: Optional[uuid.UUID],
    manager_payscale_id: Optional[uuid.UUID],
) -> dict:
    """Column values for an agent row. Non-managers never keep a manager payscale."""
    clean_name = (name or "").strip()
    clean_identifier = (identifier or "").strip()
    if not clean_name or not clean_identifier:
        raise InputError("Agent name and identifier are required")
    return {
        "name": clean_name,
        "identifier": clean_identifier,
        "is_manager": bool(is_manager),
        "personal_payscale_id": personal_payscale_id,
        "manager_payscale_id": manager_payscale_id if is_manager else None,
    }


async def add_agent(
    store: RecordStore,
    *,
    name: str,
    identifier: str,
    is_manager: bool = False,
    personal_payscale_id: Optional[uuid.UUID] = None,
    manager_payscale_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
) -> Agent:
    values = agent_values(
        name=name,
        identifier=identifier,
        is_manager=is_manager,
        personal_payscale_id=personal_payscale_id,
        manager_payscale_id=manager_payscale_id,
    )
    await _check_payscales(store, values["personal_payscale_id"], values["manager_payscale_id"])
    if user_id is not None:
        values["user_id"] = user_id

    (agent,) = await store.insert(Agent, [values])
    logger.info("Added agent %s (%r)", agent.id, agent.identifier)
    return agent


async def update_agent(
    store: RecordStore,
    agent_id: uuid.UUID,
    *,
    name: str,
    identifier: str,
    is_manager: bool = False,
    personal_payscale_id: Optional[uuid.UUID] = None,
    manager_payscale_id: Optional[uuid.UUID] = None,
    assigned_agent_ids: Sequence[uuid.UUID] = (),
) -> Agent:
    """
    Update the agent row, then replace the edges of agents reporting to it.

    Existing "reports to me" edges are always removed; new ones are written only
    when the agent is a manager. Edges where this agent reports to someone else
    are left alone.
    """
    await get_agent(store, agent_id)
    values = agent_values(
        name=name,
        identifier=identifier,
        is_manager=is_manager,
        personal_payscale_id=personal_payscale_id,
        manager_payscale_id=manager_payscale_id,
    )
    await _check_payscales(store, values["personal_payscale_id"], values["manager_payscale_id"])

    assigned = list(dict.fromkeys(a for a in assigned_agent_ids if a != agent_id)) if is_manager else []
    if assigned:
        found = await store.select(Agent, Agent.id.in_(assigned))
        if len(found) != len(assigned):
            raise NotFoundError("Assigned agent not found")

    (agent,) = await store.update(Agent, Agent.id == agent_id, values=values)
    await store.delete(AgentManager, AgentManager.manager_id == agent_id)
    await store.insert(AgentManager, [{"agent_id": a, "manager_id": agent_id} for a in assigned])

    logger.info("Updated agent %s (%s assigned agent(s))", agent_id, len(assigned))
    return agent


async def add_manager_edges(
    store: RecordStore,
    edges: Sequence[tuple[uuid.UUID, uuid.UUID]],
) -> list[AgentManager]:
    """Insert (agent_id, manager_id) reporting edges."""
    rows = [{"agent_id": a, "manager_id": m} for a, m in dict.fromkeys(edges)]
    return await store.insert(AgentManager, rows)
