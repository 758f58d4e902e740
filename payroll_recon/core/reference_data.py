# payroll_recon/core/reference_data.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from payroll_recon.db.store import RecordStore
from payroll_recon.models.agent import Agent, AgentManager
from payroll_recon.models.payscale import (
    ManagerAgentOverride,
    ManagerPlanCommission,
    PersonalPayscale,
    PersonalPlanCommission,
)
from payroll_recon.models.plan import Plan

logger = logging.getLogger(__name__)

# payscale_id -> plan_id -> value
CommissionMap = dict[uuid.UUID, dict[uuid.UUID, Decimal]]
# manager_id -> agent_id -> plan_id -> value
OverrideMap = dict[uuid.UUID, dict[uuid.UUID, dict[uuid.UUID, Decimal]]]


def parse_percentage(value: Any) -> Optional[Decimal]:
    """None when unset or unreadable."""
    if value is None:
        return None
    try:
        pct = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return pct if pct.is_finite() else None


@dataclass
class ReferenceData:
    """
    Lookups for one aggregation run. Built fresh per run and discarded after,
    so admin edits are always picked up by the next run.
    """

    agents_by_identifier: dict[str, Agent] = field(default_factory=dict)
    agents_by_id: dict[uuid.UUID, Agent] = field(default_factory=dict)
    plans_by_name: dict[str, Plan] = field(default_factory=dict)
    personal_commissions: CommissionMap = field(default_factory=dict)
    manager_commissions: CommissionMap = field(default_factory=dict)
    overrides: OverrideMap = field(default_factory=dict)
    manager_for_agent: dict[uuid.UUID, uuid.UUID] = field(default_factory=dict)
    # agent_id -> (upfront %, backend %) from the agent's personal payscale
    percentages: dict[uuid.UUID, tuple[Optional[Decimal], Optional[Decimal]]] = field(default_factory=dict)

    def personal_commission(self, agent: Agent, plan: Plan) -> Optional[Decimal]:
        """None means the agent's payscale has no entry for the plan (no credit)."""
        if agent.personal_payscale_id is None:
            return None
        return self.personal_commissions.get(agent.personal_payscale_id, {}).get(plan.id)

    def manager_commission(self, manager: Agent, agent: Agent, plan: Plan) -> Decimal:
        """Override for (manager, agent, plan) first, then the manager payscale, else 0."""
        override = self.overrides.get(manager.id, {}).get(agent.id, {}).get(plan.id)
        if override is not None:
            return override
        if manager.manager_payscale_id is None:
            return Decimal("0.00")
        return self.manager_commissions.get(manager.manager_payscale_id, {}).get(plan.id, Decimal("0.00"))

    def manager_of(self, agent: Agent) -> Optional[Agent]:
        mgr_id = self.manager_for_agent.get(agent.id)
        if mgr_id is None:
            return None
        return self.agents_by_id.get(mgr_id)


def _commission_map(rows, owner_attr: str) -> CommissionMap:
    out: CommissionMap = {}
    for c in rows:
        out.setdefault(getattr(c, owner_attr), {})[c.plan_id] = Decimal(c.commission_value)
    return out


async def load_reference_data(store: RecordStore) -> ReferenceData:
    agents = await store.select(Agent)
    plans = await store.select(Plan)
    personal_payscales = await store.select(PersonalPayscale)
    personal_rows = await store.select(PersonalPlanCommission)
    manager_rows = await store.select(ManagerPlanCommission)
    override_rows = await store.select(ManagerAgentOverride)
    edges = await store.select(AgentManager, order_by=(AgentManager.id,))

    ref = ReferenceData()
    for a in agents:
        ref.agents_by_identifier[a.identifier] = a
        ref.agents_by_id[a.id] = a
    for p in plans:
        ref.plans_by_name[p.name] = p

    ref.personal_commissions = _commission_map(personal_rows, "personal_payscale_id")
    ref.manager_commissions = _commission_map(manager_rows, "manager_payscale_id")

    for o in override_rows:
        ref.overrides.setdefault(o.manager_id, {}).setdefault(o.agent_id, {})[o.plan_id] = Decimal(o.commission_value)

    # several edges for one agent: the highest edge id wins
    multi: set[uuid.UUID] = set()
    for e in edges:
        if e.agent_id in ref.manager_for_agent and ref.manager_for_agent[e.agent_id] != e.manager_id:
            multi.add(e.agent_id)
        ref.manager_for_agent[e.agent_id] = e.manager_id
    if multi:
        logger.warning("%s agent(s) report to more than one manager; using the latest assignment", len(multi))

    payscales_by_id = {p.id: p for p in personal_payscales}
    for a in agents:
        ps = payscales_by_id.get(a.personal_payscale_id) if a.personal_payscale_id else None
        if ps is None:
            ref.percentages[a.id] = (None, None)
        else:
            ref.percentages[a.id] = (parse_percentage(ps.upfront_percentage), parse_percentage(ps.backend_percentage))

    return ref
