# payroll_recon/crud/users.py
"""
User onboarding: a login account plus the agent record behind it.

Steps run in order and each one commits:
  1. account in the user directory
  2. agent row linked to the account
  3. reporting edges (managers of a non-manager, or agents of a manager)
  4. custom per-plan commissions, only without a personal payscale
The first failing step stops the flow and its message reaches the caller.
Earlier steps stay committed.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

from payroll_recon.core.config import settings
from payroll_recon.core.errors import ConflictError, InputError, PayrollError
from payroll_recon.core.security import hash_password
from payroll_recon.crud.agents import add_agent, add_manager_edges
from payroll_recon.db.store import RecordStore
from payroll_recon.models.agent import Agent, AgentPlanCommission
from payroll_recon.models.user import User
from payroll_recon.schemas.users import UserCreate

logger = logging.getLogger(__name__)


class UserDirectory(Protocol):
    async def create_user_account(self, email: str, name: str) -> uuid.UUID:
        ...


class LocalUserDirectory:
    """Accounts kept in the `users` table of the record store."""

    def __init__(self, store: RecordStore, initial_password: Optional[str] = None):
        self.store = store
        self.initial_password = initial_password if initial_password is not None else settings.DEFAULT_USER_PASSWORD

    async def create_user_account(self, email: str, name: str) -> uuid.UUID:
        email_n = User.normalize_email(email)
        existing = await self.store.select(User, User.email == email_n)
        if existing:
            raise ConflictError("A user with this email already exists")

        values = {"email": email_n, "full_name": User.normalize_full_name(name)}
        if self.initial_password:
            values["password_hash"] = hash_password(self.initial_password)

        (user,) = await self.store.insert(User, [values])
        return user.id


@dataclass
class CreatedUser:
    user_id: uuid.UUID
    agent: Agent


async def create_user(
    store: RecordStore,
    payload: UserCreate,
    directory: Optional[UserDirectory] = None,
) -> CreatedUser:
    name = " ".join((payload.name or "").split())
    if not name:
        raise InputError("Name is required")
    identifier = (payload.identifier or "").strip() or name
    directory = directory or LocalUserDirectory(store)

    step = "account"
    try:
        user_id = await directory.create_user_account(str(payload.email), name)

        step = "agent"
        agent = await add_agent(
            store,
            name=name,
            identifier=identifier,
            is_manager=payload.is_manager,
            personal_payscale_id=payload.personal_payscale_id,
            manager_payscale_id=payload.manager_payscale_id,
            user_id=user_id,
        )

        step = "reporting edges"
        if not payload.is_manager and payload.manager_ids:
            await add_manager_edges(store, [(agent.id, m) for m in payload.manager_ids if m != agent.id])
        if payload.is_manager and payload.assigned_agent_ids:
            await add_manager_edges(store, [(a, agent.id) for a in payload.assigned_agent_ids if a != agent.id])

        step = "custom commissions"
        if payload.personal_payscale_id is None and payload.custom_commissions:
            await store.insert(
                AgentPlanCommission,
                [
                    {
                        "agent_id": agent.id,
                        "plan_id": c.plan_id,
                        "rep_commission_type": c.rep_commission_type,
                        "rep_commission_value": c.rep_commission_value,
                        "manager_commission_type": c.manager_commission_type,
                        "manager_commission_value": c.manager_commission_value,
                    }
                    for c in payload.custom_commissions
                ],
            )
    except PayrollError as e:
        logger.error("User creation for %s stopped at %s: %s", payload.email, step, e.message)
        raise

    logger.info("Created user %s with agent %s", user_id, agent.id)
    return CreatedUser(user_id=user_id, agent=agent)
