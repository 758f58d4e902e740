# tests/test_users.py
from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from payroll_recon.core.errors import ConflictError, NotFoundError, StoreError
from payroll_recon.core.security import verify_password
from payroll_recon.crud.users import LocalUserDirectory, create_user
from payroll_recon.models.agent import Agent, AgentManager, AgentPlanCommission
from payroll_recon.models.payscale import PersonalPayscale
from payroll_recon.models.plan import Plan
from payroll_recon.models.user import User
from payroll_recon.schemas.users import CustomCommissionIn, UserCreate


class FailingDirectory:
    async def create_user_account(self, email: str, name: str) -> uuid.UUID:
        raise StoreError("Directory unavailable")


@pytest.mark.asyncio
async def test_creates_account_agent_and_manager_edges(store):
    (lead,) = await store.insert(Agent, [{"identifier": "Rep: Mona", "name": "Mona", "is_manager": True}])

    created = await create_user(
        store,
        UserCreate(email="Jane.Doe@Example.com", name="  Jane   Doe ", manager_ids=[lead.id]),
        directory=LocalUserDirectory(store, initial_password=""),
    )

    (user,) = await store.select(User)
    assert user.id == created.user_id
    assert user.email == "jane.doe@example.com"
    assert user.full_name == "Jane Doe"
    assert user.password_hash is None

    agent = created.agent
    assert agent.user_id == user.id
    assert agent.name == "Jane Doe"
    assert agent.identifier == "Jane Doe"
    assert agent.is_manager is False

    edges = [(e.agent_id, e.manager_id) for e in await store.select(AgentManager)]
    assert edges == [(agent.id, lead.id)]


@pytest.mark.asyncio
async def test_manager_gets_assigned_agents_and_custom_commissions(store):
    (rep,) = await store.insert(Agent, [{"identifier": "Rep: Al", "name": "Al"}])
    (plan,) = await store.insert(Plan, [{"name": "100M"}])

    created = await create_user(
        store,
        UserCreate(
            email="mona@example.com",
            name="Mona",
            identifier="Rep: Mona",
            is_manager=True,
            assigned_agent_ids=[rep.id],
            # ignored for managers
            manager_ids=[uuid.uuid4()],
            custom_commissions=[CustomCommissionIn(plan_id=plan.id, rep_commission_value=Decimal("15"))],
        ),
        directory=LocalUserDirectory(store, initial_password="s3cret-pass"),
    )

    edges = [(e.agent_id, e.manager_id) for e in await store.select(AgentManager)]
    assert edges == [(rep.id, created.agent.id)]

    (custom,) = await store.select(AgentPlanCommission)
    assert custom.agent_id == created.agent.id
    assert custom.rep_commission_value == Decimal("15.00")

    (user,) = await store.select(User)
    assert verify_password("s3cret-pass", user.password_hash)
    assert not verify_password("wrong", user.password_hash)


@pytest.mark.asyncio
async def test_custom_commissions_skipped_with_personal_payscale(store):
    (ps,) = await store.insert(
        PersonalPayscale, [{"name": "Std", "upfront_percentage": Decimal("50"), "backend_percentage": Decimal("50")}]
    )
    (plan,) = await store.insert(Plan, [{"name": "100M"}])

    await create_user(
        store,
        UserCreate(
            email="al@example.com",
            name="Al",
            personal_payscale_id=ps.id,
            custom_commissions=[CustomCommissionIn(plan_id=plan.id, rep_commission_value=Decimal("15"))],
        ),
        directory=LocalUserDirectory(store, initial_password=""),
    )

    assert await store.count(AgentPlanCommission) == 0


@pytest.mark.asyncio
async def test_duplicate_email_stops_before_the_agent(store):
    directory = LocalUserDirectory(store, initial_password="")
    await create_user(store, UserCreate(email="al@example.com", name="Al"), directory=directory)

    with pytest.raises(ConflictError):
        await create_user(store, UserCreate(email="AL@example.com", name="Al Again"), directory=directory)

    assert await store.count(Agent) == 1


@pytest.mark.asyncio
async def test_directory_failure_surfaces_its_message(store):
    with pytest.raises(StoreError) as exc:
        await create_user(store, UserCreate(email="al@example.com", name="Al"), directory=FailingDirectory())

    assert exc.value.message == "Directory unavailable"
    assert await store.count(Agent) == 0


@pytest.mark.asyncio
async def test_failed_later_step_keeps_earlier_ones(store):
    with pytest.raises(NotFoundError):
        await create_user(
            store,
            UserCreate(email="al@example.com", name="Al", personal_payscale_id=uuid.uuid4()),
            directory=LocalUserDirectory(store, initial_password=""),
        )

    # the account was committed before the agent step failed
    assert await store.count(User) == 1
    assert await store.count(Agent) == 0
