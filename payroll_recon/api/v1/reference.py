# payroll_recon/api/v1/reference.py
"""Admin endpoints for the reference data the commission engine reads."""
from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from payroll_recon.api.deps.store import get_store, http_error
from payroll_recon.core.errors import PayrollError
from payroll_recon.crud import agents as agents_crud
from payroll_recon.crud import overrides as overrides_crud
from payroll_recon.crud import payscales as payscales_crud
from payroll_recon.crud import plans as plans_crud
from payroll_recon.db.store import RecordStore
from payroll_recon.schemas.reference import (
    AgentCreate,
    AgentOut,
    AgentUpdate,
    ManagerPayscaleIn,
    ManagerPayscaleOut,
    OverrideOut,
    OverridesIn,
    PersonalPayscaleIn,
    PersonalPayscaleOut,
    PlanCreate,
    PlanOut,
    PlanUpdate,
)

router = APIRouter(tags=["reference"])


# ---------------------------------------------------------
# Plans
# ---------------------------------------------------------
@router.get("/plans", response_model=List[PlanOut])
async def list_plans(store: RecordStore = Depends(get_store)):
    try:
        return await plans_crud.list_plans(store)
    except PayrollError as e:
        raise http_error(e)


@router.post("/plans", response_model=PlanOut, status_code=status.HTTP_201_CREATED)
async def add_plan(payload: PlanCreate, store: RecordStore = Depends(get_store)):
    try:
        plan = await plans_crud.add_plan(store, payload.name)
    except PayrollError as e:
        raise http_error(e)
    if plan is None:
        # blank name: nothing to create
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return plan


@router.patch("/plans/{plan_id}", response_model=PlanOut)
async def update_plan(plan_id: UUID, payload: PlanUpdate, store: RecordStore = Depends(get_store)):
    try:
        return await plans_crud.update_plan_commission(store, plan_id, payload.commission_amount)
    except PayrollError as e:
        raise http_error(e)


# ---------------------------------------------------------
# Personal payscales
# ---------------------------------------------------------
@router.get("/payscales/personal", response_model=List[PersonalPayscaleOut])
async def list_personal_payscales(store: RecordStore = Depends(get_store)):
    try:
        return await payscales_crud.list_personal_payscales(store)
    except PayrollError as e:
        raise http_error(e)


@router.post("/payscales/personal", response_model=PersonalPayscaleOut, status_code=status.HTTP_201_CREATED)
async def create_personal_payscale(payload: PersonalPayscaleIn, store: RecordStore = Depends(get_store)):
    try:
        return await payscales_crud.create_personal_payscale(
            store, payload.name, payload.upfront_percentage, payload.backend_percentage, payload.commissions
        )
    except PayrollError as e:
        raise http_error(e)


@router.put("/payscales/personal/{payscale_id}", response_model=PersonalPayscaleOut)
async def update_personal_payscale(
    payscale_id: UUID,
    payload: PersonalPayscaleIn,
    store: RecordStore = Depends(get_store),
):
    try:
        return await payscales_crud.update_personal_payscale(
            store,
            payscale_id,
            payload.name,
            payload.upfront_percentage,
            payload.backend_percentage,
            payload.commissions,
        )
    except PayrollError as e:
        raise http_error(e)


# ---------------------------------------------------------
# Manager payscales
# ---------------------------------------------------------
@router.get("/payscales/manager", response_model=List[ManagerPayscaleOut])
async def list_manager_payscales(store: RecordStore = Depends(get_store)):
    try:
        return await payscales_crud.list_manager_payscales(store)
    except PayrollError as e:
        raise http_error(e)


@router.post("/payscales/manager", response_model=ManagerPayscaleOut, status_code=status.HTTP_201_CREATED)
async def create_manager_payscale(payload: ManagerPayscaleIn, store: RecordStore = Depends(get_store)):
    try:
        return await payscales_crud.create_manager_payscale(store, payload.name, payload.commissions)
    except PayrollError as e:
        raise http_error(e)


@router.put("/payscales/manager/{payscale_id}", response_model=ManagerPayscaleOut)
async def update_manager_payscale(
    payscale_id: UUID,
    payload: ManagerPayscaleIn,
    store: RecordStore = Depends(get_store),
):
    try:
        return await payscales_crud.update_manager_payscale(store, payscale_id, payload.name, payload.commissions)
    except PayrollError as e:
        raise http_error(e)


@router.get("/payscales/manager/{payscale_id}/managers", response_model=List[AgentOut])
async def list_payscale_managers(payscale_id: UUID, store: RecordStore = Depends(get_store)):
    try:
        return await payscales_crud.list_payscale_managers(store, payscale_id)
    except PayrollError as e:
        raise http_error(e)


# ---------------------------------------------------------
# Manager overrides
# ---------------------------------------------------------
@router.get("/managers/{manager_id}/overrides", response_model=List[OverrideOut])
async def list_overrides(manager_id: UUID, store: RecordStore = Depends(get_store)):
    try:
        return await overrides_crud.list_overrides(store, manager_id)
    except PayrollError as e:
        raise http_error(e)


@router.put("/managers/{manager_id}/overrides", response_model=List[OverrideOut])
async def replace_overrides(manager_id: UUID, payload: OverridesIn, store: RecordStore = Depends(get_store)):
    try:
        return await overrides_crud.replace_overrides(store, manager_id, payload.overrides)
    except PayrollError as e:
        raise http_error(e)


@router.get("/managers/{manager_id}/agents", response_model=List[AgentOut])
async def list_assigned_agents(manager_id: UUID, store: RecordStore = Depends(get_store)):
    try:
        return await overrides_crud.assigned_agents(store, manager_id)
    except PayrollError as e:
        raise http_error(e)


# ---------------------------------------------------------
# Agents
# ---------------------------------------------------------
@router.get("/agents", response_model=List[AgentOut])
async def list_agents(store: RecordStore = Depends(get_store)):
    try:
        return await agents_crud.list_agents(store)
    except PayrollError as e:
        raise http_error(e)


@router.post("/agents", response_model=AgentOut, status_code=status.HTTP_201_CREATED)
async def add_agent(payload: AgentCreate, store: RecordStore = Depends(get_store)):
    try:
        return await agents_crud.add_agent(store, **payload.model_dump())
    except PayrollError as e:
        raise http_error(e)


@router.put("/agents/{agent_id}", response_model=AgentOut)
async def update_agent(agent_id: UUID, payload: AgentUpdate, store: RecordStore = Depends(get_store)):
    try:
        return await agents_crud.update_agent(store, agent_id, **payload.model_dump())
    except PayrollError as e:
        raise http_error(e)
