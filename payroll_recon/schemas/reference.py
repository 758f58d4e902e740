# payroll_recon/schemas/reference.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


# ---------------------------------------------------------
# Plans
# ---------------------------------------------------------
class PlanCreate(BaseModel):
    # blank names are accepted and ignored (nothing is created)
    name: str = ""


class PlanUpdate(BaseModel):
    commission_amount: Decimal = Field(ge=0)


class PlanOut(BaseModel):
    id: UUID
    name: str
    commission_amount: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


# ---------------------------------------------------------
# Payscales
# ---------------------------------------------------------
class PersonalPayscaleIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    upfront_percentage: Decimal
    backend_percentage: Decimal
    # plan_id -> fixed amount; plans left out get 0
    commissions: Dict[UUID, Decimal] = Field(default_factory=dict)


class PersonalPayscaleOut(BaseModel):
    id: UUID
    name: str
    upfront_percentage: Decimal
    backend_percentage: Decimal
    commissions: Dict[UUID, Decimal] = Field(default_factory=dict)


class ManagerPayscaleIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    commissions: Dict[UUID, Decimal] = Field(default_factory=dict)


class ManagerPayscaleOut(BaseModel):
    id: UUID
    name: str
    commissions: Dict[UUID, Decimal] = Field(default_factory=dict)


# ---------------------------------------------------------
# Overrides
# ---------------------------------------------------------
class OverrideIn(BaseModel):
    agent_id: UUID
    plan_id: UUID
    commission_value: Decimal = Decimal("0.00")


class OverridesIn(BaseModel):
    overrides: List[OverrideIn] = Field(default_factory=list)


class OverrideOut(BaseModel):
    id: UUID
    manager_id: UUID
    agent_id: UUID
    plan_id: UUID
    commission_type: str
    commission_value: Decimal

    class Config:
        from_attributes = True


# ---------------------------------------------------------
# Agents
# ---------------------------------------------------------
class AgentCreate(BaseModel):
    name: str = ""
    identifier: str = ""
    is_manager: bool = False
    personal_payscale_id: Optional[UUID] = None
    manager_payscale_id: Optional[UUID] = None


class AgentUpdate(AgentCreate):
    # agents reporting to this one; only applied when is_manager
    assigned_agent_ids: List[UUID] = Field(default_factory=list)


class AgentOut(BaseModel):
    id: UUID
    identifier: str
    name: Optional[str] = None
    is_manager: bool
    personal_payscale_id: Optional[UUID] = None
    manager_payscale_id: Optional[UUID] = None
    user_id: Optional[UUID] = None

    class Config:
        from_attributes = True
