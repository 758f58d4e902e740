# payroll_recon/schemas/users.py
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class CustomCommissionIn(BaseModel):
    plan_id: UUID
    rep_commission_type: str = "fixed_amount"
    rep_commission_value: Decimal = Decimal("0.00")
    manager_commission_type: str = "fixed_amount"
    manager_commission_value: Decimal = Decimal("0.00")


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=200)
    # feed identifier of the new agent; defaults to the name
    identifier: Optional[str] = Field(default=None, max_length=300)

    is_manager: bool = False
    personal_payscale_id: Optional[UUID] = None
    manager_payscale_id: Optional[UUID] = None

    # non-managers: who they report to
    manager_ids: List[UUID] = Field(default_factory=list)
    # managers: who reports to them
    assigned_agent_ids: List[UUID] = Field(default_factory=list)

    # only stored when no personal payscale is given
    custom_commissions: List[CustomCommissionIn] = Field(default_factory=list)


class UserCreatedOut(BaseModel):
    user_id: UUID
    agent_id: UUID
    email: str
    message: str = "User created successfully"
