# payroll_recon/api/v1/users.py
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from payroll_recon.api.deps.store import get_store, http_error
from payroll_recon.core.errors import PayrollError
from payroll_recon.crud.users import create_user
from payroll_recon.db.store import RecordStore
from payroll_recon.schemas.users import UserCreate, UserCreatedOut

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_user_with_agent(payload: UserCreate, store: RecordStore = Depends(get_store)):
    try:
        created = await create_user(store, payload)
    except PayrollError as e:
        raise http_error(e)
    return UserCreatedOut(user_id=created.user_id, agent_id=created.agent.id, email=str(payload.email).lower())
