# payroll_recon/api/v1/dashboard.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from payroll_recon.api.deps.store import get_store, http_error
from payroll_recon.core.dimensions import PaymentDimension
from payroll_recon.core.errors import PayrollError
from payroll_recon.core.overdue import global_overdue_count
from payroll_recon.db.store import RecordStore
from payroll_recon.schemas.payroll import OverdueCountOut

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/overdue", response_model=OverdueCountOut)
async def overdue_count(store: RecordStore = Depends(get_store)):
    """Overdue accounts across every batch (backend payouts)."""
    try:
        count = await global_overdue_count(store, PaymentDimension.BACKEND)
    except PayrollError as e:
        raise http_error(e)
    return OverdueCountOut(dimension=PaymentDimension.BACKEND, overdue_count=count)
