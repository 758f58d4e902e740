# payroll_recon/schemas/payroll.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from payroll_recon.core.dimensions import PaymentDimension


# ---------------------------------------------------------
# Report generation (not persisted)
# ---------------------------------------------------------
class ReportDetail(BaseModel):
    """One account behind a report line. Stored as-is in PayrollReportLine.details."""

    white_glove_entry_id: Optional[UUID] = None
    personal_commission: Decimal = Decimal("0.00")


class ReportLine(BaseModel):
    agent_id: UUID
    name: str

    accounts: int = Field(ge=0)
    personal_total: Decimal
    manager_total: Decimal
    grand_total: Decimal

    upfront_percentage: Optional[Decimal] = None
    upfront_value: Optional[Decimal] = None
    backend_percentage: Optional[Decimal] = None
    backend_value: Optional[Decimal] = None

    details: List[ReportDetail] = Field(default_factory=list)


class GenerateReportIn(BaseModel):
    """Raw text of both exports; both must carry a header row."""

    installs_csv: str = Field(min_length=1)
    white_glove_csv: str = Field(min_length=1)
    delimiter: Optional[str] = Field(default=None, min_length=1, max_length=1)


class GenerateReportOut(BaseModel):
    matched: int
    plans: int
    agents: int
    entries: int
    lines: List[ReportLine]


# ---------------------------------------------------------
# Batches
# ---------------------------------------------------------
class SaveBatchIn(BaseModel):
    batch_name: str = Field(max_length=200)
    lines: List[ReportLine]


class RenameBatchIn(BaseModel):
    batch_name: str = Field(max_length=200)


class BatchOut(BaseModel):
    id: UUID
    batch_name: str
    created_at: datetime

    class Config:
        from_attributes = True


class BatchSummaryOut(BatchOut):
    dimension: PaymentDimension
    line_count: int
    paid_percentage: float
    overdue_count: int


class ReportLineOut(BaseModel):
    id: UUID
    batch_id: UUID
    agent_id: Optional[UUID] = None
    name: str

    accounts: int
    personal_total: Decimal
    manager_total: Decimal
    grand_total: Decimal

    upfront_percentage: Optional[Decimal] = None
    upfront_value: Optional[Decimal] = None
    backend_percentage: Optional[Decimal] = None
    backend_value: Optional[Decimal] = None

    frontend_is_paid: bool
    backend_is_paid: bool

    details: List[ReportDetail] = Field(default_factory=list)

    class Config:
        from_attributes = True


class AccountOut(BaseModel):
    id: UUID
    order_number: str
    customer_name: Optional[str] = None
    internet_speed: Optional[str] = None
    install_date: Optional[datetime] = None

    frontend_paid: bool
    backend_paid: bool

    # derived for the requested dimension
    is_overdue: bool = False
    overdue_days: int = 0

    class Config:
        from_attributes = True


class LineDetailOut(ReportLineOut):
    status: str  # paid | unpaid | overdue
    max_overdue_days: int = 0
    account_rows: List[AccountOut] = Field(default_factory=list)


class BatchDetailOut(BaseModel):
    batch: BatchOut
    dimension: PaymentDimension
    paid_percentage: float
    repaired_line_ids: List[UUID] = Field(default_factory=list)
    lines: List[LineDetailOut]


class OverdueCountOut(BaseModel):
    dimension: PaymentDimension
    overdue_count: int
