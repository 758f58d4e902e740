# payroll_recon/models/payroll_report.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from payroll_recon.db.base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PayrollReportBatch(Base):
    """Named, timestamped snapshot of one generated report."""

    __tablename__ = "payroll_report_batches"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    batch_name: Mapped[str] = mapped_column(String(200), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )


class PayrollReportLine(Base):
    """
    One agent's row inside a batch.

    Totals are frozen at creation. Only the two paid flags change afterwards.
    `details` is the ordered list of accounts behind the line:
      [{"white_glove_entry_id": "<uuid>", "personal_commission": "12.50"}, ...]

    NOTE:
      - No storage-level cascade from the batch: callers delete lines first.
    """

    __tablename__ = "payroll_report_lines"
    __table_args__ = (
        Index("ix_payroll_report_lines_batch_agent", "batch_id", "agent_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    batch_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("payroll_report_batches.id"), nullable=False, index=True
    )
    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("agents.id", ondelete="SET NULL"), nullable=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    accounts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    personal_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    manager_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    grand_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    upfront_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    upfront_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    backend_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    backend_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    frontend_is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    backend_is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    details: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
