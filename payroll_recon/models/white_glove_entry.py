# payroll_recon/models/white_glove_entry.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from payroll_recon.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WhiteGloveEntry(Base):
    """
    One fulfillment record ("account"), the atomic unit of payment truth.

    Rows are upserted by `order_number` during feed ingestion. Afterwards only
    the payment engine touches them, by flipping `frontend_paid` / `backend_paid`.
    A resubmitted feed never resets those two flags.
    """

    __tablename__ = "white_glove_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    order_number: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)

    # customer
    customer_name: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    customer_street_address: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    customer_city: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    customer_state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    customer_cbr: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    ban: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # order lifecycle
    order_status: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    order_submission_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    original_due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    modified_due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    order_completed_cancelled: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    who_cancelled_the_order: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    due_date_helper: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # partner / audit
    partner_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    partner_sales_code: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    audit_status: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    audit_closed: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    did_you_intervene_on_the_order: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # product
    item_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    path: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    migrating_from_legacy: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    legacy_or_brspd_fiber: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    voice_qty: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    hsi_qty: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    internet_speed: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    agent_seller_information: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)

    # calendar buckets as exported
    modified_month: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    month_issued: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year_issued: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    month_completed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year_completed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    month_due: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year_due: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # from the installs feed ("Day Of"); drives overdue detection
    install_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    frontend_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    backend_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
