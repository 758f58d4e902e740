# payroll_recon/models/payscale.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from payroll_recon.db.base import Base

FIXED_AMOUNT = "fixed_amount"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PersonalPayscale(Base):
    """
    What an agent earns on their own accounts.

    upfront/backend percentages split the personal total into the two payout
    stages (frontend = upfront). Both live in [0, 100].
    """

    __tablename__ = "personal_payscales"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    upfront_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    backend_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class PersonalPlanCommission(Base):
    __tablename__ = "personal_payscale_plan_commissions"
    __table_args__ = (
        UniqueConstraint("personal_payscale_id", "plan_id", name="uq_personal_payscale_plan"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    personal_payscale_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("personal_payscales.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plan_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True
    )

    commission_type: Mapped[str] = mapped_column(String(20), nullable=False, default=FIXED_AMOUNT)
    commission_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)


class ManagerPayscale(Base):
    """Flat per-plan amounts a manager earns on each account sold by their agents."""

    __tablename__ = "manager_payscales"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class ManagerPlanCommission(Base):
    __tablename__ = "manager_payscale_plan_commissions"
    __table_args__ = (
        UniqueConstraint("manager_payscale_id", "plan_id", name="uq_manager_payscale_plan"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    manager_payscale_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("manager_payscales.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plan_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True
    )

    commission_type: Mapped[str] = mapped_column(String(20), nullable=False, default=FIXED_AMOUNT)
    commission_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)


class ManagerAgentOverride(Base):
    """
    Manager commission for one (manager, agent, plan) triple.
    Wins over the manager payscale's flat amount. Zero values are never stored.
    """

    __tablename__ = "manager_agent_commissions"
    __table_args__ = (
        UniqueConstraint("manager_id", "agent_id", "plan_id", name="uq_manager_agent_plan"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    manager_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("agents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("agents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plan_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False
    )

    commission_type: Mapped[str] = mapped_column(String(20), nullable=False, default=FIXED_AMOUNT)
    commission_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
