# payroll_recon/models/agent.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from payroll_recon.db.base import Base
from payroll_recon.models.payscale import FIXED_AMOUNT


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Agent(Base):
    __tablename__ = "agents"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # verbatim "Agent Seller Information" cell, e.g. "Rep: Jane Doe"
    identifier: Mapped[str] = mapped_column(String(300), nullable=False, unique=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    is_manager: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    personal_payscale_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("personal_payscales.id", ondelete="SET NULL"), nullable=True
    )
    # only meaningful while is_manager is true
    manager_payscale_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("manager_payscales.id", ondelete="SET NULL"), nullable=True
    )

    # optional link to a login account (set by user onboarding)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    @property
    def display_name(self) -> str:
        return self.name or self.identifier


class AgentManager(Base):
    """
    Reporting edge: `agent_id` reports to `manager_id`.

    Integer id on purpose: edges are read back in insertion order so that
    manager resolution is repeatable when an agent has several managers.
    """

    __tablename__ = "agent_managers"
    __table_args__ = (
        UniqueConstraint("agent_id", "manager_id", name="uq_agent_manager"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("agents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    manager_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("agents.id", ondelete="CASCADE"), nullable=False, index=True
    )


class AgentPlanCommission(Base):
    """
    Per-agent custom commissions captured at onboarding for agents without a
    personal payscale. Stored for reference; report generation reads payscales only.
    """

    __tablename__ = "agent_plan_commissions"
    __table_args__ = (
        UniqueConstraint("agent_id", "plan_id", name="uq_agent_plan_commission"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("agents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plan_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False
    )

    rep_commission_type: Mapped[str] = mapped_column(String(20), nullable=False, default=FIXED_AMOUNT)
    rep_commission_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    manager_commission_type: Mapped[str] = mapped_column(String(20), nullable=False, default=FIXED_AMOUNT)
    manager_commission_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
