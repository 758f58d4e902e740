"""initial payroll schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _money(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=nullable)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    # -----------------------------------------------------
    # 1) Users + reference data
    # -----------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        _created_at(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "plans",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("commission_amount", sa.Numeric(12, 2), nullable=False, server_default="0.00"),
        _created_at(),
    )
    op.create_index("ix_plans_name", "plans", ["name"], unique=True)

    op.create_table(
        "personal_payscales",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("upfront_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("backend_percentage", sa.Numeric(5, 2), nullable=False),
        _created_at(),
    )

    op.create_table(
        "manager_payscales",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        _created_at(),
    )

    op.create_table(
        "personal_payscale_plan_commissions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "personal_payscale_id",
            sa.Uuid(),
            sa.ForeignKey("personal_payscales.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("plan_id", sa.Uuid(), sa.ForeignKey("plans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("commission_type", sa.String(20), nullable=False),
        _money("commission_value"),
        sa.UniqueConstraint("personal_payscale_id", "plan_id", name="uq_personal_payscale_plan"),
    )
    op.create_index(
        "ix_personal_payscale_plan_commissions_personal_payscale_id",
        "personal_payscale_plan_commissions",
        ["personal_payscale_id"],
    )
    op.create_index(
        "ix_personal_payscale_plan_commissions_plan_id",
        "personal_payscale_plan_commissions",
        ["plan_id"],
    )

    op.create_table(
        "manager_payscale_plan_commissions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "manager_payscale_id",
            sa.Uuid(),
            sa.ForeignKey("manager_payscales.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("plan_id", sa.Uuid(), sa.ForeignKey("plans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("commission_type", sa.String(20), nullable=False),
        _money("commission_value"),
        sa.UniqueConstraint("manager_payscale_id", "plan_id", name="uq_manager_payscale_plan"),
    )
    op.create_index(
        "ix_manager_payscale_plan_commissions_manager_payscale_id",
        "manager_payscale_plan_commissions",
        ["manager_payscale_id"],
    )
    op.create_index(
        "ix_manager_payscale_plan_commissions_plan_id",
        "manager_payscale_plan_commissions",
        ["plan_id"],
    )

    # -----------------------------------------------------
    # 2) Agents and reporting edges
    # -----------------------------------------------------
    op.create_table(
        "agents",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("identifier", sa.String(300), nullable=False),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("is_manager", sa.Boolean(), nullable=False),
        sa.Column(
            "personal_payscale_id",
            sa.Uuid(),
            sa.ForeignKey("personal_payscales.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "manager_payscale_id",
            sa.Uuid(),
            sa.ForeignKey("manager_payscales.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True),
        _created_at(),
    )
    op.create_index("ix_agents_identifier", "agents", ["identifier"], unique=True)

    op.create_table(
        "agent_managers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("agent_id", sa.Uuid(), sa.ForeignKey("agents.id", ondelete="CASCADE"), nullable=False),
        sa.Column("manager_id", sa.Uuid(), sa.ForeignKey("agents.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("agent_id", "manager_id", name="uq_agent_manager"),
    )
    op.create_index("ix_agent_managers_agent_id", "agent_managers", ["agent_id"])
    op.create_index("ix_agent_managers_manager_id", "agent_managers", ["manager_id"])

    op.create_table(
        "agent_plan_commissions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("agent_id", sa.Uuid(), sa.ForeignKey("agents.id", ondelete="CASCADE"), nullable=False),
        sa.Column("plan_id", sa.Uuid(), sa.ForeignKey("plans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rep_commission_type", sa.String(20), nullable=False),
        _money("rep_commission_value"),
        sa.Column("manager_commission_type", sa.String(20), nullable=False),
        _money("manager_commission_value"),
        sa.UniqueConstraint("agent_id", "plan_id", name="uq_agent_plan_commission"),
    )
    op.create_index("ix_agent_plan_commissions_agent_id", "agent_plan_commissions", ["agent_id"])

    op.create_table(
        "manager_agent_commissions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("manager_id", sa.Uuid(), sa.ForeignKey("agents.id", ondelete="CASCADE"), nullable=False),
        sa.Column("agent_id", sa.Uuid(), sa.ForeignKey("agents.id", ondelete="CASCADE"), nullable=False),
        sa.Column("plan_id", sa.Uuid(), sa.ForeignKey("plans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("commission_type", sa.String(20), nullable=False),
        _money("commission_value"),
        sa.UniqueConstraint("manager_id", "agent_id", "plan_id", name="uq_manager_agent_plan"),
    )
    op.create_index("ix_manager_agent_commissions_manager_id", "manager_agent_commissions", ["manager_id"])
    op.create_index("ix_manager_agent_commissions_agent_id", "manager_agent_commissions", ["agent_id"])

    # -----------------------------------------------------
    # 3) Fulfillment records
    # -----------------------------------------------------
    op.create_table(
        "white_glove_entries",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("order_number", sa.String(100), nullable=False),
        sa.Column("customer_name", sa.String(300), nullable=True),
        sa.Column("customer_street_address", sa.String(300), nullable=True),
        sa.Column("customer_city", sa.String(200), nullable=True),
        sa.Column("customer_state", sa.String(50), nullable=True),
        sa.Column("customer_cbr", sa.String(50), nullable=True),
        sa.Column("ban", sa.String(100), nullable=True),
        sa.Column("order_status", sa.String(100), nullable=True),
        sa.Column("order_submission_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("original_due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("modified_due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("order_completed_cancelled", sa.String(100), nullable=True),
        sa.Column("who_cancelled_the_order", sa.String(200), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("due_date_helper", sa.String(100), nullable=True),
        sa.Column("partner_name", sa.String(200), nullable=True),
        sa.Column("partner_sales_code", sa.String(100), nullable=True),
        sa.Column("audit_status", sa.String(100), nullable=True),
        sa.Column("audit_closed", sa.String(100), nullable=True),
        sa.Column("did_you_intervene_on_the_order", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("item_type", sa.String(100), nullable=True),
        sa.Column("path", sa.String(100), nullable=True),
        sa.Column("migrating_from_legacy", sa.String(100), nullable=True),
        sa.Column("legacy_or_brspd_fiber", sa.String(100), nullable=True),
        sa.Column("voice_qty", sa.Integer(), nullable=True),
        sa.Column("hsi_qty", sa.Integer(), nullable=True),
        sa.Column("internet_speed", sa.String(200), nullable=True),
        sa.Column("agent_seller_information", sa.String(300), nullable=True),
        sa.Column("modified_month", sa.Integer(), nullable=True),
        sa.Column("month_issued", sa.Integer(), nullable=True),
        sa.Column("year_issued", sa.Integer(), nullable=True),
        sa.Column("month_completed", sa.Integer(), nullable=True),
        sa.Column("year_completed", sa.Integer(), nullable=True),
        sa.Column("month_due", sa.Integer(), nullable=True),
        sa.Column("year_due", sa.Integer(), nullable=True),
        sa.Column("install_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("frontend_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("backend_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_white_glove_entries_order_number", "white_glove_entries", ["order_number"], unique=True)
    op.create_index("ix_white_glove_entries_install_date", "white_glove_entries", ["install_date"])

    # -----------------------------------------------------
    # 4) Report snapshots
    # -----------------------------------------------------
    op.create_table(
        "payroll_report_batches",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("batch_name", sa.String(200), nullable=False),
        _created_at(),
    )
    op.create_index("ix_payroll_report_batches_created_at", "payroll_report_batches", ["created_at"])

    op.create_table(
        "payroll_report_lines",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        # no cascade: lines are deleted before their batch
        sa.Column("batch_id", sa.Uuid(), sa.ForeignKey("payroll_report_batches.id"), nullable=False),
        sa.Column("agent_id", sa.Uuid(), sa.ForeignKey("agents.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("accounts", sa.Integer(), nullable=False),
        _money("personal_total"),
        _money("manager_total"),
        _money("grand_total"),
        sa.Column("upfront_percentage", sa.Numeric(5, 2), nullable=True),
        _money("upfront_value", nullable=True),
        sa.Column("backend_percentage", sa.Numeric(5, 2), nullable=True),
        _money("backend_value", nullable=True),
        sa.Column("frontend_is_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("backend_is_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("details", JSONType, nullable=False),
        _created_at(),
    )
    op.create_index("ix_payroll_report_lines_batch_id", "payroll_report_lines", ["batch_id"])
    op.create_index("ix_payroll_report_lines_batch_agent", "payroll_report_lines", ["batch_id", "agent_id"])


def downgrade() -> None:
    op.drop_table("payroll_report_lines")
    op.drop_table("payroll_report_batches")
    op.drop_table("white_glove_entries")
    op.drop_table("manager_agent_commissions")
    op.drop_table("agent_plan_commissions")
    op.drop_table("agent_managers")
    op.drop_table("agents")
    op.drop_table("manager_payscale_plan_commissions")
    op.drop_table("personal_payscale_plan_commissions")
    op.drop_table("manager_payscales")
    op.drop_table("personal_payscales")
    op.drop_table("plans")
    op.drop_table("users")
