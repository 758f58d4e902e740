# Import models here so Alembic can discover metadata.
from payroll_recon.models.user import User  # noqa: F401

# Reference data
from payroll_recon.models.plan import Plan  # noqa: F401
from payroll_recon.models.payscale import (  # noqa: F401
    ManagerAgentOverride,
    ManagerPayscale,
    ManagerPlanCommission,
    PersonalPayscale,
    PersonalPlanCommission,
)
from payroll_recon.models.agent import Agent, AgentManager, AgentPlanCommission  # noqa: F401

# Feed records + report snapshots
from payroll_recon.models.white_glove_entry import WhiteGloveEntry  # noqa: F401
from payroll_recon.models.payroll_report import PayrollReportBatch, PayrollReportLine  # noqa: F401
