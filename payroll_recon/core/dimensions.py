# payroll_recon/core/dimensions.py

import enum


class PaymentDimension(str, enum.Enum):
    """The two payout stages. Each is tracked on lines and on accounts."""

    FRONTEND = "frontend"  # upfront payout
    BACKEND = "backend"

    @property
    def account_flag(self) -> str:
        """WhiteGloveEntry attribute."""
        return f"{self.value}_paid"

    @property
    def line_flag(self) -> str:
        """PayrollReportLine attribute."""
        return f"{self.value}_is_paid"
