# payroll_recon/core/errors.py
from __future__ import annotations


class PayrollError(Exception):
    """Base for every error the engine surfaces to a caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(PayrollError):
    """Rejected input. Raised before any store mutation."""


class NotFoundError(PayrollError):
    pass


class StoreError(PayrollError):
    """The record store refused a read or write. Never retried."""


class ConflictError(StoreError):
    """Uniqueness violation in the record store."""
