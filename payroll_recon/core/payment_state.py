# payroll_recon/core/payment_state.py
"""
Two-level payment state, per dimension (frontend / backend).

Accounts (WhiteGloveEntry) carry the truth as one boolean per dimension.
Lines (PayrollReportLine) carry an aggregate flag per dimension:

  toggle_line_paid     line flag flips, every referenced account follows
  toggle_account_paid  account flips; the line becomes paid once all of its
                       accounts are paid, unpaid as soon as one is not
  auto_reconcile       on load, a line whose accounts are all paid is marked
                       paid. The opposite repair (line says paid, an account
                       does not) only happens through an explicit toggle.

"Overdue" is never stored: unpaid + install date past the threshold.
No locking; callers are expected to let one toggle finish before the next.
"""
from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Sequence

from payroll_recon.core.dimensions import PaymentDimension
from payroll_recon.core.errors import InputError, NotFoundError
from payroll_recon.core.overdue import (
    account_is_overdue,
    batch_paid_percentage,
    detail_entry_ids,
    overdue_days,
    utcnow,
)
from payroll_recon.db.store import RecordStore
from payroll_recon.models.payroll_report import PayrollReportBatch, PayrollReportLine
from payroll_recon.models.white_glove_entry import WhiteGloveEntry

logger = logging.getLogger(__name__)


class LineStatus(str, enum.Enum):
    PAID = "paid"
    UNPAID = "unpaid"
    OVERDUE = "overdue"


@dataclass
class AccountState:
    entry: WhiteGloveEntry
    is_overdue: bool
    overdue_days: int


@dataclass
class LineState:
    line: PayrollReportLine
    status: LineStatus
    max_overdue_days: int
    accounts: list[AccountState] = field(default_factory=list)


@dataclass
class BatchDetail:
    batch: PayrollReportBatch
    dimension: PaymentDimension
    lines: list[LineState]
    paid_percentage: float
    repaired_line_ids: list[uuid.UUID] = field(default_factory=list)


def _name_key(line: PayrollReportLine) -> tuple[bool, str]:
    name = (line.name or "").strip()
    return (not name, name.casefold())


def _all_paid(ids: Sequence[uuid.UUID], accounts: dict[uuid.UUID, WhiteGloveEntry], flag: str) -> bool:
    # a line with no resolvable accounts is never "all paid"
    if not ids:
        return False
    return all(accounts.get(i) is not None and getattr(accounts[i], flag) for i in ids)


class PaymentStateEngine:
    def __init__(
        self,
        store: RecordStore,
        *,
        clock: Callable[[], datetime] = utcnow,
        threshold_days: Optional[int] = None,
    ):
        self.store = store
        self.clock = clock
        self.threshold_days = threshold_days

    # ---------------------------------------------------------
    # Reads
    # ---------------------------------------------------------
    async def _get_line(self, line_id: uuid.UUID) -> PayrollReportLine:
        line = await self.store.get(PayrollReportLine, line_id)
        if line is None:
            raise NotFoundError("Report line not found")
        return line

    async def accounts_for(self, lines: Sequence[PayrollReportLine]) -> dict[uuid.UUID, WhiteGloveEntry]:
        ids = detail_entry_ids(lines)
        if not ids:
            return {}
        entries = await self.store.select(WhiteGloveEntry, WhiteGloveEntry.id.in_(ids))
        return {e.id: e for e in entries}

    def account_state(self, entry: WhiteGloveEntry, dimension: PaymentDimension) -> AccountState:
        now = self.clock()
        overdue = account_is_overdue(entry, dimension, now, self.threshold_days)
        return AccountState(
            entry=entry,
            is_overdue=overdue,
            overdue_days=overdue_days(entry.install_date, now, self.threshold_days) if overdue else 0,
        )

    def line_state(
        self,
        line: PayrollReportLine,
        accounts: dict[uuid.UUID, WhiteGloveEntry],
        dimension: PaymentDimension,
    ) -> LineState:
        states = [self.account_state(accounts[i], dimension) for i in detail_entry_ids([line]) if i in accounts]
        overdue = [s for s in states if s.is_overdue]

        if getattr(line, dimension.line_flag):
            status = LineStatus.PAID
        elif overdue:
            status = LineStatus.OVERDUE
        else:
            status = LineStatus.UNPAID

        return LineState(
            line=line,
            status=status,
            max_overdue_days=max((s.overdue_days for s in overdue), default=0),
            accounts=states,
        )

    # ---------------------------------------------------------
    # Consistency repair
    # ---------------------------------------------------------
    async def auto_reconcile(
        self,
        lines: Sequence[PayrollReportLine],
        accounts: dict[uuid.UUID, WhiteGloveEntry],
        dimension: PaymentDimension,
    ) -> list[uuid.UUID]:
        """Mark lines paid whose accounts are all paid. Returns repaired line ids."""
        flag = dimension.line_flag
        repaired: list[uuid.UUID] = []
        for line in lines:
            if getattr(line, flag):
                continue
            if not _all_paid(detail_entry_ids([line]), accounts, dimension.account_flag):
                continue
            await self.store.update(PayrollReportLine, PayrollReportLine.id == line.id, values={flag: True})
            setattr(line, flag, True)
            repaired.append(line.id)

        if repaired:
            logger.info("Auto-reconciled %s line(s) to %s paid", len(repaired), dimension.value)
        return repaired

    async def load_batch(self, batch_id: uuid.UUID, dimension: PaymentDimension) -> BatchDetail:
        batch = await self.store.get(PayrollReportBatch, batch_id)
        if batch is None:
            raise NotFoundError("Batch not found")

        lines = await self.store.select(PayrollReportLine, PayrollReportLine.batch_id == batch_id)
        lines.sort(key=_name_key)

        accounts = await self.accounts_for(lines)
        repaired = await self.auto_reconcile(lines, accounts, dimension)

        return BatchDetail(
            batch=batch,
            dimension=dimension,
            lines=[self.line_state(line, accounts, dimension) for line in lines],
            paid_percentage=batch_paid_percentage(lines, dimension),
            repaired_line_ids=repaired,
        )

    # ---------------------------------------------------------
    # Toggles
    # ---------------------------------------------------------
    async def toggle_line_paid(self, line_id: uuid.UUID, dimension: PaymentDimension) -> LineState:
        """Flip the line flag and force every referenced account to the same value."""
        line = await self._get_line(line_id)
        new_value = not getattr(line, dimension.line_flag)

        (line,) = await self.store.update(
            PayrollReportLine, PayrollReportLine.id == line_id, values={dimension.line_flag: new_value}
        )

        ids = detail_entry_ids([line])
        if ids:
            await self.store.update(
                WhiteGloveEntry, WhiteGloveEntry.id.in_(ids), values={dimension.account_flag: new_value}
            )

        logger.info("Line %s %s paid -> %s (%s account(s))", line_id, dimension.value, new_value, len(ids))
        return self.line_state(line, await self.accounts_for([line]), dimension)

    async def toggle_account_paid(
        self,
        line_id: uuid.UUID,
        account_id: uuid.UUID,
        dimension: PaymentDimension,
    ) -> LineState:
        """Flip one account, then move the line flag if the all-paid edge was crossed."""
        line = await self._get_line(line_id)
        ids = detail_entry_ids([line])
        if account_id not in ids:
            raise InputError("Account is not part of this report line")

        entry = await self.store.get(WhiteGloveEntry, account_id)
        if entry is None:
            raise NotFoundError("Account not found")

        new_value = not getattr(entry, dimension.account_flag)
        await self.store.update(
            WhiteGloveEntry, WhiteGloveEntry.id == account_id, values={dimension.account_flag: new_value}
        )

        accounts = await self.accounts_for([line])
        all_paid = _all_paid(ids, accounts, dimension.account_flag)
        line_paid = getattr(line, dimension.line_flag)

        if all_paid and not line_paid:
            (line,) = await self.store.update(
                PayrollReportLine, PayrollReportLine.id == line_id, values={dimension.line_flag: True}
            )
        elif not all_paid and line_paid:
            (line,) = await self.store.update(
                PayrollReportLine, PayrollReportLine.id == line_id, values={dimension.line_flag: False}
            )

        logger.info(
            "Account %s %s paid -> %s; line %s paid=%s",
            account_id, dimension.value, new_value, line_id, getattr(line, dimension.line_flag),
        )
        return self.line_state(line, accounts, dimension)
