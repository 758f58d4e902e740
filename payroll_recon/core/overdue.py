# payroll_recon/core/overdue.py
"""
Overdue detection and the dashboard counters built on it.

An account is overdue in a dimension when it is unpaid there and its install
date is more than OVERDUE_THRESHOLD_DAYS (90) in the past.

Displayed overdue days are floor(total_days) - threshold: the account age is
floored first, then the threshold comes off. At 90.1 days that is 0.
"""
from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from payroll_recon.core.config import settings
from payroll_recon.core.dimensions import PaymentDimension
from payroll_recon.db.store import RecordStore
from payroll_recon.models.payroll_report import PayrollReportLine
from payroll_recon.models.white_glove_entry import WhiteGloveEntry

SECONDS_PER_DAY = 86400


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands timestamps back naive; they were written as UTC
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def _threshold(threshold_days: Optional[int]) -> int:
    return settings.OVERDUE_THRESHOLD_DAYS if threshold_days is None else threshold_days


def total_days(install_date: Optional[datetime], now: Optional[datetime] = None) -> float:
    """Fractional days since install; 0 without an install date."""
    if install_date is None:
        return 0.0
    delta = _as_utc(now or utcnow()) - _as_utc(install_date)
    return delta.total_seconds() / SECONDS_PER_DAY


def is_overdue(
    install_date: Optional[datetime],
    now: Optional[datetime] = None,
    threshold_days: Optional[int] = None,
) -> bool:
    if install_date is None:
        return False
    return total_days(install_date, now) > _threshold(threshold_days)


def overdue_days(
    install_date: Optional[datetime],
    now: Optional[datetime] = None,
    threshold_days: Optional[int] = None,
) -> int:
    """Days past the threshold for display; 0 when not past it."""
    if install_date is None:
        return 0
    days = math.floor(total_days(install_date, now)) - _threshold(threshold_days)
    return max(days, 0)


def account_is_overdue(
    entry: WhiteGloveEntry,
    dimension: PaymentDimension = PaymentDimension.BACKEND,
    now: Optional[datetime] = None,
    threshold_days: Optional[int] = None,
) -> bool:
    return not getattr(entry, dimension.account_flag) and is_overdue(entry.install_date, now, threshold_days)


def detail_entry_ids(lines: Iterable[PayrollReportLine]) -> list[uuid.UUID]:
    """Distinct account ids referenced by the lines' details, first-seen order."""
    seen: dict[uuid.UUID, None] = {}
    for line in lines:
        for d in line.details or []:
            raw = d.get("white_glove_entry_id") if isinstance(d, dict) else None
            if not raw:
                continue
            try:
                seen.setdefault(uuid.UUID(str(raw)), None)
            except ValueError:
                continue
    return list(seen)


def batch_paid_percentage(lines: Sequence[PayrollReportLine], dimension: PaymentDimension) -> float:
    """round2(100 * paid lines / lines); 0 for an empty batch."""
    if not lines:
        return 0.0
    paid = sum(1 for line in lines if getattr(line, dimension.line_flag))
    pct = Decimal(100 * paid) / Decimal(len(lines))
    return float(pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


async def global_overdue_count(
    store: RecordStore,
    dimension: PaymentDimension = PaymentDimension.BACKEND,
    now: Optional[datetime] = None,
) -> int:
    """Overdue accounts across the whole organisation."""
    flag = getattr(WhiteGloveEntry, dimension.account_flag)
    unpaid = await store.select(WhiteGloveEntry, flag.is_(False), WhiteGloveEntry.install_date.is_not(None))
    return sum(1 for e in unpaid if account_is_overdue(e, dimension, now))


async def overdue_count_in_lines(
    store: RecordStore,
    lines: Sequence[PayrollReportLine],
    dimension: PaymentDimension = PaymentDimension.BACKEND,
    now: Optional[datetime] = None,
) -> int:
    """Overdue accounts among those referenced by the given lines."""
    ids = detail_entry_ids(lines)
    if not ids:
        return 0
    entries = await store.select(WhiteGloveEntry, WhiteGloveEntry.id.in_(ids))
    return sum(1 for e in entries if account_is_overdue(e, dimension, now))


async def batch_overdue_count(
    store: RecordStore,
    batch_id: uuid.UUID,
    dimension: PaymentDimension = PaymentDimension.BACKEND,
    now: Optional[datetime] = None,
) -> int:
    lines = await store.select(PayrollReportLine, PayrollReportLine.batch_id == batch_id)
    return await overdue_count_in_lines(store, lines, dimension, now)
