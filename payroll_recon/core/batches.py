# payroll_recon/core/batches.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from payroll_recon.core.dimensions import PaymentDimension
from payroll_recon.core.errors import InputError, NotFoundError
from payroll_recon.core.overdue import batch_paid_percentage, overdue_count_in_lines
from payroll_recon.db.store import RecordStore
from payroll_recon.models.payroll_report import PayrollReportBatch, PayrollReportLine
from payroll_recon.schemas.payroll import ReportLine

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# payroll_report_batches.batch_name is String(200)
BATCH_NAME_MAX_LENGTH = 200


def _cents(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def check_line(line: ReportLine) -> None:
    """Totals of a line must agree with its details; InputError otherwise."""
    if line.accounts != len(line.details):
        raise InputError(
            f"Line {line.name!r}: accounts is {line.accounts} but {len(line.details)} account detail(s) were given"
        )
    detail_sum = sum((d.personal_commission for d in line.details), Decimal("0"))
    if _cents(line.personal_total) != _cents(detail_sum):
        raise InputError(
            f"Line {line.name!r}: personal total {line.personal_total} does not match its details ({_cents(detail_sum)})"
        )
    if _cents(line.grand_total) != _cents(line.personal_total + line.manager_total):
        raise InputError(
            f"Line {line.name!r}: grand total {line.grand_total} is not personal plus manager total"
        )


def _line_row(batch_id: uuid.UUID, line: ReportLine) -> dict:
    return {
        "batch_id": batch_id,
        "agent_id": line.agent_id,
        "name": line.name,
        "accounts": line.accounts,
        "personal_total": line.personal_total,
        "manager_total": line.manager_total,
        "grand_total": line.grand_total,
        "upfront_percentage": line.upfront_percentage,
        "upfront_value": line.upfront_value,
        "backend_percentage": line.backend_percentage,
        "backend_value": line.backend_value,
        "frontend_is_paid": False,
        "backend_is_paid": False,
        "details": [d.model_dump(mode="json") for d in line.details],
    }


async def save_batch(store: RecordStore, batch_name: str, lines: Sequence[ReportLine]) -> PayrollReportBatch:
    """
    Snapshot a report as a named batch.

    Two writes: the batch row, then its lines. If the second write fails the
    empty batch stays behind and the StoreError reaches the caller.
    """
    name = (batch_name or "").strip()
    if not name:
        raise InputError("Please provide a batch name")
    if len(name) > BATCH_NAME_MAX_LENGTH:
        raise InputError(f"Batch name must be at most {BATCH_NAME_MAX_LENGTH} characters")
    if not lines:
        raise InputError("Report has no lines to save")
    for line in lines:
        check_line(line)

    (batch,) = await store.insert(PayrollReportBatch, [{"batch_name": name}])
    try:
        await store.insert(PayrollReportLine, [_line_row(batch.id, line) for line in lines])
    except Exception:
        logger.error("Batch %s (%r) saved without its lines", batch.id, name)
        raise

    logger.info("Saved batch %s (%r) with %s line(s)", batch.id, name, len(lines))
    return batch


async def get_batch(store: RecordStore, batch_id: uuid.UUID) -> PayrollReportBatch:
    batch = await store.get(PayrollReportBatch, batch_id)
    if batch is None:
        raise NotFoundError("Batch not found")
    return batch


async def list_batches(store: RecordStore) -> list[PayrollReportBatch]:
    return await store.select(
        PayrollReportBatch,
        order_by=(PayrollReportBatch.created_at.desc(), PayrollReportBatch.id),
    )


async def list_lines(store: RecordStore, batch_id: uuid.UUID) -> list[PayrollReportLine]:
    return await store.select(PayrollReportLine, PayrollReportLine.batch_id == batch_id)


async def rename_batch(store: RecordStore, batch_id: uuid.UUID, batch_name: str) -> PayrollReportBatch:
    """Blank names are ignored; the batch keeps its current name."""
    batch = await get_batch(store, batch_id)
    name = (batch_name or "").strip()
    if not name:
        logger.warning("Ignored blank rename of batch %s", batch_id)
        return batch
    if len(name) > BATCH_NAME_MAX_LENGTH:
        raise InputError(f"Batch name must be at most {BATCH_NAME_MAX_LENGTH} characters")

    (batch,) = await store.update(
        PayrollReportBatch, PayrollReportBatch.id == batch_id, values={"batch_name": name}
    )
    logger.info("Renamed batch %s to %r", batch_id, name)
    return batch


async def delete_batch(store: RecordStore, batch_id: uuid.UUID) -> int:
    """Delete the lines, then the batch. Returns the number of lines removed."""
    await get_batch(store, batch_id)
    removed = await store.delete(PayrollReportLine, PayrollReportLine.batch_id == batch_id)
    await store.delete(PayrollReportBatch, PayrollReportBatch.id == batch_id)
    logger.info("Deleted batch %s and %s line(s)", batch_id, removed)
    return removed


@dataclass
class BatchSummary:
    batch: PayrollReportBatch
    dimension: PaymentDimension
    line_count: int
    paid_percentage: float
    overdue_count: int


async def list_batch_summaries(
    store: RecordStore,
    dimension: PaymentDimension = PaymentDimension.BACKEND,
) -> list[BatchSummary]:
    """Newest first, one batch at a time."""
    summaries: list[BatchSummary] = []
    for batch in await list_batches(store):
        lines = await list_lines(store, batch.id)
        summaries.append(
            BatchSummary(
                batch=batch,
                dimension=dimension,
                line_count=len(lines),
                paid_percentage=batch_paid_percentage(lines, dimension),
                # overdue is a backend notion
                overdue_count=await overdue_count_in_lines(store, lines),
            )
        )
    return summaries
