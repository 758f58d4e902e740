# payroll_recon/api/v1/payroll.py
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from payroll_recon.api.deps.store import get_store, http_error
from payroll_recon.core import batches
from payroll_recon.core.commission_engine import ReportRun, generate_report, generate_report_from_files
from payroll_recon.core.dimensions import PaymentDimension
from payroll_recon.core.errors import PayrollError
from payroll_recon.core.payment_state import AccountState, LineState, PaymentStateEngine
from payroll_recon.db.store import RecordStore
from payroll_recon.schemas.payroll import (
    AccountOut,
    BatchDetailOut,
    BatchOut,
    BatchSummaryOut,
    GenerateReportIn,
    GenerateReportOut,
    LineDetailOut,
    RenameBatchIn,
    ReportLineOut,
    SaveBatchIn,
)

router = APIRouter(prefix="/payroll", tags=["payroll"])


def _account_out(state: AccountState) -> AccountOut:
    return AccountOut.model_validate(state.entry).model_copy(
        update={"is_overdue": state.is_overdue, "overdue_days": state.overdue_days}
    )


def _line_out(state: LineState) -> LineDetailOut:
    base = ReportLineOut.model_validate(state.line).model_dump()
    return LineDetailOut(
        **base,
        status=state.status.value,
        max_overdue_days=state.max_overdue_days,
        account_rows=[_account_out(a) for a in state.accounts],
    )


def _report_out(run: ReportRun) -> GenerateReportOut:
    return GenerateReportOut(
        matched=len(run.matched),
        plans=run.ingest.plans,
        agents=run.ingest.agents,
        entries=len(run.ingest.entries_by_order),
        lines=run.lines,
    )


# ---------------------------------------------------------
# Report preview
# ---------------------------------------------------------
@router.post("/reports", response_model=GenerateReportOut)
async def create_report(payload: GenerateReportIn, store: RecordStore = Depends(get_store)):
    """Ingest both feeds and compute report lines. Nothing is saved as a batch."""
    try:
        run = await generate_report(
            store, payload.installs_csv, payload.white_glove_csv, delimiter=payload.delimiter
        )
    except PayrollError as e:
        raise http_error(e)

    return _report_out(run)


@router.post("/reports/upload", response_model=GenerateReportOut)
async def create_report_from_upload(
    installs_file: UploadFile = File(...),
    white_glove_file: UploadFile = File(...),
    delimiter: Optional[str] = Form(None, min_length=1, max_length=1),
    encoding: Optional[str] = Form(None),
    store: RecordStore = Depends(get_store),
):
    """Same as /reports for the raw exported files. Decoded with FEED_ENCODING unless `encoding` is given."""
    installs_raw = await installs_file.read()
    white_glove_raw = await white_glove_file.read()
    try:
        run = await generate_report_from_files(
            store, installs_raw, white_glove_raw, encoding=encoding, delimiter=delimiter
        )
    except PayrollError as e:
        raise http_error(e)
    return _report_out(run)


# ---------------------------------------------------------
# Batches
# ---------------------------------------------------------
@router.post("/batches", response_model=BatchOut, status_code=status.HTTP_201_CREATED)
async def save_batch(payload: SaveBatchIn, store: RecordStore = Depends(get_store)):
    try:
        return await batches.save_batch(store, payload.batch_name, payload.lines)
    except PayrollError as e:
        raise http_error(e)


@router.get("/batches", response_model=List[BatchSummaryOut])
async def list_batches(
    dimension: PaymentDimension = PaymentDimension.BACKEND,
    store: RecordStore = Depends(get_store),
):
    try:
        summaries = await batches.list_batch_summaries(store, dimension)
    except PayrollError as e:
        raise http_error(e)

    return [
        BatchSummaryOut(
            id=s.batch.id,
            batch_name=s.batch.batch_name,
            created_at=s.batch.created_at,
            dimension=s.dimension,
            line_count=s.line_count,
            paid_percentage=s.paid_percentage,
            overdue_count=s.overdue_count,
        )
        for s in summaries
    ]


@router.get("/batches/{batch_id}", response_model=BatchDetailOut)
async def get_batch(
    batch_id: UUID,
    dimension: PaymentDimension = PaymentDimension.BACKEND,
    store: RecordStore = Depends(get_store),
):
    """Batch lines with their accounts. Loading also repairs all-paid lines."""
    try:
        detail = await PaymentStateEngine(store).load_batch(batch_id, dimension)
    except PayrollError as e:
        raise http_error(e)

    return BatchDetailOut(
        batch=BatchOut.model_validate(detail.batch),
        dimension=detail.dimension,
        paid_percentage=detail.paid_percentage,
        repaired_line_ids=detail.repaired_line_ids,
        lines=[_line_out(s) for s in detail.lines],
    )


@router.patch("/batches/{batch_id}", response_model=BatchOut)
async def rename_batch(batch_id: UUID, payload: RenameBatchIn, store: RecordStore = Depends(get_store)):
    try:
        return await batches.rename_batch(store, batch_id, payload.batch_name)
    except PayrollError as e:
        raise http_error(e)


@router.delete("/batches/{batch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_batch(batch_id: UUID, store: RecordStore = Depends(get_store)):
    try:
        await batches.delete_batch(store, batch_id)
    except PayrollError as e:
        raise http_error(e)
    return None


# ---------------------------------------------------------
# Payment toggles
# ---------------------------------------------------------
@router.post("/lines/{line_id}/{dimension}/toggle", response_model=LineDetailOut)
async def toggle_line(line_id: UUID, dimension: PaymentDimension, store: RecordStore = Depends(get_store)):
    try:
        state = await PaymentStateEngine(store).toggle_line_paid(line_id, dimension)
    except PayrollError as e:
        raise http_error(e)
    return _line_out(state)


@router.post("/lines/{line_id}/accounts/{account_id}/{dimension}/toggle", response_model=LineDetailOut)
async def toggle_account(
    line_id: UUID,
    account_id: UUID,
    dimension: PaymentDimension,
    store: RecordStore = Depends(get_store),
):
    try:
        state = await PaymentStateEngine(store).toggle_account_paid(line_id, account_id, dimension)
    except PayrollError as e:
        raise http_error(e)
    return _line_out(state)
