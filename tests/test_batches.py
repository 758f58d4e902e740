# tests/test_batches.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from payroll_recon.core import batches
from payroll_recon.core.dimensions import PaymentDimension
from payroll_recon.core.errors import InputError, NotFoundError
from payroll_recon.models.agent import Agent
from payroll_recon.models.payroll_report import PayrollReportBatch, PayrollReportLine
from payroll_recon.models.white_glove_entry import WhiteGloveEntry
from payroll_recon.schemas.payroll import ReportDetail, ReportLine


async def create_agent(store, name: str) -> Agent:
    (agent,) = await store.insert(Agent, [{"identifier": f"Rep: {name}", "name": name}])
    return agent


def report_line(agent: Agent, entry_ids) -> ReportLine:
    total = Decimal("10.00") * len(entry_ids)
    return ReportLine(
        agent_id=agent.id,
        name=agent.name,
        accounts=len(entry_ids),
        personal_total=total,
        manager_total=Decimal("0.00"),
        grand_total=total,
        details=[ReportDetail(white_glove_entry_id=e, personal_commission=Decimal("10.00")) for e in entry_ids],
    )


@pytest.mark.asyncio
async def test_save_batch_snapshots_lines_unpaid(store):
    jane = await create_agent(store, "Jane")
    (entry,) = await store.insert(WhiteGloveEntry, [{"order_number": "X1"}])

    batch = await batches.save_batch(store, "  June payroll  ", [report_line(jane, [entry.id])])

    assert batch.batch_name == "June payroll"
    (line,) = await batches.list_lines(store, batch.id)
    assert line.agent_id == jane.id
    assert line.accounts == 1
    assert line.grand_total == Decimal("10.00")
    assert line.frontend_is_paid is False
    assert line.backend_is_paid is False
    assert line.details == [{"white_glove_entry_id": str(entry.id), "personal_commission": "10.00"}]


@pytest.mark.asyncio
async def test_blank_batch_name_is_rejected_without_writes(store):
    jane = await create_agent(store, "Jane")

    with pytest.raises(InputError):
        await batches.save_batch(store, "   ", [report_line(jane, [])])

    assert await store.count(PayrollReportBatch) == 0


@pytest.mark.asyncio
async def test_empty_report_is_rejected(store):
    with pytest.raises(InputError):
        await batches.save_batch(store, "June", [])


@pytest.mark.asyncio
async def test_blank_rename_keeps_the_original_name(store):
    jane = await create_agent(store, "Jane")
    batch = await batches.save_batch(store, "June", [report_line(jane, [])])

    same = await batches.rename_batch(store, batch.id, "   ")
    assert same.batch_name == "June"

    renamed = await batches.rename_batch(store, batch.id, " July ")
    assert renamed.batch_name == "July"
    assert (await batches.get_batch(store, batch.id)).batch_name == "July"


@pytest.mark.asyncio
async def test_delete_batch_removes_every_line(store):
    jane = await create_agent(store, "Jane")
    bob = await create_agent(store, "Bob")
    batch = await batches.save_batch(store, "June", [report_line(jane, []), report_line(bob, [])])

    removed = await batches.delete_batch(store, batch.id)

    assert removed == 2
    assert await store.count(PayrollReportLine, PayrollReportLine.batch_id == batch.id) == 0
    with pytest.raises(NotFoundError):
        await batches.get_batch(store, batch.id)


@pytest.mark.asyncio
async def test_unknown_batch_is_not_found(store):
    with pytest.raises(NotFoundError):
        await batches.rename_batch(store, uuid.uuid4(), "x")
    with pytest.raises(NotFoundError):
        await batches.delete_batch(store, uuid.uuid4())


@pytest.mark.asyncio
async def test_summaries_newest_first_with_paid_share_and_overdue(store):
    old_install = datetime.now(timezone.utc) - timedelta(days=120)
    overdue, fresh = await store.insert(
        WhiteGloveEntry,
        [{"order_number": "X1", "install_date": old_install}, {"order_number": "X2"}],
    )
    now = datetime.now(timezone.utc)
    older, newer = await store.insert(
        PayrollReportBatch,
        [
            {"batch_name": "May", "created_at": now - timedelta(days=30)},
            {"batch_name": "June", "created_at": now},
        ],
    )
    await store.insert(
        PayrollReportLine,
        [
            {
                "batch_id": newer.id,
                "name": "Jane",
                "backend_is_paid": True,
                "details": [{"white_glove_entry_id": str(fresh.id)}],
            },
            {
                "batch_id": newer.id,
                "name": "Bob",
                "details": [{"white_glove_entry_id": str(overdue.id)}],
            },
        ],
    )

    summaries = await batches.list_batch_summaries(store, PaymentDimension.BACKEND)

    assert [s.batch.batch_name for s in summaries] == ["June", "May"]
    june, may = summaries
    assert june.line_count == 2
    assert june.paid_percentage == 50.0
    assert june.overdue_count == 1
    assert may.line_count == 0
    assert may.paid_percentage == 0.0
    assert may.overdue_count == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "changes",
    [
        {"accounts": 5},
        {"personal_total": Decimal("999.00"), "grand_total": Decimal("999.00")},
        {"grand_total": Decimal("1.00")},
    ],
)
async def test_lines_whose_totals_disagree_with_details_are_rejected(store, changes):
    jane = await create_agent(store, "Jane")
    (entry,) = await store.insert(WhiteGloveEntry, [{"order_number": "X1"}])
    line = report_line(jane, [entry.id]).model_copy(update=changes)

    with pytest.raises(InputError):
        await batches.save_batch(store, "June", [line])

    assert await store.count(PayrollReportBatch) == 0
    assert await store.count(PayrollReportLine) == 0


@pytest.mark.asyncio
async def test_line_totals_include_manager_share(store):
    jane = await create_agent(store, "Jane")
    (entry,) = await store.insert(WhiteGloveEntry, [{"order_number": "X1"}])
    line = report_line(jane, [entry.id]).model_copy(
        update={"manager_total": Decimal("4.5"), "grand_total": Decimal("14.50")}
    )

    batch = await batches.save_batch(store, "June", [line])

    (stored,) = await batches.list_lines(store, batch.id)
    assert stored.accounts == len(stored.details) == 1
    assert stored.grand_total == Decimal("14.50")


@pytest.mark.asyncio
async def test_overlong_batch_names_are_input_errors(store):
    jane = await create_agent(store, "Jane")

    with pytest.raises(InputError):
        await batches.save_batch(store, "x" * 201, [report_line(jane, [])])
    assert await store.count(PayrollReportBatch) == 0

    batch = await batches.save_batch(store, "x" * 200, [report_line(jane, [])])
    with pytest.raises(InputError):
        await batches.rename_batch(store, batch.id, "y" * 201)
    assert (await batches.get_batch(store, batch.id)).batch_name == "x" * 200
