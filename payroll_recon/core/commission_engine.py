# payroll_recon/core/commission_engine.py
"""
Commission aggregation.

For each matched record:
  - the seller's personal payscale pays `personal_commission` for the plan
    (no payscale entry -> no credit, and the record does not count as an account)
  - the seller's manager earns the override for (manager, seller, plan) or,
    failing that, the manager payscale amount for the plan
Agents with no credited account are left out of the report, managers included.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from payroll_recon.core.feed_ingest import WG_AGENT_COLUMN, WG_PLAN_COLUMN, IngestResult, ingest_feeds
from payroll_recon.core.feed_parser import Row, parse_feed, read_feed, require_feed
from payroll_recon.core.record_matcher import WHITE_GLOVE_ORDER_KEY, MatchedRecord, match_records
from payroll_recon.core.reference_data import ReferenceData, load_reference_data
from payroll_recon.db.store import RecordStore
from payroll_recon.models.agent import Agent
from payroll_recon.models.white_glove_entry import WhiteGloveEntry
from payroll_recon.schemas.payroll import ReportDetail, ReportLine

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def share_of(total: Decimal, percentage: Optional[Decimal]) -> Optional[Decimal]:
    """`percentage`% of `total`, or None when no percentage is set."""
    if percentage is None:
        return None
    return _money(total * percentage / Decimal(100))


@dataclass
class _AgentTotals:
    agent: Agent
    accounts: int = 0
    personal_total: Decimal = ZERO
    manager_total: Decimal = ZERO
    details: list[ReportDetail] = field(default_factory=list)


def aggregate_commissions(
    matched: Sequence[MatchedRecord],
    ref: ReferenceData,
    entries_by_order: dict[str, WhiteGloveEntry],
) -> list[ReportLine]:
    totals: dict[uuid.UUID, _AgentTotals] = {a.id: _AgentTotals(agent=a) for a in ref.agents_by_id.values()}

    skipped = 0
    for record in matched:
        wg = record.white_glove
        identifier = (wg.get(WG_AGENT_COLUMN) or "").strip()
        plan_name = (wg.get(WG_PLAN_COLUMN) or "").strip()

        agent = ref.agents_by_identifier.get(identifier) if identifier else None
        plan = ref.plans_by_name.get(plan_name) if plan_name else None
        if agent is None or plan is None:
            skipped += 1
            continue

        seller = totals[agent.id]

        # personal
        personal = ref.personal_commission(agent, plan)
        if personal is not None:
            seller.accounts += 1
            seller.personal_total += personal
            entry = entries_by_order.get((wg.get(WHITE_GLOVE_ORDER_KEY) or "").strip())
            seller.details.append(
                ReportDetail(
                    white_glove_entry_id=entry.id if entry is not None else None,
                    personal_commission=_money(personal),
                )
            )

        # manager (accrues even when the seller earned nothing personally)
        manager = ref.manager_of(agent)
        if manager is not None:
            totals[manager.id].manager_total += ref.manager_commission(manager, agent, plan)

    if skipped:
        logger.warning("Skipped %s matched record(s) with an unknown agent or plan", skipped)

    lines: list[ReportLine] = []
    for t in totals.values():
        if t.accounts <= 0:
            if t.manager_total > 0:
                logger.info("Manager %s has %s in overrides but no own accounts; not reported", t.agent.id, t.manager_total)
            continue

        upfront_pct, backend_pct = ref.percentages.get(t.agent.id, (None, None))
        personal_total = _money(t.personal_total)
        manager_total = _money(t.manager_total)
        lines.append(
            ReportLine(
                agent_id=t.agent.id,
                name=t.agent.display_name,
                accounts=t.accounts,
                personal_total=personal_total,
                manager_total=manager_total,
                grand_total=personal_total + manager_total,
                upfront_percentage=upfront_pct,
                upfront_value=share_of(personal_total, upfront_pct),
                backend_percentage=backend_pct,
                backend_value=share_of(personal_total, backend_pct),
                details=t.details,
            )
        )

    lines.sort(key=lambda line: line.name.casefold())
    return lines


@dataclass
class ReportRun:
    matched: list[MatchedRecord]
    ingest: IngestResult
    lines: list[ReportLine]


async def build_report(
    store: RecordStore,
    installs: Sequence[Row],
    white_glove: Sequence[Row],
) -> ReportRun:
    """Match, ingest (plans/agents/entries), resolve reference data, aggregate."""
    matched = match_records(installs, white_glove)
    ingest = await ingest_feeds(store, installs, white_glove, matched)
    ref = await load_reference_data(store)
    lines = aggregate_commissions(matched, ref, ingest.entries_by_order)
    logger.info("Report generated: %s line(s) from %s matched record(s)", len(lines), len(matched))
    return ReportRun(matched=matched, ingest=ingest, lines=lines)


async def generate_report(
    store: RecordStore,
    installs_text: str,
    white_glove_text: str,
    *,
    delimiter: Optional[str] = None,
) -> ReportRun:
    installs = require_feed(parse_feed(installs_text, delimiter=delimiter), "Installs file")
    white_glove = require_feed(parse_feed(white_glove_text, delimiter=delimiter), "White glove file")
    return await build_report(store, installs, white_glove)


async def generate_report_from_files(
    store: RecordStore,
    installs_raw: bytes,
    white_glove_raw: bytes,
    *,
    encoding: Optional[str] = None,
    delimiter: Optional[str] = None,
) -> ReportRun:
    """Same as generate_report, for uploaded files decoded with FEED_ENCODING unless told otherwise."""
    installs = require_feed(read_feed(installs_raw, encoding=encoding, delimiter=delimiter), "Installs file")
    white_glove = require_feed(
        read_feed(white_glove_raw, encoding=encoding, delimiter=delimiter), "White glove file"
    )
    return await build_report(store, installs, white_glove)
