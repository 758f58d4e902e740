# payroll_recon/core/feed_ingest.py
"""
Feed ingestion: turn the two parsed feeds into stored reference/fulfillment rows.

Two phases:
  1) prepare_ingest()  - pure; reads every cell that needs parsing and raises
                         InputError before anything is written
  2) apply_ingest()    - plans -> agents -> white glove entries, one upsert each

The phases are not atomic as a whole (see RecordStore).
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from dateutil import parser as date_parser

from payroll_recon.core.errors import InputError
from payroll_recon.core.feed_parser import Row
from payroll_recon.core.record_matcher import MatchedRecord, WHITE_GLOVE_ORDER_KEY
from payroll_recon.db.store import RecordStore
from payroll_recon.models.agent import Agent
from payroll_recon.models.plan import Plan
from payroll_recon.models.white_glove_entry import WhiteGloveEntry

logger = logging.getLogger(__name__)

# installs feed ("new installs")
INSTALLS_PLAN_COLUMN = "Plan Name"
INSTALLS_PAYOUT_COLUMN = "Payout"
INSTALLS_DATE_COLUMN = "Day Of"

# white glove feed
WG_PLAN_COLUMN = "Internet Speed"
WG_AGENT_COLUMN = "Agent Seller Information"

# cap on how many bad cells one InputError lists
MAX_REPORTED_PROBLEMS = 20

TEXT, DATE, INT = "text", "date", "int"

# white glove header -> (WhiteGloveEntry attribute, cell kind)
WHITE_GLOVE_COLUMNS: dict[str, tuple[str, str]] = {
    "Customer Name": ("customer_name", TEXT),
    "Customer Street Address": ("customer_street_address", TEXT),
    "Customer City (Zipcode as of 7/26/2024)": ("customer_city", TEXT),
    "Customer State": ("customer_state", TEXT),
    "BAN": ("ban", TEXT),
    "Order Status": ("order_status", TEXT),
    "Order Submission Date": ("order_submission_date", DATE),
    "Original Due Date": ("original_due_date", DATE),
    "Updated Due Date": ("updated_due_date", DATE),
    "Order Completed/Cancelled": ("order_completed_cancelled", TEXT),
    "Customer CBR": ("customer_cbr", TEXT),
    "Partner Name": ("partner_name", TEXT),
    "Partner Sales Code": ("partner_sales_code", TEXT),
    "Audit Status": ("audit_status", TEXT),
    "Audit Closed no longer on form as of 11/22/2024": ("audit_closed", TEXT),
    "Who Cancelled the Order": ("who_cancelled_the_order", TEXT),
    "Did you intervene on the order": ("did_you_intervene_on_the_order", TEXT),
    "Notes": ("notes", TEXT),
    "Item Type": ("item_type", TEXT),
    "Path": ("path", TEXT),
    "Due Date Helper": ("due_date_helper", TEXT),
    "Is the customer Migrating from Legacy Services? (7/26/2024 DSL means yes blank field means No)": (
        "migrating_from_legacy",
        TEXT,
    ),
    "Legacy or BRSPD Fiber?": ("legacy_or_brspd_fiber", TEXT),
    "Cancellation Reason": ("cancellation_reason", TEXT),
    "Voice_Qty": ("voice_qty", INT),
    "HSI_Qty": ("hsi_qty", INT),
    WG_PLAN_COLUMN: ("internet_speed", TEXT),
    WG_AGENT_COLUMN: ("agent_seller_information", TEXT),
    "Modified Due Date": ("modified_due_date", DATE),
    "Modified Month": ("modified_month", INT),
    "Month Issued": ("month_issued", INT),
    "Year Issued": ("year_issued", INT),
    "Month Completed": ("month_completed", INT),
    "Year Completed": ("year_completed", INT),
    "Month Due": ("month_due", INT),
    "Year Due": ("year_due", INT),
}

_MONEY_STRIP_RE = re.compile(r"[$,\s]")


# ---------------------------------------------------------
# Cell readers (raise ValueError on unreadable input)
# ---------------------------------------------------------
def _cell(row: Row, column: str) -> str:
    return (row.get(column) or "").strip()


def parse_money(value: Optional[str]) -> Optional[Decimal]:
    """'$1,050.00' -> Decimal('1050.00'); blank -> None."""
    v = _MONEY_STRIP_RE.sub("", value or "")
    if not v:
        return None
    try:
        amount = Decimal(v)
    except InvalidOperation:
        raise ValueError(f"{value!r} is not an amount")
    if not amount.is_finite():
        raise ValueError(f"{value!r} is not an amount")
    return amount.quantize(Decimal("1.00"))


def parse_int(value: Optional[str]) -> Optional[int]:
    v = (value or "").strip()
    if not v:
        return None
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"{value!r} is not a whole number")


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Feed dates are naive local exports; they are stored as UTC."""
    v = (value or "").strip()
    if not v:
        return None
    try:
        dt = date_parser.parse(v)
    except (ValueError, OverflowError):
        raise ValueError(f"{value!r} is not a date")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


_READERS = {TEXT: lambda v: (v or "").strip() or None, DATE: parse_datetime, INT: parse_int}


def agent_name_from_identifier(identifier: str) -> str:
    """'Rep: Jane Doe' -> 'Jane Doe'; identifiers without a colon are the name."""
    head, sep, tail = identifier.partition(":")
    return tail.strip() if sep else identifier.strip()


# ---------------------------------------------------------
# Phase 1: prepare (pure)
# ---------------------------------------------------------
@dataclass
class IngestPlan:
    # plans whose payout the installs feed supplies (amount is overwritten)
    priced_plans: list[dict[str, Any]] = field(default_factory=list)
    # plans seen without a payout (insert-if-absent)
    unpriced_plans: list[dict[str, Any]] = field(default_factory=list)
    agents: list[dict[str, Any]] = field(default_factory=list)
    entries: list[dict[str, Any]] = field(default_factory=list)


class _Problems:
    def __init__(self) -> None:
        self.items: list[str] = []

    def add(self, message: str) -> None:
        self.items.append(message)

    def raise_if_any(self) -> None:
        if not self.items:
            return
        shown = self.items[:MAX_REPORTED_PROBLEMS]
        more = len(self.items) - len(shown)
        msg = "; ".join(shown)
        if more > 0:
            msg += f"; and {more} more"
        raise InputError(f"Feed rejected: {msg}")


def _plan_payouts(installs: Sequence[Row], problems: _Problems) -> dict[str, Decimal]:
    payouts: dict[str, Decimal] = {}
    for i, row in enumerate(installs, start=1):
        name = _cell(row, INSTALLS_PLAN_COLUMN)
        raw = _cell(row, INSTALLS_PAYOUT_COLUMN)
        if not name or not raw:
            continue
        try:
            amount = parse_money(raw)
        except ValueError as e:
            problems.add(f"installs row {i}, column '{INSTALLS_PAYOUT_COLUMN}': {e}")
            continue
        # first payout listed for a plan wins
        if amount is not None and name not in payouts:
            payouts[name] = amount
    return payouts


def _entry_row(record: MatchedRecord, problems: _Problems) -> Optional[dict[str, Any]]:
    wg = record.white_glove
    order_number = _cell(wg, WHITE_GLOVE_ORDER_KEY)
    if not order_number:
        return None

    entry: dict[str, Any] = {"order_number": order_number}
    for column, (attr, kind) in WHITE_GLOVE_COLUMNS.items():
        try:
            entry[attr] = _READERS[kind](wg.get(column))
        except ValueError as e:
            problems.add(f"order {order_number}, column '{column}': {e}")

    try:
        entry["install_date"] = parse_datetime(record.install.get(INSTALLS_DATE_COLUMN))
    except ValueError as e:
        problems.add(f"order {order_number}, column '{INSTALLS_DATE_COLUMN}': {e}")

    return entry


def prepare_ingest(
    installs: Sequence[Row],
    white_glove: Sequence[Row],
    matched: Sequence[MatchedRecord],
) -> IngestPlan:
    problems = _Problems()
    plan = IngestPlan()

    # plans: every speed named by the white glove feed, priced from installs when possible
    payouts = _plan_payouts(installs, problems)
    seen_plans: set[str] = set()
    for row in white_glove:
        name = _cell(row, WG_PLAN_COLUMN)
        if not name or name in seen_plans:
            continue
        seen_plans.add(name)
        if name in payouts:
            plan.priced_plans.append({"name": name, "commission_amount": payouts[name]})
        else:
            plan.unpriced_plans.append({"name": name, "commission_amount": Decimal("0.00")})

    # agents: distinct seller identifiers among matched records
    seen_agents: set[str] = set()
    for record in matched:
        identifier = _cell(record.white_glove, WG_AGENT_COLUMN)
        if not identifier or identifier in seen_agents:
            continue
        seen_agents.add(identifier)
        plan.agents.append({"identifier": identifier, "name": agent_name_from_identifier(identifier)})

    for record in matched:
        entry = _entry_row(record, problems)
        if entry is not None:
            plan.entries.append(entry)

    problems.raise_if_any()
    return plan


# ---------------------------------------------------------
# Phase 2: apply
# ---------------------------------------------------------
@dataclass
class IngestResult:
    plans: int
    agents: int
    entries_by_order: dict[str, WhiteGloveEntry]


async def apply_ingest(store: RecordStore, plan: IngestPlan) -> IngestResult:
    priced = await store.upsert(Plan, plan.priced_plans, conflict_key="name", update_fields=("commission_amount",))
    unpriced = await store.upsert(Plan, plan.unpriced_plans, conflict_key="name", update_fields=())

    # never overwrite an existing agent's attributes from feed data
    agents = await store.upsert(Agent, plan.agents, conflict_key="identifier", update_fields=())

    # paid flags are not in the rows: inserted as False, left alone on conflict
    entries = await store.upsert(WhiteGloveEntry, plan.entries, conflict_key="order_number")

    logger.info(
        "Ingested feeds: %s plans, %s agents, %s white glove entries",
        len(priced) + len(unpriced), len(agents), len(entries),
    )
    return IngestResult(
        plans=len(priced) + len(unpriced),
        agents=len(agents),
        entries_by_order={e.order_number: e for e in entries},
    )


async def ingest_feeds(
    store: RecordStore,
    installs: Sequence[Row],
    white_glove: Sequence[Row],
    matched: Sequence[MatchedRecord],
) -> IngestResult:
    plan = prepare_ingest(installs, white_glove, matched)
    return await apply_ingest(store, plan)
