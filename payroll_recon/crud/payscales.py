# payroll_recon/crud/payscales.py
"""
Personal and manager payscales with their per-plan commission rows.

Every write replaces the whole commission set: one row per current plan, value
taken from `commissions` (plans left out get 0). Creating a payscale is two
writes; when the second fails the new payscale row is deleted again, best effort.
"""
from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Any, Mapping, Optional

from payroll_recon.core.errors import InputError, NotFoundError, StoreError
from payroll_recon.core.reference_data import parse_percentage
from payroll_recon.crud.plans import list_plans
from payroll_recon.db.store import RecordStore
from payroll_recon.models.agent import Agent
from payroll_recon.models.payscale import (
    FIXED_AMOUNT,
    ManagerPayscale,
    ManagerPlanCommission,
    PersonalPayscale,
    PersonalPlanCommission,
)
from payroll_recon.schemas.reference import ManagerPayscaleOut, PersonalPayscaleOut

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def _clean_name(name: str) -> str:
    clean = (name or "").strip()
    if not clean:
        raise InputError("Payscale name is required")
    return clean


def _percentage(value: Any, label: str) -> Decimal:
    pct = parse_percentage(value)
    if pct is None:
        raise InputError(f"{label} must be a number")
    if pct < 0 or pct > 100:
        raise InputError(f"{label} must be between 0 and 100")
    return pct


async def _commission_rows(
    store: RecordStore,
    owner_column: str,
    owner_id: uuid.UUID,
    commissions: Mapping[uuid.UUID, Decimal],
) -> list[dict[str, Any]]:
    plans = await list_plans(store)
    unknown = set(commissions) - {p.id for p in plans}
    if unknown:
        raise InputError(f"Unknown plan id(s): {', '.join(sorted(str(u) for u in unknown))}")
    return [
        {
            owner_column: owner_id,
            "plan_id": p.id,
            "commission_type": FIXED_AMOUNT,
            "commission_value": Decimal(commissions.get(p.id, ZERO)),
        }
        for p in plans
    ]


async def _compensating_delete(store: RecordStore, model, ident: uuid.UUID) -> None:
    try:
        await store.delete(model, model.id == ident)
    except StoreError:
        logger.exception("Compensating delete of %s %s failed", model.__tablename__, ident)


def _commission_map(rows, owner_attr: str) -> dict[uuid.UUID, dict[uuid.UUID, Decimal]]:
    out: dict[uuid.UUID, dict[uuid.UUID, Decimal]] = {}
    for r in rows:
        out.setdefault(getattr(r, owner_attr), {})[r.plan_id] = r.commission_value
    return out


# ---------------------------------------------------------
# Personal
# ---------------------------------------------------------
def _personal_out(ps: PersonalPayscale, commissions: Optional[dict[uuid.UUID, Decimal]]) -> PersonalPayscaleOut:
    return PersonalPayscaleOut(
        id=ps.id,
        name=ps.name,
        upfront_percentage=ps.upfront_percentage,
        backend_percentage=ps.backend_percentage,
        commissions=commissions or {},
    )


async def list_personal_payscales(store: RecordStore) -> list[PersonalPayscaleOut]:
    payscales = await store.select(PersonalPayscale, order_by=(PersonalPayscale.created_at, PersonalPayscale.name))
    by_owner = _commission_map(await store.select(PersonalPlanCommission), "personal_payscale_id")
    return [_personal_out(ps, by_owner.get(ps.id)) for ps in payscales]


async def get_personal_payscale(store: RecordStore, payscale_id: uuid.UUID) -> PersonalPayscaleOut:
    ps = await store.get(PersonalPayscale, payscale_id)
    if ps is None:
        raise NotFoundError("Personal payscale not found")
    rows = await store.select(PersonalPlanCommission, PersonalPlanCommission.personal_payscale_id == payscale_id)
    return _personal_out(ps, _commission_map(rows, "personal_payscale_id").get(payscale_id))


async def create_personal_payscale(
    store: RecordStore,
    name: str,
    upfront_percentage: Any,
    backend_percentage: Any,
    commissions: Optional[Mapping[uuid.UUID, Decimal]] = None,
) -> PersonalPayscaleOut:
    values = {
        "name": _clean_name(name),
        "upfront_percentage": _percentage(upfront_percentage, "Upfront percentage"),
        "backend_percentage": _percentage(backend_percentage, "Backend percentage"),
    }
    commissions = commissions or {}

    (ps,) = await store.insert(PersonalPayscale, [values])
    try:
        rows = await _commission_rows(store, "personal_payscale_id", ps.id, commissions)
        await store.insert(PersonalPlanCommission, rows)
    except (InputError, StoreError):
        await _compensating_delete(store, PersonalPayscale, ps.id)
        raise

    logger.info("Created personal payscale %s (%r) with %s plan commission(s)", ps.id, ps.name, len(rows))
    return await get_personal_payscale(store, ps.id)


async def update_personal_payscale(
    store: RecordStore,
    payscale_id: uuid.UUID,
    name: str,
    upfront_percentage: Any,
    backend_percentage: Any,
    commissions: Optional[Mapping[uuid.UUID, Decimal]] = None,
) -> PersonalPayscaleOut:
    values = {
        "name": _clean_name(name),
        "upfront_percentage": _percentage(upfront_percentage, "Upfront percentage"),
        "backend_percentage": _percentage(backend_percentage, "Backend percentage"),
    }
    if await store.get(PersonalPayscale, payscale_id) is None:
        raise NotFoundError("Personal payscale not found")
    rows = await _commission_rows(store, "personal_payscale_id", payscale_id, commissions or {})

    await store.update(PersonalPayscale, PersonalPayscale.id == payscale_id, values=values)
    await store.delete(PersonalPlanCommission, PersonalPlanCommission.personal_payscale_id == payscale_id)
    await store.insert(PersonalPlanCommission, rows)

    logger.info("Updated personal payscale %s", payscale_id)
    return await get_personal_payscale(store, payscale_id)


# ---------------------------------------------------------
# Manager
# ---------------------------------------------------------
def _manager_out(ps: ManagerPayscale, commissions: Optional[dict[uuid.UUID, Decimal]]) -> ManagerPayscaleOut:
    return ManagerPayscaleOut(id=ps.id, name=ps.name, commissions=commissions or {})


async def list_manager_payscales(store: RecordStore) -> list[ManagerPayscaleOut]:
    payscales = await store.select(ManagerPayscale, order_by=(ManagerPayscale.created_at, ManagerPayscale.name))
    by_owner = _commission_map(await store.select(ManagerPlanCommission), "manager_payscale_id")
    return [_manager_out(ps, by_owner.get(ps.id)) for ps in payscales]


async def get_manager_payscale(store: RecordStore, payscale_id: uuid.UUID) -> ManagerPayscaleOut:
    ps = await store.get(ManagerPayscale, payscale_id)
    if ps is None:
        raise NotFoundError("Manager payscale not found")
    rows = await store.select(ManagerPlanCommission, ManagerPlanCommission.manager_payscale_id == payscale_id)
    return _manager_out(ps, _commission_map(rows, "manager_payscale_id").get(payscale_id))


async def create_manager_payscale(
    store: RecordStore,
    name: str,
    commissions: Optional[Mapping[uuid.UUID, Decimal]] = None,
) -> ManagerPayscaleOut:
    (ps,) = await store.insert(ManagerPayscale, [{"name": _clean_name(name)}])
    try:
        rows = await _commission_rows(store, "manager_payscale_id", ps.id, commissions or {})
        await store.insert(ManagerPlanCommission, rows)
    except (InputError, StoreError):
        await _compensating_delete(store, ManagerPayscale, ps.id)
        raise

    logger.info("Created manager payscale %s (%r) with %s plan commission(s)", ps.id, ps.name, len(rows))
    return await get_manager_payscale(store, ps.id)


async def update_manager_payscale(
    store: RecordStore,
    payscale_id: uuid.UUID,
    name: str,
    commissions: Optional[Mapping[uuid.UUID, Decimal]] = None,
) -> ManagerPayscaleOut:
    clean = _clean_name(name)
    if await store.get(ManagerPayscale, payscale_id) is None:
        raise NotFoundError("Manager payscale not found")
    rows = await _commission_rows(store, "manager_payscale_id", payscale_id, commissions or {})

    await store.update(ManagerPayscale, ManagerPayscale.id == payscale_id, values={"name": clean})
    await store.delete(ManagerPlanCommission, ManagerPlanCommission.manager_payscale_id == payscale_id)
    await store.insert(ManagerPlanCommission, rows)

    logger.info("Updated manager payscale %s", payscale_id)
    return await get_manager_payscale(store, payscale_id)


async def list_payscale_managers(store: RecordStore, payscale_id: uuid.UUID) -> list[Agent]:
    """Managers currently on this manager payscale (candidates for overrides)."""
    if await store.get(ManagerPayscale, payscale_id) is None:
        raise NotFoundError("Manager payscale not found")
    return await store.select(
        Agent,
        Agent.is_manager.is_(True),
        Agent.manager_payscale_id == payscale_id,
        order_by=(Agent.name, Agent.identifier),
    )
