# tests/test_api.py
from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from payroll_recon.models.agent import Agent
from payroll_recon.models.payscale import PersonalPayscale, PersonalPlanCommission
from payroll_recon.models.plan import Plan

INSTALLS = "Order Id,Plan Name,Payout,Day Of\nX1,100M,$50,2024-01-15\nX2,100M,$50,2024-01-16\n"
WHITE_GLOVE = (
    "Order Number,Internet Speed,Agent Seller Information\n"
    "X1,100M,Rep: Jane Doe\n"
    "X2,100M,Rep: Jane Doe\n"
)


async def seed_jane(store) -> Agent:
    (plan,) = await store.insert(Plan, [{"name": "100M"}])
    (ps,) = await store.insert(
        PersonalPayscale, [{"name": "Std", "upfront_percentage": Decimal("40"), "backend_percentage": Decimal("60")}]
    )
    await store.insert(
        PersonalPlanCommission, [{"personal_payscale_id": ps.id, "plan_id": plan.id, "commission_value": Decimal("20")}]
    )
    (jane,) = await store.insert(
        Agent, [{"identifier": "Rep: Jane Doe", "name": "Jane Doe", "personal_payscale_id": ps.id}]
    )
    return jane


async def generate_and_save(client) -> tuple[dict, dict]:
    res = await client.post(
        "/api/v1/payroll/reports", json={"installs_csv": INSTALLS, "white_glove_csv": WHITE_GLOVE}
    )
    assert res.status_code == 200, res.text
    report = res.json()

    res = await client.post("/api/v1/payroll/batches", json={"batch_name": "June", "lines": report["lines"]})
    assert res.status_code == 201, res.text
    return report, res.json()


@pytest.mark.asyncio
async def test_root(client):
    res = await client.get("/")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_report_batch_and_toggle_flow(client, store):
    await seed_jane(store)

    report, batch = await generate_and_save(client)
    assert report["matched"] == 2
    (line,) = report["lines"]
    assert line["name"] == "Jane Doe"
    assert line["accounts"] == 2
    assert Decimal(line["personal_total"]) == Decimal("40.00")

    res = await client.get("/api/v1/payroll/batches")
    assert res.status_code == 200
    (summary,) = res.json()
    assert summary["id"] == batch["id"]
    assert summary["line_count"] == 1
    assert summary["paid_percentage"] == 0.0
    # installs from 2024 are far past the threshold
    assert summary["overdue_count"] == 2

    res = await client.get(f"/api/v1/payroll/batches/{batch['id']}", params={"dimension": "backend"})
    assert res.status_code == 200
    detail = res.json()
    (line,) = detail["lines"]
    assert line["status"] == "overdue"
    assert len(line["account_rows"]) == 2
    first, second = (a["id"] for a in line["account_rows"])

    res = await client.post(f"/api/v1/payroll/lines/{line['id']}/accounts/{first}/backend/toggle")
    assert res.status_code == 200
    assert res.json()["backend_is_paid"] is False

    res = await client.post(f"/api/v1/payroll/lines/{line['id']}/accounts/{second}/backend/toggle")
    assert res.status_code == 200
    body = res.json()
    assert body["backend_is_paid"] is True
    assert body["status"] == "paid"
    assert body["frontend_is_paid"] is False

    res = await client.get("/api/v1/dashboard/overdue")
    assert res.json() == {"dimension": "backend", "overdue_count": 0}

    res = await client.post(f"/api/v1/payroll/lines/{line['id']}/frontend/toggle")
    assert res.status_code == 200
    assert all(a["frontend_paid"] for a in res.json()["account_rows"])


@pytest.mark.asyncio
async def test_rename_and_delete_batch(client, store):
    await seed_jane(store)
    _, batch = await generate_and_save(client)

    res = await client.patch(f"/api/v1/payroll/batches/{batch['id']}", json={"batch_name": "  "})
    assert res.status_code == 200
    assert res.json()["batch_name"] == "June"

    res = await client.delete(f"/api/v1/payroll/batches/{batch['id']}")
    assert res.status_code == 204

    res = await client.get(f"/api/v1/payroll/batches/{batch['id']}")
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_engine_errors_map_to_http_status(client, store):
    res = await client.post("/api/v1/payroll/batches", json={"batch_name": " ", "lines": []})
    assert res.status_code == 422

    res = await client.post(
        "/api/v1/payroll/reports",
        json={"installs_csv": INSTALLS.replace("$50", "fifty"), "white_glove_csv": WHITE_GLOVE},
    )
    assert res.status_code == 422
    assert "Payout" in res.json()["detail"]

    res = await client.post(f"/api/v1/payroll/lines/{uuid.uuid4()}/backend/toggle")
    assert res.status_code == 404

    res = await client.post(f"/api/v1/payroll/lines/{uuid.uuid4()}/sideways/toggle")
    assert res.status_code == 422

    res = await client.post("/api/v1/plans", json={"name": "2G"})
    assert res.status_code == 201
    res = await client.post("/api/v1/plans", json={"name": "2G"})
    assert res.status_code == 409


@pytest.mark.asyncio
async def test_reference_admin_endpoints(client):
    res = await client.post("/api/v1/plans", json={"name": "   "})
    assert res.status_code == 204

    res = await client.post("/api/v1/plans", json={"name": "100M"})
    plan = res.json()
    res = await client.patch(f"/api/v1/plans/{plan['id']}", json={"commission_amount": "55"})
    assert res.status_code == 200
    assert Decimal(res.json()["commission_amount"]) == Decimal("55")

    res = await client.post(
        "/api/v1/payscales/personal",
        json={"name": "Std", "upfront_percentage": "40", "backend_percentage": "160", "commissions": {}},
    )
    assert res.status_code == 422

    res = await client.post(
        "/api/v1/payscales/manager", json={"name": "Leads", "commissions": {plan["id"]: "5"}}
    )
    assert res.status_code == 201
    mps = res.json()

    res = await client.post(
        "/api/v1/agents",
        json={"name": "Mona", "identifier": "Rep: Mona", "is_manager": True, "manager_payscale_id": mps["id"]},
    )
    assert res.status_code == 201
    mona = res.json()
    res = await client.post("/api/v1/agents", json={"name": "Al", "identifier": "Rep: Al"})
    al = res.json()

    res = await client.put(
        f"/api/v1/agents/{mona['id']}",
        json={
            "name": "Mona",
            "identifier": "Rep: Mona",
            "is_manager": True,
            "manager_payscale_id": mps["id"],
            "assigned_agent_ids": [al["id"]],
        },
    )
    assert res.status_code == 200

    res = await client.get(f"/api/v1/payscales/manager/{mps['id']}/managers")
    assert [m["id"] for m in res.json()] == [mona["id"]]

    res = await client.get(f"/api/v1/managers/{mona['id']}/agents")
    assert [a["id"] for a in res.json()] == [al["id"]]

    res = await client.put(
        f"/api/v1/managers/{mona['id']}/overrides",
        json={"overrides": [{"agent_id": al["id"], "plan_id": plan["id"], "commission_value": "9"}]},
    )
    assert res.status_code == 200
    (override,) = res.json()
    assert Decimal(override["commission_value"]) == Decimal("9")


@pytest.mark.asyncio
async def test_create_user_endpoint(client):
    res = await client.post("/api/v1/users", json={"email": "jane@example.com", "name": "Jane"})
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["email"] == "jane@example.com"

    res = await client.get("/api/v1/agents")
    (agent,) = res.json()
    assert agent["id"] == body["agent_id"]
    assert agent["user_id"] == body["user_id"]

    res = await client.post("/api/v1/users", json={"email": "jane@example.com", "name": "Jane"})
    assert res.status_code == 409

    res = await client.post("/api/v1/users", json={"email": "not-an-email", "name": "Jane"})
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_report_from_uploaded_files(client, store):
    await seed_jane(store)

    # BOM on the first header, as spreadsheet exports write it
    files = {
        "installs_file": ("installs.csv", ("\ufeff" + INSTALLS).encode("utf-8"), "text/csv"),
        "white_glove_file": ("wg.csv", WHITE_GLOVE.encode("utf-8"), "text/csv"),
    }
    res = await client.post("/api/v1/payroll/reports/upload", files=files)
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["matched"] == 2
    (line,) = body["lines"]
    assert line["accounts"] == 2

    semicolons = {
        "installs_file": ("installs.csv", INSTALLS.replace(",", ";").encode("cp1252"), "text/csv"),
        "white_glove_file": ("wg.csv", WHITE_GLOVE.replace(",", ";").encode("cp1252"), "text/csv"),
    }
    res = await client.post(
        "/api/v1/payroll/reports/upload", files=semicolons, data={"delimiter": ";", "encoding": "cp1252"}
    )
    assert res.status_code == 200, res.text
    assert res.json()["matched"] == 2


@pytest.mark.asyncio
async def test_uploaded_files_that_do_not_decode_are_rejected(client):
    files = {
        "installs_file": ("installs.csv", b"Order Id\n\xff\xfe\xfa\n", "text/csv"),
        "white_glove_file": ("wg.csv", WHITE_GLOVE.encode("utf-8"), "text/csv"),
    }
    res = await client.post("/api/v1/payroll/reports/upload", files=files)
    assert res.status_code == 422
    assert "utf-8-sig" in res.json()["detail"]


@pytest.mark.asyncio
async def test_saving_inconsistent_or_misnamed_lines_is_rejected(client, store):
    await seed_jane(store)
    report, _ = await generate_and_save(client)
    (line,) = report["lines"]

    tampered = {**line, "accounts": 5, "personal_total": "999.00", "grand_total": "1.00"}
    res = await client.post("/api/v1/payroll/batches", json={"batch_name": "July", "lines": [tampered]})
    assert res.status_code == 422
    assert "accounts" in res.json()["detail"]

    res = await client.post("/api/v1/payroll/batches", json={"batch_name": "x" * 201, "lines": [line]})
    assert res.status_code == 422

    res = await client.get("/api/v1/payroll/batches")
    assert [b["batch_name"] for b in res.json()] == ["June"]
