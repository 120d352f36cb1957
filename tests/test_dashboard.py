import pytest
from httpx import AsyncClient
from datetime import datetime

from conftest import contract_payload, schedule_payload, invoice_payload

pytestmark = pytest.mark.asyncio


async def test_dashboard_stats_empty(async_client: AsyncClient):
    """Dashboard stats returns expected shape on an empty database."""
    resp = await async_client.get("/api/dashboard/stats")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_employees"] == 0
    assert data["recent_activities"] == []
    assert data["upcoming_tasks"] == []
    assert data["performance"] == {"completion_rate": 0, "average_rating": 1, "total_revenue": 0}


async def test_dashboard_stats(async_client: AsyncClient, customer: dict, location: dict, employee: dict):
    contract = (await async_client.post("/api/customer-contracts", json=contract_payload(customer["_id"], status="Active"))).json()
    today = datetime.now().strftime("%Y-%m-%dT00:00:00")
    done = (await async_client.post("/api/schedules", json=schedule_payload(location["_id"], scheduled_date=today, start_time="06:00", end_time="07:00"))).json()
    await async_client.patch(f"/api/schedules/{done['_id']}", json={"status": "Completed"})
    await async_client.post("/api/schedules", json=schedule_payload(location["_id"], [employee["_id"]], cleaning_type="Deep Clean"))

    invoice = (await async_client.post("/api/invoices", json=invoice_payload())).json()
    await async_client.post(f"/api/invoices/{invoice['_id']}/mark-paid", json={"payment_amount": invoice["total_amount"]})

    resp = await async_client.get("/api/dashboard/stats")
    assert resp.status_code == 200
    data = resp.json()

    assert data["total_employees"] == 1
    assert data["active_employees"] == 1
    assert data["total_contracts"] == 1
    assert data["active_contracts"] == 1
    assert data["total_locations"] == 1
    assert data["todays_tasks"] == 1
    assert data["summary"]["total_schedules"] == 2
    assert data["summary"]["completed_schedules"] == 1
    assert data["summary"]["paid_invoices_count"] == 1
    assert data["performance"]["completion_rate"] == 50
    assert data["performance"]["average_rating"] == 3.5
    assert data["performance"]["total_revenue"] == 236

    titles = [a["title"] for a in data["recent_activities"]]
    assert "Blerta Morina added" in titles
    assert f"{contract['contract_number']} signed with Arben Krasniqi" in titles
    assert all(a["time"] == "Just now" for a in data["recent_activities"])

    assert len(data["upcoming_tasks"]) == 1
    task = data["upcoming_tasks"][0]
    assert task["title"] == "Deep Clean"
    assert task["date"] == "Tomorrow"
    assert task["location"] == "Krasniqi Office"
    assert task["employees"] == "Blerta Morina"
    assert task["status"] == "pending"
    assert task["status_icon"] == "schedule"
