import pytest
from httpx import AsyncClient

from conftest import contract_payload

pytestmark = pytest.mark.asyncio


async def test_create_contract_fills_snapshot_number_and_price(async_client: AsyncClient, customer: dict, location: dict):
    resp = await async_client.post("/api/customer-contracts", json=contract_payload(customer["_id"], [location["_id"]]))
    assert resp.status_code == 201
    data = resp.json()

    assert len(data["contract_number"]) == 7 and data["contract_number"].isdigit()
    assert data["customer"]["name"] == "Arben Krasniqi"
    assert data["customer"]["email"] == customer["email"]
    assert data["status"] == "Pending"
    # 10 EUR/h x 3 h/week x 1 visit x 4 weeks
    assert data["total_amount"] == 120
    assert data["payment_calculation"]["vat_amount"] == 21.6
    assert data["payment_calculation"]["total_amount_including_vat"] == 141.6
    assert data["objects"] == [location["_id"]]
    assert data["object_details"][0]["name"] == "Krasniqi Office"


async def test_contract_requires_customer(async_client: AsyncClient):
    resp = await async_client.post("/api/customer-contracts", json=contract_payload("507f1f77bcf86cd799439011"))
    assert resp.status_code == 400


async def test_end_date_before_start_rejected(async_client: AsyncClient, customer: dict):
    payload = contract_payload(customer["_id"], start_date="2025-05-01", end_date="2025-04-01")
    resp = await async_client.post("/api/customer-contracts", json=payload)
    assert resp.status_code == 422


async def test_duplicate_contract_number(async_client: AsyncClient, customer: dict):
    payload = contract_payload(customer["_id"], contract_number="1234567")
    resp = await async_client.post("/api/customer-contracts", json=payload)
    assert resp.status_code == 201
    resp = await async_client.post("/api/customer-contracts", json=payload)
    assert resp.status_code == 400


async def test_list_is_paginated_and_searchable(async_client: AsyncClient, customer: dict):
    await async_client.post("/api/customer-contracts", json=contract_payload(customer["_id"], contract_number="1111111"))
    await async_client.post("/api/customer-contracts", json=contract_payload(customer["_id"], contract_number="2222222", status="Active"))

    resp = await async_client.get("/api/customer-contracts")
    data = resp.json()
    assert data["page"] == 1
    assert data["limit"] == 10
    assert data["total"] == 2

    resp = await async_client.get("/api/customer-contracts?status=Active")
    assert [c["contract_number"] for c in resp.json()["data"]] == ["2222222"]

    resp = await async_client.get("/api/customer-contracts?search=krasniqi")
    assert resp.json()["total"] == 2


async def test_quote(async_client: AsyncClient):
    resp = await async_client.post("/api/customer-contracts/quote", json={
        "services": [{"name": "Deep Clean", "frequency": "Daily", "price": 5}],
        "working_days_and_times": [
            {"day": "Monday", "time_slots": [{"from": "08:00", "to": "10:00", "duration": 2}]},
        ],
        "billing_frequency": "Weekly",
        "vat_rate": 8,
    })
    assert resp.status_code == 200
    quote = resp.json()
    # 5 x 2 h x 7 visits x 1 week
    assert quote["total_amount"] == 70
    assert quote["vat_amount"] == 5.6
    assert quote["total_with_vat"] == 75.6


async def test_update_and_delete_contract(async_client: AsyncClient, customer: dict):
    contract = (await async_client.post("/api/customer-contracts", json=contract_payload(customer["_id"]))).json()

    resp = await async_client.patch(f"/api/customer-contracts/{contract['_id']}", json={"status": "Active", "notes": "Keys at reception"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "Active"
    assert resp.json()["contract_number"] == contract["contract_number"]

    resp = await async_client.delete(f"/api/customer-contracts/{contract['_id']}")
    assert resp.status_code == 204
    resp = await async_client.get(f"/api/customer-contracts/{contract['_id']}")
    assert resp.status_code == 404


async def test_update_reprices_when_services_change(async_client: AsyncClient, customer: dict):
    contract = (await async_client.post("/api/customer-contracts", json=contract_payload(customer["_id"]))).json()
    assert contract["total_amount"] == 120

    services = [{"name": "Regular Cleaning", "frequency": "Weekly", "price": 20}]
    resp = await async_client.put(f"/api/customer-contracts/{contract['_id']}", json={"services": services})
    assert resp.status_code == 200
    data = resp.json()

    quote = (await async_client.post("/api/customer-contracts/quote", json={
        "services": services,
        "working_days_and_times": contract_payload(customer["_id"])["working_days_and_times"],
        "billing_frequency": "Monthly",
    })).json()
    assert data["total_amount"] == quote["total_amount"] == 240
    assert data["payment_calculation"]["total_amount_including_vat"] == 283.2

    resp = await async_client.patch(f"/api/customer-contracts/{contract['_id']}", json={"notes": "Gate code 1234"})
    assert resp.json()["total_amount"] == 240

    resp = await async_client.patch(f"/api/customer-contracts/{contract['_id']}", json={"billing_frequency": "Weekly", "total_amount": 55})
    assert resp.json()["total_amount"] == 55
    assert resp.json()["payment_calculation"]["total_amount_excluding_vat"] == 60


async def test_send_contract_email_demo(async_client: AsyncClient, customer: dict):
    contract = (await async_client.post("/api/customer-contracts", json=contract_payload(customer["_id"]))).json()

    resp = await async_client.post(f"/api/customer-contracts/{contract['_id']}/send-email")
    assert resp.status_code == 200
    data = resp.json()
    assert data["demo"] is True
    assert data["email_info"]["to"] == customer["email"]
    assert data["email_info"]["subject"] == f"Contract Signature Required - {contract['contract_number']}"
    assert data["email_info"]["sign_url"].endswith(f"/contracts/{contract['_id']}/sign")


async def test_email_config_and_test_email(async_client: AsyncClient):
    resp = await async_client.get("/api/customer-contracts/test/email-config")
    assert resp.json()["success"] is False

    resp = await async_client.post("/api/customer-contracts/test/send-email", json={})
    assert resp.status_code == 400

    resp = await async_client.post("/api/customer-contracts/test/send-email", json={"email": "ops@example.com"})
    assert resp.status_code == 200
    assert resp.json()["demo"] is True
