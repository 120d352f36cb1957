import pytest
from httpx import AsyncClient

from conftest import customer_payload

pytestmark = pytest.mark.asyncio


async def test_create_and_get_customer(async_client: AsyncClient):
    resp = await async_client.post("/api/customers", json=customer_payload(email="  Arben.K@Example.com "))
    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "arben.k@example.com"
    assert data["status"] == "Pending"
    assert data["full_name"] == "Arben Krasniqi"
    assert data["full_address"] == "Rr. Nena Tereze 12, Pristina, Pristina"
    customer_id = data["_id"]

    resp = await async_client.get(f"/api/customers/{customer_id}")
    assert resp.status_code == 200
    assert resp.json()["last_name"] == "Krasniqi"


async def test_duplicate_email_rejected(async_client: AsyncClient):
    await async_client.post("/api/customers", json=customer_payload())
    resp = await async_client.post("/api/customers", json=customer_payload(first_name="Other"))
    assert resp.status_code == 400


async def test_invalid_payload_returns_422(async_client: AsyncClient):
    """Unknown municipality and malformed NIPT are rejected."""
    resp = await async_client.post("/api/customers", json=customer_payload(municipality="Tirana"))
    assert resp.status_code == 422

    resp = await async_client.post("/api/customers", json=customer_payload(nipt="12345"))
    assert resp.status_code == 422


async def test_list_plain_and_paginated(async_client: AsyncClient):
    await async_client.post("/api/customers", json=customer_payload(last_name="Zeka", email="a@example.com"))
    await async_client.post("/api/customers", json=customer_payload(last_name="Berisha", email="b@example.com"))

    resp = await async_client.get("/api/customers")
    assert resp.status_code == 200
    data = resp.json()
    assert isinstance(data, list)
    assert [c["last_name"] for c in data] == ["Berisha", "Zeka"]

    resp = await async_client.get("/api/customers?page=1&limit=1")
    page = resp.json()
    assert page["total"] == 2
    assert page["total_pages"] == 2
    assert len(page["data"]) == 1


async def test_search_and_filters(async_client: AsyncClient):
    await async_client.post("/api/customers", json=customer_payload(email="a@example.com", company="Gashi Consulting", customer_type="Individual Business"))
    await async_client.post("/api/customers", json=customer_payload(email="b@example.com", status="Active"))

    resp = await async_client.get("/api/customers?search=gashi")
    assert len(resp.json()) == 1

    resp = await async_client.get("/api/customers/type/Individual Business")
    assert [c["email"] for c in resp.json()] == ["a@example.com"]

    resp = await async_client.get("/api/customers/status/Active")
    assert [c["email"] for c in resp.json()] == ["b@example.com"]


async def test_update_customer(async_client: AsyncClient, customer: dict):
    resp = await async_client.patch(f"/api/customers/{customer['_id']}", json={"status": "Active", "city": "Peja"})
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["status"] == "Active"
    assert updated["city"] == "Peja"
    assert updated["first_name"] == "Arben"

    resp = await async_client.put(f"/api/customers/{customer['_id']}", json={"status": "Unknown"})
    assert resp.status_code == 422


async def test_update_to_taken_email(async_client: AsyncClient, customer: dict):
    await async_client.post("/api/customers", json=customer_payload(email="taken@example.com"))
    resp = await async_client.patch(f"/api/customers/{customer['_id']}", json={"email": "taken@example.com"})
    assert resp.status_code == 400


async def test_delete_customer(async_client: AsyncClient, customer: dict):
    resp = await async_client.delete(f"/api/customers/{customer['_id']}")
    assert resp.status_code == 204

    resp = await async_client.get(f"/api/customers/{customer['_id']}")
    assert resp.status_code == 404


async def test_malformed_and_unknown_ids(async_client: AsyncClient):
    resp = await async_client.get("/api/customers/not-an-id")
    assert resp.status_code == 400

    resp = await async_client.delete("/api/customers/507f1f77bcf86cd799439011")
    assert resp.status_code == 404
