import pytest
from httpx import AsyncClient
from datetime import datetime, timedelta

from config import config
from conftest import invoice_payload, contract_payload, schedule_payload

pytestmark = pytest.mark.asyncio


async def create_invoice(async_client: AsyncClient, **overrides) -> dict:
    resp = await async_client.post("/api/invoices", json=invoice_payload(**overrides))
    assert resp.status_code == 201
    return resp.json()


async def test_create_invoice_computes_amounts(async_client: AsyncClient):
    invoice = await create_invoice(async_client, discount=20)
    year = datetime.now().year

    assert invoice["invoice_number"] == f"INV-{year}-0001"
    assert invoice["services"][0]["total"] == 200
    assert invoice["subtotal"] == 200
    # (200 - 20) x 18%
    assert invoice["tax_amount"] == 32.4
    assert invoice["total_amount"] == 212.4
    assert invoice["balance"] == 212.4
    assert invoice["status"] == "Draft"
    assert invoice["formatted_amount"] == "€212.40"
    assert invoice["is_overdue"] is False

    second = await create_invoice(async_client)
    assert second["invoice_number"] == f"INV-{year}-0002"


async def test_generate_number_and_duplicates(async_client: AsyncClient):
    resp = await async_client.get("/api/invoices/generate-number")
    assert resp.json()["invoice_number"] == f"INV-{datetime.now().year}-0001"

    await create_invoice(async_client, invoice_number="INV-2020-0100")
    resp = await async_client.post("/api/invoices", json=invoice_payload(invoice_number="INV-2020-0100"))
    assert resp.status_code == 400


async def test_invalid_tax_rate_and_nipt(async_client: AsyncClient):
    resp = await async_client.post("/api/invoices", json=invoice_payload(tax_rate=20))
    assert resp.status_code == 422

    customer = {"name": "Gashi LLC", "email": "gashi@example.com", "nipt": "12AB"}
    resp = await async_client.post("/api/invoices", json=invoice_payload(customer=customer))
    assert resp.status_code == 422


async def test_past_due_invoice_is_overdue(async_client: AsyncClient):
    past = (datetime.now() - timedelta(days=3)).strftime("%Y-%m-%dT00:00:00")
    invoice = await create_invoice(async_client, due_date=past, status="Sent")
    assert invoice["status"] == "Overdue"
    assert invoice["is_overdue"] is True
    assert invoice["days_overdue"] >= 3

    resp = await async_client.get("/api/invoices/overdue")
    assert [i["_id"] for i in resp.json()] == [invoice["_id"]]


async def test_create_from_contract(async_client: AsyncClient, customer: dict, location: dict):
    contract = (await async_client.post("/api/customer-contracts", json=contract_payload(customer["_id"], [location["_id"]]))).json()
    schedule = (await async_client.post("/api/schedules", json=schedule_payload(location["_id"], customer_contract_id=contract["_id"]))).json()

    payload = invoice_payload(customer_contract_id=contract["_id"])
    del payload["customer"]
    resp = await async_client.post("/api/invoices", json=payload)
    assert resp.status_code == 201
    invoice = resp.json()
    assert invoice["customer"]["name"] == "Arben Krasniqi"
    assert invoice["customer"]["customer_id"] == customer["_id"]
    assert invoice["related_objects"] == [location["_id"]]
    assert invoice["related_schedules"] == [schedule["_id"]]

    resp = await async_client.get(f"/api/invoices/customer/{customer['_id']}")
    assert [i["_id"] for i in resp.json()] == [invoice["_id"]]


async def test_create_from_customer_record(async_client: AsyncClient, customer: dict):
    payload = invoice_payload(customer={"customer_id": customer["_id"]})
    resp = await async_client.post("/api/invoices", json=payload)
    assert resp.status_code == 201
    assert resp.json()["customer"]["email"] == customer["email"]


async def test_update_recomputes_totals(async_client: AsyncClient):
    invoice = await create_invoice(async_client)

    resp = await async_client.patch(f"/api/invoices/{invoice['_id']}", json={
        "services": [{"description": "Window cleaning", "quantity": 2, "unit_price": 50}],
        "tax_rate": 8,
    })
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["subtotal"] == 100
    assert updated["tax_amount"] == 8
    assert updated["total_amount"] == 108
    assert updated["invoice_number"] == invoice["invoice_number"]


async def test_mark_paid_partial_then_full(async_client: AsyncClient):
    invoice = await create_invoice(async_client)  # total 236

    resp = await async_client.post(f"/api/invoices/{invoice['_id']}/mark-paid", json={"payment_amount": 100, "payment_method": "Cash"})
    assert resp.status_code == 200
    partial = resp.json()
    assert partial["status"] == "Partially Paid"
    assert partial["balance"] == 136
    assert partial["payment_method"] == "Cash"

    resp = await async_client.post(f"/api/invoices/{invoice['_id']}/mark-paid", json={"payment_amount": 136})
    paid = resp.json()
    assert paid["status"] == "Paid"
    assert paid["balance"] == 0
    assert paid["payment_method"] == "Cash"

    resp = await async_client.post(f"/api/invoices/{invoice['_id']}/mark-paid", json={"payment_amount": 0})
    assert resp.status_code == 400


async def test_mark_sent(async_client: AsyncClient):
    invoice = await create_invoice(async_client)
    resp = await async_client.post(f"/api/invoices/{invoice['_id']}/mark-sent")
    assert resp.status_code == 200
    assert resp.json()["status"] == "Sent"

    await async_client.patch(f"/api/invoices/{invoice['_id']}", json={"status": "Cancelled"})
    resp = await async_client.post(f"/api/invoices/{invoice['_id']}/mark-sent")
    assert resp.status_code == 400


async def test_cancelled_invoice_stays_cancelled(async_client: AsyncClient):
    past = (datetime.now() - timedelta(days=3)).strftime("%Y-%m-%dT00:00:00")
    invoice = await create_invoice(async_client, due_date=past, status="Cancelled")
    assert invoice["status"] == "Cancelled"
    assert invoice["is_overdue"] is False


async def test_send_email_and_pay_by_link(async_client: AsyncClient):
    invoice = await create_invoice(async_client)

    resp = await async_client.post(f"/api/invoices/{invoice['_id']}/send-email", json={})
    assert resp.status_code == 200
    data = resp.json()
    assert data["demo"] is True
    assert data["email_info"]["to"] == "arben.krasniqi@example.com"
    payment_url = data["email_info"]["payment_url"]
    assert payment_url.startswith(f"{config.FRONTEND_URL}/invoices/pay/")
    assert payment_url in data["email_info"]["html_content"]
    token = payment_url.rsplit("/", 1)[-1]
    assert len(token) == 64

    resp = await async_client.get(f"/api/invoices/payment/{token}")
    assert resp.status_code == 200
    assert resp.json()["invoice_number"] == invoice["invoice_number"]
    assert resp.json()["balance"] == 236

    resp = await async_client.post(f"/api/invoices/payment/{token}", json={"payment_method": "Bank Transfer"})
    assert resp.status_code == 200
    assert resp.json()["invoice"]["status"] == "Paid"

    # The link is single use
    resp = await async_client.get(f"/api/invoices/payment/{token}")
    assert resp.status_code == 404


async def test_unknown_payment_token(async_client: AsyncClient):
    resp = await async_client.get("/api/invoices/payment/deadbeef")
    assert resp.status_code == 404
    resp = await async_client.post("/api/invoices/payment/deadbeef", json={})
    assert resp.status_code == 404


async def test_expired_payment_token(async_client: AsyncClient, clean_db):
    invoice = await create_invoice(async_client)
    data = (await async_client.post(f"/api/invoices/{invoice['_id']}/send-email", json={})).json()
    token = data["email_info"]["payment_url"].rsplit("/", 1)[-1]

    clean_db.invoices.update_one(
        {"payment_token": token},
        {"$set": {"payment_token_expires": datetime.now() - timedelta(minutes=1)}},
    )

    resp = await async_client.get(f"/api/invoices/payment/{token}")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Invalid or expired payment link"
    resp = await async_client.post(f"/api/invoices/payment/{token}", json={})
    assert resp.status_code == 404

    resp = await async_client.get(f"/api/invoices/{invoice['_id']}")
    assert resp.json()["paid_amount"] == 0


async def test_list_filters_and_stats(async_client: AsyncClient):
    await create_invoice(async_client)
    await create_invoice(async_client, customer={"name": "Drita Gashi", "email": "drita@example.com"},
                         services=[{"description": "Deep clean", "quantity": 1, "unit_price": 1000}])

    resp = await async_client.get("/api/invoices")
    data = resp.json()
    assert data["total"] == 2
    assert data["limit"] == 10
    assert data["stats"]["total_amount"] == 236 + 1180
    assert data["stats"]["status_breakdown"] == {"Draft": 2}

    resp = await async_client.get("/api/invoices?customer=gashi")
    assert [i["customer"]["name"] for i in resp.json()["data"]] == ["Drita Gashi"]

    resp = await async_client.get("/api/invoices?amount_min=500")
    assert resp.json()["total"] == 1

    resp = await async_client.get("/api/invoices/stats")
    stats = resp.json()
    assert stats["overview"]["total_invoices"] == 2
    assert stats["status_breakdown"] == [{"_id": "Draft", "count": 2, "total_amount": 1416}]
    assert stats["monthly_trends"][-1]["count"] == 2

    resp = await async_client.get("/api/invoices/recent?limit=1")
    assert len(resp.json()) == 1


async def test_delete_invoice(async_client: AsyncClient):
    invoice = await create_invoice(async_client)
    resp = await async_client.delete(f"/api/invoices/{invoice['_id']}")
    assert resp.status_code == 204
    resp = await async_client.get(f"/api/invoices/{invoice['_id']}")
    assert resp.status_code == 404
