# routes/invoice.py
from fastapi import APIRouter, Body, HTTPException, status, Query
from typing import Optional
from datetime import datetime, timedelta
from bson import ObjectId
from pymongo.errors import DuplicateKeyError
import secrets

from database import db, invoices_collection, customer_contracts_collection, customers_collection, schedules_collection
from models.invoice import InvoiceModel
from routes.deps import (
    parse_mongo_data, validate_object_id, merge_update, validate_model,
    search_regex, paginated,
)
from utils.numbering import generate_invoice_number
from utils.pricing import invoice_virtuals, money
from utils.email import invoice_email, send_email, is_email_configured, demo_payload
from constants import InvoiceStatus
from config import config
from logging_config import get_logger

router = APIRouter(
    prefix="/api/invoices",
    tags=["Invoices"]
)
logger = get_logger("invoices")

NEWEST_FIRST = [("created_at", -1)]
SETTLED = [InvoiceStatus.PAID, InvoiceStatus.CANCELLED]
AMOUNT_INPUTS = {"services", "discount", "tax_rate"}
DERIVED_AMOUNTS = ("subtotal", "tax_amount", "total_amount")


def _present(invoice: dict) -> dict:
    return invoice_virtuals(parse_mongo_data(invoice))


def _payment_url(token: str) -> str:
    return f"{config.PAYMENT_PAGE_URL.rstrip('/')}/{token}"


async def _load(invoice_id: str) -> dict:
    oid = validate_object_id(invoice_id, "invoice ID")
    invoice = await invoices_collection.find_one({"_id": oid})
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


async def _save(invoice: dict, changes: dict) -> dict:
    """Re-validates the invoice with the changes applied, which also re-derives balance and status."""
    doc = merge_update(InvoiceModel, invoice, changes)
    return await invoices_collection.find_one_and_update(
        {"_id": invoice["_id"]},
        {"$set": doc},
        return_document=True
    )


async def _from_contract(contract_id: str) -> Optional[dict]:
    """Customer snapshot, related objects and schedules taken from a contract."""
    if not ObjectId.is_valid(contract_id or ""):
        return None
    contract = await customer_contracts_collection.find_one({"_id": ObjectId(contract_id)})
    if not contract or not contract.get("customer"):
        return None

    customer = dict(contract["customer"])
    customer["customer_id"] = contract.get("customer_id")
    schedules = await schedules_collection.find({"customer_contract_id": contract_id}, {"_id": 1}).to_list(length=None)
    return {
        "customer": customer,
        "related_objects": list(contract.get("objects") or []),
        "related_schedules": [str(s["_id"]) for s in schedules],
    }


async def _customer_from_record(customer_id: str) -> Optional[dict]:
    if not ObjectId.is_valid(customer_id or ""):
        return None
    customer = await customers_collection.find_one({"_id": ObjectId(customer_id)})
    if not customer:
        return None
    return {
        "customer_id": customer_id,
        "name": f"{customer.get('first_name', '')} {customer.get('last_name', '')}".strip(),
        "email": customer.get("email"),
        "phone": customer.get("phone"),
        "nipt": customer.get("nipt"),
        "address": {
            "street": customer.get("address"),
            "city": customer.get("city"),
            "municipality": customer.get("municipality"),
        },
    }


def _overdue_query(now: datetime) -> dict:
    return {"status": {"$nin": SETTLED}, "due_date": {"$lt": now}}


@router.get("")
async def get_invoices(
    status_filter: str = Query(None, alias="status"),
    customer: str = Query(None, description="Match customer name or email"),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    amount_min: Optional[float] = Query(None),
    amount_max: Optional[float] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    query = {}

    if status_filter:
        query["status"] = status_filter
    if customer:
        pattern = search_regex(customer)
        query["$or"] = [{"customer.name": pattern}, {"customer.email": pattern}]
    if date_from or date_to:
        query["issue_date"] = {}
        if date_from:
            query["issue_date"]["$gte"] = date_from.replace(tzinfo=None)
        if date_to:
            query["issue_date"]["$lte"] = date_to.replace(tzinfo=None)
    if amount_min is not None or amount_max is not None:
        query["total_amount"] = {}
        if amount_min is not None:
            query["total_amount"]["$gte"] = amount_min
        if amount_max is not None:
            query["total_amount"]["$lte"] = amount_max

    cursor = invoices_collection.find(query).sort(NEWEST_FIRST).skip((page - 1) * limit).limit(limit)
    invoices = await cursor.to_list(length=limit)
    total = await invoices_collection.count_documents(query)

    totals = await invoices_collection.aggregate([
        {"$match": query},
        {"$group": {
            "_id": None,
            "total_amount": {"$sum": "$total_amount"},
            "total_paid": {"$sum": "$paid_amount"},
            "total_outstanding": {"$sum": {"$subtract": ["$total_amount", "$paid_amount"]}},
            "avg_amount": {"$avg": "$total_amount"},
        }},
    ]).to_list(length=1)
    breakdown = await invoices_collection.aggregate([
        {"$match": query},
        {"$group": {"_id": "$status", "count": {"$sum": 1}}},
    ]).to_list(length=None)

    stats = totals[0] if totals else {
        "total_amount": 0, "total_paid": 0, "total_outstanding": 0, "avg_amount": 0,
    }
    stats.pop("_id", None)
    stats["status_breakdown"] = {b["_id"]: b["count"] for b in breakdown}

    response = paginated([_present(i) for i in invoices], total, page, limit)
    response["stats"] = stats
    return response


@router.get("/stats")
async def get_invoice_stats():
    """READ STATS: Totals, per-status breakdown and the last 12 months of billing"""
    overview = await invoices_collection.aggregate([
        {"$group": {
            "_id": None,
            "total_invoices": {"$sum": 1},
            "total_amount": {"$sum": "$total_amount"},
            "total_paid": {"$sum": "$paid_amount"},
            "total_outstanding": {"$sum": {"$subtract": ["$total_amount", "$paid_amount"]}},
            "avg_amount": {"$avg": "$total_amount"},
        }},
    ]).to_list(length=1)

    by_status = await invoices_collection.aggregate([
        {"$group": {"_id": "$status", "count": {"$sum": 1}, "total_amount": {"$sum": "$total_amount"}}},
        {"$sort": {"_id": 1}},
    ]).to_list(length=None)

    now = datetime.now()
    year, month = now.year, now.month - 11
    if month < 1:
        year, month = year - 1, month + 12
    first_month = datetime(year, month, 1)
    monthly = await invoices_collection.aggregate([
        {"$match": {"issue_date": {"$gte": first_month}}},
        {"$group": {
            "_id": {"year": {"$year": "$issue_date"}, "month": {"$month": "$issue_date"}},
            "count": {"$sum": 1},
            "total_amount": {"$sum": "$total_amount"},
        }},
        {"$sort": {"_id.year": 1, "_id.month": 1}},
    ]).to_list(length=12)

    if overview:
        overview[0].pop("_id", None)
    return {
        "overview": overview[0] if overview else {
            "total_invoices": 0, "total_amount": 0, "total_paid": 0,
            "total_outstanding": 0, "avg_amount": 0,
        },
        "status_breakdown": by_status,
        "monthly_trends": monthly,
    }


@router.get("/generate-number")
async def get_next_invoice_number():
    return {"invoice_number": await generate_invoice_number(db)}


@router.get("/overdue")
async def get_overdue_invoices():
    invoices = await invoices_collection.find(_overdue_query(datetime.now())).sort([("due_date", 1)]).to_list(length=None)
    return [_present(i) for i in invoices]


@router.get("/recent")
async def get_recent_invoices(limit: int = Query(10, ge=1, le=50)):
    invoices = await invoices_collection.find({}).sort(NEWEST_FIRST).limit(limit).to_list(length=limit)
    return [_present(i) for i in invoices]


@router.get("/customer/{customer_id}")
async def get_invoices_by_customer(customer_id: str):
    contracts = await customer_contracts_collection.find({"customer_id": customer_id}, {"_id": 1}).to_list(length=None)
    invoices = await invoices_collection.find({"$or": [
        {"customer.customer_id": customer_id},
        {"customer_contract_id": {"$in": [str(c["_id"]) for c in contracts]}},
    ]}).sort(NEWEST_FIRST).to_list(length=None)
    return [_present(i) for i in invoices]


@router.get("/contract/{contract_id}")
async def get_invoices_by_contract(contract_id: str):
    invoices = await invoices_collection.find({"customer_contract_id": contract_id}).sort(NEWEST_FIRST).to_list(length=None)
    return [_present(i) for i in invoices]


@router.get("/payment/{token}")
async def get_invoice_for_payment(token: str):
    """Public: what the customer sees after following the link in the invoice email."""
    invoice = await invoices_collection.find_one({
        "payment_token": token,
        "payment_token_expires": {"$gt": datetime.now()},
    })
    if not invoice:
        raise HTTPException(status_code=404, detail="Invalid or expired payment link")

    return {
        "invoice_number": invoice["invoice_number"],
        "customer_name": (invoice.get("customer") or {}).get("name"),
        "issue_date": invoice.get("issue_date"),
        "due_date": invoice.get("due_date"),
        "services": invoice.get("services") or [],
        "total_amount": invoice.get("total_amount"),
        "balance": invoice.get("balance"),
        "status": invoice.get("status"),
        "formatted_amount": f"€{(invoice.get('total_amount') or 0):.2f}",
    }


@router.post("/payment/{token}")
async def confirm_invoice_payment(token: str, payload: dict = Body(default={})):
    """Public: the customer confirms they paid the outstanding balance."""
    invoice = await invoices_collection.find_one({
        "payment_token": token,
        "payment_token_expires": {"$gt": datetime.now()},
    })
    if not invoice:
        raise HTTPException(status_code=404, detail="Invalid or expired payment link")

    updated = await _save(invoice, {
        "paid_amount": invoice.get("total_amount") or 0,
        "payment_method": payload.get("payment_method") or "Online Payment",
        "payment_reference": payload.get("payment_reference"),
        "payment_date": datetime.now(),
        "payment_token": None,
        "payment_token_expires": None,
    })
    logger.info(f"Invoice paid via payment link", extra={"data": {"invoice_number": updated["invoice_number"]}})
    return {"success": True, "message": "Payment confirmed. Thank you!", "invoice": _present(updated)}


@router.get("/{invoice_id}")
async def get_invoice(invoice_id: str):
    return _present(await _load(invoice_id))


@router.post("", status_code=201)
async def create_invoice(payload: dict = Body(...)):
    """CREATE: Issue an invoice, filling customer data from the contract when absent"""
    data = dict(payload)
    customer = data.get("customer") or {}

    if data.get("customer_contract_id") and not customer.get("name"):
        linked = await _from_contract(data["customer_contract_id"])
        if linked:
            data.update(linked)
    elif customer.get("customer_id") and not customer.get("name"):
        record = await _customer_from_record(customer["customer_id"])
        if record:
            data["customer"] = record

    invoice = validate_model(InvoiceModel, data)
    if invoice.invoice_number:
        if await invoices_collection.find_one({"invoice_number": invoice.invoice_number}, {"_id": 1}):
            raise HTTPException(status_code=400, detail="Invoice number already exists")
    else:
        invoice.invoice_number = await generate_invoice_number(db)

    doc = invoice.model_dump()
    try:
        result = await invoices_collection.insert_one(doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Invoice number already exists")

    logger.info(f"Invoice created", extra={"data": {
        "id": str(result.inserted_id),
        "invoice_number": doc["invoice_number"],
        "total_amount": doc["total_amount"],
    }})
    return _present(doc)


@router.api_route("/{invoice_id}", methods=["PUT", "PATCH"])
async def update_invoice(invoice_id: str, update_data: dict = Body(...)):
    existing = await _load(invoice_id)

    changes = dict(update_data)
    number = changes.get("invoice_number")
    if number and number != existing.get("invoice_number"):
        if await invoices_collection.find_one({"invoice_number": number, "_id": {"$ne": existing["_id"]}}, {"_id": 1}):
            raise HTTPException(status_code=400, detail="Invoice number already exists")

    if changes.get("customer_contract_id"):
        linked = await _from_contract(changes["customer_contract_id"])
        if linked:
            changes["customer"] = linked["customer"]
            if linked["related_objects"]:
                changes["related_objects"] = linked["related_objects"]

    # Derived amounts follow the lines unless the client sets them explicitly
    if AMOUNT_INPUTS & changes.keys():
        for field in DERIVED_AMOUNTS:
            changes.setdefault(field, None)

    try:
        updated = await _save(existing, changes)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Invoice number already exists")

    logger.info(f"Invoice updated", extra={"data": {"invoice_id": invoice_id, "fields": list(update_data.keys())}})
    return _present(updated)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(invoice_id: str):
    oid = validate_object_id(invoice_id, "invoice ID")

    delete_result = await invoices_collection.delete_one({"_id": oid})
    if delete_result.deleted_count == 0:
        logger.warning(f"Invoice deletion failed: not found", extra={"data": {"invoice_id": invoice_id}})
        raise HTTPException(status_code=404, detail="Invoice not found")

    logger.info(f"Invoice deleted", extra={"data": {"invoice_id": invoice_id}})
    return None


@router.post("/{invoice_id}/mark-paid")
async def mark_invoice_paid(invoice_id: str, payload: dict = Body(...)):
    """Records a (possibly partial) payment against the invoice."""
    invoice = await _load(invoice_id)

    try:
        amount = float(payload.get("payment_amount") or 0)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="payment_amount must be a number")
    if amount <= 0:
        raise HTTPException(status_code=400, detail="payment_amount must be greater than zero")
    if invoice.get("status") == InvoiceStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Cannot record a payment on a cancelled invoice")

    updated = await _save(invoice, {
        "paid_amount": money((invoice.get("paid_amount") or 0) + amount),
        "payment_method": payload.get("payment_method") or invoice.get("payment_method"),
        "payment_reference": payload.get("payment_reference") or invoice.get("payment_reference"),
        "payment_date": datetime.now(),
    })
    logger.info(f"Payment recorded", extra={"data": {"invoice_id": invoice_id, "amount": amount, "status": updated["status"]}})
    return _present(updated)


@router.post("/{invoice_id}/mark-sent")
async def mark_invoice_sent(invoice_id: str):
    invoice = await _load(invoice_id)
    if invoice.get("status") in SETTLED:
        raise HTTPException(status_code=400, detail=f"Invoice is already {invoice['status']}")

    updated = await _save(invoice, {"status": InvoiceStatus.SENT})
    logger.info(f"Invoice marked as sent", extra={"data": {"invoice_id": invoice_id}})
    return _present(updated)


@router.post("/{invoice_id}/send-email")
async def send_invoice_email(invoice_id: str, payload: dict = Body(default={})):
    """Emails the invoice with a one-click payment link valid for a limited time."""
    invoice = await _load(invoice_id)

    recipients = payload.get("email_addresses") or [(invoice.get("customer") or {}).get("email")]
    recipients = [r for r in recipients if r]
    if not recipients:
        raise HTTPException(status_code=400, detail="No recipient email address available")

    token = secrets.token_hex(32)
    expires = datetime.now() + timedelta(days=config.PAYMENT_TOKEN_TTL_DAYS)
    payment_url = _payment_url(token)
    subject, html = invoice_email(invoice, payment_url, payload.get("subject"))

    if not is_email_configured():
        await _save(invoice, {"payment_token": token, "payment_token_expires": expires})
        logger.warning(f"Email not configured, returning demo payload", extra={"data": {"invoice_id": invoice_id}})
        body = demo_payload(", ".join(recipients), subject, html, "Email service not configured. Preview generated instead.")
        body["email_info"]["payment_url"] = payment_url
        return body

    failed = [to for to in recipients if send_email(to, subject, html) is None]
    if len(failed) == len(recipients):
        raise HTTPException(status_code=502, detail="Failed to send invoice email")

    changes = {
        "payment_token": token,
        "payment_token_expires": expires,
        "email_sent": True,
        "email_sent_date": datetime.now(),
        "email_sent_to": [to for to in recipients if to not in failed],
    }
    if invoice.get("status") == InvoiceStatus.DRAFT:
        changes["status"] = InvoiceStatus.SENT
    updated = await _save(invoice, changes)

    logger.info(f"Invoice email sent", extra={"data": {"invoice_id": invoice_id, "to": changes["email_sent_to"]}})
    return {"success": True, "message": "Invoice email sent successfully", "invoice": _present(updated)}
