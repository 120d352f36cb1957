# routes/customer_contract.py
from fastapi import APIRouter, Body, HTTPException, status, Query
from bson import ObjectId
from pymongo.errors import DuplicateKeyError
from database import db, customer_contracts_collection, customers_collection, objects_collection
from models.customer_contract import CustomerContractModel, ContractQuoteRequest
from models.object import object_virtuals
from routes.deps import (
    parse_mongo_data, validate_object_id, merge_update, validate_model,
    to_object_ids, search_regex, paginated,
)
from utils.numbering import generate_customer_contract_number
from utils.pricing import calculate_contract_totals
from utils.email import (
    contract_signature_email, configuration_check_email, send_email, is_email_configured, demo_payload,
)
from config import config
from logging_config import get_logger

router = APIRouter(
    prefix="/api/customer-contracts",
    tags=["Customer Contracts"]
)
logger = get_logger("customer_contracts")

OBJECT_SUMMARY = {"name": 1, "address": 1, "type": 1, "contact_person": 1}
PRICING_INPUTS = {"services", "working_days_and_times", "billing_frequency"}
PRICED_FIELDS = ("total_amount_excluding_vat", "vat_amount", "total_amount_including_vat")


async def _attach_objects(contracts: list) -> list:
    """
    Resolves each contract's object id list into the stored location
    records. Ids with no matching object are left out of object_details.
    """
    ids = set()
    for c in contracts:
        ids.update(to_object_ids(c.get("objects")))

    found = {}
    if ids:
        async for obj in objects_collection.find({"_id": {"$in": list(ids)}}, OBJECT_SUMMARY):
            found[str(obj["_id"])] = object_virtuals(parse_mongo_data(obj))

    for c in contracts:
        parse_mongo_data(c)
        c["object_details"] = [found[i] for i in c.get("objects") or [] if i in found]
    return contracts


async def _present(contract: dict) -> dict:
    return (await _attach_objects([contract]))[0]


def _customer_snapshot(customer: dict) -> dict:
    return {
        "name": f"{customer.get('first_name', '')} {customer.get('last_name', '')}".strip(),
        "email": customer.get("email"),
        "phone": customer.get("phone"),
        "address": {
            "street": customer.get("address"),
            "city": customer.get("city"),
            "municipality": customer.get("municipality"),
        },
    }


def _fill_pricing(doc: dict) -> dict:
    """Computes the billing-cycle total when the client did not send one."""
    calc = doc.setdefault("payment_calculation", {})
    totals = calculate_contract_totals(
        doc.get("services") or [],
        doc.get("working_days_and_times") or [],
        doc.get("billing_frequency"),
        calc.get("vat_rate"),
    )
    if doc.get("total_amount") is None:
        doc["total_amount"] = totals["total_amount"]

    if calc.get("total_amount_excluding_vat") is None:
        calc["total_amount_excluding_vat"] = totals["total_amount"]
        calc["vat_rate"] = totals["vat_rate"]
        calc["vat_amount"] = totals["vat_amount"]
        calc["total_amount_including_vat"] = totals["total_with_vat"]
    return doc


async def _require_customer(customer_id: str) -> dict:
    customer = None
    if ObjectId.is_valid(customer_id or ""):
        customer = await customers_collection.find_one({"_id": ObjectId(customer_id)})
    if not customer:
        raise HTTPException(status_code=400, detail="Customer not found")
    return customer


@router.get("")
async def get_customer_contracts(
    search: str = Query(None, description="Search by contract number or customer name/email"),
    status_filter: str = Query(None, alias="status"),
    contract_type: str = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    query = {}

    if search:
        pattern = search_regex(search)
        query["$or"] = [
            {"contract_number": pattern},
            {"customer.name": pattern},
            {"customer.email": pattern},
        ]
    if status_filter:
        query["status"] = status_filter
    if contract_type:
        query["contract_type"] = contract_type

    cursor = customer_contracts_collection.find(query).sort([("created_at", -1)]).skip((page - 1) * limit).limit(limit)
    contracts = await cursor.to_list(length=limit)
    total = await customer_contracts_collection.count_documents(query)

    return paginated(await _attach_objects(contracts), total, page, limit)


@router.get("/test/email-config")
async def test_email_config():
    if is_email_configured():
        return {"success": True, "message": "Email configuration is valid"}
    return {"success": False, "demo": True, "message": "Email service not configured (RESEND_API_KEY missing)"}


@router.post("/test/send-email")
async def send_test_email(payload: dict = Body(...)):
    to_email = payload.get("email")
    if not to_email:
        raise HTTPException(status_code=400, detail="Email address is required")

    subject, html, text = configuration_check_email()
    if not is_email_configured():
        return demo_payload(to_email, subject, html, f"Test email preview generated for {to_email} (demo mode)")

    response = send_email(to_email, subject, html, text)
    if response is None:
        raise HTTPException(status_code=502, detail="Failed to send test email")
    return {"success": True, "message": f"Test email sent successfully to {to_email}", "message_id": response.get("id")}


@router.post("/quote")
async def quote_contract(request: ContractQuoteRequest = Body(...)):
    """Prices a draft contract without saving it."""
    return calculate_contract_totals(
        [s.model_dump() for s in request.services],
        [d.model_dump() for d in request.working_days_and_times],
        request.billing_frequency,
        request.vat_rate,
    )


@router.get("/{contract_id}")
async def get_customer_contract(contract_id: str):
    oid = validate_object_id(contract_id, "contract ID")

    contract = await customer_contracts_collection.find_one({"_id": oid})
    if not contract:
        raise HTTPException(status_code=404, detail="Customer contract not found")
    return await _present(contract)


@router.post("", status_code=201)
async def create_customer_contract(payload: dict = Body(...)):
    """CREATE: Add a new service contract for a customer"""
    data = dict(payload)
    customer = await _require_customer(data.get("customer_id"))
    if not data.get("customer"):
        data["customer"] = _customer_snapshot(customer)

    contract = validate_model(CustomerContractModel, data)

    if contract.contract_number:
        if await customer_contracts_collection.find_one({"contract_number": contract.contract_number}, {"_id": 1}):
            raise HTTPException(status_code=400, detail="Contract number already exists")
    else:
        contract.contract_number = await generate_customer_contract_number(db)

    doc = _fill_pricing(contract.model_dump())
    try:
        result = await customer_contracts_collection.insert_one(doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Contract number already exists")

    logger.info(f"Customer contract created", extra={"data": {
        "id": str(result.inserted_id),
        "contract_number": doc["contract_number"],
        "customer_id": doc["customer_id"],
        "total_amount": doc["total_amount"],
    }})
    return await _present(doc)


@router.api_route("/{contract_id}", methods=["PUT", "PATCH"])
async def update_customer_contract(contract_id: str, update_data: dict = Body(...)):
    oid = validate_object_id(contract_id, "contract ID")

    existing = await customer_contracts_collection.find_one({"_id": oid})
    if not existing:
        logger.warning(f"Customer contract update failed: not found", extra={"data": {"contract_id": contract_id}})
        raise HTTPException(status_code=404, detail="Customer contract not found")

    doc = merge_update(CustomerContractModel, existing, update_data)
    if doc["customer_id"] != existing.get("customer_id"):
        await _require_customer(doc["customer_id"])

    # Price follows services and time slots unless the client sets it explicitly
    if PRICING_INPUTS & update_data.keys():
        if "total_amount" not in update_data:
            doc["total_amount"] = None
        if "payment_calculation" not in update_data:
            for field in PRICED_FIELDS:
                doc["payment_calculation"][field] = None
    doc = _fill_pricing(doc)

    try:
        updated = await customer_contracts_collection.find_one_and_update(
            {"_id": oid},
            {"$set": doc},
            return_document=True
        )
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Contract number already exists")

    logger.info(f"Customer contract updated", extra={"data": {"contract_id": contract_id, "fields": list(update_data.keys())}})
    return await _present(updated)


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer_contract(contract_id: str):
    oid = validate_object_id(contract_id, "contract ID")

    delete_result = await customer_contracts_collection.delete_one({"_id": oid})
    if delete_result.deleted_count == 0:
        logger.warning(f"Customer contract deletion failed: not found", extra={"data": {"contract_id": contract_id}})
        raise HTTPException(status_code=404, detail="Customer contract not found")

    logger.info(f"Customer contract deleted", extra={"data": {"contract_id": contract_id}})
    return None


@router.post("/{contract_id}/send-email")
async def send_contract_email(contract_id: str):
    """Sends the customer a link to review and sign the contract online."""
    oid = validate_object_id(contract_id, "contract ID")

    contract = await customer_contracts_collection.find_one({"_id": oid})
    if not contract:
        raise HTTPException(status_code=404, detail="Customer contract not found")

    to_email = (contract.get("customer") or {}).get("email")
    if not to_email:
        raise HTTPException(status_code=400, detail="Customer email is not available")

    subject, html = contract_signature_email(contract)
    sign_url = f"{config.FRONTEND_URL}/contracts/{contract_id}/sign"

    if not is_email_configured():
        logger.warning(f"Email not configured, returning demo payload", extra={"data": {"contract_id": contract_id}})
        body = demo_payload(
            to_email, subject, html,
            f"Email preview generated for {to_email} (Demo Mode - No email configured)",
        )
        body["email_info"]["contract_number"] = contract.get("contract_number")
        body["email_info"]["sign_url"] = sign_url
        return body

    response = send_email(to_email, subject, html)
    if response is None:
        raise HTTPException(status_code=502, detail="Failed to send contract email")

    logger.info(f"Contract signature email sent", extra={"data": {"contract_id": contract_id, "to": to_email}})
    return {
        "success": True,
        "message": f"Contract signature email sent successfully to {to_email}",
        "email_info": {
            "to": to_email,
            "subject": subject,
            "message_id": response.get("id"),
            "contract_number": contract.get("contract_number"),
            "sign_url": sign_url,
        },
    }
