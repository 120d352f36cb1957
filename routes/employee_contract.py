# routes/employee_contract.py
from fastapi import APIRouter, Body, HTTPException, status, Query
from typing import Optional
from bson import ObjectId
from pymongo.errors import DuplicateKeyError
from database import db, employee_contracts_collection, employees_collection
from models.employee_contract import EmployeeContractModel
from routes.deps import (
    parse_mongo_data, validate_object_id, merge_update, validate_model,
    search_regex, wants_pagination, paginated,
)
from utils.numbering import generate_employee_contract_number
from utils.email import employee_contract_email, send_email, is_email_configured, demo_payload
from logging_config import get_logger

router = APIRouter(
    prefix="/api/employee-contracts",
    tags=["Employee Contracts"]
)
logger = get_logger("employee_contracts")

EMPLOYEE_SUMMARY = {"first_name": 1, "last_name": 1, "email": 1, "phone": 1, "address": 1}


async def _attach_employees(contracts: list) -> list:
    """Embeds a short employee record next to each contract's employee_id."""
    ids = {c.get("employee_id") for c in contracts if ObjectId.is_valid(c.get("employee_id") or "")}
    employees = {}
    if ids:
        cursor = employees_collection.find({"_id": {"$in": [ObjectId(i) for i in ids]}}, EMPLOYEE_SUMMARY)
        async for emp in cursor:
            employees[str(emp["_id"])] = parse_mongo_data(emp)

    for c in contracts:
        parse_mongo_data(c)
        c["employee"] = employees.get(c.get("employee_id"))
    return contracts


async def _require_employee(employee_id: str) -> dict:
    employee = None
    if ObjectId.is_valid(employee_id or ""):
        employee = await employees_collection.find_one({"_id": ObjectId(employee_id)})
    if not employee:
        raise HTTPException(status_code=400, detail="Employee not found with the provided employee_id")
    return employee


async def _reject_taken_number(contract_number: str, exclude_id: Optional[ObjectId] = None):
    query = {"contract_number": contract_number}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    if await employee_contracts_collection.find_one(query, {"_id": 1}):
        raise HTTPException(status_code=400, detail="Contract number already exists")


@router.get("")
async def get_employee_contracts(
    search: str = Query(None, description="Search by contract number or employee ID"),
    status_filter: str = Query(None, alias="status"),
    contract_type: str = Query(None),
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
):
    query = {}

    if search:
        pattern = search_regex(search)
        query["$or"] = [
            {"contract_number": pattern},
            {"employee_id": pattern},
        ]
    if status_filter:
        query["status"] = status_filter
    if contract_type:
        query["contract_type"] = contract_type

    cursor = employee_contracts_collection.find(query).sort([("created_at", -1)])

    if wants_pagination(page, limit):
        contracts = await cursor.skip((page - 1) * limit).limit(limit).to_list(length=limit)
        total = await employee_contracts_collection.count_documents(query)
        return paginated(await _attach_employees(contracts), total, page, limit)

    contracts = await cursor.to_list(length=None)
    return await _attach_employees(contracts)


@router.get("/employee/{employee_id}")
async def get_contracts_by_employee(employee_id: str):
    contracts = await employee_contracts_collection.find(
        {"employee_id": employee_id}
    ).sort([("start_date", -1)]).to_list(length=None)
    return await _attach_employees(contracts)


@router.get("/{contract_id}")
async def get_employee_contract(contract_id: str):
    oid = validate_object_id(contract_id, "contract ID")

    contract = await employee_contracts_collection.find_one({"_id": oid})
    if not contract:
        raise HTTPException(status_code=404, detail="Employee contract not found")
    return (await _attach_employees([contract]))[0]


@router.post("", status_code=201)
async def create_employee_contract(payload: dict = Body(...)):
    """CREATE: Add a new employment contract for an existing employee"""
    contract = validate_model(EmployeeContractModel, payload)
    await _require_employee(contract.employee_id)

    if contract.contract_number:
        await _reject_taken_number(contract.contract_number)
    else:
        contract.contract_number = await generate_employee_contract_number(db)

    doc = contract.model_dump()
    try:
        result = await employee_contracts_collection.insert_one(doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Contract number already exists")

    logger.info(f"Employee contract created", extra={"data": {
        "id": str(result.inserted_id),
        "employee_id": contract.employee_id,
        "contract_number": contract.contract_number,
    }})
    return (await _attach_employees([doc]))[0]


@router.api_route("/{contract_id}", methods=["PUT", "PATCH"])
async def update_employee_contract(contract_id: str, update_data: dict = Body(...)):
    oid = validate_object_id(contract_id, "contract ID")

    existing = await employee_contracts_collection.find_one({"_id": oid})
    if not existing:
        logger.warning(f"Employee contract update failed: not found", extra={"data": {"contract_id": contract_id}})
        raise HTTPException(status_code=404, detail="Employee contract not found")

    doc = merge_update(EmployeeContractModel, existing, update_data)
    if doc["employee_id"] != existing.get("employee_id"):
        await _require_employee(doc["employee_id"])
    if doc.get("contract_number") and doc["contract_number"] != existing.get("contract_number"):
        await _reject_taken_number(doc["contract_number"], oid)

    try:
        updated = await employee_contracts_collection.find_one_and_update(
            {"_id": oid},
            {"$set": doc},
            return_document=True
        )
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Contract number already exists")

    logger.info(f"Employee contract updated", extra={"data": {"contract_id": contract_id, "fields": list(update_data.keys())}})
    return (await _attach_employees([updated]))[0]


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee_contract(contract_id: str):
    oid = validate_object_id(contract_id, "contract ID")

    delete_result = await employee_contracts_collection.delete_one({"_id": oid})
    if delete_result.deleted_count == 0:
        logger.warning(f"Employee contract deletion failed: not found", extra={"data": {"contract_id": contract_id}})
        raise HTTPException(status_code=404, detail="Employee contract not found")

    logger.info(f"Employee contract deleted", extra={"data": {"contract_id": contract_id}})
    return None


@router.post("/{contract_id}/send-email")
async def send_employee_contract_email(contract_id: str, payload: dict = Body(default={})):
    """Emails the contract summary to the employee (or to an explicit 'to' address)."""
    oid = validate_object_id(contract_id, "contract ID")

    contract = await employee_contracts_collection.find_one({"_id": oid})
    if not contract:
        raise HTTPException(status_code=404, detail="Employee contract not found")

    employee = await _require_employee(contract.get("employee_id"))
    to_email = payload.get("to") or employee.get("email")
    if not to_email:
        raise HTTPException(status_code=400, detail="Employee email not found")

    subject, html, text = employee_contract_email(contract, employee)
    subject = payload.get("subject") or subject

    if not is_email_configured():
        logger.warning(f"Email not configured, returning demo payload", extra={"data": {"contract_id": contract_id}})
        return demo_payload(to_email, subject, html, "Email service not configured. Preview generated instead.")

    response = send_email(to_email, subject, html, text)
    if response is None:
        raise HTTPException(status_code=502, detail="Failed to send employee contract email")

    logger.info(f"Employee contract email sent", extra={"data": {"contract_id": contract_id, "to": to_email}})
    return {"success": True, "demo": False, "message_id": response.get("id"), "to": to_email}
