# routes/schedule.py
from fastapi import APIRouter, Body, HTTPException, status, Query
from typing import Optional
from datetime import datetime, timedelta
from bson import ObjectId
from database import (
    db, schedules_collection, employees_collection, objects_collection,
    customer_contracts_collection, customers_collection, invoices_collection,
)
from models.schedule import ScheduleModel
from models.invoice import InvoiceModel
from models.object import object_virtuals
from routes.deps import (
    parse_mongo_data, validate_object_id, merge_update, validate_model,
    to_object_ids, paginated,
)
from utils.scheduling import check_employee_conflicts, conflict_message, INACTIVE_STATUSES
from utils.numbering import generate_invoice_number
from utils.pricing import invoice_virtuals
from constants import ScheduleStatus, InvoiceStatus
from config import config
from logging_config import get_logger

router = APIRouter(
    prefix="/api/schedules",
    tags=["Schedules"]
)
logger = get_logger("schedules")

EMPLOYEE_SUMMARY = {"first_name": 1, "last_name": 1, "email": 1, "phone": 1, "position": 1}
CONTRACT_SUMMARY = {
    "contract_number": 1, "customer_id": 1, "customer": 1, "objects": 1,
    "services": 1, "status": 1, "total_amount": 1,
}


async def _lookup(collection, ids, projection=None) -> dict:
    oids = to_object_ids(ids)
    if not oids:
        return {}
    found = {}
    async for doc in collection.find({"_id": {"$in": oids}}, projection):
        found[str(doc["_id"])] = parse_mongo_data(doc)
    return found


async def _populate(schedules: list) -> list:
    """Embeds the object, employee summaries and contract summary into each schedule."""
    objects = await _lookup(objects_collection, {s.get("object_id") for s in schedules})
    employees = await _lookup(
        employees_collection,
        {a.get("employee_id") for s in schedules for a in s.get("employees") or []},
        EMPLOYEE_SUMMARY,
    )
    contracts = await _lookup(
        customer_contracts_collection,
        {s.get("customer_contract_id") for s in schedules},
        CONTRACT_SUMMARY,
    )

    for s in schedules:
        parse_mongo_data(s)
        obj = objects.get(s.get("object_id"))
        s["object"] = object_virtuals(dict(obj)) if obj else None
        for assignment in s.get("employees") or []:
            assignment["employee"] = employees.get(assignment.get("employee_id"))
        s["customer_contract"] = contracts.get(s.get("customer_contract_id"))
    return schedules


async def _present(schedule: dict) -> dict:
    return (await _populate([schedule]))[0]


async def _validate_employees(assignments: list):
    for position, assignment in enumerate(assignments, start=1):
        employee_id = assignment.get("employee_id")
        if not employee_id or not ObjectId.is_valid(employee_id):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid employee ID format at position {position}. Please select a valid employee.",
            )
        if not await employees_collection.find_one({"_id": ObjectId(employee_id)}, {"_id": 1}):
            raise HTTPException(
                status_code=400,
                detail=f"Employee with ID {employee_id} (position {position}) not found. Please select a valid employee.",
            )


async def _reject_conflicts(doc: dict, exclude_id: Optional[str] = None, employee_ids=None):
    if doc.get("status") in INACTIVE_STATUSES:
        return
    if employee_ids is None:
        employee_ids = [a["employee_id"] for a in doc.get("employees") or []]
    conflicts = await check_employee_conflicts(
        db, employee_ids, doc["scheduled_date"], doc["start_time"], doc["end_time"], exclude_id
    )
    if conflicts:
        logger.warning(f"Scheduling conflict detected", extra={"data": {"schedule_id": exclude_id, "conflicts": len(conflicts)}})
        raise HTTPException(
            status_code=400,
            detail={
                "message": "Employee scheduling conflict detected",
                "conflicts": [conflict_message(c) for c in conflicts],
            },
        )


async def create_invoice_for_schedule(schedule: dict) -> dict:
    """
    Bills a schedule at the default hourly rate. The customer comes from the
    linked contract; raises ValueError when the schedule cannot be billed.
    """
    contract = None
    if ObjectId.is_valid(schedule.get("customer_contract_id") or ""):
        contract = await customer_contracts_collection.find_one({"_id": ObjectId(schedule["customer_contract_id"])})
    if not contract or not contract.get("customer"):
        raise ValueError("No customer found for this schedule")

    obj = None
    if ObjectId.is_valid(schedule.get("object_id") or ""):
        obj = await objects_collection.find_one({"_id": ObjectId(schedule["object_id"])})
    if not obj:
        raise ValueError("No object found for this schedule")

    snapshot = dict(contract["customer"])
    snapshot["customer_id"] = contract.get("customer_id")
    if ObjectId.is_valid(contract.get("customer_id") or ""):
        customer = await customers_collection.find_one({"_id": ObjectId(contract["customer_id"])}, {"nipt": 1})
        if customer:
            snapshot["nipt"] = customer.get("nipt")

    schedule_id = str(schedule["_id"])
    duration = schedule.get("actual_duration") or schedule.get("estimated_duration") or 2
    now = datetime.now()

    invoice = validate_model(InvoiceModel, {
        "invoice_number": await generate_invoice_number(db, now),
        "customer_contract_id": str(contract["_id"]),
        "related_schedules": [schedule_id],
        "related_objects": [schedule["object_id"]],
        "customer": snapshot,
        "issue_date": now,
        "due_date": now + timedelta(days=config.INVOICE_DUE_DAYS),
        "services": [{
            "description": f"{schedule.get('cleaning_type') or 'Cleaning'} service at {obj['name']}",
            "quantity": duration,
            "unit_price": config.DEFAULT_HOURLY_RATE,
            "related_object": schedule["object_id"],
            "related_schedule": schedule_id,
        }],
        "tax_rate": int(config.DEFAULT_VAT_RATE),
        "status": InvoiceStatus.SENT,
    })

    doc = invoice.model_dump()
    await invoices_collection.insert_one(doc)
    logger.info(f"Invoice created for schedule", extra={"data": {
        "schedule_id": schedule_id,
        "invoice_number": doc["invoice_number"],
        "total_amount": doc["total_amount"],
    }})
    return doc


@router.get("")
async def get_schedules(
    status_filter: str = Query(None, alias="status"),
    start_date: Optional[datetime] = Query(None, description="Earliest scheduled date"),
    end_date: Optional[datetime] = Query(None, description="Latest scheduled date"),
    employee_id: str = Query(None),
    object_id: str = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    query = {}

    if status_filter:
        query["status"] = status_filter
    if start_date or end_date:
        query["scheduled_date"] = {}
        if start_date:
            query["scheduled_date"]["$gte"] = start_date.replace(tzinfo=None)
        if end_date:
            query["scheduled_date"]["$lte"] = end_date.replace(tzinfo=None)
    if employee_id:
        query["employees.employee_id"] = employee_id
    if object_id:
        query["object_id"] = object_id

    cursor = schedules_collection.find(query).sort([("scheduled_date", 1)]).skip((page - 1) * limit).limit(limit)
    schedules = await cursor.to_list(length=limit)
    total = await schedules_collection.count_documents(query)

    return paginated(await _populate(schedules), total, page, limit)


@router.get("/{schedule_id}")
async def get_schedule(schedule_id: str):
    oid = validate_object_id(schedule_id, "schedule ID")

    schedule = await schedules_collection.find_one({"_id": oid})
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return await _present(schedule)


@router.post("", status_code=201)
async def create_schedule(payload: dict = Body(...)):
    """CREATE: Book a cleaning visit, refusing double-booked employees"""
    schedule = validate_model(ScheduleModel, payload)
    doc = schedule.model_dump()

    await _validate_employees(doc["employees"])
    await _reject_conflicts(doc)

    result = await schedules_collection.insert_one(doc)
    logger.info(f"Schedule created", extra={"data": {
        "id": str(result.inserted_id),
        "object_id": doc["object_id"],
        "date": doc["scheduled_date"].isoformat(),
        "employees": len(doc["employees"]),
    }})
    return await _present(doc)


@router.api_route("/{schedule_id}", methods=["PUT", "PATCH"])
async def update_schedule(schedule_id: str, update_data: dict = Body(...)):
    oid = validate_object_id(schedule_id, "schedule ID")

    existing = await schedules_collection.find_one({"_id": oid})
    if not existing:
        logger.warning(f"Schedule update failed: not found", extra={"data": {"schedule_id": schedule_id}})
        raise HTTPException(status_code=404, detail="Schedule not found")

    doc = merge_update(ScheduleModel, existing, update_data)
    if "employees" in update_data:
        await _validate_employees(doc["employees"])
    await _reject_conflicts(doc, schedule_id)

    completed_now = (
        existing.get("status") != ScheduleStatus.COMPLETED
        and doc["status"] == ScheduleStatus.COMPLETED
    )
    if completed_now and not update_data.get("actual_duration"):
        doc["actual_duration"] = doc["estimated_duration"]

    updated = await schedules_collection.find_one_and_update(
        {"_id": oid},
        {"$set": doc},
        return_document=True
    )
    logger.info(f"Schedule updated", extra={"data": {"schedule_id": schedule_id, "fields": list(update_data.keys())}})

    if completed_now:
        # Billing must never fail the status change itself
        try:
            await create_invoice_for_schedule(updated)
        except Exception as e:
            logger.error(f"Failed to create invoice for schedule {schedule_id}: {e}", exc_info=True)

    return await _present(updated)


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(schedule_id: str):
    oid = validate_object_id(schedule_id, "schedule ID")

    delete_result = await schedules_collection.delete_one({"_id": oid})
    if delete_result.deleted_count == 0:
        logger.warning(f"Schedule deletion failed: not found", extra={"data": {"schedule_id": schedule_id}})
        raise HTTPException(status_code=404, detail="Schedule not found")

    logger.info(f"Schedule deleted", extra={"data": {"schedule_id": schedule_id}})
    return None


@router.patch("/{schedule_id}/date")
async def update_schedule_date(schedule_id: str, payload: dict = Body(...)):
    """Moves a schedule to another day (drag and drop on the calendar)."""
    oid = validate_object_id(schedule_id, "schedule ID")
    if not payload.get("scheduled_date"):
        raise HTTPException(status_code=400, detail="scheduled_date is required")

    existing = await schedules_collection.find_one({"_id": oid})
    if not existing:
        raise HTTPException(status_code=404, detail="Schedule not found")

    doc = merge_update(ScheduleModel, existing, {"scheduled_date": payload["scheduled_date"]})
    await _reject_conflicts(doc, schedule_id)

    updated = await schedules_collection.find_one_and_update(
        {"_id": oid},
        {"$set": {"scheduled_date": doc["scheduled_date"], "updated_at": doc["updated_at"]}},
        return_document=True
    )
    logger.info(f"Schedule rescheduled", extra={"data": {"schedule_id": schedule_id, "date": doc["scheduled_date"].isoformat()}})
    return await _present(updated)


@router.post("/{schedule_id}/employees")
async def assign_employee(schedule_id: str, payload: dict = Body(...)):
    oid = validate_object_id(schedule_id, "schedule ID")

    schedule = await schedules_collection.find_one({"_id": oid})
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")

    employee_id = payload.get("employee_id")
    employee = None
    if employee_id and ObjectId.is_valid(employee_id):
        employee = await employees_collection.find_one({"_id": ObjectId(employee_id)}, {"_id": 1})
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")

    if any(a.get("employee_id") == employee_id for a in schedule.get("employees") or []):
        raise HTTPException(status_code=400, detail="Employee is already assigned to this schedule")

    await _reject_conflicts(schedule, schedule_id, [employee_id])

    doc = merge_update(ScheduleModel, schedule, {
        "employees": (schedule.get("employees") or []) + [{"employee_id": employee_id, "role": payload.get("role", "Primary")}],
    })
    updated = await schedules_collection.find_one_and_update(
        {"_id": oid},
        {"$set": {"employees": doc["employees"], "updated_at": doc["updated_at"]}},
        return_document=True
    )
    logger.info(f"Employee assigned to schedule", extra={"data": {"schedule_id": schedule_id, "employee_id": employee_id}})
    return await _present(updated)


@router.delete("/{schedule_id}/employees/{employee_id}")
async def remove_employee(schedule_id: str, employee_id: str):
    oid = validate_object_id(schedule_id, "schedule ID")

    updated = await schedules_collection.find_one_and_update(
        {"_id": oid},
        {"$pull": {"employees": {"employee_id": employee_id}}, "$set": {"updated_at": datetime.now()}},
        return_document=True
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Schedule not found")

    logger.info(f"Employee removed from schedule", extra={"data": {"schedule_id": schedule_id, "employee_id": employee_id}})
    return await _present(updated)


@router.patch("/{schedule_id}/contract")
async def assign_contract(schedule_id: str, payload: dict = Body(...)):
    oid = validate_object_id(schedule_id, "schedule ID")

    contract_id = payload.get("contract_id")
    contract = None
    if contract_id and ObjectId.is_valid(contract_id):
        contract = await customer_contracts_collection.find_one({"_id": ObjectId(contract_id)}, {"_id": 1})
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found")

    updated = await schedules_collection.find_one_and_update(
        {"_id": oid},
        {"$set": {"customer_contract_id": contract_id, "updated_at": datetime.now()}},
        return_document=True
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Schedule not found")

    logger.info(f"Contract assigned to schedule", extra={"data": {"schedule_id": schedule_id, "contract_id": contract_id}})
    return await _present(updated)


@router.post("/{schedule_id}/invoice", status_code=201)
async def create_schedule_invoice(schedule_id: str):
    """Bills a schedule on demand, whatever its status."""
    oid = validate_object_id(schedule_id, "schedule ID")

    schedule = await schedules_collection.find_one({"_id": oid})
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")

    try:
        invoice = await create_invoice_for_schedule(schedule)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return invoice_virtuals(parse_mongo_data(invoice))
