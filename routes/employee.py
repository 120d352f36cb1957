# routes/employee.py
from fastapi import APIRouter, Body, HTTPException, status, Query
from typing import Optional
from pymongo.errors import DuplicateKeyError
from database import employees_collection
from models.employee import EmployeeModel, employee_virtuals
from routes.deps import (
    parse_mongo_data, validate_object_id, merge_update,
    search_regex, wants_pagination, paginated,
)
from logging_config import get_logger

router = APIRouter(
    prefix="/api/employees",
    tags=["Employees"]
)
logger = get_logger("employees")

NEWEST_FIRST = [("created_at", -1)]


def _present(employee: dict) -> dict:
    return employee_virtuals(parse_mongo_data(employee))


@router.get("")
async def get_employees(
    search: str = Query(None, description="Search by name or email"),
    status_filter: str = Query(None, alias="status"),
    position: str = Query(None),
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
):
    query = {}

    if search:
        pattern = search_regex(search)
        query["$or"] = [
            {"first_name": pattern},
            {"last_name": pattern},
            {"email": pattern},
        ]
    if status_filter:
        query["status"] = status_filter
    if position:
        query["position"] = position

    cursor = employees_collection.find(query).sort(NEWEST_FIRST)

    if wants_pagination(page, limit):
        employees = await cursor.skip((page - 1) * limit).limit(limit).to_list(length=limit)
        total = await employees_collection.count_documents(query)
        return paginated([_present(e) for e in employees], total, page, limit)

    employees = await cursor.to_list(length=None)
    return [_present(e) for e in employees]


@router.get("/stats")
async def get_employee_stats():
    """READ STATS: Head counts grouped by status and by position"""
    by_status = await employees_collection.aggregate([
        {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        {"$sort": {"_id": 1}},
    ]).to_list(length=None)
    by_position = await employees_collection.aggregate([
        {"$group": {"_id": "$position", "count": {"$sum": 1}}},
        {"$sort": {"_id": 1}},
    ]).to_list(length=None)

    return {
        "status_stats": by_status,
        "position_stats": by_position,
    }


@router.get("/{employee_id}")
async def get_employee(employee_id: str):
    oid = validate_object_id(employee_id, "employee ID")

    employee = await employees_collection.find_one({"_id": oid})
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return _present(employee)


@router.post("", status_code=201)
async def create_employee(employee: EmployeeModel = Body(...)):
    """CREATE: Add a new employee"""
    if await employees_collection.find_one({"email": employee.email}, {"_id": 1}):
        raise HTTPException(status_code=400, detail="Employee with this email already exists")

    doc = employee.model_dump()
    try:
        result = await employees_collection.insert_one(doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Employee with this email already exists")

    logger.info(f"Employee created", extra={"data": {"id": str(result.inserted_id), "position": employee.position}})
    return _present(doc)


@router.api_route("/{employee_id}", methods=["PUT", "PATCH"])
async def update_employee(employee_id: str, update_data: dict = Body(...)):
    oid = validate_object_id(employee_id, "employee ID")

    existing = await employees_collection.find_one({"_id": oid})
    if not existing:
        logger.warning(f"Employee update failed: not found", extra={"data": {"employee_id": employee_id}})
        raise HTTPException(status_code=404, detail="Employee not found")

    doc = merge_update(EmployeeModel, existing, update_data)
    if doc["email"] != existing.get("email"):
        if await employees_collection.find_one({"email": doc["email"], "_id": {"$ne": oid}}, {"_id": 1}):
            raise HTTPException(status_code=400, detail="Employee with this email already exists")

    try:
        updated = await employees_collection.find_one_and_update(
            {"_id": oid},
            {"$set": doc},
            return_document=True
        )
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Employee with this email already exists")

    logger.info(f"Employee updated", extra={"data": {"employee_id": employee_id, "fields": list(update_data.keys())}})
    return _present(updated)


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(employee_id: str):
    oid = validate_object_id(employee_id, "employee ID")

    delete_result = await employees_collection.delete_one({"_id": oid})
    if delete_result.deleted_count == 0:
        logger.warning(f"Employee deletion failed: not found", extra={"data": {"employee_id": employee_id}})
        raise HTTPException(status_code=404, detail="Employee not found")

    logger.info(f"Employee deleted", extra={"data": {"employee_id": employee_id}})
    return None
