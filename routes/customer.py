# routes/customer.py
from fastapi import APIRouter, Body, HTTPException, status, Query
from typing import Optional
from pymongo.errors import DuplicateKeyError
from database import customers_collection
from models.customer import CustomerModel, customer_virtuals
from routes.deps import (
    parse_mongo_data, validate_object_id, merge_update,
    search_regex, wants_pagination, paginated,
)
from logging_config import get_logger

router = APIRouter(
    prefix="/api/customers",
    tags=["Customers"]
)
logger = get_logger("customers")

SORT_BY_NAME = [("last_name", 1), ("first_name", 1)]


def _present(customer: dict) -> dict:
    return customer_virtuals(parse_mongo_data(customer))


@router.get("")
async def get_customers(
    search: str = Query(None, description="Search by name, email, company or city"),
    status_filter: str = Query(None, alias="status", description="Active, Inactive or Pending"),
    customer_type: str = Query(None),
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
            {"company": pattern},
            {"city": pattern},
        ]
    if status_filter:
        query["status"] = status_filter
    if customer_type:
        query["customer_type"] = customer_type

    cursor = customers_collection.find(query).sort(SORT_BY_NAME)

    if wants_pagination(page, limit):
        customers = await cursor.skip((page - 1) * limit).limit(limit).to_list(length=limit)
        total = await customers_collection.count_documents(query)
        return paginated([_present(c) for c in customers], total, page, limit)

    customers = await cursor.to_list(length=None)
    return [_present(c) for c in customers]


@router.get("/type/{customer_type}")
async def get_customers_by_type(customer_type: str):
    customers = await customers_collection.find({"customer_type": customer_type}).sort(SORT_BY_NAME).to_list(length=None)
    return [_present(c) for c in customers]


@router.get("/status/{customer_status}")
async def get_customers_by_status(customer_status: str):
    customers = await customers_collection.find({"status": customer_status}).sort(SORT_BY_NAME).to_list(length=None)
    return [_present(c) for c in customers]


@router.get("/{customer_id}")
async def get_customer(customer_id: str):
    """READ ONE: Fetch a single customer by ID"""
    oid = validate_object_id(customer_id, "customer ID")

    customer = await customers_collection.find_one({"_id": oid})
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return _present(customer)


@router.post("", status_code=201)
async def create_customer(customer: CustomerModel = Body(...)):
    """CREATE: Add a new customer"""
    if await customers_collection.find_one({"email": customer.email}, {"_id": 1}):
        raise HTTPException(status_code=400, detail="Customer with this email already exists")

    doc = customer.model_dump()
    try:
        result = await customers_collection.insert_one(doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Customer with this email already exists")

    logger.info(f"Customer created", extra={"data": {"id": str(result.inserted_id), "email": customer.email}})
    return _present(doc)


@router.api_route("/{customer_id}", methods=["PUT", "PATCH"])
async def update_customer(customer_id: str, update_data: dict = Body(...)):
    """UPDATE: Modify an existing customer"""
    oid = validate_object_id(customer_id, "customer ID")

    existing = await customers_collection.find_one({"_id": oid})
    if not existing:
        logger.warning(f"Customer update failed: not found", extra={"data": {"customer_id": customer_id}})
        raise HTTPException(status_code=404, detail="Customer not found")

    doc = merge_update(CustomerModel, existing, update_data)

    if doc["email"] != existing.get("email"):
        clash = await customers_collection.find_one({"email": doc["email"], "_id": {"$ne": oid}}, {"_id": 1})
        if clash:
            raise HTTPException(status_code=400, detail="Customer with this email already exists")

    try:
        updated = await customers_collection.find_one_and_update(
            {"_id": oid},
            {"$set": doc},
            return_document=True
        )
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Customer with this email already exists")

    logger.info(f"Customer updated", extra={"data": {"customer_id": customer_id, "fields": list(update_data.keys())}})
    return _present(updated)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(customer_id: str):
    """DELETE: Remove a customer"""
    oid = validate_object_id(customer_id, "customer ID")

    delete_result = await customers_collection.delete_one({"_id": oid})
    if delete_result.deleted_count == 0:
        logger.warning(f"Customer deletion failed: not found", extra={"data": {"customer_id": customer_id}})
        raise HTTPException(status_code=404, detail="Customer not found")

    logger.info(f"Customer deleted", extra={"data": {"customer_id": customer_id}})
    return None
