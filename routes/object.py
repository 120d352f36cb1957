# routes/object.py
from fastapi import APIRouter, Body, HTTPException, status, Query
from typing import Optional
from bson import ObjectId
from database import objects_collection, customers_collection
from models.object import ObjectModel, object_virtuals
from routes.deps import (
    parse_mongo_data, validate_object_id, merge_update,
    search_regex, wants_pagination, paginated,
)
from logging_config import get_logger

router = APIRouter(
    prefix="/api/objects",
    tags=["Objects"]
)
logger = get_logger("objects")


def _present(obj: dict) -> dict:
    return object_virtuals(parse_mongo_data(obj))


async def _require_customer(customer_id: str):
    if not ObjectId.is_valid(customer_id or ""):
        raise HTTPException(status_code=400, detail="Invalid customer ID format")
    if not await customers_collection.find_one({"_id": ObjectId(customer_id)}, {"_id": 1}):
        raise HTTPException(status_code=400, detail="Customer not found")


@router.get("")
async def get_objects(
    search: str = Query(None, description="Search by name, city or contact person"),
    status_filter: str = Query(None, alias="status"),
    object_type: str = Query(None, alias="type"),
    customer_id: str = Query(None),
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
):
    query = {}

    if search:
        pattern = search_regex(search)
        query["$or"] = [
            {"name": pattern},
            {"address.city": pattern},
            {"contact_person.name": pattern},
        ]
    if status_filter:
        query["status"] = status_filter
    if object_type:
        query["type"] = object_type
    if customer_id:
        query["customer_id"] = customer_id

    cursor = objects_collection.find(query).sort([("created_at", -1)])

    if wants_pagination(page, limit):
        objects = await cursor.skip((page - 1) * limit).limit(limit).to_list(length=limit)
        total = await objects_collection.count_documents(query)
        return paginated([_present(o) for o in objects], total, page, limit)

    objects = await cursor.to_list(length=None)
    return [_present(o) for o in objects]


@router.get("/{object_id}")
async def get_object(object_id: str):
    oid = validate_object_id(object_id, "object ID")

    obj = await objects_collection.find_one({"_id": oid})
    if not obj:
        raise HTTPException(status_code=404, detail="Object not found")
    return _present(obj)


@router.post("", status_code=201)
async def create_object(obj: ObjectModel = Body(...)):
    """CREATE: Register a new service location for a customer"""
    await _require_customer(obj.customer_id)

    doc = obj.model_dump()
    result = await objects_collection.insert_one(doc)
    logger.info(f"Object created", extra={"data": {"id": str(result.inserted_id), "name": obj.name, "customer_id": obj.customer_id}})
    return _present(doc)


@router.api_route("/{object_id}", methods=["PUT", "PATCH"])
async def update_object(object_id: str, update_data: dict = Body(...)):
    oid = validate_object_id(object_id, "object ID")

    existing = await objects_collection.find_one({"_id": oid})
    if not existing:
        logger.warning(f"Object update failed: not found", extra={"data": {"object_id": object_id}})
        raise HTTPException(status_code=404, detail="Object not found")

    doc = merge_update(ObjectModel, existing, update_data)
    if doc["customer_id"] != existing.get("customer_id"):
        await _require_customer(doc["customer_id"])

    updated = await objects_collection.find_one_and_update(
        {"_id": oid},
        {"$set": doc},
        return_document=True
    )

    logger.info(f"Object updated", extra={"data": {"object_id": object_id, "fields": list(update_data.keys())}})
    return _present(updated)


@router.delete("/{object_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_object(object_id: str):
    oid = validate_object_id(object_id, "object ID")

    delete_result = await objects_collection.delete_one({"_id": oid})
    if delete_result.deleted_count == 0:
        logger.warning(f"Object deletion failed: not found", extra={"data": {"object_id": object_id}})
        raise HTTPException(status_code=404, detail="Object not found")

    logger.info(f"Object deleted", extra={"data": {"object_id": object_id}})
    return None
