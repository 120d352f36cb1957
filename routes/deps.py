from fastapi import HTTPException
from pydantic import BaseModel, ValidationError
from bson import ObjectId
from datetime import datetime
from typing import Optional, Type
import re

from database import db
from logging_config import get_logger

logger = get_logger("deps")

# Fields a client may never overwrite through an update body
PROTECTED_FIELDS = {"_id", "id", "created_at"}


async def get_db():
    """Database handle for routes that work across several collections."""
    return db


def parse_mongo_data(data):
    if isinstance(data, list):
        return [parse_mongo_data(item) for item in data]
    if isinstance(data, dict):
        if "_id" in data and isinstance(data["_id"], ObjectId):
            data["_id"] = str(data["_id"])
        return data
    return data


def validate_object_id(value: str, label: str = "ID") -> ObjectId:
    if not value or not ObjectId.is_valid(value):
        raise HTTPException(status_code=400, detail=f"Invalid {label} format")
    return ObjectId(value)


def to_object_ids(values) -> list:
    return [ObjectId(v) for v in values or [] if isinstance(v, str) and ObjectId.is_valid(v)]


def validation_errors(exc: ValidationError) -> list:
    return [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]


def validate_model(model_cls: Type[BaseModel], data: dict) -> BaseModel:
    try:
        return model_cls(**data)
    except ValidationError as e:
        logger.warning(f"{model_cls.__name__} validation failed", extra={"data": {"errors": validation_errors(e)}})
        raise HTTPException(status_code=422, detail=validation_errors(e))


def merge_update(model_cls: Type[BaseModel], existing: dict, update_data: dict) -> dict:
    """
    Applies a partial update over the stored document and re-validates the
    result through the same model used on create.
    """
    merged = {k: v for k, v in existing.items() if k != "_id"}
    merged.update({k: v for k, v in update_data.items() if k not in PROTECTED_FIELDS})
    merged["updated_at"] = datetime.now()
    return validate_model(model_cls, merged).model_dump()


def search_regex(term: str) -> dict:
    return {"$regex": re.escape(term), "$options": "i"}


def wants_pagination(page: Optional[int], limit: Optional[int]) -> bool:
    return page is not None and limit is not None


def paginated(data: list, total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": (total + limit - 1) // limit,
        "data": data,
    }
