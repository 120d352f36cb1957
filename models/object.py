# models/object.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Literal, List
from datetime import datetime

from constants import Municipality, ServiceFrequency, DEFAULT_COUNTRY
from models.common import FileReference

ObjectType = Literal[
    "Office", "Residential", "Commercial", "Industrial", "Healthcare",
    "Educational", "Government", "NGO", "Other",
]


class ObjectAddress(BaseModel):
    street: str
    city: str
    municipality: Municipality
    country: str = DEFAULT_COUNTRY


class ObjectContact(BaseModel):
    name: str
    phone: str
    email: Optional[str] = None


class ObjectSize(BaseModel):
    area: Optional[float] = Field(None, ge=0)
    unit: Literal["sqm"] = "sqm"


class ObjectModel(BaseModel):
    customer_id: str
    name: str
    type: ObjectType
    address: ObjectAddress
    contact_person: ObjectContact
    size: ObjectSize = Field(default_factory=ObjectSize)
    floors: int = 1
    rooms: int = 1
    special_requirements: List[Literal[
        "Eco-friendly Products", "24/7 Access", "Security Clearance",
        "Special Equipment", "Hazardous Materials", "EU Standards Compliance",
    ]] = Field(default_factory=list)
    cleaning_frequency: ServiceFrequency
    estimated_cleaning_time: float = Field(..., gt=0) # hours
    status: Literal["Active", "Inactive", "Under Maintenance"] = "Active"
    notes: Optional[str] = None
    photos: List[FileReference] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore"
    )


def object_virtuals(doc: dict) -> dict:
    address = doc.get("address") or {}
    doc["full_address"] = f"{address.get('street')}, {address.get('city')}, {address.get('municipality')}"
    return doc
