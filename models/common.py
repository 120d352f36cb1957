# models/common.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Any
from datetime import datetime, timezone
import re

from constants import Municipality, DEFAULT_COUNTRY

IBAN_PATTERN = re.compile(r"^XK\d{2}\d{4}\d{4}\d{4}\d{4}$")
TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
NIPT_PATTERN = re.compile(r"^\d{9}$")


def validate_kosovo_iban(value: Optional[str]) -> Optional[str]:
    """Kosovo IBAN: XK + 2 check digits + 16 digits, spaces allowed."""
    if not value:
        return value
    if not IBAN_PATTERN.match(value.replace(" ", "")):
        raise ValueError("Invalid Kosovo IBAN format")
    return value


def validate_time_of_day(value: str) -> str:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value


def validate_nipt(value: Optional[str]) -> Optional[str]:
    if value and not NIPT_PATTERN.match(value):
        raise ValueError("NIPT must be 9 digits")
    return value


def empty_to_none(v: Any) -> Any:
    if v == "":
        return None
    return v


def strip_timezone(v: Optional[datetime]) -> Optional[datetime]:
    # Mongo hands back naive UTC datetimes; keep stored values comparable
    if isinstance(v, datetime) and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


class StreetAddress(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    municipality: Optional[Municipality] = None
    country: str = DEFAULT_COUNTRY

    @field_validator("municipality", mode="before")
    @classmethod
    def blank_municipality(cls, v):
        return empty_to_none(v)

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class ContactPerson(BaseModel):
    name: Optional[str] = None
    relationship: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class FileReference(BaseModel):
    file_name: str
    upload_date: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(extra="ignore")
