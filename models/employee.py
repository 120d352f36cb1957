# models/employee.py
from pydantic import BaseModel, Field, EmailStr, ConfigDict, field_validator, model_validator
from typing import Optional, Literal, List
from datetime import datetime, date, timedelta
import re

from constants import Municipality, BankName, Weekday, Nationality
from models.common import ContactPerson, validate_kosovo_iban, validate_time_of_day, empty_to_none

Position = Literal[
    "Cleaner", "Senior Cleaner", "Team Lead", "Supervisor",
    "Manager", "Administrator", "Specialist",
]

PERSONAL_NUMBER_PATTERN = re.compile(r"^\d{10}$")
PERMIT_EXPIRY_WARNING_DAYS = 30


class WorkPermit(BaseModel):
    type: Optional[Literal["A", "B", "C", "D", "E", "F", "G", "H", "Not Required"]] = None
    number: Optional[str] = None
    issue_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    issuing_authority: str = "Ministry of Internal Affairs - Kosovo"


class ResidencePermit(BaseModel):
    type: Optional[Literal["Temporary", "Permanent", "EU Long-term", "Not Required"]] = None
    number: Optional[str] = None
    expiry_date: Optional[datetime] = None


class EmployeeDocument(BaseModel):
    type: Literal[
        "Kosovo ID Card", "Kosovo Passport", "EU Passport", "Non-EU Passport",
        "Kosovo Driving License", "Work Permit", "Residence Permit",
        "Health Insurance Card", "Employment Contract", "Criminal Background Check",
        "Health Certificate", "Educational Certificates",
        "Professional Qualifications", "Other",
    ]
    number: str
    expiry_date: datetime


class WorkingDay(BaseModel):
    day: Weekday
    from_time: str = Field(alias="from")
    to_time: str = Field(alias="to")
    duration: float

    @field_validator("from_time", "to_time")
    @classmethod
    def check_time(cls, v):
        return validate_time_of_day(v)

    model_config = ConfigDict(populate_by_name=True)


class EmployeePaymentInfo(BaseModel):
    bank_name: Optional[BankName] = None
    account_number: Optional[str] = None
    iban: Optional[str] = None
    account_type: Literal["Checking", "Savings"] = "Checking"

    @field_validator("iban")
    @classmethod
    def check_iban(cls, v):
        return validate_kosovo_iban(v)


class HealthInsurance(BaseModel):
    provider: Optional[Literal[
        "Kosovo Health Insurance Fund", "Private Insurance", "EU Insurance", "Other",
    ]] = None
    policy_number: Optional[str] = None
    valid_until: Optional[datetime] = None


class EmployeeModel(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    phone: str
    position: Position
    status: Literal["Active", "Inactive", "On Leave"] = "Active"
    hourly_rate: float = Field(..., ge=0)
    hire_date: datetime = Field(default_factory=datetime.now)

    address: str
    city: str
    municipality: Municipality

    nationality: Literal["Kosovo Citizen", "EU Citizen", "Non-EU Citizen"]
    personal_number: Optional[str] = None
    work_permit: WorkPermit = Field(default_factory=WorkPermit)
    residence_permit: ResidencePermit = Field(default_factory=ResidencePermit)

    emergency_contact: Optional[ContactPerson] = None
    documents: List[EmployeeDocument] = Field(default_factory=list)
    skills: List[Literal[
        "General Cleaning", "Floor Care", "Window Cleaning", "Carpet Cleaning",
        "Pressure Washing", "Deep Cleaning", "Sanitization", "Equipment Operation",
        "Team Leadership", "Customer Service", "Green Cleaning", "HVAC Cleaning",
        "Post-Construction Cleaning", "Biohazard Cleaning",
    ]] = Field(default_factory=list)
    certifications: List[Literal[
        "Kosovo Health & Safety", "First Aid & CPR", "Green Cleaning",
        "Biohazard Handling", "Equipment Operation", "Supervisor Training",
        "Chemical Safety", "Infection Control", "EU Safety Standards",
        "ISO Cleaning Standards",
    ]] = Field(default_factory=list)

    department: Literal[
        "Residential Cleaning", "Commercial Cleaning", "Special Projects",
        "Maintenance", "Administration", "Healthcare",
    ] = "Residential Cleaning"
    employment_type: Literal["Full-time", "Part-time", "Contract", "Temporary", "Seasonal"] = "Full-time"
    availability: Literal[
        "Weekdays Only", "Weekends Only", "All Days", "Morning Shift",
        "Afternoon Shift", "Evening Shift", "Night Shift", "Flexible",
    ] = "Flexible"
    working_days: List[WorkingDay] = Field(default_factory=list)
    languages: List[Literal[
        "Albanian", "Serbian", "English", "German", "Italian", "French",
        "Turkish", "Bosnian", "Croatian", "Macedonian", "Other",
    ]] = Field(default_factory=list)

    payment_info: EmployeePaymentInfo = Field(default_factory=EmployeePaymentInfo)
    health_insurance: HealthInsurance = Field(default_factory=HealthInsurance)

    notes: str = ""
    gender: Optional[Literal["male", "female", "other"]] = None
    date_of_birth: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("personal_number", "gender", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)

    @model_validator(mode="after")
    def check_legal_status(self):
        citizen = self.nationality == Nationality.KOSOVO

        if citizen:
            if not self.personal_number or not PERSONAL_NUMBER_PATTERN.match(self.personal_number):
                raise ValueError("Personal number must be 10 digits for Kosovo citizens")
        elif self.personal_number and not PERSONAL_NUMBER_PATTERN.match(self.personal_number):
            raise ValueError("Personal number must be 10 digits")

        # Permit types default by nationality
        if self.work_permit.type is None:
            self.work_permit.type = "Not Required" if citizen else "A"
        if self.residence_permit.type is None:
            self.residence_permit.type = "Not Required" if citizen else "Temporary"

        if not citizen:
            wp = self.work_permit
            if not (wp.number and wp.issue_date and wp.expiry_date):
                raise ValueError("Work permit number, issue date and expiry date are required for non-Kosovo citizens")
            rp = self.residence_permit
            if not (rp.number and rp.expiry_date):
                raise ValueError("Residence permit number and expiry date are required for non-Kosovo citizens")
        return self

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore"
    )


def work_permit_expiring_soon(doc: dict, today: Optional[date] = None) -> bool:
    expiry = (doc.get("work_permit") or {}).get("expiry_date")
    if not isinstance(expiry, datetime):
        return False
    limit = (today or datetime.now().date()) + timedelta(days=PERMIT_EXPIRY_WARNING_DAYS)
    return expiry.date() <= limit


def employee_virtuals(doc: dict) -> dict:
    doc["full_name"] = f"{doc.get('first_name', '')} {doc.get('last_name', '')}".strip()
    doc["full_address"] = f"{doc.get('address')}, {doc.get('city')}, {doc.get('municipality')}"
    doc["work_permit_expiring_soon"] = work_permit_expiring_soon(doc)
    return doc
