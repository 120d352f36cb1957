# models/customer.py
from pydantic import BaseModel, Field, EmailStr, ConfigDict, field_validator
from typing import Optional, Literal, List
from datetime import datetime

from constants import Municipality, BankName, CustomerStatus
from models.common import ContactPerson, validate_kosovo_iban, validate_nipt, empty_to_none

CustomerType = Literal[
    "Residential",
    "Individual Business",
    "General Partnership",
    "Limited Partnership",
    "Limited Liability Company",
    "Joint Stock Company",
]

CustomerTag = Literal[
    "VIP Customer", "High Value", "Frequent Service", "Special Requirements",
    "Pet Owner", "Key Access", "Elderly Client", "New Customer",
    "Seasonal Service", "Corporate Account", "Government Client", "NGO Client",
]


class BillingAddress(BaseModel):
    address: Optional[str] = None
    city: Optional[str] = None
    municipality: Optional[Municipality] = None
    same_as_service: bool = True

    @field_validator("municipality", mode="before")
    @classmethod
    def blank_municipality(cls, v):
        return empty_to_none(v)


class BankAccount(BaseModel):
    bank_name: Optional[BankName] = None
    account_number: Optional[str] = None
    iban: Optional[str] = None

    @field_validator("iban")
    @classmethod
    def check_iban(cls, v):
        return validate_kosovo_iban(v)


class CustomerPaymentInfo(BaseModel):
    preferred_method: Literal[
        "Bank Transfer", "Cash", "ProCredit Bank", "TEB Bank",
        "NLB Bank", "BKT Bank", "Raiffeisen Bank",
    ] = "Bank Transfer"
    billing_cycle: Literal["Weekly", "Bi-weekly", "Monthly", "Quarterly"] = "Monthly"
    auto_pay_enabled: bool = False
    bank_account: Optional[BankAccount] = None


class CustomerModel(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    phone: str
    address: str
    city: str
    municipality: Municipality
    company: Optional[str] = None
    nipt: Optional[str] = None # Kosovo business number
    customer_type: CustomerType
    status: Literal["Active", "Inactive", "Pending"] = CustomerStatus.PENDING
    preferred_contact_method: Literal["Email", "Phone", "Text", "WhatsApp"] = "Email"
    notes: Optional[str] = None

    registration_date: datetime = Field(default_factory=datetime.now)
    last_service_date: Optional[datetime] = None
    total_contracts: int = 0
    total_revenue: float = 0.0

    emergency_contact: Optional[ContactPerson] = None
    billing_address: BillingAddress = Field(default_factory=BillingAddress)
    payment_info: CustomerPaymentInfo = Field(default_factory=CustomerPaymentInfo)

    referral_source: Optional[Literal[
        "Google Search", "Facebook", "Instagram", "Referral from Friend",
        "Flyers/Advertisements", "Website", "Telegrafi", "Express",
        "Koha Ditore", "RTK", "Other",
    ]] = None
    tags: List[CustomerTag] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("nipt", "referral_source", "company", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)

    @field_validator("nipt")
    @classmethod
    def check_nipt(cls, v):
        return validate_nipt(v)

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore"
    )


def customer_virtuals(doc: dict) -> dict:
    """Adds the display fields the list and detail views rely on."""
    doc["full_name"] = f"{doc.get('first_name', '')} {doc.get('last_name', '')}".strip()
    doc["full_address"] = f"{doc.get('address')}, {doc.get('city')}, {doc.get('municipality')}"
    return doc
