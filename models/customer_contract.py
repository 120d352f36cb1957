# models/customer_contract.py
from pydantic import BaseModel, Field, EmailStr, ConfigDict, field_validator, model_validator
from typing import Optional, Literal, List
from datetime import datetime

from constants import ServiceFrequency, Weekday, CURRENCY, DEFAULT_COUNTRY
from models.common import StreetAddress, FileReference, validate_time_of_day, empty_to_none

BillingFrequency = Literal["Weekly", "Bi-weekly", "Monthly", "Quarterly", "Annually"]


class CustomerSnapshot(BaseModel):
    name: str
    email: EmailStr
    phone: str
    address: StreetAddress = Field(default_factory=StreetAddress)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class ContractBillingAddress(BaseModel):
    same_as_service: bool = True
    address: Optional[str] = None
    city: Optional[str] = None
    municipality: Optional[str] = None
    country: str = DEFAULT_COUNTRY


class PaymentCalculation(BaseModel):
    payment_terms_text: Optional[str] = None
    payment_method: Optional[str] = None
    quantity_hours: Optional[float] = None
    hourly_rate: Optional[float] = None
    total_amount_excluding_vat: Optional[float] = None
    vat_rate: Optional[float] = None
    vat_amount: Optional[float] = None
    total_amount_including_vat: Optional[float] = None
    rhythm_count_by_year: Optional[float] = None
    total_annualized_quantity_hours: Optional[float] = None
    total_month_working_hours: Optional[float] = None
    total_annualized_contract_value: Optional[float] = None
    total_monthly_contract_value: Optional[float] = None
    employee_hours_per_engagement: Optional[float] = None
    number_of_employees: Optional[int] = None
    total_hours_per_engagement: Optional[float] = None


class ContractService(BaseModel):
    name: str
    description: Optional[str] = None
    frequency: Optional[ServiceFrequency] = None
    price: float = Field(..., ge=0) # hourly

    @field_validator("frequency", mode="before")
    @classmethod
    def blank_frequency(cls, v):
        return empty_to_none(v)


class TimeSlot(BaseModel):
    from_time: str = Field(alias="from")
    to_time: str = Field(alias="to")
    duration: float = Field(..., ge=0.5, le=12) # hours

    @field_validator("from_time", "to_time")
    @classmethod
    def check_time(cls, v):
        return validate_time_of_day(v)

    model_config = ConfigDict(populate_by_name=True)


class WorkingDaySlots(BaseModel):
    day: Weekday
    time_slots: List[TimeSlot] = Field(default_factory=list)


class ServicePreferences(BaseModel):
    key_access: bool = False
    pet_instructions: Optional[str] = None
    access_instructions: Optional[str] = None
    special_requests: Optional[str] = None


class ContractQuoteRequest(BaseModel):
    services: List[ContractService] = Field(default_factory=list)
    working_days_and_times: List[WorkingDaySlots] = Field(default_factory=list)
    billing_frequency: BillingFrequency = "Monthly"
    vat_rate: Optional[float] = Field(None, ge=0, le=100)


class CustomerContractModel(BaseModel):
    contract_number: Optional[str] = None # generated on create when absent
    customer_id: str
    object_id: Optional[str] = None
    customer: Optional[CustomerSnapshot] = None
    billing_address: ContractBillingAddress = Field(default_factory=ContractBillingAddress)
    objects: List[str] = Field(default_factory=list)

    start_date: datetime
    end_date: Optional[datetime] = None
    contract_type: Literal["One-time", "Recurring", "Long-term", "Emergency"]
    billing_frequency: BillingFrequency
    total_amount: Optional[float] = Field(None, ge=0)
    currency: str = CURRENCY
    payment_terms: Literal[
        "Within 10 days", "Within 20 days", "Within 30 days",
        "Within 45 days", "Immediate Payment", "In advance",
    ] = "Within 30 days"
    payment_calculation: PaymentCalculation = Field(default_factory=PaymentCalculation)

    services: List[ContractService] = Field(default_factory=list)
    working_days_and_times: List[WorkingDaySlots] = Field(default_factory=list)
    service_preferences: ServicePreferences = Field(default_factory=ServicePreferences)
    special_requirements: List[str] = Field(default_factory=list)

    status: Literal["Active", "Expired", "Terminated", "Suspended", "Pending"] = "Pending"
    terms: Optional[str] = None
    notes: Optional[str] = None
    documents: List[FileReference] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("object_id", "end_date", "contract_number", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("End date must be on or after the start date")
        return self

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore"
    )
