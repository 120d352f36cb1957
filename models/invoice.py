# models/invoice.py
from pydantic import BaseModel, Field, EmailStr, ConfigDict, field_validator, model_validator
from typing import Optional, Literal, List
from datetime import datetime

from constants import Municipality, BankName, CURRENCY, DEFAULT_COUNTRY
from models.common import validate_kosovo_iban, validate_nipt, empty_to_none, strip_timezone
from utils.pricing import money, tax_on, apply_invoice_state

InvoiceStatusValue = Literal["Draft", "Sent", "Paid", "Overdue", "Cancelled", "Partially Paid"]

PaymentMethod = Literal[
    "Cash", "Bank Transfer", "ProCredit Bank", "TEB Bank", "NLB Bank",
    "BKT Bank", "Raiffeisen Bank", "Online Payment",
]


class InvoiceAddress(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    municipality: Optional[Municipality] = None
    country: str = DEFAULT_COUNTRY

    @field_validator("municipality", mode="before")
    @classmethod
    def blank_municipality(cls, v):
        return empty_to_none(v)


class InvoiceCustomer(BaseModel):
    customer_id: Optional[str] = None
    name: str
    email: EmailStr
    phone: Optional[str] = None
    nipt: Optional[str] = None
    address: InvoiceAddress = Field(default_factory=InvoiceAddress)

    @field_validator("nipt", mode="before")
    @classmethod
    def blank_nipt(cls, v):
        return empty_to_none(v)

    @field_validator("nipt")
    @classmethod
    def check_nipt(cls, v):
        return validate_nipt(v)


class InvoiceLine(BaseModel):
    description: str
    quantity: float = Field(..., ge=0)
    unit_price: float = Field(..., ge=0)
    total: Optional[float] = Field(None, ge=0)
    related_object: Optional[str] = None
    related_schedule: Optional[str] = None


class BankTransferDetails(BaseModel):
    bank_name: Optional[BankName] = None
    account_number: Optional[str] = None
    iban: Optional[str] = None
    reference: Optional[str] = None

    @field_validator("iban")
    @classmethod
    def check_iban(cls, v):
        return validate_kosovo_iban(v)


class TaxCompliance(BaseModel):
    vat_registered: bool = False
    vat_number: Optional[str] = None
    fiscal_verification_code: Optional[str] = None

    @model_validator(mode="after")
    def check_vat_number(self):
        if self.vat_registered and not (self.vat_number and self.vat_number.isdigit() and len(self.vat_number) == 9):
            raise ValueError("VAT number required for VAT registered businesses and must be 9 digits")
        return self


class InvoiceModel(BaseModel):
    invoice_number: Optional[str] = None # generated on create when absent
    customer_contract_id: Optional[str] = None
    related_schedules: List[str] = Field(default_factory=list)
    related_objects: List[str] = Field(default_factory=list)
    customer: InvoiceCustomer

    issue_date: datetime = Field(default_factory=datetime.now)
    due_date: datetime
    services: List[InvoiceLine] = Field(default_factory=list)
    currency: Literal["EUR"] = CURRENCY

    subtotal: Optional[float] = Field(None, ge=0)
    tax_rate: Literal[0, 8, 18] = 18
    tax_amount: Optional[float] = Field(None, ge=0)
    discount: float = Field(0, ge=0)
    total_amount: Optional[float] = Field(None, ge=0)
    paid_amount: float = Field(0, ge=0)
    balance: float = 0
    status: InvoiceStatusValue = "Draft"

    payment_method: Optional[PaymentMethod] = None
    payment_date: Optional[datetime] = None
    payment_reference: Optional[str] = None
    payment_token: Optional[str] = None
    payment_token_expires: Optional[datetime] = None
    bank_transfer_details: Optional[BankTransferDetails] = None

    notes: Optional[str] = None
    terms: str = "Payment due within 30 days"

    email_sent: bool = False
    email_sent_date: Optional[datetime] = None
    email_sent_to: List[str] = Field(default_factory=list)

    is_recurring: bool = False
    recurring_frequency: Optional[Literal["Weekly", "Monthly", "Quarterly", "Yearly"]] = None
    next_invoice_date: Optional[datetime] = None
    parent_invoice: Optional[str] = None

    tax_compliance: TaxCompliance = Field(default_factory=TaxCompliance)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("customer_contract_id", "payment_method", "recurring_frequency", "invoice_number", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)

    @field_validator("issue_date", "due_date", "payment_date", "payment_token_expires")
    @classmethod
    def naive_dates(cls, v):
        return strip_timezone(v)

    @model_validator(mode="after")
    def settle_amounts(self):
        # Missing amounts are derived from the service lines
        for line in self.services:
            if line.total is None:
                line.total = money(line.quantity * line.unit_price)
        if self.subtotal is None:
            self.subtotal = money(sum(line.total for line in self.services))
        if self.tax_amount is None:
            self.tax_amount = tax_on(self.subtotal, self.discount, self.tax_rate)
        if self.total_amount is None:
            self.total_amount = money(self.subtotal - self.discount + self.tax_amount)

        state = apply_invoice_state({
            "total_amount": self.total_amount,
            "paid_amount": self.paid_amount,
            "status": self.status,
            "due_date": self.due_date,
        })
        self.balance = state["balance"]
        self.status = state["status"]
        return self

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore"
    )
