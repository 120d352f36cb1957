# models/employee_contract.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, Literal, List
from datetime import datetime


class WorkingHours(BaseModel):
    weekly_hours: float = Field(..., ge=0, le=80)
    schedule_type: Literal["Fixed", "Flexible"] = "Fixed"


class LeaveEntitlement(BaseModel):
    annual_leave: int = Field(15, ge=0)
    sick_leave: int = Field(10, ge=0)
    paid_holidays: int = Field(8, ge=0)


class ProbationPeriod(BaseModel):
    duration: int = Field(3, ge=0) # months
    end_date: Optional[datetime] = None


class ContractDocument(BaseModel):
    type: Literal[
        "Contract Agreement", "NDA", "Benefits Documentation",
        "Performance Reviews", "Amendments", "Tax Forms",
    ]
    name: str
    url: str
    upload_date: datetime = Field(default_factory=datetime.now)


class TerminationDetails(BaseModel):
    date: Optional[datetime] = None
    reason: Optional[str] = None
    notes: Optional[str] = None


class EmployeeContractModel(BaseModel):
    employee_id: str
    contract_type: Literal["Full-time", "Part-time", "Temporary", "Contract", "Seasonal"]
    start_date: datetime
    end_date: Optional[datetime] = None

    salary: float = Field(..., ge=0)
    payment_frequency: Literal["Weekly", "Bi-weekly", "Monthly"] = "Monthly"
    benefits: List[Literal[
        "Health Insurance", "Dental Coverage", "Vision Insurance", "Retirement Plan",
        "Paid Time Off", "Sick Leave", "401k Matching", "Life Insurance",
        "Disability Insurance", "Flexible Spending Account",
    ]] = Field(default_factory=list)

    working_hours: WorkingHours
    leave_entitlement: LeaveEntitlement = Field(default_factory=LeaveEntitlement)
    probation_period: ProbationPeriod = Field(default_factory=ProbationPeriod)
    documents: List[ContractDocument] = Field(default_factory=list)
    terms: List[str] = Field(default_factory=list)

    status: Literal["Active", "Expired", "Terminated", "Suspended"] = "Active"
    termination_details: Optional[TerminationDetails] = None

    contract_number: Optional[str] = None
    hourly_rate: Optional[float] = Field(None, ge=0)
    overtime_rate: float = 0
    termination_notice: int = 14 # days
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("end_date", "contract_number", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        if v == "":
            return None
        return v

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore"
    )
