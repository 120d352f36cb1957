# models/schedule.py
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, Literal, List
from datetime import datetime

from models.common import FileReference, validate_time_of_day, empty_to_none, strip_timezone
from utils.scheduling import calculate_duration


class EmployeeAssignment(BaseModel):
    employee_id: str
    role: Literal["Primary", "Secondary", "Supervisor"] = "Primary"


class ScheduleTask(BaseModel):
    name: str
    description: Optional[str] = None
    completed: bool = False
    completed_by: Optional[str] = None
    completed_at: Optional[datetime] = None


class CustomerFeedback(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comments: Optional[str] = None
    date: Optional[datetime] = None


class ScheduleModel(BaseModel):
    object_id: str
    employees: List[EmployeeAssignment] = Field(default_factory=list)
    customer_contract_id: Optional[str] = None
    scheduled_date: datetime
    start_time: str
    end_time: str
    estimated_duration: Optional[float] = None # hours
    actual_duration: Optional[float] = None
    status: Literal["Scheduled", "In Progress", "Completed", "Cancelled", "No Show"] = "Scheduled"
    priority: Literal["Low", "Medium", "High", "Urgent"] = "Medium"
    cleaning_type: Literal["Regular", "Deep Clean", "Move-in/Move-out", "Emergency", "Special Event"] = "Regular"
    tasks: List[ScheduleTask] = Field(default_factory=list)
    notes: Optional[str] = None
    customer_feedback: Optional[CustomerFeedback] = None
    photos: List[FileReference] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("customer_contract_id", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)

    @field_validator("scheduled_date")
    @classmethod
    def naive_date(cls, v):
        return strip_timezone(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def check_time(cls, v):
        return validate_time_of_day(v)

    @model_validator(mode="after")
    def derive_duration(self):
        self.estimated_duration = calculate_duration(self.start_time, self.end_time)
        return self

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore"
    )
