from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

LeaveStatus = Literal["Pending", "Approved", "Rejected"]


class LeaveTypeResponse(BaseModel):
    id: int
    name: str
    description: str | None
    max_days_per_year: int

    model_config = {"from_attributes": True}


class LeaveRequestCreate(BaseModel):
    leave_type_id: int
    start_date: date
    end_date: date
    reason: str = Field(default="", max_length=2000)


class LeaveDecision(BaseModel):
    approve: bool
    rejection_reason: str | None = Field(default=None, max_length=2000)


class LeaveRequestResponse(BaseModel):
    id: int
    employee_id: int
    employee_name: str = ""
    leave_type_id: int
    leave_type_name: str = ""
    start_date: date
    end_date: date
    total_days: int
    reason: str
    status: LeaveStatus
    approved_by_user_id: int | None
    approved_by_name: str | None = None
    approved_at: datetime | None
    rejection_reason: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class EmailActionResponse(BaseModel):
    message: str
    leave_request: LeaveRequestResponse
