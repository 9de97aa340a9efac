from datetime import date, datetime, timedelta
from typing import Literal

from pydantic import BaseModel, Field, computed_field, field_validator

AttendanceStatus = Literal["Present", "Late", "Absent", "OnLeave"]


class ClockInRequest(BaseModel):
    work_mode: str = Field(default="In-Office", max_length=50)

    @field_validator("work_mode")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field must not be empty")
        return v.strip()


class DailyReportRequest(BaseModel):
    report: str = Field(..., min_length=1)


class AttendanceResponse(BaseModel):
    id: int
    employee_id: int
    attendance_date: date
    clock_in: datetime | None
    clock_out: datetime | None
    break_start: datetime | None
    break_end: datetime | None
    status: AttendanceStatus
    work_mode: str
    daily_report: str | None
    daily_report_submitted: bool
    daily_report_submitted_at: datetime | None
    total_work_duration: timedelta | None

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def total_work_hours(self) -> float | None:
        if self.total_work_duration is None:
            return None
        return round(self.total_work_duration.total_seconds() / 3600, 2)


class AttendanceStats(BaseModel):
    employee_id: int
    year: int
    month: int
    total_days: int
    present_days: int
    absent_days: int
    late_days: int
    leave_days: int
    attendance_percentage: float
    report_submission_rate: float


class RealTimeStats(BaseModel):
    date: date
    total_employees: int
    present_today: int
    absent_today: int
    late_today: int
    on_leave_today: int


class ReportSubmissionRate(BaseModel):
    date: date
    submission_rate: float


class MarkAbsentResult(BaseModel):
    date: date
    marked_absent: int
