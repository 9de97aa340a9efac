from datetime import date, datetime

from pydantic import BaseModel, Field


class AlertCreate(BaseModel):
    employee_id: int
    alert_type: str = Field(..., min_length=1, max_length=50)
    message: str = Field(..., min_length=1)


class AlertResponse(BaseModel):
    id: int
    employee_id: int
    alert_type: str
    message: str
    alert_date: date
    is_read: bool
    read_at: datetime | None
    created_by_user_id: int | None
    created_at: datetime

    model_config = {"from_attributes": True}
