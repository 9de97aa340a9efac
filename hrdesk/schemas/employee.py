from datetime import datetime

from pydantic import BaseModel, Field


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=100)
    position_id: int


class EmployeeUpdate(EmployeeCreate):
    pass


class EmployeeResponse(BaseModel):
    id: int
    name: str
    email: str
    position_id: int
    position_name: str = ""
    user_id: int | None
    created_at: datetime

    model_config = {"from_attributes": True}
