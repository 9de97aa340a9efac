from datetime import datetime

from pydantic import BaseModel, Field


class PositionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)


class PositionUpdate(PositionCreate):
    pass


class PositionResponse(BaseModel):
    id: int
    name: str
    description: str | None
    employee_count: int = 0
    created_at: datetime

    model_config = {"from_attributes": True}
