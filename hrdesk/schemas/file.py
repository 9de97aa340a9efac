from datetime import datetime

from pydantic import BaseModel


class EmployeeFileResponse(BaseModel):
    id: int
    employee_id: int
    employee_name: str = ""
    file_name: str
    file_type: str
    file_size: int
    category: str
    uploaded_by_user_id: int | None
    uploaded_at: datetime

    model_config = {"from_attributes": True}
