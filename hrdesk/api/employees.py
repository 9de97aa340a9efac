from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.core.middleware import get_current_employee, require_role
from hrdesk.db.models import Employee, Position, User
from hrdesk.db.session import get_db
from hrdesk.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from hrdesk.services import employees as employee_service
from hrdesk.services import files as file_service
from hrdesk.services.storage import FileStore, get_file_store

router = APIRouter()


async def _position_names(db: AsyncSession, position_ids: set[int]) -> dict[int, str]:
    if not position_ids:
        return {}
    result = await db.execute(
        select(Position.id, Position.name).where(Position.id.in_(position_ids))
    )
    return {row.id: row.name for row in result.all()}


async def _to_responses(db: AsyncSession, employees: list[Employee]) -> list[EmployeeResponse]:
    names = await _position_names(db, {e.position_id for e in employees})
    return [
        EmployeeResponse.model_validate(e).model_copy(
            update={"position_name": names.get(e.position_id, "")}
        )
        for e in employees
    ]


async def _to_response(db: AsyncSession, employee: Employee) -> EmployeeResponse:
    return (await _to_responses(db, [employee]))[0]


@router.get("/", response_model=list[EmployeeResponse], summary="List employees")
async def list_employees(
    search: str | None = Query(default=None, description="Filter by name or email"),
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin", "manager")),
) -> list[EmployeeResponse]:
    return await _to_responses(db, await employee_service.list_employees(db, search))


@router.get("/me", response_model=EmployeeResponse, summary="Own employee profile")
async def get_my_profile(
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> EmployeeResponse:
    return await _to_response(db, employee)


@router.get("/{employee_id}", response_model=EmployeeResponse, summary="Get employee")
async def get_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin", "manager")),
) -> EmployeeResponse:
    return await _to_response(db, await employee_service.get_employee(db, employee_id))


@router.post(
    "/",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create employee (admin only)",
)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> EmployeeResponse:
    employee = await employee_service.create_employee(
        db, body.name, body.email, body.position_id
    )
    return await _to_response(db, employee)


@router.put("/{employee_id}", response_model=EmployeeResponse, summary="Update employee (admin only)")
async def update_employee(
    employee_id: int,
    body: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> EmployeeResponse:
    employee = await employee_service.update_employee(
        db, employee_id, body.name, body.email, body.position_id
    )
    return await _to_response(db, employee)


@router.delete(
    "/{employee_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete employee (admin only)",
)
async def delete_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
    store: FileStore = Depends(get_file_store),
) -> None:
    await employee_service.get_employee(db, employee_id)
    await file_service.delete_employee_files(db, store, employee_id)
    await employee_service.delete_employee(db, employee_id)
