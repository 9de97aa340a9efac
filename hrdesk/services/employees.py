import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.core.exceptions import DuplicateEmail, EmployeeNotFound, PositionNotFound
from hrdesk.db.models import Employee, Position, User

logger = logging.getLogger(__name__)


async def list_employees(
    db: AsyncSession, search: str | None = None
) -> list[Employee]:
    q = select(Employee)
    if search:
        q = q.where(
            Employee.name.ilike(f"%{search}%") | Employee.email.ilike(f"%{search}%")
        )
    result = await db.execute(q.order_by(Employee.name, Employee.id))
    return list(result.scalars().all())


async def get_employee(db: AsyncSession, employee_id: int) -> Employee:
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise EmployeeNotFound()
    return employee


async def get_employee_for_user(db: AsyncSession, user: User) -> Employee | None:
    """The employee profile of a login: linked by user_id, else by email."""
    result = await db.execute(select(Employee).where(Employee.user_id == user.id))
    employee = result.scalar_one_or_none()
    if employee is not None:
        return employee

    result = await db.execute(
        select(Employee).where(func.lower(Employee.email) == user.email.lower())
    )
    return result.scalar_one_or_none()


async def _email_taken(
    db: AsyncSession, email: str, exclude_id: int | None = None
) -> bool:
    q = select(Employee.id).where(func.lower(Employee.email) == email.lower())
    if exclude_id is not None:
        q = q.where(Employee.id != exclude_id)
    result = await db.execute(q.limit(1))
    return result.scalar_one_or_none() is not None


async def _ensure_position(db: AsyncSession, position_id: int) -> None:
    if await db.get(Position, position_id) is None:
        raise PositionNotFound()


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise DuplicateEmail() from exc


async def create_employee(
    db: AsyncSession, name: str, email: str, position_id: int
) -> Employee:
    if await _email_taken(db, email):
        raise DuplicateEmail(f"Employee with email '{email}' already exists")
    await _ensure_position(db, position_id)

    employee = Employee(name=name, email=email, position_id=position_id)

    # Link an existing login with the same address.
    result = await db.execute(
        select(User.id).where(func.lower(User.email) == email.lower())
    )
    employee.user_id = result.scalar_one_or_none()

    db.add(employee)
    await _commit(db)
    logger.info("Employee %s created (%s)", employee.id, email)
    return employee


async def update_employee(
    db: AsyncSession, employee_id: int, name: str, email: str, position_id: int
) -> Employee:
    employee = await get_employee(db, employee_id)
    if await _email_taken(db, email, exclude_id=employee_id):
        raise DuplicateEmail(f"Employee with email '{email}' already exists")
    await _ensure_position(db, position_id)

    employee.name = name
    employee.email = email
    employee.position_id = position_id
    await _commit(db)
    return employee


async def delete_employee(db: AsyncSession, employee_id: int) -> None:
    employee = await get_employee(db, employee_id)
    await db.delete(employee)
    await db.commit()
    logger.info("Employee %s deleted", employee_id)
