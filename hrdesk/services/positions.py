from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.core.exceptions import DuplicatePositionName, PositionInUse, PositionNotFound
from hrdesk.db.models import Employee, Position


def _with_counts():
    return (
        select(Position, func.count(Employee.id))
        .outerjoin(Employee, Employee.position_id == Position.id)
        .group_by(Position.id)
    )


async def list_positions(db: AsyncSession) -> list[Position]:
    result = await db.execute(select(Position).order_by(Position.name))
    return list(result.scalars().all())


async def list_positions_page(
    db: AsyncSession, page: int, per_page: int
) -> tuple[list[tuple[Position, int]], int]:
    """One page of positions with their employee counts, plus the total."""
    total = (await db.execute(select(func.count()).select_from(Position))).scalar_one()
    result = await db.execute(
        _with_counts()
        .order_by(Position.name)
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return [(position, count) for position, count in result.all()], total


async def get_position(db: AsyncSession, position_id: int) -> tuple[Position, int]:
    result = await db.execute(_with_counts().where(Position.id == position_id))
    row = result.one_or_none()
    if row is None:
        raise PositionNotFound()
    return row[0], row[1]


async def _name_taken(
    db: AsyncSession, name: str, exclude_id: int | None = None
) -> bool:
    q = select(Position.id).where(func.lower(Position.name) == name.lower())
    if exclude_id is not None:
        q = q.where(Position.id != exclude_id)
    return (await db.execute(q.limit(1))).scalar_one_or_none() is not None


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise DuplicatePositionName() from exc


async def create_position(
    db: AsyncSession, name: str, description: str | None
) -> Position:
    if await _name_taken(db, name):
        raise DuplicatePositionName(f"Position '{name}' already exists")
    position = Position(name=name, description=description)
    db.add(position)
    await _commit(db)
    return position


async def update_position(
    db: AsyncSession, position_id: int, name: str, description: str | None
) -> Position:
    position = await db.get(Position, position_id)
    if position is None:
        raise PositionNotFound()
    if await _name_taken(db, name, exclude_id=position_id):
        raise DuplicatePositionName(f"Position '{name}' already exists")
    position.name = name
    position.description = description
    await _commit(db)
    return position


async def delete_position(db: AsyncSession, position_id: int) -> None:
    position, employee_count = await get_position(db, position_id)
    if employee_count > 0:
        raise PositionInUse(
            f"Cannot delete position with {employee_count} assigned employee(s)"
        )
    await db.delete(position)
    await db.commit()
