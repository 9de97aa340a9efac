import math

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.core.middleware import get_current_user, require_role
from hrdesk.db.models import Position, User
from hrdesk.db.session import get_db
from hrdesk.schemas.position import PositionCreate, PositionResponse, PositionUpdate
from hrdesk.services import positions as position_service

router = APIRouter()


def _to_response(position: Position, employee_count: int = 0) -> PositionResponse:
    return PositionResponse.model_validate(position).model_copy(
        update={"employee_count": employee_count}
    )


@router.get("/", response_model=list[PositionResponse], summary="List all positions")
async def list_positions(
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> list[PositionResponse]:
    return [_to_response(p) for p in await position_service.list_positions(db)]


@router.get("/paged", summary="List positions with employee counts and pagination")
async def list_positions_paged(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin", "manager")),
) -> dict:
    rows, total = await position_service.list_positions_page(db, page, per_page)
    return {
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": math.ceil(total / per_page) if total > 0 else 1,
        "items": [_to_response(p, count) for p, count in rows],
    }


@router.get("/{position_id}", response_model=PositionResponse, summary="Get position")
async def get_position(
    position_id: int,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> PositionResponse:
    position, count = await position_service.get_position(db, position_id)
    return _to_response(position, count)


@router.post(
    "/",
    response_model=PositionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create position (admin only)",
)
async def create_position(
    body: PositionCreate,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> PositionResponse:
    position = await position_service.create_position(db, body.name, body.description)
    return _to_response(position)


@router.put("/{position_id}", response_model=PositionResponse, summary="Update position (admin only)")
async def update_position(
    position_id: int,
    body: PositionUpdate,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> PositionResponse:
    await position_service.update_position(db, position_id, body.name, body.description)
    position, count = await position_service.get_position(db, position_id)
    return _to_response(position, count)


@router.delete(
    "/{position_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete position (admin only)",
)
async def delete_position(
    position_id: int,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> None:
    await position_service.delete_position(db, position_id)
