import logging
import math
from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.core.middleware import APPROVER_ROLES, ensure_can_view, get_current_user, require_role
from hrdesk.db.models import User
from hrdesk.db.session import get_db
from hrdesk.schemas.file import EmployeeFileResponse
from hrdesk.services import files as file_service
from hrdesk.services.employees import get_employee, get_employee_for_user
from hrdesk.services.storage import FileStore, get_file_store

logger = logging.getLogger(__name__)

router = APIRouter()


async def _check_access(db: AsyncSession, user: User, employee_id: int) -> None:
    own = await get_employee_for_user(db, user)
    ensure_can_view(user, own.id if own else None, employee_id)


async def _file_response(
    file_id: int, disposition: str, db: AsyncSession, user: User, store: FileStore
) -> Response:
    record = await file_service.get_employee_file(db, file_id)
    await _check_access(db, user, record.employee_id)
    record, content = await file_service.read_employee_file(db, store, file_id)
    return Response(
        content=content,
        media_type=file_service.content_type_for(record.file_type),
        headers={
            "Content-Disposition": f"{disposition}; filename*=UTF-8''{quote(record.file_name)}"
        },
    )


@router.get("", summary="All employee files, newest first, paginated")
async def list_files(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role(*APPROVER_ROLES)),
) -> dict:
    items, total = await file_service.list_files_page(db, page, per_page)
    return {
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": math.ceil(total / per_page) if total > 0 else 1,
        "items": items,
    }


@router.get(
    "/employee/{employee_id}",
    response_model=list[EmployeeFileResponse],
    summary="Files attached to an employee",
)
async def employee_files(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[EmployeeFileResponse]:
    await _check_access(db, current_user, employee_id)
    await get_employee(db, employee_id)
    return await file_service.get_employee_files(db, employee_id)


@router.post(
    "/upload",
    response_model=EmployeeFileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a document to an employee (admin only)",
)
async def upload_file(
    file: UploadFile,
    employee_id: int = Form(...),
    category: str | None = Form(default=None, max_length=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("admin")),
    store: FileStore = Depends(get_file_store),
) -> EmployeeFileResponse:
    logger.info(
        "Upload '%s' for employee %s by user %s", file.filename, employee_id, current_user.id
    )
    content = await file.read()
    return await file_service.upload_employee_file(
        db,
        store,
        employee_id,
        file.filename,
        content,
        category=category,
        uploaded_by_user_id=current_user.id,
    )


@router.get("/download/{file_id}", summary="Download a file as an attachment")
async def download_file(
    file_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    store: FileStore = Depends(get_file_store),
) -> Response:
    return await _file_response(file_id, "attachment", db, current_user, store)


@router.get("/preview/{file_id}", summary="Open a file inline in the browser")
async def preview_file(
    file_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    store: FileStore = Depends(get_file_store),
) -> Response:
    return await _file_response(file_id, "inline", db, current_user, store)


@router.delete(
    "/{file_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a file (admin only)",
)
async def delete_file(
    file_id: int,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
    store: FileStore = Depends(get_file_store),
) -> None:
    await file_service.delete_employee_file(db, store, file_id)
