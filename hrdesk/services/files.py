"""
Employee documents.

Uploads are validated (extension, size, non-empty), written to the file
store under a fresh date-sharded key and recorded in ``employee_files``.
If the row cannot be committed the stored bytes are removed again, so the
store never keeps content without a row pointing at it.
"""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import PurePath

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.core.config import settings
from hrdesk.core.exceptions import (
    EmployeeFileNotFound,
    EmployeeNotFound,
    EmptyFile,
    FileTooLarge,
    StoredFileMissing,
    UnsupportedFileType,
)
from hrdesk.db.models import Employee, EmployeeFile
from hrdesk.schemas.file import EmployeeFileResponse
from hrdesk.services.storage import FileStore

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}

ALLOWED_EXTENSIONS = frozenset(f".{ext}" for ext in CONTENT_TYPES)


def file_extension(filename: str | None) -> str:
    return PurePath(filename or "").suffix.lower()


def content_type_for(file_type: str) -> str:
    return CONTENT_TYPES.get(file_type.lower(), "application/octet-stream")


def storage_key(extension: str, now: datetime) -> str:
    return f"{now:%Y/%m/%d}/{uuid.uuid4().hex}{extension}"


def _listing():
    return select(EmployeeFile, Employee.name).join(
        Employee, Employee.id == EmployeeFile.employee_id
    )


def _to_response(row: EmployeeFile, employee_name: str) -> EmployeeFileResponse:
    return EmployeeFileResponse.model_validate(row).model_copy(
        update={"employee_name": employee_name}
    )


async def upload_employee_file(
    db: AsyncSession,
    store: FileStore,
    employee_id: int,
    filename: str | None,
    content: bytes,
    category: str | None = None,
    uploaded_by_user_id: int | None = None,
    now: datetime | None = None,
) -> EmployeeFileResponse:
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise EmployeeNotFound()

    if not filename or not content:
        raise EmptyFile()

    ext = file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileType(
            f"File type '{ext or filename}' is not allowed. "
            f"Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise FileTooLarge(
            f"File size exceeds the {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit"
        )

    now = now or datetime.now(timezone.utc)
    key = storage_key(ext, now)
    await store.save(key, content)

    record = EmployeeFile(
        employee_id=employee_id,
        file_name=PurePath(filename).name,
        storage_key=key,
        file_type=ext.lstrip("."),
        file_size=len(content),
        category=(category or "").strip() or DEFAULT_CATEGORY,
        uploaded_by_user_id=uploaded_by_user_id,
        uploaded_at=now,
    )
    db.add(record)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        await store.delete(key)
        logger.exception("Could not record upload %s for employee %s", filename, employee_id)
        raise

    logger.info(
        "Stored file %s (%d bytes) for employee %s as %s",
        record.file_name, record.file_size, employee_id, key,
    )
    return _to_response(record, employee.name)


async def get_employee_file(db: AsyncSession, file_id: int) -> EmployeeFile:
    record = await db.get(EmployeeFile, file_id)
    if record is None:
        raise EmployeeFileNotFound()
    return record


async def get_employee_files(db: AsyncSession, employee_id: int) -> list[EmployeeFileResponse]:
    """Files of one employee, newest first."""
    result = await db.execute(
        _listing()
        .where(EmployeeFile.employee_id == employee_id)
        .order_by(EmployeeFile.uploaded_at.desc(), EmployeeFile.id.desc())
    )
    return [_to_response(row, name) for row, name in result.all()]


async def list_files_page(
    db: AsyncSession, page: int, per_page: int
) -> tuple[list[EmployeeFileResponse], int]:
    total = (await db.execute(select(func.count()).select_from(EmployeeFile))).scalar_one()
    result = await db.execute(
        _listing()
        .order_by(EmployeeFile.uploaded_at.desc(), EmployeeFile.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return [_to_response(row, name) for row, name in result.all()], total


async def read_employee_file(
    db: AsyncSession, store: FileStore, file_id: int
) -> tuple[EmployeeFile, bytes]:
    record = await get_employee_file(db, file_id)
    try:
        content = await store.read(record.storage_key)
    except FileNotFoundError as exc:
        logger.error("File %s has a row but no stored content at %s", file_id, record.storage_key)
        raise StoredFileMissing() from exc
    return record, content


async def delete_employee_file(db: AsyncSession, store: FileStore, file_id: int) -> None:
    """Remove the row, then the stored bytes. Missing bytes are only logged."""
    record = await get_employee_file(db, file_id)
    key = record.storage_key
    await db.delete(record)
    await db.commit()
    await store.delete(key)
    logger.info("Deleted file %s (%s)", file_id, key)


async def delete_employee_files(db: AsyncSession, store: FileStore, employee_id: int) -> int:
    """Drop every file of an employee before the employee row goes away."""
    result = await db.execute(select(EmployeeFile).where(EmployeeFile.employee_id == employee_id))
    records = list(result.scalars().all())
    keys = [r.storage_key for r in records]
    for record in records:
        await db.delete(record)
    await db.commit()

    for key in keys:
        await store.delete(key)
    if keys:
        logger.info("Deleted %d file(s) of employee %s", len(keys), employee_id)
    return len(keys)
