"""
Leave engine: requests against a yearly per-type quota and a one-shot
approval workflow.

A request is created Pending and moves exactly once to Approved or
Rejected. Approval marks every day of the (inclusive) range OnLeave in the
attendance table in the same transaction as the status change. Emails go
out after the commit; a failed email is logged and never undoes the
decision.
"""

import logging
import secrets
from collections.abc import Awaitable
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from sqlalchemy.orm.exc import StaleDataError

from hrdesk.core.config import settings
from hrdesk.core.exceptions import (
    AlreadyProcessed,
    ConflictError,
    EmployeeNotFound,
    InvalidActionToken,
    InvalidDateRange,
    InvalidLeaveType,
    LeaveRequestNotFound,
    QuotaExceeded,
)
from hrdesk.db.models import Employee, LeaveRequest, LeaveType, User
from hrdesk.schemas.leave import LeaveRequestResponse
from hrdesk.services import email_service
from hrdesk.services.attendance import mark_on_leave

logger = logging.getLogger(__name__)

EMAIL_REJECTION_REASON = "Rejected via email"
DEFAULT_REJECTION_REASON = "No reason provided"


async def _notify(send: Awaitable[None], what: str) -> None:
    try:
        await send
    except Exception:
        logger.exception("Failed to send %s email", what)


def leave_days(start_date: date, end_date: date) -> int:
    return (end_date - start_date).days + 1


async def get_leave_types(db: AsyncSession) -> list[LeaveType]:
    result = await db.execute(
        select(LeaveType).where(LeaveType.is_active.is_(True)).order_by(LeaveType.name)
    )
    return list(result.scalars().all())


async def approved_days_in_year(
    db: AsyncSession, employee_id: int, leave_type_id: int, year: int
) -> int:
    """Days of approved leave of one type lying within the calendar year."""
    result = await db.execute(
        select(func.coalesce(func.sum(LeaveRequest.total_days), 0)).where(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.leave_type_id == leave_type_id,
            LeaveRequest.status == "Approved",
            LeaveRequest.start_date >= date(year, 1, 1),
            LeaveRequest.end_date <= date(year, 12, 31),
        )
    )
    return int(result.scalar_one())


async def create_leave_request(
    db: AsyncSession,
    employee_id: int,
    leave_type_id: int,
    start_date: date,
    end_date: date,
    reason: str,
) -> LeaveRequest:
    leave_type = await db.get(LeaveType, leave_type_id)
    if leave_type is None or not leave_type.is_active:
        raise InvalidLeaveType()

    if end_date < start_date:
        raise InvalidDateRange()
    total_days = leave_days(start_date, end_date)

    used_days = await approved_days_in_year(
        db, employee_id, leave_type_id, start_date.year
    )
    if used_days + total_days > leave_type.max_days_per_year:
        raise QuotaExceeded(
            f"Exceeds maximum {leave_type.name} days "
            f"({leave_type.max_days_per_year}) for the year"
        )

    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise EmployeeNotFound()

    request = LeaveRequest(
        employee_id=employee_id,
        leave_type_id=leave_type_id,
        start_date=start_date,
        end_date=end_date,
        total_days=total_days,
        reason=reason,
        status="Pending",
        email_action_token=secrets.token_urlsafe(32),
    )
    db.add(request)
    await db.commit()

    logger.info(
        "Leave request %s created for employee %s: %s..%s (%d day(s))",
        request.id, employee_id, start_date, end_date, total_days,
    )

    await _notify(
        email_service.send_leave_request_for_approval(
            approver_email=settings.LEAVE_APPROVER_EMAIL,
            employee_name=employee.name,
            start_date=start_date,
            end_date=end_date,
            leave_request_id=request.id,
            action_token=request.email_action_token,
        ),
        "leave approval request",
    )
    return request


async def get_leave_request(db: AsyncSession, leave_request_id: int) -> LeaveRequest:
    request = await db.get(LeaveRequest, leave_request_id)
    if request is None:
        raise LeaveRequestNotFound()
    return request


def _listing():
    approver = aliased(User)
    return (
        select(LeaveRequest, Employee.name, LeaveType.name, approver.name)
        .join(Employee, Employee.id == LeaveRequest.employee_id)
        .join(LeaveType, LeaveType.id == LeaveRequest.leave_type_id)
        .outerjoin(approver, approver.id == LeaveRequest.approved_by_user_id)
    )


async def _run_listing(db: AsyncSession, stmt) -> list[LeaveRequestResponse]:
    result = await db.execute(stmt)
    return [
        LeaveRequestResponse.model_validate(request).model_copy(
            update={
                "employee_name": employee_name,
                "leave_type_name": leave_type_name,
                "approved_by_name": approver_name,
            }
        )
        for request, employee_name, leave_type_name, approver_name in result.all()
    ]


async def describe_leave_request(
    db: AsyncSession, request: LeaveRequest
) -> LeaveRequestResponse:
    """Response projection with employee, leave type and approver names."""
    rows = await _run_listing(db, _listing().where(LeaveRequest.id == request.id))
    if not rows:
        return LeaveRequestResponse.model_validate(request)
    return rows[0]


async def get_employee_leave_requests(
    db: AsyncSession, employee_id: int
) -> list[LeaveRequestResponse]:
    return await _run_listing(
        db,
        _listing()
        .where(LeaveRequest.employee_id == employee_id)
        .order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()),
    )


async def get_pending_leave_requests(db: AsyncSession) -> list[LeaveRequestResponse]:
    # Oldest first: approvers work through the queue in arrival order.
    return await _run_listing(
        db,
        _listing()
        .where(LeaveRequest.status == "Pending")
        .order_by(LeaveRequest.created_at.asc(), LeaveRequest.id.asc()),
    )


async def get_all_leave_requests(db: AsyncSession) -> list[LeaveRequestResponse]:
    return await _run_listing(
        db,
        _listing().order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()),
    )


async def approve_or_reject(
    db: AsyncSession,
    leave_request_id: int,
    approver_user_id: int | None,
    approve: bool,
    rejection_reason: str | None = None,
    now: datetime | None = None,
) -> LeaveRequest:
    request = await get_leave_request(db, leave_request_id)
    if request.status != "Pending":
        raise AlreadyProcessed()

    employee = await db.get(Employee, request.employee_id)
    if employee is None:
        raise EmployeeNotFound()

    request.status = "Approved" if approve else "Rejected"
    request.approved_by_user_id = approver_user_id
    request.approved_at = now or datetime.now(timezone.utc)

    if approve:
        request.rejection_reason = None
        logger.info(
            "Marking attendance as OnLeave for employee %s from %s to %s",
            request.employee_id, request.start_date, request.end_date,
        )
        for offset in range(request.total_days):
            await mark_on_leave(
                db, request.employee_id, request.start_date + timedelta(days=offset)
            )
    else:
        request.rejection_reason = rejection_reason or DEFAULT_REJECTION_REASON

    try:
        await db.commit()
    except (IntegrityError, StaleDataError) as exc:
        await db.rollback()
        raise ConflictError(
            "Leave request or attendance changed concurrently, please retry"
        ) from exc

    logger.info(
        "Leave request %s %s by user %s",
        request.id, request.status.lower(), approver_user_id,
    )

    if approve:
        await _notify(
            email_service.send_leave_approved(
                employee.email, employee.name, request.start_date, request.end_date
            ),
            "leave approval",
        )
    else:
        await _notify(
            email_service.send_leave_rejected(
                employee.email,
                employee.name,
                request.start_date,
                request.end_date,
                request.rejection_reason,
            ),
            "leave rejection",
        )
    return request


async def _email_approver_id(db: AsyncSession) -> int | None:
    result = await db.execute(
        select(User.id)
        .where(User.role == "admin", User.is_active.is_(True))
        .order_by(User.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def approve_or_reject_by_email(
    db: AsyncSession,
    leave_request_id: int,
    token: str,
    approve: bool,
    now: datetime | None = None,
) -> LeaveRequest:
    """Decision taken through the link mailed to the approver.

    The link carries the request's action token instead of a login; the
    decision is recorded against the first active admin.
    """
    request = await get_leave_request(db, leave_request_id)
    expected = request.email_action_token
    if not token or not expected or not secrets.compare_digest(
        expected.encode(), token.encode()
    ):
        raise InvalidActionToken()
    if request.status != "Pending":
        raise AlreadyProcessed()

    approver_id = await _email_approver_id(db)
    return await approve_or_reject(
        db,
        leave_request_id,
        approver_id,
        approve,
        rejection_reason=None if approve else EMAIL_REJECTION_REASON,
        now=now,
    )
