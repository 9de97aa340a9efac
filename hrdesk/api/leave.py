from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.core.clock import get_now
from hrdesk.core.middleware import (
    APPROVER_ROLES,
    ensure_can_view,
    get_current_employee,
    get_current_user,
    require_role,
)
from hrdesk.db.models import Employee, User
from hrdesk.db.session import get_db
from hrdesk.schemas.leave import (
    EmailActionResponse,
    LeaveDecision,
    LeaveRequestCreate,
    LeaveRequestResponse,
    LeaveTypeResponse,
)
from hrdesk.services import leave as leave_service
from hrdesk.services.employees import get_employee_for_user

router = APIRouter()


@router.get("/types", response_model=list[LeaveTypeResponse], summary="Active leave types")
async def leave_types(
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> list[LeaveTypeResponse]:
    return [LeaveTypeResponse.model_validate(t) for t in await leave_service.get_leave_types(db)]


@router.post(
    "/request",
    response_model=LeaveRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request leave",
)
async def create_request(
    body: LeaveRequestCreate,
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> LeaveRequestResponse:
    request = await leave_service.create_leave_request(
        db,
        employee.id,
        body.leave_type_id,
        body.start_date,
        body.end_date,
        body.reason,
    )
    return await leave_service.describe_leave_request(db, request)


@router.get(
    "/my-requests",
    response_model=list[LeaveRequestResponse],
    summary="Own leave requests, newest first",
)
async def my_requests(
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> list[LeaveRequestResponse]:
    return await leave_service.get_employee_leave_requests(db, employee.id)


@router.get(
    "/pending",
    response_model=list[LeaveRequestResponse],
    summary="Pending requests, oldest first",
)
async def pending_requests(
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role(*APPROVER_ROLES)),
) -> list[LeaveRequestResponse]:
    return await leave_service.get_pending_leave_requests(db)


@router.get("/all", response_model=list[LeaveRequestResponse], summary="All leave requests")
async def all_requests(
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role(*APPROVER_ROLES)),
) -> list[LeaveRequestResponse]:
    return await leave_service.get_all_leave_requests(db)


@router.get("/{leave_request_id}", response_model=LeaveRequestResponse, summary="Get leave request")
async def get_request(
    leave_request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> LeaveRequestResponse:
    request = await leave_service.get_leave_request(db, leave_request_id)
    own = await get_employee_for_user(db, current_user)
    ensure_can_view(current_user, own.id if own else None, request.employee_id)
    return await leave_service.describe_leave_request(db, request)


@router.post(
    "/{leave_request_id}/approve",
    response_model=LeaveRequestResponse,
    summary="Approve or reject a pending request",
)
async def decide(
    leave_request_id: int,
    body: LeaveDecision,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*APPROVER_ROLES)),
    now: datetime = Depends(get_now),
) -> LeaveRequestResponse:
    request = await leave_service.approve_or_reject(
        db,
        leave_request_id,
        current_user.id,
        body.approve,
        rejection_reason=body.rejection_reason,
        now=now,
    )
    return await leave_service.describe_leave_request(db, request)


@router.get(
    "/{leave_request_id}/email-action",
    response_model=EmailActionResponse,
    summary="Approve or reject from the link in the approval email",
)
async def email_action(
    leave_request_id: int,
    approve: bool = Query(...),
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> EmailActionResponse:
    request = await leave_service.approve_or_reject_by_email(
        db, leave_request_id, token, approve, now=now
    )
    verdict = "approved" if approve else "rejected"
    return EmailActionResponse(
        message=f"Leave request {verdict} successfully",
        leave_request=await leave_service.describe_leave_request(db, request),
    )
