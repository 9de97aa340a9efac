from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.core.clock import get_now, to_local
from hrdesk.core.middleware import (
    ensure_can_view,
    get_current_employee,
    get_current_user,
    require_role,
)
from hrdesk.db.models import Employee, User
from hrdesk.db.session import get_db
from hrdesk.schemas.attendance import (
    AttendanceResponse,
    AttendanceStats,
    ClockInRequest,
    DailyReportRequest,
    MarkAbsentResult,
    RealTimeStats,
    ReportSubmissionRate,
)
from hrdesk.services import attendance as attendance_service
from hrdesk.services.employees import get_employee, get_employee_for_user

router = APIRouter()

_DEFAULT_HISTORY_DAYS = 30


def _date_range(
    start_date: date | None, end_date: date | None, now: datetime
) -> tuple[date, date]:
    end = end_date or to_local(now).date()
    start = start_date or end - timedelta(days=_DEFAULT_HISTORY_DAYS)
    return start, end


async def _check_access(db: AsyncSession, user: User, employee_id: int) -> None:
    own = await get_employee_for_user(db, user)
    ensure_can_view(user, own.id if own else None, employee_id)
    await get_employee(db, employee_id)


@router.post("/clock-in", response_model=AttendanceResponse, summary="Clock in for today")
async def clock_in(
    body: ClockInRequest | None = None,
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
    now: datetime = Depends(get_now),
) -> AttendanceResponse:
    work_mode = body.work_mode if body else None
    record = await attendance_service.clock_in(db, employee.id, work_mode, now)
    return AttendanceResponse.model_validate(record)


@router.post("/clock-out", response_model=AttendanceResponse, summary="Clock out for today")
async def clock_out(
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
    now: datetime = Depends(get_now),
) -> AttendanceResponse:
    record = await attendance_service.clock_out(db, employee.id, now)
    return AttendanceResponse.model_validate(record)


@router.post("/break/start", response_model=AttendanceResponse, summary="Start the daily break")
async def start_break(
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
    now: datetime = Depends(get_now),
) -> AttendanceResponse:
    record = await attendance_service.start_break(db, employee.id, now)
    return AttendanceResponse.model_validate(record)


@router.post("/break/end", response_model=AttendanceResponse, summary="End the daily break")
async def end_break(
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
    now: datetime = Depends(get_now),
) -> AttendanceResponse:
    record = await attendance_service.end_break(db, employee.id, now)
    return AttendanceResponse.model_validate(record)


@router.post("/daily-report", response_model=AttendanceResponse, summary="Submit today's report")
async def submit_daily_report(
    body: DailyReportRequest,
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
    now: datetime = Depends(get_now),
) -> AttendanceResponse:
    record = await attendance_service.submit_daily_report(db, employee.id, body.report, now)
    return AttendanceResponse.model_validate(record)


@router.get("/me", response_model=list[AttendanceResponse], summary="Own attendance history")
async def my_attendance(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
    now: datetime = Depends(get_now),
) -> list[AttendanceResponse]:
    start, end = _date_range(start_date, end_date, now)
    records = await attendance_service.get_employee_attendance(db, employee.id, start, end)
    return [AttendanceResponse.model_validate(r) for r in records]


@router.get(
    "/employee/{employee_id}",
    response_model=list[AttendanceResponse],
    summary="Attendance history of an employee",
)
async def employee_attendance(
    employee_id: int,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
) -> list[AttendanceResponse]:
    await _check_access(db, current_user, employee_id)
    start, end = _date_range(start_date, end_date, now)
    records = await attendance_service.get_employee_attendance(db, employee_id, start, end)
    return [AttendanceResponse.model_validate(r) for r in records]


@router.get("/stats/{employee_id}", response_model=AttendanceStats, summary="Monthly statistics")
async def employee_stats(
    employee_id: int,
    year: int | None = Query(default=None, ge=2000, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
) -> AttendanceStats:
    await _check_access(db, current_user, employee_id)
    local_today = to_local(now).date()
    return await attendance_service.get_employee_stats(
        db, employee_id, year or local_today.year, month or local_today.month
    )


@router.get("/realtime", response_model=RealTimeStats, summary="Today's attendance counts")
async def realtime_stats(
    day: date | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin", "manager")),
    now: datetime = Depends(get_now),
) -> RealTimeStats:
    return await attendance_service.get_realtime_stats(db, day or to_local(now).date())


@router.get(
    "/report-submission-rate",
    response_model=ReportSubmissionRate,
    summary="Share of the day's records with a daily report",
)
async def report_submission_rate(
    day: date | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin", "manager")),
    now: datetime = Depends(get_now),
) -> ReportSubmissionRate:
    day = day or to_local(now).date()
    rate = await attendance_service.get_report_submission_rate(db, day)
    return ReportSubmissionRate(date=day, submission_rate=rate)


@router.post(
    "/mark-absent",
    response_model=MarkAbsentResult,
    status_code=status.HTTP_200_OK,
    summary="Run the absence sweep for a day (admin only)",
)
async def mark_absent(
    day: date | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
    now: datetime = Depends(get_now),
) -> MarkAbsentResult:
    day = day or to_local(now).date()
    created = await attendance_service.mark_absent_employees(db, day)
    return MarkAbsentResult(date=day, marked_absent=created)
