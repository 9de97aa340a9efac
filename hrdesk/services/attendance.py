"""
Attendance engine.

Per employee and local calendar day there is at most one AttendanceRecord:

    no row -> clock_in -> ClockedIn -> start_break -> OnBreak
           -> end_break -> ClockedIn -> clock_out -> Closed

The daily report is an independent flag that can be set once a row exists.
Rows may also be created without a clock-in by the absence sweep (Absent)
or by leave approval (OnLeave); clock_in later fills such a row in.

Every mutating function checks its guards before touching the session and
commits exactly once. A duplicate-row insert or a lost compare-and-swap on
``version_id`` is reported as AttendanceConflict.
"""

import calendar
import logging
from datetime import date, datetime, timedelta

from sqlalchemy import case, exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from hrdesk.core.clock import parse_hhmm, to_local
from hrdesk.core.config import settings
from hrdesk.core.exceptions import (
    AlreadyClockedIn,
    AlreadyClockedOut,
    AttendanceConflict,
    BreakAlreadyEnded,
    BreakAlreadyStarted,
    InvalidInputError,
    NoActiveBreak,
    NoAttendanceRecord,
    NoClockInFound,
    NotClockedIn,
)
from hrdesk.db.models import AttendanceRecord, Employee
from hrdesk.schemas.attendance import AttendanceStats, RealTimeStats

logger = logging.getLogger(__name__)

DEFAULT_WORK_MODE = "In-Office"
_ABSENT_SWEEP_ATTEMPTS = 3


def clock_in_status(local_now: datetime) -> str:
    """Late when the local time of day is strictly after the cutoff."""
    cutoff = parse_hhmm(settings.LATE_THRESHOLD_TIME)
    return "Late" if local_now.time() > cutoff else "Present"


def work_duration(record: AttendanceRecord) -> timedelta | None:
    if record.clock_in is None or record.clock_out is None:
        return None
    total = record.clock_out - record.clock_in
    if record.break_start is not None and record.break_end is not None:
        total -= record.break_end - record.break_start
    return total


def _percentage(part: int, total: int) -> float:
    return round(part * 100.0 / total, 2) if total > 0 else 0.0


async def get_record(
    db: AsyncSession, employee_id: int, day: date
) -> AttendanceRecord | None:
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.attendance_date == day,
        )
    )
    return result.scalar_one_or_none()


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except (IntegrityError, StaleDataError) as exc:
        await db.rollback()
        raise AttendanceConflict() from exc


async def clock_in(
    db: AsyncSession, employee_id: int, work_mode: str | None, now: datetime
) -> AttendanceRecord:
    local_now = to_local(now)
    day = local_now.date()

    record = await get_record(db, employee_id, day)
    if record is not None and record.clock_in is not None:
        raise AlreadyClockedIn()

    if record is None:
        record = AttendanceRecord(employee_id=employee_id, attendance_date=day)
        db.add(record)

    record.clock_in = local_now
    record.work_mode = work_mode or DEFAULT_WORK_MODE
    record.status = clock_in_status(local_now)
    await _commit(db)

    logger.info(
        "Employee %s clocked in at %s local - status %s",
        employee_id, local_now.strftime("%H:%M:%S"), record.status,
    )
    return record


async def clock_out(
    db: AsyncSession, employee_id: int, now: datetime
) -> AttendanceRecord:
    now = to_local(now)
    record = await get_record(db, employee_id, now.date())
    if record is None or record.clock_in is None:
        raise NoClockInFound()
    if record.clock_out is not None:
        raise AlreadyClockedOut()
    if now < record.clock_in:
        raise InvalidInputError("Clock-out time is before clock-in time")

    record.clock_out = now
    record.total_work_duration = work_duration(record)
    await _commit(db)

    logger.info(
        "Employee %s clocked out at %s local - worked %s",
        employee_id, now.strftime("%H:%M:%S"), record.total_work_duration,
    )
    return record


async def start_break(
    db: AsyncSession, employee_id: int, now: datetime
) -> AttendanceRecord:
    now = to_local(now)
    record = await get_record(db, employee_id, now.date())
    if record is None or record.clock_in is None:
        raise NotClockedIn()
    if record.break_start is not None:
        raise BreakAlreadyStarted()
    if record.clock_out is not None:
        raise AlreadyClockedOut()

    record.break_start = now
    await _commit(db)
    return record


async def end_break(
    db: AsyncSession, employee_id: int, now: datetime
) -> AttendanceRecord:
    now = to_local(now)
    record = await get_record(db, employee_id, now.date())
    if record is None or record.break_start is None:
        raise NoActiveBreak()
    if record.break_end is not None:
        raise BreakAlreadyEnded()
    if record.clock_out is not None:
        raise AlreadyClockedOut()
    if now < record.break_start:
        raise InvalidInputError("Break end is before break start")

    record.break_end = now
    await _commit(db)
    return record


async def submit_daily_report(
    db: AsyncSession, employee_id: int, report: str, now: datetime
) -> AttendanceRecord:
    # Resubmitting replaces the earlier text.
    now = to_local(now)
    record = await get_record(db, employee_id, now.date())
    if record is None:
        raise NoAttendanceRecord()

    record.daily_report = report
    record.daily_report_submitted = True
    record.daily_report_submitted_at = now
    await _commit(db)
    return record


async def get_employee_attendance(
    db: AsyncSession, employee_id: int, start_date: date, end_date: date
) -> list[AttendanceRecord]:
    result = await db.execute(
        select(AttendanceRecord)
        .where(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.attendance_date >= start_date,
            AttendanceRecord.attendance_date <= end_date,
        )
        .order_by(AttendanceRecord.attendance_date.desc())
    )
    return list(result.scalars().all())


async def get_employee_stats(
    db: AsyncSession, employee_id: int, year: int, month: int
) -> AttendanceStats:
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])
    records = await get_employee_attendance(db, employee_id, first, last)

    total = len(records)
    present = sum(1 for r in records if r.status == "Present")
    late = sum(1 for r in records if r.status == "Late")
    submitted = sum(1 for r in records if r.daily_report_submitted)

    return AttendanceStats(
        employee_id=employee_id,
        year=year,
        month=month,
        total_days=total,
        present_days=present,
        absent_days=sum(1 for r in records if r.status == "Absent"),
        late_days=late,
        leave_days=sum(1 for r in records if r.status == "OnLeave"),
        attendance_percentage=_percentage(present + late, total),
        report_submission_rate=_percentage(submitted, total),
    )


async def get_realtime_stats(db: AsyncSession, day: date) -> RealTimeStats:
    result = await db.execute(
        select(AttendanceRecord.status, func.count())
        .where(AttendanceRecord.attendance_date == day)
        .group_by(AttendanceRecord.status)
    )
    counts = {status: count for status, count in result.all()}
    return RealTimeStats(
        date=day,
        total_employees=sum(counts.values()),
        present_today=counts.get("Present", 0),
        absent_today=counts.get("Absent", 0),
        late_today=counts.get("Late", 0),
        on_leave_today=counts.get("OnLeave", 0),
    )


async def get_report_submission_rate(db: AsyncSession, day: date) -> float:
    result = await db.execute(
        select(
            func.count(),
            func.sum(case((AttendanceRecord.daily_report_submitted.is_(True), 1), else_=0)),
        ).where(AttendanceRecord.attendance_date == day)
    )
    total, submitted = result.one()
    return _percentage(submitted or 0, total or 0)


async def _employees_without_record(db: AsyncSession, day: date) -> list[int]:
    has_record = exists().where(
        AttendanceRecord.employee_id == Employee.id,
        AttendanceRecord.attendance_date == day,
    )
    result = await db.execute(
        select(Employee.id).where(~has_record).order_by(Employee.id)
    )
    return list(result.scalars().all())


async def mark_absent_employees(db: AsyncSession, day: date) -> int:
    """Create an Absent row for every employee with no row on ``day``.

    Existing rows are never modified, so running twice for the same day is a
    no-op the second time. Returns the number of rows created.
    """
    logger.info("Starting automatic absent marking for %s", day)

    for attempt in range(1, _ABSENT_SWEEP_ATTEMPTS + 1):
        missing = await _employees_without_record(db, day)
        for employee_id in missing:
            db.add(
                AttendanceRecord(
                    employee_id=employee_id,
                    attendance_date=day,
                    status="Absent",
                    work_mode=DEFAULT_WORK_MODE,
                )
            )
        try:
            await db.commit()
        except IntegrityError:
            # An employee clocked in between the query and the insert.
            await db.rollback()
            logger.warning(
                "Absent marking for %s hit a concurrent insert (attempt %d/%d)",
                day, attempt, _ABSENT_SWEEP_ATTEMPTS,
            )
            continue

        logger.info("Marked %d employee(s) absent for %s", len(missing), day)
        return len(missing)

    raise AttendanceConflict(f"Could not mark absent employees for {day}")


async def mark_on_leave(
    db: AsyncSession, employee_id: int, day: date
) -> AttendanceRecord:
    """Force the day's row to OnLeave, creating it if needed.

    This overrides whatever status the row had, including Present/Late after
    a clock-in. The caller owns the transaction.
    """
    record = await get_record(db, employee_id, day)
    if record is None:
        record = AttendanceRecord(
            employee_id=employee_id,
            attendance_date=day,
            status="OnLeave",
            work_mode=DEFAULT_WORK_MODE,
        )
        db.add(record)
        logger.info("Created OnLeave attendance for employee %s on %s", employee_id, day)
        return record

    if record.clock_in is not None:
        logger.warning(
            "Overriding %s attendance of employee %s on %s with OnLeave",
            record.status, employee_id, day,
        )
    record.status = "OnLeave"
    logger.info("Updated attendance to OnLeave for employee %s on %s", employee_id, day)
    return record
