import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.core.clock import today
from hrdesk.core.exceptions import EmployeeNotFound
from hrdesk.db.models import AttendanceAlert, Employee

logger = logging.getLogger(__name__)

LATE_ALERT_TYPE = "Late"
LATE_ALERT_MESSAGE = "You were late to clock in today. Please ensure punctuality."


async def create_alert(
    db: AsyncSession,
    created_by_user_id: int | None,
    employee_id: int,
    alert_type: str,
    message: str,
    now: datetime | None = None,
) -> AttendanceAlert:
    if await db.get(Employee, employee_id) is None:
        raise EmployeeNotFound()

    alert = AttendanceAlert(
        employee_id=employee_id,
        alert_type=alert_type,
        message=message,
        alert_date=today(now),
        is_read=False,
        created_by_user_id=created_by_user_id,
    )
    db.add(alert)
    await db.commit()

    logger.info(
        "Alert %s (%s) created for employee %s by user %s",
        alert.id, alert_type, employee_id, created_by_user_id,
    )
    return alert


async def get_employee_alerts(
    db: AsyncSession, employee_id: int
) -> list[AttendanceAlert]:
    result = await db.execute(
        select(AttendanceAlert)
        .where(AttendanceAlert.employee_id == employee_id)
        .order_by(AttendanceAlert.created_at.desc(), AttendanceAlert.id.desc())
    )
    return list(result.scalars().all())


async def mark_as_read(
    db: AsyncSession, alert_id: int, now: datetime | None = None
) -> AttendanceAlert | None:
    """Mark an alert read. Unknown or already-read alerts are left alone."""
    alert = await db.get(AttendanceAlert, alert_id)
    if alert is None or alert.is_read:
        return alert

    alert.is_read = True
    alert.read_at = now or datetime.now(timezone.utc)
    await db.commit()
    return alert


async def send_late_alert(
    db: AsyncSession,
    employee_id: int,
    created_by_user_id: int | None,
    now: datetime | None = None,
) -> AttendanceAlert:
    return await create_alert(
        db,
        created_by_user_id,
        employee_id,
        LATE_ALERT_TYPE,
        LATE_ALERT_MESSAGE,
        now=now,
    )
