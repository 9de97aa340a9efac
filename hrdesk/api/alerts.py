from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.core.clock import get_now
from hrdesk.core.middleware import APPROVER_ROLES, get_current_employee, require_role
from hrdesk.db.models import AttendanceAlert, Employee, User
from hrdesk.db.session import get_db
from hrdesk.schemas.alert import AlertCreate, AlertResponse
from hrdesk.services import alerts as alert_service

router = APIRouter()


@router.get("/my-alerts", response_model=list[AlertResponse], summary="Own alerts, newest first")
async def my_alerts(
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> list[AlertResponse]:
    alerts = await alert_service.get_employee_alerts(db, employee.id)
    return [AlertResponse.model_validate(a) for a in alerts]


@router.post(
    "/",
    response_model=AlertResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send an alert to an employee",
)
async def create_alert(
    body: AlertCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*APPROVER_ROLES)),
    now: datetime = Depends(get_now),
) -> AlertResponse:
    alert = await alert_service.create_alert(
        db, current_user.id, body.employee_id, body.alert_type, body.message, now=now
    )
    return AlertResponse.model_validate(alert)


@router.post(
    "/{alert_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark one of your alerts as read (unknown ids are ignored)",
)
async def mark_read(
    alert_id: int,
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
    now: datetime = Depends(get_now),
) -> None:
    alert = await db.get(AttendanceAlert, alert_id)
    if alert is not None and alert.employee_id != employee.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Alert not found",
        )
    await alert_service.mark_as_read(db, alert_id, now=now)


@router.post(
    "/late/{employee_id}",
    response_model=AlertResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send the standard late clock-in alert",
)
async def send_late_alert(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*APPROVER_ROLES)),
    now: datetime = Depends(get_now),
) -> AlertResponse:
    alert = await alert_service.send_late_alert(db, employee_id, current_user.id, now=now)
    return AlertResponse.model_validate(alert)
