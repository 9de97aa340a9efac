"""
Alert notifier tests.

Tests:
  - test_create_alert_is_unread         : new alerts start unread, dated by local "today"
  - test_create_alert_unknown_employee  : EmployeeNotFound
  - test_alerts_newest_first            : listing order
  - test_mark_as_read_once              : read_at is set on the first call only
  - test_mark_as_read_missing_is_noop   : unknown ids are ignored
  - test_late_alert_message             : standard late alert text
  - TestAlertsApi                       : HTTP surface and ownership checks
"""

from datetime import date, datetime, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.core.exceptions import EmployeeNotFound
from hrdesk.db.models import AttendanceAlert
from hrdesk.services import alerts as svc

# 21:00 UTC on the 9th is 02:00 on the 10th in Karachi.
LATE_EVENING_UTC = datetime(2026, 3, 9, 21, 0, tzinfo=timezone.utc)


async def test_create_alert_is_unread(db: AsyncSession, employee: dict, admin_user: dict) -> None:
    alert = await svc.create_alert(
        db, admin_user["id"], employee["id"], "Warning", "Please update your report", now=LATE_EVENING_UTC
    )
    assert alert.is_read is False
    assert alert.read_at is None
    assert alert.alert_date == date(2026, 3, 10)
    assert alert.created_by_user_id == admin_user["id"]


async def test_create_alert_unknown_employee(db: AsyncSession, admin_user: dict) -> None:
    with pytest.raises(EmployeeNotFound):
        await svc.create_alert(db, admin_user["id"], 999, "Warning", "Nobody home")


async def test_alerts_newest_first(db: AsyncSession, employee: dict, admin_user: dict) -> None:
    first = await svc.create_alert(db, admin_user["id"], employee["id"], "Info", "one")
    second = await svc.create_alert(db, admin_user["id"], employee["id"], "Info", "two")

    alerts = await svc.get_employee_alerts(db, employee["id"])

    assert [a.id for a in alerts] == [second.id, first.id]


async def test_mark_as_read_once(db: AsyncSession, employee: dict, admin_user: dict) -> None:
    alert = await svc.create_alert(db, admin_user["id"], employee["id"], "Info", "hello")
    first_read = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)

    await svc.mark_as_read(db, alert.id, now=first_read)
    await svc.mark_as_read(db, alert.id, now=datetime(2026, 3, 11, 9, 0, tzinfo=timezone.utc))

    stored = await db.get(AttendanceAlert, alert.id, populate_existing=True)
    assert stored.is_read is True
    assert stored.read_at == first_read


async def test_mark_as_read_missing_is_noop(db: AsyncSession) -> None:
    assert await svc.mark_as_read(db, 12345) is None


async def test_late_alert_message(db: AsyncSession, employee: dict, manager_user: dict) -> None:
    alert = await svc.send_late_alert(db, employee["id"], manager_user["id"])
    assert alert.alert_type == "Late"
    assert alert.message == "You were late to clock in today. Please ensure punctuality."


class TestAlertsApi:
    async def test_manager_sends_late_alert(
        self, client: AsyncClient, manager_headers: dict, employee: dict
    ) -> None:
        resp = await client.post(f"/api/alerts/late/{employee['id']}", headers=manager_headers)
        assert resp.status_code == 201, resp.text
        assert resp.json()["alert_type"] == "Late"

        resp = await client.get("/api/alerts/my-alerts", headers=employee["headers"])
        assert resp.status_code == 200, resp.text
        assert len(resp.json()) == 1

    async def test_employee_cannot_send_alerts(
        self, client: AsyncClient, employee: dict, other_employee: dict
    ) -> None:
        resp = await client.post(
            "/api/alerts/",
            json={"employee_id": other_employee["id"], "alert_type": "Info", "message": "hi"},
            headers=employee["headers"],
        )
        assert resp.status_code == 403, resp.text

    async def test_alert_for_unknown_employee(
        self, client: AsyncClient, admin_headers: dict, employee: dict
    ) -> None:
        resp = await client.post(
            "/api/alerts/",
            json={"employee_id": 999, "alert_type": "Info", "message": "hi"},
            headers=admin_headers,
        )
        assert resp.status_code == 404, resp.text
        assert resp.json()["code"] == "EmployeeNotFound"

    async def test_mark_read_own_alert(
        self, client: AsyncClient, admin_headers: dict, employee: dict
    ) -> None:
        created = await client.post(
            "/api/alerts/",
            json={"employee_id": employee["id"], "alert_type": "Info", "message": "hi"},
            headers=admin_headers,
        )
        alert_id = created.json()["id"]

        resp = await client.post(f"/api/alerts/{alert_id}/read", headers=employee["headers"])
        assert resp.status_code == 204, resp.text

        alerts = (await client.get("/api/alerts/my-alerts", headers=employee["headers"])).json()
        assert alerts[0]["is_read"] is True
        assert alerts[0]["read_at"] is not None

    async def test_cannot_mark_someone_elses_alert(
        self, client: AsyncClient, admin_headers: dict, employee: dict, other_employee: dict
    ) -> None:
        created = await client.post(
            "/api/alerts/",
            json={"employee_id": employee["id"], "alert_type": "Info", "message": "hi"},
            headers=admin_headers,
        )
        resp = await client.post(
            f"/api/alerts/{created.json()['id']}/read", headers=other_employee["headers"]
        )
        assert resp.status_code == 404, resp.text

    async def test_mark_unknown_alert_is_noop(self, client: AsyncClient, employee: dict) -> None:
        resp = await client.post("/api/alerts/777/read", headers=employee["headers"])
        assert resp.status_code == 204, resp.text
