"""
Employees and positions API tests.

Tests:
  - TestEmployees : create/update/delete guards (duplicate email, unknown position), listing
  - TestPositions : duplicate names, employee counts, paging, delete refused while in use
"""

from httpx import AsyncClient


class TestEmployees:
    async def test_create_employee(self, client: AsyncClient, admin_headers: dict, position) -> None:
        resp = await client.post(
            "/api/employees/",
            json={"name": "Hina Raza", "email": "hina@company.com", "position_id": position.id},
            headers=admin_headers,
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["position_name"] == "Software Engineer"
        assert data["user_id"] is None

    async def test_create_duplicate_email(
        self, client: AsyncClient, admin_headers: dict, employee: dict, position
    ) -> None:
        resp = await client.post(
            "/api/employees/",
            json={"name": "Clone", "email": employee["email"].upper(), "position_id": position.id},
            headers=admin_headers,
        )
        assert resp.status_code == 409, resp.text
        assert resp.json()["kind"] == "conflict"

    async def test_create_unknown_position(self, client: AsyncClient, admin_headers: dict) -> None:
        resp = await client.post(
            "/api/employees/",
            json={"name": "Nobody", "email": "nobody@company.com", "position_id": 404},
            headers=admin_headers,
        )
        assert resp.status_code == 404, resp.text
        assert resp.json()["code"] == "PositionNotFound"

    async def test_update_keeps_own_email(
        self, client: AsyncClient, admin_headers: dict, employee: dict, position
    ) -> None:
        resp = await client.put(
            f"/api/employees/{employee['id']}",
            json={"name": "Ali K.", "email": employee["email"], "position_id": position.id},
            headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["name"] == "Ali K."

    async def test_update_to_taken_email(
        self, client: AsyncClient, admin_headers: dict, employee: dict, other_employee: dict, position
    ) -> None:
        resp = await client.put(
            f"/api/employees/{employee['id']}",
            json={"name": "Ali", "email": other_employee["email"], "position_id": position.id},
            headers=admin_headers,
        )
        assert resp.status_code == 409, resp.text

    async def test_delete_and_get_missing(
        self, client: AsyncClient, admin_headers: dict, employee: dict
    ) -> None:
        resp = await client.delete(f"/api/employees/{employee['id']}", headers=admin_headers)
        assert resp.status_code == 204, resp.text

        resp = await client.get(f"/api/employees/{employee['id']}", headers=admin_headers)
        assert resp.status_code == 404, resp.text
        assert resp.json()["detail"] == "Employee not found"

    async def test_list_and_search(
        self, client: AsyncClient, manager_headers: dict, employee: dict, other_employee: dict
    ) -> None:
        resp = await client.get("/api/employees/", headers=manager_headers)
        assert resp.status_code == 200, resp.text
        assert [e["name"] for e in resp.json()] == ["Ali Khan", "Sara Ahmed"]

        resp = await client.get("/api/employees/", params={"search": "sara"}, headers=manager_headers)
        assert [e["id"] for e in resp.json()] == [other_employee["id"]]

    async def test_employee_cannot_list(self, client: AsyncClient, employee: dict) -> None:
        resp = await client.get("/api/employees/", headers=employee["headers"])
        assert resp.status_code == 403, resp.text


class TestPositions:
    async def test_create_duplicate_name(
        self, client: AsyncClient, admin_headers: dict, position
    ) -> None:
        resp = await client.post(
            "/api/positions/",
            json={"name": "software engineer"},
            headers=admin_headers,
        )
        assert resp.status_code == 409, resp.text
        assert resp.json()["code"] == "DuplicatePositionName"

    async def test_get_with_employee_count(
        self, client: AsyncClient, admin_headers: dict, position, employee: dict, other_employee: dict
    ) -> None:
        resp = await client.get(f"/api/positions/{position.id}", headers=admin_headers)
        assert resp.status_code == 200, resp.text
        assert resp.json()["employee_count"] == 2

    async def test_paged_listing(self, client: AsyncClient, admin_headers: dict, position, employee: dict) -> None:
        for name in ("QA Engineer", "Team Lead"):
            await client.post("/api/positions/", json={"name": name}, headers=admin_headers)

        resp = await client.get("/api/positions/paged", params={"page": 1, "per_page": 2}, headers=admin_headers)
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["total"] == 3
        assert data["pages"] == 2
        assert [(p["name"], p["employee_count"]) for p in data["items"]] == [
            ("QA Engineer", 0),
            ("Software Engineer", 1),
        ]

        resp = await client.get("/api/positions/paged", params={"page": 2, "per_page": 2}, headers=admin_headers)
        assert [p["name"] for p in resp.json()["items"]] == ["Team Lead"]

    async def test_delete_in_use_refused(
        self, client: AsyncClient, admin_headers: dict, position, employee: dict
    ) -> None:
        resp = await client.delete(f"/api/positions/{position.id}", headers=admin_headers)
        assert resp.status_code == 400, resp.text
        assert resp.json()["code"] == "PositionInUse"

    async def test_delete_unused(self, client: AsyncClient, admin_headers: dict) -> None:
        created = await client.post("/api/positions/", json={"name": "Intern"}, headers=admin_headers)
        position_id = created.json()["id"]

        resp = await client.delete(f"/api/positions/{position_id}", headers=admin_headers)
        assert resp.status_code == 204, resp.text

        resp = await client.get(f"/api/positions/{position_id}", headers=admin_headers)
        assert resp.status_code == 404, resp.text

    async def test_rename(self, client: AsyncClient, admin_headers: dict, position) -> None:
        resp = await client.put(
            f"/api/positions/{position.id}",
            json={"name": "Backend Engineer", "description": "APIs"},
            headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["name"] == "Backend Engineer"
