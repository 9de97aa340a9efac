"""
Employee file tests.

Tests:
  - TestUpload    : validation guards, storage key layout, cleanup when the row cannot be saved
  - TestReadAndDelete : download content, missing blobs, delete removes row and bytes
  - TestListings  : per-employee and paginated listings
  - TestFilesApi  : multipart upload, download headers, ownership and role checks, employee deletion
  - test_store_rejects_escaping_keys : keys cannot leave the upload directory
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
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
from hrdesk.db.models import EmployeeFile
from hrdesk.main import app
from hrdesk.services import files as svc
from hrdesk.services.storage import LocalFileStore, get_file_store

PDF = b"%PDF-1.4 offer letter"
UPLOADED_AT = datetime(2026, 3, 10, 6, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path: Path) -> LocalFileStore:
    return LocalFileStore(tmp_path / "uploads")


@pytest.fixture
def api_store(client: AsyncClient, store: LocalFileStore) -> LocalFileStore:
    app.dependency_overrides[get_file_store] = lambda: store
    return store


def _stored(store: LocalFileStore) -> list[Path]:
    if not store.root.exists():
        return []
    return sorted(p for p in store.root.rglob("*") if p.is_file())


async def _file_count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(EmployeeFile))).scalar_one()


@pytest_asyncio.fixture
async def uploaded(db: AsyncSession, store: LocalFileStore, employee: dict, admin_user: dict):
    return await svc.upload_employee_file(
        db, store, employee["id"], "offer.pdf", PDF,
        category="Contract", uploaded_by_user_id=admin_user["id"], now=UPLOADED_AT,
    )


class TestUpload:
    async def test_stores_bytes_and_row(
        self, db: AsyncSession, store: LocalFileStore, employee: dict, uploaded
    ) -> None:
        assert uploaded.employee_name == employee["name"]
        assert uploaded.file_type == "pdf"
        assert uploaded.file_size == len(PDF)
        assert uploaded.category == "Contract"

        record = await db.get(EmployeeFile, uploaded.id)
        assert record.storage_key.startswith("2026/03/10/")
        assert record.storage_key.endswith(".pdf")
        (path,) = _stored(store)
        assert path.read_bytes() == PDF

    async def test_default_category_and_bare_name(
        self, db: AsyncSession, store: LocalFileStore, employee: dict
    ) -> None:
        result = await svc.upload_employee_file(
            db, store, employee["id"], "../../scans/CV.JPG", b"\xff\xd8\xff", category="  "
        )
        assert result.file_name == "CV.JPG"
        assert result.file_type == "jpg"
        assert result.category == "General"

    @pytest.mark.parametrize("filename", ["payload.exe", "notes", "archive.pdf.zip"])
    async def test_unsupported_type(
        self, db: AsyncSession, store: LocalFileStore, employee: dict, filename: str
    ) -> None:
        with pytest.raises(UnsupportedFileType):
            await svc.upload_employee_file(db, store, employee["id"], filename, b"data")
        assert _stored(store) == []
        assert await _file_count(db) == 0

    async def test_empty_file(self, db: AsyncSession, store: LocalFileStore, employee: dict) -> None:
        with pytest.raises(EmptyFile):
            await svc.upload_employee_file(db, store, employee["id"], "empty.pdf", b"")

    async def test_size_limit(
        self, db: AsyncSession, store: LocalFileStore, employee: dict, monkeypatch
    ) -> None:
        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 8)
        with pytest.raises(FileTooLarge):
            await svc.upload_employee_file(db, store, employee["id"], "big.pdf", b"123456789")

        result = await svc.upload_employee_file(db, store, employee["id"], "ok.pdf", b"12345678")
        assert result.file_size == 8

    async def test_unknown_employee(self, db: AsyncSession, store: LocalFileStore) -> None:
        with pytest.raises(EmployeeNotFound):
            await svc.upload_employee_file(db, store, 999, "offer.pdf", PDF)

    async def test_failed_commit_removes_stored_bytes(
        self, db: AsyncSession, store: LocalFileStore, employee: dict, monkeypatch
    ) -> None:
        async def _db_down() -> None:
            raise OperationalError("INSERT INTO employee_files", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db, "commit", _db_down)

        with pytest.raises(OperationalError):
            await svc.upload_employee_file(db, store, employee["id"], "offer.pdf", PDF)

        assert _stored(store) == []


class TestReadAndDelete:
    async def test_read_returns_content(self, db: AsyncSession, store: LocalFileStore, uploaded) -> None:
        record, content = await svc.read_employee_file(db, store, uploaded.id)
        assert content == PDF
        assert record.file_name == "offer.pdf"

    async def test_missing_blob(self, db: AsyncSession, store: LocalFileStore, uploaded) -> None:
        for path in _stored(store):
            path.unlink()
        with pytest.raises(StoredFileMissing):
            await svc.read_employee_file(db, store, uploaded.id)

    async def test_unknown_file(self, db: AsyncSession, store: LocalFileStore) -> None:
        with pytest.raises(EmployeeFileNotFound):
            await svc.read_employee_file(db, store, 404)

    async def test_delete_removes_row_and_bytes(
        self, db: AsyncSession, store: LocalFileStore, uploaded
    ) -> None:
        await svc.delete_employee_file(db, store, uploaded.id)

        assert _stored(store) == []
        assert await _file_count(db) == 0
        with pytest.raises(EmployeeFileNotFound):
            await svc.delete_employee_file(db, store, uploaded.id)

    async def test_delete_with_missing_blob_still_removes_row(
        self, db: AsyncSession, store: LocalFileStore, uploaded
    ) -> None:
        for path in _stored(store):
            path.unlink()
        await svc.delete_employee_file(db, store, uploaded.id)
        assert await _file_count(db) == 0


class TestListings:
    async def test_employee_files_newest_first(
        self, db: AsyncSession, store: LocalFileStore, employee: dict, other_employee: dict
    ) -> None:
        older = await svc.upload_employee_file(
            db, store, employee["id"], "cv.pdf", PDF, now=datetime(2026, 1, 5, tzinfo=timezone.utc)
        )
        newer = await svc.upload_employee_file(
            db, store, employee["id"], "id.png", b"\x89PNG", now=datetime(2026, 2, 5, tzinfo=timezone.utc)
        )
        await svc.upload_employee_file(db, store, other_employee["id"], "cv.pdf", PDF)

        files = await svc.get_employee_files(db, employee["id"])

        assert [f.id for f in files] == [newer.id, older.id]

    async def test_paginated_listing(
        self, db: AsyncSession, store: LocalFileStore, employee: dict
    ) -> None:
        for day in range(1, 4):
            await svc.upload_employee_file(
                db, store, employee["id"], f"doc{day}.pdf", PDF,
                now=datetime(2026, 3, day, tzinfo=timezone.utc),
            )

        items, total = await svc.list_files_page(db, page=2, per_page=2)

        assert total == 3
        assert [f.file_name for f in items] == ["doc1.pdf"]
        assert items[0].employee_name == employee["name"]


class TestFilesApi:
    async def _upload(self, client: AsyncClient, headers: dict, employee_id: int, name="offer.pdf", body=PDF):
        return await client.post(
            "/api/files/upload",
            data={"employee_id": str(employee_id), "category": "Contract"},
            files={"file": (name, body, "application/pdf")},
            headers=headers,
        )

    async def test_upload_and_download(
        self, client: AsyncClient, api_store, admin_headers: dict, employee: dict
    ) -> None:
        resp = await self._upload(client, admin_headers, employee["id"])
        assert resp.status_code == 201, resp.text
        file_id = resp.json()["id"]

        resp = await client.get(f"/api/files/download/{file_id}", headers=employee["headers"])
        assert resp.status_code == 200, resp.text
        assert resp.content == PDF
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.headers["content-disposition"].startswith("attachment;")

        resp = await client.get(f"/api/files/preview/{file_id}", headers=employee["headers"])
        assert resp.headers["content-disposition"].startswith("inline;")

        resp = await client.get(f"/api/files/employee/{employee['id']}", headers=employee["headers"])
        assert [f["id"] for f in resp.json()] == [file_id]

    async def test_other_employee_is_refused(
        self, client: AsyncClient, api_store, admin_headers: dict, employee: dict, other_employee: dict
    ) -> None:
        file_id = (await self._upload(client, admin_headers, employee["id"])).json()["id"]

        resp = await client.get(f"/api/files/download/{file_id}", headers=other_employee["headers"])
        assert resp.status_code == 403, resp.text
        resp = await client.get(f"/api/files/employee/{employee['id']}", headers=other_employee["headers"])
        assert resp.status_code == 403, resp.text

    async def test_only_admin_uploads_and_deletes(
        self, client: AsyncClient, api_store, admin_headers: dict, manager_headers: dict, employee: dict
    ) -> None:
        resp = await self._upload(client, employee["headers"], employee["id"])
        assert resp.status_code == 403, resp.text
        resp = await self._upload(client, manager_headers, employee["id"])
        assert resp.status_code == 403, resp.text

        file_id = (await self._upload(client, admin_headers, employee["id"])).json()["id"]
        resp = await client.delete(f"/api/files/{file_id}", headers=manager_headers)
        assert resp.status_code == 403, resp.text

        resp = await client.delete(f"/api/files/{file_id}", headers=admin_headers)
        assert resp.status_code == 204, resp.text
        resp = await client.get(f"/api/files/download/{file_id}", headers=admin_headers)
        assert resp.status_code == 404, resp.text
        assert resp.json()["code"] == "EmployeeFileNotFound"

    async def test_unsupported_type_is_400(
        self, client: AsyncClient, api_store, admin_headers: dict, employee: dict
    ) -> None:
        resp = await self._upload(client, admin_headers, employee["id"], name="run.sh", body=b"#!/bin/sh")
        assert resp.status_code == 400, resp.text
        assert resp.json()["code"] == "UnsupportedFileType"
        assert _stored(api_store) == []

    async def test_deleting_employee_removes_files(
        self, client: AsyncClient, api_store, admin_headers: dict, employee: dict
    ) -> None:
        await self._upload(client, admin_headers, employee["id"])
        assert len(_stored(api_store)) == 1

        resp = await client.delete(f"/api/employees/{employee['id']}", headers=admin_headers)

        assert resp.status_code == 204, resp.text
        assert _stored(api_store) == []

    async def test_paged_listing_for_manager(
        self, client: AsyncClient, api_store, admin_headers: dict, manager_headers: dict, employee: dict
    ) -> None:
        for name in ("a.pdf", "b.pdf", "c.pdf"):
            await self._upload(client, admin_headers, employee["id"], name=name)

        resp = await client.get("/api/files", params={"page": 1, "per_page": 2}, headers=manager_headers)
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["total"] == 3
        assert data["pages"] == 2
        assert len(data["items"]) == 2

        resp = await client.get("/api/files", headers=employee["headers"])
        assert resp.status_code == 403, resp.text


async def test_store_rejects_escaping_keys(store: LocalFileStore) -> None:
    with pytest.raises(ValueError):
        await store.save("../outside.pdf", PDF)
    assert not (store.root.parent / "outside.pdf").exists()
