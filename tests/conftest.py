"""
conftest.py: shared fixtures for the test suite.

Strategy:
- Each test gets its own in-memory SQLite database (aiosqlite + StaticPool),
  with the schema created from the ORM metadata.
- The app's get_db dependency is overridden to hand out sessions on that
  database, and get_now is overridden by a controllable clock.
- Users, employees and leave types are created directly through the ORM;
  tokens are minted with the same helpers the login endpoint uses.
"""

from __future__ import annotations

import os

# Must be set before hrdesk is imported: Settings and the engine read it once.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ABSENCE_SWEEPER_ENABLED"] = "false"
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "false"
os.environ["SMTP_ENABLED"] = "false"
os.environ["TIMEZONE"] = "Asia/Karachi"
os.environ["LATE_THRESHOLD_TIME"] = "09:00"

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hrdesk.core.clock import get_now
from hrdesk.core.security import create_access_token, hash_password
from hrdesk.db.models import Base, Employee, LeaveType, Position, User
from hrdesk.db.session import get_db
from hrdesk.main import app

KARACHI = ZoneInfo("Asia/Karachi")

DEFAULT_PASSWORD = "Secret123!"

LEAVE_TYPE_QUOTAS = {
    "Sick Leave": 10,
    "Casual Leave": 15,
    "Annual Leave": 20,
    "Emergency Leave": 5,
    "Maternity Leave": 90,
    "Paternity Leave": 15,
}


def local(*args: int) -> datetime:
    """Aware datetime in the configured office timezone."""
    return datetime(*args, tzinfo=KARACHI)


class FakeClock:
    """Mutable "now" handed to the app through the get_now dependency."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def set(self, *args: int) -> datetime:
        self.now = local(*args)
        return self.now


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncSession:
    """Raw session for calling services and checking rows directly."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(local(2026, 3, 10, 8, 30))


@pytest_asyncio.fixture
async def client(session_factory, clock: FakeClock) -> AsyncClient:
    """HTTPX client against the app, wired to the per-test database and clock."""

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_now] = lambda: clock.now

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def position(db: AsyncSession) -> Position:
    pos = Position(name="Software Engineer", description="Builds things")
    db.add(pos)
    await db.commit()
    return pos


@pytest_asyncio.fixture
async def leave_types(db: AsyncSession) -> dict[str, LeaveType]:
    types = {
        name: LeaveType(name=name, max_days_per_year=quota)
        for name, quota in LEAVE_TYPE_QUOTAS.items()
    }
    db.add_all(types.values())
    await db.commit()
    return types


# ---------------------------------------------------------------------------
# Users and employees
# ---------------------------------------------------------------------------


async def create_user(db: AsyncSession, name: str, email: str, role: str, is_active: bool = True) -> User:
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(DEFAULT_PASSWORD),
        role=role,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    return user


async def create_employee(
    db: AsyncSession,
    position: Position,
    name: str,
    email: str,
    with_login: bool = True,
) -> dict:
    """Employee profile, optionally with a linked employee-role login."""
    user = await create_user(db, name, email, "employee") if with_login else None
    employee = Employee(
        name=name,
        email=email,
        position_id=position.id,
        user_id=user.id if user else None,
    )
    db.add(employee)
    await db.commit()
    return {
        "id": employee.id,
        "user_id": user.id if user else None,
        "name": name,
        "email": email,
        "headers": auth_headers(user.id) if user else {},
    }


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> dict:
    user = await create_user(db, "System Administrator", "admin@company.com", "admin")
    return {"id": user.id, "email": user.email, "password": DEFAULT_PASSWORD}


@pytest.fixture
def admin_headers(admin_user: dict) -> dict:
    return auth_headers(admin_user["id"])


@pytest_asyncio.fixture
async def manager_user(db: AsyncSession) -> dict:
    user = await create_user(db, "Mona Manager", "manager@company.com", "manager")
    return {"id": user.id, "email": user.email, "password": DEFAULT_PASSWORD}


@pytest.fixture
def manager_headers(manager_user: dict) -> dict:
    return auth_headers(manager_user["id"])


@pytest_asyncio.fixture
async def employee(db: AsyncSession, position: Position) -> dict:
    return await create_employee(db, position, "Ali Khan", "ali.khan@company.com")


@pytest_asyncio.fixture
async def other_employee(db: AsyncSession, position: Position) -> dict:
    return await create_employee(db, position, "Sara Ahmed", "sara.ahmed@company.com")
