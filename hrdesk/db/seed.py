"""
Seed script: default admin, positions and leave types.

Safe to run repeatedly; existing rows are left untouched.

Usage:
    python -m hrdesk.db.seed
"""

import asyncio

from sqlalchemy import select

from hrdesk.core.security import hash_password
from hrdesk.db.models import LeaveType, Position, User
from hrdesk.db.session import AsyncSessionLocal

ADMIN_EMAIL = "admin@company.com"
ADMIN_PASSWORD = "admin123"

POSITIONS = {
    "Software Engineer": "Develops and maintains software applications",
    "Senior Software Engineer": "Leads technical design and mentors engineers",
    "Team Lead": "Leads a development team",
    "Project Manager": "Plans and tracks project delivery",
    "QA Engineer": "Tests software and tracks defects",
    "DevOps Engineer": "Runs build, deployment and infrastructure",
    "Business Analyst": "Gathers and documents business requirements",
    "HR Manager": "Manages people operations",
}

LEAVE_TYPES = {
    "Sick Leave": ("Leave for illness or medical appointments", 10),
    "Casual Leave": ("Leave for personal matters", 15),
    "Annual Leave": ("Planned yearly vacation", 20),
    "Emergency Leave": ("Leave for urgent unforeseen situations", 5),
    "Maternity Leave": ("Leave for childbirth and recovery", 90),
    "Paternity Leave": ("Leave for new fathers", 15),
}


async def create_admin(session) -> User:
    result = await session.execute(select(User).where(User.email == ADMIN_EMAIL))
    admin = result.scalar_one_or_none()
    if admin:
        print("Admin user already exists, skipping.")
        return admin

    admin = User(
        name="System Administrator",
        email=ADMIN_EMAIL,
        password_hash=hash_password(ADMIN_PASSWORD),
        role="admin",
        is_active=True,
    )
    session.add(admin)
    await session.flush()
    print(f"Created admin user: id={admin.id}")
    return admin


async def create_positions(session) -> int:
    existing = set((await session.execute(select(Position.name))).scalars().all())
    missing = [name for name in POSITIONS if name not in existing]
    for name in missing:
        session.add(Position(name=name, description=POSITIONS[name]))
    await session.flush()
    return len(missing)


async def create_leave_types(session) -> int:
    existing = set((await session.execute(select(LeaveType.name))).scalars().all())
    missing = [name for name in LEAVE_TYPES if name not in existing]
    for name in missing:
        description, max_days = LEAVE_TYPES[name]
        session.add(
            LeaveType(name=name, description=description, max_days_per_year=max_days)
        )
    await session.flush()
    return len(missing)


async def main():
    async with AsyncSessionLocal() as session:
        async with session.begin():
            await create_admin(session)
            print(f"Positions added: {await create_positions(session)}")
            print(f"Leave types added: {await create_leave_types(session)}")
            print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(main())
