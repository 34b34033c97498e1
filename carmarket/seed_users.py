"""
Database seeding script for initial users.

Creates ADMIN, DEALER, and USER accounts for testing and development.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from carmarket.app.db.session import AsyncSessionLocal, engine, Base
from carmarket.app.models.user import User
from carmarket.app.models.car import Car, CarFavorite
from carmarket.app.models.notification import Notification
from carmarket.app.models.audit_log import AuditLog
from carmarket.app.models.enums import UserRole
from carmarket.app.core.security import get_password_hash
from sqlalchemy import select

SEED_USERS = [
    {
        "email": "admin@carmarket.com",
        "password": "admin123",
        "first_name": "Site",
        "last_name": "Admin",
        "role": UserRole.ADMIN,
    },
    {
        "email": "dealer@carmarket.com",
        "password": "dealer123",
        "first_name": "Dana",
        "last_name": "Dealer",
        "role": UserRole.DEALER,
        "business_name": "Dana's Motors",
    },
    {
        "email": "user@carmarket.com",
        "password": "user123",
        "first_name": "Uma",
        "last_name": "User",
        "role": UserRole.USER,
    },
]


async def seed_users():
    """
    Seed initial users with different roles.

    Existing accounts (matched by email) are left alone.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting user seeding...")

        for account in SEED_USERS:
            result = await db.execute(select(User).where(User.email == account["email"]))
            if result.scalar_one_or_none():
                print(f"ℹ️  {account['email']} already exists, skipping")
                continue

            db.add(User(
                email=account["email"],
                first_name=account["first_name"],
                last_name=account["last_name"],
                hashed_password=get_password_hash(account["password"]),
                role=account["role"],
                business_name=account.get("business_name"),
                is_active=True,
            ))
            print(f"✅ Created {account['role'].value.upper()} user ({account['email']} / {account['password']})")

        await db.commit()

    await engine.dispose()
    print("\n🎉 User seeding completed successfully!")


if __name__ == "__main__":
    asyncio.run(seed_users())
