"""
Database seeding script for initial users.

Creates the platform ADMIN, a MERCHANT with its merchant account, and a
CUSTOMER for local development.
Run this script after database is set up but before first use.
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from marketplace_backend.app.core.observability import configure_logging
from marketplace_backend.app.db.session import AsyncSessionLocal
from marketplace_backend.app.models.user import User
from marketplace_backend.app.models.merchant_account import MerchantAccount
from marketplace_backend.app.models.enums import UserRole
from marketplace_backend.app.core.security import get_password_hash
from sqlalchemy import select

logger = logging.getLogger("marketplace.seed")


async def seed_users():
    """
    Seed initial users with different roles.

    Creates:
    - 1 ADMIN user (platform account)
    - 1 MERCHANT user with a merchant account
    - 1 CUSTOMER user
    """
    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(User).where(User.username == "admin")
        )
        if result.scalar_one_or_none():
            logger.info("ADMIN user already exists, skipping seeding")
            return

        admin_user = User(
            email="admin@marketplace.com",
            username="admin",
            hashed_password=get_password_hash("admin123"),
            role=UserRole.ADMIN,
            is_active=True,
            is_superuser=True
        )
        merchant = User(
            email="merchant@marketplace.com",
            username="merchant",
            hashed_password=get_password_hash("merchant123"),
            role=UserRole.MERCHANT,
            is_active=True
        )
        customer = User(
            email="customer@marketplace.com",
            username="customer",
            hashed_password=get_password_hash("customer123"),
            role=UserRole.CUSTOMER,
            is_active=True
        )
        db.add_all([admin_user, merchant, customer])
        await db.flush()

        db.add(MerchantAccount(
            user_id=merchant.id,
            name="Example Merchant",
            bank_name="BCA",
            bank_account_name="Example Merchant",
            bank_account_number="1234567890",
        ))
        await db.commit()

        logger.info("Created users: admin/admin123, merchant/merchant123, customer/customer123")


if __name__ == "__main__":
    configure_logging("INFO")
    asyncio.run(seed_users())
