"""
Account lookups shared by the finance flows.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_backend.app.models.enums import UserRole
from marketplace_backend.app.models.merchant_account import MerchantAccount
from marketplace_backend.app.models.user import User


async def get_platform_admin(db: AsyncSession) -> Optional[User]:
    """
    The platform account: lowest-id active ADMIN.

    Owns merchant-tax revenue and receives withdrawal notices.
    """
    result = await db.execute(
        select(User)
        .where(User.role == UserRole.ADMIN, User.is_active.is_(True))
        .order_by(User.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_merchant_account(db: AsyncSession, user_id: int) -> Optional[MerchantAccount]:
    result = await db.execute(
        select(MerchantAccount).where(MerchantAccount.user_id == user_id)
    )
    return result.scalar_one_or_none()
