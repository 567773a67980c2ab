"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from marketplace_backend.app.api.v1.endpoints import (
    auth, finances, admin_finance, merchant_accounts, notifications
)

router = APIRouter()

# Authentication endpoints
router.include_router(auth.router)

# Merchant store profile and payout bank details
router.include_router(merchant_accounts.router)

# Ledger views and withdrawal requests
router.include_router(finances.router)
router.include_router(finances.finance_router)

# Withdrawal decisions and order settlement
router.include_router(admin_finance.router)

# In-app notifications
router.include_router(notifications.router)
