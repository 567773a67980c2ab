"""
Finance API Endpoints.

Ledger views for merchants and the platform admin, and merchant
withdrawal requests.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace_backend.app.core.config import settings
from marketplace_backend.app.core.guards import require_ledger_owner, require_merchant
from marketplace_backend.app.db.session import get_db, get_session_factory
from marketplace_backend.app.domain.finance.currency import format_currency
from marketplace_backend.app.domain.finance.ledger_service import LedgerService
from marketplace_backend.app.models.finance_enums import FinanceType, FinanceStatus
from marketplace_backend.app.models.notification import NotificationType
from marketplace_backend.app.schemas.common import PageMeta
from marketplace_backend.app.schemas.finance import (
    FinanceListResponse,
    FinanceResource,
    FinanceResourceResponse,
    WithdrawRequestCreate,
    WithdrawResource,
    WithdrawResourceResponse,
)
from marketplace_backend.app.services.accounts import get_platform_admin
from marketplace_backend.app.services.audit import log_committed_event, AuditAction
from marketplace_backend.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/finances", tags=["Finance"])
finance_router = APIRouter(prefix="/finance", tags=["Finance"])


@router.get("", response_model=FinanceListResponse)
async def list_finances(
    type: Optional[FinanceType] = Query(None, description="Exact-match entry type"),
    status_filter: Optional[FinanceStatus] = Query(None, alias="status", description="Exact-match entry status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.finance_page_size, ge=1, le=settings.finance_max_page_size, alias="perPage"),
    current_user: dict = Depends(require_ledger_owner),
    db: AsyncSession = Depends(get_db)
):
    """List the caller's own finance entries, newest first."""
    entries, total = await LedgerService.list_entries(
        db,
        owner_id=current_user["user_id"],
        type=type,
        status=status_filter,
        page=page,
        per_page=per_page,
    )
    return FinanceListResponse(
        code=status.HTTP_200_OK,
        message="Finances retrieved",
        data=[FinanceResource.from_entry(entry) for entry in entries],
        pages=PageMeta.build(total=total, page=page, per_page=per_page),
    )


@finance_router.get("/withdraw-request-resource", response_model=WithdrawResourceResponse)
async def withdraw_request_resource(
    current_user: dict = Depends(require_merchant),
    db: AsyncSession = Depends(get_db)
):
    """Current balance and saved bank details for the withdrawal form."""
    snapshot = await LedgerService.withdrawal_snapshot(db, current_user["user_id"])
    account = snapshot.merchant_account

    return WithdrawResourceResponse(
        code=status.HTTP_200_OK,
        message="Withdraw request resource retrieved",
        data=WithdrawResource(
            finance_balance=format_currency(snapshot.balance),
            name=account.name if account else None,
            bank_name=account.bank_name if account else None,
            bank_account_name=account.bank_account_name if account else None,
            bank_account_number=account.bank_account_number if account else None,
        ),
    )


@finance_router.post(
    "/withdraw-request",
    response_model=FinanceResourceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_withdraw_request(
    payload: WithdrawRequestCreate,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(require_merchant),
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    """
    Request a payout of part of the merchant's balance.

    The PENDING entry is committed before the platform admin is notified;
    the notice goes out after the response.
    """
    entry = await LedgerService.create_withdrawal(
        db,
        merchant_id=current_user["user_id"],
        name=payload.name,
        bank_account_name=payload.bank_account_name,
        bank_account_number=payload.bank_account_number,
        amount=payload.amount,
    )
    admin = await get_platform_admin(db)
    await db.commit()

    formatted_amount = format_currency(entry.amount)
    if admin:
        background_tasks.add_task(
            NotificationService.dispatch,
            session_factory,
            admin.id,
            "New withdraw request",
            f"{current_user['sub']} requested a withdrawal of {formatted_amount}",
            NotificationType.WITHDRAW_REQUEST,
            {
                "financeId": entry.id,
                "merchantId": current_user["user_id"],
                "name": payload.name,
                "bankAccountName": payload.bank_account_name,
                "bankAccountNumber": payload.bank_account_number,
                "amount": formatted_amount,
            },
        )
    else:
        logger.warning("No active admin to notify about withdraw request %s", entry.id)

    response = FinanceResourceResponse(
        code=status.HTTP_201_CREATED,
        message="Withdraw request created",
        data=FinanceResource.from_entry(entry),
    )

    await log_committed_event(
        db=db,
        action=AuditAction.WITHDRAW_REQUESTED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        resource_type="finance",
        resource_id=entry.id,
        metadata={"amount": entry.amount, "balance": entry.balance}
    )

    return response
