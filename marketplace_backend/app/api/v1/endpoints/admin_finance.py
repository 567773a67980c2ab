"""
Admin Finance API Endpoints.

Withdrawal decisions and order settlement.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace_backend.app.core.guards import require_admin
from marketplace_backend.app.db.session import get_db, get_session_factory
from marketplace_backend.app.domain.finance.currency import format_currency
from marketplace_backend.app.domain.finance.ledger_service import LedgerService
from marketplace_backend.app.models.finance_enums import FinanceStatus
from marketplace_backend.app.models.notification import NotificationType
from marketplace_backend.app.schemas.finance import (
    FinanceResource,
    SettlementResponse,
    WithdrawStatusResponse,
    WithdrawStatusUpdate,
)
from marketplace_backend.app.services.audit import log_committed_event, AuditAction
from marketplace_backend.app.services.notification_service import NotificationService

router = APIRouter(prefix="/admin", tags=["Admin - Finance"])


@router.patch("/finances/{finance_id}/status", response_model=WithdrawStatusResponse)
async def update_withdraw_status(
    body: WithdrawStatusUpdate,
    background_tasks: BackgroundTasks,
    finance_id: int = Path(..., description="Finance entry ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    """
    Approve (SUCCESS) or reject (FAILED) a PENDING withdraw request.
    """
    entry, refund = await LedgerService.update_withdrawal_status(db, finance_id, body.status)
    await db.commit()

    approved = entry.status == FinanceStatus.SUCCESS
    background_tasks.add_task(
        NotificationService.dispatch,
        session_factory,
        entry.owner_id,
        "Withdraw request approved" if approved else "Withdraw request rejected",
        f"Your withdraw request of {format_currency(entry.amount)} is {entry.status.value}",
        NotificationType.WITHDRAW_UPDATE,
        {"financeId": entry.id, "status": entry.status.value},
    )

    response = WithdrawStatusResponse(
        code=status.HTTP_200_OK,
        message=f"Withdraw request marked {entry.status.value}",
        data=FinanceResource.from_entry(entry),
        refund=FinanceResource.from_entry(refund) if refund else None,
    )

    await log_committed_event(
        db=db,
        action=AuditAction.WITHDRAW_APPROVED if approved else AuditAction.WITHDRAW_REJECTED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        resource_type="finance",
        resource_id=entry.id,
        metadata={"refund_id": refund.id if refund else None}
    )

    return response


@router.post("/orders/{invoice_number}/settle", response_model=SettlementResponse)
async def settle_order(
    invoice_number: str = Path(..., description="Order invoice number"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Post a PAID order's proceeds and merchant tax to the ledgers.
    """
    entries = await LedgerService.settle_order(db, invoice_number)
    await db.commit()

    response = SettlementResponse(
        code=status.HTTP_200_OK,
        message="Order settled",
        invoice_number=invoice_number,
        data=[FinanceResource.from_entry(entry) for entry in entries],
    )

    await log_committed_event(
        db=db,
        action=AuditAction.ORDER_SETTLED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        resource_type="order",
        resource_id=invoice_number,
        metadata={"finance_ids": [entry.id for entry in entries]}
    )

    return response
