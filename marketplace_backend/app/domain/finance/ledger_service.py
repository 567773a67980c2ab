"""
Ledger Service (Domain Logic).

Merchant finance operations: listing, the withdrawal snapshot, withdrawal
requests and their approval, and order settlement.

Services flush; the calling endpoint owns the commit.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_backend.app.core.config import settings
from marketplace_backend.app.core.exceptions import (
    InvalidStateTransitionError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from marketplace_backend.app.domain.finance import ledger_repository
from marketplace_backend.app.models.finance import FinanceEntry
from marketplace_backend.app.models.finance_enums import FinanceType, FinanceStatus, OrderStatus
from marketplace_backend.app.models.merchant_account import MerchantAccount
from marketplace_backend.app.models.order import Order
from marketplace_backend.app.services.accounts import get_platform_admin, get_merchant_account

logger = logging.getLogger(__name__)

INCOMING_FUNDS = "Incoming funds from #OrderId-{invoice}"
MERCHANT_TAX = "{percent}% merchant tax from #OrderId-{invoice}"
REVENUE_ADMIN = "Revenue from merchant tax #Merchant-{merchant} #OrderId-{invoice}"
WITHDRAW_REQUEST = "Withdraw request to {name} - {bank_account_number} a.n. {bank_account_name}"
WITHDRAW_REFUND = "Refund of failed withdraw request #{finance_id}"


@dataclass
class WithdrawalSnapshot:
    balance: int
    merchant_account: Optional[MerchantAccount] = None


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


class LedgerService:

    @staticmethod
    async def list_entries(
        db: AsyncSession,
        owner_id: int,
        type: Optional[FinanceType] = None,
        status: Optional[FinanceStatus] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> Tuple[List[FinanceEntry], int]:
        """Entries for the caller's own ledger, newest first, with the total count."""
        per_page = min(per_page or settings.finance_page_size, settings.finance_max_page_size)
        return await ledger_repository.list_entries(
            db, owner_id, type=type, status=status, page=page, per_page=per_page
        )

    @staticmethod
    async def withdrawal_snapshot(db: AsyncSession, owner_id: int) -> WithdrawalSnapshot:
        """
        Current balance plus saved bank details for the withdrawal form.

        An owner without entries has a balance of 0.
        """
        return WithdrawalSnapshot(
            balance=await ledger_repository.current_balance(db, owner_id),
            merchant_account=await get_merchant_account(db, owner_id),
        )

    @staticmethod
    async def create_withdrawal(
        db: AsyncSession,
        merchant_id: int,
        name: str,
        bank_account_name: str,
        bank_account_number: str,
        amount: int,
    ) -> FinanceEntry:
        """
        Record a merchant's withdrawal request.

        Appends a PENDING CREDIT of ``amount``; the balance drops right away.

        Raises:
            ValidationFailedError: amount is not positive
            InsufficientBalanceError: amount exceeds the current balance
        """
        if amount <= 0:
            raise ValidationFailedError({"amount": ["The amount must be at least 1."]})

        entry = await ledger_repository.append_entry(
            db,
            owner_id=merchant_id,
            type=FinanceType.CREDIT,
            amount=amount,
            description=WITHDRAW_REQUEST.format(
                name=name,
                bank_account_name=bank_account_name,
                bank_account_number=bank_account_number,
            ),
            status=FinanceStatus.PENDING,
        )
        logger.info(
            "Merchant %s requested withdrawal of %s (finance %s), balance now %s",
            merchant_id, amount, entry.id, entry.balance,
        )
        return entry

    @staticmethod
    async def update_withdrawal_status(
        db: AsyncSession,
        finance_id: int,
        status: FinanceStatus,
    ) -> Tuple[FinanceEntry, Optional[FinanceEntry]]:
        """
        Resolve a pending withdrawal: PENDING -> SUCCESS | FAILED.

        A FAILED withdrawal gets a compensating DEBIT that restores the
        merchant's running balance; the original entry keeps its balance.

        Returns:
            (the withdrawal entry, the refund entry or None)
        """
        if status == FinanceStatus.PENDING:
            raise InvalidStateTransitionError("A withdraw request can only move to SUCCESS or FAILED")

        result = await db.execute(
            select(FinanceEntry).where(FinanceEntry.id == finance_id).with_for_update()
        )
        entry = result.scalar_one_or_none()

        if not entry:
            raise ResourceNotFoundError("Finance", finance_id)

        if not entry.is_withdrawal:
            raise InvalidStateTransitionError(
                "Only withdraw requests can change status",
                details={"finance_id": finance_id},
            )

        if entry.status != FinanceStatus.PENDING:
            raise InvalidStateTransitionError(
                f"Withdraw request status is {entry.status.value}, expected PENDING",
                details={"finance_id": finance_id, "status": entry.status.value},
            )

        entry.status = status
        entry.updated_at = datetime.now(timezone.utc)

        refund = None
        if status == FinanceStatus.FAILED:
            refund = await ledger_repository.append_entry(
                db,
                owner_id=entry.owner_id,
                type=FinanceType.DEBIT,
                amount=entry.amount,
                description=WITHDRAW_REFUND.format(finance_id=entry.id),
                status=FinanceStatus.SUCCESS,
            )

        await db.flush()
        logger.info("Withdraw request %s marked %s", entry.id, status.value)
        return entry, refund

    @staticmethod
    async def settle_order(db: AsyncSession, invoice_number: str) -> List[FinanceEntry]:
        """
        Post a paid order to the ledgers.

        Flow:
        1. Merchant DEBIT of the order total (incoming funds)
        2. Merchant CREDIT of the merchant tax
        3. Platform admin DEBIT of the same tax (revenue)
        4. Order -> SETTLED

        Returns:
            The three entries, in posting order
        """
        result = await db.execute(
            select(Order).where(Order.invoice_number == invoice_number).with_for_update()
        )
        order = result.scalar_one_or_none()

        if not order:
            raise ResourceNotFoundError("Order", invoice_number)

        if order.status != OrderStatus.PAID:
            raise InvalidStateTransitionError(
                f"Order status is {order.status.value}, expected PAID",
                details={"invoice_number": invoice_number, "status": order.status.value},
            )

        admin = await get_platform_admin(db)
        if not admin:
            raise ResourceNotFoundError("Platform admin")

        merchant_account = await get_merchant_account(db, order.merchant_id)
        merchant_slug = slugify(merchant_account.name) if merchant_account else str(order.merchant_id)

        percent = settings.merchant_tax_percent
        tax = order.total_price * percent // 100

        incoming = await ledger_repository.append_entry(
            db,
            owner_id=order.merchant_id,
            type=FinanceType.DEBIT,
            amount=order.total_price,
            description=INCOMING_FUNDS.format(invoice=invoice_number),
            order_reference=invoice_number,
        )
        merchant_tax = await ledger_repository.append_entry(
            db,
            owner_id=order.merchant_id,
            type=FinanceType.CREDIT,
            amount=tax,
            description=MERCHANT_TAX.format(percent=percent, invoice=invoice_number),
            order_reference=invoice_number,
        )
        revenue = await ledger_repository.append_entry(
            db,
            owner_id=admin.id,
            type=FinanceType.DEBIT,
            amount=tax,
            description=REVENUE_ADMIN.format(merchant=merchant_slug, invoice=invoice_number),
            order_reference=invoice_number,
        )

        now = datetime.now(timezone.utc)
        order.status = OrderStatus.SETTLED
        order.settled_at = now
        order.updated_at = now
        await db.flush()

        logger.info(
            "Settled order %s: merchant %s +%s -%s, platform +%s",
            invoice_number, order.merchant_id, order.total_price, tax, tax,
        )
        return [incoming, merchant_tax, revenue]
