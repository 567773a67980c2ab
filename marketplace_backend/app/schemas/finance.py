"""
Finance Schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from marketplace_backend.app.domain.finance.currency import format_currency
from marketplace_backend.app.models.finance import FinanceEntry
from marketplace_backend.app.models.finance_enums import FinanceType, FinanceStatus
from marketplace_backend.app.schemas.common import CamelModel, PageMeta


class FinanceResource(CamelModel):
    """One ledger line as shown to its owner; money fields are formatted strings."""
    id: int
    type: FinanceType
    order_id: Optional[str] = None
    description: str
    amount: str
    status: FinanceStatus
    balance: str
    created_at: datetime

    @classmethod
    def from_entry(cls, entry: FinanceEntry) -> "FinanceResource":
        return cls(
            id=entry.id,
            type=entry.type,
            order_id=entry.order_reference,
            description=entry.description,
            amount=format_currency(entry.amount),
            status=entry.status,
            balance=format_currency(entry.balance),
            created_at=entry.created_at,
        )


class FinanceListResponse(CamelModel):
    code: int
    message: str
    data: List[FinanceResource]
    pages: PageMeta


class WithdrawResource(CamelModel):
    """Pre-fill data for the withdrawal form."""
    finance_balance: str
    name: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account_name: Optional[str] = None
    bank_account_number: Optional[str] = None


class WithdrawResourceResponse(CamelModel):
    code: int
    message: str
    data: WithdrawResource


class WithdrawRequestCreate(CamelModel):
    """Body of POST /finance/withdraw-request."""
    name: str = Field(..., min_length=1, max_length=150, description="Destination bank / account holder name")
    bank_account_name: str = Field(..., min_length=1, max_length=150)
    bank_account_number: str = Field(..., min_length=1, max_length=50, pattern=r"^[0-9\-\s]+$")
    amount: int = Field(..., gt=0, description="Minor currency units")


class FinanceResourceResponse(CamelModel):
    code: int
    message: str
    data: FinanceResource


class WithdrawStatusUpdate(CamelModel):
    """Admin decision on a pending withdrawal."""
    status: FinanceStatus


class WithdrawStatusResponse(CamelModel):
    code: int
    message: str
    data: FinanceResource
    refund: Optional[FinanceResource] = None


class SettlementResponse(CamelModel):
    code: int
    message: str
    invoice_number: str
    data: List[FinanceResource]
