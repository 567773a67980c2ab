"""
Finance enumerations.
"""

import enum


class FinanceType(str, enum.Enum):
    """
    Finance entry type enumeration.

    The names follow the marketplace's own convention, not textbook
    accounting: DEBIT adds to the owner's balance, CREDIT takes from it.
    """
    DEBIT = "DEBIT"  # Incoming funds (sales, tax revenue, refunds)
    CREDIT = "CREDIT"  # Outgoing funds (merchant tax, withdrawals)

    @property
    def sign(self) -> int:
        return 1 if self is FinanceType.DEBIT else -1


class FinanceStatus(str, enum.Enum):
    """Finance entry status enumeration."""
    PENDING = "PENDING"  # Withdrawal waiting for admin decision
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class OrderStatus(str, enum.Enum):
    """Order status enumeration."""
    UNPAID = "UNPAID"
    PAID = "PAID"  # Paid by customer, waiting for settlement
    SETTLED = "SETTLED"  # Funds posted to merchant and platform ledgers
    CANCELLED = "CANCELLED"
