"""
Finance Entry database model.

Append-only ledger lines, each storing the owner's balance after it.
"""

from sqlalchemy import (
    Column, Integer, BigInteger, String, ForeignKey, DateTime, Enum,
    UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.sql import func
from marketplace_backend.app.db.session import Base
from marketplace_backend.app.models.finance_enums import FinanceType, FinanceStatus


class FinanceEntry(Base):
    """
    Finance Entry model.
    
    For one owner, entries ordered by ``sequence`` satisfy
    ``balance[n] = balance[n-1] + sign(type[n]) * amount[n]``.
    ``balance`` is written once at append time. Only ``status`` (and
    ``updated_at``) may change afterwards, PENDING -> SUCCESS | FAILED.
    """
    __tablename__ = "finances"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Position in the owner's ledger; the unique pair below rejects a stale append
    sequence = Column(Integer, nullable=False)
    
    type = Column(Enum(FinanceType), nullable=False, index=True)
    order_reference = Column(String(50), nullable=True, index=True)
    description = Column(String(255), nullable=False)
    
    # Minor currency units
    amount = Column(BigInteger, nullable=False)
    status = Column(Enum(FinanceStatus), default=FinanceStatus.SUCCESS, nullable=False, index=True)
    balance = Column(BigInteger, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    __table_args__ = (
        UniqueConstraint("owner_id", "sequence", name="uq_finances_owner_sequence"),
        CheckConstraint("amount >= 0", name="ck_finances_amount_non_negative"),
        CheckConstraint("balance >= 0", name="ck_finances_balance_non_negative"),
        Index("ix_finances_owner_created", "owner_id", "created_at"),
    )
    
    @property
    def is_withdrawal(self) -> bool:
        return self.type == FinanceType.CREDIT and self.order_reference is None
    
    def __repr__(self):
        return f"<FinanceEntry(id={self.id}, owner={self.owner_id}, type='{self.type.value}', amount={self.amount}, balance={self.balance})>"
