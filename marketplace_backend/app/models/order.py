"""
Order database model.

Only the fields settlement needs: who paid whom, how much, and the invoice
number that finance entries reference.
"""

from sqlalchemy import Column, Integer, BigInteger, String, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from marketplace_backend.app.db.session import Base
from marketplace_backend.app.models.finance_enums import OrderStatus


class Order(Base):
    """
    Order model.
    
    Lifecycle: UNPAID -> PAID -> SETTLED (or CANCELLED).
    """
    __tablename__ = "orders"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    invoice_number = Column(String(50), unique=True, index=True, nullable=False)
    
    # Parties
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    merchant_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    
    # Minor currency units
    total_price = Column(BigInteger, nullable=False)
    
    status = Column(Enum(OrderStatus), default=OrderStatus.UNPAID, nullable=False, index=True)
    settled_at = Column(DateTime(timezone=True), nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Order(id={self.id}, invoice='{self.invoice_number}', status='{self.status.value}')>"
