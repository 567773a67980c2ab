"""
Audit Log Database Model.

Tracks authentication events and money-moving actions.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from marketplace_backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.
    
    Events logged:
    - LOGIN_SUCCESS / LOGIN_FAILED / LOGOUT
    - USER_REGISTERED / MERCHANT_ACCOUNT_CREATED
    - WITHDRAW_REQUESTED / WITHDRAW_APPROVED / WITHDRAW_REJECTED
    - ORDER_SETTLED
    """
    __tablename__ = "audit_logs"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    # Who performed the action (None for anonymous attempts)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)
    
    action = Column(String(100), nullable=False, index=True)
    
    # Finance entry, order, or user the action touched
    resource_type = Column(String(50), nullable=True)
    resource_id = Column(String(50), index=True, nullable=True)
    
    meta_data = Column(JSON, nullable=True)
    ip_address = Column(String(50), nullable=True)
    
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    
    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username}, resource={self.resource_type}:{self.resource_id})>"
