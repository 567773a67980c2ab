"""
Merchant Account database model.

Store profile and payout bank details of a merchant user.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from marketplace_backend.app.db.session import Base


class MerchantAccount(Base):
    """
    Merchant Account model.
    
    One per merchant user. The bank details pre-fill withdrawal requests.
    """
    __tablename__ = "merchant_accounts"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True, index=True)
    
    name = Column(String(150), nullable=False)
    bank_name = Column(String(100), nullable=False)
    bank_account_name = Column(String(150), nullable=False)
    bank_account_number = Column(String(50), nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    user = relationship("User", back_populates="merchant_account", lazy="raise")
    
    def __repr__(self):
        return f"<MerchantAccount(id={self.id}, user={self.user_id}, name='{self.name}')>"
