"""
Merchant Account Schemas.
"""

from datetime import datetime

from pydantic import Field

from marketplace_backend.app.schemas.common import CamelModel


class MerchantAccountCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=150)
    bank_name: str = Field(..., min_length=1, max_length=100)
    bank_account_name: str = Field(..., min_length=1, max_length=150)
    bank_account_number: str = Field(..., min_length=1, max_length=50, pattern=r"^[0-9\-\s]+$")


class MerchantAccountResource(CamelModel):
    id: int
    user_id: int
    name: str
    bank_name: str
    bank_account_name: str
    bank_account_number: str
    created_at: datetime

    model_config = {"from_attributes": True}


class MerchantAccountResponse(CamelModel):
    code: int
    message: str
    data: MerchantAccountResource
