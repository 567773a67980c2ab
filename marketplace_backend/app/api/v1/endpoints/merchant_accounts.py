"""
Merchant Account API Endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_backend.app.core.exceptions import ResourceNotFoundError
from marketplace_backend.app.core.guards import require_merchant
from marketplace_backend.app.db.session import get_db
from marketplace_backend.app.models.merchant_account import MerchantAccount
from marketplace_backend.app.schemas.merchant_account import (
    MerchantAccountCreate,
    MerchantAccountResource,
    MerchantAccountResponse,
)
from marketplace_backend.app.services.accounts import get_merchant_account
from marketplace_backend.app.services.audit import log_committed_event, AuditAction

router = APIRouter(prefix="/merchant-account", tags=["Merchant Account"])


@router.post("", response_model=MerchantAccountResponse, status_code=status.HTTP_201_CREATED)
async def create_merchant_account(
    payload: MerchantAccountCreate,
    current_user: dict = Depends(require_merchant),
    db: AsyncSession = Depends(get_db)
):
    """Create the caller's store profile and payout bank details."""
    if await get_merchant_account(db, current_user["user_id"]):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Merchant account already exists"
        )

    account = MerchantAccount(
        user_id=current_user["user_id"],
        name=payload.name,
        bank_name=payload.bank_name,
        bank_account_name=payload.bank_account_name,
        bank_account_number=payload.bank_account_number,
    )
    db.add(account)
    await db.commit()
    await db.refresh(account)

    response = MerchantAccountResponse(
        code=status.HTTP_201_CREATED,
        message="Merchant account created",
        data=MerchantAccountResource.model_validate(account),
    )

    await log_committed_event(
        db=db,
        action=AuditAction.MERCHANT_ACCOUNT_CREATED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        resource_type="merchant_account",
        resource_id=account.id
    )

    return response


@router.get("", response_model=MerchantAccountResponse)
async def get_own_merchant_account(
    current_user: dict = Depends(require_merchant),
    db: AsyncSession = Depends(get_db)
):
    """Get the caller's merchant account."""
    account = await get_merchant_account(db, current_user["user_id"])
    if not account:
        raise ResourceNotFoundError("Merchant account")

    return MerchantAccountResponse(
        code=status.HTTP_200_OK,
        message="Merchant account retrieved",
        data=MerchantAccountResource.model_validate(account),
    )
