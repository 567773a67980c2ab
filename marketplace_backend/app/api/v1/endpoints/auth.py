"""
Authentication API endpoints.

Provides register, login, logout and user info endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from marketplace_backend.app.db.session import get_db
from marketplace_backend.app.models.user import User
from marketplace_backend.app.models.enums import UserRole
from marketplace_backend.app.schemas.auth import UserRegister, UserLogin, TokenResponse, UserResponse
from marketplace_backend.app.schemas.common import MessageResponse
from marketplace_backend.app.core.exceptions import ValidationFailedError
from marketplace_backend.app.core.security import get_password_hash, verify_password
from marketplace_backend.app.core.jwt import create_access_token
from marketplace_backend.app.core.dependencies import get_current_user
from marketplace_backend.app.core.redis_client import get_redis
from marketplace_backend.app.core.token_revocation import revoke_token
from marketplace_backend.app.services.audit import log_auth_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])

CREDENTIALS_MISMATCH = "The credentials does not match."


def _token_response(user: User) -> TokenResponse:
    access_token = create_access_token(data={
        "sub": user.username,
        "user_id": user.id,
        "role": user.role.value,
    })
    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new merchant or customer.

    ADMIN accounts cannot be created via API.
    """
    if user_data.role == UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin users cannot be registered via API"
        )

    result = await db.execute(
        select(User).where(
            or_(User.username == user_data.username, User.email == user_data.email)
        )
    )
    existing_user = result.scalars().first()

    if existing_user:
        if existing_user.username == user_data.username:
            raise ValidationFailedError({"username": ["The username has already been taken."]})
        raise ValidationFailedError({"email": ["The email has already been taken."]})

    new_user = User(
        email=user_data.email,
        username=user_data.username,
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
        is_active=True,
        is_superuser=False
    )

    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    await log_auth_event(
        db=db,
        action=AuditAction.USER_REGISTERED,
        user_id=new_user.id,
        username=new_user.username,
        metadata={"role": new_user.role.value}
    )

    return _token_response(new_user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Accepts username or email for login. Unknown users and wrong passwords
    get the same 422 on the ``username`` field.
    """
    ip_address = request.client.host if request.client else None

    result = await db.execute(
        select(User).where(
            or_(User.username == credentials.username, User.email == credentials.username)
        )
    )
    user = result.scalars().first()

    if not user or not verify_password(credentials.password, user.hashed_password):
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id if user else None,
            username=credentials.username,
            ip_address=ip_address,
            metadata={"reason": "Invalid password" if user else "User not found"}
        )
        raise ValidationFailedError({"username": [CREDENTIALS_MISMATCH]})

    if not user.is_active:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            username=user.username,
            ip_address=ip_address,
            metadata={"reason": "Account is inactive"}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    await log_auth_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        user_id=user.id,
        username=user.username,
        ip_address=ip_address
    )

    return _token_response(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """Revoke the bearer token used for this request."""
    if not await revoke_token(redis, current_user["token"], current_user["user_id"]):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not revoke token, please retry"
        )

    await log_auth_event(
        db=db,
        action=AuditAction.LOGOUT,
        user_id=current_user["user_id"],
        username=current_user["sub"]
    )
    return MessageResponse(code=status.HTTP_200_OK, message="Logged out")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Raises:
        404: If user not found in database
    """
    result = await db.execute(select(User).where(User.id == current_user["user_id"]))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return UserResponse.model_validate(user)
