"""
Audit logging service for authentication events and money movements.
"""

import logging
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from marketplace_backend.app.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


class AuditAction:
    """Standardized audit action constants."""
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"
    USER_REGISTERED = "USER_REGISTERED"
    MERCHANT_ACCOUNT_CREATED = "MERCHANT_ACCOUNT_CREATED"

    WITHDRAW_REQUESTED = "WITHDRAW_REQUESTED"
    WITHDRAW_APPROVED = "WITHDRAW_APPROVED"
    WITHDRAW_REJECTED = "WITHDRAW_REJECTED"
    ORDER_SETTLED = "ORDER_SETTLED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[Any] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Write an audit record and commit it.

    Callers commit their own business changes first.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_username: Username of actor
        resource_type: Kind of record touched ("finance", "order", "user")
        resource_id: Identifier of that record
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def log_committed_event(db: AsyncSession, action: str, **kwargs: Any) -> Optional[AuditLog]:
    """
    Audit an action whose business change is already committed.

    A failed audit write is logged and rolled back; the caller's response
    and background tasks go ahead. Build anything read from ORM instances
    before calling, since the rollback expires them.

    Returns:
        Created AuditLog instance, or None if the write failed
    """
    try:
        return await log_event(db=db, action=action, **kwargs)
    except Exception:
        logger.exception("Failed to write %s audit record", action)
        await db.rollback()
        return None


async def log_auth_event(
    db: AsyncSession,
    action: str,
    user_id: Optional[int],
    username: Optional[str],
    ip_address: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log an authentication event (login success/failure, logout)."""
    return await log_event(
        db=db,
        action=action,
        actor_id=user_id,
        actor_username=username,
        resource_type="user",
        resource_id=user_id,
        ip_address=ip_address,
        metadata=metadata
    )


async def get_audit_trail(
    db: AsyncSession,
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[Any] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering, most recent first.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if action:
        query = query.where(AuditLog.action == action)

    if resource_type:
        query = query.where(AuditLog.resource_type == resource_type)

    if resource_id is not None:
        query = query.where(AuditLog.resource_id == str(resource_id))

    result = await db.execute(query.limit(limit))
    return list(result.scalars().all())
