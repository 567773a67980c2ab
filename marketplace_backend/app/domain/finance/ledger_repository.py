"""
Ledger repository.

Queries over the ``finances`` table, plus the one write path that keeps
running balances consistent.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_backend.app.core.config import settings
from marketplace_backend.app.core.exceptions import (
    InsufficientBalanceError,
    LedgerConflictError,
    ResourceNotFoundError,
)
from marketplace_backend.app.models.finance import FinanceEntry
from marketplace_backend.app.models.finance_enums import FinanceType, FinanceStatus
from marketplace_backend.app.models.user import User

logger = logging.getLogger(__name__)

SEQUENCE_CONSTRAINT = "uq_finances_owner_sequence"


async def list_entries(
    db: AsyncSession,
    owner_id: int,
    type: Optional[FinanceType] = None,
    status: Optional[FinanceStatus] = None,
    page: int = 1,
    per_page: int = 10,
) -> Tuple[List[FinanceEntry], int]:
    """
    List an owner's entries, newest first.

    Args:
        db: Database session
        owner_id: Ledger owner
        type: Exact-match type filter, None for all
        status: Exact-match status filter, None for all
        page: 1-based page number
        per_page: Page size

    Returns:
        (entries on the requested page, total matching entries)
    """
    conditions = [FinanceEntry.owner_id == owner_id]
    if type is not None:
        conditions.append(FinanceEntry.type == type)
    if status is not None:
        conditions.append(FinanceEntry.status == status)

    total_result = await db.execute(select(func.count(FinanceEntry.id)).where(*conditions))
    total = total_result.scalar() or 0

    query = (
        select(FinanceEntry)
        .where(*conditions)
        # Newest first; same-timestamp ties fall back to sequence, so a
        # settlement's tax CREDIT lists above its incoming DEBIT
        .order_by(FinanceEntry.created_at.desc(), FinanceEntry.sequence.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def latest_entry(db: AsyncSession, owner_id: int) -> Optional[FinanceEntry]:
    """Return the owner's most recent entry, or None for an empty ledger."""
    result = await db.execute(
        select(FinanceEntry)
        .where(FinanceEntry.owner_id == owner_id)
        .order_by(FinanceEntry.sequence.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def current_balance(db: AsyncSession, owner_id: int) -> int:
    """Balance after the owner's latest entry (0 when there is none)."""
    latest = await latest_entry(db, owner_id)
    return latest.balance if latest else 0


async def append_entry(
    db: AsyncSession,
    owner_id: int,
    type: FinanceType,
    amount: int,
    description: str,
    status: FinanceStatus = FinanceStatus.SUCCESS,
    order_reference: Optional[str] = None,
) -> FinanceEntry:
    """
    Append an entry to an owner's ledger, computing its running balance.

    The read of the latest entry and the insert happen in one unit:
    the owner row is locked (``SELECT ... FOR UPDATE``; ignored by SQLite)
    and the insert claims ``sequence = latest.sequence + 1``. If another
    transaction claimed that sequence first, the unique constraint fires,
    the SAVEPOINT is rolled back and the append is retried on fresh data.

    Raises:
        ResourceNotFoundError: owner does not exist
        InsufficientBalanceError: the entry would make the balance negative
        LedgerConflictError: every retry lost the race
    """
    if amount < 0:
        raise ValueError("amount must be non-negative")

    attempts = max(1, settings.ledger_append_retries)
    for attempt in range(1, attempts + 1):
        owner = await db.execute(
            select(User.id).where(User.id == owner_id).with_for_update()
        )
        if owner.scalar_one_or_none() is None:
            raise ResourceNotFoundError("User", owner_id)

        latest = await latest_entry(db, owner_id)
        previous_balance = latest.balance if latest else 0
        balance = previous_balance + type.sign * amount
        if balance < 0:
            raise InsufficientBalanceError(available=previous_balance, requested=amount)

        now = datetime.now(timezone.utc)
        entry = FinanceEntry(
            owner_id=owner_id,
            sequence=(latest.sequence if latest else 0) + 1,
            type=type,
            order_reference=order_reference,
            description=description,
            amount=amount,
            status=status,
            balance=balance,
            created_at=now,
            updated_at=now,
        )

        try:
            async with db.begin_nested():
                db.add(entry)
                await db.flush()
        except IntegrityError as exc:
            if not _is_sequence_collision(exc):
                raise
            logger.warning(
                "Ledger append for owner %s lost sequence %s (attempt %s/%s)",
                owner_id, entry.sequence, attempt, attempts,
            )
            continue

        logger.debug(
            "Appended %s %s to owner %s: balance %s -> %s",
            type.value, amount, owner_id, previous_balance, balance,
        )
        return entry

    raise LedgerConflictError(owner_id)


def _is_sequence_collision(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    # PostgreSQL names the constraint, SQLite names the columns
    return SEQUENCE_CONSTRAINT in message or "finances.owner_id, finances.sequence" in message
