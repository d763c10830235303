import logging
import uuid
from decimal import Decimal
from datetime import datetime, timezone

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from settleup.core.exceptions import AccessDenied, InvalidOperation, NotFound
from settleup.models.settlement import Settlement, SettlementMethod, SettlementStatus
from settleup.services.group_service import list_group_member_ids
from settleup.utils.currency_utils import to_money

logger = logging.getLogger(__name__)


async def record_settlement(
    db: AsyncSession,
    requester_id: uuid.UUID,
    group_id: uuid.UUID,
    from_user: uuid.UUID,
    to_user: uuid.UUID,
    amount: Decimal,
    method: SettlementMethod = SettlementMethod.cash,
    note: str | None = None,
) -> Settlement:
    """Record money that changed hands. Settlements are completed as soon as they are recorded."""
    member_ids = await list_group_member_ids(db, group_id)
    if requester_id not in member_ids:
        raise AccessDenied("Access denied: You are not a member of this group")
    if from_user not in member_ids or to_user not in member_ids:
        raise InvalidOperation("Both users must be members of the group")
    if from_user == to_user:
        raise InvalidOperation("Cannot settle with yourself")
    amount = to_money(amount)
    if amount <= 0:
        raise InvalidOperation("Settlement amount must be positive")

    settlement = Settlement(
        group_id=group_id,
        from_user=from_user,
        to_user=to_user,
        amount=amount,
        method=method,
        note=note,
        status=SettlementStatus.completed,
        settled_at=datetime.now(timezone.utc),
    )
    db.add(settlement)
    await db.commit()
    logger.info("Settlement of %s from %s to %s recorded in group %s", amount, from_user, to_user, group_id)
    result = await db.execute(
        select(Settlement).where(Settlement.id == settlement.id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def confirm_settlement(db: AsyncSession, settlement_id: uuid.UUID, user_id: uuid.UUID) -> Settlement:
    """Legacy confirmation of a pending settlement; only the receiver may confirm."""
    settlement = await db.get(Settlement, settlement_id)
    if not settlement:
        raise NotFound("Settlement not found")
    if settlement.to_user != user_id:
        raise AccessDenied("Only the receiver can confirm the settlement")

    if settlement.status != SettlementStatus.completed:
        settlement.status = SettlementStatus.completed
        settlement.settled_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(settlement)
        logger.info("Settlement %s confirmed by %s", settlement_id, user_id)
    return settlement


async def list_group_settlements(db: AsyncSession, user_id: uuid.UUID, group_id: uuid.UUID) -> list[Settlement]:
    if user_id not in await list_group_member_ids(db, group_id):
        raise AccessDenied("Access denied: You are not a member of this group")
    result = await db.execute(
        select(Settlement)
        .where(Settlement.group_id == group_id)
        .order_by(Settlement.created_at.desc())
    )
    return list(result.scalars().all())


async def list_pending_settlements(db: AsyncSession, user_id: uuid.UUID) -> list[Settlement]:
    result = await db.execute(
        select(Settlement)
        .where(
            or_(Settlement.from_user == user_id, Settlement.to_user == user_id),
            Settlement.status.in_([SettlementStatus.pending, SettlementStatus.pending_online]),
        )
        .order_by(Settlement.created_at.desc())
    )
    return list(result.scalars().all())
