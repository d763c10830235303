import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from settleup.core.config import settings
from settleup.core.exceptions import AccessDenied, InvalidSplit, NotFound
from settleup.models.expense import Expense, ExpenseSplit
from settleup.services.group_service import is_group_member, list_group_member_ids, require_group_member
from settleup.services.split_service import (
    SplitEntry,
    calculate_splits,
    check_split_total,
    parse_split_type,
)
from settleup.utils.currency_utils import to_money

logger = logging.getLogger(__name__)


async def create_expense(
    db: AsyncSession,
    paid_by: uuid.UUID,
    group_id: uuid.UUID,
    description: str,
    amount: Decimal,
    split_type,
    entries: list[SplitEntry],
) -> Expense:
    """
    Create an expense paid by the requester, with its splits, in one commit.
    Nothing is written if the split is rejected.
    """
    await require_group_member(db, group_id, paid_by)

    member_ids = await list_group_member_ids(db, group_id)
    outsiders = [e.user_id for e in entries if e.user_id not in member_ids]
    if outsiders:
        raise InvalidSplit(f"Invalid split: {outsiders[0]} is not a member of this group")

    split_type = parse_split_type(split_type)
    amount = to_money(amount)
    shares = calculate_splits(amount, split_type, entries)
    check_split_total(amount, shares, settings.split_total_tolerance)

    expense = Expense(
        id=uuid.uuid4(),
        group_id=group_id,
        paid_by=paid_by,
        description=description.strip(),
        amount=amount,
        split_type=split_type,
        splits=[ExpenseSplit(user_id=share.user_id, amount=share.amount) for share in shares],
    )
    db.add(expense)
    await db.commit()
    logger.info(
        "Expense %s of %s created in group %s by %s (%s, %d splits)",
        expense.id, amount, group_id, paid_by, split_type.value, len(shares),
    )
    result = await db.execute(
        select(Expense).where(Expense.id == expense.id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def list_group_expenses(db: AsyncSession, user_id: uuid.UUID, group_id: uuid.UUID) -> list[Expense]:
    await require_group_member(db, group_id, user_id)
    result = await db.execute(
        select(Expense)
        .where(Expense.group_id == group_id)
        .order_by(Expense.created_at.desc())
    )
    return list(result.scalars().all())


async def delete_expense(db: AsyncSession, user_id: uuid.UUID, expense_id: uuid.UUID) -> uuid.UUID:
    """Delete an expense; only its payer may, and only while still in the group. Returns the group id."""
    result = await db.execute(select(Expense).where(Expense.id == expense_id))
    expense = result.scalar_one_or_none()
    if not expense:
        raise NotFound("Expense not found")
    if expense.paid_by != user_id:
        raise AccessDenied("Only the person who created this expense can delete it")
    if not await is_group_member(db, expense.group_id, user_id):
        raise AccessDenied("You are no longer a member of this group")

    group_id = expense.group_id
    await db.delete(expense)
    await db.commit()
    logger.info("Expense %s deleted from group %s by %s", expense_id, group_id, user_id)
    return group_id
