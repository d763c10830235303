import logging
import uuid
from decimal import Decimal

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from settleup.core.exceptions import AccessDenied, InvalidOperation, NotFound
from settleup.models.group import Group, GroupMember, GroupRole
from settleup.models.expense import Expense, ExpenseSplit
from settleup.models.settlement import Settlement
from settleup.models.user import User
from settleup.services.calculation_service import (
    SETTLED_THRESHOLD,
    calculate_net_balances,
    load_ledger_snapshot,
)

logger = logging.getLogger(__name__)


async def is_group_member(db: AsyncSession, group_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    result = await db.execute(
        select(GroupMember.id).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def require_group_member(db: AsyncSession, group_id: uuid.UUID, user_id: uuid.UUID) -> None:
    if not await is_group_member(db, group_id, user_id):
        logger.warning("User %s denied access to group %s", user_id, group_id)
        raise AccessDenied("Access denied: You are not a member of this group")


async def list_user_group_ids(db: AsyncSession, user_id: uuid.UUID) -> list[uuid.UUID]:
    result = await db.execute(
        select(GroupMember.group_id).where(GroupMember.user_id == user_id)
    )
    return list(result.scalars().all())


async def list_group_member_ids(db: AsyncSession, group_id: uuid.UUID) -> set[uuid.UUID]:
    result = await db.execute(
        select(GroupMember.user_id).where(GroupMember.group_id == group_id)
    )
    return set(result.scalars().all())


async def create_group(db: AsyncSession, name: str, user: User) -> Group:
    group = Group(name=name.strip(), created_by=user.id)
    db.add(group)
    await db.flush()

    member = GroupMember(group_id=group.id, user_id=user.id, role=GroupRole.owner)
    db.add(member)
    await db.commit()
    await db.refresh(group)
    logger.info("Group %s created by %s", group.id, user.id)
    return group


async def list_user_groups(db: AsyncSession, user_id: uuid.UUID):
    result = await db.execute(
        select(Group.id, Group.name, Group.created_by, Group.created_at)
        .join(GroupMember, GroupMember.group_id == Group.id)
        .where(GroupMember.user_id == user_id)
        .order_by(Group.created_at.desc())
    )
    return result.all()


async def get_group(db: AsyncSession, group_id: uuid.UUID) -> Group | None:
    result = await db.execute(
        select(Group)
        .where(Group.id == group_id)
        .options(joinedload(Group.members).joinedload(GroupMember.user))
    )
    return result.unique().scalar_one_or_none()


async def get_group_for_member(db: AsyncSession, group_id: uuid.UUID, user_id: uuid.UUID) -> Group:
    await require_group_member(db, group_id, user_id)
    group = await get_group(db, group_id)
    if not group:
        raise NotFound("Group not found")
    return group


async def add_member(
    db: AsyncSession,
    requester_id: uuid.UUID,
    group_id: uuid.UUID,
    name: str,
    email: str,
) -> GroupMember:
    """Add a member by email, creating a guest account when the email is unknown."""
    await require_group_member(db, group_id, requester_id)

    email = email.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if not user:
        user = User(id=uuid.uuid4(), email=email, display_name=name.strip(), is_guest=True)
        db.add(user)
        await db.flush()
        logger.info("Created guest user %s for %s", user.id, email)
    elif await is_group_member(db, group_id, user.id):
        raise InvalidOperation("User is already a member of this group")

    member = GroupMember(group_id=group_id, user_id=user.id, role=GroupRole.member)
    member.user = user
    db.add(member)
    await db.commit()
    logger.info("User %s added to group %s by %s", user.id, group_id, requester_id)
    return member


async def remove_member(
    db: AsyncSession,
    requester_id: uuid.UUID,
    group_id: uuid.UUID,
    member_id: uuid.UUID,
) -> None:
    """
    Remove a member, or let a member leave.

    The creator cannot leave, only the creator can remove others, the last
    member cannot be removed, and nobody with an unsettled balance goes.
    """
    group = await get_group(db, group_id)
    if not group:
        raise NotFound("Group not found")

    member_ids = {m.user_id for m in group.members}
    if requester_id not in member_ids:
        raise AccessDenied("Access denied: You are not a member of this group")
    if member_id not in member_ids:
        raise NotFound("Member not found in this group")
    if len(member_ids) == 1:
        raise InvalidOperation("Cannot remove the last member. Delete the group instead.")

    if requester_id == member_id:
        if group.created_by == requester_id:
            raise InvalidOperation(
                "As the group creator, please delete the group instead of leaving it."
            )
    elif group.created_by != requester_id:
        raise AccessDenied("Only the group creator can remove other members")

    snapshot = await load_ledger_snapshot(db, [group_id])
    net = calculate_net_balances(snapshot.expenses, snapshot.settlements, snapshot.members.keys())
    balance = net.get(member_id, Decimal("0"))
    if abs(balance) > SETTLED_THRESHOLD:
        raise InvalidOperation(
            f"Cannot remove member with unsettled balance of {abs(balance):.2f}. Please settle up first."
        )

    # History stays: their settled splits and settlements keep the ledger zero-sum.
    await db.execute(
        delete(GroupMember).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == member_id,
        )
    )
    await db.commit()
    logger.info("User %s removed from group %s by %s", member_id, group_id, requester_id)


async def delete_group(db: AsyncSession, group_id: uuid.UUID, user_id: uuid.UUID) -> None:
    group = await db.get(Group, group_id)
    if not group:
        raise NotFound("Group not found")
    await require_group_member(db, group_id, user_id)
    if group.created_by != user_id:
        raise AccessDenied("Only the group creator can delete this group")

    group_expense_ids = select(Expense.id).where(Expense.group_id == group_id)

    # Bulk deletes in FK order to avoid ORM N+1 deletion loops
    await db.execute(delete(ExpenseSplit).where(ExpenseSplit.expense_id.in_(group_expense_ids)))
    await db.execute(delete(Expense).where(Expense.group_id == group_id))
    await db.execute(delete(Settlement).where(Settlement.group_id == group_id))
    await db.execute(delete(GroupMember).where(GroupMember.group_id == group_id))
    await db.execute(delete(Group).where(Group.id == group_id))
    await db.commit()
    logger.info("Group %s deleted by %s", group_id, user_id)
