import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import NamedTuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from settleup.models.expense import Expense, ExpenseSplit
from settleup.models.group import GroupMember
from settleup.models.settlement import Settlement, SettlementStatus
from settleup.models.user import User

logger = logging.getLogger(__name__)

# Balances within a cent of zero count as settled.
SETTLED_THRESHOLD = Decimal("0.01")


class SplitRecord(NamedTuple):
    user_id: uuid.UUID
    amount: Decimal


class ExpenseRecord(NamedTuple):
    id: uuid.UUID
    paid_by: uuid.UUID
    amount: Decimal
    splits: list[SplitRecord]


class SettlementRecord(NamedTuple):
    from_user: uuid.UUID
    to_user: uuid.UUID
    amount: Decimal


class MemberRecord(NamedTuple):
    id: uuid.UUID
    display_name: str
    email: str | None = None
    is_guest: bool = False


@dataclass
class LedgerSnapshot:
    """Everything the engine needs for one scope, read at a single point in time."""
    expenses: list[ExpenseRecord] = field(default_factory=list)
    settlements: list[SettlementRecord] = field(default_factory=list)
    members: dict[uuid.UUID, MemberRecord] = field(default_factory=dict)


def calculate_net_balances(
    expenses: list[ExpenseRecord],
    settlements: list[SettlementRecord],
    member_ids,
) -> dict[uuid.UUID, Decimal]:
    """
    Net balance per member for a scope.
    Positive = the group owes this member; negative = the member owes the group.
    The payer is credited the full amount and every split member (payer included)
    is debited their share. A completed settlement credits the payer and debits
    the payee. Users referenced by records but no longer members keep a balance
    so the total always nets to zero.
    """
    net: dict[uuid.UUID, Decimal] = defaultdict(Decimal)
    for member_id in member_ids:
        net[member_id] = Decimal("0")

    for expense in expenses:
        net[expense.paid_by] += expense.amount
        for split in expense.splits:
            net[split.user_id] -= split.amount

    for from_user, to_user, amount in settlements:
        net[from_user] += amount
        net[to_user] -= amount

    return dict(net)


async def load_ledger_snapshot(db: AsyncSession, group_ids: list[uuid.UUID]) -> LedgerSnapshot:
    """
    Read expenses (with splits), completed settlements and members for the given groups.
    Members appearing in several groups are kept once.
    """
    expenses_result = await db.execute(
        select(Expense.id, Expense.paid_by, Expense.amount)
        .where(Expense.group_id.in_(group_ids))
    )
    splits_result = await db.execute(
        select(ExpenseSplit.expense_id, ExpenseSplit.user_id, ExpenseSplit.amount)
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(Expense.group_id.in_(group_ids))
    )
    settlements_result = await db.execute(
        select(Settlement.from_user, Settlement.to_user, Settlement.amount)
        .where(
            Settlement.group_id.in_(group_ids),
            Settlement.status == SettlementStatus.completed,
        )
    )
    members_result = await db.execute(
        select(User.id, User.display_name, User.email, User.is_guest)
        .join(GroupMember, GroupMember.user_id == User.id)
        .where(GroupMember.group_id.in_(group_ids))
    )

    splits_by_expense = defaultdict(list)
    for expense_id, user_id, amount in splits_result.all():
        splits_by_expense[expense_id].append(SplitRecord(user_id, amount))

    snapshot = LedgerSnapshot()
    for expense_id, paid_by, amount in expenses_result.all():
        snapshot.expenses.append(
            ExpenseRecord(expense_id, paid_by, amount, splits_by_expense.get(expense_id, []))
        )
    snapshot.settlements = [SettlementRecord(*row) for row in settlements_result.all()]
    for user_id, display_name, email, is_guest in members_result.all():
        if user_id not in snapshot.members:
            snapshot.members[user_id] = MemberRecord(user_id, display_name, email, bool(is_guest))

    # Former members still referenced by history need names for display.
    referenced = set()
    for expense in snapshot.expenses:
        referenced.add(expense.paid_by)
        referenced.update(split.user_id for split in expense.splits)
    for settlement in snapshot.settlements:
        referenced.update((settlement.from_user, settlement.to_user))
    missing = referenced - snapshot.members.keys()
    if missing:
        users_result = await db.execute(
            select(User.id, User.display_name, User.email, User.is_guest).where(User.id.in_(missing))
        )
        for user_id, display_name, email, is_guest in users_result.all():
            snapshot.members[user_id] = MemberRecord(user_id, display_name, email, bool(is_guest))

    logger.debug(
        "Loaded snapshot for %d group(s): %d expenses, %d settlements, %d members",
        len(group_ids), len(snapshot.expenses), len(snapshot.settlements), len(snapshot.members),
    )
    return snapshot
