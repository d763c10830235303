import logging
import uuid
from decimal import Decimal
from typing import NamedTuple

from sqlalchemy.ext.asyncio import AsyncSession

from settleup.core.exceptions import NotFound
from settleup.services.calculation_service import (
    SETTLED_THRESHOLD,
    LedgerSnapshot,
    MemberRecord,
    calculate_net_balances,
    load_ledger_snapshot,
)
from settleup.services.group_service import get_group, list_user_group_ids, require_group_member
from settleup.utils.currency_utils import CENT

logger = logging.getLogger(__name__)


class Transfer(NamedTuple):
    from_user: uuid.UUID
    to_user: uuid.UUID
    amount: Decimal


def simplify_debts(net_balances: dict[uuid.UUID, Decimal]) -> list[Transfer]:
    """
    Greedy net-balance settlement: repeatedly pay the largest creditor from the
    largest debtor. Members within 0.01 of zero are treated as settled.
    Equal amounts are ordered by str(user_id) so the output is deterministic;
    which exact pairs come out for ties is not part of the contract, only the
    net effect per member is.
    """
    creditors = []
    debtors = []
    for user_id, amount in net_balances.items():
        if amount > SETTLED_THRESHOLD:
            creditors.append([user_id, amount])
        elif amount < -SETTLED_THRESHOLD:
            debtors.append([user_id, -amount])

    creditors.sort(key=lambda x: (-x[1], str(x[0])))
    debtors.sort(key=lambda x: (-x[1], str(x[0])))

    transfers = []
    i, j = 0, 0
    while i < len(creditors) and j < len(debtors):
        creditor_id, credit_amount = creditors[i]
        debtor_id, debt_amount = debtors[j]
        amount = min(credit_amount, debt_amount)
        transfers.append(Transfer(debtor_id, creditor_id, amount.quantize(CENT)))
        creditors[i][1] -= amount
        debtors[j][1] -= amount
        if creditors[i][1] < SETTLED_THRESHOLD:
            i += 1
        if debtors[j][1] < SETTLED_THRESHOLD:
            j += 1

    return transfers


def _member_dict(members: dict[uuid.UUID, MemberRecord], user_id: uuid.UUID) -> dict:
    member = members.get(user_id)
    if member is None:
        return {"id": user_id, "display_name": "Unknown", "email": None, "is_guest": False}
    return member._asdict()


def _simplify_snapshot(snapshot: LedgerSnapshot) -> list[Transfer]:
    net = calculate_net_balances(snapshot.expenses, snapshot.settlements, snapshot.members.keys())
    transfers = simplify_debts(net)
    logger.debug("Simplified %d balances into %d transfers", len(net), len(transfers))
    return transfers


def _split_for_user(transfers: list[Transfer], members: dict, user_id: uuid.UUID) -> tuple[list, list]:
    you_owe = []
    you_are_owed = []
    for transfer in transfers:
        if transfer.from_user == user_id:
            you_owe.append({"user": _member_dict(members, transfer.to_user), "amount": transfer.amount})
        elif transfer.to_user == user_id:
            you_are_owed.append({"user": _member_dict(members, transfer.from_user), "amount": transfer.amount})
    return you_owe, you_are_owed


async def get_group_balances(db: AsyncSession, group_id: uuid.UUID, user_id: uuid.UUID) -> dict:
    """
    Simplified debts for one group, seen from the requesting member.
    Raises AccessDenied before loading anything if the requester is not a member.
    """
    await require_group_member(db, group_id, user_id)
    group = await get_group(db, group_id)
    if not group:
        raise NotFound("Group not found")

    snapshot = await load_ledger_snapshot(db, [group_id])
    transfers = _simplify_snapshot(snapshot)
    you_owe, you_are_owed = _split_for_user(transfers, snapshot.members, user_id)

    return {
        "group_id": group.id,
        "group_name": group.name,
        "you_owe": you_owe,
        "you_are_owed": you_are_owed,
        "all_debts": [
            {
                "from_user": _member_dict(snapshot.members, t.from_user),
                "to_user": _member_dict(snapshot.members, t.to_user),
                "amount": t.amount,
            }
            for t in transfers
        ],
    }


async def get_user_balances(db: AsyncSession, user_id: uuid.UUID) -> dict:
    """
    Cross-group summary: every group of the user is pooled into one ledger
    before simplifying, so a debt in one group and a credit in another with
    the same counterparty cancel out.
    """
    group_ids = await list_user_group_ids(db, user_id)
    if group_ids:
        snapshot = await load_ledger_snapshot(db, group_ids)
        transfers = _simplify_snapshot(snapshot)
    else:
        snapshot, transfers = LedgerSnapshot(), []

    you_owe, you_are_owed = _split_for_user(transfers, snapshot.members, user_id)
    total_owing = sum((d["amount"] for d in you_owe), Decimal("0")).quantize(CENT)
    total_owed = sum((d["amount"] for d in you_are_owed), Decimal("0")).quantize(CENT)

    return {
        "you_owe": you_owe,
        "you_are_owed": you_are_owed,
        "total_owing": total_owing,
        "total_owed": total_owed,
        "net_balance": (total_owed - total_owing).quantize(CENT),
    }
