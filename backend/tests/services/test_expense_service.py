import uuid
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
import pytest

from settleup.core.exceptions import AccessDenied, InvalidSplit, InvalidSplitType, NotFound
from settleup.models.expense import Expense, SplitType
from settleup.services.expense_service import create_expense, delete_expense
from settleup.services.split_service import SplitEntry

GROUP_ID = uuid.uuid4()
ALICE = uuid.uuid4()
BOB = uuid.uuid4()
CHARLIE = uuid.uuid4()
OUTSIDER = uuid.uuid4()


def make_session():
    """Mock AsyncSession that hands back whatever was last added when the expense is re-read."""
    db = AsyncMock()
    db.add = MagicMock()
    result = MagicMock()
    result.scalar_one.side_effect = lambda: db.add.call_args.args[0]
    db.execute.return_value = result
    return db


def members(*ids):
    return patch("settleup.services.expense_service.list_group_member_ids", return_value=set(ids))


@pytest.mark.asyncio
async def test_create_equal_expense_persists_splits_in_one_commit():
    db = make_session()
    with patch("settleup.services.expense_service.require_group_member"), members(ALICE, BOB, CHARLIE):
        expense = await create_expense(
            db, ALICE, GROUP_ID, " Dinner ", Decimal("100"), "EQUAL",
            [SplitEntry(ALICE), SplitEntry(BOB), SplitEntry(CHARLIE)],
        )

    assert isinstance(expense, Expense)
    assert expense.description == "Dinner"
    assert expense.amount == Decimal("100.00")
    assert expense.split_type is SplitType.equal
    assert [(s.user_id, s.amount) for s in expense.splits] == [
        (ALICE, Decimal("33.33")), (BOB, Decimal("33.33")), (CHARLIE, Decimal("33.34")),
    ]
    db.add.assert_called_once()
    db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_exact_split_within_tolerance_is_accepted():
    db = make_session()
    entries = [SplitEntry(ALICE, amount=Decimal("33.33")), SplitEntry(BOB, amount=Decimal("33.33")), SplitEntry(CHARLIE, amount=Decimal("33.33"))]
    with patch("settleup.services.expense_service.require_group_member"), members(ALICE, BOB, CHARLIE):
        expense = await create_expense(db, ALICE, GROUP_ID, "Tickets", Decimal("100.00"), SplitType.exact, entries)
    assert sum(s.amount for s in expense.splits) == Decimal("99.99")


@pytest.mark.asyncio
async def test_exact_split_mismatch_is_rejected_and_nothing_written():
    db = make_session()
    entries = [SplitEntry(ALICE, amount=Decimal("40.00")), SplitEntry(BOB, amount=Decimal("40.00"))]
    with patch("settleup.services.expense_service.require_group_member"), members(ALICE, BOB):
        with pytest.raises(InvalidSplit):
            await create_expense(db, ALICE, GROUP_ID, "Groceries", Decimal("100.00"), "EXACT", entries)
    db.add.assert_not_called()
    db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_invalid_split_type_is_rejected():
    db = make_session()
    with patch("settleup.services.expense_service.require_group_member"), members(ALICE, BOB):
        with pytest.raises(InvalidSplitType):
            await create_expense(db, ALICE, GROUP_ID, "Taxi", Decimal("10.00"), "SHARES", [SplitEntry(ALICE)])
    db.add.assert_not_called()


@pytest.mark.asyncio
async def test_split_member_outside_group_is_rejected():
    db = make_session()
    with patch("settleup.services.expense_service.require_group_member"), members(ALICE, BOB):
        with pytest.raises(InvalidSplit):
            await create_expense(db, ALICE, GROUP_ID, "Taxi", Decimal("10.00"), "EQUAL", [SplitEntry(ALICE), SplitEntry(OUTSIDER)])


@pytest.mark.asyncio
async def test_non_member_payer_is_denied():
    db = make_session()
    with patch("settleup.services.expense_service.require_group_member", side_effect=AccessDenied("denied")):
        with pytest.raises(AccessDenied):
            await create_expense(db, OUTSIDER, GROUP_ID, "Taxi", Decimal("10.00"), "EQUAL", [SplitEntry(OUTSIDER)])
    db.add.assert_not_called()


def lookup_session(expense):
    db = AsyncMock()
    result = MagicMock()
    result.scalar_one_or_none.return_value = expense
    db.execute.return_value = result
    return db


@pytest.mark.asyncio
async def test_payer_can_delete_expense():
    expense = SimpleNamespace(id=uuid.uuid4(), paid_by=ALICE, group_id=GROUP_ID)
    db = lookup_session(expense)
    with patch("settleup.services.expense_service.is_group_member", return_value=True):
        group_id = await delete_expense(db, ALICE, expense.id)
    assert group_id == GROUP_ID
    db.delete.assert_awaited_once_with(expense)
    db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_only_payer_can_delete_expense():
    expense = SimpleNamespace(id=uuid.uuid4(), paid_by=ALICE, group_id=GROUP_ID)
    db = lookup_session(expense)
    with pytest.raises(AccessDenied):
        await delete_expense(db, BOB, expense.id)
    db.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_former_member_cannot_delete_expense():
    expense = SimpleNamespace(id=uuid.uuid4(), paid_by=ALICE, group_id=GROUP_ID)
    db = lookup_session(expense)
    with patch("settleup.services.expense_service.is_group_member", return_value=False):
        with pytest.raises(AccessDenied):
            await delete_expense(db, ALICE, expense.id)


@pytest.mark.asyncio
async def test_delete_missing_expense():
    db = lookup_session(None)
    with pytest.raises(NotFound):
        await delete_expense(db, ALICE, uuid.uuid4())
