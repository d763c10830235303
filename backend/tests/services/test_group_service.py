import uuid
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
import pytest

from settleup.core.exceptions import AccessDenied, InvalidOperation, NotFound
from settleup.models.group import GroupMember
from settleup.services.calculation_service import ExpenseRecord, LedgerSnapshot, SettlementRecord, SplitRecord
from settleup.services.group_service import add_member, remove_member

GROUP_ID = uuid.uuid4()
ALICE = uuid.uuid4()
BOB = uuid.uuid4()
CHARLIE = uuid.uuid4()


def group_with(*member_ids, creator=ALICE):
    return SimpleNamespace(
        id=GROUP_ID,
        created_by=creator,
        members=[SimpleNamespace(user_id=m) for m in member_ids],
    )


def owes(amount):
    """Alice paid for Bob alone."""
    return LedgerSnapshot(
        expenses=[ExpenseRecord(uuid.uuid4(), ALICE, Decimal(amount), [SplitRecord(BOB, Decimal(amount))])],
    )


def patched(group, snapshot=None):
    snapshot = snapshot or LedgerSnapshot()
    return (
        patch("settleup.services.group_service.get_group", return_value=group),
        patch("settleup.services.group_service.load_ledger_snapshot", return_value=snapshot),
    )


@pytest.mark.asyncio
async def test_member_with_unsettled_balance_cannot_be_removed():
    db = AsyncMock()
    group_patch, snapshot_patch = patched(group_with(ALICE, BOB), owes("12.50"))
    with group_patch, snapshot_patch:
        with pytest.raises(InvalidOperation, match="12.50"):
            await remove_member(db, ALICE, GROUP_ID, BOB)
    db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_settled_member_can_leave():
    db = AsyncMock()
    settled = owes("12.50")
    settled.settlements.append(SettlementRecord(BOB, ALICE, Decimal("12.50")))
    group_patch, snapshot_patch = patched(group_with(ALICE, BOB), settled)
    with group_patch, snapshot_patch:
        await remove_member(db, BOB, GROUP_ID, BOB)
    db.execute.assert_awaited_once()
    db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_creator_cannot_leave():
    group_patch, snapshot_patch = patched(group_with(ALICE, BOB))
    with group_patch, snapshot_patch:
        with pytest.raises(InvalidOperation):
            await remove_member(AsyncMock(), ALICE, GROUP_ID, ALICE)


@pytest.mark.asyncio
async def test_only_creator_removes_others():
    group_patch, snapshot_patch = patched(group_with(ALICE, BOB, CHARLIE))
    with group_patch, snapshot_patch:
        with pytest.raises(AccessDenied):
            await remove_member(AsyncMock(), BOB, GROUP_ID, CHARLIE)


@pytest.mark.asyncio
async def test_last_member_cannot_be_removed():
    group_patch, snapshot_patch = patched(group_with(ALICE))
    with group_patch, snapshot_patch:
        with pytest.raises(InvalidOperation):
            await remove_member(AsyncMock(), ALICE, GROUP_ID, ALICE)


@pytest.mark.asyncio
async def test_outsider_cannot_remove_members():
    group_patch, snapshot_patch = patched(group_with(ALICE, BOB))
    with group_patch, snapshot_patch:
        with pytest.raises(AccessDenied):
            await remove_member(AsyncMock(), CHARLIE, GROUP_ID, BOB)


@pytest.mark.asyncio
async def test_removing_unknown_member():
    group_patch, snapshot_patch = patched(group_with(ALICE, BOB))
    with group_patch, snapshot_patch:
        with pytest.raises(NotFound):
            await remove_member(AsyncMock(), ALICE, GROUP_ID, CHARLIE)


@pytest.mark.asyncio
async def test_unknown_email_creates_guest_member():
    db = AsyncMock()
    db.add = MagicMock()
    no_user = MagicMock()
    no_user.scalar_one_or_none.return_value = None
    db.execute.return_value = no_user

    with patch("settleup.services.group_service.require_group_member"):
        member = await add_member(db, ALICE, GROUP_ID, " Dana ", "Dana@Example.com ")

    assert isinstance(member, GroupMember)
    assert member.group_id == GROUP_ID
    assert member.user.is_guest is True
    assert member.user.email == "dana@example.com"
    assert member.user.display_name == "Dana"
    db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_adding_existing_member_fails():
    db = AsyncMock()
    existing = MagicMock()
    existing.scalar_one_or_none.return_value = SimpleNamespace(id=BOB)
    db.execute.return_value = existing

    with patch("settleup.services.group_service.require_group_member"), \
         patch("settleup.services.group_service.is_group_member", return_value=True):
        with pytest.raises(InvalidOperation):
            await add_member(db, ALICE, GROUP_ID, "Bob", "bob@example.com")
