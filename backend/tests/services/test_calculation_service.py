import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
import pytest

from settleup.services.calculation_service import (
    ExpenseRecord,
    SettlementRecord,
    SplitRecord,
    calculate_net_balances,
    load_ledger_snapshot,
)


def make_db(*row_sets):
    """Return a mock AsyncSession whose execute() returns the preset row sets in order."""
    db = AsyncMock()
    results = []
    for rows in row_sets:
        r = MagicMock()
        r.all.return_value = list(rows)
        results.append(r)
    db.execute.side_effect = results
    return db


GROUP_ID = uuid.uuid4()
ALICE = uuid.uuid4()
BOB = uuid.uuid4()
CHARLIE = uuid.uuid4()


def expense(paid_by, amount, *splits):
    return ExpenseRecord(uuid.uuid4(), paid_by, Decimal(amount), [SplitRecord(u, Decimal(a)) for u, a in splits])


def test_payer_credited_and_split_members_debited():
    net = calculate_net_balances(
        [expense(ALICE, "50.00", (ALICE, "25.00"), (BOB, "25.00"))],
        [],
        [ALICE, BOB],
    )
    assert net == {ALICE: Decimal("25.00"), BOB: Decimal("-25.00")}


def test_members_without_activity_start_at_zero():
    net = calculate_net_balances([], [], [ALICE, BOB])
    assert net == {ALICE: Decimal("0"), BOB: Decimal("0")}


def test_settlement_credits_payer_and_debits_payee():
    net = calculate_net_balances(
        [expense(ALICE, "50.00", (ALICE, "25.00"), (BOB, "25.00"))],
        [SettlementRecord(BOB, ALICE, Decimal("25.00"))],
        [ALICE, BOB],
    )
    assert net[ALICE] == Decimal("0")
    assert net[BOB] == Decimal("0")


def test_payer_without_own_split():
    net = calculate_net_balances(
        [expense(ALICE, "30.00", (BOB, "15.00"), (CHARLIE, "15.00"))],
        [],
        [ALICE, BOB, CHARLIE],
    )
    assert net[ALICE] == Decimal("30.00")
    assert net[BOB] == Decimal("-15.00")
    assert net[CHARLIE] == Decimal("-15.00")


def test_former_member_referenced_by_history_is_tracked():
    net = calculate_net_balances(
        [expense(ALICE, "20.00", (CHARLIE, "20.00"))],
        [],
        [ALICE],
    )
    assert net[CHARLIE] == Decimal("-20.00")


def test_conservation_sum_is_zero():
    expenses = [
        expense(ALICE, "100.00", (ALICE, "33.33"), (BOB, "33.33"), (CHARLIE, "33.34")),
        expense(BOB, "45.10", (ALICE, "20.00"), (CHARLIE, "25.10")),
        expense(CHARLIE, "9.99", (CHARLIE, "9.99")),
    ]
    settlements = [SettlementRecord(CHARLIE, ALICE, Decimal("10.00"))]
    net = calculate_net_balances(expenses, settlements, [ALICE, BOB, CHARLIE])
    assert sum(net.values()) == Decimal("0")


@pytest.mark.asyncio
async def test_load_snapshot_groups_splits_by_expense():
    e1, e2 = uuid.uuid4(), uuid.uuid4()
    db = make_db(
        [(e1, ALICE, Decimal("50.00")), (e2, BOB, Decimal("10.00"))],
        [(e1, ALICE, Decimal("25.00")), (e1, BOB, Decimal("25.00")), (e2, ALICE, Decimal("10.00"))],
        [(BOB, ALICE, Decimal("5.00"))],
        [(ALICE, "Alice", "alice@example.com", False), (BOB, "Bob", "bob@example.com", True)],
    )
    snapshot = await load_ledger_snapshot(db, [GROUP_ID])

    by_id = {e.id: e for e in snapshot.expenses}
    assert [s.user_id for s in by_id[e1].splits] == [ALICE, BOB]
    assert by_id[e2].splits == [SplitRecord(ALICE, Decimal("10.00"))]
    assert snapshot.settlements == [SettlementRecord(BOB, ALICE, Decimal("5.00"))]
    assert snapshot.members[BOB].is_guest is True
    assert db.execute.await_count == 4


@pytest.mark.asyncio
async def test_load_snapshot_deduplicates_members_across_groups():
    other_group = uuid.uuid4()
    db = make_db(
        [],
        [],
        [],
        [(ALICE, "Alice", "alice@example.com", False), (BOB, "Bob", None, False), (ALICE, "Alice", "alice@example.com", False)],
    )
    snapshot = await load_ledger_snapshot(db, [GROUP_ID, other_group])
    assert sorted(snapshot.members, key=str) == sorted([ALICE, BOB], key=str)


@pytest.mark.asyncio
async def test_load_snapshot_looks_up_former_members():
    e1 = uuid.uuid4()
    db = make_db(
        [(e1, ALICE, Decimal("20.00"))],
        [(e1, CHARLIE, Decimal("20.00"))],
        [],
        [(ALICE, "Alice", "alice@example.com", False)],
        [(CHARLIE, "Charlie", "charlie@example.com", False)],
    )
    snapshot = await load_ledger_snapshot(db, [GROUP_ID])
    assert snapshot.members[CHARLIE].display_name == "Charlie"
    assert db.execute.await_count == 5


@pytest.mark.asyncio
async def test_load_snapshot_empty_scope():
    db = make_db([], [], [], [])
    snapshot = await load_ledger_snapshot(db, [GROUP_ID])
    assert snapshot.expenses == []
    assert snapshot.settlements == []
    assert snapshot.members == {}
