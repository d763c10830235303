"""
Split calculator.

Turns an expense total and a split policy into per-member amounts that sum
to the total. All arithmetic is done in integer cents; the last listed
member absorbs any rounding residual, so member order matters for EQUAL
and PERCENTAGE splits.
"""
import logging
import uuid
from decimal import Decimal, InvalidOperation
from typing import NamedTuple

from settleup.core.exceptions import InvalidSplit, InvalidSplitType
from settleup.models.expense import SplitType
from settleup.utils.currency_utils import from_cents, sum_money, to_cents, to_money

logger = logging.getLogger(__name__)

PERCENTAGE_TOLERANCE = Decimal("0.01")
# Largest value a Numeric(12, 2) column holds.
MAX_SPLIT_AMOUNT = Decimal("9999999999.99")


class SplitEntry(NamedTuple):
    user_id: uuid.UUID
    amount: Decimal | None = None
    percentage: Decimal | None = None


class SplitShare(NamedTuple):
    user_id: uuid.UUID
    amount: Decimal


def parse_split_type(value) -> SplitType:
    if isinstance(value, SplitType):
        return value
    if isinstance(value, str):
        try:
            return SplitType(value.strip().upper())
        except ValueError:
            pass
    raise InvalidSplitType(f"Invalid split type: {value!r}")


def _equal_cents(total_cents: int, n: int) -> list[int]:
    per_person = to_cents(from_cents(total_cents) / n)
    return [per_person] * (n - 1) + [total_cents - per_person * (n - 1)]


def _exact_shares(entries: list[SplitEntry]) -> list[SplitShare]:
    shares = []
    for entry in entries:
        if entry.amount is None:
            raise InvalidSplit(f"Invalid split: missing amount for member {entry.user_id}")
        try:
            amount = to_money(entry.amount)
        except InvalidOperation as e:
            raise InvalidSplit(f"Invalid split: bad amount for member {entry.user_id}") from e
        if not amount.is_finite() or amount > MAX_SPLIT_AMOUNT:
            raise InvalidSplit(f"Invalid split: bad amount for member {entry.user_id}")
        if amount < 0:
            raise InvalidSplit("Invalid split: amounts cannot be negative")
        shares.append(SplitShare(entry.user_id, amount))
    return shares


def _percentage_cents(total: Decimal, entries: list[SplitEntry]) -> list[int]:
    percentages = []
    for entry in entries:
        if entry.percentage is None:
            raise InvalidSplit(f"Invalid split: missing percentage for member {entry.user_id}")
        try:
            pct = Decimal(str(entry.percentage))
        except InvalidOperation as e:
            raise InvalidSplit(f"Invalid split: bad percentage for member {entry.user_id}") from e
        if not pct.is_finite():
            raise InvalidSplit(f"Invalid split: bad percentage for member {entry.user_id}")
        if pct < 0:
            raise InvalidSplit("Invalid split: percentages cannot be negative")
        percentages.append(pct)

    if abs(sum(percentages) - 100) > PERCENTAGE_TOLERANCE:
        raise InvalidSplit("Invalid split: Percentages must sum to 100")

    cents = [to_cents(total * pct / 100) for pct in percentages]
    cents[-1] += to_cents(total) - sum(cents)
    return cents


def calculate_splits(total, split_type, entries: list[SplitEntry]) -> list[SplitShare]:
    """
    Compute exact per-member split amounts.

    Args:
        total: Positive expense amount.
        split_type: EQUAL, EXACT or PERCENTAGE (enum or string).
        entries: Members in order; EXACT entries carry ``amount``,
            PERCENTAGE entries carry ``percentage``.

    Returns:
        One SplitShare per entry, in input order.

    Raises:
        InvalidSplitType: unknown policy.
        InvalidSplit: empty or duplicated members, non-positive total,
            missing/negative values, or percentages not summing to 100.
    """
    policy = parse_split_type(split_type)
    total = to_money(total)
    if total <= 0:
        raise InvalidSplit("Invalid split: amount must be positive")
    if not entries:
        raise InvalidSplit("Invalid split: at least one member is required")

    user_ids = [entry.user_id for entry in entries]
    if len(set(user_ids)) != len(user_ids):
        raise InvalidSplit("Invalid split: a member is listed more than once")

    if policy is SplitType.exact:
        return _exact_shares(entries)

    if policy is SplitType.equal:
        cents = _equal_cents(to_cents(total), len(entries))
    else:
        cents = _percentage_cents(total, entries)

    if cents[-1] < 0:
        raise InvalidSplit(f"Invalid split: {total} is too small to split this way")

    shares = [SplitShare(uid, from_cents(c)) for uid, c in zip(user_ids, cents)]
    logger.debug("%s split of %s across %d members", policy.value, total, len(shares))
    return shares


def check_split_total(total, shares: list[SplitShare], tolerance: Decimal = Decimal("0")) -> None:
    """Raise InvalidSplit if the shares drift from the total by more than tolerance."""
    total = to_money(total)
    split_sum = sum_money(share.amount for share in shares)
    if abs(split_sum - total) > tolerance:
        raise InvalidSplit(
            f"Invalid split: Total splits ({split_sum}) must equal expense amount ({total})"
        )
