import uuid
from decimal import Decimal
from pydantic import BaseModel


class MemberSummary(BaseModel):
    id: uuid.UUID
    display_name: str
    email: str | None = None
    is_guest: bool = False


class CounterpartyBalance(BaseModel):
    user: MemberSummary
    amount: Decimal


class DebtEntry(BaseModel):
    from_user: MemberSummary
    to_user: MemberSummary
    amount: Decimal


class GroupBalancesResponse(BaseModel):
    group_id: uuid.UUID
    group_name: str
    you_owe: list[CounterpartyBalance]
    you_are_owed: list[CounterpartyBalance]
    all_debts: list[DebtEntry]


class UserBalancesResponse(BaseModel):
    you_owe: list[CounterpartyBalance]
    you_are_owed: list[CounterpartyBalance]
    total_owing: Decimal = Decimal("0")
    total_owed: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")
