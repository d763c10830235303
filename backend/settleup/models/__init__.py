from settleup.models.user import User
from settleup.models.group import Group, GroupMember, GroupRole
from settleup.models.expense import Expense, ExpenseSplit, SplitType
from settleup.models.settlement import Settlement, SettlementMethod, SettlementStatus

__all__ = [
    "User", "Group", "GroupMember", "GroupRole",
    "Expense", "ExpenseSplit", "SplitType",
    "Settlement", "SettlementMethod", "SettlementStatus",
]
