from typing import List
from billsplit.schemas.base import CamelModel
from billsplit.schemas.balances import BalancesOut
from billsplit.schemas.expense import ExpenseDetailOut
from billsplit.schemas.group import GroupOut

class DashboardOut(CamelModel):
    balances: BalancesOut
    recent_expenses: List[ExpenseDetailOut]
    groups: List[GroupOut]
