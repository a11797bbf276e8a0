from typing import List
from billsplit.schemas.base import CamelModel

class OverviewOut(CamelModel):
    total_spent: float
    total_owing: float
    total_owed: float
    avg_per_day: float
    spent_change: float
    active_debts: int
    active_credits: int
    insights: List[str]

class TrendPoint(CamelModel):
    date: str
    amount: float

class CategorySlice(CamelModel):
    name: str
    value: float
    percentage: float
    count: int
    color: str

class MonthPoint(CamelModel):
    month: str
    amount: float

class WindowFriendBalance(CamelModel):
    id: int
    first_name: str | None = None
    last_name: str | None = None
    balance: float
    expense_count: int

class AnalyticsOut(CamelModel):
    overview: OverviewOut
    spending_trend: List[TrendPoint]
    category_breakdown: List[CategorySlice]
    monthly_comparison: List[MonthPoint]
    friend_balances: List[WindowFriendBalance]
    currency: str
    period: int
