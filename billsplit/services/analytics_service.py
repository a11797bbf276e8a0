import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from billsplit.core.config import settings
from billsplit.core.utils import HUNDRED, ZERO, money, percent, pround, qround, safe_div
from billsplit.models.category import ExpenseCategory
from billsplit.models.expense import Expense
from billsplit.models.expense_split import ExpenseSplit
from billsplit.services.currency_service import CurrencyService
from billsplit.services.insights import generate_insights
from billsplit.services.user_service import get_users_by_ids

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
UNCATEGORIZED_COLOR = "#8B5CF6"
TREND_DAYS = 7
COMPARISON_MONTHS = 6


async def generate_user_analytics(
    db: AsyncSession,
    user_id: int,
    period_days: int = 30,
    target_currency: str = "USD",
    converter: Optional[CurrencyService] = None,
    now: Optional[datetime] = None,
):
    """
    Spending report for one user over the last ``period_days`` days.

    Every split the user carries in the window counts as spending, whoever
    paid. Windowed balances follow the lifetime balance convention: positive
    means the counterparty owes the user. The monthly comparison and the
    previous-period total are separate aggregates over their own date ranges.
    """
    period_days = max(int(period_days), 1)
    now = now or datetime.now(timezone.utc)
    start = now - timedelta(days=period_days)
    converter = converter or CurrencyService(db)

    # Plain columns only: a failed rate-cache write rolls the session back and
    # expires any loaded entity
    rows_q = (
        select(
            ExpenseSplit.amount,
            Expense.id.label("expense_id"),
            Expense.paid_by,
            Expense.currency,
            Expense.created_at,
            ExpenseCategory.id.label("category_id"),
            ExpenseCategory.name.label("category_name"),
            ExpenseCategory.color.label("category_color"),
        )
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .outerjoin(ExpenseCategory, ExpenseCategory.id == Expense.category_id)
        .where(
            ExpenseSplit.user_id == user_id,
            Expense.created_at >= start,
            Expense.created_at <= now,
        )
        .order_by(Expense.created_at.desc(), Expense.id.desc())
    )
    rows = (await db.execute(rows_q)).all()

    lent_by_expense = await _other_splits(
        db, user_id, [row.expense_id for row in rows if row.paid_by == user_id]
    )

    total_spent = ZERO
    total_owing = ZERO
    total_owed = ZERO
    categories: Dict[Optional[int], dict] = {}
    daily: Dict[str, Decimal] = {}
    counterparties: Dict[int, dict] = {}
    creditors = set()

    for row in rows:
        currency = row.currency or settings.DEFAULT_CURRENCY
        converted = await converter.convert_currency(row.amount, currency, target_currency)

        total_spent += converted

        if row.paid_by != user_id:
            total_owing += converted
            creditors.add(row.paid_by)
            entry = counterparties.setdefault(row.paid_by, {"balance": ZERO, "count": 0})
            entry["balance"] -= converted
            entry["count"] += 1
        else:
            for owner_id, amount in lent_by_expense.get(row.expense_id, []):
                lent = await converter.convert_currency(amount, currency, target_currency)
                total_owed += lent
                entry = counterparties.setdefault(owner_id, {"balance": ZERO, "count": 0})
                entry["balance"] += lent
                entry["count"] += 1

        bucket = categories.setdefault(row.category_id, {
            "name": row.category_name if row.category_id is not None else UNCATEGORIZED,
            "color": row.category_color if row.category_id is not None else UNCATEGORIZED_COLOR,
            "amount": ZERO,
            "count": 0,
        })
        bucket["amount"] += converted
        bucket["count"] += 1

        day_key = _utc_date(row.created_at).isoformat()
        daily[day_key] = daily.get(day_key, ZERO) + converted

    spending_trend = _spending_trend(daily, now)

    breakdown = sorted(categories.values(), key=lambda c: c["amount"], reverse=True)
    for bucket in breakdown:
        bucket["percentage"] = pround(safe_div(bucket["amount"], total_spent) * HUNDRED)

    monthly_comparison = []
    for month_start, month_end in _month_ranges(now):
        amount = await _sum_spent(db, converter, user_id, target_currency, month_start, month_end)
        monthly_comparison.append({"month": month_start.strftime("%b"), "amount": money(amount)})

    previous_spent = await _sum_spent(
        db, converter, user_id, target_currency, start - timedelta(days=period_days), start
    )
    spent_change = safe_div(total_spent - previous_spent, previous_spent) * HUNDRED if previous_spent > 0 else ZERO

    avg_per_day = total_spent / Decimal(period_days)

    insights = generate_insights(
        total_spent=total_spent,
        avg_per_day=avg_per_day,
        category_breakdown=breakdown,
        spent_change=spent_change,
        total_owing=total_owing,
        total_owed=total_owed,
        currency=target_currency,
    )

    users = await get_users_by_ids(db, counterparties.keys())
    friend_balances = [
        {
            "id": uid,
            "first_name": users[uid].first_name,
            "last_name": users[uid].last_name,
            "balance": money(entry["balance"]),
            "expense_count": entry["count"],
        }
        for uid, entry in sorted(counterparties.items(), key=lambda kv: abs(kv[1]["balance"]), reverse=True)
    ]

    logger.debug(
        "Analytics for user %s: %d rows over %d days in %s", user_id, len(rows), period_days, target_currency
    )

    return {
        "overview": {
            "total_spent": money(total_spent),
            "total_owing": money(total_owing),
            "total_owed": money(total_owed),
            "avg_per_day": money(avg_per_day),
            "spent_change": percent(spent_change),
            "active_debts": len(creditors),
            "active_credits": sum(1 for e in counterparties.values() if e["balance"] > 0),
            "insights": insights,
        },
        "spending_trend": spending_trend,
        "category_breakdown": [
            {
                "name": c["name"],
                "value": money(c["amount"]),
                "percentage": float(c["percentage"]),
                "count": c["count"],
                "color": c["color"],
            }
            for c in breakdown
        ],
        "monthly_comparison": monthly_comparison,
        "friend_balances": friend_balances,
        "currency": target_currency,
        "period": period_days,
    }


async def _other_splits(db: AsyncSession, user_id: int, expense_ids: List[int]):
    if not expense_ids:
        return {}

    q = (
        select(ExpenseSplit.expense_id, ExpenseSplit.user_id, ExpenseSplit.amount)
        .where(ExpenseSplit.expense_id.in_(expense_ids), ExpenseSplit.user_id != user_id)
        .order_by(ExpenseSplit.id)
    )
    res = await db.execute(q)

    by_expense = {}
    for expense_id, owner_id, amount in res.all():
        by_expense.setdefault(expense_id, []).append((owner_id, amount))
    return by_expense


async def _sum_spent(db, converter, user_id: int, target_currency: str, start: datetime, end: datetime) -> Decimal:
    """Sum of the user's splits with start <= created_at < end, in the target currency."""
    q = (
        select(Expense.currency, func.coalesce(func.sum(ExpenseSplit.amount), 0))
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(
            ExpenseSplit.user_id == user_id,
            Expense.created_at >= start,
            Expense.created_at < end,
        )
        .group_by(Expense.currency)
    )
    res = await db.execute(q)

    total = ZERO
    for currency, amount in res.all():
        total += await converter.convert_currency(
            Decimal(str(amount or 0)), currency or settings.DEFAULT_CURRENCY, target_currency
        )
    return qround(total)


def _utc_date(value: datetime) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def _spending_trend(daily: Dict[str, Decimal], now: datetime):
    today = _utc_date(now)
    trend = []
    for i in range(TREND_DAYS - 1, -1, -1):
        day = today - timedelta(days=i)
        trend.append({
            "date": f"{day.strftime('%b')} {day.day}",
            "amount": money(daily.get(day.isoformat(), ZERO)),
        })
    return trend


def _month_ranges(now: datetime):
    """[first of month, first of next month) for the current month and the five before it."""
    ranges = []
    for i in range(COMPARISON_MONTHS - 1, -1, -1):
        year, month = now.year, now.month - i
        while month < 1:
            month += 12
            year -= 1
        start = now.replace(year=year, month=month, day=1, hour=0, minute=0, second=0, microsecond=0)
        if month == 12:
            end = start.replace(year=year + 1, month=1)
        else:
            end = start.replace(month=month + 1)
        ranges.append((start, end))
    return ranges
