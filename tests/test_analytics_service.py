from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from billsplit.services.analytics_service import generate_user_analytics
from billsplit.services.currency_service import CurrencyService
from billsplit.services.insights import DEFAULT_INSIGHTS

from conftest import NOW


class FakeConverter:
    """Fixed rates, no storage, no network."""

    def __init__(self, rates=None):
        self.rates = rates or {}
        self.calls = []

    async def convert_currency(self, amount, from_currency, to_currency):
        self.calls.append((from_currency, to_currency))
        if from_currency == to_currency:
            return Decimal(str(amount))
        return Decimal(str(amount)) * self.rates[(from_currency, to_currency)]


@pytest.fixture
def converter():
    return FakeConverter({("EUR", "USD"): Decimal("2")})


@pytest.fixture
async def dinner_and_taxi(users, categories, add_expense):
    # alice paid dinner for three today, bob paid a taxi for two yesterday
    await add_expense(paid_by=1, amount=90, splits={1: 30, 2: 30, 3: 30},
                      category_id=categories["food"].id, created_at=NOW - timedelta(hours=2))
    await add_expense(paid_by=2, amount=40, splits={1: 20, 2: 20},
                      category_id=categories["transport"].id, created_at=NOW - timedelta(days=1))


async def test_empty_ledger(db, users, converter):
    report = await generate_user_analytics(db, 1, 30, "USD", converter=converter, now=NOW)

    overview = report["overview"]
    assert overview["total_spent"] == 0.0
    assert overview["avg_per_day"] == 0.0
    assert overview["spent_change"] == 0.0
    assert overview["insights"] == DEFAULT_INSIGHTS
    assert report["category_breakdown"] == []
    assert report["friend_balances"] == []
    assert [p["amount"] for p in report["spending_trend"]] == [0.0] * 7
    assert len(report["monthly_comparison"]) == 6


@pytest.mark.parametrize("period", [0, -3])
async def test_non_positive_period_is_clamped(db, users, converter, period):
    report = await generate_user_analytics(db, 1, period, "USD", converter=converter, now=NOW)

    assert report["period"] == 1
    assert report["overview"]["avg_per_day"] == 0.0


async def test_overview_totals(db, dinner_and_taxi, converter):
    report = await generate_user_analytics(db, 1, 30, "USD", converter=converter, now=NOW)
    overview = report["overview"]

    assert overview["total_spent"] == 50.0
    assert overview["total_owing"] == 20.0
    assert overview["total_owed"] == 60.0
    assert overview["avg_per_day"] == 1.67
    assert overview["active_debts"] == 1
    assert overview["active_credits"] == 2
    assert report["currency"] == "USD"
    assert report["period"] == 30


async def test_windowed_friend_balances(db, dinner_and_taxi, converter):
    report = await generate_user_analytics(db, 1, 30, "USD", converter=converter, now=NOW)

    assert report["friend_balances"] == [
        {"id": 3, "first_name": "Carol", "last_name": "Clark", "balance": 30.0, "expense_count": 1},
        {"id": 2, "first_name": "Bob", "last_name": "Brown", "balance": 10.0, "expense_count": 2},
    ]


async def test_debts_counted_when_others_paid(db, users, add_expense, converter):
    await add_expense(paid_by=2, amount=30, splits={1: 15, 2: 15}, created_at=NOW - timedelta(days=2))
    await add_expense(paid_by=3, amount=10, splits={1: 5, 3: 5}, created_at=NOW - timedelta(days=3))

    report = await generate_user_analytics(db, 1, 30, "USD", converter=converter, now=NOW)

    assert report["overview"]["active_debts"] == 2
    assert report["overview"]["active_credits"] == 0
    assert [(f["id"], f["balance"]) for f in report["friend_balances"]] == [(2, -15.0), (3, -5.0)]


async def test_category_breakdown(db, dinner_and_taxi, converter):
    report = await generate_user_analytics(db, 1, 30, "USD", converter=converter, now=NOW)

    assert report["category_breakdown"] == [
        {"name": "Food & Dining", "value": 30.0, "percentage": 60.0, "count": 1, "color": "orange"},
        {"name": "Transportation", "value": 20.0, "percentage": 40.0, "count": 1, "color": "blue"},
    ]


async def test_breakdown_percentages_sum_to_hundred(db, users, categories, add_expense, converter):
    await add_expense(paid_by=1, amount=10, splits={1: 10}, category_id=categories["food"].id)
    await add_expense(paid_by=1, amount=10, splits={1: 10}, category_id=categories["transport"].id)
    await add_expense(paid_by=1, amount=10, splits={1: 10})

    report = await generate_user_analytics(db, 1, 30, "USD", converter=converter, now=NOW)
    breakdown = report["category_breakdown"]

    assert {c["name"] for c in breakdown} == {"Food & Dining", "Transportation", "Uncategorized"}
    assert sum(c["percentage"] for c in breakdown) == pytest.approx(100, abs=0.11)
    uncategorized = next(c for c in breakdown if c["name"] == "Uncategorized")
    assert uncategorized["color"] == "#8B5CF6"


async def test_spending_trend_covers_last_seven_days(db, dinner_and_taxi, users, add_expense, converter):
    await add_expense(paid_by=1, amount=8, splits={1: 8}, created_at=NOW - timedelta(days=9))

    report = await generate_user_analytics(db, 1, 30, "USD", converter=converter, now=NOW)
    trend = report["spending_trend"]

    assert [p["date"] for p in trend] == ["Oct 13", "Oct 14", "Oct 15", "Oct 16", "Oct 17", "Oct 18", "Oct 19"]
    assert [p["amount"] for p in trend] == [0.0, 0.0, 0.0, 0.0, 0.0, 20.0, 30.0]


async def test_monthly_comparison_uses_its_own_ranges(db, users, add_expense, converter):
    await add_expense(paid_by=1, amount=12, splits={1: 12}, created_at=NOW - timedelta(days=2))
    await add_expense(paid_by=2, amount=50, splits={1: 25, 2: 25}, created_at=NOW.replace(month=8, day=15))
    await add_expense(paid_by=1, amount=7, splits={1: 7}, created_at=NOW.replace(month=3, day=1))

    report = await generate_user_analytics(db, 1, 7, "USD", converter=converter, now=NOW)

    assert report["monthly_comparison"] == [
        {"month": "May", "amount": 0.0},
        {"month": "Jun", "amount": 0.0},
        {"month": "Jul", "amount": 0.0},
        {"month": "Aug", "amount": 25.0},
        {"month": "Sep", "amount": 0.0},
        {"month": "Oct", "amount": 12.0},
    ]
    assert report["overview"]["total_spent"] == 12.0


async def test_spent_change_against_previous_window(db, users, add_expense, converter):
    await add_expense(paid_by=1, amount=50, splits={1: 50}, created_at=NOW - timedelta(days=1))
    await add_expense(paid_by=1, amount=20, splits={1: 20}, created_at=NOW - timedelta(days=10))

    report = await generate_user_analytics(db, 1, 7, "USD", converter=converter, now=NOW)

    assert report["overview"]["spent_change"] == 150.0
    assert any(i.startswith("Your spending increased by 150.0%") for i in report["overview"]["insights"])


async def test_spent_change_zero_without_previous_spend(db, users, add_expense, converter):
    await add_expense(paid_by=1, amount=500, splits={1: 500}, created_at=NOW - timedelta(days=1))

    report = await generate_user_analytics(db, 1, 7, "USD", converter=converter, now=NOW)

    assert report["overview"]["spent_change"] == 0.0


async def test_amounts_converted_to_report_currency(db, users, add_expense, converter):
    await add_expense(paid_by=2, amount=20, splits={1: 10, 2: 10}, currency="EUR",
                      created_at=NOW - timedelta(days=1))

    report = await generate_user_analytics(db, 1, 30, "USD", converter=converter, now=NOW)

    assert report["overview"]["total_spent"] == 20.0
    assert report["overview"]["total_owing"] == 20.0
    assert report["monthly_comparison"][-1]["amount"] == 20.0
    assert ("EUR", "USD") in converter.calls


async def test_insights_reflect_window(db, dinner_and_taxi, converter):
    report = await generate_user_analytics(db, 1, 30, "USD", converter=converter, now=NOW)

    assert report["overview"]["insights"] == [
        "Great job keeping your daily spending under control!",
        "Food & Dining accounts for 60.0% of your spending. Consider if this aligns with your priorities.",
        "Food and dining represents 60.0% of your spending. Meal planning could help reduce costs.",
        "Others owe you $40.00 more than you owe. Time to collect!",
    ]


async def test_debt_counted_even_when_netted_into_credit(db, users, add_expense, converter):
    # alice owes bob 5 for lunch but bob owes her 25 for the hotel
    await add_expense(paid_by=2, amount=10, splits={1: 5, 2: 5}, created_at=NOW - timedelta(days=1))
    await add_expense(paid_by=1, amount=50, splits={1: 25, 2: 25}, created_at=NOW - timedelta(days=2))

    report = await generate_user_analytics(db, 1, 30, "USD", converter=converter, now=NOW)

    assert report["overview"]["active_debts"] == 1
    assert report["overview"]["active_credits"] == 1
    assert [(f["id"], f["balance"]) for f in report["friend_balances"]] == [(2, 20.0)]


async def test_failed_rate_cache_write_does_not_break_report(db, users, add_expense, monkeypatch):
    await add_expense(paid_by=2, amount=20, splits={1: 10, 2: 10}, currency="EUR",
                      created_at=NOW - timedelta(days=1))
    await add_expense(paid_by=1, amount=6, splits={1: 3, 3: 3}, created_at=NOW - timedelta(days=2))

    async def failing_commit():
        raise SQLAlchemyError("duplicate rate row")

    monkeypatch.setattr(CurrencyService, "_fetch_rate", lambda self, src, dst: Decimal("2"))
    monkeypatch.setattr(db, "commit", failing_commit)

    report = await generate_user_analytics(db, 1, 30, "USD", converter=CurrencyService(db, api_key=""), now=NOW)

    assert report["overview"]["total_spent"] == 23.0
    assert report["overview"]["total_owing"] == 20.0
    assert report["overview"]["total_owed"] == 3.0
    assert [(f["id"], f["balance"]) for f in report["friend_balances"]] == [(2, -20.0), (3, 3.0)]
