from decimal import Decimal
from typing import List, Sequence
from billsplit.core.utils import HUNDRED, ZERO, pround, safe_div, to_decimal
from billsplit.services.currency_service import format_currency

MAX_INSIGHTS = 6

HIGH_DAILY_SPEND = Decimal("50")
LOW_DAILY_SPEND = Decimal("10")
CATEGORY_CONCENTRATION_PCT = Decimal("40")
FOOD_SHARE_PCT = Decimal("30")
SPEND_CHANGE_PCT = Decimal("20")
FOOD_KEYWORDS = ("food", "dining", "restaurant")

DEFAULT_INSIGHTS = [
    "Keep tracking your expenses to identify spending patterns and opportunities for savings.",
    "Regular expense reviews help maintain financial awareness and control.",
]


def generate_insights(
    total_spent,
    avg_per_day,
    category_breakdown: Sequence[dict],
    spent_change,
    total_owing,
    total_owed,
    currency: str = "USD",
) -> List[str]:
    """
    Rule-based spending tips, evaluated in a fixed order and capped at six.

    ``category_breakdown`` must already be sorted by amount, largest first;
    each entry needs ``name``, ``amount`` and ``percentage``. Thresholds are
    read in the report currency.
    """
    total_spent = to_decimal(total_spent)
    avg_per_day = to_decimal(avg_per_day)
    spent_change = to_decimal(spent_change)
    total_owing = to_decimal(total_owing)
    total_owed = to_decimal(total_owed)

    insights: List[str] = []

    if avg_per_day > HIGH_DAILY_SPEND:
        insights.append(
            f"You're spending more than {format_currency(HIGH_DAILY_SPEND, currency)} per day on average. "
            "Consider setting a daily budget."
        )
    elif total_spent > 0 and avg_per_day < LOW_DAILY_SPEND:
        insights.append("Great job keeping your daily spending under control!")

    if category_breakdown:
        top = category_breakdown[0]
        if to_decimal(top["percentage"]) > CATEGORY_CONCENTRATION_PCT:
            insights.append(
                f"{top['name']} accounts for {pround(to_decimal(top['percentage']))}% of your spending. "
                "Consider if this aligns with your priorities."
            )

        food_total = sum(
            (to_decimal(c["amount"]) for c in category_breakdown if _is_food(c["name"])),
            ZERO,
        )
        food_pct = safe_div(food_total, total_spent) * HUNDRED
        if food_pct > FOOD_SHARE_PCT:
            insights.append(
                f"Food and dining represents {pround(food_pct)}% of your spending. "
                "Meal planning could help reduce costs."
            )

    if spent_change > SPEND_CHANGE_PCT:
        insights.append(
            f"Your spending increased by {pround(spent_change)}% compared to the previous period. "
            "Review recent expenses for optimization opportunities."
        )
    elif spent_change < -SPEND_CHANGE_PCT:
        insights.append(
            f"Excellent! You reduced your spending by {pround(abs(spent_change))}% "
            "compared to the previous period."
        )

    if total_owing > total_owed:
        insights.append(
            f"You owe {format_currency(total_owing - total_owed, currency)} more than you're owed. "
            "Consider settling some balances."
        )
    elif total_owed > total_owing:
        insights.append(
            f"Others owe you {format_currency(total_owed - total_owing, currency)} more than you owe. "
            "Time to collect!"
        )

    if not insights:
        insights.extend(DEFAULT_INSIGHTS)

    return insights[:MAX_INSIGHTS]


def _is_food(name: str) -> bool:
    lowered = (name or "").lower()
    return any(keyword in lowered for keyword in FOOD_KEYWORDS)
