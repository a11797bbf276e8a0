from decimal import Decimal, ROUND_HALF_UP, ROUND_DOWN, getcontext
from typing import List, Sequence

getcontext().prec = 28
CENTS = Decimal("0.01")
TENTHS = Decimal("0.1")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

def qround(d: Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)

def pround(d: Decimal) -> Decimal:
    return d.quantize(TENTHS, rounding=ROUND_HALF_UP)

def safe_div(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        return ZERO
    return numerator / denominator

def money(d: Decimal) -> float:
    return float(qround(d))

def percent(d: Decimal) -> float:
    return float(pround(d))

def allocate_largest_remainder(target: Decimal, raw_shares: Sequence[Decimal]) -> List[Decimal]:
    """Round raw shares to cents so they add up to ``target`` exactly.

    Every share is first rounded down; the cents still missing are handed out
    one at a time to the shares that lost the most in rounding (ties go to the
    earlier participant).
    """
    target = qround(target)
    floors = [s.quantize(CENTS, rounding=ROUND_DOWN) for s in raw_shares]
    missing = int(((target - sum(floors, ZERO)) / CENTS).to_integral_value(rounding=ROUND_HALF_UP))

    order = sorted(
        range(len(raw_shares)),
        key=lambda i: (raw_shares[i] - floors[i], -i),
        reverse=True,
    )

    result = list(floors)
    for i in order[:max(missing, 0)]:
        result[i] += CENTS
    return result
