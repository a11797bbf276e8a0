from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional
from billsplit.core.errors import InvalidInput
from billsplit.core.utils import HUNDRED, ZERO, allocate_largest_remainder, qround, safe_div, to_decimal

SPLIT_TYPES = ("equal", "custom", "percentage", "shares")

@dataclass(frozen=True)
class Participant:
    user_id: int
    amount: Optional[Decimal] = None
    percentage: Optional[Decimal] = None
    shares: Optional[int] = None

@dataclass(frozen=True)
class ComputedSplit:
    user_id: int
    amount: Decimal
    percentage: Decimal
    shares: Optional[int] = None


def compute_splits(
    total_amount,
    split_type: str,
    participants: Iterable[Participant],
    reconcile: bool = False,
) -> List[ComputedSplit]:
    """
    Turn an expense total and a split policy into per-participant shares.

    Amounts and percentages come back rounded to cents (half-up). By default
    each share is rounded on its own, so for equal, percentage and shares
    splits the rounded amounts may drift from the total by up to half a cent
    per participant. ``reconcile=True`` apportions the cents with the largest
    remainder method instead, so the rounded amounts add up exactly.

    Custom amounts are taken as given and never checked against the total.
    """
    participants = list(participants)
    total = to_decimal(total_amount)

    if not participants:
        raise InvalidInput("At least one participant is required")

    if total <= 0:
        raise InvalidInput("Expense amount must be positive")

    if split_type not in SPLIT_TYPES:
        raise InvalidInput(f"Unknown split type '{split_type}'")

    if split_type == "equal":
        return _equal(total, participants, reconcile)
    if split_type == "custom":
        return _custom(total, participants)
    if split_type == "percentage":
        return _percentage(total, participants, reconcile)
    return _shares(total, participants, reconcile)


def _amounts(raw: List[Decimal], target: Decimal, reconcile: bool) -> List[Decimal]:
    if reconcile:
        return allocate_largest_remainder(target, raw)
    return [qround(r) for r in raw]


def _equal(total: Decimal, participants: List[Participant], reconcile: bool):
    n = Decimal(len(participants))
    raw = [total / n] * len(participants)
    amounts = _amounts(raw, total, reconcile)
    pct = qround(HUNDRED / n)

    return [
        ComputedSplit(user_id=p.user_id, amount=amt, percentage=pct)
        for p, amt in zip(participants, amounts)
    ]


def _custom(total: Decimal, participants: List[Participant]):
    splits = []
    for p in participants:
        amount = qround(to_decimal(p.amount))
        splits.append(ComputedSplit(
            user_id=p.user_id,
            amount=amount,
            percentage=qround(safe_div(amount, total) * HUNDRED),
        ))
    return splits


def _percentage(total: Decimal, participants: List[Participant], reconcile: bool):
    percentages = [to_decimal(p.percentage) for p in participants]
    raw = [total * pct / HUNDRED for pct in percentages]
    # percentages are not forced to add up to 100; reconcile against what they do cover
    amounts = _amounts(raw, total * sum(percentages, ZERO) / HUNDRED, reconcile)

    return [
        ComputedSplit(user_id=p.user_id, amount=amt, percentage=qround(pct))
        for p, pct, amt in zip(participants, percentages, amounts)
    ]


def _shares(total: Decimal, participants: List[Participant], reconcile: bool):
    shares = []
    for p in participants:
        s = 1 if p.shares is None else p.shares
        if s < 1:
            raise InvalidInput(f"Shares for user {p.user_id} must be a positive integer")
        shares.append(s)

    total_shares = Decimal(sum(shares))
    raw = [safe_div(total * s, total_shares) for s in shares]
    amounts = _amounts(raw, total, reconcile)

    return [
        ComputedSplit(
            user_id=p.user_id,
            amount=amt,
            percentage=qround(safe_div(HUNDRED * s, total_shares)),
            shares=s,
        )
        for p, s, amt in zip(participants, shares, amounts)
    ]
