import logging
from decimal import Decimal
from typing import Dict, Iterable, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from billsplit.core.config import settings
from billsplit.core.utils import ZERO, money, qround, to_decimal
from billsplit.models.expense import Expense
from billsplit.models.expense_split import ExpenseSplit
from billsplit.models.settlement import Settlement
from billsplit.services.user_service import get_users_by_ids

logger = logging.getLogger(__name__)

# A balance > 0 means the counterparty owes the user; < 0 means the user owes them.

def net_balances(
    user_id: int,
    borrowed: Iterable[Tuple[int, object]],
    lent: Iterable[Tuple[int, object]],
    settlements: Iterable[Tuple[int, int, object]] = (),
) -> Dict[int, Decimal]:
    """
    Net a user's position against every counterparty.

    ``borrowed`` holds (payer_id, amount) for each of the user's own splits,
    ``lent`` holds (owner_id, amount) for each split on an expense the user
    paid, ``settlements`` holds (from_user_id, to_user_id, amount). Rows where
    the counterparty is the user themself are ignored. Counterparties keep the
    order in which they were first seen.
    """
    net: Dict[int, Decimal] = {}

    for payer_id, amount in borrowed:
        if payer_id == user_id:
            continue
        net[payer_id] = qround(net.get(payer_id, ZERO) - to_decimal(amount))

    for owner_id, amount in lent:
        if owner_id == user_id:
            continue
        net[owner_id] = qround(net.get(owner_id, ZERO) + to_decimal(amount))

    for from_id, to_id, amount in settlements:
        if from_id == user_id and to_id != user_id:
            net[to_id] = qround(net.get(to_id, ZERO) + to_decimal(amount))
        elif to_id == user_id and from_id != user_id:
            net[from_id] = qround(net.get(from_id, ZERO) - to_decimal(amount))

    return net

def summarize(net: Dict[int, Decimal]) -> Tuple[Decimal, Decimal]:
    """Return (total_owed, total_owing): owed to the user, owed by the user."""
    total_owed = sum((b for b in net.values() if b > 0), ZERO)
    total_owing = sum((-b for b in net.values() if b < 0), ZERO)
    return qround(total_owed), qround(total_owing)

async def get_user_net_map(db: AsyncSession, user_id: int) -> Dict[int, Decimal]:
    borrowed_q = (
        select(Expense.paid_by, ExpenseSplit.amount)
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(ExpenseSplit.user_id == user_id)
        .order_by(Expense.created_at, Expense.id)
    )
    borrowed_res = await db.execute(borrowed_q)

    lent_q = (
        select(ExpenseSplit.user_id, ExpenseSplit.amount)
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(Expense.paid_by == user_id)
        .order_by(Expense.created_at, Expense.id, ExpenseSplit.id)
    )
    lent_res = await db.execute(lent_q)

    settlement_rows = []
    if settings.SETTLEMENTS_REDUCE_BALANCES:
        settle_q = (
            select(Settlement.from_user_id, Settlement.to_user_id, Settlement.amount)
            .where(or_(Settlement.from_user_id == user_id, Settlement.to_user_id == user_id))
            .order_by(Settlement.created_at, Settlement.id)
        )
        settle_res = await db.execute(settle_q)
        settlement_rows = settle_res.all()

    return net_balances(user_id, borrowed_res.all(), lent_res.all(), settlement_rows)

async def get_user_balances(db: AsyncSession, user_id: int):
    net = await get_user_net_map(db, user_id)
    users = await get_users_by_ids(db, net.keys())

    total_owed, total_owing = summarize(net)

    logger.debug("Balances for user %s across %d counterparties", user_id, len(net))

    return {
        "total_owed": money(total_owed),
        "total_owing": money(total_owing),
        "friend_balances": [
            {"friend": users[uid], "balance": money(balance)}
            for uid, balance in net.items()
        ],
    }
