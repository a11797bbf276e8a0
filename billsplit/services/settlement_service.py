import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from billsplit.core.errors import InvalidInput, NotFound
from billsplit.core.utils import money, qround, to_decimal
from billsplit.models.expense import Expense
from billsplit.models.expense_split import ExpenseSplit
from billsplit.models.settlement import Settlement
from billsplit.services.user_service import get_user_by_id, get_users_by_ids

logger = logging.getLogger(__name__)

async def create_settlement(db: AsyncSession, from_user_id: int, data):
    if data.to_user_id == from_user_id:
        raise InvalidInput("Cannot settle with yourself")

    if await get_user_by_id(db, data.to_user_id) is None:
        raise NotFound("Recipient does not exist")

    currency = data.currency.upper()

    settlement = Settlement(
        from_user_id=from_user_id,
        to_user_id=data.to_user_id,
        amount=data.amount,
        currency=currency,
        group_id=data.group_id,
        method=data.method,
        notes=data.notes,
    )
    db.add(settlement)

    # Oldest first, same currency only, stop at the first split the remaining
    # payment cannot cover
    open_q = (
        select(ExpenseSplit)
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(
            ExpenseSplit.user_id == from_user_id,
            Expense.paid_by == data.to_user_id,
            Expense.currency == currency,
            ExpenseSplit.settled == False,
        )
        .order_by(Expense.created_at, ExpenseSplit.id)
    )
    if data.group_id is not None:
        open_q = open_q.where(Expense.group_id == data.group_id)

    res = await db.execute(open_q)

    remaining = qround(to_decimal(data.amount))
    settled_count = 0
    now = datetime.now(timezone.utc)
    for split in res.scalars().all():
        amount = to_decimal(split.amount)
        if amount > remaining:
            break
        split.settled = True
        split.settled_at = now
        remaining -= amount
        settled_count += 1

    await db.commit()
    await db.refresh(settlement)

    logger.info(
        "Settlement %s: user %s paid %s %s to user %s, %d splits closed",
        settlement.id, from_user_id, settlement.amount, settlement.currency, data.to_user_id, settled_count,
    )

    return {**_settlement_dict(settlement), "settled_split_count": settled_count}

async def list_settlements(db: AsyncSession, user_id: int):
    q = (
        select(Settlement)
        .where(or_(Settlement.from_user_id == user_id, Settlement.to_user_id == user_id))
        .order_by(Settlement.created_at.desc(), Settlement.id.desc())
    )
    res = await db.execute(q)
    settlements = res.scalars().all()

    users = await get_users_by_ids(
        db, {s.from_user_id for s in settlements} | {s.to_user_id for s in settlements}
    )

    return [
        {
            **_settlement_dict(s),
            "from_user": users[s.from_user_id],
            "to_user": users[s.to_user_id],
        }
        for s in settlements
    ]

def _settlement_dict(s: Settlement):
    return {
        "id": s.id,
        "from_user_id": s.from_user_id,
        "to_user_id": s.to_user_id,
        "amount": money(to_decimal(s.amount)),
        "currency": s.currency,
        "group_id": s.group_id,
        "method": s.method,
        "notes": s.notes,
        "created_at": s.created_at,
    }
