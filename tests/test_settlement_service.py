from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from billsplit.core.errors import InvalidInput, NotFound
from billsplit.models import ExpenseSplit
from billsplit.schemas.settlements import SettlementCreate
from billsplit.services.settlement_service import create_settlement, list_settlements

from conftest import NOW


async def split_states(db, user_id):
    res = await db.execute(
        select(ExpenseSplit.amount, ExpenseSplit.settled)
        .where(ExpenseSplit.user_id == user_id)
        .order_by(ExpenseSplit.id)
    )
    return [(Decimal(str(amount)), settled) for amount, settled in res.all()]


async def test_settlement_closes_oldest_splits_it_covers(db, users, add_expense):
    await add_expense(paid_by=2, amount=20, splits={1: 10, 2: 10}, created_at=NOW - timedelta(days=3))
    await add_expense(paid_by=2, amount=30, splits={1: 15, 2: 15}, created_at=NOW - timedelta(days=1))
    await add_expense(paid_by=3, amount=8, splits={1: 4, 3: 4}, created_at=NOW - timedelta(days=5))

    result = await create_settlement(db, 1, SettlementCreate(to_user_id=2, amount=Decimal("12")))

    assert result["settled_split_count"] == 1
    assert result["amount"] == 12.0
    assert await split_states(db, 1) == [
        (Decimal("10"), True),
        (Decimal("15"), False),
        (Decimal("4"), False),
    ]


async def test_full_payment_closes_everything_owed_to_recipient(db, users, add_expense):
    await add_expense(paid_by=2, amount=20, splits={1: 10, 2: 10}, created_at=NOW - timedelta(days=3))
    await add_expense(paid_by=2, amount=30, splits={1: 15, 2: 15}, created_at=NOW - timedelta(days=1))

    result = await create_settlement(db, 1, SettlementCreate(to_user_id=2, amount=Decimal("25")))

    assert result["settled_split_count"] == 2


async def test_cannot_settle_with_yourself(db, users):
    with pytest.raises(InvalidInput):
        await create_settlement(db, 1, SettlementCreate(to_user_id=1, amount=Decimal("5")))


async def test_unknown_recipient(db, users):
    with pytest.raises(NotFound):
        await create_settlement(db, 1, SettlementCreate(to_user_id=77, amount=Decimal("5")))


async def test_history_lists_both_directions(db, users):
    await create_settlement(db, 1, SettlementCreate(to_user_id=2, amount=Decimal("5"), method="cash"))
    await create_settlement(db, 3, SettlementCreate(to_user_id=1, amount=Decimal("7.50")))
    await create_settlement(db, 2, SettlementCreate(to_user_id=3, amount=Decimal("1")))

    history = await list_settlements(db, 1)

    assert sorted((h["from_user"].first_name, h["to_user"].first_name, h["amount"]) for h in history) == [
        ("Alice", "Bob", 5.0),
        ("Carol", "Alice", 7.5),
    ]


async def test_settlement_only_closes_splits_in_its_currency(db, users, add_expense):
    await add_expense(paid_by=2, amount=20, splits={1: 10, 2: 10}, created_at=NOW - timedelta(days=4))
    await add_expense(paid_by=2, amount=8, splits={1: 4, 2: 4}, currency="JPY", created_at=NOW - timedelta(days=2))

    result = await create_settlement(db, 1, SettlementCreate(to_user_id=2, amount=Decimal("10"), currency="jpy"))

    assert result["currency"] == "JPY"
    assert result["settled_split_count"] == 1
    assert await split_states(db, 1) == [(Decimal("10"), False), (Decimal("4"), True)]
