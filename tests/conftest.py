from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import billsplit.models  # noqa: F401
from billsplit.db.session import Base
from billsplit.models import ExpenseCategory, Expense, ExpenseSplit, User

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def users(db):
    """alice (1), bob (2), carol (3)."""
    people = [
        User(id=1, email="alice@example.com", first_name="Alice", last_name="Adams"),
        User(id=2, email="bob@example.com", first_name="Bob", last_name="Brown"),
        User(id=3, email="carol@example.com", first_name="Carol", last_name="Clark"),
    ]
    db.add_all(people)
    await db.commit()
    return {u.first_name.lower(): u for u in people}


@pytest.fixture
async def categories(db):
    food = ExpenseCategory(id=1, name="Food & Dining", icon="fas fa-utensils", color="orange")
    transport = ExpenseCategory(id=2, name="Transportation", icon="fas fa-car", color="blue")
    db.add_all([food, transport])
    await db.commit()
    return {"food": food, "transport": transport}


@pytest.fixture
def add_expense(db):
    """Insert an expense with explicit per-user split amounts."""

    async def _add(paid_by, amount, splits, currency="USD", category_id=None, created_at=NOW, description="expense"):
        expense = Expense(
            description=description,
            amount=Decimal(str(amount)),
            currency=currency,
            category_id=category_id,
            paid_by=paid_by,
            split_type="custom",
            created_at=created_at,
        )
        db.add(expense)
        await db.flush()

        for user_id, share in splits.items():
            db.add(ExpenseSplit(
                expense_id=expense.id,
                user_id=user_id,
                amount=Decimal(str(share)),
                settled=False,
            ))

        await db.commit()
        return expense

    return _add
