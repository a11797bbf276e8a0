import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from billsplit.core.config import settings
from billsplit.core.errors import Forbidden, InvalidInput, NotFound
from billsplit.core.utils import money, to_decimal
from billsplit.models.expense import Expense
from billsplit.models.expense_split import ExpenseSplit
from billsplit.models.group import GroupMember
from billsplit.models.category import ExpenseCategory
from billsplit.services.split_calculator import Participant, compute_splits
from billsplit.services.user_service import get_users_by_ids

logger = logging.getLogger(__name__)

async def create_expense(db: AsyncSession, data, paid_by: int):
    user_ids = [s.user_id for s in data.splits]

    # 1. Check duplicates
    if len(user_ids) != len(set(user_ids)):
        raise InvalidInput("Duplicate users found in splits")

    # 2. Apportion the total; rejects empty splits, bad amounts and unknown policies
    computed = compute_splits(
        data.amount,
        data.split_type,
        [Participant(s.user_id, s.amount, s.percentage, s.shares) for s in data.splits],
        reconcile=settings.EXACT_SPLIT_ROUNDING,
    )

    # 3. Payer and participants must belong to the group, if any
    if data.group_id is not None:
        q = select(GroupMember.user_id).where(
            GroupMember.group_id == data.group_id,
            GroupMember.user_id.in_(set(user_ids) | {paid_by}),
        )
        res = await db.execute(q)
        members = set(res.scalars().all())

        if paid_by not in members:
            raise Forbidden("Payer is not a member of the group")

        if not set(user_ids) <= members:
            raise InvalidInput("Some users in split are not group members")

    if data.category_id is not None:
        category = await db.get(ExpenseCategory, data.category_id)
        if category is None:
            raise InvalidInput("Unknown category")

    # 4. Expense and splits go in one transaction
    expense = Expense(
        description=data.description,
        amount=data.amount,
        currency=data.currency.upper(),
        category_id=data.category_id,
        group_id=data.group_id,
        paid_by=paid_by,
        split_type=data.split_type,
    )
    db.add(expense)
    await db.flush()

    for s in computed:
        db.add(ExpenseSplit(
            expense_id=expense.id,
            user_id=s.user_id,
            amount=s.amount,
            percentage=s.percentage,
            shares=s.shares,
            settled=False,
        ))

    await db.commit()
    await db.refresh(expense)

    logger.info("Expense %s created by user %s with %d splits", expense.id, paid_by, len(computed))

    return await get_expense_by_id(db, expense_id=expense.id, user_id=paid_by)

async def get_expense_by_id(db: AsyncSession, expense_id: int, user_id: int):
    expense = await db.get(Expense, expense_id)

    if not expense:
        raise NotFound("Expense not found")

    splits_q = (
        select(ExpenseSplit)
        .where(ExpenseSplit.expense_id == expense_id)
        .order_by(ExpenseSplit.id)
    )
    splits_res = await db.execute(splits_q)
    splits = splits_res.scalars().all()

    if expense.paid_by != user_id and user_id not in {s.user_id for s in splits}:
        raise Forbidden("Unauthorized access")

    return {**_expense_dict(expense), "splits": [_split_dict(s) for s in splits]}

async def list_expenses(db: AsyncSession, user_id: int, group_id: int | None = None, limit: int | None = None):
    """Expenses the user has a split on, newest first, with category, payer and split users."""
    q = (
        select(Expense)
        .join(ExpenseSplit, ExpenseSplit.expense_id == Expense.id)
        .where(ExpenseSplit.user_id == user_id)
        .order_by(Expense.created_at.desc(), Expense.id.desc())
    )
    if group_id is not None:
        q = q.where(Expense.group_id == group_id)
    if limit is not None:
        q = q.limit(limit)

    res = await db.execute(q)
    expenses = res.scalars().all()
    if not expenses:
        return []

    splits_q = (
        select(ExpenseSplit)
        .where(ExpenseSplit.expense_id.in_([e.id for e in expenses]))
        .order_by(ExpenseSplit.id)
    )
    splits_res = await db.execute(splits_q)
    splits_by_expense = {}
    user_ids = {e.paid_by for e in expenses}
    for s in splits_res.scalars().all():
        splits_by_expense.setdefault(s.expense_id, []).append(s)
        user_ids.add(s.user_id)

    category_ids = {e.category_id for e in expenses if e.category_id is not None}
    categories = {}
    if category_ids:
        cat_res = await db.execute(select(ExpenseCategory).where(ExpenseCategory.id.in_(category_ids)))
        categories = {c.id: c for c in cat_res.scalars().all()}

    users = await get_users_by_ids(db, user_ids)

    return [
        {
            **_expense_dict(e),
            "category": categories.get(e.category_id),
            "payer": users[e.paid_by],
            "splits": [
                {**_split_dict(s), "user": users[s.user_id]}
                for s in splits_by_expense.get(e.id, [])
            ],
        }
        for e in expenses
    ]

def _expense_dict(expense: Expense):
    return {
        "id": expense.id,
        "description": expense.description,
        "amount": money(to_decimal(expense.amount)),
        "currency": expense.currency,
        "category_id": expense.category_id,
        "group_id": expense.group_id,
        "paid_by": expense.paid_by,
        "split_type": expense.split_type,
        "created_at": expense.created_at,
    }

def _split_dict(s: ExpenseSplit):
    return {
        "user_id": s.user_id,
        "amount": money(to_decimal(s.amount)),
        "percentage": None if s.percentage is None else money(to_decimal(s.percentage)),
        "shares": s.shares,
        "settled": s.settled,
    }
