from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from billsplit.models.category import ExpenseCategory

DEFAULT_CATEGORIES = [
    {"name": "Food & Dining", "icon": "fas fa-utensils", "color": "orange"},
    {"name": "Transportation", "icon": "fas fa-car", "color": "blue"},
    {"name": "Entertainment", "icon": "fas fa-film", "color": "purple"},
    {"name": "Shopping", "icon": "fas fa-shopping-bag", "color": "pink"},
    {"name": "Utilities", "icon": "fas fa-home", "color": "green"},
    {"name": "Travel", "icon": "fas fa-plane", "color": "cyan"},
    {"name": "Other", "icon": "fas fa-question", "color": "gray"},
]

async def list_categories(db: AsyncSession):
    res = await db.execute(select(ExpenseCategory).order_by(ExpenseCategory.id))
    return res.scalars().all()

async def seed_categories(db: AsyncSession) -> int:
    res = await db.execute(select(ExpenseCategory.name))
    existing = set(res.scalars().all())

    added = 0
    for cat in DEFAULT_CATEGORIES:
        if cat["name"] not in existing:
            db.add(ExpenseCategory(**cat))
            added += 1

    if added:
        await db.commit()
    return added
