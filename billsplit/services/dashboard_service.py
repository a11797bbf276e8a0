from sqlalchemy.ext.asyncio import AsyncSession
from billsplit.services.balance_services import get_user_balances
from billsplit.services.expense_services import list_expenses
from billsplit.services.group_services import list_group_for_user

RECENT_EXPENSES = 10
DASHBOARD_GROUPS = 5

async def get_dashboard(db: AsyncSession, user_id: int):
    return {
        "balances": await get_user_balances(db, user_id),
        "recent_expenses": await list_expenses(db, user_id, limit=RECENT_EXPENSES),
        "groups": await list_group_for_user(db, user_id, limit=DASHBOARD_GROUPS),
    }
