from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from billsplit.db.session import get_db
from billsplit.core.dependencies import get_current_user
from billsplit.schemas.balances import BalancesOut
from billsplit.services.balance_services import get_user_balances

router = APIRouter()

@router.get("/", response_model=BalancesOut)
async def my_balances(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await get_user_balances(db, current_user.id)
