from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from billsplit.db.session import get_db
from billsplit.core.dependencies import get_current_user
from billsplit.schemas.dashboard import DashboardOut
from billsplit.services.dashboard_service import get_dashboard

router = APIRouter()

@router.get("/", response_model=DashboardOut)
async def my_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await get_dashboard(db, current_user.id)
