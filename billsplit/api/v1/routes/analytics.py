from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from billsplit.db.session import get_db
from billsplit.core.dependencies import get_current_user
from billsplit.schemas.analytics import AnalyticsOut
from billsplit.services.analytics_service import generate_user_analytics

router = APIRouter()

@router.get("/", response_model=AnalyticsOut)
async def my_analytics(
    period: int = Query(30, description="window length in days"),
    currency: str = Query("USD", min_length=3, max_length=3),
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await generate_user_analytics(db, current_user.id, period_days=period, target_currency=currency.upper())
