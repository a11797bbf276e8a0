from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from billsplit.db.session import get_db
from billsplit.core.dependencies import get_current_user
from billsplit.services.currency_service import CurrencyService, get_supported_currencies

router = APIRouter()

@router.get("/")
async def currencies(current_user = Depends(get_current_user)):
    return get_supported_currencies()

@router.get("/rate")
async def exchange_rate(
    from_currency: str = Query(..., alias="from", min_length=3, max_length=3),
    to_currency: str = Query(..., alias="to", min_length=3, max_length=3),
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    src, dst = from_currency.upper(), to_currency.upper()
    rate = await CurrencyService(db).get_exchange_rate(src, dst)
    return {"from": src, "to": dst, "rate": float(rate)}
