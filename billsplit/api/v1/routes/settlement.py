from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from billsplit.db.session import get_db
from billsplit.core.dependencies import get_current_user
from billsplit.schemas.settlements import SettlementCreate, SettlementOut, SettlementHistoryOut
from billsplit.services.settlement_service import create_settlement, list_settlements

router = APIRouter()

@router.post("/", response_model=SettlementOut, status_code=201)
async def add_settlement(
    data: SettlementCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await create_settlement(db, current_user.id, data)

@router.get("/", response_model=list[SettlementHistoryOut])
async def settlement_history(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await list_settlements(db, current_user.id)
