from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from billsplit.db.session import get_db
from billsplit.core.dependencies import get_current_user
from billsplit.schemas.category import CategoryOut
from billsplit.services.category_service import list_categories

router = APIRouter()

@router.get("/", response_model=list[CategoryOut])
async def categories(db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await list_categories(db)
