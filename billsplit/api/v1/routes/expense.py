from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from billsplit.db.session import get_db
from billsplit.schemas.expense import ExpenseCreate, ExpenseDetailOut, ExpenseOut
from billsplit.services.expense_services import create_expense, get_expense_by_id, list_expenses
from billsplit.core.dependencies import get_current_user

router = APIRouter()

@router.post("/", response_model=ExpenseOut, status_code=201)
async def add_expense(data: ExpenseCreate, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await create_expense(db, data, current_user.id)

@router.get("/", response_model=List[ExpenseDetailOut])
async def my_expenses(
    group_id: int | None = Query(None, alias="groupId"),
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await list_expenses(db, current_user.id, group_id=group_id)

@router.get("/{expense_id}", response_model=ExpenseOut)
async def fetch(
    expense_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await get_expense_by_id(db, expense_id=expense_id, user_id=current_user.id)
