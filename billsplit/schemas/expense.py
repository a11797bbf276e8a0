from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal
from pydantic import BaseModel, Field
from billsplit.schemas.base import CamelModel
from billsplit.schemas.category import CategoryOut
from billsplit.schemas.user import UserOut

SplitType = Literal["equal", "custom", "percentage", "shares"]

# Matches the Numeric(10, 2) money columns
Money = Annotated[Decimal, Field(max_digits=10, decimal_places=2)]

class SplitInput(BaseModel):
    user_id: int
    amount: Money | None = None
    percentage: Decimal | None = None
    shares: int | None = None

class ExpenseCreate(BaseModel):
    description: str = Field(min_length=1, max_length=255)
    amount: Money
    currency: str = Field(default="USD", min_length=3, max_length=3)
    category_id: int | None = None
    group_id: int | None = None
    split_type: SplitType = "equal"
    splits: List[SplitInput]

class SplitOut(CamelModel):
    user_id: int
    amount: float
    percentage: float | None = None
    shares: int | None = None
    settled: bool = False

class ExpenseOut(CamelModel):
    id: int
    description: str
    amount: float
    currency: str
    category_id: int | None = None
    group_id: int | None = None
    paid_by: int
    split_type: str
    created_at: datetime | None = None
    splits: List[SplitOut]

class SplitDetailOut(SplitOut):
    user: UserOut

class ExpenseDetailOut(ExpenseOut):
    category: CategoryOut | None = None
    payer: UserOut
    splits: List[SplitDetailOut]
