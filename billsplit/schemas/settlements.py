from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from billsplit.schemas.base import CamelModel
from billsplit.schemas.user import UserOut

class SettlementCreate(BaseModel):
    to_user_id: int
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    group_id: int | None = None
    method: str | None = None
    notes: str | None = None

class SettlementOut(CamelModel):
    id: int
    from_user_id: int
    to_user_id: int
    amount: float
    currency: str
    group_id: int | None = None
    method: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    settled_split_count: int = 0

class SettlementHistoryOut(SettlementOut):
    from_user: UserOut
    to_user: UserOut
