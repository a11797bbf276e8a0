from datetime import datetime
from billsplit.schemas.base import CamelModel

class GroupOut(CamelModel):
    id: int
    name: str
    description: str | None = None
    created_by: int
    created_at: datetime | None = None
