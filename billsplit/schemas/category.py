from billsplit.schemas.base import CamelModel

class CategoryOut(CamelModel):
    id: int
    name: str
    icon: str
    color: str
