from typing import List
from billsplit.schemas.base import CamelModel
from billsplit.schemas.user import UserOut

class FriendBalanceOut(CamelModel):
    friend: UserOut
    balance: float

class BalancesOut(CamelModel):
    total_owed: float
    total_owing: float
    friend_balances: List[FriendBalanceOut]
