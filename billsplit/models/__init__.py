from billsplit.models.user import User
from billsplit.models.group import Group, GroupMember
from billsplit.models.category import ExpenseCategory
from billsplit.models.expense import Expense
from billsplit.models.expense_split import ExpenseSplit
from billsplit.models.settlement import Settlement
from billsplit.models.exchange_rate import ExchangeRate
