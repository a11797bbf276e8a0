from sqlalchemy import Column, Integer, String
from billsplit.db.session import Base

class ExpenseCategory(Base):
    __tablename__ = "expense_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    icon = Column(String(50), nullable=False)
    color = Column(String(20), nullable=False)
