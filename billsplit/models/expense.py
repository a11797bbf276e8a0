from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from billsplit.db.session import Base

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, server_default="USD")
    category_id = Column(Integer, ForeignKey("expense_categories.id"), nullable=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=True)
    paid_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    split_type = Column(String(20), nullable=False, server_default="equal")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    splits = relationship("ExpenseSplit", back_populates="expense", cascade="all, delete")
    category = relationship("ExpenseCategory")
