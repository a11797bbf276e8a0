from sqlalchemy import Column, Integer, Numeric, ForeignKey, Boolean, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from billsplit.db.session import Base

class ExpenseSplit(Base):
    __tablename__ = "expense_splits"
    __table_args__ = (UniqueConstraint("expense_id", "user_id", name="uq_split_expense_user"),)

    id = Column(Integer, primary_key=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    # custom shares are unvalidated, so this must hold max amount / min total * 100
    percentage = Column(Numeric(15, 2), nullable=True)
    shares = Column(Integer, nullable=True)
    settled = Column(Boolean, nullable=False, server_default="false", default=False)
    settled_at = Column(DateTime(timezone=True), nullable=True)

    expense = relationship("Expense", back_populates="splits")
