from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from fintrack.db.base import Base
from fintrack.models.enums import ExpenseType, SpendCategory


class Expense(Base):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    tx_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    expense_type: Mapped[ExpenseType] = mapped_column(
        Enum(ExpenseType, name="expense_type"),
        nullable=False,
    )
    category: Mapped[SpendCategory] = mapped_column(
        Enum(SpendCategory, name="spend_category"),
        nullable=False,
    )
    # only read when category is PARTIAL_NEEDS
    needs_portion: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    avoid_portion: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class ExpenseBudget(Base):
    __tablename__ = "expense_budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    expected_percent: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    expected_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    unexpected_percent: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    unexpected_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
