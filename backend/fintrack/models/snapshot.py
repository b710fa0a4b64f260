from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.db.base import Base


def _money_column() -> Mapped[Decimal]:
    return mapped_column(Numeric(14, 2), default=0, nullable=False)


class MonthlySnapshot(Base):
    __tablename__ = "monthly_snapshots"
    __table_args__ = (
        UniqueConstraint("user_id", "year", "month", name="uq_monthly_snapshots_user_year_month"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)

    salary: Mapped[Decimal] = _money_column()
    additional_income: Mapped[Decimal] = _money_column()
    total_income: Mapped[Decimal] = _money_column()
    tax_amount: Mapped[Decimal] = _money_column()
    after_tax: Mapped[Decimal] = _money_column()
    total_loans: Mapped[Decimal] = _money_column()
    total_sips: Mapped[Decimal] = _money_column()

    total_expenses: Mapped[Decimal] = _money_column()
    expected_expenses: Mapped[Decimal] = _money_column()
    unexpected_expenses: Mapped[Decimal] = _money_column()
    needs_expenses: Mapped[Decimal] = _money_column()
    avoid_expenses: Mapped[Decimal] = _money_column()

    expected_budget: Mapped[Decimal] = _money_column()
    unexpected_budget: Mapped[Decimal] = _money_column()
    available_for_expenses: Mapped[Decimal] = _money_column()
    is_using_budget: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    available_for_investment: Mapped[Decimal] = _money_column()
    is_using_allocation: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    allocation_breakdown: Mapped[list | None] = mapped_column(JSON, nullable=True)

    available_amount: Mapped[Decimal] = _money_column()
    spent_amount: Mapped[Decimal] = _money_column()
    surplus_amount: Mapped[Decimal] = _money_column()
    planned_surplus: Mapped[Decimal] = _money_column()
    cash_remaining: Mapped[Decimal] = _money_column()
    previous_surplus: Mapped[Decimal] = _money_column()
    investments_made: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    one_time_investments: Mapped[Decimal] = _money_column()

    scheduled_emi_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unpaid_emi_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_month_emi_paid: Mapped[Decimal] = _money_column()
    additional_emi_paid: Mapped[Decimal] = _money_column()
    total_emi_paid: Mapped[Decimal] = _money_column()
    active_loans_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    loans_closed_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    sip_executions_total: Mapped[Decimal] = _money_column()
    sip_executions_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    actual_sip_amount: Mapped[Decimal] = _money_column()

    member_borrowed: Mapped[Decimal] = _money_column()
    member_lent: Mapped[Decimal] = _money_column()
    member_transactions_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    member_transactions_data: Mapped[list | None] = mapped_column(JSON, nullable=True)

    borrowed_funds_received: Mapped[Decimal] = _money_column()
    borrowed_funds_returned: Mapped[Decimal] = _money_column()
    borrowed_funds_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    borrowed_funds_profit: Mapped[Decimal] = _money_column()
    borrowed_funds_data: Mapped[list | None] = mapped_column(JSON, nullable=True)

    month_invested: Mapped[Decimal] = _money_column()
    month_current_value: Mapped[Decimal] = _money_column()
    month_returns: Mapped[Decimal] = _money_column()
    portfolio_investment: Mapped[Decimal] = _money_column()
    portfolio_current_value: Mapped[Decimal] = _money_column()
    portfolio_pl: Mapped[Decimal] = _money_column()

    is_closed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", back_populates="snapshots")
