from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.db.base import Base


class BorrowedFund(Base):
    __tablename__ = "borrowed_funds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id: Mapped[int | None] = mapped_column(
        ForeignKey("members.id", ondelete="SET NULL"),
        nullable=True,
    )
    lender_name: Mapped[str] = mapped_column(String(255), nullable=False)
    borrowed_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    borrowed_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    expected_return_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_return_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    returned_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    is_fully_returned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    invested_in_holding_id: Mapped[int | None] = mapped_column(
        ForeignKey("holdings.id", ondelete="SET NULL"),
        nullable=True,
    )
    current_value: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    profit_loss: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    purpose: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    invested_in_holding: Mapped["Holding | None"] = relationship("Holding")
