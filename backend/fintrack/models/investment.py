from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.db.base import Base
from fintrack.models.enums import AllocationType, InvestBucket, InvestmentTransactionType


class InvestmentAllocation(Base):
    __tablename__ = "investment_allocations"
    __table_args__ = (
        UniqueConstraint("user_id", "bucket", name="uq_investment_allocations_user_bucket"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    bucket: Mapped[InvestBucket] = mapped_column(
        Enum(InvestBucket, name="invest_bucket"),
        nullable=False,
    )
    allocation_type: Mapped[AllocationType] = mapped_column(
        Enum(AllocationType, name="allocation_type"),
        default=AllocationType.percentage,
        nullable=False,
    )
    percent: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    custom_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)


class Holding(Base):
    __tablename__ = "holdings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    bucket: Mapped[InvestBucket] = mapped_column(
        Enum(InvestBucket, name="invest_bucket"),
        nullable=False,
    )
    symbol: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    qty: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False)
    avg_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    current_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(10), default="INR", nullable=False)
    usd_inr_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 4), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    transactions: Mapped[list["InvestmentTransaction"]] = relationship(
        "InvestmentTransaction", back_populates="holding"
    )


class InvestmentTransaction(Base):
    __tablename__ = "investment_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    holding_id: Mapped[int | None] = mapped_column(
        ForeignKey("holdings.id", ondelete="SET NULL"),
        nullable=True,
    )
    bucket: Mapped[InvestBucket] = mapped_column(
        Enum(InvestBucket, name="invest_bucket"),
        nullable=False,
    )
    symbol: Mapped[str] = mapped_column(String(50), nullable=False)
    qty: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    # set for USD-denominated buys
    amount_inr: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    transaction_type: Mapped[InvestmentTransactionType] = mapped_column(
        Enum(InvestmentTransactionType, name="investment_transaction_type"),
        nullable=False,
    )
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    holding: Mapped["Holding | None"] = relationship("Holding", back_populates="transactions")
