from datetime import date
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from fintrack.db.base import Base
from fintrack.models import BorrowedFund, Holding, InvestBucket, User
from fintrack.services.borrowed_funds import (
    borrowed_fund_profit_loss,
    borrowed_funds_payload,
    refresh_borrowed_fund_valuations,
    summarize_borrowed_funds,
)
from fintrack.utils.decimal_math import money


def _session() -> Session:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)()


def _holding(db: Session, user: User, current_price: str | None) -> Holding:
    holding = Holding(
        user_id=user.id,
        bucket=InvestBucket.mutual_fund,
        symbol="NIFTY50",
        name="Nifty Index Fund",
        qty=Decimal("100"),
        avg_cost=money("100"),
        current_price=money(current_price) if current_price is not None else None,
    )
    db.add(holding)
    db.flush()
    return holding


def _user(db: Session) -> User:
    user = User(email="borrower@test.com", full_name="Borrower")
    db.add(user)
    db.flush()
    return user


def test_profit_loss_follows_linked_holding_price() -> None:
    db = _session()
    user = _user(db)
    holding = _holding(db, user, "120")
    fund = BorrowedFund(
        user_id=user.id,
        lender_name="Uncle",
        borrowed_amount=money("10000"),
        borrowed_date=date(2026, 1, 10),
        invested_in_holding_id=holding.id,
        invested_in_holding=holding,
    )

    valuation = borrowed_fund_profit_loss(fund)

    assert valuation.current_value == money("12000")
    assert valuation.profit_loss == money("2000")
    assert valuation.profit_loss_pct == Decimal("20.000000")


def test_profit_loss_without_holding_or_price() -> None:
    db = _session()
    user = _user(db)
    unlinked = BorrowedFund(
        user_id=user.id,
        lender_name="Friend",
        borrowed_amount=money("5000"),
        borrowed_date=date(2026, 1, 10),
    )
    holding = _holding(db, user, None)
    unpriced = BorrowedFund(
        user_id=user.id,
        lender_name="Friend",
        borrowed_amount=money("5000"),
        borrowed_date=date(2026, 1, 10),
        invested_in_holding_id=holding.id,
        invested_in_holding=holding,
    )

    assert borrowed_fund_profit_loss(unlinked).current_value == money(0)
    assert borrowed_fund_profit_loss(unpriced).current_value == money("5000")
    assert borrowed_fund_profit_loss(unpriced).profit_loss == money(0)


def test_refresh_updates_outstanding_linked_funds_only() -> None:
    db = _session()
    user = _user(db)
    holding = _holding(db, user, "90")
    open_fund = BorrowedFund(
        user_id=user.id,
        lender_name="Uncle",
        borrowed_amount=money("10000"),
        borrowed_date=date(2026, 1, 10),
        invested_in_holding_id=holding.id,
    )
    returned_fund = BorrowedFund(
        user_id=user.id,
        lender_name="Aunt",
        borrowed_amount=money("10000"),
        borrowed_date=date(2025, 6, 1),
        invested_in_holding_id=holding.id,
        is_fully_returned=True,
        returned_amount=money("10000"),
    )
    db.add_all([open_fund, returned_fund])
    db.flush()

    refreshed = refresh_borrowed_fund_valuations(db, user.id)

    assert [fund.id for fund in refreshed] == [open_fund.id]
    assert open_fund.current_value == money("9000")
    assert open_fund.profit_loss == money("-1000")
    assert returned_fund.profit_loss is None


def test_summary_counts_month_activity() -> None:
    db = _session()
    user = _user(db)
    holding = _holding(db, user, "110")
    db.add_all(
        [
            BorrowedFund(
                user_id=user.id,
                lender_name="Uncle",
                borrowed_amount=money("20000"),
                borrowed_date=date(2026, 3, 2),
                invested_in_holding_id=holding.id,
                profit_loss=money("2000"),
            ),
            BorrowedFund(
                user_id=user.id,
                lender_name="Friend",
                borrowed_amount=money("8000"),
                borrowed_date=date(2026, 1, 15),
                returned_amount=money("8000"),
                actual_return_date=date(2026, 3, 20),
                is_fully_returned=True,
            ),
            BorrowedFund(
                user_id=user.id,
                lender_name="Old",
                borrowed_amount=money("3000"),
                borrowed_date=date(2025, 5, 1),
                returned_amount=money("3000"),
                actual_return_date=date(2025, 9, 1),
                is_fully_returned=True,
            ),
            BorrowedFund(
                user_id=user.id,
                lender_name="Future",
                borrowed_amount=money("4000"),
                borrowed_date=date(2026, 4, 1),
            ),
        ]
    )
    db.flush()

    summary = summarize_borrowed_funds(db, user.id, 2026, 3)

    assert summary.received == money("20000")
    assert summary.returned == money("8000")
    assert summary.count == 1
    assert summary.profit == money("2000")
    assert [item.lender_name for item in summary.items] == ["Friend", "Uncle"]
    assert summary.items[1].invested_in == "NIFTY50 - Nifty Index Fund"
    assert summary.items[0].profit_loss_pct is None
    assert summary.items[1].profit_loss_pct == Decimal("10.000000")

    payload = borrowed_funds_payload(summary)
    assert payload[0]["profit_loss_pct"] is None
    assert payload[1]["profit_loss_pct"] == "10.000000"
    assert payload[1]["profit_loss"] == "2000.00"
