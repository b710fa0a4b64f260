from datetime import date
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from fintrack.db.base import Base
from fintrack.models import (
    EMI,
    SIP,
    BorrowedFund,
    ExecutionStatus,
    Expense,
    ExpenseType,
    Holding,
    InvestBucket,
    InvestmentTransaction,
    InvestmentTransactionType,
    Loan,
    LoanType,
    Member,
    MemberTransaction,
    MemberTransactionType,
    MonthlySnapshot,
    SalaryHistory,
    SIPExecution,
    SIPFrequency,
    SpendCategory,
    TaxMode,
    TaxSetting,
    User,
)
from fintrack.services.snapshot_engine import compute_monthly_snapshot, snapshot_values
from fintrack.utils.decimal_math import money


def _session() -> Session:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)()


def _seed_salary_scenario(db: Session) -> User:
    user = User(email="engine@test.com", full_name="Engine User")
    db.add(user)
    db.flush()
    loan = Loan(
        user_id=user.id,
        loan_type=LoanType.car_loan,
        institution="Bank",
        principal_amount=money("300000"),
        emi_amount=money("5000"),
        tenure=60,
        start_date=date(2025, 1, 5),
    )
    db.add_all(
        [
            SalaryHistory(user_id=user.id, monthly=money("100000"), effective_from=date(2025, 1, 1)),
            TaxSetting(user_id=user.id, mode=TaxMode.percentage, percentage=Decimal("10")),
            loan,
            SIP(
                user_id=user.id,
                name="Index fund",
                amount=money("10000"),
                frequency=SIPFrequency.monthly,
                start_date=date(2025, 6, 17),
            ),
            Expense(
                user_id=user.id,
                title="Rent",
                amount=money("15000"),
                tx_date=date(2026, 3, 2),
                expense_type=ExpenseType.expected,
                category=SpendCategory.needs,
            ),
            Expense(
                user_id=user.id,
                title="Dinner",
                amount=money("5000"),
                tx_date=date(2026, 3, 21),
                expense_type=ExpenseType.unexpected,
                category=SpendCategory.avoid,
            ),
            Expense(
                user_id=user.id,
                title="Last month",
                amount=money("8000"),
                tx_date=date(2026, 2, 27),
                expense_type=ExpenseType.expected,
                category=SpendCategory.needs,
            ),
        ]
    )
    db.flush()
    db.add(EMI(loan_id=loan.id, due_date=date(2026, 3, 5)))
    db.flush()
    return user


def test_salary_scenario_end_to_end() -> None:
    db = _session()
    user = _seed_salary_scenario(db)

    preview = compute_monthly_snapshot(user.id, 2026, 3, db=db)

    assert preview.salary == money("100000")
    assert preview.tax_amount == money("10000")
    assert preview.after_tax == money("90000")
    assert preview.total_loans == money("5000")
    assert preview.total_sips == money("10000")
    assert preview.available_amount == money("75000")
    assert preview.total_expenses == money("20000")
    assert preview.planned_surplus == money("55000")
    assert preview.available_for_expenses == money("75000")
    assert preview.is_using_budget is False
    assert preview.available_for_investment == money("55000")
    assert preview.is_using_allocation is False
    assert preview.surplus_amount == money("55000")
    assert preview.scheduled_emi_count == 1
    assert preview.unpaid_emi_count == 1
    assert preview.total_emi_paid == money(0)
    assert preview.actual_sip_amount == money("10000")
    # nothing paid yet, the SIP schedule stands in for executions
    assert preview.cash_remaining == money("60000")
    assert preview.investments_made == money("10000")
    assert preview.previous_surplus == money(0)


def test_planned_surplus_conservation() -> None:
    db = _session()
    user = _seed_salary_scenario(db)
    for month in (1, 2, 3, 4):
        preview = compute_monthly_snapshot(user.id, 2026, month, db=db)
        assert preview.planned_surplus == preview.available_amount - preview.total_expenses


def test_actuals_flow_into_cash_remaining() -> None:
    db = _session()
    user = _seed_salary_scenario(db)
    sip = db.query(SIP).filter(SIP.user_id == user.id).one()
    emi = db.query(EMI).one()
    emi.is_paid = True
    emi.paid_date = date(2026, 3, 6)
    emi.paid_amount = money("5000")
    member = Member(user_id=user.id, name="Ravi")
    db.add_all(
        [
            member,
            SIPExecution(
                sip_id=sip.id,
                user_id=user.id,
                execution_date=date(2026, 3, 17),
                amount=money("9500"),
                status=ExecutionStatus.success,
            ),
        ]
    )
    db.flush()
    db.add_all(
        [
            MemberTransaction(
                user_id=user.id,
                member_id=member.id,
                transaction_type=MemberTransactionType.owe,
                amount=money("2000"),
                tx_date=date(2026, 3, 10),
            ),
            MemberTransaction(
                user_id=user.id,
                member_id=member.id,
                transaction_type=MemberTransactionType.gave,
                amount=money("700"),
                tx_date=date(2026, 3, 12),
                is_settled=True,
            ),
        ]
    )
    holding = Holding(
        user_id=user.id,
        bucket=InvestBucket.ind_stock,
        symbol="INFY",
        name="Infosys",
        qty=Decimal("10"),
        avg_cost=money("1500"),
        current_price=money("1600"),
    )
    db.add(holding)
    db.flush()
    db.add(
        InvestmentTransaction(
            user_id=user.id,
            holding_id=holding.id,
            bucket=InvestBucket.ind_stock,
            symbol="INFY",
            qty=Decimal("10"),
            price=money("1500"),
            amount=money("15000"),
            transaction_type=InvestmentTransactionType.one_time_purchase,
            purchase_date=date(2026, 3, 25),
        )
    )
    db.flush()

    preview = compute_monthly_snapshot(user.id, 2026, 3, db=db)

    assert preview.current_month_emi_paid == money("5000")
    assert preview.unpaid_emi_count == 0
    assert preview.sip_executions_count == 1
    assert preview.actual_sip_amount == money("9500")
    assert preview.member_borrowed == money("2000")
    assert preview.member_lent == money(0)
    assert preview.member_transactions_count == 1
    assert preview.member_transactions_data[0]["member_name"] == "Ravi"
    assert preview.one_time_investments == money("15000")
    assert preview.month_returns == money("1000")
    assert preview.portfolio_pl == money("1000")
    # 100000 - 10000 - 5000 - 9500 + 2000 - 0 - 20000 - 15000
    assert preview.cash_remaining == money("42500")
    assert preview.spent_amount == money("35000")
    assert preview.surplus_amount == money("40000")
    assert preview.investments_made == money("24500")


def test_borrowed_funds_feed_the_snapshot() -> None:
    db = _session()
    user = _seed_salary_scenario(db)
    db.add_all(
        [
            BorrowedFund(
                user_id=user.id,
                lender_name="Uncle",
                borrowed_amount=money("50000"),
                borrowed_date=date(2026, 3, 3),
                profit_loss=money("1200"),
            ),
            BorrowedFund(
                user_id=user.id,
                lender_name="Friend",
                borrowed_amount=money("10000"),
                borrowed_date=date(2025, 11, 3),
                returned_amount=money("10000"),
                actual_return_date=date(2026, 3, 30),
                is_fully_returned=True,
            ),
        ]
    )
    db.flush()

    preview = compute_monthly_snapshot(user.id, 2026, 3, db=db)

    assert preview.borrowed_funds_received == money("50000")
    assert preview.borrowed_funds_returned == money("10000")
    assert preview.borrowed_funds_count == 1
    assert preview.borrowed_funds_profit == money("1200")
    assert {row["lender_name"] for row in preview.borrowed_funds_data} == {"Uncle", "Friend"}


def test_preview_is_not_persisted() -> None:
    db = _session()
    user = _seed_salary_scenario(db)
    preview = compute_monthly_snapshot(user.id, 2026, 3, db=db)
    values = snapshot_values(preview)

    assert "user_id" not in values
    assert values["surplus_amount"] == money("55000")
    assert db.query(MonthlySnapshot).count() == 0
