from __future__ import annotations

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from fintrack.models.expense import Expense, ExpenseBudget
from fintrack.models.income import Income, TaxSetting
from fintrack.models.investment import Holding, InvestmentAllocation, InvestmentTransaction
from fintrack.models.loan import EMI, Loan
from fintrack.models.member import MemberTransaction
from fintrack.models.sip import SIP, SIPExecution
from fintrack.services.borrowed_funds import summarize_borrowed_funds
from fintrack.services.inputs import (
    AllocationInput,
    EMIInput,
    ExpenseBudgetInput,
    ExpenseInput,
    HoldingInput,
    InvestmentTransactionInput,
    LoanInput,
    MemberTransactionInput,
    PaidEMIInput,
    PeriodInputs,
    SIPExecutionInput,
    SIPInput,
    TaxSettingInput,
)
from fintrack.services.period import MonthWindow, resolve_salary


def _emi_input(emi: EMI) -> EMIInput:
    return EMIInput(
        due_date=emi.due_date,
        emi_amount=emi.emi_amount,
        paid_date=emi.paid_date,
        paid_amount=emi.paid_amount,
        is_paid=emi.is_paid,
    )


def _load_tax_setting(db: Session, user_id: int) -> TaxSettingInput | None:
    setting = db.scalar(
        select(TaxSetting)
        .where(TaxSetting.user_id == user_id)
        .order_by(TaxSetting.updated_at.desc(), TaxSetting.id.desc())
        .limit(1)
    )
    if setting is None:
        return None
    return TaxSettingInput(
        mode=setting.mode,
        percentage=setting.percentage,
        fixed_amount=setting.fixed_amount,
    )


def _load_loans(db: Session, user_id: int, window: MonthWindow) -> list[LoanInput]:
    loans = list(
        db.scalars(
            select(Loan)
            .where(
                Loan.user_id == user_id,
                Loan.is_active.is_(True),
                Loan.start_date < window.end,
                or_(Loan.end_date.is_(None), Loan.end_date >= window.start),
            )
            .order_by(Loan.id)
        ).all()
    )
    if not loans:
        return []

    due_by_loan: dict[int, list[EMIInput]] = {}
    due_rows = db.scalars(
        select(EMI)
        .where(
            EMI.loan_id.in_([loan.id for loan in loans]),
            EMI.due_date >= window.start,
            EMI.due_date < window.end,
        )
        .order_by(EMI.due_date, EMI.id)
    ).all()
    for emi in due_rows:
        due_by_loan.setdefault(emi.loan_id, []).append(_emi_input(emi))

    return [
        LoanInput(
            loan_id=loan.id,
            emi_amount=loan.emi_amount,
            emis=tuple(due_by_loan.get(loan.id, [])),
        )
        for loan in loans
    ]


def _load_paid_emis(db: Session, user_id: int, window: MonthWindow) -> list[PaidEMIInput]:
    rows = db.execute(
        select(EMI, Loan.emi_amount)
        .join(Loan, Loan.id == EMI.loan_id)
        .where(
            Loan.user_id == user_id,
            EMI.is_paid.is_(True),
            EMI.paid_date >= window.start,
            EMI.paid_date < window.end,
        )
        .order_by(EMI.paid_date, EMI.id)
    ).all()
    return [PaidEMIInput(loan_emi_amount=loan_emi_amount, emi=_emi_input(emi)) for emi, loan_emi_amount in rows]


def _count_closed_loans(db: Session, user_id: int, window: MonthWindow) -> int:
    return int(
        db.scalar(
            select(func.count(Loan.id)).where(
                Loan.user_id == user_id,
                Loan.closed_at >= window.start,
                Loan.closed_at < window.end,
            )
        )
        or 0
    )


def _load_sips(db: Session, user_id: int, window: MonthWindow) -> list[SIPInput]:
    sips = db.scalars(
        select(SIP)
        .where(
            SIP.user_id == user_id,
            SIP.is_active.is_(True),
            SIP.start_date < window.end,
            or_(SIP.end_date.is_(None), SIP.end_date >= window.start),
        )
        .order_by(SIP.id)
    ).all()
    return [
        SIPInput(
            sip_id=sip.id,
            amount=sip.amount,
            frequency=sip.frequency,
            start_date=sip.start_date,
            end_date=sip.end_date,
            custom_day=sip.custom_day,
        )
        for sip in sips
    ]


def _load_sip_executions(db: Session, user_id: int, window: MonthWindow) -> list[SIPExecutionInput]:
    rows = db.scalars(
        select(SIPExecution)
        .where(
            SIPExecution.user_id == user_id,
            SIPExecution.execution_date >= window.start,
            SIPExecution.execution_date < window.end,
        )
        .order_by(SIPExecution.execution_date, SIPExecution.id)
    ).all()
    return [
        SIPExecutionInput(
            amount=row.amount,
            execution_date=row.execution_date,
            status=row.status,
            amount_inr=row.amount_inr,
        )
        for row in rows
    ]


def _load_budget(db: Session, user_id: int) -> ExpenseBudgetInput | None:
    budget = db.scalar(select(ExpenseBudget).where(ExpenseBudget.user_id == user_id))
    if budget is None:
        return None
    return ExpenseBudgetInput(
        expected_percent=budget.expected_percent,
        expected_amount=budget.expected_amount,
        unexpected_percent=budget.unexpected_percent,
        unexpected_amount=budget.unexpected_amount,
    )


def _load_member_transactions(db: Session, user_id: int, window: MonthWindow) -> list[MemberTransactionInput]:
    rows = db.scalars(
        select(MemberTransaction)
        .options(selectinload(MemberTransaction.member))
        .where(
            MemberTransaction.user_id == user_id,
            MemberTransaction.is_settled.is_(False),
            MemberTransaction.tx_date >= window.start,
            MemberTransaction.tx_date < window.end,
        )
        .order_by(MemberTransaction.tx_date, MemberTransaction.id)
    ).all()
    return [
        MemberTransactionInput(
            transaction_id=row.id,
            member_id=row.member_id,
            member_name=row.member.name,
            transaction_type=row.transaction_type,
            amount=row.amount,
            tx_date=row.tx_date,
        )
        for row in rows
    ]


def _load_investment_transactions(
    db: Session,
    user_id: int,
    window: MonthWindow,
) -> list[InvestmentTransactionInput]:
    rows = db.scalars(
        select(InvestmentTransaction)
        .options(selectinload(InvestmentTransaction.holding))
        .where(
            InvestmentTransaction.user_id == user_id,
            InvestmentTransaction.purchase_date >= window.start,
            InvestmentTransaction.purchase_date < window.end,
        )
        .order_by(InvestmentTransaction.purchase_date, InvestmentTransaction.id)
    ).all()
    return [
        InvestmentTransactionInput(
            transaction_type=row.transaction_type,
            qty=row.qty,
            price=row.price,
            amount=row.amount,
            amount_inr=row.amount_inr,
            holding_current_price=row.holding.current_price if row.holding is not None else None,
            holding_currency=row.holding.currency if row.holding is not None else None,
            holding_usd_inr_rate=row.holding.usd_inr_rate if row.holding is not None else None,
        )
        for row in rows
    ]


def load_period_inputs(db: Session, user_id: int, window: MonthWindow) -> PeriodInputs:
    """Read every ledger the snapshot depends on for one user and month."""
    loans = _load_loans(db, user_id, window)

    incomes = db.scalars(
        select(Income.amount).where(
            Income.user_id == user_id,
            Income.tx_date >= window.start,
            Income.tx_date < window.end,
        )
    ).all()
    expenses = db.scalars(
        select(Expense)
        .where(
            Expense.user_id == user_id,
            Expense.tx_date >= window.start,
            Expense.tx_date < window.end,
        )
        .order_by(Expense.tx_date, Expense.id)
    ).all()
    allocations = db.scalars(
        select(InvestmentAllocation)
        .where(InvestmentAllocation.user_id == user_id)
        .order_by(InvestmentAllocation.id)
    ).all()
    holdings = db.scalars(
        select(Holding).where(Holding.user_id == user_id, Holding.qty > 0).order_by(Holding.id)
    ).all()

    return PeriodInputs(
        salary=resolve_salary(db, user_id, window),
        incomes=tuple(incomes),
        tax_setting=_load_tax_setting(db, user_id),
        loans=tuple(loans),
        paid_emis=tuple(_load_paid_emis(db, user_id, window)),
        active_loans_count=len(loans),
        loans_closed_count=_count_closed_loans(db, user_id, window),
        sips=tuple(_load_sips(db, user_id, window)),
        sip_executions=tuple(_load_sip_executions(db, user_id, window)),
        expenses=tuple(
            ExpenseInput(
                amount=row.amount,
                expense_type=row.expense_type,
                category=row.category,
                needs_portion=row.needs_portion,
                avoid_portion=row.avoid_portion,
            )
            for row in expenses
        ),
        budget=_load_budget(db, user_id),
        allocations=tuple(
            AllocationInput(
                bucket=row.bucket,
                allocation_type=row.allocation_type,
                percent=row.percent,
                custom_amount=row.custom_amount,
            )
            for row in allocations
        ),
        member_transactions=tuple(_load_member_transactions(db, user_id, window)),
        borrowed_funds=summarize_borrowed_funds(db, user_id, window.year, window.month),
        investment_transactions=tuple(_load_investment_transactions(db, user_id, window)),
        holdings=tuple(
            HoldingInput(
                qty=row.qty,
                avg_cost=row.avg_cost,
                current_price=row.current_price,
                currency=row.currency,
                usd_inr_rate=row.usd_inr_rate,
            )
            for row in holdings
        ),
    )
