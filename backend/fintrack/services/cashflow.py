from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from fintrack.models.enums import (
    ExecutionStatus,
    ExpenseType,
    InvestmentTransactionType,
    MemberTransactionType,
    SIPFrequency,
    SpendCategory,
    TaxMode,
)
from fintrack.services.inputs import (
    BorrowedFundsSummary,
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
from fintrack.services.period import MonthWindow, months_between
from fintrack.utils.decimal_math import money, percent_of


WEEKS_PER_MONTH = Decimal("4.33")

BORROWED_TYPES = {MemberTransactionType.owe, MemberTransactionType.expense_paid_by_them}
LENT_TYPES = {MemberTransactionType.gave, MemberTransactionType.expense_paid_for_them}


@dataclass(frozen=True)
class ScheduledLoans:
    total: Decimal
    emi_count: int
    unpaid_count: int


@dataclass(frozen=True)
class PaidLoans:
    current_month: Decimal
    additional: Decimal
    current_month_count: int
    additional_count: int

    @property
    def total(self) -> Decimal:
        return money(self.current_month + self.additional)


@dataclass(frozen=True)
class SIPActuals:
    executed_total: Decimal
    executed_count: int
    actual_amount: Decimal


@dataclass(frozen=True)
class ExpenseBreakdown:
    total: Decimal
    expected: Decimal
    unexpected: Decimal
    needs: Decimal
    avoid: Decimal


@dataclass(frozen=True)
class MemberTotals:
    borrowed: Decimal
    lent: Decimal
    count: int
    items: list[dict] = field(default_factory=list)


@dataclass(frozen=True)
class InvestmentReturns:
    invested: Decimal
    current_value: Decimal
    returns: Decimal
    portfolio_investment: Decimal
    portfolio_current_value: Decimal
    portfolio_pl: Decimal


@dataclass(frozen=True)
class CashFlowTotals:
    salary: Decimal
    additional_income: Decimal
    income: Decimal
    tax: Decimal
    loans: ScheduledLoans
    paid_loans: PaidLoans
    active_loans_count: int
    loans_closed_count: int
    scheduled_sips: Decimal
    sip_actuals: SIPActuals
    expenses: ExpenseBreakdown
    members: MemberTotals
    borrowed_funds: BorrowedFundsSummary
    one_time_investments: Decimal
    returns: InvestmentReturns


def compute_tax(salary: Decimal, setting: TaxSettingInput | None) -> Decimal:
    salary = money(salary)
    if setting is None or salary <= 0:
        return money(0)

    percent_part = (
        percent_of(salary, setting.percentage) if setting.percentage is not None else money(0)
    )
    fixed_part = money(setting.fixed_amount) if setting.fixed_amount is not None else money(0)

    if setting.mode == TaxMode.percentage:
        return percent_part
    if setting.mode == TaxMode.fixed:
        return fixed_part
    if setting.mode == TaxMode.hybrid:
        return money(percent_part + fixed_part)
    raise ValueError(f"Unsupported tax mode: {setting.mode}")


def _emi_amount(loan_emi_amount: Decimal, emi_amount: Decimal | None) -> Decimal:
    return money(emi_amount) if emi_amount is not None else money(loan_emi_amount)


def scheduled_loans(loans: tuple[LoanInput, ...], window: MonthWindow) -> ScheduledLoans:
    total = money(0)
    emi_count = 0
    unpaid_count = 0
    for loan in loans:
        for emi in loan.emis:
            if not window.contains(emi.due_date):
                continue
            total = money(total + _emi_amount(loan.emi_amount, emi.emi_amount))
            emi_count += 1
            if not emi.is_paid:
                unpaid_count += 1
    return ScheduledLoans(total=total, emi_count=emi_count, unpaid_count=unpaid_count)


def paid_loans(paid_emis: tuple[PaidEMIInput, ...], window: MonthWindow) -> PaidLoans:
    current = money(0)
    additional = money(0)
    current_count = 0
    additional_count = 0
    for row in paid_emis:
        emi = row.emi
        if not window.contains(emi.paid_date):
            continue
        amount = (
            money(emi.paid_amount)
            if emi.paid_amount is not None
            else _emi_amount(row.loan_emi_amount, emi.emi_amount)
        )
        if window.contains(emi.due_date):
            current = money(current + amount)
            current_count += 1
        else:
            additional = money(additional + amount)
            additional_count += 1
    return PaidLoans(
        current_month=current,
        additional=additional,
        current_month_count=current_count,
        additional_count=additional_count,
    )


def _sip_covers_window(sip: SIPInput, window: MonthWindow) -> bool:
    if sip.start_date >= window.end:
        return False
    return sip.end_date is None or sip.end_date >= window.start


def sip_amount_for_month(sip: SIPInput, window: MonthWindow) -> Decimal:
    """Contribution a SIP makes to ``window`` according to its frequency.

    CUSTOM plans run on ``custom_day`` (the start date's day when unset) and
    contribute nothing in months that do not have that day or where the run
    date falls outside the plan's start/end range.
    """
    if not _sip_covers_window(sip, window):
        return money(0)

    amount = money(sip.amount)
    elapsed = months_between(sip.start_date, window.year, window.month)

    if sip.frequency == SIPFrequency.monthly:
        return amount
    if sip.frequency == SIPFrequency.yearly:
        return amount if window.month == sip.start_date.month else money(0)
    if sip.frequency == SIPFrequency.quarterly:
        return amount if elapsed % 3 == 0 else money(0)
    if sip.frequency == SIPFrequency.half_yearly:
        return amount if elapsed % 6 == 0 else money(0)
    if sip.frequency == SIPFrequency.daily:
        return money(amount * window.days)
    if sip.frequency == SIPFrequency.weekly:
        return money(amount * WEEKS_PER_MONTH)
    if sip.frequency == SIPFrequency.custom:
        run_day = sip.custom_day or sip.start_date.day
        if run_day < 1 or run_day > window.days:
            return money(0)
        run_date = date(window.year, window.month, run_day)
        if run_date < sip.start_date:
            return money(0)
        if sip.end_date is not None and run_date > sip.end_date:
            return money(0)
        return amount
    raise ValueError(f"Unsupported SIP frequency: {sip.frequency}")


def scheduled_sips(sips: tuple[SIPInput, ...], window: MonthWindow) -> Decimal:
    return money(sum((sip_amount_for_month(sip, window) for sip in sips), money(0)))


def sip_actuals(
    executions: tuple[SIPExecutionInput, ...],
    scheduled_total: Decimal,
    window: MonthWindow,
) -> SIPActuals:
    succeeded = [
        row
        for row in executions
        if row.status == ExecutionStatus.success and window.contains(row.execution_date)
    ]
    executed = money(0)
    for row in succeeded:
        executed = money(executed + money(row.amount_inr if row.amount_inr is not None else row.amount))
    # no recorded executions: assume the schedule ran
    actual = executed if succeeded else money(scheduled_total)
    return SIPActuals(executed_total=executed, executed_count=len(succeeded), actual_amount=actual)


def _expense_contribution(expense: ExpenseInput) -> tuple[Decimal, Decimal, Decimal]:
    """Return (total, needs, avoid) for one expense row."""
    amount = money(expense.amount)
    if expense.category == SpendCategory.needs:
        return amount, amount, money(0)
    if expense.category == SpendCategory.avoid:
        return amount, money(0), amount
    if expense.category == SpendCategory.partial_needs:
        if expense.needs_portion is None and expense.avoid_portion is None:
            return amount, money(0), money(0)
        needs = money(expense.needs_portion or 0)
        avoid = money(expense.avoid_portion or 0)
        return money(needs + avoid), needs, avoid
    raise ValueError(f"Unsupported spend category: {expense.category}")


def expense_breakdown(expenses: tuple[ExpenseInput, ...]) -> ExpenseBreakdown:
    total = money(0)
    expected = money(0)
    unexpected = money(0)
    needs = money(0)
    avoid = money(0)

    for expense in expenses:
        amount, needs_part, avoid_part = _expense_contribution(expense)
        total = money(total + amount)
        if expense.expense_type == ExpenseType.expected:
            expected = money(expected + amount)
        else:
            unexpected = money(unexpected + amount)
        needs = money(needs + needs_part)
        avoid = money(avoid + avoid_part)

    return ExpenseBreakdown(
        total=total,
        expected=expected,
        unexpected=unexpected,
        needs=needs,
        avoid=avoid,
    )


def member_totals(transactions: tuple[MemberTransactionInput, ...]) -> MemberTotals:
    borrowed = money(0)
    lent = money(0)
    items: list[dict] = []
    for txn in transactions:
        amount = money(txn.amount)
        if txn.transaction_type in BORROWED_TYPES:
            borrowed = money(borrowed + amount)
        elif txn.transaction_type in LENT_TYPES:
            lent = money(lent + amount)
        else:
            raise ValueError(f"Unsupported member transaction type: {txn.transaction_type}")
        items.append(
            {
                "transaction_id": txn.transaction_id,
                "member_id": txn.member_id,
                "member_name": txn.member_name,
                "transaction_type": txn.transaction_type.value,
                "amount": str(amount),
                "date": txn.tx_date.isoformat(),
            }
        )
    return MemberTotals(borrowed=borrowed, lent=lent, count=len(transactions), items=items)


def one_time_investments(transactions: tuple[InvestmentTransactionInput, ...]) -> Decimal:
    total = money(0)
    for txn in transactions:
        if txn.transaction_type != InvestmentTransactionType.one_time_purchase:
            continue
        total = money(total + money(txn.amount_inr if txn.amount_inr is not None else txn.amount))
    return total


def _to_base(amount: Decimal, currency: str | None, rate: Decimal | None, base_currency: str) -> Decimal:
    """Convert ``amount`` quoted in ``currency`` using the stored USD rate."""
    if currency is not None and currency != base_currency and rate is not None:
        return money(amount * rate)
    return money(amount)


def _holding_value_in_base(holding: HoldingInput, amount: Decimal, base_currency: str) -> Decimal:
    return _to_base(amount, holding.currency, holding.usd_inr_rate, base_currency)


def investment_returns(
    transactions: tuple[InvestmentTransactionInput, ...],
    holdings: tuple[HoldingInput, ...],
    base_currency: str = "INR",
) -> InvestmentReturns:
    invested = money(0)
    current_value = money(0)
    for txn in transactions:
        # amount_inr is already settled in the base currency
        if txn.amount_inr is not None:
            cost = money(txn.amount_inr)
        else:
            cost = _to_base(txn.amount, txn.holding_currency, txn.holding_usd_inr_rate, base_currency)
        if txn.holding_current_price is not None:
            value_now = _to_base(
                txn.qty * txn.holding_current_price,
                txn.holding_currency,
                txn.holding_usd_inr_rate,
                base_currency,
            )
        else:
            value_now = cost
        invested = money(invested + cost)
        current_value = money(current_value + value_now)

    portfolio_investment = money(0)
    portfolio_value = money(0)
    for holding in holdings:
        if holding.qty <= 0:
            continue
        price_now = holding.current_price if holding.current_price is not None else holding.avg_cost
        portfolio_investment = money(
            portfolio_investment + _holding_value_in_base(holding, holding.qty * holding.avg_cost, base_currency)
        )
        portfolio_value = money(
            portfolio_value + _holding_value_in_base(holding, holding.qty * price_now, base_currency)
        )

    return InvestmentReturns(
        invested=invested,
        current_value=current_value,
        returns=money(current_value - invested),
        portfolio_investment=portfolio_investment,
        portfolio_current_value=portfolio_value,
        portfolio_pl=money(portfolio_value - portfolio_investment),
    )


def aggregate(inputs: PeriodInputs, window: MonthWindow, base_currency: str = "INR") -> CashFlowTotals:
    salary = money(inputs.salary)
    additional_income = money(sum((money(value) for value in inputs.incomes), money(0)))
    sip_total = scheduled_sips(inputs.sips, window)

    return CashFlowTotals(
        salary=salary,
        additional_income=additional_income,
        income=money(salary + additional_income),
        tax=compute_tax(salary, inputs.tax_setting),
        loans=scheduled_loans(inputs.loans, window),
        paid_loans=paid_loans(inputs.paid_emis, window),
        active_loans_count=inputs.active_loans_count,
        loans_closed_count=inputs.loans_closed_count,
        scheduled_sips=sip_total,
        sip_actuals=sip_actuals(inputs.sip_executions, sip_total, window),
        expenses=expense_breakdown(inputs.expenses),
        members=member_totals(inputs.member_transactions),
        borrowed_funds=inputs.borrowed_funds,
        one_time_investments=one_time_investments(inputs.investment_transactions),
        returns=investment_returns(inputs.investment_transactions, inputs.holdings, base_currency),
    )
