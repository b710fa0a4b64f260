from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from fintrack.core.config import get_settings
from fintrack.db.session import SessionLocal
from fintrack.models.snapshot import MonthlySnapshot
from fintrack.services.borrowed_funds import borrowed_funds_payload
from fintrack.services.cashflow import aggregate
from fintrack.services.ledgers import load_period_inputs
from fintrack.services.period import month_window, previous_month
from fintrack.services.surplus import SurplusInput, calculate_surplus
from fintrack.utils.decimal_math import money


@dataclass(frozen=True)
class MonthlySnapshotPreview:
    user_id: int
    year: int
    month: int

    salary: Decimal
    additional_income: Decimal
    total_income: Decimal
    tax_amount: Decimal
    after_tax: Decimal
    total_loans: Decimal
    total_sips: Decimal

    total_expenses: Decimal
    expected_expenses: Decimal
    unexpected_expenses: Decimal
    needs_expenses: Decimal
    avoid_expenses: Decimal

    expected_budget: Decimal
    unexpected_budget: Decimal
    available_for_expenses: Decimal
    is_using_budget: bool
    available_for_investment: Decimal
    is_using_allocation: bool

    available_amount: Decimal
    spent_amount: Decimal
    surplus_amount: Decimal
    planned_surplus: Decimal
    cash_remaining: Decimal
    previous_surplus: Decimal
    investments_made: Decimal
    one_time_investments: Decimal

    scheduled_emi_count: int
    unpaid_emi_count: int
    current_month_emi_paid: Decimal
    additional_emi_paid: Decimal
    total_emi_paid: Decimal
    active_loans_count: int
    loans_closed_count: int

    sip_executions_total: Decimal
    sip_executions_count: int
    actual_sip_amount: Decimal

    member_borrowed: Decimal
    member_lent: Decimal
    member_transactions_count: int

    borrowed_funds_received: Decimal
    borrowed_funds_returned: Decimal
    borrowed_funds_count: int
    borrowed_funds_profit: Decimal

    month_invested: Decimal
    month_current_value: Decimal
    month_returns: Decimal
    portfolio_investment: Decimal
    portfolio_current_value: Decimal
    portfolio_pl: Decimal

    allocation_breakdown: list[dict] = field(default_factory=list)
    member_transactions_data: list[dict] = field(default_factory=list)
    borrowed_funds_data: list[dict] = field(default_factory=list)


def snapshot_values(preview: MonthlySnapshotPreview) -> dict:
    """Column values for a ``MonthlySnapshot`` row, keys excluded."""
    values = asdict(preview)
    for key in ("user_id", "year", "month"):
        values.pop(key)
    return values


def previous_surplus_for(db: Session, user_id: int, year: int, month: int) -> Decimal:
    prev_year, prev_month = previous_month(year, month)
    value = db.scalar(
        select(MonthlySnapshot.surplus_amount).where(
            MonthlySnapshot.user_id == user_id,
            MonthlySnapshot.year == prev_year,
            MonthlySnapshot.month == prev_month,
        )
    )
    return money(value) if value is not None else money(0)


def compute_monthly_snapshot(
    user_id: int,
    year: int,
    month: int,
    *,
    db: Session | None = None,
) -> MonthlySnapshotPreview:
    manage_session = db is None
    session = db if db is not None else SessionLocal()
    try:
        window = month_window(year, month)
        inputs = load_period_inputs(session, user_id, window)
        totals = aggregate(inputs, window, base_currency=get_settings().base_currency)

        surplus = calculate_surplus(
            SurplusInput(
                income=totals.income,
                tax=totals.tax,
                scheduled_loans=totals.loans.total,
                scheduled_sips=totals.scheduled_sips,
                actual_expenses=totals.expenses.total,
                paid_emis=totals.paid_loans.total,
                actual_sips=totals.sip_actuals.actual_amount,
                member_borrowed=totals.members.borrowed,
                member_lent=totals.members.lent,
                one_time_investments=totals.one_time_investments,
            ),
            budget=inputs.budget,
            allocations=inputs.allocations,
        )

        return MonthlySnapshotPreview(
            user_id=user_id,
            year=year,
            month=month,
            salary=totals.salary,
            additional_income=totals.additional_income,
            total_income=totals.income,
            tax_amount=totals.tax,
            after_tax=surplus.after_tax,
            total_loans=totals.loans.total,
            total_sips=totals.scheduled_sips,
            total_expenses=totals.expenses.total,
            expected_expenses=totals.expenses.expected,
            unexpected_expenses=totals.expenses.unexpected,
            needs_expenses=totals.expenses.needs,
            avoid_expenses=totals.expenses.avoid,
            expected_budget=surplus.budget.expected_budget,
            unexpected_budget=surplus.budget.unexpected_budget,
            available_for_expenses=surplus.budget.available_for_expenses,
            is_using_budget=surplus.budget.is_using_budget,
            available_for_investment=surplus.allocation.available_for_investment,
            is_using_allocation=surplus.allocation.is_using_allocation,
            available_amount=surplus.available_amount,
            spent_amount=surplus.spent_amount,
            surplus_amount=surplus.surplus_amount,
            planned_surplus=surplus.planned_surplus,
            cash_remaining=surplus.cash_remaining,
            previous_surplus=previous_surplus_for(session, user_id, year, month),
            investments_made=money(totals.sip_actuals.actual_amount + totals.one_time_investments),
            one_time_investments=totals.one_time_investments,
            scheduled_emi_count=totals.loans.emi_count,
            unpaid_emi_count=totals.loans.unpaid_count,
            current_month_emi_paid=totals.paid_loans.current_month,
            additional_emi_paid=totals.paid_loans.additional,
            total_emi_paid=totals.paid_loans.total,
            active_loans_count=totals.active_loans_count,
            loans_closed_count=totals.loans_closed_count,
            sip_executions_total=totals.sip_actuals.executed_total,
            sip_executions_count=totals.sip_actuals.executed_count,
            actual_sip_amount=totals.sip_actuals.actual_amount,
            member_borrowed=totals.members.borrowed,
            member_lent=totals.members.lent,
            member_transactions_count=totals.members.count,
            borrowed_funds_received=money(totals.borrowed_funds.received),
            borrowed_funds_returned=money(totals.borrowed_funds.returned),
            borrowed_funds_count=totals.borrowed_funds.count,
            borrowed_funds_profit=money(totals.borrowed_funds.profit),
            month_invested=totals.returns.invested,
            month_current_value=totals.returns.current_value,
            month_returns=totals.returns.returns,
            portfolio_investment=totals.returns.portfolio_investment,
            portfolio_current_value=totals.returns.portfolio_current_value,
            portfolio_pl=totals.returns.portfolio_pl,
            allocation_breakdown=surplus.allocation.breakdown,
            member_transactions_data=totals.members.items,
            borrowed_funds_data=borrowed_funds_payload(totals.borrowed_funds),
        )
    finally:
        if manage_session:
            session.close()
