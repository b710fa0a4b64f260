from datetime import datetime

from pydantic import BaseModel, Field

from fintrack.schemas.common import Money, ORMModel


class MonthlySnapshotOut(ORMModel):
    id: int | None = None
    user_id: int
    year: int
    month: int

    salary: Money
    additional_income: Money
    total_income: Money
    tax_amount: Money
    after_tax: Money
    total_loans: Money
    total_sips: Money

    total_expenses: Money
    expected_expenses: Money
    unexpected_expenses: Money
    needs_expenses: Money
    avoid_expenses: Money

    expected_budget: Money
    unexpected_budget: Money
    available_for_expenses: Money
    is_using_budget: bool
    available_for_investment: Money
    is_using_allocation: bool
    allocation_breakdown: list[dict] | None = None

    available_amount: Money
    spent_amount: Money
    surplus_amount: Money
    planned_surplus: Money
    cash_remaining: Money
    previous_surplus: Money
    investments_made: Money | None = None
    one_time_investments: Money

    scheduled_emi_count: int
    unpaid_emi_count: int
    current_month_emi_paid: Money
    additional_emi_paid: Money
    total_emi_paid: Money
    active_loans_count: int
    loans_closed_count: int

    sip_executions_total: Money
    sip_executions_count: int
    actual_sip_amount: Money

    member_borrowed: Money
    member_lent: Money
    member_transactions_count: int
    member_transactions_data: list[dict] | None = None

    borrowed_funds_received: Money
    borrowed_funds_returned: Money
    borrowed_funds_count: int
    borrowed_funds_profit: Money
    borrowed_funds_data: list[dict] | None = None

    month_invested: Money
    month_current_value: Money
    month_returns: Money
    portfolio_investment: Money
    portfolio_current_value: Money
    portfolio_pl: Money

    is_closed: bool = False
    closed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CloseMonthRequest(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1900, le=9999)
    force_recalculate: bool = False


class CloseMonthResponse(BaseModel):
    message: str
    created: bool
    snapshot: MonthlySnapshotOut


class CronFailure(BaseModel):
    user_id: int
    error: str


class CronCloseResponse(BaseModel):
    year: int
    month: int
    total_users: int
    created: int
    updated: int
    skipped: int
    failed: int
    failures: list[CronFailure] = []
