from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from fintrack.models.enums import AllocationType
from fintrack.services.inputs import AllocationInput, ExpenseBudgetInput
from fintrack.utils.decimal_math import money, percent_of


@dataclass(frozen=True)
class SurplusInput:
    income: Decimal
    tax: Decimal
    scheduled_loans: Decimal
    scheduled_sips: Decimal
    actual_expenses: Decimal
    paid_emis: Decimal
    actual_sips: Decimal
    member_borrowed: Decimal
    member_lent: Decimal
    one_time_investments: Decimal


@dataclass(frozen=True)
class BudgetResult:
    expected_budget: Decimal
    unexpected_budget: Decimal
    available_for_expenses: Decimal
    is_using_budget: bool


@dataclass(frozen=True)
class AllocationResult:
    available_for_investment: Decimal
    is_using_allocation: bool
    breakdown: list[dict] = field(default_factory=list)


@dataclass(frozen=True)
class SurplusResult:
    after_tax: Decimal
    after_loans: Decimal
    available_surplus: Decimal
    budget: BudgetResult
    allocation: AllocationResult
    planned_surplus: Decimal
    cash_remaining: Decimal
    available_amount: Decimal
    spent_amount: Decimal
    surplus_amount: Decimal


def _bucket_amount(surplus: Decimal, percent: Decimal | None, amount: Decimal | None) -> Decimal:
    if percent is not None:
        return percent_of(surplus, percent)
    if amount is not None:
        return money(amount)
    return money(0)


def resolve_expense_budget(
    available_surplus: Decimal,
    budget: ExpenseBudgetInput | None,
) -> BudgetResult:
    """Split the surplus into expected/unexpected expense budgets.

    Percent wins over a fixed amount for the same bucket. Without any budget
    field set the whole surplus is available for expenses.
    """
    surplus = money(available_surplus)
    if budget is None or not budget.is_configured:
        return BudgetResult(
            expected_budget=money(0),
            unexpected_budget=money(0),
            available_for_expenses=surplus,
            is_using_budget=False,
        )

    expected = _bucket_amount(surplus, budget.expected_percent, budget.expected_amount)
    unexpected = _bucket_amount(surplus, budget.unexpected_percent, budget.unexpected_amount)
    return BudgetResult(
        expected_budget=expected,
        unexpected_budget=unexpected,
        available_for_expenses=money(expected + unexpected),
        is_using_budget=True,
    )


def resolve_investment_allocation(
    available_surplus: Decimal,
    actual_expenses: Decimal,
    allocations: tuple[AllocationInput, ...] | list[AllocationInput],
) -> AllocationResult:
    surplus = money(available_surplus)
    if not allocations:
        leftover = money(surplus - money(actual_expenses))
        return AllocationResult(
            available_for_investment=max(leftover, money(0)),
            is_using_allocation=False,
        )

    total = money(0)
    breakdown: list[dict] = []
    for row in allocations:
        if row.allocation_type == AllocationType.percentage:
            amount = percent_of(surplus, row.percent) if row.percent is not None else money(0)
        elif row.allocation_type == AllocationType.amount:
            amount = money(row.custom_amount) if row.custom_amount is not None else money(0)
        else:
            raise ValueError(f"Unsupported allocation type: {row.allocation_type}")
        total = money(total + amount)
        breakdown.append(
            {
                "bucket": row.bucket.value,
                "type": row.allocation_type.value,
                "percent": str(row.percent) if row.percent is not None else None,
                "amount": str(amount),
            }
        )

    return AllocationResult(available_for_investment=total, is_using_allocation=True, breakdown=breakdown)


def calculate_surplus(
    values: SurplusInput,
    budget: ExpenseBudgetInput | None = None,
    allocations: tuple[AllocationInput, ...] | list[AllocationInput] = (),
) -> SurplusResult:
    income = money(values.income)
    actual_expenses = money(values.actual_expenses)

    after_tax = money(income - money(values.tax))
    after_loans = money(after_tax - money(values.scheduled_loans))
    available_surplus = money(after_loans - money(values.scheduled_sips))

    budget_result = resolve_expense_budget(available_surplus, budget)
    allocation_result = resolve_investment_allocation(available_surplus, actual_expenses, allocations)

    planned_surplus = money(available_surplus - actual_expenses)
    cash_remaining = money(
        income
        - money(values.tax)
        - money(values.paid_emis)
        - money(values.actual_sips)
        + money(values.member_borrowed)
        - money(values.member_lent)
        - actual_expenses
        - money(values.one_time_investments)
    )

    spent_amount = money(actual_expenses + money(values.one_time_investments))
    return SurplusResult(
        after_tax=after_tax,
        after_loans=after_loans,
        available_surplus=available_surplus,
        budget=budget_result,
        allocation=allocation_result,
        planned_surplus=planned_surplus,
        cash_remaining=cash_remaining,
        available_amount=available_surplus,
        spent_amount=spent_amount,
        surplus_amount=money(available_surplus - spent_amount),
    )
