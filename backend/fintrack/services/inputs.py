from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from fintrack.models.enums import (
    AllocationType,
    ExecutionStatus,
    ExpenseType,
    InvestBucket,
    InvestmentTransactionType,
    MemberTransactionType,
    SIPFrequency,
    SpendCategory,
    TaxMode,
)


@dataclass(frozen=True)
class TaxSettingInput:
    mode: TaxMode
    percentage: Decimal | None = None
    fixed_amount: Decimal | None = None


@dataclass(frozen=True)
class EMIInput:
    due_date: date
    emi_amount: Decimal | None = None
    paid_date: date | None = None
    paid_amount: Decimal | None = None
    is_paid: bool = False


@dataclass(frozen=True)
class LoanInput:
    loan_id: int
    emi_amount: Decimal
    emis: tuple[EMIInput, ...] = ()


@dataclass(frozen=True)
class PaidEMIInput:
    loan_emi_amount: Decimal
    emi: EMIInput


@dataclass(frozen=True)
class SIPInput:
    sip_id: int
    amount: Decimal
    frequency: SIPFrequency
    start_date: date
    end_date: date | None = None
    custom_day: int | None = None


@dataclass(frozen=True)
class SIPExecutionInput:
    amount: Decimal
    execution_date: date
    status: ExecutionStatus = ExecutionStatus.success
    amount_inr: Decimal | None = None


@dataclass(frozen=True)
class ExpenseInput:
    amount: Decimal
    expense_type: ExpenseType
    category: SpendCategory
    needs_portion: Decimal | None = None
    avoid_portion: Decimal | None = None


@dataclass(frozen=True)
class ExpenseBudgetInput:
    expected_percent: Decimal | None = None
    expected_amount: Decimal | None = None
    unexpected_percent: Decimal | None = None
    unexpected_amount: Decimal | None = None

    @property
    def is_configured(self) -> bool:
        return any(
            value is not None
            for value in (
                self.expected_percent,
                self.expected_amount,
                self.unexpected_percent,
                self.unexpected_amount,
            )
        )


@dataclass(frozen=True)
class AllocationInput:
    bucket: InvestBucket
    allocation_type: AllocationType
    percent: Decimal | None = None
    custom_amount: Decimal | None = None


@dataclass(frozen=True)
class MemberTransactionInput:
    transaction_id: int
    member_id: int
    member_name: str
    transaction_type: MemberTransactionType
    amount: Decimal
    tx_date: date


@dataclass(frozen=True)
class InvestmentTransactionInput:
    transaction_type: InvestmentTransactionType
    qty: Decimal
    price: Decimal
    amount: Decimal
    amount_inr: Decimal | None = None
    holding_current_price: Decimal | None = None
    holding_currency: str | None = None
    holding_usd_inr_rate: Decimal | None = None


@dataclass(frozen=True)
class HoldingInput:
    qty: Decimal
    avg_cost: Decimal
    current_price: Decimal | None = None
    currency: str = "INR"
    usd_inr_rate: Decimal | None = None


@dataclass(frozen=True)
class BorrowedFundItem:
    fund_id: int
    lender_name: str
    borrowed_amount: Decimal
    returned_amount: Decimal
    current_value: Decimal | None
    profit_loss: Decimal | None
    invested_in: str | None
    is_fully_returned: bool
    profit_loss_pct: Decimal | None = None


@dataclass(frozen=True)
class BorrowedFundsSummary:
    received: Decimal
    returned: Decimal
    count: int
    profit: Decimal
    items: tuple[BorrowedFundItem, ...] = ()


@dataclass(frozen=True)
class PeriodInputs:
    """Everything the aggregator reads for one user and month."""

    salary: Decimal
    incomes: tuple[Decimal, ...] = ()
    tax_setting: TaxSettingInput | None = None
    loans: tuple[LoanInput, ...] = ()
    paid_emis: tuple[PaidEMIInput, ...] = ()
    active_loans_count: int = 0
    loans_closed_count: int = 0
    sips: tuple[SIPInput, ...] = ()
    sip_executions: tuple[SIPExecutionInput, ...] = ()
    expenses: tuple[ExpenseInput, ...] = ()
    budget: ExpenseBudgetInput | None = None
    allocations: tuple[AllocationInput, ...] = ()
    member_transactions: tuple[MemberTransactionInput, ...] = ()
    borrowed_funds: BorrowedFundsSummary = field(
        default_factory=lambda: BorrowedFundsSummary(
            received=Decimal("0.00"),
            returned=Decimal("0.00"),
            count=0,
            profit=Decimal("0.00"),
        )
    )
    investment_transactions: tuple[InvestmentTransactionInput, ...] = ()
    holdings: tuple[HoldingInput, ...] = ()
