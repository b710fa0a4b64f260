from fintrack.models.audit import AuditLog
from fintrack.models.borrowed_fund import BorrowedFund
from fintrack.models.enums import (
    AllocationType,
    ExecutionStatus,
    ExpenseType,
    InvestBucket,
    InvestmentTransactionType,
    LoanType,
    MemberCategory,
    MemberTransactionType,
    RoleName,
    SIPFrequency,
    SpendCategory,
    TaxMode,
)
from fintrack.models.expense import Expense, ExpenseBudget
from fintrack.models.income import Income, SalaryHistory, TaxSetting
from fintrack.models.investment import Holding, InvestmentAllocation, InvestmentTransaction
from fintrack.models.loan import EMI, Loan
from fintrack.models.member import Member, MemberTransaction
from fintrack.models.sip import SIP, SIPExecution
from fintrack.models.snapshot import MonthlySnapshot
from fintrack.models.user import User

__all__ = [
    "AuditLog",
    "BorrowedFund",
    "AllocationType",
    "ExecutionStatus",
    "ExpenseType",
    "InvestBucket",
    "InvestmentTransactionType",
    "LoanType",
    "MemberCategory",
    "MemberTransactionType",
    "RoleName",
    "SIPFrequency",
    "SpendCategory",
    "TaxMode",
    "Expense",
    "ExpenseBudget",
    "Income",
    "SalaryHistory",
    "TaxSetting",
    "Holding",
    "InvestmentAllocation",
    "InvestmentTransaction",
    "EMI",
    "Loan",
    "Member",
    "MemberTransaction",
    "SIP",
    "SIPExecution",
    "MonthlySnapshot",
    "User",
]
