import enum


class RoleName(str, enum.Enum):
    super_admin = "super_admin"
    customer = "customer"


class TaxMode(str, enum.Enum):
    percentage = "PERCENTAGE"
    fixed = "FIXED"
    hybrid = "HYBRID"


class SIPFrequency(str, enum.Enum):
    daily = "DAILY"
    weekly = "WEEKLY"
    monthly = "MONTHLY"
    quarterly = "QUARTERLY"
    half_yearly = "HALF_YEARLY"
    yearly = "YEARLY"
    custom = "CUSTOM"


class ExecutionStatus(str, enum.Enum):
    success = "SUCCESS"
    failed = "FAILED"
    pending = "PENDING"


class ExpenseType(str, enum.Enum):
    expected = "EXPECTED"
    unexpected = "UNEXPECTED"


class SpendCategory(str, enum.Enum):
    needs = "NEEDS"
    partial_needs = "PARTIAL_NEEDS"
    avoid = "AVOID"


class InvestBucket(str, enum.Enum):
    mutual_fund = "MUTUAL_FUND"
    ind_stock = "IND_STOCK"
    us_stock = "US_STOCK"
    crypto = "CRYPTO"
    emergency_fund = "EMERGENCY_FUND"


class AllocationType(str, enum.Enum):
    percentage = "PERCENTAGE"
    amount = "AMOUNT"


class LoanType(str, enum.Enum):
    home_loan = "HOME_LOAN"
    car_loan = "CAR_LOAN"
    personal_loan = "PERSONAL_LOAN"
    education_loan = "EDUCATION_LOAN"
    business_loan = "BUSINESS_LOAN"
    gold_loan = "GOLD_LOAN"
    credit_card = "CREDIT_CARD"
    other = "OTHER"


class MemberCategory(str, enum.Enum):
    family = "FAMILY"
    friend = "FRIEND"
    relative = "RELATIVE"
    other = "OTHER"


class MemberTransactionType(str, enum.Enum):
    owe = "OWE"
    gave = "GAVE"
    expense_paid_by_them = "EXPENSE_PAID_BY_THEM"
    expense_paid_for_them = "EXPENSE_PAID_FOR_THEM"


class InvestmentTransactionType(str, enum.Enum):
    one_time_purchase = "ONE_TIME_PURCHASE"
    sip_execution = "SIP_EXECUTION"
    manual_entry = "MANUAL_ENTRY"
    manual_edit = "MANUAL_EDIT"
