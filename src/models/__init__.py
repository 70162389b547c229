"""
Data Models Package

This package contains all Pydantic models used by the Couple Ledger engine.
Every record reaching a calculator conforms to these schemas.
"""

from src.models.records import (
    AbsoluteSplit,
    Category,
    CoupleInfo,
    Expense,
    ExpenseType,
    GoalTransaction,
    GoalTransactionType,
    GoalType,
    Income,
    Investment,
    InvestmentMovement,
    InvestmentMovementType,
    InvestmentOwner,
    PercentageSplit,
    Person,
    ProportionalSplit,
    RecordTypeError,
    RecurringIncome,
    ReimbursementStatus,
    SavingsGoal,
    SplitPolicy,
    Trip,
    TripDeposit,
    TripExpense,
    TripPayer,
    TripProportion,
    active,
    ensure_records,
)
from src.models.summary import (
    BottleneckAnalysis,
    GoalProjection,
    GoalStats,
    GrowthPoint,
    IncomeBreakdown,
    InstallmentInfo,
    InvestmentStats,
    MonthlySummary,
    PortfolioSummary,
    TimeToGoal,
    TripSettlement,
)
from src.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Record models
    "AbsoluteSplit",
    "Category",
    "CoupleInfo",
    "Expense",
    "ExpenseType",
    "GoalTransaction",
    "GoalTransactionType",
    "GoalType",
    "Income",
    "Investment",
    "InvestmentMovement",
    "InvestmentMovementType",
    "InvestmentOwner",
    "PercentageSplit",
    "Person",
    "ProportionalSplit",
    "RecordTypeError",
    "RecurringIncome",
    "ReimbursementStatus",
    "SavingsGoal",
    "SplitPolicy",
    "Trip",
    "TripDeposit",
    "TripExpense",
    "TripPayer",
    "TripProportion",
    "active",
    "ensure_records",
    # Result models
    "BottleneckAnalysis",
    "GoalProjection",
    "GoalStats",
    "GrowthPoint",
    "IncomeBreakdown",
    "InstallmentInfo",
    "InvestmentStats",
    "MonthlySummary",
    "PortfolioSummary",
    "TimeToGoal",
    "TripSettlement",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
]
