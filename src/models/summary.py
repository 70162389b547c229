"""
Result Models for Couple Ledger

Pure, derived structures recomputed on every call. They are never persisted
by the engine and never contain pre-formatted strings: monetary figures are
Decimals kept at cent precision, projections are floats.
"""

from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.records import Person
from src.utils.decimal_utils import ZERO

WhoTransfers = Literal["person1", "person2", "none"]


class ResultModel(BaseModel):
    """Immutable calculator output."""
    model_config = ConfigDict(frozen=True)


# =============================================================================
# MONTHLY SETTLEMENT
# =============================================================================

class IncomeBreakdown(ResultModel):
    """Where a person's monthly income comes from."""

    salary_real: Decimal = Field(
        default=ZERO,
        description="Salary actually recorded as income this month"
    )
    salary_recurring: Decimal = Field(
        default=ZERO,
        description="Recurring salary templates not yet replaced by a real record"
    )
    other: Decimal = Field(
        default=ZERO,
        description="Every other income record of the month"
    )

    @property
    def total(self) -> Decimal:
        return self.salary_real + self.salary_recurring + self.other


class InstallmentInfo(ResultModel):
    """Position of a month inside an installment plan (1-based)."""

    current: int = Field(ge=1)
    total: int = Field(ge=1)


class MonthlySummary(ResultModel):
    """
    Who owes whom for one calendar month.

    Responsibility is what each person should carry under the split policy,
    Paid is what each person actually disbursed.
    """

    month_key: str

    # Buckets
    total_fixed: Decimal = ZERO
    total_common: Decimal = ZERO
    total_equal: Decimal = ZERO
    total_reimbursement: Decimal = ZERO
    category_totals: dict[str, Decimal] = Field(default_factory=dict)

    # Settlement
    person1_paid: Decimal = ZERO
    person2_paid: Decimal = ZERO
    person1_responsibility: Decimal = ZERO
    person2_responsibility: Decimal = ZERO
    who_transfers: WhoTransfers = "none"
    transfer_amount: Decimal = ZERO
    unspecified_paid_by_count: int = Field(default=0, ge=0)

    # Personal spending
    person1_personal_total: Decimal = ZERO
    person2_personal_total: Decimal = ZERO

    # Income
    person1_total_income: Decimal = ZERO
    person2_total_income: Decimal = ZERO
    person1_income_share: Decimal = Field(
        default=Decimal("50"),
        description="Person 1 share (%) of the income used for proportional splits"
    )
    person2_income_share: Decimal = Decimal("50")
    p1_income_breakdown: IncomeBreakdown = Field(default_factory=IncomeBreakdown)
    p2_income_breakdown: IncomeBreakdown = Field(default_factory=IncomeBreakdown)

    # Goals
    person1_goal_contribution: Decimal = ZERO
    person2_goal_contribution: Decimal = ZERO
    person1_goals_realized: Decimal = ZERO
    person2_goals_realized: Decimal = ZERO
    total_goal_savings: Decimal = ZERO
    total_goal_balance: Decimal = ZERO

    # Free cash
    person1_remaining: Decimal = ZERO
    person2_remaining: Decimal = ZERO
    person1_remaining_after_goals: Decimal = ZERO
    person2_remaining_after_goals: Decimal = ZERO

    @property
    def has_unspecified_payers(self) -> bool:
        return self.unspecified_paid_by_count > 0


# =============================================================================
# LEDGERS
# =============================================================================

class InvestmentStats(ResultModel):
    """Balances of one investment derived from its movement log."""

    invested_amount: Decimal = ZERO
    total_balance: Decimal = ZERO
    total_yield: Decimal = ZERO
    profit: Decimal = ZERO
    profit_percentage: Decimal = ZERO
    quantity: Decimal = ZERO
    person1_balance: Decimal = ZERO
    person2_balance: Decimal = ZERO


class PortfolioSummary(ResultModel):
    """Totals over every investment of the household."""

    total_equity: Decimal = ZERO
    total_cost: Decimal = ZERO
    total_profit: Decimal = ZERO
    total_yield_percentage: Decimal = ZERO
    p1_equity: Decimal = ZERO
    p2_equity: Decimal = ZERO
    equity_by_type: dict[str, Decimal] = Field(default_factory=dict)
    stats_by_investment: dict[str, InvestmentStats] = Field(default_factory=dict)


class GoalStats(ResultModel):
    """
    Balances of one savings goal derived from its transactions.

    progress is not clamped; a goal above target reports more than 100.
    """

    p1_balance: Decimal = ZERO
    p2_balance: Decimal = ZERO
    total_balance: Decimal = ZERO
    progress: Decimal = ZERO
    is_completed: bool = False
    p1_last_deposit: Decimal = ZERO
    p2_last_deposit: Decimal = ZERO


# =============================================================================
# TRIPS
# =============================================================================

class TripSettlement(ResultModel):
    """
    Split of a trip's spending.

    A positive balance means that person still owes; a negative balance
    means that person gets money back.
    """

    total_expenses: Decimal = ZERO
    total_paid_by_p1: Decimal = ZERO
    total_paid_by_p2: Decimal = ZERO
    total_paid_by_fund: Decimal = ZERO
    p1_deposits: Decimal = ZERO
    p2_deposits: Decimal = ZERO
    p1_responsibility: Decimal = ZERO
    p2_responsibility: Decimal = ZERO
    p1_balance: Decimal = ZERO
    p2_balance: Decimal = ZERO
    fund_balance: Decimal = ZERO
    who_owes: WhoTransfers = "none"
    amount_to_settle: Decimal = ZERO


# =============================================================================
# PROJECTIONS
# =============================================================================

class TimeToGoal(ResultModel):
    """
    Months until a goal reaches its target.

    months is None when the goal can never be reached (no contribution).
    """

    months: Optional[int] = Field(default=None, ge=0)
    reached: bool = False

    @property
    def is_reachable(self) -> bool:
        return self.months is not None


class BottleneckAnalysis(ResultModel):
    """
    Pace of each person towards their own share of a couple goal.

    Month counts are None when that person never finishes (no contribution).
    """

    p1_months: Optional[int] = None
    p2_months: Optional[int] = None
    is_bottleneck: bool = False
    who: Optional[Person] = None
    month_gap: Optional[int] = None
    total_months: Optional[int] = None


class GoalProjection(ResultModel):
    """Stats plus forward projections of one goal."""

    stats: GoalStats
    time_to_goal: TimeToGoal
    bottleneck: BottleneckAnalysis


class GrowthPoint(ResultModel):
    """One charted point of a compound-growth simulation."""

    month: int = Field(ge=0)
    label: str
    invested: float
    interest_accrued: float
    total: float
