"""
Goal Projections

Forward-looking figures for savings goals: months until the target is
reached, the pace of each person on a couple goal, and the monthly amount
needed to meet a deadline.

Projections work in float; they are estimates, not ledger figures.
"""

import math
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from src.config.settings import EngineSettings, get_engine_settings
from src.ledger.goals import calculate_goal_stats, ensure_goal
from src.models.records import GoalType, Person
from src.models.summary import BottleneckAnalysis, GoalProjection, GoalStats, TimeToGoal
from src.utils.decimal_utils import ZERO, coerce_decimal, round_money
from src.utils.months import MonthKey, months_between


def calculate_time_to_goal(
    goal: Any,
    transactions: Optional[Iterable[Any]] = None,
    *,
    monthly_override: Optional[Any] = None,
    stats: Optional[GoalStats] = None,
    settings: Optional[EngineSettings] = None,
) -> TimeToGoal:
    """
    Months of planned contributions until the goal reaches its target.

    Contributions earn the goal's annual interest rate, compounded monthly:
    ``months = ln(remaining * r / c + 1) / ln(1 + r)``, rounded up.

    Args:
        goal: The savings goal.
        transactions: The goal's transactions; its current balance.
        monthly_override: Monthly amount to simulate instead of the plan.
        stats: Precomputed stats of the goal, skips the reduction.
        settings: Engine settings; the cached ones when omitted.

    Returns:
        TimeToGoal: ``months`` is None when the target is never reached.
    """
    goal = ensure_goal(goal)
    if stats is None:
        stats = calculate_goal_stats(goal, transactions, settings=settings)

    remaining = float(goal.target_value - stats.total_balance)
    if remaining <= 0:
        return TimeToGoal(months=0, reached=True)

    if monthly_override is not None:
        contribution = float(coerce_decimal(monthly_override, "monthly_override"))
    else:
        contribution = float(goal.monthly_contribution_p1 + goal.monthly_contribution_p2)
    if contribution <= 0:
        return TimeToGoal(months=None, reached=False)

    rate = float(goal.interest_rate) / 100 / 12
    if rate > 0:
        months = math.log(remaining * rate / contribution + 1) / math.log(1 + rate)
    else:
        months = remaining / contribution
    return TimeToGoal(months=math.ceil(months), reached=False)


def _months_to_share(remaining: float, contribution: float) -> float:
    if contribution > 0:
        return remaining / contribution
    return math.inf if remaining > 0 else 0.0


def analyze_bottleneck(
    goal: Any,
    transactions: Optional[Iterable[Any]] = None,
    *,
    stats: Optional[GoalStats] = None,
    settings: Optional[EngineSettings] = None,
) -> BottleneckAnalysis:
    """
    Compare how fast each person completes their share of a couple goal.

    Each share is ``target * split%`` minus what that person already saved,
    paid off by their own monthly contribution without interest. The slower
    person is the bottleneck when the paces differ by more than the
    configured month gap.
    """
    settings = settings or get_engine_settings()
    goal = ensure_goal(goal)
    if goal.goal_type != GoalType.COUPLE:
        return BottleneckAnalysis()
    if stats is None:
        stats = calculate_goal_stats(goal, transactions, settings=settings)

    target = float(goal.target_value)
    p1_remaining = max(0.0, target * float(goal.split_p1_percentage) / 100 - float(stats.p1_balance))
    p2_remaining = max(0.0, target * float(goal.split_p2_percentage) / 100 - float(stats.p2_balance))

    p1_months = _months_to_share(p1_remaining, float(goal.monthly_contribution_p1))
    p2_months = _months_to_share(p2_remaining, float(goal.monthly_contribution_p2))

    def whole(months: float) -> Optional[int]:
        return None if math.isinf(months) else math.ceil(months)

    both_finite = not (math.isinf(p1_months) or math.isinf(p2_months))
    gap = abs(p1_months - p2_months) if both_finite else math.inf
    is_bottleneck = both_finite and gap > settings.bottleneck_month_gap

    who = None
    if is_bottleneck:
        who = Person.PERSON1 if p1_months > p2_months else Person.PERSON2

    return BottleneckAnalysis(
        p1_months=whole(p1_months),
        p2_months=whole(p2_months),
        is_bottleneck=is_bottleneck,
        who=who,
        month_gap=whole(gap),
        total_months=whole(max(p1_months, p2_months)),
    )


def required_monthly_contribution(
    target: Any,
    current: Any,
    start: date,
    deadline: date,
    *,
    settings: Optional[EngineSettings] = None,
) -> Decimal:
    """
    Monthly amount that closes the gap to ``target`` by ``deadline``.

    No interest. The gap is spread over at least one month.
    """
    settings = settings or get_engine_settings()
    needed = max(ZERO, coerce_decimal(target, "target") - coerce_decimal(current, "current"))
    months = max(1, months_between(start, MonthKey(deadline.year, deadline.month)))
    return round_money(needed / months, settings.money_quantum)


def project_goal(
    goal: Any,
    transactions: Optional[Iterable[Any]] = None,
    *,
    monthly_override: Optional[Any] = None,
    settings: Optional[EngineSettings] = None,
) -> GoalProjection:
    """Stats, time-to-goal and bottleneck of one goal in one pass."""
    goal = ensure_goal(goal)
    stats = calculate_goal_stats(goal, transactions, settings=settings)
    return GoalProjection(
        stats=stats,
        time_to_goal=calculate_time_to_goal(
            goal, monthly_override=monthly_override, stats=stats, settings=settings
        ),
        bottleneck=analyze_bottleneck(goal, stats=stats, settings=settings),
    )
