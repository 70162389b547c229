"""Ledger balance engine for savings goals and investments."""

from src.ledger.goals import (
    calculate_goal_balance,
    calculate_goal_stats,
    calculate_individual_goal_balance,
    ensure_goal,
    get_goal_progress,
    group_transactions_by_goal,
)
from src.ledger.investments import (
    calculate_investment_stats,
    calculate_portfolio_summary,
)

__all__ = [
    "calculate_goal_balance",
    "calculate_goal_stats",
    "calculate_individual_goal_balance",
    "calculate_investment_stats",
    "calculate_portfolio_summary",
    "ensure_goal",
    "get_goal_progress",
    "group_transactions_by_goal",
]
