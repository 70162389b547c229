"""
Savings Goal Ledger

A goal's balance is never stored: it is the signed sum of its non-deleted
transactions (deposit = +value, withdraw = -value), overall and per person.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from src.config.settings import EngineSettings, get_engine_settings
from src.models.records import (
    GoalTransaction,
    GoalTransactionType,
    Person,
    RecordTypeError,
    SavingsGoal,
    active,
    ensure_records,
)
from src.models.summary import GoalStats
from src.utils.decimal_utils import HUNDRED, ZERO, coerce_decimal, round_money


def _transactions(items: Optional[Iterable[Any]]) -> list[GoalTransaction]:
    return active(ensure_records(items, GoalTransaction, "goal_transactions"))


def ensure_goal(goal: Any) -> SavingsGoal:
    """Return ``goal`` as a SavingsGoal, validating a dict."""
    if isinstance(goal, SavingsGoal):
        return goal
    if isinstance(goal, dict):
        return ensure_records([goal], SavingsGoal, "goals")[0]
    raise RecordTypeError(f"goal must be SavingsGoal, got {type(goal).__name__}")


def group_transactions_by_goal(
    transactions: Iterable[GoalTransaction],
) -> dict[Optional[str], list[GoalTransaction]]:
    """Bucket transactions by goal id in a single pass, keeping input order."""
    grouped = defaultdict(list)
    for tx in transactions:
        grouped[tx.goal_id].append(tx)
    return dict(grouped)


def calculate_goal_balance(
    transactions: Optional[Iterable[Any]],
    *,
    settings: Optional[EngineSettings] = None,
) -> Decimal:
    """Signed sum of every transaction."""
    settings = settings or get_engine_settings()
    total = sum((tx.signed_value for tx in _transactions(transactions)), ZERO)
    return round_money(total, settings.money_quantum)


def calculate_individual_goal_balance(
    transactions: Optional[Iterable[Any]],
    person: Person,
    *,
    settings: Optional[EngineSettings] = None,
) -> Decimal:
    """Signed sum of the transactions made by one person."""
    settings = settings or get_engine_settings()
    person = Person(person)
    total = sum(
        (tx.signed_value for tx in _transactions(transactions) if tx.person == person),
        ZERO,
    )
    return round_money(total, settings.money_quantum)


def get_goal_progress(
    goal: Any,
    balance: Decimal,
    *,
    settings: Optional[EngineSettings] = None,
) -> Decimal:
    """
    Balance as a percentage of the target, rounded to 2 places.

    Not clamped: an over-funded goal reports more than 100.
    A goal without a positive target reports 0.
    """
    settings = settings or get_engine_settings()
    goal = ensure_goal(goal)
    if goal.target_value < settings.settlement_epsilon:
        return ZERO
    return round_money(coerce_decimal(balance, "balance") / goal.target_value * HUNDRED)


def _last_deposit(deposits: list[tuple[int, GoalTransaction]]) -> Decimal:
    """
    Value of the most recent deposit.

    Ordered by date (unreadable sorts first), then creation time
    (missing sorts first), then position in the input.
    """
    if not deposits:
        return ZERO

    def recency(item: tuple[int, GoalTransaction]):
        position, tx = item
        created = tx.created_at.timestamp() if tx.created_at is not None else None
        return (tx.date or date.min, created is not None, created or 0.0, position)

    return max(deposits, key=recency)[1].value


def calculate_goal_stats(
    goal: Any,
    transactions: Optional[Iterable[Any]],
    *,
    settings: Optional[EngineSettings] = None,
) -> GoalStats:
    """
    Reduce a goal's transactions to its balances and progress.

    Args:
        goal: The savings goal.
        transactions: That goal's transactions (any order).
        settings: Engine settings; the cached ones when omitted.

    Returns:
        GoalStats: Per-person and total balance, progress, completion and
            the latest deposit of each person.
    """
    settings = settings or get_engine_settings()
    quantum = settings.money_quantum
    goal = ensure_goal(goal)

    balances = {Person.PERSON1: ZERO, Person.PERSON2: ZERO}
    deposits: dict[Person, list] = {Person.PERSON1: [], Person.PERSON2: []}
    total = ZERO

    for position, tx in enumerate(_transactions(transactions)):
        total += tx.signed_value
        if tx.person is None:
            continue
        balances[tx.person] += tx.signed_value
        if tx.type == GoalTransactionType.DEPOSIT:
            deposits[tx.person].append((position, tx))

    total = round_money(total, quantum)
    progress = get_goal_progress(goal, total, settings=settings)

    return GoalStats(
        p1_balance=round_money(balances[Person.PERSON1], quantum),
        p2_balance=round_money(balances[Person.PERSON2], quantum),
        total_balance=total,
        progress=progress,
        is_completed=goal.is_completed or progress >= HUNDRED,
        p1_last_deposit=_last_deposit(deposits[Person.PERSON1]),
        p2_last_deposit=_last_deposit(deposits[Person.PERSON2]),
    )
