"""
Investment Ledger

DESIGN DECISION: The movement log is the source of truth. The legacy
current_value / invested_value / quantity fields of an Investment are
ignored by every reduction here.

Cost basis follows the simple rule the app has always used: a sell
subtracts its proceeds from the invested amount. There is no lot or
average-cost tracking.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Any, Iterable, Optional

from src.audit.logger import get_audit_logger
from src.config.settings import EngineSettings, get_engine_settings
from src.models.records import (
    Investment,
    InvestmentMovement,
    InvestmentMovementType,
    InvestmentOwner,
    Person,
    RecordTypeError,
    active,
    ensure_records,
)
from src.models.summary import InvestmentStats, PortfolioSummary
from src.utils.decimal_utils import HUNDRED, ZERO

HALF = Decimal("0.5")


def _investment(investment: Any) -> Investment:
    if isinstance(investment, Investment):
        return investment
    if isinstance(investment, dict):
        return ensure_records([investment], Investment, "investments")[0]
    raise RecordTypeError(f"investment must be Investment, got {type(investment).__name__}")


def _attribute(
    movement: InvestmentMovement,
    owner: InvestmentOwner,
    amount: Decimal,
) -> tuple[Decimal, Decimal]:
    """Split a signed amount between the two person buckets."""
    person = movement.person
    if person is None and owner != InvestmentOwner.COUPLE:
        person = Person(owner.value)
    if person == Person.PERSON1:
        return amount, ZERO
    if person == Person.PERSON2:
        return ZERO, amount
    return amount * HALF, amount * HALF


def calculate_investment_stats(
    investment: Any,
    movements: Optional[Iterable[Any]],
    *,
    settings: Optional[EngineSettings] = None,
) -> InvestmentStats:
    """
    Reduce an investment's movements to balances, cost basis and P&L.

    buy / sell move principal and quantity, yield adds profit, adjustment
    only corrects the balance. Every kind is attributed to the movement's
    person, or to the owner when the movement has none.
    """
    settings = settings or get_engine_settings()
    investment = _investment(investment)

    invested = ZERO
    balance = ZERO
    total_yield = ZERO
    quantity = ZERO
    person1 = ZERO
    person2 = ZERO

    for movement in active(ensure_records(movements, InvestmentMovement, "investment_movements")):
        value = movement.value
        if movement.type == InvestmentMovementType.BUY:
            invested += value
            quantity += movement.quantity
        elif movement.type == InvestmentMovementType.SELL:
            value = -value
            invested += value
            quantity -= movement.quantity
        elif movement.type == InvestmentMovementType.YIELD:
            total_yield += value

        balance += value
        share1, share2 = _attribute(movement, investment.owner, value)
        person1 += share1
        person2 += share2

    profit = balance - invested
    if abs(invested) > settings.settlement_epsilon:
        profit_percentage = profit / invested * HUNDRED
    else:
        profit_percentage = ZERO

    return InvestmentStats(
        invested_amount=invested,
        total_balance=balance,
        total_yield=total_yield,
        profit=profit,
        profit_percentage=profit_percentage,
        quantity=quantity,
        person1_balance=person1,
        person2_balance=person2,
    )


def calculate_portfolio_summary(
    investments: Optional[Iterable[Any]],
    movements: Optional[Iterable[Any]],
    *,
    settings: Optional[EngineSettings] = None,
) -> PortfolioSummary:
    """
    Sum the stats of every investment into portfolio totals.

    Movements are matched to investments by ``investment_id``; movements of
    unknown investments are ignored.
    """
    settings = settings or get_engine_settings()
    investments = active(ensure_records(investments, Investment, "investments"))
    movements = active(ensure_records(movements, InvestmentMovement, "investment_movements"))

    by_investment = defaultdict(list)
    for movement in movements:
        by_investment[movement.investment_id].append(movement)

    equity = ZERO
    cost = ZERO
    profit = ZERO
    p1_equity = ZERO
    p2_equity = ZERO
    equity_by_type: dict[str, Decimal] = {}
    stats_by_investment: dict[str, InvestmentStats] = {}

    for position, investment in enumerate(investments):
        stats = calculate_investment_stats(
            investment, by_investment.get(investment.id, []), settings=settings
        )
        stats_by_investment[investment.id or f"#{position}"] = stats

        equity += stats.total_balance
        cost += stats.invested_amount
        profit += stats.profit
        p1_equity += stats.person1_balance
        p2_equity += stats.person2_balance
        equity_by_type[investment.type] = equity_by_type.get(investment.type, ZERO) + stats.total_balance

    if abs(cost) > settings.settlement_epsilon:
        yield_percentage = profit / cost * HUNDRED
    else:
        yield_percentage = ZERO

    get_audit_logger().log_portfolio_summarized(len(investments), len(movements))

    return PortfolioSummary(
        total_equity=equity,
        total_cost=cost,
        total_profit=profit,
        total_yield_percentage=yield_percentage,
        p1_equity=p1_equity,
        p2_equity=p2_equity,
        equity_by_type=equity_by_type,
        stats_by_investment=stats_by_investment,
    )
