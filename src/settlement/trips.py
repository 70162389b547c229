"""
Trip Settlement Calculator

Splits the spending of a trip between the two people. Expenses may be paid
by either person or by the shared fund, which both people pre-fund with
deposits. Deposits count as money given, fund-paid expenses are netted
through the fund balance.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from src.audit.logger import get_audit_logger
from src.config.settings import EngineSettings, get_engine_settings
from src.models.records import (
    Person,
    RecordTypeError,
    Trip,
    TripPayer,
    TripProportion,
    active,
    ensure_records,
)
from src.models.summary import TripSettlement
from src.utils.decimal_utils import HUNDRED, ZERO, round_money

HALF = Decimal("0.5")
ONE = Decimal("1")


def _salary_ratio(value: Any) -> Decimal:
    """Person 1 income share as a fraction in [0, 1]; unreadable → 0.5."""
    if value is None or isinstance(value, bool):
        return HALF
    try:
        ratio = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return HALF
    if not ratio.is_finite():
        return HALF
    return min(max(ratio, ZERO), ONE)


def _person1_ratio(trip: Trip, salary_ratio: Decimal) -> Decimal:
    if trip.proportion_type == TripProportion.EQUAL:
        return HALF
    if trip.proportion_type == TripProportion.CUSTOM and trip.custom_percentage1 is not None:
        return trip.custom_percentage1 / HUNDRED
    return salary_ratio


def calculate_trip_settlement(
    trip: Any,
    p1_salary_ratio: Any,
    *,
    settings: Optional[EngineSettings] = None,
) -> TripSettlement:
    """
    Settle a trip between the two people.

    Args:
        trip: The trip with its expenses and deposits.
        p1_salary_ratio: Person 1 share of income (0..1), used by
            proportional trips.
        settings: Engine settings; the cached ones when omitted.

    Returns:
        TripSettlement: Positive balances owe, negative balances receive.

    Raises:
        RecordTypeError: If ``trip`` is not a Trip (or a dict shaped like one).
    """
    settings = settings or get_engine_settings()
    quantum = settings.money_quantum
    epsilon = settings.settlement_epsilon

    if isinstance(trip, dict):
        trip = ensure_records([trip], Trip, "trips")[0]
    elif not isinstance(trip, Trip):
        raise RecordTypeError(f"trip must be Trip, got {type(trip).__name__}")

    # None collects expenses with no payer; they only count in the total
    paid: dict[Optional[TripPayer], Decimal] = dict.fromkeys([*TripPayer, None], ZERO)
    for expense in active(trip.expenses):
        paid[expense.paid_by] += expense.value

    deposits = {person: ZERO for person in Person}
    for deposit in active(trip.deposits):
        deposits[deposit.person] += deposit.value

    total_expenses = round_money(sum(paid.values(), ZERO), quantum)
    paid_by_p1 = round_money(paid[TripPayer.PERSON1], quantum)
    paid_by_p2 = round_money(paid[TripPayer.PERSON2], quantum)
    paid_by_fund = round_money(paid[TripPayer.FUND], quantum)
    p1_deposits = round_money(deposits[Person.PERSON1], quantum)
    p2_deposits = round_money(deposits[Person.PERSON2], quantum)

    ratio1 = _person1_ratio(trip, _salary_ratio(p1_salary_ratio))
    p1_responsibility = round_money(total_expenses * ratio1, quantum)
    p2_responsibility = total_expenses - p1_responsibility

    balance1 = p1_responsibility - (paid_by_p1 + p1_deposits)
    balance2 = p2_responsibility - (paid_by_p2 + p2_deposits)

    if balance1 > epsilon:
        who_owes, amount = "person1", balance1
    elif balance2 > epsilon:
        who_owes, amount = "person2", balance2
    else:
        who_owes, amount = "none", ZERO

    settlement = TripSettlement(
        total_expenses=total_expenses,
        total_paid_by_p1=paid_by_p1,
        total_paid_by_p2=paid_by_p2,
        total_paid_by_fund=paid_by_fund,
        p1_deposits=p1_deposits,
        p2_deposits=p2_deposits,
        p1_responsibility=p1_responsibility,
        p2_responsibility=p2_responsibility,
        p1_balance=balance1,
        p2_balance=balance2,
        fund_balance=p1_deposits + p2_deposits - paid_by_fund,
        who_owes=who_owes,
        amount_to_settle=amount,
    )
    get_audit_logger().log_trip_settled(trip.id, who_owes, amount)
    return settlement
