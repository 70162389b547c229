"""Shared helpers for money arithmetic and calendar months."""

from src.utils.decimal_utils import (
    ZERO,
    clamp_percentage,
    coerce_decimal,
    round_money,
    safe_ratio,
)
from src.utils.months import (
    MonthKey,
    month_key_for,
    months_between,
    parse_month_key,
)

__all__ = [
    # Money
    "ZERO",
    "clamp_percentage",
    "coerce_decimal",
    "round_money",
    "safe_ratio",
    # Months
    "MonthKey",
    "month_key_for",
    "months_between",
    "parse_month_key",
]
