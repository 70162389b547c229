"""Helpers for Decimal normalization."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from src.audit.logger import get_audit_logger

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def coerce_decimal(value, field: Optional[str] = None) -> Decimal:
    """Normalize numeric values to Decimal.

    Missing values become zero silently. NaN, infinities and unparseable
    values also become zero, and the replacement is logged.

    Args:
        value: Raw numeric value from the persistence layer.
        field: Field name reported when the value is replaced.

    Returns:
        Decimal: Finite numeric value.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        return Decimal(int(value))
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        result = None
    if result is None or not result.is_finite():
        get_audit_logger().log_value_coerced(field, value, ZERO)
        return ZERO
    return result


def clamp_percentage(value, field: Optional[str] = None) -> Decimal:
    """Coerce a percentage and force it into [0, 100]."""
    percentage = coerce_decimal(value, field)
    clamped = min(max(percentage, ZERO), HUNDRED)
    if clamped != percentage:
        get_audit_logger().log_percentage_clamped(field, percentage, clamped)
    return clamped


def round_money(value: Decimal, quantum: Decimal = CENT) -> Decimal:
    """Round half-up to the currency step (cents by default)."""
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def safe_ratio(
    numerator: Decimal,
    denominator: Decimal,
    default: Decimal,
    epsilon: Decimal = CENT,
) -> Decimal:
    """Divide, returning ``default`` when ``|denominator|`` is below epsilon."""
    if abs(denominator) < epsilon:
        return default
    return numerator / denominator


__all__ = [
    "ZERO",
    "HUNDRED",
    "CENT",
    "coerce_decimal",
    "clamp_percentage",
    "round_money",
    "safe_ratio",
]
