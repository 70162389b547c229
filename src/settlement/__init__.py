"""Settlement calculators: monthly who-owes-whom and trip splits."""

from src.settlement.monthly import (
    calculate_summary,
    get_installment_info,
    get_monthly_expense_value,
    is_expense_in_month,
)
from src.settlement.trips import calculate_trip_settlement

__all__ = [
    "calculate_summary",
    "calculate_trip_settlement",
    "get_installment_info",
    "get_monthly_expense_value",
    "is_expense_in_month",
]
