"""
Monthly Settlement Calculator

DESIGN DECISION: The settlement is a pure reduction over typed records.
Every call recomputes the whole month from the raw collections, so the
result can be memoized by the caller and never needs incremental patching.

Flow:
1. Normalize inputs (dicts validated into records, soft-deleted rows dropped)
2. Aggregate each person's income for the month
3. Amortize every expense into the month and bucket it
4. Split shared amounts into per-person responsibility, track who paid
5. Net responsibility against paid into a single transfer
"""

from collections import defaultdict
from decimal import Decimal
from typing import Any, Iterable, Optional

from src.audit.logger import get_audit_logger
from src.config.settings import EngineSettings, get_engine_settings
from src.ledger.goals import calculate_goal_stats, group_transactions_by_goal
from src.models.records import (
    AbsoluteSplit,
    CoupleInfo,
    Expense,
    ExpenseType,
    GoalTransaction,
    GoalTransactionType,
    Income,
    PercentageSplit,
    Person,
    RecordTypeError,
    RecurringIncome,
    ReimbursementStatus,
    SavingsGoal,
    active,
    ensure_records,
)
from src.models.summary import IncomeBreakdown, InstallmentInfo, MonthlySummary
from src.utils.decimal_utils import HUNDRED, ZERO, round_money, safe_ratio
from src.utils.months import MonthKey, month_key_for, months_between, parse_month_key

HALF = Decimal("0.5")
LEGACY_SALARY_DESCRIPTION = "Salário Base"


# =============================================================================
# EXPENSE HELPERS
# =============================================================================

def _contributes(expense: Expense, month: MonthKey) -> bool:
    if expense.date is None:
        return False
    diff = months_between(expense.date, month)
    if diff < 0:
        return False
    return expense.is_recurring or diff < expense.installments


def _monthly_value(expense: Expense, month: MonthKey, quantum: Decimal) -> Decimal:
    if expense.is_recurring:
        return expense.monthly_overrides.get(str(month), expense.total_value)

    count = expense.installments
    if count <= 1:
        return expense.total_value

    standard = round_money(expense.total_value / count, quantum)
    if expense.date is not None and months_between(expense.date, month) == count - 1:
        # Last installment absorbs the rounding remainder
        return round_money(expense.total_value - standard * (count - 1), quantum)
    return standard


def is_expense_in_month(expense: Expense, month_key: str) -> bool:
    """
    Check whether an expense contributes to a month.

    Recurring expenses contribute to every month from their start date,
    installment expenses to ``installments`` consecutive months.
    """
    month = parse_month_key(month_key)
    if month is None:
        return False
    return _contributes(expense, month)


def get_monthly_expense_value(
    expense: Expense,
    month_key: str,
    *,
    settings: Optional[EngineSettings] = None,
) -> Decimal:
    """
    Amount an expense contributes to a month it falls in.

    Recurring expenses use the month's override when one is stored.
    Installments are rounded to cents; the last one absorbs the remainder,
    so all installments always sum to ``total_value``.
    """
    settings = settings or get_engine_settings()
    month = parse_month_key(month_key)
    if month is None:
        return ZERO
    return _monthly_value(expense, month, settings.money_quantum)


def get_installment_info(expense: Expense, month_key: str) -> Optional[InstallmentInfo]:
    """Return "installment k of n" for a month, or None when not applicable."""
    if expense.is_recurring or expense.installments <= 1:
        return None
    month = parse_month_key(month_key)
    if month is None or not _contributes(expense, month):
        return None
    return InstallmentInfo(
        current=months_between(expense.date, month) + 1,
        total=expense.installments,
    )


# =============================================================================
# INCOME
# =============================================================================

def _normalize_description(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def _income_breakdown(
    person: Person,
    recurring: list[RecurringIncome],
    salary: Decimal,
    salary_description: Optional[str],
    month_incomes: list[Income],
    settings: EngineSettings,
) -> IncomeBreakdown:
    """
    Split one person's income for the month.

    A salary income record replaces the recurring template with the same
    description. The flat salary field stands in for the templates when
    none are configured.
    """
    quantum = settings.money_quantum
    salary_category = settings.salary_income_category.lower()

    templates = list(recurring)
    if not templates and salary > 0:
        templates.append(RecurringIncome(
            id=f"legacy-{person.value}",
            description=salary_description or LEGACY_SALARY_DESCRIPTION,
            value=salary,
        ))

    own = [i for i in month_incomes if i.paid_by == person]
    real_salaries = [i for i in own if i.category.strip().lower() == salary_category]
    others = [i for i in own if i.category.strip().lower() != salary_category]

    paid_descriptions = {_normalize_description(i.description) for i in real_salaries}
    pending = [
        t for t in templates
        if _normalize_description(t.description) not in paid_descriptions
    ]

    return IncomeBreakdown(
        salary_real=round_money(sum((i.value for i in real_salaries), ZERO), quantum),
        salary_recurring=round_money(sum((t.value for t in pending), ZERO), quantum),
        other=round_money(sum((i.value for i in others), ZERO), quantum),
    )


# =============================================================================
# RESPONSIBILITY SPLIT
# =============================================================================

def _share(amount: Decimal, ratio1: Decimal, quantum: Decimal) -> tuple[Decimal, Decimal]:
    share1 = round_money(amount * ratio1, quantum)
    return share1, amount - share1


def _responsibility(
    expense: Expense,
    amount: Decimal,
    income_ratio1: Decimal,
    quantum: Decimal,
) -> tuple[Decimal, Decimal]:
    """Per-person share of one contributing amount."""
    if expense.is_reimbursement:
        # The person who did not pay owes the whole amount
        if expense.paid_by == Person.PERSON1:
            return ZERO, amount
        if expense.paid_by == Person.PERSON2:
            return amount, ZERO
        return ZERO, ZERO

    if expense.type == ExpenseType.EQUAL:
        return _share(amount, HALF, quantum)

    split = expense.split
    if isinstance(split, PercentageSplit):
        return _share(amount, split.person1_percentage / HUNDRED, quantum)

    if isinstance(split, AbsoluteSplit):
        scale = amount / expense.total_value if expense.total_value > 0 else ZERO
        fixed1 = round_money(split.person1_value * scale, quantum)
        fixed2 = round_money(split.person2_value * scale, quantum)
        if split.remainder_person1_percentage is None:
            ratio1 = income_ratio1
        else:
            ratio1 = split.remainder_person1_percentage / HUNDRED
        rest1, rest2 = _share(amount - fixed1 - fixed2, ratio1, quantum)
        return fixed1 + rest1, fixed2 + rest2

    return _share(amount, income_ratio1, quantum)


# =============================================================================
# SUMMARY
# =============================================================================

def _ensure_couple_info(couple_info: Any) -> CoupleInfo:
    if isinstance(couple_info, CoupleInfo):
        return couple_info
    if isinstance(couple_info, dict):
        return ensure_records([couple_info], CoupleInfo, "couple_info")[0]
    raise RecordTypeError(
        f"couple_info must be CoupleInfo, got {type(couple_info).__name__}"
    )


def calculate_summary(
    expenses: Optional[Iterable[Any]],
    incomes: Optional[Iterable[Any]],
    couple_info: Any,
    month_key: str,
    goals: Optional[Iterable[Any]] = None,
    goal_transactions: Optional[Iterable[Any]] = None,
    *,
    settings: Optional[EngineSettings] = None,
) -> MonthlySummary:
    """
    Compute who owes whom for one month.

    Args:
        expenses: Expense records (or dicts in the stored shape).
        incomes: Income records for any period; only the month's are used.
        couple_info: The couple's split configuration.
        month_key: Month to settle, ``YYYY-MM``.
        goals: Savings goals, for planned and realized contributions.
        goal_transactions: Transactions of those goals.
        settings: Engine settings; the cached ones when omitted.

    Returns:
        MonthlySummary: Fully populated, even for an unreadable month key.

    Raises:
        RecordTypeError: If a collection holds something that is not a record.
    """
    settings = settings or get_engine_settings()
    quantum = settings.money_quantum
    epsilon = settings.settlement_epsilon
    audit = get_audit_logger()

    expenses = active(ensure_records(expenses, Expense, "expenses"))
    incomes = active(ensure_records(incomes, Income, "incomes"))
    couple_info = _ensure_couple_info(couple_info)
    goals = active(ensure_records(goals, SavingsGoal, "goals"))
    transactions = active(ensure_records(goal_transactions, GoalTransaction, "goal_transactions"))

    month = parse_month_key(month_key)
    if month is None:
        audit.log_month_key_rejected(month_key)
    key = str(month) if month is not None else str(month_key)

    # --- Income ---------------------------------------------------------
    month_incomes = [
        i for i in incomes
        if month is not None and i.date is not None and month_key_for(i.date) == key
    ]
    p1_breakdown = _income_breakdown(
        Person.PERSON1,
        couple_info.person1_recurring_incomes,
        couple_info.salary1,
        couple_info.salary1_description,
        month_incomes,
        settings,
    )
    p2_breakdown = _income_breakdown(
        Person.PERSON2,
        couple_info.person2_recurring_incomes,
        couple_info.salary2,
        couple_info.salary2_description,
        month_incomes,
        settings,
    )
    income1 = p1_breakdown.total
    income2 = p2_breakdown.total

    if settings.proportional_split_basis == "salary":
        basis1 = p1_breakdown.salary_real + p1_breakdown.salary_recurring
        basis2 = p2_breakdown.salary_real + p2_breakdown.salary_recurring
    else:
        basis1, basis2 = income1, income2
    ratio1 = safe_ratio(basis1, basis1 + basis2, HALF, epsilon)

    # --- Expenses -------------------------------------------------------
    buckets = defaultdict(lambda: ZERO)
    category_totals: dict[str, Decimal] = {}
    responsibility = [ZERO, ZERO]
    paid = [ZERO, ZERO]
    personal = [ZERO, ZERO]
    unspecified = 0
    contributing = 0

    for expense in expenses:
        if month is None or not _contributes(expense, month):
            continue
        amount = _monthly_value(expense, month, quantum)
        contributing += 1

        if expense.type == ExpenseType.PERSONAL_P1:
            personal[0] += amount
            continue
        if expense.type == ExpenseType.PERSONAL_P2:
            personal[1] += amount
            continue
        if expense.is_reimbursement and expense.reimbursement_status == ReimbursementStatus.SETTLED:
            continue

        bucket = ExpenseType.REIMBURSEMENT if expense.is_reimbursement else expense.type
        buckets[bucket] += amount
        category = expense.category.name
        category_totals[category] = category_totals.get(category, ZERO) + amount

        share1, share2 = _responsibility(expense, amount, ratio1, quantum)
        responsibility[0] += share1
        responsibility[1] += share2

        if expense.paid_by == Person.PERSON1:
            paid[0] += amount
        elif expense.paid_by == Person.PERSON2:
            paid[1] += amount
        else:
            unspecified += 1

    if unspecified:
        audit.log_unspecified_payer(key, unspecified)

    # --- Settlement -----------------------------------------------------
    diff1 = responsibility[0] - paid[0]
    if abs(diff1) < epsilon:
        who_transfers, transfer_amount = "none", ZERO
    elif diff1 > 0:
        who_transfers, transfer_amount = "person1", diff1
    else:
        who_transfers, transfer_amount = "person2", -diff1

    # --- Goals ----------------------------------------------------------
    by_goal = group_transactions_by_goal(transactions)
    contribution = [ZERO, ZERO]
    goal_balance = ZERO
    for goal in goals:
        stats = calculate_goal_stats(goal, by_goal.get(goal.id, []), settings=settings)
        goal_balance += stats.total_balance
        if not stats.is_completed:
            contribution[0] += goal.monthly_contribution_p1
            contribution[1] += goal.monthly_contribution_p2

    realized = [ZERO, ZERO]
    if month is not None:
        for tx in transactions:
            if tx.type != GoalTransactionType.DEPOSIT or tx.date is None:
                continue
            if month_key_for(tx.date) != key:
                continue
            if tx.person == Person.PERSON1:
                realized[0] += tx.value
            elif tx.person == Person.PERSON2:
                realized[1] += tx.value

    # --- Free cash ------------------------------------------------------
    remaining1 = income1 - responsibility[0] - personal[0]
    remaining2 = income2 - responsibility[1] - personal[1]

    def money(value: Decimal) -> Decimal:
        return round_money(value, quantum)

    summary = MonthlySummary(
        month_key=key,
        total_fixed=money(buckets[ExpenseType.FIXED]),
        total_common=money(buckets[ExpenseType.COMMON]),
        total_equal=money(buckets[ExpenseType.EQUAL]),
        total_reimbursement=money(buckets[ExpenseType.REIMBURSEMENT]),
        category_totals={name: money(total) for name, total in category_totals.items()},
        person1_paid=money(paid[0]),
        person2_paid=money(paid[1]),
        person1_responsibility=money(responsibility[0]),
        person2_responsibility=money(responsibility[1]),
        who_transfers=who_transfers,
        transfer_amount=money(transfer_amount),
        unspecified_paid_by_count=unspecified,
        person1_personal_total=money(personal[0]),
        person2_personal_total=money(personal[1]),
        person1_total_income=money(income1),
        person2_total_income=money(income2),
        person1_income_share=money(ratio1 * HUNDRED),
        person2_income_share=money((1 - ratio1) * HUNDRED),
        p1_income_breakdown=p1_breakdown,
        p2_income_breakdown=p2_breakdown,
        person1_goal_contribution=money(contribution[0]),
        person2_goal_contribution=money(contribution[1]),
        person1_goals_realized=money(realized[0]),
        person2_goals_realized=money(realized[1]),
        total_goal_savings=money(realized[0] + realized[1]),
        total_goal_balance=money(goal_balance),
        person1_remaining=money(remaining1),
        person2_remaining=money(remaining2),
        person1_remaining_after_goals=money(remaining1 - contribution[0]),
        person2_remaining_after_goals=money(remaining2 - contribution[1]),
    )

    audit.log_summary_calculated(
        month_key=key,
        expense_count=contributing,
        who_transfers=who_transfers,
        transfer_amount=summary.transfer_amount,
    )
    return summary
