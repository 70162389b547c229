"""
Two-Stage Record Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Numeric fields must hold numbers
- Enum values, dates and required fields must parse into the record model
- This catches malformed form input

STAGE 2 - SEMANTIC VALIDATION:
- Positive amounts
- Percentages within [0, 100], whole installment counts
- Custom split amounts not exceeding the expense total
- A payer on every shared expense
- This catches data the calculators would otherwise repair silently

IMPORTANT: The validator reports, it never fixes. The calculators are the
ones that coerce bad values to safe defaults; the validator tells the user
that this would happen, before the record is stored.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from src.models.records import (
    AbsoluteSplit,
    CoupleInfo,
    Expense,
    GoalTransaction,
    Income,
    Investment,
    InvestmentMovement,
    InvestmentMovementType,
    SavingsGoal,
    Trip,
    TripDeposit,
    TripExpense,
)
from src.models.validation import ValidationIssue, ValidationResult

RECORD_MODELS: dict[str, type[BaseModel]] = {
    "expense": Expense,
    "income": Income,
    "goal": SavingsGoal,
    "goal_transaction": GoalTransaction,
    "investment": Investment,
    "investment_movement": InvestmentMovement,
    "trip": Trip,
    "trip_expense": TripExpense,
    "trip_deposit": TripDeposit,
    "couple_info": CoupleInfo,
}

NUMERIC_FIELDS: dict[str, tuple[str, ...]] = {
    "expense": (
        "total_value", "installments", "split_percentage1",
        "specific_value_p1", "specific_value_p2",
    ),
    "income": ("value",),
    "goal": (
        "target_value", "monthly_contribution_p1", "monthly_contribution_p2",
        "split_p1_percentage", "interest_rate",
    ),
    "goal_transaction": ("value",),
    "investment": ("current_value", "invested_value", "quantity"),
    "investment_movement": ("value", "quantity", "price_per_unit"),
    "trip": ("budget", "custom_percentage1"),
    "trip_expense": ("value",),
    "trip_deposit": ("value",),
    "couple_info": ("salary1", "salary2"),
}


def _raw(data: dict, field: str) -> Any:
    """Read a field under its snake_case or camelCase key."""
    if field in data:
        return data[field]
    return data.get(to_camel(field))


def _number(value: Any) -> Optional[Decimal]:
    """Parse a finite number without coercion; None when not one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class RecordValidator:
    """
    Validates raw records through a two-stage pipeline.

    Stage 1: Schema validation (types, required fields)
    Stage 2: Semantic validation (business rules), only when stage 1 passes
    """

    def __init__(self):
        self._semantic_rules: dict[str, Callable[[Any, dict], list[ValidationIssue]]] = {
            "expense": self._check_expense,
            "income": self._check_income,
            "goal": self._check_goal,
            "goal_transaction": self._check_goal_transaction,
            "investment": self._check_investment,
            "investment_movement": self._check_investment_movement,
            "trip": self._check_trip,
            "trip_expense": self._check_positive_value,
            "trip_deposit": self._check_positive_value,
            "couple_info": self._check_couple_info,
        }

    def _validate_schema(
        self,
        record_type: str,
        data: Any,
    ) -> tuple[bool, list[ValidationIssue], Optional[BaseModel]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues, parsed_record)
        """
        issues = []

        if not isinstance(data, dict):
            issues.append(ValidationIssue(
                field="record",
                issue_type="invalid_type",
                message=f"Expected a mapping of fields, got {type(data).__name__}",
                severity="error",
            ))
            return False, issues, None

        for field in NUMERIC_FIELDS[record_type]:
            value = _raw(data, field)
            if _is_blank(value):
                continue
            if _number(value) is None:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="invalid_value",
                    message=f"{field} must be a number, got {value!r}",
                    severity="error",
                    suggested_fix="Enter a plain number",
                ))

        record = None
        try:
            record = RECORD_MODELS[record_type].model_validate(data)
        except ValidationError as e:
            for error in e.errors():
                issues.append(ValidationIssue(
                    field=".".join(str(part) for part in error["loc"]) or "record",
                    issue_type="missing" if error["type"] == "missing" else "invalid_value",
                    message=error["msg"],
                    severity="error",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues, record if is_valid else None

    def _validate_semantic(
        self,
        record_type: str,
        record: BaseModel,
        data: dict,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = self._semantic_rules[record_type](record, data)
        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    # -------------------------------------------------------------------------
    # Shared checks
    # -------------------------------------------------------------------------

    @staticmethod
    def _require_text(data: dict, field: str, label: str) -> list[ValidationIssue]:
        if _is_blank(_raw(data, field)):
            return [ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{label} is required",
                severity="error",
            )]
        return []

    @staticmethod
    def _require_positive(value: Decimal, field: str) -> list[ValidationIssue]:
        if value <= 0:
            return [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field} must be greater than zero",
                severity="error",
                suggested_fix="Check if the amount was typed correctly",
            )]
        return []

    @staticmethod
    def _require_percentage(data: dict, field: str) -> list[ValidationIssue]:
        value = _number(_raw(data, field))
        if value is not None and not Decimal("0") <= value <= Decimal("100"):
            return [ValidationIssue(
                field=field,
                issue_type="out_of_range",
                message=f"{field} must be between 0 and 100, got {value}",
                severity="error",
                suggested_fix="It would be clamped into [0, 100]",
            )]
        return []

    @staticmethod
    def _require_non_negative(data: dict, field: str) -> list[ValidationIssue]:
        value = _number(_raw(data, field))
        if value is not None and value < 0:
            return [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field} cannot be negative",
                severity="error",
            )]
        return []

    @staticmethod
    def _require_person(value: Any, field: str) -> list[ValidationIssue]:
        if value is None:
            return [ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field} must be person1 or person2",
                severity="error",
            )]
        return []

    @staticmethod
    def _require_date(value: Any, field: str) -> list[ValidationIssue]:
        if value is None:
            return [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field} is not a readable date; the record would count in no month",
                severity="error",
                suggested_fix="Use the YYYY-MM-DD format",
            )]
        return []

    # -------------------------------------------------------------------------
    # Per-record rules
    # -------------------------------------------------------------------------

    def _check_expense(self, expense: Expense, data: dict) -> list[ValidationIssue]:
        issues = self._require_text(data, "description", "Description")
        issues += self._require_positive(expense.total_value, "total_value")
        issues += self._require_date(expense.date, "date")

        installments = _number(_raw(data, "installments"))
        if installments is not None and (
            installments < 1 or installments != installments.to_integral_value()
        ):
            issues.append(ValidationIssue(
                field="installments",
                issue_type="invalid_value",
                message="Installments must be a whole number of at least 1",
                severity="error",
                suggested_fix="It would be treated as a single payment",
            ))

        issues += self._require_percentage(data, "split_percentage1")
        issues += self._require_non_negative(data, "specific_value_p1")
        issues += self._require_non_negative(data, "specific_value_p2")

        split = expense.split
        if isinstance(split, AbsoluteSplit):
            assigned = split.person1_value + split.person2_value
            if assigned > expense.total_value:
                issues.append(ValidationIssue(
                    field="split",
                    issue_type="inconsistent",
                    message=(
                        f"Specific values ({assigned}) exceed the expense "
                        f"total ({expense.total_value})"
                    ),
                    severity="error",
                    suggested_fix="Lower the specific values or raise the total",
                ))

        if not expense.is_personal and expense.paid_by is None:
            issues.append(ValidationIssue(
                field="paid_by",
                issue_type="missing",
                message="Shared expense has no payer; the monthly settlement will be off",
                severity="error",
                suggested_fix="Choose who paid this expense",
            ))

        status = _raw(data, "reimbursement_status")
        if not _is_blank(status) and not expense.is_reimbursement:
            issues.append(ValidationIssue(
                field="reimbursement_status",
                issue_type="inconsistent",
                message="Reimbursement status is only used by reimbursement expenses",
                severity="warning",
            ))

        if _is_blank(_raw(data, "category")):
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message=f"No category; it will be filed under '{expense.category.name}'",
                severity="warning",
            ))
        return issues

    def _check_income(self, income: Income, data: dict) -> list[ValidationIssue]:
        issues = self._require_text(data, "description", "Description")
        issues += self._require_text(data, "category", "Category")
        issues += self._require_positive(income.value, "value")
        issues += self._require_person(income.paid_by, "paid_by")
        issues += self._require_date(income.date, "date")
        return issues

    def _check_goal(self, goal: SavingsGoal, data: dict) -> list[ValidationIssue]:
        issues = self._require_text(data, "title", "Title")
        issues += self._require_positive(goal.target_value, "target_value")
        issues += self._require_percentage(data, "split_p1_percentage")
        issues += self._require_percentage(data, "interest_rate")
        issues += self._require_non_negative(data, "monthly_contribution_p1")
        issues += self._require_non_negative(data, "monthly_contribution_p2")
        issues += self._require_non_negative(data, "current_value")

        if goal.start_date and goal.deadline and goal.deadline < goal.start_date:
            issues.append(ValidationIssue(
                field="deadline",
                issue_type="inconsistent",
                message="Deadline is before the start date",
                severity="warning",
                suggested_fix="Please verify both dates",
            ))
        return issues

    def _check_goal_transaction(self, tx: GoalTransaction, data: dict) -> list[ValidationIssue]:
        issues = self._require_text(data, "goal_id", "Goal")
        issues += self._require_positive(tx.value, "value")
        issues += self._require_person(tx.person, "person")
        issues += self._require_date(tx.date, "date")
        return issues

    def _check_investment(self, investment: Investment, data: dict) -> list[ValidationIssue]:
        issues = self._require_text(data, "name", "Name")
        for field in ("current_value", "invested_value", "quantity"):
            issues += self._require_non_negative(data, field)
        return issues

    def _check_investment_movement(
        self,
        movement: InvestmentMovement,
        data: dict,
    ) -> list[ValidationIssue]:
        issues = self._require_text(data, "investment_id", "Investment")
        issues += self._require_person(movement.person, "person")
        issues += self._require_date(movement.date, "date")
        issues += self._require_non_negative(data, "price_per_unit")
        if movement.type != InvestmentMovementType.ADJUSTMENT:
            # Only adjustments carry a sign
            issues += self._require_positive(movement.value, "value")
        return issues

    def _check_trip(self, trip: Trip, data: dict) -> list[ValidationIssue]:
        issues = self._require_text(data, "name", "Trip name")
        issues += self._require_non_negative(data, "budget")
        issues += self._require_percentage(data, "custom_percentage1")
        return issues

    def _check_positive_value(self, record: Any, data: dict) -> list[ValidationIssue]:
        return self._require_positive(record.value, "value")

    def _check_couple_info(self, info: CoupleInfo, data: dict) -> list[ValidationIssue]:
        issues = self._require_text(data, "person1_name", "Person 1 name")
        issues += self._require_text(data, "person2_name", "Person 2 name")
        issues += self._require_non_negative(data, "salary1")
        issues += self._require_non_negative(data, "salary2")
        return issues

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    def validate(self, record_type: str, data: Any) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            record_type: One of RECORD_MODELS (expense, income, goal, ...)
            data: Raw record as submitted by a form

        Returns:
            ValidationResult with all issues found

        Raises:
            ValueError: If record_type is unknown
        """
        if record_type not in RECORD_MODELS:
            raise ValueError(
                f"Unknown record type '{record_type}'. "
                f"Expected one of: {', '.join(sorted(RECORD_MODELS))}"
            )

        all_issues = []

        # Stage 1: Schema validation
        schema_valid, schema_issues, record = self._validate_schema(record_type, data)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(record_type, record, data)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            record_type=record_type,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the form shows next to the save button.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []

        if result.has_errors:
            lines.append(f"❌ This {result.record_type.replace('_', ' ')} cannot be saved yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
