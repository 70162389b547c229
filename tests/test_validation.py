"""
Tests for the two-stage RecordValidator
"""

import pytest

from src.validation import RECORD_MODELS, RecordValidator
from tests.factories import expense, movement, transaction


@pytest.fixture
def validator():
    return RecordValidator()


def fields_with(result, severity="error"):
    return {issue.field for issue in result.issues if issue.severity == severity}


class TestSchemaStage:
    """Tests for stage 1 (schema)."""

    def test_valid_expense(self, validator):
        """Test a complete expense passes both stages."""
        result = validator.validate("expense", expense())
        assert result.schema_valid is True
        assert result.semantic_valid is True
        assert result.is_valid is True
        assert result.issues == []

    def test_non_numeric_amount(self, validator):
        """Test text in a numeric field fails the schema stage."""
        result = validator.validate("expense", expense(totalValue="cem reais"))
        assert result.schema_valid is False
        assert result.semantic_valid is False
        assert "total_value" in fields_with(result)

    def test_missing_date(self, validator):
        """Test a required field reported as missing."""
        data = expense()
        del data["date"]
        result = validator.validate("expense", data)
        assert result.schema_valid is False
        assert any(issue.issue_type == "missing" for issue in result.issues)

    def test_unknown_enum_value(self, validator):
        """Test an unknown transaction type is a schema error."""
        result = validator.validate(
            "goal_transaction", transaction("gift", 100, "person1", "2025-01-01", goal_id="g1")
        )
        assert result.schema_valid is False
        assert "type" in fields_with(result)

    def test_not_a_mapping(self, validator):
        """Test anything but a dict is rejected."""
        result = validator.validate("income", ["not", "a", "record"])
        assert result.is_valid is False
        assert result.issues[0].issue_type == "invalid_type"

    def test_unknown_record_type(self, validator):
        """Test an unknown record type raises."""
        with pytest.raises(ValueError):
            validator.validate("invoice", {})

    def test_every_record_type_has_rules(self, validator):
        """Test each known record type is wired to semantic rules."""
        assert set(RECORD_MODELS) == set(validator._semantic_rules)


class TestExpenseRules:
    """Tests for stage 2 expense rules."""

    def test_zero_total(self, validator):
        """Test a zero total is rejected."""
        result = validator.validate("expense", expense(totalValue=0))
        assert result.schema_valid is True
        assert result.semantic_valid is False
        assert "total_value" in fields_with(result)

    def test_missing_description(self, validator):
        """Test the description is required."""
        result = validator.validate("expense", expense(description="   "))
        assert "description" in fields_with(result)

    @pytest.mark.parametrize("installments", [0, 1.5, -2])
    def test_bad_installments(self, validator, installments):
        """Test installments must be a whole number of at least one."""
        result = validator.validate("expense", expense(installments=installments))
        assert "installments" in fields_with(result)

    def test_percentage_out_of_range(self, validator):
        """Test a split percentage above 100 is reported, not clamped."""
        result = validator.validate(
            "expense", expense(splitMethod="custom", splitPercentage1=150)
        )
        issue = next(i for i in result.issues if i.field == "split_percentage1")
        assert issue.issue_type == "out_of_range"
        assert result.is_valid is False

    def test_specific_values_exceed_total(self, validator):
        """Test absolute split values cannot exceed the total."""
        result = validator.validate("expense", expense(
            totalValue=100,
            splitMethod="custom",
            specificValueP1=80,
            specificValueP2=50,
        ))
        issue = next(i for i in result.issues if i.field == "split")
        assert issue.issue_type == "inconsistent"

    def test_negative_specific_value(self, validator):
        """Test specific values cannot be negative."""
        result = validator.validate("expense", expense(
            splitMethod="custom", specificValueP1=-10, specificValueP2=20,
        ))
        assert "specific_value_p1" in fields_with(result)

    def test_shared_expense_needs_payer(self, validator):
        """Test a shared expense without payer cannot be saved."""
        result = validator.validate("expense", expense(paidBy=None))
        assert "paid_by" in fields_with(result)

    def test_personal_expense_without_payer(self, validator):
        """Test personal expenses do not need a payer."""
        result = validator.validate("expense", expense(type="PERSONAL_P1", paidBy=None))
        assert result.is_valid is True

    def test_status_on_regular_expense_is_warning(self, validator):
        """Test a reimbursement status on a regular expense only warns."""
        result = validator.validate("expense", expense(reimbursementStatus="settled"))
        assert result.is_valid is True
        assert len(result.warnings) == 1

    def test_missing_category_is_warning(self, validator):
        """Test an expense without category is filed under the default."""
        result = validator.validate("expense", expense(category=""))
        assert result.is_valid is True
        assert "Outros" in result.warnings[0]

    def test_unreadable_date(self, validator):
        """Test a date that cannot be read passes the schema but not the rules."""
        result = validator.validate("expense", expense(date="31/01/2025"))
        assert result.schema_valid is True
        assert result.semantic_valid is False
        assert "date" in fields_with(result)

    def test_rolled_over_date_is_valid(self, validator):
        """Test an overflowing day is read forward and accepted."""
        assert validator.validate("expense", expense(date="2025-02-30")).is_valid is True


class TestOtherRules:
    """Tests for stage 2 rules of the other record types."""

    def test_income_needs_person(self, validator):
        """Test an income must belong to someone."""
        result = validator.validate("income", {
            "date": "2025-01-05", "value": 5000, "category": "Salário", "description": "Salário",
        })
        assert fields_with(result) == {"paid_by"}

    def test_goal_rules(self, validator):
        """Test goal percentage errors and date warnings."""
        result = validator.validate("goal", {
            "title": "Casa",
            "target_value": 100000,
            "split_p1_percentage": 120,
            "start_date": "2025-06-01",
            "deadline": "2025-01-01",
        })
        assert "split_p1_percentage" in fields_with(result)
        assert "deadline" in fields_with(result, "warning")

    def test_goal_transaction_rules(self, validator):
        """Test a goal transaction needs a goal, a person and a value."""
        result = validator.validate("goal_transaction", transaction("deposit", 0, None, "2025-01-01"))
        assert fields_with(result) == {"goal_id", "value", "person"}

    def test_negative_adjustment_allowed(self, validator):
        """Test only adjustments may carry a negative value."""
        assert validator.validate("investment_movement", movement("adjustment", -20)).is_valid is True
        result = validator.validate("investment_movement", movement("buy", -20))
        assert "value" in fields_with(result)

    def test_trip_rules(self, validator):
        """Test trip percentages and deposits."""
        trip = validator.validate("trip", {"name": "Chile", "proportionType": "custom", "customPercentage1": 101})
        assert "custom_percentage1" in fields_with(trip)
        deposit = validator.validate("trip_deposit", {"person": "person1", "value": 0})
        assert "value" in fields_with(deposit)

    def test_couple_info_rules(self, validator):
        """Test both names are required and salaries cannot be negative."""
        result = validator.validate("couple_info", {"person1Name": "André", "salary2": -1})
        assert fields_with(result) == {"person2_name", "salary2"}


class TestUserFriendlySummary:
    """Tests for get_user_friendly_summary."""

    def test_all_passed(self, validator):
        """Test the success message."""
        result = validator.validate("expense", expense())
        assert validator.get_user_friendly_summary(result) == "✅ All checks passed!"

    def test_errors_and_warnings(self, validator):
        """Test errors list their fixes and warnings follow."""
        result = validator.validate("expense", expense(totalValue=0, category=""))
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("❌ This expense cannot be saved yet:")
        assert "💡 Check if the amount was typed correctly" in summary
        assert "⚠️ Please verify the following:" in summary


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
