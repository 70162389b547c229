"""
Tests for the audit logger and the events raised by input repair
"""

import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from structlog.testing import capture_logs

from src.audit import AuditLogger, get_audit_logger
from src.audit import AuditEventBuilder, AuditSeverity
from src.models import Expense, RecordTypeError, SavingsGoal, ensure_records
from src.utils.decimal_utils import clamp_percentage, coerce_decimal
from tests.factories import expense


def audit_events(logs, event_type):
    return [log for log in logs if log.get("event_type") == event_type]


class TestAuditLogger:
    """Tests for severity routing."""

    def test_routes_by_severity(self):
        """Test each severity goes to the matching logger method."""
        logger = MagicMock()
        audit = AuditLogger(logger=logger)

        audit.log_value_coerced("total_value", "abc")
        audit.log_record_rejected("expenses", 3, "str")
        audit.log_summary_calculated("2025-01", 4, "person2", Decimal("10"))
        audit.log(AuditEventBuilder.month_key_rejected("2025-13").model_copy(
            update={"severity": AuditSeverity.INFO}
        ))

        logger.warning.assert_called_once()
        logger.error.assert_called_once()
        logger.debug.assert_called_once()
        logger.info.assert_called_once()

    def test_log_dict_shape(self):
        """Test the structured fields passed to the logger."""
        logger = MagicMock()
        AuditLogger(logger=logger).log_unspecified_payer("2025-02", 2)

        args, kwargs = logger.warning.call_args
        assert args == ("audit_event",)
        assert kwargs["event_type"] == "unspecified_payer"
        assert kwargs["entity_id"] == "2025-02"
        assert kwargs["details"] == {"count": 2}

    def test_shared_instance(self):
        """Test the process-wide logger is cached."""
        assert get_audit_logger() is get_audit_logger()


class TestRepairEvents:
    """Tests for the events logged when bad input is repaired."""

    def test_nan_is_logged(self):
        """Test a NaN replaced by zero is logged with its field."""
        with capture_logs() as logs:
            assert coerce_decimal(float("nan"), "total_value") == Decimal("0")
        events = audit_events(logs, "value_coerced")
        assert len(events) == 1
        assert events[0]["details"]["field"] == "total_value"

    def test_missing_value_is_silent(self):
        """Test a missing value becomes zero without a log entry."""
        with capture_logs() as logs:
            assert coerce_decimal(None) == Decimal("0")
        assert audit_events(logs, "value_coerced") == []

    def test_clamp_is_logged(self):
        """Test a clamped percentage is logged."""
        with capture_logs() as logs:
            assert clamp_percentage(-5, "split_p1_percentage") == Decimal("0")
        assert len(audit_events(logs, "percentage_clamped")) == 1

    def test_bad_installments_logged(self):
        """Test a fractional installment count is replaced by 1 and logged."""
        with capture_logs() as logs:
            exp = Expense.model_validate(expense(installments=2.5))
        assert exp.installments == 1
        assert len(audit_events(logs, "installments_coerced")) == 1

    def test_rejected_record_logged(self):
        """Test an unreadable item is logged before the error is raised."""
        with capture_logs() as logs:
            with pytest.raises(RecordTypeError):
                ensure_records([{"title": "ok"}, 7], SavingsGoal, "goals")
        events = audit_events(logs, "record_rejected")
        assert len(events) == 1
        assert events[0]["log_level"] == "error"
        assert events[0]["details"] == {"position": 1, "received_type": "int"}

    def test_date_repairs_logged(self):
        """Test rolled-over and unreadable dates are logged with their field."""
        with capture_logs() as logs:
            Expense.model_validate(expense(date="2025-04-31"))
            Expense.model_validate(expense(date="amanhã"))
            Expense.model_validate(expense(date="2025-4-9"))
        events = audit_events(logs, "date_coerced")
        assert [e["details"]["result"] for e in events] == ["2025-05-01", None]
        assert {e["details"]["field"] for e in events} == {"date"}
        assert all(e["log_level"] == "warning" for e in events)

    def test_blank_optional_date_is_silent(self):
        """Test an empty goal deadline is not a repair."""
        with capture_logs() as logs:
            goal = SavingsGoal.model_validate({"title": "Casa", "deadline": ""})
        assert goal.deadline is None
        assert audit_events(logs, "date_coerced") == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
