"""
Audit Logger

DESIGN DECISION: Every correction the engine applies to user data is logged.
This provides:
1. A trail of which records were repaired and how
2. Debugging capability for surprising settlement figures
3. A hook for the UI to warn about poor data quality

The audit logger:
- Is synchronous (the engine has no suspension points)
- Never raises and never changes a calculation result
"""

from functools import lru_cache
from typing import Any, Optional

import structlog

from src.audit.events import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=False,
)


class AuditLogger:
    """
    Central audit logging service.

    Routes AuditEvents to a structlog logger according to their severity.
    """

    def __init__(self, logger: Optional[Any] = None):
        """
        Initialize audit logger.

        Args:
            logger: structlog-compatible logger.
                    If None, the "couple_ledger" logger is used.
        """
        self._logger = logger or structlog.get_logger("couple_ledger")

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def log_value_coerced(
        self,
        field: Optional[str],
        raw_value: Any,
        default: Any = 0,
    ) -> None:
        """Log a non-numeric value replaced by a default."""
        self.log(AuditEventBuilder.value_coerced(field, raw_value, default))

    def log_percentage_clamped(
        self,
        field: Optional[str],
        raw_value: Any,
        clamped: Any,
    ) -> None:
        """Log a percentage forced back into [0, 100]."""
        self.log(AuditEventBuilder.percentage_clamped(field, raw_value, clamped))

    def log_installments_coerced(self, raw_value: Any) -> None:
        """Log an installment count replaced by 1."""
        self.log(AuditEventBuilder.installments_coerced(raw_value))

    def log_date_coerced(
        self,
        field: Optional[str],
        raw_value: Any,
        result: Any = None,
    ) -> None:
        """Log a date that was rolled over or could not be read."""
        self.log(AuditEventBuilder.date_coerced(field, raw_value, result))

    def log_month_key_rejected(self, month_key: Any) -> None:
        """Log an unreadable month key."""
        self.log(AuditEventBuilder.month_key_rejected(month_key))

    def log_record_rejected(
        self,
        collection: str,
        position: int,
        type_name: str,
    ) -> None:
        """Log an input item that could not be read as a record."""
        self.log(AuditEventBuilder.record_rejected(collection, position, type_name))

    def log_unspecified_payer(self, month_key: str, count: int) -> None:
        """Log shared expenses whose payer is unknown."""
        self.log(AuditEventBuilder.unspecified_payer(month_key, count))

    def log_summary_calculated(
        self,
        month_key: str,
        expense_count: int,
        who_transfers: str,
        transfer_amount: Any = 0,
    ) -> None:
        """Log a finished monthly summary."""
        self.log(AuditEventBuilder.summary_calculated(
            month_key=month_key,
            expense_count=expense_count,
            who_transfers=who_transfers,
            transfer_amount=transfer_amount,
        ))

    def log_trip_settled(
        self,
        trip_id: Optional[str],
        who_owes: str,
        amount: Any,
    ) -> None:
        """Log a finished trip settlement."""
        self.log(AuditEventBuilder.trip_settled(trip_id, who_owes, amount))

    def log_portfolio_summarized(
        self,
        investment_count: int,
        movement_count: int,
    ) -> None:
        """Log a finished portfolio summary."""
        self.log(AuditEventBuilder.portfolio_summarized(
            investment_count=investment_count,
            movement_count=movement_count,
        ))


@lru_cache()
def get_audit_logger() -> AuditLogger:
    """
    Get the process-wide audit logger (cached).

    Call get_audit_logger.cache_clear() to rebuild it.
    """
    return AuditLogger()
