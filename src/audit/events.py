"""
Audit Events for Couple Ledger

The engine never fails on bad user data; it corrects it. Every correction
(a coerced number, a clamped percentage, an unreadable month key) and every
completed calculation is described by an AuditEvent so the surrounding
application can surface data-quality warnings.

DESIGN DECISION: Audit events are descriptive only. Logging one never
changes a calculation result.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events the engine reports."""
    # Input normalization
    VALUE_COERCED = "value_coerced"
    PERCENTAGE_CLAMPED = "percentage_clamped"
    INSTALLMENTS_COERCED = "installments_coerced"
    DATE_COERCED = "date_coerced"
    MONTH_KEY_REJECTED = "month_key_rejected"
    RECORD_REJECTED = "record_rejected"

    # Settlement warnings
    UNSPECIFIED_PAYER = "unspecified_payer"

    # Calculations
    SUMMARY_CALCULATED = "summary_calculated"
    TRIP_SETTLED = "trip_settled"
    PORTFOLIO_SUMMARIZED = "portfolio_summarized"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every correction or calculation the engine reports creates one of these.
    """

    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # What record or calculator is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'summary', 'trip')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the record this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.value_coerced("total_value", "abc")
        event = AuditEventBuilder.summary_calculated("2025-01", 12, "person2")
    """

    @staticmethod
    def value_coerced(
        field: Optional[str],
        raw_value: Any,
        default: Any = 0,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALUE_COERCED,
            severity=AuditSeverity.WARNING,
            description=f"Invalid number in {field or 'field'} replaced by {default}",
            details={
                "field": field,
                "raw_value": repr(raw_value),
                "default": str(default),
            },
        )

    @staticmethod
    def percentage_clamped(
        field: Optional[str],
        raw_value: Any,
        clamped: Any,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERCENTAGE_CLAMPED,
            severity=AuditSeverity.WARNING,
            description=f"Percentage in {field or 'field'} clamped to {clamped}",
            details={
                "field": field,
                "raw_value": str(raw_value),
                "clamped": str(clamped),
            },
        )

    @staticmethod
    def installments_coerced(raw_value: Any) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSTALLMENTS_COERCED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            description="Installment count replaced by 1",
            details={"raw_value": repr(raw_value)},
        )

    @staticmethod
    def date_coerced(field: Optional[str], raw_value: Any, result: Any) -> AuditEvent:
        if result is None:
            description = f"Unreadable date in {field or 'field'}; the record matches no month"
        else:
            description = f"Date in {field or 'field'} read as {result}"
        return AuditEvent(
            event_type=AuditEventType.DATE_COERCED,
            severity=AuditSeverity.WARNING,
            description=description,
            details={
                "field": field,
                "raw_value": repr(raw_value),
                "result": None if result is None else str(result),
            },
        )

    @staticmethod
    def month_key_rejected(month_key: Any) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_KEY_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="summary",
            description="Month key is not in YYYY-MM format; no dated record matches",
            details={"month_key": repr(month_key)},
        )

    @staticmethod
    def record_rejected(
        collection: str,
        position: int,
        type_name: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_REJECTED,
            severity=AuditSeverity.ERROR,
            entity_type=collection,
            description=f"Item {position} of {collection} is not a valid record",
            details={
                "position": position,
                "received_type": type_name,
            },
        )

    @staticmethod
    def unspecified_payer(month_key: str, count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNSPECIFIED_PAYER,
            severity=AuditSeverity.WARNING,
            entity_type="summary",
            entity_id=month_key,
            description=f"{count} shared expense(s) without payer in {month_key}",
            details={"count": count},
        )

    @staticmethod
    def summary_calculated(
        month_key: str,
        expense_count: int,
        who_transfers: str,
        transfer_amount: Any = 0,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUMMARY_CALCULATED,
            severity=AuditSeverity.DEBUG,
            entity_type="summary",
            entity_id=month_key,
            description=f"Monthly summary calculated from {expense_count} contributing expenses",
            details={
                "who_transfers": who_transfers,
                "transfer_amount": str(transfer_amount),
            },
        )

    @staticmethod
    def trip_settled(
        trip_id: Optional[str],
        who_owes: str,
        amount: Any,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRIP_SETTLED,
            severity=AuditSeverity.DEBUG,
            entity_type="trip",
            entity_id=trip_id,
            description=f"Trip settlement calculated: {who_owes} owes {amount}",
            details={
                "who_owes": who_owes,
                "amount": str(amount),
            },
        )

    @staticmethod
    def portfolio_summarized(
        investment_count: int,
        movement_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PORTFOLIO_SUMMARIZED,
            severity=AuditSeverity.DEBUG,
            entity_type="portfolio",
            description=f"Portfolio of {investment_count} investments summarized",
            details={
                "investment_count": investment_count,
                "movement_count": movement_count,
            },
        )
