"""
Audit Models for HaMoney

Every allocation and ledger mutation is logged for audit purposes.
This provides:
1. Traceability of who was asked to pay what, and why
2. Debugging information when balances look wrong
3. Ability to reconstruct ledger history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Allocation
    ALLOCATION_COMPUTED = "allocation_computed"
    ALLOCATION_REJECTED = "allocation_rejected"

    # Ledger
    LEDGER_LOADED = "ledger_loaded"
    DEBTS_RECORDED = "debts_recorded"
    DEBT_SETTLED = "debt_settled"
    SETTLEMENT_REJECTED = "settlement_rejected"
    LEDGER_CLEARED = "ledger_cleared"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'allocation', 'debt', 'ledger')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., compute then record)"
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

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.allocation_computed(allocation_id, "equal", "100.00", 3, cid)
        event = AuditEventBuilder.debt_settled(debt_id, "alice", "bob", "40.00", cid)
    """

    @staticmethod
    def allocation_computed(
        allocation_id: UUID,
        method: str,
        total_amount: Decimal,
        participant_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALLOCATION_COMPUTED,
            entity_type="allocation",
            entity_id=allocation_id,
            correlation_id=correlation_id,
            description=f"Allocation computed: {method} split of {total_amount}",
            details={
                "method": method,
                "total_amount": str(total_amount),
                "participant_count": participant_count,
            },
        )

    @staticmethod
    def allocation_rejected(
        method: str,
        errors: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALLOCATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="allocation",
            correlation_id=correlation_id,
            description=f"Allocation rejected with {len(errors)} errors",
            details={
                "method": method,
                "errors": errors,
            },
        )

    @staticmethod
    def ledger_loaded(
        entry_count: int,
        payment_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="ledger",
            description=f"Ledger loaded with {entry_count} entries",
            details={
                "entry_count": entry_count,
                "payment_count": payment_count,
            },
        )

    @staticmethod
    def debts_recorded(
        allocation_id: UUID,
        payer_id: str,
        debt_ids: list[UUID],
        total_owed: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBTS_RECORDED,
            entity_type="allocation",
            entity_id=allocation_id,
            correlation_id=correlation_id,
            description=f"{len(debt_ids)} debts recorded in favour of {payer_id}",
            details={
                "payer_id": payer_id,
                "debt_ids": [str(debt_id) for debt_id in debt_ids],
                "total_owed": str(total_owed),
            },
        )

    @staticmethod
    def debt_settled(
        debt_id: UUID,
        debtor_id: str,
        creditor_id: str,
        amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_SETTLED,
            entity_type="debt",
            entity_id=debt_id,
            correlation_id=correlation_id,
            description=f"Debt settled: {debtor_id} paid {creditor_id} {amount}",
            details={
                "debtor_id": debtor_id,
                "creditor_id": creditor_id,
                "amount": str(amount),
            },
        )

    @staticmethod
    def settlement_rejected(
        reference: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="debt",
            correlation_id=correlation_id,
            description=f"Settlement rejected for {reference}",
            error_message=reason,
            details={
                "reference": reference,
            },
        )

    @staticmethod
    def ledger_cleared(
        removed_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            description=f"Ledger cleared ({removed_count} entries removed)",
            details={
                "removed_count": removed_count,
            },
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
            correlation_id=correlation_id,
        )
