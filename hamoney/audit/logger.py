"""
Audit Logger

DESIGN DECISION: Every allocation and ledger mutation is logged.
This provides:
1. Traceability of who was asked to pay what
2. Debugging capability when balances look wrong
3. Users can see the history of their settlements

The audit logger:
- Is synchronous, like the rest of the engine
- Gracefully handles failures (doesn't break the flow if persisting fails)
- Supports correlation IDs to trace related events
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from hamoney.config import get_settings
from hamoney.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from hamoney.services.storage import PersistenceStore


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
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The persistence store under the audit key (if one is given)
    """

    def __init__(
        self,
        storage: Optional[PersistenceStore] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Store for persisting events.
                    If None, only logs locally.
        """
        self._storage = storage
        self._settings = get_settings().engine
        self._logger = structlog.get_logger("hamoney.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is None or self._settings.max_audit_events == 0:
            return True

        try:
            events = self._storage.get(self._settings.audit_key) or []
            events.append(event.model_dump(mode="json"))
            events = events[-self._settings.max_audit_events:]
            return self._storage.set(self._settings.audit_key, events)
        except Exception as e:
            # Log failure but don't raise
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent persisted events, newest first."""
        if self._storage is None:
            return []
        raw = self._storage.get(self._settings.audit_key) or []
        events = [AuditEvent.model_validate(item) for item in raw]
        events.reverse()
        return events[:limit]

    def log_allocation_computed(
        self,
        allocation_id: UUID,
        method: str,
        total_amount: Decimal,
        participant_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful allocation."""
        self.log(AuditEventBuilder.allocation_computed(
            allocation_id=allocation_id,
            method=method,
            total_amount=total_amount,
            participant_count=participant_count,
            correlation_id=correlation_id,
        ))

    def log_allocation_rejected(
        self,
        method: str,
        errors: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected allocation."""
        self.log(AuditEventBuilder.allocation_rejected(
            method=method,
            errors=errors,
            correlation_id=correlation_id,
        ))

    def log_ledger_loaded(self, entry_count: int, payment_count: int) -> None:
        self.log(AuditEventBuilder.ledger_loaded(
            entry_count=entry_count,
            payment_count=payment_count,
        ))

    def log_debts_recorded(
        self,
        allocation_id: UUID,
        payer_id: str,
        debt_ids: list[UUID],
        total_owed: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log debts created from an allocation."""
        self.log(AuditEventBuilder.debts_recorded(
            allocation_id=allocation_id,
            payer_id=payer_id,
            debt_ids=debt_ids,
            total_owed=total_owed,
            correlation_id=correlation_id,
        ))

    def log_debt_settled(
        self,
        debt_id: UUID,
        debtor_id: str,
        creditor_id: str,
        amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a debt being marked paid."""
        self.log(AuditEventBuilder.debt_settled(
            debt_id=debt_id,
            debtor_id=debtor_id,
            creditor_id=creditor_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_settlement_rejected(
        self,
        reference: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected record/settle request."""
        self.log(AuditEventBuilder.settlement_rejected(
            reference=reference,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_ledger_cleared(self, removed_count: int) -> None:
        self.log(AuditEventBuilder.ledger_cleared(removed_count=removed_count))

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a persistence failure."""
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., confirming a split).
    Pass it through all subsequent operations.
    """
    return uuid4()
