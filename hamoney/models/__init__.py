"""
Data Models Package

This package contains all Pydantic models used by the HaMoney split engine.
All data flowing through the engine must conform to these schemas.
"""

from hamoney.models.split import (
    CENT,
    Allocation,
    AllocationStatistics,
    AllocationValidationResult,
    CustomSplit,
    EqualSplit,
    ItemSplit,
    Participant,
    PercentageSplit,
    SplitItem,
    SplitMethod,
    SplitParams,
    ValidationIssue,
    round_cents,
    to_decimal,
)
from hamoney.models.ledger import (
    Balance,
    DebtEntry,
    DebtStatus,
    MonthlyStatistics,
    NetEntry,
    NetPosition,
    ParticipantDebts,
    Payment,
)
from hamoney.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Allocation models
    "CENT",
    "Allocation",
    "AllocationStatistics",
    "AllocationValidationResult",
    "CustomSplit",
    "EqualSplit",
    "ItemSplit",
    "Participant",
    "PercentageSplit",
    "SplitItem",
    "SplitMethod",
    "SplitParams",
    "ValidationIssue",
    "round_cents",
    "to_decimal",
    # Ledger models
    "Balance",
    "DebtEntry",
    "DebtStatus",
    "MonthlyStatistics",
    "NetEntry",
    "NetPosition",
    "ParticipantDebts",
    "Payment",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
