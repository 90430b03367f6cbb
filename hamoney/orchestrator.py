"""
Main Orchestrator for HaMoney

This module ties together all the components and defines the
end-to-end flows for:
1. Splitting a bill (participants -> validate -> allocate)
2. Recording who owes the payer (allocation -> ledger -> store)
3. Settling up (mark paid -> payment record -> store)
4. Reporting (netting, balances, per-participant debts)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No allocation is produced from invalid input
- No ledger change is kept unless it was persisted
- Every step is audited

Callers drive every step explicitly. Nothing is recomputed
behind their back when the ledger changes.
"""

from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from hamoney.allocation import Allocator
from hamoney.audit import AuditLogger, create_correlation_id
from hamoney.config import get_settings
from hamoney.errors import StateError, ValidationError
from hamoney.ledger import BalanceCalculator, DebtLedger, DebtNetter
from hamoney.models.ledger import Balance, DebtEntry, NetEntry, ParticipantDebts
from hamoney.models.split import Allocation, AllocationValidationResult, SplitMethod
from hamoney.services.storage import (
    InMemoryStore,
    JsonFileStore,
    PersistenceStore,
    StorageError,
)
from hamoney.validation import AllocationValidator


def _method_label(method) -> str:
    try:
        return SplitMethod(method).value
    except ValueError:
        return str(method)


class SplitFlow:
    """
    Orchestrates splitting and settling.

    Flow:
    1. Validate -> show every problem at once (no exception)
    2. Compute -> immutable Allocation, shares sum to the total
    3. Record -> one debt per non-payer, flushed to the store
    4. Settle -> debt marked paid once, repayment recorded
    5. Report -> netted view and balances, derived on demand
    """

    def __init__(
        self,
        ledger: DebtLedger,
        validator: Optional[AllocationValidator] = None,
        allocator: Optional[Allocator] = None,
        netter: Optional[DebtNetter] = None,
        balance_calculator: Optional[BalanceCalculator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._validator = validator or AllocationValidator()
        self._allocator = allocator or Allocator(self._validator)
        self._netter = netter or DebtNetter()
        self._balances = balance_calculator or BalanceCalculator()
        self._audit_logger = audit_logger

    @property
    def ledger(self) -> DebtLedger:
        return self._ledger

    @property
    def validator(self) -> AllocationValidator:
        return self._validator

    def validate_allocation(
        self,
        total_amount,
        participants: Iterable,
        method,
        params=None,
    ) -> AllocationValidationResult:
        """
        Pre-check an allocation request.

        Never raises for bad input: every problem is in the result.
        """
        return self._validator.validate(total_amount, list(participants or []), method, params)

    def compute_allocation(
        self,
        total_amount,
        participants: Iterable,
        method,
        params=None,
        correlation_id: Optional[UUID] = None,
    ) -> Allocation:
        """
        Split a total among participants.

        Raises:
            ValidationError: If the request is invalid
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            allocation = self._allocator.compute(total_amount, participants, method, params)
        except ValidationError as e:
            if self._audit_logger:
                self._audit_logger.log_allocation_rejected(
                    method=_method_label(method),
                    errors=e.errors,
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_allocation_computed(
                allocation_id=allocation.id,
                method=allocation.method.value,
                total_amount=allocation.total_amount,
                participant_count=len(allocation.participants),
                correlation_id=correlation_id,
            )

        return allocation

    def record_settlement(
        self,
        allocation: Allocation,
        payer_id: str,
        description: str = "",
        due_date=None,
        correlation_id: Optional[UUID] = None,
    ) -> list[DebtEntry]:
        """
        Record that `payer_id` paid the whole bill.

        Returns:
            The new debt entries (one per non-payer with a share above one cent)

        Raises:
            StateError: Payer not in the allocation
            ValidationError: Fewer than two participants
            StorageError: The ledger could not be persisted
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            entries = self._ledger.record(allocation, payer_id, description, due_date)
        except (StateError, ValidationError) as e:
            if self._audit_logger:
                self._audit_logger.log_settlement_rejected(
                    reference=str(allocation.id),
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_storage_error(
                    operation="record_settlement",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_debts_recorded(
                allocation_id=allocation.id,
                payer_id=payer_id,
                debt_ids=[e.id for e in entries],
                total_owed=sum((e.amount for e in entries), Decimal("0")),
                correlation_id=correlation_id,
            )

        return entries

    def settle_debt(
        self,
        entry_id,
        paid_at=None,
        correlation_id: Optional[UUID] = None,
    ) -> DebtEntry:
        """
        Mark a pending debt as paid.

        Raises:
            StateError: Unknown entry, or already paid
            StorageError: The ledger could not be persisted
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            entry = self._ledger.settle(entry_id, paid_at)
        except StateError as e:
            if self._audit_logger:
                self._audit_logger.log_settlement_rejected(
                    reference=str(entry_id),
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_storage_error(
                    operation="settle_debt",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_debt_settled(
                debt_id=entry.id,
                debtor_id=entry.debtor_id,
                creditor_id=entry.creditor_id,
                amount=entry.amount,
                correlation_id=correlation_id,
            )

        return entry

    def net_ledger(self, entries: Optional[Iterable[DebtEntry]] = None) -> list[NetEntry]:
        """Netted view of the given entries (defaults to the whole ledger)."""
        if entries is None:
            entries = self._ledger.entries
        return self._netter.net(entries)

    def get_balance(self, participant_id: str, netted: bool = False) -> Balance:
        """
        Balance for one participant.

        Args:
            netted: Sum over the netted view instead of the raw entries.
                   The net figure is the same either way.
        """
        if netted:
            return self._balances.balance_from_net(participant_id, self.net_ledger())
        return self._balances.balance(participant_id, self._ledger.entries)

    def get_participant_debts(self, participant_id: str) -> ParticipantDebts:
        """Pending debts owed by and to one participant."""
        return self._ledger.query_by_participant(participant_id)

    def clear_ledger(self, correlation_id: Optional[UUID] = None) -> int:
        """
        Remove every debt and payment. Returns the number of debts removed.

        Raises:
            StorageError: The cleared ledger could not be persisted
        """
        try:
            removed = self._ledger.clear()
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_storage_error(
                    operation="clear_ledger",
                    error_message=str(e),
                    correlation_id=correlation_id or create_correlation_id(),
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_ledger_cleared(removed_count=removed)
        return removed


def create_store(backend: Optional[str] = None) -> PersistenceStore:
    """
    Build the configured persistence store.

    Args:
        backend: memory | json_file | google_sheets.
                Defaults to the configured backend.
    """
    storage_settings = get_settings().storage
    backend = backend or storage_settings.backend

    if backend == "memory":
        return InMemoryStore(key_prefix=storage_settings.key_prefix)
    if backend == "json_file":
        return JsonFileStore(
            data_dir=storage_settings.data_dir,
            key_prefix=storage_settings.key_prefix,
        )
    if backend == "google_sheets":
        # gspread is only needed for this backend
        from hamoney.services.storage.google_sheets import GoogleSheetsStore

        return GoogleSheetsStore(key_prefix=storage_settings.key_prefix)

    raise ValueError(f"Unknown storage backend: {backend}")


def create_app_components(
    backend: Optional[str] = None,
) -> tuple[SplitFlow, PersistenceStore, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        backend: Storage backend override (see create_store).

    Returns:
        (split_flow, store, audit_logger)
    """
    store = create_store(backend)
    audit_logger = AuditLogger(store)

    try:
        ledger = DebtLedger.from_store(store)
    except StorageError as e:
        audit_logger.log_storage_error(operation="load_ledger", error_message=str(e))
        raise

    audit_logger.log_ledger_loaded(
        entry_count=len(ledger.entries),
        payment_count=len(ledger.payments),
    )

    flow = SplitFlow(ledger=ledger, audit_logger=audit_logger)
    return flow, store, audit_logger
