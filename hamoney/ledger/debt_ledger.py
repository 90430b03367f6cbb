"""
Debt Ledger

Owns the collection of outstanding obligations.

DESIGN DECISION: The ledger is an ordinary object constructed from a
snapshot, not a global. Callers hold a reference and pass it around.

PERSISTENCE RULES:
- Every mutation (record, settle, clear) writes the COMPLETE collection
- The in-memory state only changes after the write succeeded
- No locking: a single logical writer is assumed

An entry changes state exactly once (pending -> paid). Settling twice is
an error, not a no-op, so balance reports can never double count.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from hamoney.config import EngineSettings, get_settings
from hamoney.errors import StateError, ValidationError
from hamoney.models.ledger import (
    MAX_DESCRIPTION_LENGTH,
    DebtEntry,
    DebtStatus,
    MonthlyStatistics,
    ParticipantDebts,
    Payment,
)
from hamoney.models.split import CENT, Allocation
from hamoney.services.storage import PersistenceStore, StorageError


class DebtLedger:
    """
    Append-only ledger of debts, flushed to a PersistenceStore.
    """

    def __init__(
        self,
        store: PersistenceStore,
        entries: Optional[Iterable[DebtEntry]] = None,
        payments: Optional[Iterable[Payment]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        settings: Optional[EngineSettings] = None,
    ):
        """
        Initialize ledger from an already-loaded snapshot.

        Args:
            store: Where every mutation is flushed
            entries: Existing debt entries (in order)
            payments: Existing repayment records
            clock: Returns "now" (UTC); injectable for tests
            settings: Engine settings; defaults to the global settings
        """
        self._store = store
        self._entries: list[DebtEntry] = list(entries or [])
        self._payments: list[Payment] = list(payments or [])
        self._clock = clock or datetime.utcnow
        self._settings = settings or get_settings().engine

    @classmethod
    def from_store(
        cls,
        store: PersistenceStore,
        clock: Optional[Callable[[], datetime]] = None,
        settings: Optional[EngineSettings] = None,
    ) -> "DebtLedger":
        """
        Load the ledger snapshot from storage.

        Raises:
            StorageError: If the stored snapshot cannot be parsed
        """
        settings = settings or get_settings().engine

        raw_entries = store.get(settings.ledger_key) or []
        raw_payments = store.get(settings.payments_key) or []

        try:
            entries = [DebtEntry.model_validate(item) for item in raw_entries]
            payments = [Payment.model_validate(item) for item in raw_payments]
        except (PydanticValidationError, TypeError) as e:
            raise StorageError(f"Stored ledger is corrupt: {e}")

        return cls(store, entries=entries, payments=payments, clock=clock, settings=settings)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def entries(self) -> list[DebtEntry]:
        """All entries, oldest first (a copy)."""
        return list(self._entries)

    @property
    def payments(self) -> list[Payment]:
        """All repayment records, oldest first (a copy)."""
        return list(self._payments)

    def __len__(self) -> int:
        return len(self._entries)

    def find(self, entry_id) -> Optional[DebtEntry]:
        """Entry by id, or None."""
        try:
            wanted = entry_id if isinstance(entry_id, UUID) else UUID(str(entry_id))
        except ValueError:
            return None

        for entry in self._entries:
            if entry.id == wanted:
                return entry
        return None

    def get(self, entry_id) -> DebtEntry:
        """
        Entry by id.

        Raises:
            StateError: If no such entry exists
        """
        entry = self.find(entry_id)
        if entry is None:
            raise StateError(f"Debt entry not found: {entry_id}", entity_id=str(entry_id))
        return entry

    def pending_entries(self) -> list[DebtEntry]:
        return [e for e in self._entries if e.is_pending]

    def query_by_participant(self, participant_id: str) -> ParticipantDebts:
        """Pending debts owed by and owed to one participant."""
        return ParticipantDebts(
            participant_id=participant_id,
            owed_by_me=[
                e for e in self._entries
                if e.is_pending and e.debtor_id == participant_id
            ],
            owed_to_me=[
                e for e in self._entries
                if e.is_pending and e.creditor_id == participant_id
            ],
        )

    def overdue_entries(self, as_of: Optional[date] = None) -> list[DebtEntry]:
        """Pending entries whose due date has passed."""
        as_of = as_of or self._clock().date()
        return [e for e in self._entries if e.is_overdue(as_of)]

    def monthly_statistics(self) -> list[MonthlyStatistics]:
        """
        Totals per month of creation, newest month first.

        Counts paid and pending entries alike.
        """
        months: dict[str, MonthlyStatistics] = {}

        for entry in self._entries:
            key = entry.created_at.strftime("%Y-%m")
            stats = months.setdefault(key, MonthlyStatistics(month=key))

            stats.total_amount += entry.amount
            stats.debt_count += 1
            if entry.status == DebtStatus.PAID:
                stats.paid_amount += entry.amount
                stats.paid_count += 1
            else:
                stats.pending_amount += entry.amount
                stats.pending_count += 1

            creditor = entry.creditor_name or entry.creditor_id
            debtor = entry.debtor_name or entry.debtor_id
            stats.by_creditor[creditor] = stats.by_creditor.get(creditor, Decimal("0")) + entry.amount
            stats.by_debtor[debtor] = stats.by_debtor.get(debtor, Decimal("0")) + entry.amount

        return [months[key] for key in sorted(months, reverse=True)]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _flush(
        self,
        entries: list[DebtEntry],
        payments: Optional[list[Payment]] = None,
    ) -> None:
        """
        Write the full collection(s), then commit them to memory.

        Raises:
            StorageError: If the store refuses the write
        """
        ok = self._store.set(
            self._settings.ledger_key,
            [e.model_dump(mode="json") for e in entries],
        )
        if not ok:
            raise StorageError("Store rejected the ledger write")

        if payments is not None:
            ok = self._store.set(
                self._settings.payments_key,
                [p.model_dump(mode="json") for p in payments],
            )
            if not ok:
                raise StorageError("Store rejected the payments write")
            self._payments = payments

        self._entries = entries

    def record(
        self,
        allocation: Allocation,
        payer_id: str,
        description: str = "",
        due_date: Optional[date] = None,
    ) -> list[DebtEntry]:
        """
        Turn a committed allocation into debts owed to the payer.

        One entry per non-payer participant whose share is above one cent.
        The payer's own share is treated as already paid.

        Args:
            allocation: Result of Allocator.compute()
            payer_id: Participant who fronted the whole bill
            description: What the bill was for
            due_date: Defaults to today + default_due_days

        Returns:
            The new entries, in participant order (may be empty)

        Raises:
            StateError: Payer not in the allocation, or allocation already recorded
            ValidationError: Fewer than two participants, or description too long
        """
        payer = allocation.participant(payer_id)
        if payer is None:
            raise StateError(
                f"Payer '{payer_id}' is not a participant in this allocation",
                entity_id=payer_id,
            )

        if len(allocation.participants) < 2:
            raise ValidationError("At least two participants are needed to record debts")

        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Description is {len(description)} characters; "
                f"the limit is {MAX_DESCRIPTION_LENGTH}"
            )

        if any(e.allocation_id == allocation.id for e in self._entries):
            raise StateError(
                f"Allocation {allocation.id} has already been recorded",
                entity_id=str(allocation.id),
            )

        now = self._clock()
        due = due_date or (now.date() + timedelta(days=self._settings.default_due_days))

        new_entries = [
            DebtEntry(
                allocation_id=allocation.id,
                debtor_id=participant.id,
                debtor_name=participant.name,
                creditor_id=payer.id,
                creditor_name=payer.name,
                amount=allocation.share_of(participant.id),
                description=description,
                created_at=now,
                due_date=due,
            )
            for participant in allocation.participants
            if participant.id != payer.id and allocation.share_of(participant.id) > CENT
        ]

        if new_entries:
            self._flush(self._entries + new_entries)

        return new_entries

    def settle(self, entry_id, paid_at: Optional[datetime] = None) -> DebtEntry:
        """
        Mark a pending entry as paid and write a repayment record.

        Raises:
            StateError: Entry does not exist or is already paid
        """
        entry = self.get(entry_id)
        if entry.status == DebtStatus.PAID:
            raise StateError(
                f"Debt entry {entry.id} is already paid",
                entity_id=str(entry.id),
            )

        paid_at = paid_at or self._clock()
        settled = DebtEntry.model_validate({
            **entry.model_dump(),
            "status": DebtStatus.PAID,
            "paid_at": paid_at,
        })

        payment = Payment(
            debt_id=entry.id,
            amount=entry.amount,
            payer_id=entry.debtor_id,
            payer_name=entry.debtor_name,
            receiver_id=entry.creditor_id,
            receiver_name=entry.creditor_name,
            paid_at=paid_at,
            description=f"Repayment: {entry.description}" if entry.description else "Repayment",
        )

        entries = [settled if e.id == entry.id else e for e in self._entries]
        self._flush(entries, self._payments + [payment])

        return settled

    def clear(self) -> int:
        """
        Remove every entry and repayment record.

        Returns:
            Number of debt entries removed
        """
        removed = len(self._entries)
        self._flush([], [])
        return removed
