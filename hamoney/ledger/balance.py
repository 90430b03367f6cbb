"""
Balance Calculation

Sums what a participant owes and is owed. Two views:
- raw: straight from pending ledger entries
- netted: from DebtNetter output, so cross debts cancel first

The net figure (owing - owed) is the same in both views; only the
gross owed/owing totals differ.
"""

from decimal import Decimal
from typing import Iterable

from hamoney.models.ledger import Balance, DebtEntry, NetEntry
from hamoney.models.split import round_cents


class BalanceCalculator:
    """Pure balance queries over entries supplied by the caller."""

    def balance(self, participant_id: str, entries: Iterable[DebtEntry]) -> Balance:
        """Raw balance over pending entries."""
        owed = Decimal("0")
        owing = Decimal("0")

        for entry in entries:
            if not entry.is_pending:
                continue
            if entry.debtor_id == participant_id:
                owed += entry.amount
            if entry.creditor_id == participant_id:
                owing += entry.amount

        return Balance(
            participant_id=participant_id,
            owed=round_cents(owed),
            owing=round_cents(owing),
        )

    def balance_from_net(self, participant_id: str, net_entries: Iterable[NetEntry]) -> Balance:
        """Balance over netted obligations."""
        owed = Decimal("0")
        owing = Decimal("0")

        for entry in net_entries:
            if entry.debtor_id == participant_id:
                owed += entry.amount
            elif entry.creditor_id == participant_id:
                owing += entry.amount

        return Balance(
            participant_id=participant_id,
            owed=round_cents(owed),
            owing=round_cents(owing),
        )

    def balances(self, entries: Iterable[DebtEntry]) -> dict[str, Balance]:
        """Raw balance for everyone appearing in a pending entry, in order of appearance."""
        entries = [e for e in entries if e.is_pending]

        participant_ids: list[str] = []
        for entry in entries:
            for pid in (entry.debtor_id, entry.creditor_id):
                if pid not in participant_ids:
                    participant_ids.append(pid)

        return {pid: self.balance(pid, entries) for pid in participant_ids}
