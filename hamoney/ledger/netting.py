"""
Debt Netting

Collapses pending debts into at most one net obligation per pair.

NETTING RULE (per unordered pair {A, B}):
1. Sum EVERYTHING A owes B and EVERYTHING B owes A
2. Take the difference only after both sides are complete
3. The side that owes more becomes the debtor of the difference
4. Differences within tolerance (0.01) produce no entry

Summing each direction completely before comparing keeps the result
independent of the order entries were recorded in.

Only pairwise: no multi-hop simplification (A->B->C is left alone).
"""

from decimal import Decimal
from typing import Iterable, Optional

from hamoney.config import get_settings
from hamoney.models.ledger import DebtEntry, NetEntry
from hamoney.models.split import round_cents, to_decimal


def pair_key(a: str, b: str) -> tuple[str, str]:
    """Order-independent key for two participants."""
    return (a, b) if a <= b else (b, a)


class DebtNetter:
    """Pure pairwise netting. Never touches the ledger."""

    def __init__(self, tolerance: Optional[Decimal] = None):
        if tolerance is None:
            tolerance = get_settings().engine.amount_tolerance
        self._tolerance = to_decimal(tolerance)

    def net(self, entries: Iterable[DebtEntry]) -> list[NetEntry]:
        """
        Net pending entries pairwise.

        Args:
            entries: Ledger entries; paid entries are ignored

        Returns:
            One NetEntry per pair with a meaningful imbalance, ordered by
            the pair's first appearance in `entries`
        """
        flows: dict[tuple[str, str], dict[str, Decimal]] = {}

        for entry in entries:
            if not entry.is_pending:
                continue
            key = pair_key(entry.debtor_id, entry.creditor_id)
            owed_by = flows.setdefault(key, {})
            owed_by[entry.debtor_id] = owed_by.get(entry.debtor_id, Decimal("0")) + entry.amount

        result = []
        for key, owed_by in flows.items():
            first, second = key
            difference = owed_by.get(first, Decimal("0")) - owed_by.get(second, Decimal("0"))

            if abs(difference) <= self._tolerance:
                continue

            if difference > 0:
                debtor, creditor = first, second
            else:
                debtor, creditor = second, first

            result.append(NetEntry(
                pair_key=key,
                debtor_id=debtor,
                creditor_id=creditor,
                amount=round_cents(abs(difference)),
            ))

        return result
