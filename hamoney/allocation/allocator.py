"""
Allocation Engine

Turns (total, participants, method, params) into an Allocation whose shares
add up to the total exactly, to the cent.

RECONCILIATION RULE (every method):
1. Compute an exact raw share per participant
2. Round each share to 2 decimals (half-up; equal splits round down)
3. residual = total - sum(rounded shares)
4. Add the whole residual to the FIRST participant in caller order
5. If that would take the first share below zero, it stops at zero and the
   rest of the residual moves on to the next participant, and so on

The residual is never spread around or randomized. Historical records were
reconciled this way, so 100.00 / 3 is always [33.34, 33.33, 33.33].

Equal splits round down so their residual is never negative: the first
participant only ever pays the extra cents, never less than the others.

Everything here is pure: no I/O, no shared state.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Optional

from hamoney.errors import ValidationError
from hamoney.models.split import (
    CENT,
    Allocation,
    CustomSplit,
    EqualSplit,
    ItemSplit,
    Participant,
    PercentageSplit,
    SplitMethod,
    round_cents,
    to_decimal,
)
from hamoney.validation import AllocationValidator, coerce_participants


RawShares = dict[str, Decimal]


def equal_shares(
    total: Decimal,
    participants: list[Participant],
    params: EqualSplit,
) -> RawShares:
    """total / n for everyone."""
    per_person = total / len(participants)
    return {p.id: per_person for p in participants}


def percentage_shares(
    total: Decimal,
    participants: list[Participant],
    params: PercentageSplit,
) -> RawShares:
    """total * pct / 100; participants without a percentage pay nothing."""
    return {
        p.id: total * to_decimal(params.percentages.get(p.id, 0)) / Decimal("100")
        for p in participants
    }


def custom_shares(
    total: Decimal,
    participants: list[Participant],
    params: CustomSplit,
) -> RawShares:
    """The caller's amounts, as given."""
    return {p.id: to_decimal(params.amounts.get(p.id, 0)) for p in participants}


def item_shares(
    total: Decimal,
    participants: list[Participant],
    params: ItemSplit,
) -> RawShares:
    """
    Each item's price divided evenly across its assignees,
    plus an equal slice of service fee and tip for everyone.
    """
    shares = {p.id: Decimal("0") for p in participants}

    for index, item in enumerate(params.items, start=1):
        if not item.assigned_to:
            raise ValidationError(f"Item {item.name or f'#{index}'} is not assigned to anyone")
        portion = item.price / len(item.assigned_to)
        for pid in item.assigned_to:
            shares[pid] += portion

    extras = params.extras
    if extras:
        per_person = extras / len(participants)
        for pid in shares:
            shares[pid] += per_person

    return shares


SHARE_FUNCTIONS: dict[SplitMethod, Callable[..., RawShares]] = {
    SplitMethod.EQUAL: equal_shares,
    SplitMethod.PERCENTAGE: percentage_shares,
    SplitMethod.CUSTOM: custom_shares,
    SplitMethod.ITEM: item_shares,
}


# Methods that round raw shares down instead of half-up
ROUNDING_MODES = {
    SplitMethod.EQUAL: ROUND_DOWN,
}


def reconcile_shares(
    total: Decimal,
    participants: list[Participant],
    raw_shares: RawShares,
    rounding: str = ROUND_HALF_UP,
) -> dict[str, Decimal]:
    """
    Round every share to the cent and put the residual on the first participant.

    A negative residual bigger than the first share empties that share and
    carries the remainder on to the next participants in caller order, so
    shares are never negative and always add up to the total.
    """
    shares = {
        p.id: to_decimal(raw_shares.get(p.id, 0)).quantize(CENT, rounding=rounding)
        for p in participants
    }

    residual = total - sum(shares.values(), Decimal("0"))
    if residual > 0:
        first = participants[0].id
        shares[first] += residual
        return shares

    for p in participants:
        if residual == 0:
            break
        taken = min(shares[p.id], -residual)
        shares[p.id] -= taken
        residual += taken

    return shares


class Allocator:
    """
    Computes allocations.

    Runs the validator itself: an Allocation is either fully valid
    or not produced at all.
    """

    def __init__(self, validator: Optional[AllocationValidator] = None):
        self._validator = validator or AllocationValidator()

    def compute(
        self,
        total_amount,
        participants: Iterable,
        method,
        params=None,
    ) -> Allocation:
        """
        Split a total among participants.

        Args:
            total_amount: Amount to split, >= 0
            participants: Participants in caller order (first absorbs the residual)
            method: SplitMethod (or its string value)
            params: EqualSplit / PercentageSplit / CustomSplit / ItemSplit

        Returns:
            An immutable Allocation with sum(shares) == total

        Raises:
            ValidationError: If any constraint is violated
        """
        participants = list(participants or [])
        result = self._validator.validate(total_amount, participants, method, params)
        if not result.is_valid:
            raise ValidationError(result.errors)

        split_method = SplitMethod(method)
        members, _ = coerce_participants(participants)
        total = round_cents(total_amount)
        if params is None:
            params = EqualSplit()

        raw = SHARE_FUNCTIONS[split_method](total, members, params)
        rounding = ROUNDING_MODES.get(split_method, ROUND_HALF_UP)
        shares = reconcile_shares(total, members, raw, rounding)

        return Allocation(
            total_amount=total,
            method=split_method,
            participants=members,
            shares=shares,
        )
