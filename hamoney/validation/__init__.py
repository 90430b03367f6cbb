"""Allocation validation package."""

from hamoney.validation.validator import (
    AllocationValidator,
    coerce_amount,
    coerce_participants,
)

__all__ = ["AllocationValidator", "coerce_amount", "coerce_participants"]
