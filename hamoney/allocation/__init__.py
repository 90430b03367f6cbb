"""Allocation package."""

from hamoney.allocation.allocator import (
    SHARE_FUNCTIONS,
    Allocator,
    custom_shares,
    equal_shares,
    item_shares,
    percentage_shares,
    reconcile_shares,
)

__all__ = [
    "SHARE_FUNCTIONS",
    "Allocator",
    "custom_shares",
    "equal_shares",
    "item_shares",
    "percentage_shares",
    "reconcile_shares",
]
