"""Capacity arithmetic for slots"""

from typing import Optional

from buildings import Slot


def total_capacity(slot: Slot, multiplier: int) -> float:
    """Rate of the slot across all instances of its building"""
    return slot.rate * multiplier


def used_capacity(slot: Slot, exclude_counterpart_id: Optional[str] = None) -> float:
    """Sum of committed amounts on a slot, optionally ignoring one counterpart"""
    return sum(
        link.amount
        for link in slot.links
        if exclude_counterpart_id is None or slot.counterpart_of(link) != exclude_counterpart_id
    )


def available_capacity(
    slot: Slot, multiplier: int, exclude_counterpart_id: Optional[str] = None
) -> float:
    """Capacity left on a slot.

    Precondition:
        multiplier is a positive integer

    Postcondition:
        returns total capacity minus the committed amounts
        the counterpart named by exclude_counterpart_id does not count as committed,
        so the result is the most that counterpart's link could carry
        the result may be negative when the slot is over capacity

    Args:
        slot: slot to inspect
        multiplier: number of building instances
        exclude_counterpart_id: counterpart whose amount is ignored

    Returns:
        free capacity
    """
    return total_capacity(slot, multiplier) - used_capacity(slot, exclude_counterpart_id)


def redistribution_delta(current_amount: float, capacity_limit: float, remaining: float) -> float:
    """How much one connection may grow: min(limit - current, remaining)"""
    return min(capacity_limit - current_amount, remaining)


def max_transfer(available: float, remaining: float) -> float:
    """Largest amount a counterpart can take while the giver still has some left"""
    return min(available, remaining)
