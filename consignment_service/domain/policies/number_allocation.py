"""NumberAllocationPolicy — pure rules for granting and consuming consignment numbers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from consignment_service.domain.entities.assignment import Assignment
from consignment_service.domain.errors import InvalidRangeError


@dataclass(frozen=True)
class UsageStatistics:
    """Aggregated usage of an entity's active ranges."""

    total_assigned: int
    total_used: int

    @property
    def available(self) -> int:
        return self.total_assigned - self.total_used

    @property
    def usage_percentage(self) -> int:
        return usage_percentage(self.total_used, self.total_assigned)


def validate_range(start: int, end: int, minimum: int) -> None:
    """Reject a malformed or out-of-bounds range.

    Raises:
        InvalidRangeError: if start > end or start is below *minimum*.
    """
    if start > end:
        raise InvalidRangeError(
            f"Start number ({start}) must be less than or equal to end number ({end})."
        )
    if start < minimum:
        raise InvalidRangeError(f"Start number must be at least {minimum}.")


def first_unused_number(start: int, end: int, used_sorted: Iterable[int]) -> int | None:
    """Lowest number in [start, end] that does not appear in *used_sorted*.

    *used_sorted* must be ascending; numbers outside the range are ignored.
    Returns None when the range is fully used.
    """
    candidate = start
    for number in used_sorted:
        if number < candidate:
            continue
        if number > candidate:
            break
        candidate += 1
        if candidate > end:
            return None
    return candidate if candidate <= end else None


def sort_ranges(assignments: Iterable[Assignment]) -> list[Assignment]:
    """Active assignments in allocation order (ascending start number)."""
    return sorted(
        (a for a in assignments if a.is_active),
        key=lambda a: (a.start_number, a.id or 0),
    )


def usage_percentage(used: int, assigned: int) -> int:
    """Rounded percentage; 0 when nothing is assigned."""
    if assigned <= 0:
        return 0
    # halves round up
    return int(used * 100 / assigned + 0.5)
