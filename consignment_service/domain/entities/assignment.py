"""Assignment entity — a contiguous range of consignment numbers granted to one owner.

The owner is a tagged variant: either a corporate account or an office user.
Both kinds share one table in storage, keyed by (entity_type, entity_id).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar

from consignment_service.domain.value_objects.enums import EntityType
from consignment_service.domain.value_objects.number_range import NumberRange


@dataclass(frozen=True)
class CorporateTarget:
    corporate_id: int
    entity_type: ClassVar[EntityType] = EntityType.CORPORATE

    @property
    def entity_id(self) -> int:
        return self.corporate_id


@dataclass(frozen=True)
class OfficeUserTarget:
    office_user_id: int
    entity_type: ClassVar[EntityType] = EntityType.OFFICE_USER

    @property
    def entity_id(self) -> int:
        return self.office_user_id


AssignmentTarget = CorporateTarget | OfficeUserTarget


def make_target(entity_type: EntityType | str, entity_id: int) -> AssignmentTarget:
    """Build the target variant for a raw (entity_type, entity_id) pair."""
    if EntityType(entity_type) == EntityType.CORPORATE:
        return CorporateTarget(corporate_id=entity_id)
    return OfficeUserTarget(office_user_id=entity_id)


@dataclass
class Assignment:
    id: int | None
    target: AssignmentTarget
    start_number: int
    end_number: int
    assigned_by: str
    assigned_at: datetime | None = None
    is_active: bool = True
    notes: str = ""
    assigned_to_name: str | None = None

    @property
    def total_numbers(self) -> int:
        return self.end_number - self.start_number + 1

    @property
    def number_range(self) -> NumberRange:
        return NumberRange(self.start_number, self.end_number)

    def contains(self, number: int) -> bool:
        return self.start_number <= number <= self.end_number
