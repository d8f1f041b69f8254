"""Port interface for consignment assignment persistence."""

from abc import ABC, abstractmethod

from consignment_service.domain.entities.assignment import Assignment, AssignmentTarget
from consignment_service.domain.value_objects.enums import EntityType


class AssignmentRepository(ABC):
    @abstractmethod
    async def save(self, assignment: Assignment) -> Assignment:
        """Insert a new assignment.

        Must raise RangeConflictError when the store rejects the insert because
        the range overlaps another active assignment.
        """
        ...

    @abstractmethod
    async def get_by_id(self, assignment_id: int) -> Assignment | None:
        ...

    @abstractmethod
    async def find_overlapping(self, start: int, end: int) -> list[Assignment]:
        """Active assignments intersecting the closed range [start, end]."""
        ...

    @abstractmethod
    async def get_active_for(self, target: AssignmentTarget) -> list[Assignment]:
        """Active assignments of one owner, ascending by start number."""
        ...

    @abstractmethod
    async def find_active_containing(
        self, target: AssignmentTarget, number: int
    ) -> Assignment | None:
        ...

    @abstractmethod
    async def max_active_end_number(self) -> int | None:
        ...

    @abstractmethod
    async def list_page(
        self,
        entity_type: EntityType | None,
        search: str | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Assignment], int]:
        """Newest first. Returns (page, total count)."""
        ...

    @abstractmethod
    async def set_active(self, assignment_id: int, is_active: bool) -> None:
        ...

    @abstractmethod
    async def get_all(self) -> list[Assignment]:
        ...
