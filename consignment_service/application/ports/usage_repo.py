"""Port interface for consignment usage persistence."""

from abc import ABC, abstractmethod
from datetime import datetime

from consignment_service.domain.entities.assignment import AssignmentTarget
from consignment_service.domain.entities.usage import ConsignmentUsage


class UsageRepository(ABC):
    @abstractmethod
    async def save(self, usage: ConsignmentUsage) -> ConsignmentUsage:
        """Insert a usage record.

        Must raise DuplicateUsageError when a record with the same
        (entity_type, entity_id, consignment_number) already exists. The check
        belongs to the store, not to a prior read.
        """
        ...

    @abstractmethod
    async def get_used_numbers(
        self, target: AssignmentTarget, start: int, end: int
    ) -> list[int]:
        """Numbers used by the owner inside [start, end], ascending."""
        ...

    @abstractmethod
    async def count_in_range(self, target: AssignmentTarget, start: int, end: int) -> int:
        ...

    @abstractmethod
    async def find_unpaid(
        self,
        target: AssignmentTarget,
        used_from: datetime | None,
        used_before: datetime | None,
    ) -> list[ConsignmentUsage]:
        """Active, unpaid FP usages ordered by used_at ascending."""
        ...

    @abstractmethod
    async def mark_invoiced(self, usage_ids: list[int], invoice_id: int) -> int:
        """Flip not-yet-invoiced records to invoiced. Returns rows changed."""
        ...

    @abstractmethod
    async def list_page(
        self, target: AssignmentTarget, offset: int, limit: int
    ) -> tuple[list[ConsignmentUsage], int]:
        """Newest first. Returns (page, total count)."""
        ...

    @abstractmethod
    async def count_all(self) -> int:
        ...
