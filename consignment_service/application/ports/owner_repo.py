"""Port interface for range owners (corporates and office users)."""

from abc import ABC, abstractmethod

from consignment_service.domain.entities.owner import Corporate, OfficeUser
from consignment_service.domain.value_objects.enums import EntityType


class OwnerRepository(ABC):
    @abstractmethod
    async def get_corporate(self, corporate_id: int) -> Corporate | None:
        ...

    @abstractmethod
    async def get_office_user(self, office_user_id: int) -> OfficeUser | None:
        ...

    @abstractmethod
    async def existing_ids(self, entity_type: EntityType, ids: set[int]) -> set[int]:
        """Subset of *ids* that still exist for the given owner kind."""
        ...
