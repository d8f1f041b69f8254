"""Read-only integrity checks over assignments and usages.

Problems are reported, never repaired.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from consignment_service.application.ports.assignment_repo import AssignmentRepository
from consignment_service.application.ports.owner_repo import OwnerRepository
from consignment_service.application.ports.usage_repo import UsageRepository
from consignment_service.domain.entities.assignment import Assignment
from consignment_service.domain.value_objects.enums import EntityType

logger = logging.getLogger(__name__)


@dataclass
class OrphanedAssignment:
    assignment: Assignment
    issue: str


@dataclass(frozen=True)
class StoreSummary:
    assignment_count: int
    usage_count: int


class ConsignmentDiagnostics:
    def __init__(
        self,
        assignment_repo: AssignmentRepository,
        usage_repo: UsageRepository,
        owner_repo: OwnerRepository,
    ):
        self._assignments = assignment_repo
        self._usages = usage_repo
        self._owners = owner_repo

    async def find_orphaned_assignments(self) -> list[OrphanedAssignment]:
        """Assignments whose owner row no longer exists."""
        assignments = await self._assignments.get_all()

        orphans: list[OrphanedAssignment] = []
        for entity_type in EntityType:
            of_type = [a for a in assignments if a.target.entity_type == entity_type]
            if not of_type:
                continue
            existing = await self._owners.existing_ids(
                entity_type, {a.target.entity_id for a in of_type}
            )
            label = "corporate" if entity_type == EntityType.CORPORATE else "office user"
            orphans.extend(
                OrphanedAssignment(
                    assignment=a,
                    issue=f"Invalid {label} reference ({a.target.entity_id})",
                )
                for a in of_type
                if a.target.entity_id not in existing
            )

        if orphans:
            logger.warning("Found %d orphaned consignment assignments", len(orphans))
        return orphans

    async def summary(self) -> StoreSummary:
        assignments = await self._assignments.get_all()
        return StoreSummary(
            assignment_count=len(assignments),
            usage_count=await self._usages.count_all(),
        )
