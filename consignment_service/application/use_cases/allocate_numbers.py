"""ConsignmentNumberAllocator — grant ranges, hand out numbers, record usage."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from consignment_service.application.pagination import Page, page_bounds
from consignment_service.application.ports.assignment_repo import AssignmentRepository
from consignment_service.application.ports.owner_repo import OwnerRepository
from consignment_service.application.ports.usage_repo import UsageRepository
from consignment_service.domain.entities.assignment import (
    Assignment,
    AssignmentTarget,
    CorporateTarget,
)
from consignment_service.domain.entities.usage import ConsignmentUsage
from consignment_service.domain.errors import (
    AssignmentNotFoundError,
    EntityNotFoundError,
    NoAvailableNumbersError,
    OutOfRangeError,
    RangeConflictError,
)
from consignment_service.domain.policies.number_allocation import (
    UsageStatistics,
    first_unused_number,
    sort_ranges,
    usage_percentage,
    validate_range,
)
from consignment_service.domain.value_objects.enums import EntityType, PaymentType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HighestNumber:
    highest_number: int

    @property
    def next_start_number(self) -> int:
        return self.highest_number + 1


@dataclass
class AssignmentUsage:
    """An assignment together with how much of its own range is consumed."""

    assignment: Assignment
    used_count: int

    @property
    def available_count(self) -> int:
        return self.assignment.total_numbers - self.used_count

    @property
    def usage_percentage(self) -> int:
        return usage_percentage(self.used_count, self.assignment.total_numbers)


def _describe(target: AssignmentTarget) -> str:
    return f"{target.entity_type.value}:{target.entity_id}"


class ConsignmentNumberAllocator:
    """Owns range assignment and usage bookkeeping for corporates and office users.

    No operation retries internally. The two read-then-write races
    (availability check vs. assign, next number vs. record usage) are closed
    by the repositories, which translate store constraint violations into
    RangeConflictError and DuplicateUsageError.
    """

    def __init__(
        self,
        assignment_repo: AssignmentRepository,
        usage_repo: UsageRepository,
        owner_repo: OwnerRepository,
        min_number: int,
    ):
        self._assignments = assignment_repo
        self._usages = usage_repo
        self._owners = owner_repo
        self._min_number = min_number

    # ── Ranges ──────────────────────────────────────────────────────

    def validate_range(self, start: int, end: int) -> None:
        validate_range(start, end, self._min_number)

    async def is_range_available(self, start: int, end: int) -> bool:
        return not await self._assignments.find_overlapping(start, end)

    async def assign(
        self,
        target: AssignmentTarget,
        start: int,
        end: int,
        assigned_by: str,
        notes: str = "",
    ) -> Assignment:
        self.validate_range(start, end)
        owner_name = await self._owner_name(target)

        conflicts = await self._assignments.find_overlapping(start, end)
        if conflicts:
            owner = conflicts[0].assigned_to_name or _describe(conflicts[0].target)
            logger.warning(
                "Range %d-%d for %s overlaps assignment %s (%s)",
                start, end, _describe(target), conflicts[0].id, owner,
            )
            raise RangeConflictError(
                f"The number range {start}-{end} is already assigned to {owner}.",
                conflicting_owner=owner,
            )

        assignment = await self._assignments.save(
            Assignment(
                id=None,
                target=target,
                start_number=start,
                end_number=end,
                assigned_by=assigned_by,
                notes=notes or "",
                assigned_to_name=owner_name,
            )
        )
        logger.info(
            "Consignment numbers %d-%d (%d) assigned to %s by %s",
            start, end, assignment.total_numbers, owner_name, assigned_by,
        )
        return assignment

    async def deactivate(self, assignment_id: int) -> Assignment:
        assignment = await self._assignments.get_by_id(assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError(f"Assignment {assignment_id} not found.")
        if assignment.is_active:
            await self._assignments.set_active(assignment_id, False)
            assignment.is_active = False
            logger.info(
                "Assignment %d (%s) deactivated", assignment_id, assignment.number_range
            )
        return assignment

    async def highest_assigned_number(self) -> HighestNumber:
        highest = await self._assignments.max_active_end_number()
        if highest is None:
            highest = self._min_number - 1
        return HighestNumber(highest_number=highest)

    # ── Numbers ─────────────────────────────────────────────────────

    async def get_next_consignment_number(self, target: AssignmentTarget) -> int:
        """Lowest unused number across the owner's active ranges. Does not reserve it."""
        ranges = sort_ranges(await self._assignments.get_active_for(target))
        if not ranges:
            raise NoAvailableNumbersError(
                "No consignment numbers available. None are assigned; please request an assignment."
            )

        for assignment in ranges:
            used = await self._usages.get_used_numbers(
                target, assignment.start_number, assignment.end_number
            )
            number = first_unused_number(assignment.start_number, assignment.end_number, used)
            if number is not None:
                return number

        raise NoAvailableNumbersError(
            "No consignment numbers available. All assigned numbers have been used."
        )

    async def record_usage(
        self,
        target: AssignmentTarget,
        consignment_number: int,
        booking_reference: str,
        booking_data: dict,
        payment_type: PaymentType = PaymentType.FP,
        freight_charges: Decimal = Decimal("0"),
        total_amount: Decimal = Decimal("0"),
    ) -> ConsignmentUsage:
        assignment = await self._assignments.find_active_containing(target, consignment_number)
        if assignment is None:
            raise OutOfRangeError(
                f"Consignment number {consignment_number} is not within the assigned range."
            )

        # Uniqueness is enforced by the store; a concurrent writer gets DuplicateUsageError.
        usage = await self._usages.save(
            ConsignmentUsage(
                id=None,
                target=target,
                consignment_number=consignment_number,
                booking_reference=booking_reference,
                booking_data=booking_data,
                payment_type=payment_type,
                freight_charges=freight_charges,
                total_amount=total_amount,
            )
        )
        logger.info(
            "Consignment number %d used for booking %s by %s",
            consignment_number, booking_reference, _describe(target),
        )
        return usage

    # ── Reporting ───────────────────────────────────────────────────

    async def usage_statistics(self, target: AssignmentTarget) -> UsageStatistics:
        ranges = await self._assignments.get_active_for(target)
        total_assigned = sum(a.total_numbers for a in ranges)
        total_used = 0
        for assignment in ranges:
            total_used += await self._usages.count_in_range(
                target, assignment.start_number, assignment.end_number
            )
        return UsageStatistics(total_assigned=total_assigned, total_used=total_used)

    async def list_assignments(
        self,
        entity_type: EntityType | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[AssignmentUsage]:
        page, limit, offset = page_bounds(page, limit)
        assignments, total = await self._assignments.list_page(entity_type, search, offset, limit)
        items = []
        for assignment in assignments:
            used = await self._usages.count_in_range(
                assignment.target, assignment.start_number, assignment.end_number
            )
            items.append(AssignmentUsage(assignment=assignment, used_count=used))
        return Page(items=items, page=page, limit=limit, total_count=total)

    async def list_usage(
        self, target: AssignmentTarget, page: int = 1, limit: int = 20
    ) -> Page[ConsignmentUsage]:
        page, limit, offset = page_bounds(page, limit)
        usages, total = await self._usages.list_page(target, offset, limit)
        return Page(items=usages, page=page, limit=limit, total_count=total)

    # ── Settlement hooks ────────────────────────────────────────────

    async def find_unpaid_for_invoicing(
        self,
        target: AssignmentTarget,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[ConsignmentUsage]:
        """Unpaid FP usages, oldest first. *date_to* includes the whole day."""
        used_from = datetime.combine(date_from, time.min) if date_from else None
        used_before = (
            datetime.combine(date_to + timedelta(days=1), time.min) if date_to else None
        )
        return await self._usages.find_unpaid(target, used_from, used_before)

    async def mark_invoiced(self, usage_ids: list[int], invoice_id: int) -> int:
        if not usage_ids:
            return 0
        changed = await self._usages.mark_invoiced(usage_ids, invoice_id)
        logger.info(
            "Marked %d/%d usages invoiced under invoice %d",
            changed, len(usage_ids), invoice_id,
        )
        return changed

    # ── Helpers ─────────────────────────────────────────────────────

    async def _owner_name(self, target: AssignmentTarget) -> str:
        if isinstance(target, CorporateTarget):
            corporate = await self._owners.get_corporate(target.corporate_id)
            if corporate is None:
                raise EntityNotFoundError("Corporate company not found.")
            return corporate.company_name

        office_user = await self._owners.get_office_user(target.office_user_id)
        if office_user is None:
            raise EntityNotFoundError("Office user not found.")
        return office_user.name
