"""Consignment endpoints — range assignment, next number, usage, statistics."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from consignment_service.application.use_cases.allocate_numbers import (
    ConsignmentNumberAllocator,
)
from consignment_service.application.use_cases.diagnostics import ConsignmentDiagnostics
from consignment_service.domain.entities.assignment import make_target
from consignment_service.domain.value_objects.enums import EntityType, PaymentType
from consignment_service.infrastructure.api.dependencies import (
    get_allocator,
    get_diagnostics,
)
from consignment_service.infrastructure.api.serializers import (
    paginated,
    serialize_assignment,
    serialize_assignment_usage,
    serialize_statistics,
    serialize_usage,
)

router = APIRouter(prefix="/consignments", tags=["consignments"])

# ── Request schemas ─────────────────────────────────────────────────


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AssignRequest(_CamelModel):
    entity_type: EntityType
    entity_id: int
    start_number: int
    end_number: int
    notes: str = ""
    assigned_by: str = "admin"


class RecordUsageRequest(_CamelModel):
    entity_type: EntityType
    entity_id: int
    consignment_number: int
    booking_reference: str = Field(min_length=1)
    booking_data: dict
    payment_type: PaymentType = PaymentType.FP
    freight_charges: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")


# ── Assignments ─────────────────────────────────────────────────────


@router.post("/assignments")
async def assign_range(
    body: AssignRequest,
    allocator: ConsignmentNumberAllocator = Depends(get_allocator),
):
    """Grant a consignment number range to a corporate or an office user."""
    assignment = await allocator.assign(
        make_target(body.entity_type, body.entity_id),
        body.start_number,
        body.end_number,
        assigned_by=body.assigned_by,
        notes=body.notes,
    )
    return serialize_assignment(assignment)


@router.get("/assignments")
async def list_assignments(
    entity_type: EntityType | None = Query(default=None, alias="entityType"),
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
    allocator: ConsignmentNumberAllocator = Depends(get_allocator),
):
    """All assignments, newest first, with per-range usage counts."""
    result = await allocator.list_assignments(entity_type, search, page, limit)
    return paginated(result, serialize_assignment_usage)


@router.post("/assignments/{assignment_id}/deactivate")
async def deactivate_assignment(
    assignment_id: int,
    allocator: ConsignmentNumberAllocator = Depends(get_allocator),
):
    assignment = await allocator.deactivate(assignment_id)
    return serialize_assignment(assignment)


@router.get("/highest")
async def highest_number(allocator: ConsignmentNumberAllocator = Depends(get_allocator)):
    """Highest end number across active ranges, and where the next grant should start."""
    highest = await allocator.highest_assigned_number()
    return {
        "highestNumber": highest.highest_number,
        "nextStartNumber": highest.next_start_number,
    }


@router.get("/diagnostics/orphans")
async def orphaned_assignments(
    diagnostics: ConsignmentDiagnostics = Depends(get_diagnostics),
):
    orphans = await diagnostics.find_orphaned_assignments()
    return {
        "orphanedCount": len(orphans),
        "orphanedAssignments": [
            {**serialize_assignment(o.assignment), "issue": o.issue} for o in orphans
        ],
    }


@router.get("/diagnostics/summary")
async def store_summary(diagnostics: ConsignmentDiagnostics = Depends(get_diagnostics)):
    summary = await diagnostics.summary()
    return {"assignmentCount": summary.assignment_count, "usageCount": summary.usage_count}


# ── Per-entity ──────────────────────────────────────────────────────


@router.get("/{entity_type}/{entity_id}/next")
async def next_number(
    entity_type: EntityType,
    entity_id: int,
    allocator: ConsignmentNumberAllocator = Depends(get_allocator),
):
    """Next unused number for the entity. Not reserved until usage is recorded."""
    number = await allocator.get_next_consignment_number(make_target(entity_type, entity_id))
    return {"consignmentNumber": number}


@router.post("/usage")
async def record_usage(
    body: RecordUsageRequest,
    allocator: ConsignmentNumberAllocator = Depends(get_allocator),
):
    """Record that a booking consumed a consignment number."""
    usage = await allocator.record_usage(
        make_target(body.entity_type, body.entity_id),
        body.consignment_number,
        body.booking_reference,
        body.booking_data,
        payment_type=body.payment_type,
        freight_charges=body.freight_charges,
        total_amount=body.total_amount,
    )
    return serialize_usage(usage)


@router.get("/{entity_type}/{entity_id}/usage")
async def list_usage(
    entity_type: EntityType,
    entity_id: int,
    page: int = 1,
    limit: int = 20,
    allocator: ConsignmentNumberAllocator = Depends(get_allocator),
):
    result = await allocator.list_usage(make_target(entity_type, entity_id), page, limit)
    return paginated(result, serialize_usage)


@router.get("/{entity_type}/{entity_id}/statistics")
async def usage_statistics(
    entity_type: EntityType,
    entity_id: int,
    allocator: ConsignmentNumberAllocator = Depends(get_allocator),
):
    stats = await allocator.usage_statistics(make_target(entity_type, entity_id))
    return serialize_statistics(stats)
