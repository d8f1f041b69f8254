"""Tests for ConsignmentDiagnostics."""

from __future__ import annotations

import pytest

from consignment_service.domain.entities.assignment import (
    Assignment,
    CorporateTarget,
    OfficeUserTarget,
)


async def _grant(assignment_repo, target, start, end):
    return await assignment_repo.save(Assignment(
        id=None, target=target, start_number=start, end_number=end, assigned_by="admin",
    ))


@pytest.mark.asyncio
async def test_no_orphans_when_owners_exist(diagnostics, assignment_repo):
    await _grant(assignment_repo, CorporateTarget(corporate_id=1), 1000, 1010)
    await _grant(assignment_repo, OfficeUserTarget(office_user_id=5), 2000, 2010)
    assert await diagnostics.find_orphaned_assignments() == []


@pytest.mark.asyncio
async def test_orphans_reported_per_owner_kind(diagnostics, assignment_repo):
    await _grant(assignment_repo, CorporateTarget(corporate_id=1), 1000, 1010)
    gone_corp = await _grant(assignment_repo, CorporateTarget(corporate_id=42), 1100, 1110)
    gone_user = await _grant(assignment_repo, OfficeUserTarget(office_user_id=1), 1200, 1210)

    orphans = await diagnostics.find_orphaned_assignments()

    by_id = {o.assignment.id: o.issue for o in orphans}
    assert by_id == {
        gone_corp.id: "Invalid corporate reference (42)",
        gone_user.id: "Invalid office user reference (1)",
    }


@pytest.mark.asyncio
async def test_orphan_check_does_not_repair(diagnostics, assignment_repo):
    await _grant(assignment_repo, CorporateTarget(corporate_id=42), 1100, 1110)
    await diagnostics.find_orphaned_assignments()
    assert len(assignment_repo.assignments) == 1
    assert assignment_repo.assignments[1].is_active


@pytest.mark.asyncio
async def test_summary_counts(diagnostics, allocator):
    target = CorporateTarget(corporate_id=1)
    await allocator.assign(target, 1000, 1010, assigned_by="admin")
    await allocator.record_usage(target, 1000, "BK-1", {})
    summary = await diagnostics.summary()
    assert summary.assignment_count == 1
    assert summary.usage_count == 1
