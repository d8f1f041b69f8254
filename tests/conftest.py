"""Pytest configuration, in-memory fakes and shared fixtures."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from consignment_service.application.ports.assignment_repo import AssignmentRepository
from consignment_service.application.ports.invoice_repo import InvoiceRepository
from consignment_service.application.ports.owner_repo import OwnerRepository
from consignment_service.application.ports.usage_repo import UsageRepository
from consignment_service.application.use_cases.allocate_numbers import (
    ConsignmentNumberAllocator,
)
from consignment_service.application.use_cases.diagnostics import ConsignmentDiagnostics
from consignment_service.application.use_cases.generate_invoice import (
    GenerateInvoiceUseCase,
)
from consignment_service.application.use_cases.invoice_queries import InvoiceQueries
from consignment_service.domain.entities.assignment import Assignment
from consignment_service.domain.entities.invoice import Invoice, InvoiceSummary
from consignment_service.domain.entities.owner import Corporate, OfficeUser
from consignment_service.domain.entities.usage import ConsignmentUsage
from consignment_service.domain.errors import (
    ConcurrentInvoiceError,
    DuplicateUsageError,
    InvoiceExistsError,
    RangeConflictError,
)
from consignment_service.domain.value_objects.enums import (
    EntityType,
    InvoiceStatus,
    UsageStatus,
)

# ─── In-memory fakes ────────────────────────────────────────────────


class FakeAssignmentRepo(AssignmentRepository):
    """Rejects overlapping active ranges on save, like the store's exclusion constraint."""

    def __init__(self):
        self.assignments: dict[int, Assignment] = {}

    async def save(self, assignment):
        for other in self.assignments.values():
            if other.is_active and assignment.number_range.overlaps(other.number_range):
                raise RangeConflictError("Range overlaps an active assignment.")
        assignment.id = len(self.assignments) + 1
        assignment.assigned_at = assignment.assigned_at or datetime.now()
        self.assignments[assignment.id] = assignment
        return assignment

    async def get_by_id(self, assignment_id):
        return self.assignments.get(assignment_id)

    async def find_overlapping(self, start, end):
        return [
            a for a in self.assignments.values()
            if a.is_active and a.start_number <= end and start <= a.end_number
        ]

    async def get_active_for(self, target):
        return sorted(
            (a for a in self.assignments.values() if a.is_active and a.target == target),
            key=lambda a: a.start_number,
        )

    async def find_active_containing(self, target, number):
        return next(
            (a for a in await self.get_active_for(target) if a.contains(number)), None
        )

    async def max_active_end_number(self):
        ends = [a.end_number for a in self.assignments.values() if a.is_active]
        return max(ends) if ends else None

    async def list_page(self, entity_type, search, offset, limit):
        rows = [
            a for a in self.assignments.values()
            if (entity_type is None or a.target.entity_type == entity_type)
            and (not search or search.lower() in (a.assigned_to_name or "").lower())
        ]
        rows.sort(key=lambda a: a.id, reverse=True)
        return rows[offset:offset + limit], len(rows)

    async def set_active(self, assignment_id, is_active):
        self.assignments[assignment_id].is_active = is_active

    async def get_all(self):
        return list(self.assignments.values())


class FakeUsageRepo(UsageRepository):
    """Rejects a repeated (owner, number) pair on save, like the store's unique key."""

    def __init__(self):
        self.usages: dict[int, ConsignmentUsage] = {}

    async def save(self, usage):
        for other in self.usages.values():
            if other.target == usage.target and other.consignment_number == usage.consignment_number:
                raise DuplicateUsageError("This consignment number has already been used.")
        usage.id = len(self.usages) + 1
        usage.used_at = usage.used_at or datetime.now()
        self.usages[usage.id] = usage
        return usage

    def _in_range(self, target, start, end):
        return [
            u for u in self.usages.values()
            if u.target == target and start <= u.consignment_number <= end
        ]

    async def get_used_numbers(self, target, start, end):
        return sorted(u.consignment_number for u in self._in_range(target, start, end))

    async def count_in_range(self, target, start, end):
        return len(self._in_range(target, start, end))

    async def find_unpaid(self, target, used_from, used_before):
        rows = [
            u for u in self.usages.values()
            if u.target == target and u.is_invoiceable()
            and (used_from is None or u.used_at >= used_from)
            and (used_before is None or u.used_at < used_before)
        ]
        return sorted(rows, key=lambda u: u.used_at)

    async def mark_invoiced(self, usage_ids, invoice_id):
        changed = 0
        for usage_id in usage_ids:
            usage = self.usages.get(usage_id)
            if usage is not None and usage.status != UsageStatus.INVOICED:
                usage.status = UsageStatus.INVOICED
                usage.invoice_id = invoice_id
                changed += 1
        return changed

    async def list_page(self, target, offset, limit):
        rows = sorted(
            (u for u in self.usages.values() if u.target == target),
            key=lambda u: (u.used_at, u.id),
            reverse=True,
        )
        return rows[offset:offset + limit], len(rows)

    async def count_all(self):
        return len(self.usages)


class FakeOwnerRepo(OwnerRepository):
    def __init__(self, corporates=(), office_users=()):
        self.corporates = {c.id: c for c in corporates}
        self.office_users = {u.id: u for u in office_users}

    async def get_corporate(self, corporate_id):
        return self.corporates.get(corporate_id)

    async def get_office_user(self, office_user_id):
        return self.office_users.get(office_user_id)

    async def existing_ids(self, entity_type, ids):
        known = self.corporates if entity_type == EntityType.CORPORATE else self.office_users
        return {i for i in ids if i in known}


class FakeInvoiceRepo(InvoiceRepository):
    """Enforces the period and invoice-number unique keys on save."""

    def __init__(self):
        self.invoices: dict[int, Invoice] = {}

    async def save(self, invoice):
        for other in self.invoices.values():
            if other.invoice_number == invoice.invoice_number:
                raise ConcurrentInvoiceError("Invoice number was issued concurrently.")
        if await self.exists_for_period(
            invoice.corporate_id, invoice.period_start, invoice.period_end
        ):
            raise InvoiceExistsError("Invoice already exists for this period.")
        invoice.id = len(self.invoices) + 1
        invoice.created_at = invoice.created_at or datetime.now()
        self.invoices[invoice.id] = invoice
        return invoice

    async def get_by_id(self, invoice_id):
        return self.invoices.get(invoice_id)

    async def exists_for_period(self, corporate_id, period_start, period_end):
        return any(
            i.corporate_id == corporate_id
            and i.period_start == period_start
            and i.period_end == period_end
            for i in self.invoices.values()
        )

    async def count_with_prefix(self, prefix):
        return sum(1 for i in self.invoices.values() if i.invoice_number.startswith(prefix))

    async def list_page(self, corporate_id, status, overdue_on, offset, limit):
        rows = [
            i for i in self.invoices.values()
            if (corporate_id is None or i.corporate_id == corporate_id)
            and (status is None or i.status == status)
            and (overdue_on is None or i.is_overdue(overdue_on))
        ]
        rows.sort(key=lambda i: i.id, reverse=True)
        return rows[offset:offset + limit], len(rows)

    async def list_overdue(self, today):
        rows = [i for i in self.invoices.values() if i.is_overdue(today)]
        return sorted(rows, key=lambda i: (i.due_date, i.id))

    async def summarize(self, corporate_id, today):
        rows = [
            i for i in self.invoices.values()
            if corporate_id is None or i.corporate_id == corporate_id
        ]

        def _totals(selected):
            return len(selected), sum((i.grand_total for i in selected), Decimal("0"))

        total_count, total_amount = _totals(rows)
        paid_count, paid_amount = _totals([i for i in rows if i.status == InvoiceStatus.PAID])
        unpaid_count, unpaid_amount = _totals(
            [i for i in rows if i.status == InvoiceStatus.UNPAID]
        )
        overdue_count, overdue_amount = _totals([i for i in rows if i.is_overdue(today)])
        return InvoiceSummary(
            total_count=total_count,
            total_amount=total_amount,
            paid_count=paid_count,
            paid_amount=paid_amount,
            unpaid_count=unpaid_count,
            unpaid_amount=unpaid_amount,
            overdue_count=overdue_count,
            overdue_amount=overdue_amount,
        )


# ─── Fixtures ────────────────────────────────────────────────────────


@pytest.fixture
def assignment_repo():
    return FakeAssignmentRepo()


@pytest.fixture
def usage_repo():
    return FakeUsageRepo()


@pytest.fixture
def owner_repo():
    return FakeOwnerRepo(
        corporates=[
            Corporate(id=1, corporate_code="ACME01", company_name="Acme Logistics"),
            Corporate(id=2, corporate_code="GLOBE02", company_name="Globe Traders"),
            Corporate(
                id=3, corporate_code="PHARMA03", company_name="Pharma Direct",
                fuel_charge_percentage=Decimal("10"),
            ),
        ],
        office_users=[
            OfficeUser(id=5, name="Priya Sharma", email="priya@example.com"),
        ],
    )


@pytest.fixture
def invoice_repo():
    return FakeInvoiceRepo()


@pytest.fixture
def allocator(assignment_repo, usage_repo, owner_repo):
    """Allocator with a minimum of 1 so small illustrative ranges are accepted."""
    return ConsignmentNumberAllocator(
        assignment_repo=assignment_repo,
        usage_repo=usage_repo,
        owner_repo=owner_repo,
        min_number=1,
    )


@pytest.fixture
def diagnostics(assignment_repo, usage_repo, owner_repo):
    return ConsignmentDiagnostics(
        assignment_repo=assignment_repo,
        usage_repo=usage_repo,
        owner_repo=owner_repo,
    )


@pytest.fixture
def invoice_uc(allocator, invoice_repo, owner_repo):
    return GenerateInvoiceUseCase(
        allocator=allocator,
        invoice_repo=invoice_repo,
        owner_repo=owner_repo,
        awb_charge=Decimal("50"),
        fuel_charge_percentage=Decimal("15"),
    )


@pytest.fixture
def invoice_queries(invoice_repo):
    return InvoiceQueries(invoice_repo=invoice_repo)
