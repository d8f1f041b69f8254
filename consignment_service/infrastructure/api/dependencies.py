"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from consignment_service.adapters.persistence.database import get_session
from consignment_service.adapters.persistence.repositories import (
    SqlAssignmentRepository,
    SqlInvoiceRepository,
    SqlOwnerRepository,
    SqlUsageRepository,
)
from consignment_service.application.use_cases.allocate_numbers import (
    ConsignmentNumberAllocator,
)
from consignment_service.application.use_cases.diagnostics import ConsignmentDiagnostics
from consignment_service.application.use_cases.generate_invoice import (
    GenerateInvoiceUseCase,
)
from consignment_service.application.use_cases.invoice_queries import InvoiceQueries
from consignment_service.config import settings


def _allocator(session: AsyncSession) -> ConsignmentNumberAllocator:
    return ConsignmentNumberAllocator(
        assignment_repo=SqlAssignmentRepository(session),
        usage_repo=SqlUsageRepository(session),
        owner_repo=SqlOwnerRepository(session),
        min_number=settings.min_consignment_number,
    )


def get_allocator(session: AsyncSession = Depends(get_session)) -> ConsignmentNumberAllocator:
    return _allocator(session)


def get_diagnostics(session: AsyncSession = Depends(get_session)) -> ConsignmentDiagnostics:
    return ConsignmentDiagnostics(
        assignment_repo=SqlAssignmentRepository(session),
        usage_repo=SqlUsageRepository(session),
        owner_repo=SqlOwnerRepository(session),
    )


def get_generate_invoice_uc(
    session: AsyncSession = Depends(get_session),
) -> GenerateInvoiceUseCase:
    return GenerateInvoiceUseCase(
        allocator=_allocator(session),
        invoice_repo=SqlInvoiceRepository(session),
        owner_repo=SqlOwnerRepository(session),
        awb_charge=settings.awb_charge,
        fuel_charge_percentage=settings.fuel_charge_percentage,
    )


def get_invoice_queries(session: AsyncSession = Depends(get_session)) -> InvoiceQueries:
    return InvoiceQueries(invoice_repo=SqlInvoiceRepository(session))
