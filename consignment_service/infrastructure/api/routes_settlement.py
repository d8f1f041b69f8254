"""Settlement endpoints — unpaid FP shipments, invoice generation and invoice lookup."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from consignment_service.application.use_cases.allocate_numbers import (
    ConsignmentNumberAllocator,
)
from consignment_service.application.use_cases.generate_invoice import (
    GenerateInvoiceUseCase,
)
from consignment_service.application.use_cases.invoice_queries import InvoiceQueries
from consignment_service.domain.entities.assignment import CorporateTarget
from consignment_service.infrastructure.api.dependencies import (
    get_allocator,
    get_generate_invoice_uc,
    get_invoice_queries,
)
from consignment_service.infrastructure.api.serializers import (
    paginated,
    serialize_invoice,
    serialize_invoice_detail,
    serialize_invoice_summary,
    serialize_usage,
)

router = APIRouter(prefix="/settlement", tags=["settlement"])


class GenerateInvoiceRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    corporate_id: int
    start_date: date
    end_date: date
    usage_ids: list[int] | None = None
    created_by: str = "admin"


@router.get("/unpaid/{corporate_id}")
async def unpaid_shipments(
    corporate_id: int,
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    allocator: ConsignmentNumberAllocator = Depends(get_allocator),
):
    """Unpaid FP shipments of a corporate, oldest first. TP shipments never appear."""
    usages = await allocator.find_unpaid_for_invoicing(
        CorporateTarget(corporate_id=corporate_id), start_date, end_date
    )
    return {
        "shipments": [serialize_usage(u) for u in usages],
        "totalShipments": len(usages),
        "totalAmount": float(sum(u.total_amount for u in usages)),
    }


@router.post("/invoices")
async def generate_invoice(
    body: GenerateInvoiceRequest,
    uc: GenerateInvoiceUseCase = Depends(get_generate_invoice_uc),
):
    invoice = await uc.execute(
        corporate_id=body.corporate_id,
        period_start=body.start_date,
        period_end=body.end_date,
        created_by=body.created_by,
        usage_ids=body.usage_ids,
    )
    return serialize_invoice(invoice)


@router.get("/invoices")
async def list_invoices(
    corporate_id: int | None = Query(default=None, alias="corporateId"),
    status: str | None = None,
    page: int = 1,
    limit: int = 10,
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    """Invoices newest first, for one corporate or all. ``status=overdue`` is derived."""
    result = await queries.list_invoices(corporate_id, status, page, limit)
    return paginated(result, serialize_invoice)


@router.get("/invoices/{invoice_id}")
async def invoice_detail(
    invoice_id: int,
    corporate_id: int | None = Query(default=None, alias="corporateId"),
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    invoice = await queries.get_invoice(invoice_id, corporate_id)
    return serialize_invoice_detail(invoice)


@router.get("/summary")
async def settlement_summary(
    corporate_id: int | None = Query(default=None, alias="corporateId"),
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    summary = await queries.summary(corporate_id)
    return serialize_invoice_summary(summary)


@router.get("/overdue")
async def overdue_invoices(queries: InvoiceQueries = Depends(get_invoice_queries)):
    """Unpaid invoices past their due date, earliest due first."""
    invoices = await queries.overdue()
    return {
        "invoices": [serialize_invoice(i) for i in invoices],
        "totalOverdue": len(invoices),
        "totalAmount": float(sum(i.grand_total for i in invoices)),
    }
