"""InvoiceQueries — read back issued invoices, overdue bills and settlement totals."""

from __future__ import annotations

from datetime import date

from consignment_service.application.pagination import Page, page_bounds
from consignment_service.application.ports.invoice_repo import InvoiceRepository
from consignment_service.domain.entities.invoice import Invoice, InvoiceSummary
from consignment_service.domain.errors import InvoiceNotFoundError
from consignment_service.domain.value_objects.enums import InvoiceStatus

OVERDUE = "overdue"


class InvoiceQueries:
    def __init__(self, invoice_repo: InvoiceRepository):
        self._invoices = invoice_repo

    async def get_invoice(self, invoice_id: int, corporate_id: int | None = None) -> Invoice:
        """One invoice with its lines. A *corporate_id* restricts it to that corporate."""
        invoice = await self._invoices.get_by_id(invoice_id)
        if invoice is None or (corporate_id is not None and invoice.corporate_id != corporate_id):
            raise InvoiceNotFoundError("Invoice not found.")
        return invoice

    async def list_invoices(
        self,
        corporate_id: int | None = None,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
        today: date | None = None,
    ) -> Page[Invoice]:
        """Newest first. *status* is ``unpaid``, ``paid`` or ``overdue``; anything else is ignored."""
        page, limit, offset = page_bounds(page, limit)
        overdue_on = None
        invoice_status = None
        if status == OVERDUE:
            overdue_on = today or date.today()
        elif status in {s.value for s in InvoiceStatus}:
            invoice_status = InvoiceStatus(status)

        invoices, total = await self._invoices.list_page(
            corporate_id, invoice_status, overdue_on, offset, limit
        )
        return Page(items=invoices, page=page, limit=limit, total_count=total)

    async def overdue(self, today: date | None = None) -> list[Invoice]:
        return await self._invoices.list_overdue(today or date.today())

    async def summary(
        self, corporate_id: int | None = None, today: date | None = None
    ) -> InvoiceSummary:
        return await self._invoices.summarize(corporate_id, today or date.today())
