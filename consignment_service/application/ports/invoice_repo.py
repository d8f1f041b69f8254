"""Port interface for invoice persistence."""

from abc import ABC, abstractmethod
from datetime import date

from consignment_service.domain.entities.invoice import Invoice, InvoiceSummary
from consignment_service.domain.value_objects.enums import InvoiceStatus


class InvoiceRepository(ABC):
    @abstractmethod
    async def save(self, invoice: Invoice) -> Invoice:
        """Insert a new invoice.

        Must raise InvoiceExistsError when the corporate already has an invoice
        for the same period, and ConcurrentInvoiceError when another invoice
        took the same invoice number first.
        """
        ...

    @abstractmethod
    async def get_by_id(self, invoice_id: int) -> Invoice | None:
        ...

    @abstractmethod
    async def exists_for_period(
        self, corporate_id: int, period_start: date, period_end: date
    ) -> bool:
        ...

    @abstractmethod
    async def count_with_prefix(self, prefix: str) -> int:
        ...

    @abstractmethod
    async def list_page(
        self,
        corporate_id: int | None,
        status: InvoiceStatus | None,
        overdue_on: date | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Invoice], int]:
        """Newest first. *overdue_on* keeps unpaid invoices due before that day."""
        ...

    @abstractmethod
    async def list_overdue(self, today: date) -> list[Invoice]:
        """Unpaid invoices due before *today*, earliest due date first."""
        ...

    @abstractmethod
    async def summarize(self, corporate_id: int | None, today: date) -> InvoiceSummary:
        ...
