"""GenerateInvoiceUseCase — settle a corporate's unpaid FP consignments."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from consignment_service.application.ports.invoice_repo import InvoiceRepository
from consignment_service.application.ports.owner_repo import OwnerRepository
from consignment_service.application.use_cases.allocate_numbers import (
    ConsignmentNumberAllocator,
)
from consignment_service.domain.entities.assignment import CorporateTarget
from consignment_service.domain.entities.invoice import Invoice
from consignment_service.domain.errors import (
    ConcurrentInvoiceError,
    EntityNotFoundError,
    InvalidRangeError,
    InvoiceExistsError,
    NothingToInvoiceError,
)
from consignment_service.domain.policies.invoice_pricing import (
    apply_totals,
    format_invoice_number,
    invoice_number_prefix,
    month_end,
    price_usage,
)

logger = logging.getLogger(__name__)


class GenerateInvoiceUseCase:
    """Builds and persists an invoice, then marks its usages invoiced."""

    def __init__(
        self,
        allocator: ConsignmentNumberAllocator,
        invoice_repo: InvoiceRepository,
        owner_repo: OwnerRepository,
        awb_charge: Decimal,
        fuel_charge_percentage: Decimal,
    ):
        self._allocator = allocator
        self._invoices = invoice_repo
        self._owners = owner_repo
        self._awb_charge = awb_charge
        self._fuel_pct = fuel_charge_percentage

    async def execute(
        self,
        corporate_id: int,
        period_start: date,
        period_end: date,
        created_by: str,
        usage_ids: list[int] | None = None,
        today: date | None = None,
    ) -> Invoice:
        """Invoice unpaid FP usages of *corporate_id* within the period.

        Pipeline:
        1. Corporate must exist.
        2. No invoice for the same corporate and period.
        3. Collect unpaid usages (optionally restricted to *usage_ids*).
        4. Price every line and total the invoice.
        5. Persist, then mark the usages invoiced. If another invoice claimed
           any of them in the meantime, fail with ConcurrentInvoiceError.
        """
        if period_start > period_end:
            raise InvalidRangeError("Invoice period start must not be after its end.")

        corporate = await self._owners.get_corporate(corporate_id)
        if corporate is None:
            raise EntityNotFoundError("Corporate not found.")

        if await self._invoices.exists_for_period(corporate_id, period_start, period_end):
            raise InvoiceExistsError("Invoice already exists for this period.")

        target = CorporateTarget(corporate_id=corporate_id)
        usages = await self._allocator.find_unpaid_for_invoicing(
            target, period_start, period_end
        )
        if usage_ids is not None:
            wanted = set(usage_ids)
            usages = [u for u in usages if u.id in wanted]
        if not usages:
            raise NothingToInvoiceError("No unpaid shipments to invoice for this period.")

        today = today or date.today()
        prefix = invoice_number_prefix(today)
        sequence = await self._invoices.count_with_prefix(prefix) + 1
        fuel_pct = (
            corporate.fuel_charge_percentage
            if corporate.fuel_charge_percentage is not None
            else self._fuel_pct
        )

        invoice = Invoice(
            id=None,
            invoice_number=format_invoice_number(prefix, sequence),
            corporate_id=corporate_id,
            period_start=period_start,
            period_end=period_end,
            lines=[price_usage(u, self._awb_charge, fuel_pct) for u in usages],
            fuel_charge_percentage=fuel_pct,
            due_date=month_end(today),
            created_by=created_by,
        )
        apply_totals(invoice)
        invoice = await self._invoices.save(invoice)

        # Fewer rows changed means another invoice claimed some usages after our read.
        changed = await self._allocator.mark_invoiced([u.id for u in usages], invoice.id)
        if changed != len(usages):
            logger.warning(
                "Invoice %s for %s lost %d/%d shipments to a concurrent invoice",
                invoice.invoice_number, corporate.company_name,
                len(usages) - changed, len(usages),
            )
            raise ConcurrentInvoiceError("Some shipments were invoiced concurrently.")

        logger.info(
            "Invoice %s generated for %s: %d shipments, total %s",
            invoice.invoice_number, corporate.company_name,
            len(invoice.lines), invoice.grand_total,
        )
        return invoice
