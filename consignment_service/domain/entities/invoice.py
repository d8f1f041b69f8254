"""Invoice entity — a bill aggregating unpaid FP usages of one corporate."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from consignment_service.domain.value_objects.enums import InvoiceStatus


@dataclass
class InvoiceLine:
    usage_id: int
    consignment_number: int
    booking_date: datetime | None
    destination: str
    service_type: str
    weight: float
    freight_charges: Decimal
    awb_charge: Decimal
    fuel_surcharge: Decimal
    cgst: Decimal
    sgst: Decimal
    total_amount: Decimal


@dataclass
class Invoice:
    id: int | None
    invoice_number: str
    corporate_id: int
    period_start: date
    period_end: date
    lines: list[InvoiceLine] = field(default_factory=list)
    fuel_charge_percentage: Decimal = Decimal("15")
    subtotal: Decimal = Decimal("0")
    awb_charges_total: Decimal = Decimal("0")
    fuel_surcharge_total: Decimal = Decimal("0")
    cgst_total: Decimal = Decimal("0")
    sgst_total: Decimal = Decimal("0")
    grand_total: Decimal = Decimal("0")
    status: InvoiceStatus = InvoiceStatus.UNPAID
    due_date: date | None = None
    created_by: str | None = None
    created_at: datetime | None = None

    def is_overdue(self, today: date) -> bool:
        """Unpaid past its due date."""
        return (
            self.status == InvoiceStatus.UNPAID
            and self.due_date is not None
            and self.due_date < today
        )


@dataclass(frozen=True)
class InvoiceSummary:
    """Invoice counts and amounts, optionally for one corporate."""

    total_count: int = 0
    total_amount: Decimal = Decimal("0")
    paid_count: int = 0
    paid_amount: Decimal = Decimal("0")
    unpaid_count: int = 0
    unpaid_amount: Decimal = Decimal("0")
    overdue_count: int = 0
    overdue_amount: Decimal = Decimal("0")
