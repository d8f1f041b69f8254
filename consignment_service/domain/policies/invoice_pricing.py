"""InvoicePricingPolicy — per-consignment charges and invoice totals."""

from __future__ import annotations

import calendar
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from consignment_service.domain.entities.invoice import Invoice, InvoiceLine
from consignment_service.domain.entities.usage import ConsignmentUsage

GST_RATE = Decimal("0.09")  # applied once as CGST and once as SGST
CENTS = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def price_usage(
    usage: ConsignmentUsage,
    awb_charge: Decimal,
    fuel_charge_percentage: Decimal,
) -> InvoiceLine:
    """Build one invoice line from a usage record.

    Charges:
      freight  = usage.freight_charges
      AWB      = flat *awb_charge* per consignment
      fuel     = freight * fuel% / 100
      CGST     = freight * 9%
      SGST     = freight * 9%
      total    = sum of the above
    """
    booking = usage.booking_data or {}
    destination = (booking.get("destinationData") or {}).get("city") or "N/A"
    shipment = booking.get("shipmentData") or {}
    service_type = "DOX" if shipment.get("natureOfConsignment") == "DOX" else "NON-DOX"
    weight = shipment.get("actualWeight") or shipment.get("chargeableWeight") or 0

    freight = _money(Decimal(usage.freight_charges or 0))
    fuel = _money(freight * fuel_charge_percentage / Decimal(100))
    cgst = _money(freight * GST_RATE)
    sgst = _money(freight * GST_RATE)
    awb = _money(awb_charge)

    return InvoiceLine(
        usage_id=usage.id,
        consignment_number=usage.consignment_number,
        booking_date=usage.used_at,
        destination=destination,
        service_type=service_type,
        weight=float(weight),
        freight_charges=freight,
        awb_charge=awb,
        fuel_surcharge=fuel,
        cgst=cgst,
        sgst=sgst,
        total_amount=freight + awb + fuel + cgst + sgst,
    )


def apply_totals(invoice: Invoice) -> Invoice:
    """Recompute the invoice totals from its lines."""
    invoice.subtotal = sum((line.freight_charges for line in invoice.lines), Decimal("0"))
    invoice.awb_charges_total = sum((line.awb_charge for line in invoice.lines), Decimal("0"))
    invoice.fuel_surcharge_total = sum(
        (line.fuel_surcharge for line in invoice.lines), Decimal("0")
    )
    invoice.cgst_total = sum((line.cgst for line in invoice.lines), Decimal("0"))
    invoice.sgst_total = sum((line.sgst for line in invoice.lines), Decimal("0"))
    invoice.grand_total = (
        invoice.subtotal
        + invoice.awb_charges_total
        + invoice.fuel_surcharge_total
        + invoice.cgst_total
        + invoice.sgst_total
    )
    return invoice


def month_end(today: date) -> date:
    """Invoices fall due on the last day of the month they are raised in."""
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=last_day)


def invoice_number_prefix(today: date) -> str:
    return f"INV-{today:%Y%m}-"


def format_invoice_number(prefix: str, sequence: int) -> str:
    return f"{prefix}{sequence:04d}"
