"""Domain → JSON response dicts (camelCase keys, as the UI expects)."""

from __future__ import annotations

from datetime import date

from consignment_service.application.pagination import Page
from consignment_service.application.use_cases.allocate_numbers import AssignmentUsage
from consignment_service.domain.entities.assignment import Assignment
from consignment_service.domain.entities.invoice import Invoice, InvoiceLine, InvoiceSummary
from consignment_service.domain.entities.usage import ConsignmentUsage
from consignment_service.domain.policies.number_allocation import UsageStatistics


def serialize_assignment(a: Assignment) -> dict:
    return {
        "assignmentId": a.id,
        "entityType": a.target.entity_type.value,
        "entityId": a.target.entity_id,
        "assignedToName": a.assigned_to_name,
        "startNumber": a.start_number,
        "endNumber": a.end_number,
        "totalNumbers": a.total_numbers,
        "assignedBy": a.assigned_by,
        "assignedAt": a.assigned_at.isoformat() if a.assigned_at else None,
        "isActive": a.is_active,
        "notes": a.notes,
    }


def serialize_assignment_usage(item: AssignmentUsage) -> dict:
    data = serialize_assignment(item.assignment)
    data.update(
        {
            "usedCount": item.used_count,
            "availableCount": item.available_count,
            "usagePercentage": item.usage_percentage,
        }
    )
    return data


def serialize_usage(u: ConsignmentUsage) -> dict:
    return {
        "usageId": u.id,
        "entityType": u.target.entity_type.value,
        "entityId": u.target.entity_id,
        "consignmentNumber": u.consignment_number,
        "bookingReference": u.booking_reference,
        "bookingData": u.booking_data,
        "usedAt": u.used_at.isoformat() if u.used_at else None,
        "status": u.status.value,
        "paymentStatus": u.payment_status.value,
        "paymentType": u.payment_type.value,
        "freightCharges": float(u.freight_charges),
        "totalAmount": float(u.total_amount),
        "invoiceId": u.invoice_id,
    }


def serialize_statistics(stats: UsageStatistics) -> dict:
    return {
        "totalAssigned": stats.total_assigned,
        "totalUsed": stats.total_used,
        "available": stats.available,
        "usagePercentage": stats.usage_percentage,
    }


def serialize_invoice(invoice: Invoice, today: date | None = None) -> dict:
    return {
        "invoiceId": invoice.id,
        "invoiceNumber": invoice.invoice_number,
        "corporateId": invoice.corporate_id,
        "periodStart": invoice.period_start.isoformat(),
        "periodEnd": invoice.period_end.isoformat(),
        "totalShipments": len(invoice.lines),
        "subtotal": float(invoice.subtotal),
        "awbChargesTotal": float(invoice.awb_charges_total),
        "fuelChargePercentage": float(invoice.fuel_charge_percentage),
        "fuelSurchargeTotal": float(invoice.fuel_surcharge_total),
        "cgstTotal": float(invoice.cgst_total),
        "sgstTotal": float(invoice.sgst_total),
        "grandTotal": float(invoice.grand_total),
        "status": invoice.status.value,
        "dueDate": invoice.due_date.isoformat() if invoice.due_date else None,
        "isOverdue": invoice.is_overdue(today or date.today()),
        "createdAt": invoice.created_at.isoformat() if invoice.created_at else None,
    }


def serialize_invoice_line(line: InvoiceLine) -> dict:
    return {
        "usageId": line.usage_id,
        "consignmentNumber": line.consignment_number,
        "bookingDate": line.booking_date.isoformat() if line.booking_date else None,
        "destination": line.destination,
        "serviceType": line.service_type,
        "weight": line.weight,
        "freightCharges": float(line.freight_charges),
        "awbCharge": float(line.awb_charge),
        "fuelSurcharge": float(line.fuel_surcharge),
        "cgst": float(line.cgst),
        "sgst": float(line.sgst),
        "totalAmount": float(line.total_amount),
    }


def serialize_invoice_detail(invoice: Invoice) -> dict:
    data = serialize_invoice(invoice)
    data["createdBy"] = invoice.created_by
    data["lines"] = [serialize_invoice_line(line) for line in invoice.lines]
    return data


def serialize_invoice_summary(summary: InvoiceSummary) -> dict:
    return {
        "totalInvoices": summary.total_count,
        "totalAmount": float(summary.total_amount),
        "paidInvoices": summary.paid_count,
        "paidAmount": float(summary.paid_amount),
        "unpaidInvoices": summary.unpaid_count,
        "unpaidAmount": float(summary.unpaid_amount),
        "overdueInvoices": summary.overdue_count,
        "overdueAmount": float(summary.overdue_amount),
    }


def paginated(page: Page, serializer) -> dict:
    return {
        "data": [serializer(item) for item in page.items],
        "pagination": page.meta(),
    }
