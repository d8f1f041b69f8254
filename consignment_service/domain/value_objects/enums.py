"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class EntityType(str, Enum):
    CORPORATE = "corporate"
    OFFICE_USER = "office_user"


class UsageStatus(str, Enum):
    ACTIVE = "active"
    INVOICED = "invoiced"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class PaymentType(str, Enum):
    # Freight paid by the booking party; the only kind that is invoiced
    FP = "FP"
    # To pay, collected from the consignee on delivery
    TP = "TP"


class InvoiceStatus(str, Enum):
    # PAID is set by payment confirmation, outside this service; "overdue" is derived from due_date
    UNPAID = "unpaid"
    PAID = "paid"
