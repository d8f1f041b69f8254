"""Usage entity — one consignment number consumed by a completed booking."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from consignment_service.domain.entities.assignment import AssignmentTarget
from consignment_service.domain.value_objects.enums import (
    PaymentStatus,
    PaymentType,
    UsageStatus,
)


@dataclass
class ConsignmentUsage:
    id: int | None
    target: AssignmentTarget
    consignment_number: int
    booking_reference: str
    booking_data: dict = field(default_factory=dict)
    used_at: datetime | None = None
    status: UsageStatus = UsageStatus.ACTIVE
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    payment_type: PaymentType = PaymentType.FP
    freight_charges: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    invoice_id: int | None = None

    def is_invoiceable(self) -> bool:
        return (
            self.status == UsageStatus.ACTIVE
            and self.payment_status == PaymentStatus.UNPAID
            and self.payment_type == PaymentType.FP
        )
