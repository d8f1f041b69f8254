"""SQLAlchemy repository implementations."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from consignment_service.adapters.persistence.models import (
    ACTIVE_RANGE_EXCLUSION,
    INVOICE_NUMBER_UNIQUE,
    INVOICE_PERIOD_UNIQUE,
    USAGE_UNIQUE,
    ConsignmentAssignmentModel,
    ConsignmentUsageModel,
    CorporateModel,
    InvoiceModel,
    OfficeUserModel,
)
from consignment_service.application.ports.assignment_repo import AssignmentRepository
from consignment_service.application.ports.invoice_repo import InvoiceRepository
from consignment_service.application.ports.owner_repo import OwnerRepository
from consignment_service.application.ports.usage_repo import UsageRepository
from consignment_service.domain.entities.assignment import (
    Assignment,
    AssignmentTarget,
    make_target,
)
from consignment_service.domain.entities.invoice import Invoice, InvoiceLine, InvoiceSummary
from consignment_service.domain.entities.owner import Corporate, OfficeUser
from consignment_service.domain.entities.usage import ConsignmentUsage
from consignment_service.domain.errors import (
    ConcurrentInvoiceError,
    DuplicateUsageError,
    InvoiceExistsError,
    RangeConflictError,
)
from consignment_service.domain.value_objects.enums import (
    EntityType,
    InvoiceStatus,
    PaymentStatus,
    PaymentType,
    UsageStatus,
)

# ─── Mappers ─────────────────────────────────────────────────────────


def _violates(exc: IntegrityError, constraint: str) -> bool:
    return constraint in str(exc.orig)


def _assignment_to_domain(m: ConsignmentAssignmentModel) -> Assignment:
    return Assignment(
        id=m.id,
        target=make_target(m.entity_type, m.entity_id),
        start_number=m.start_number,
        end_number=m.end_number,
        assigned_by=m.assigned_by,
        assigned_at=m.assigned_at,
        is_active=m.is_active,
        notes=m.notes or "",
        assigned_to_name=m.assigned_to_name,
    )


def _usage_to_domain(m: ConsignmentUsageModel) -> ConsignmentUsage:
    return ConsignmentUsage(
        id=m.id,
        target=make_target(m.entity_type, m.entity_id),
        consignment_number=m.consignment_number,
        booking_reference=m.booking_reference,
        booking_data=m.booking_data or {},
        used_at=m.used_at,
        status=UsageStatus(m.status),
        payment_status=PaymentStatus(m.payment_status),
        payment_type=PaymentType(m.payment_type),
        freight_charges=m.freight_charges,
        total_amount=m.total_amount,
        invoice_id=m.invoice_id,
    )


def _line_to_json(line: InvoiceLine) -> dict:
    return {
        "usage_id": line.usage_id,
        "consignment_number": line.consignment_number,
        "booking_date": line.booking_date.isoformat() if line.booking_date else None,
        "destination": line.destination,
        "service_type": line.service_type,
        "weight": line.weight,
        "freight_charges": str(line.freight_charges),
        "awb_charge": str(line.awb_charge),
        "fuel_surcharge": str(line.fuel_surcharge),
        "cgst": str(line.cgst),
        "sgst": str(line.sgst),
        "total_amount": str(line.total_amount),
    }


def _line_from_json(data: dict) -> InvoiceLine:
    booking_date = data.get("booking_date")
    return InvoiceLine(
        usage_id=data["usage_id"],
        consignment_number=data["consignment_number"],
        booking_date=datetime.fromisoformat(booking_date) if booking_date else None,
        destination=data["destination"],
        service_type=data["service_type"],
        weight=data["weight"],
        freight_charges=Decimal(data["freight_charges"]),
        awb_charge=Decimal(data["awb_charge"]),
        fuel_surcharge=Decimal(data["fuel_surcharge"]),
        cgst=Decimal(data["cgst"]),
        sgst=Decimal(data["sgst"]),
        total_amount=Decimal(data["total_amount"]),
    )


def _invoice_to_domain(m: InvoiceModel) -> Invoice:
    return Invoice(
        id=m.id,
        invoice_number=m.invoice_number,
        corporate_id=m.corporate_id,
        period_start=m.period_start,
        period_end=m.period_end,
        lines=[_line_from_json(line) for line in m.lines or []],
        fuel_charge_percentage=m.fuel_charge_percentage,
        subtotal=m.subtotal,
        awb_charges_total=m.awb_charges_total,
        fuel_surcharge_total=m.fuel_surcharge_total,
        cgst_total=m.cgst_total,
        sgst_total=m.sgst_total,
        grand_total=m.grand_total,
        status=InvoiceStatus(m.status),
        due_date=m.due_date,
        created_by=m.created_by,
        created_at=m.created_at,
    )


def _owner_filter(model, target: AssignmentTarget):
    return (
        model.entity_type == target.entity_type.value,
        model.entity_id == target.entity_id,
    )


def _overdue(today: date):
    return and_(
        InvoiceModel.status == InvoiceStatus.UNPAID.value,
        InvoiceModel.due_date < today,
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlAssignmentRepository(AssignmentRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, assignment: Assignment) -> Assignment:
        m = ConsignmentAssignmentModel(
            entity_type=assignment.target.entity_type.value,
            entity_id=assignment.target.entity_id,
            assigned_to_name=assignment.assigned_to_name,
            start_number=assignment.start_number,
            end_number=assignment.end_number,
            total_numbers=assignment.total_numbers,
            assigned_by=assignment.assigned_by,
            is_active=assignment.is_active,
            notes=assignment.notes,
        )
        try:
            async with self._s.begin_nested():
                self._s.add(m)
                await self._s.flush()
        except IntegrityError as e:
            if _violates(e, ACTIVE_RANGE_EXCLUSION):
                raise RangeConflictError(
                    f"The number range {assignment.number_range} is already assigned."
                ) from e
            raise
        await self._s.refresh(m)
        assignment.id = m.id
        assignment.assigned_at = m.assigned_at
        return assignment

    async def get_by_id(self, assignment_id: int) -> Assignment | None:
        m = await self._s.get(ConsignmentAssignmentModel, assignment_id)
        return _assignment_to_domain(m) if m else None

    async def find_overlapping(self, start: int, end: int) -> list[Assignment]:
        result = await self._s.execute(
            select(ConsignmentAssignmentModel)
            .where(
                ConsignmentAssignmentModel.is_active.is_(True),
                ConsignmentAssignmentModel.start_number <= end,
                ConsignmentAssignmentModel.end_number >= start,
            )
            .order_by(ConsignmentAssignmentModel.start_number)
        )
        return [_assignment_to_domain(m) for m in result.scalars()]

    async def get_active_for(self, target: AssignmentTarget) -> list[Assignment]:
        result = await self._s.execute(
            select(ConsignmentAssignmentModel)
            .where(
                *_owner_filter(ConsignmentAssignmentModel, target),
                ConsignmentAssignmentModel.is_active.is_(True),
            )
            .order_by(ConsignmentAssignmentModel.start_number)
        )
        return [_assignment_to_domain(m) for m in result.scalars()]

    async def find_active_containing(
        self, target: AssignmentTarget, number: int
    ) -> Assignment | None:
        result = await self._s.execute(
            select(ConsignmentAssignmentModel)
            .where(
                *_owner_filter(ConsignmentAssignmentModel, target),
                ConsignmentAssignmentModel.is_active.is_(True),
                ConsignmentAssignmentModel.start_number <= number,
                ConsignmentAssignmentModel.end_number >= number,
            )
            .limit(1)
        )
        m = result.scalar_one_or_none()
        return _assignment_to_domain(m) if m else None

    async def max_active_end_number(self) -> int | None:
        result = await self._s.execute(
            select(func.max(ConsignmentAssignmentModel.end_number)).where(
                ConsignmentAssignmentModel.is_active.is_(True)
            )
        )
        return result.scalar_one_or_none()

    async def list_page(
        self,
        entity_type: EntityType | None,
        search: str | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Assignment], int]:
        query = select(ConsignmentAssignmentModel)
        if entity_type is not None:
            query = query.where(ConsignmentAssignmentModel.entity_type == entity_type.value)
        if search:
            query = query.where(
                ConsignmentAssignmentModel.assigned_to_name.ilike(f"%{search}%")
            )

        total = await self._s.scalar(select(func.count()).select_from(query.subquery()))
        result = await self._s.execute(
            query.order_by(
                ConsignmentAssignmentModel.assigned_at.desc(),
                ConsignmentAssignmentModel.id.desc(),
            )
            .offset(offset)
            .limit(limit)
        )
        return [_assignment_to_domain(m) for m in result.scalars()], total or 0

    async def set_active(self, assignment_id: int, is_active: bool) -> None:
        await self._s.execute(
            update(ConsignmentAssignmentModel)
            .where(ConsignmentAssignmentModel.id == assignment_id)
            .values(is_active=is_active)
        )
        await self._s.flush()

    async def get_all(self) -> list[Assignment]:
        result = await self._s.execute(
            select(ConsignmentAssignmentModel).order_by(ConsignmentAssignmentModel.id)
        )
        return [_assignment_to_domain(m) for m in result.scalars()]


class SqlUsageRepository(UsageRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, usage: ConsignmentUsage) -> ConsignmentUsage:
        m = ConsignmentUsageModel(
            entity_type=usage.target.entity_type.value,
            entity_id=usage.target.entity_id,
            consignment_number=usage.consignment_number,
            booking_reference=usage.booking_reference,
            booking_data=usage.booking_data,
            status=usage.status.value,
            payment_status=usage.payment_status.value,
            payment_type=usage.payment_type.value,
            freight_charges=usage.freight_charges,
            total_amount=usage.total_amount,
        )
        try:
            async with self._s.begin_nested():
                self._s.add(m)
                await self._s.flush()
        except IntegrityError as e:
            if _violates(e, USAGE_UNIQUE):
                raise DuplicateUsageError(
                    f"Consignment number {usage.consignment_number} is already in use."
                ) from e
            raise
        await self._s.refresh(m)
        usage.id = m.id
        usage.used_at = m.used_at
        return usage

    async def get_used_numbers(
        self, target: AssignmentTarget, start: int, end: int
    ) -> list[int]:
        result = await self._s.execute(
            select(ConsignmentUsageModel.consignment_number)
            .where(
                *_owner_filter(ConsignmentUsageModel, target),
                ConsignmentUsageModel.consignment_number.between(start, end),
            )
            .order_by(ConsignmentUsageModel.consignment_number)
        )
        return list(result.scalars())

    async def count_in_range(self, target: AssignmentTarget, start: int, end: int) -> int:
        total = await self._s.scalar(
            select(func.count(ConsignmentUsageModel.id)).where(
                *_owner_filter(ConsignmentUsageModel, target),
                ConsignmentUsageModel.consignment_number.between(start, end),
            )
        )
        return total or 0

    async def find_unpaid(
        self,
        target: AssignmentTarget,
        used_from: datetime | None,
        used_before: datetime | None,
    ) -> list[ConsignmentUsage]:
        query = select(ConsignmentUsageModel).where(
            *_owner_filter(ConsignmentUsageModel, target),
            ConsignmentUsageModel.status == UsageStatus.ACTIVE.value,
            ConsignmentUsageModel.payment_status == PaymentStatus.UNPAID.value,
            ConsignmentUsageModel.payment_type == PaymentType.FP.value,
        )
        if used_from is not None:
            query = query.where(ConsignmentUsageModel.used_at >= used_from)
        if used_before is not None:
            query = query.where(ConsignmentUsageModel.used_at < used_before)

        result = await self._s.execute(
            query.order_by(ConsignmentUsageModel.used_at, ConsignmentUsageModel.id)
        )
        return [_usage_to_domain(m) for m in result.scalars()]

    async def mark_invoiced(self, usage_ids: list[int], invoice_id: int) -> int:
        result = await self._s.execute(
            update(ConsignmentUsageModel)
            .where(
                ConsignmentUsageModel.id.in_(usage_ids),
                ConsignmentUsageModel.status != UsageStatus.INVOICED.value,
            )
            .values(status=UsageStatus.INVOICED.value, invoice_id=invoice_id)
        )
        await self._s.flush()
        return result.rowcount or 0

    async def list_page(
        self, target: AssignmentTarget, offset: int, limit: int
    ) -> tuple[list[ConsignmentUsage], int]:
        where = _owner_filter(ConsignmentUsageModel, target)
        total = await self._s.scalar(
            select(func.count(ConsignmentUsageModel.id)).where(*where)
        )
        result = await self._s.execute(
            select(ConsignmentUsageModel)
            .where(*where)
            .order_by(ConsignmentUsageModel.used_at.desc(), ConsignmentUsageModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [_usage_to_domain(m) for m in result.scalars()], total or 0

    async def count_all(self) -> int:
        total = await self._s.scalar(select(func.count(ConsignmentUsageModel.id)))
        return total or 0


class SqlOwnerRepository(OwnerRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_corporate(self, corporate_id: int) -> Corporate | None:
        m = await self._s.get(CorporateModel, corporate_id)
        if m is None:
            return None
        return Corporate(
            id=m.id,
            corporate_code=m.corporate_code,
            company_name=m.company_name,
            email=m.email,
            contact_number=m.contact_number,
            is_active=m.is_active,
            fuel_charge_percentage=m.fuel_charge_percentage,
        )

    async def get_office_user(self, office_user_id: int) -> OfficeUser | None:
        m = await self._s.get(OfficeUserModel, office_user_id)
        if m is None:
            return None
        return OfficeUser(
            id=m.id,
            name=m.name,
            email=m.email,
            role=m.role,
            department=m.department,
            is_active=m.is_active,
        )

    async def existing_ids(self, entity_type: EntityType, ids: set[int]) -> set[int]:
        if not ids:
            return set()
        model = CorporateModel if entity_type == EntityType.CORPORATE else OfficeUserModel
        result = await self._s.execute(select(model.id).where(model.id.in_(ids)))
        return set(result.scalars())


class SqlInvoiceRepository(InvoiceRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, invoice: Invoice) -> Invoice:
        m = InvoiceModel(
            invoice_number=invoice.invoice_number,
            corporate_id=invoice.corporate_id,
            period_start=invoice.period_start,
            period_end=invoice.period_end,
            lines=[_line_to_json(line) for line in invoice.lines],
            fuel_charge_percentage=invoice.fuel_charge_percentage,
            subtotal=invoice.subtotal,
            awb_charges_total=invoice.awb_charges_total,
            fuel_surcharge_total=invoice.fuel_surcharge_total,
            cgst_total=invoice.cgst_total,
            sgst_total=invoice.sgst_total,
            grand_total=invoice.grand_total,
            status=invoice.status.value,
            due_date=invoice.due_date,
            created_by=invoice.created_by,
        )
        try:
            async with self._s.begin_nested():
                self._s.add(m)
                await self._s.flush()
        except IntegrityError as e:
            if _violates(e, INVOICE_PERIOD_UNIQUE):
                raise InvoiceExistsError("Invoice already exists for this period.") from e
            if _violates(e, INVOICE_NUMBER_UNIQUE):
                raise ConcurrentInvoiceError(
                    f"Invoice number {invoice.invoice_number} was issued concurrently. "
                    "Please retry."
                ) from e
            raise
        await self._s.refresh(m)
        invoice.id = m.id
        invoice.created_at = m.created_at
        return invoice

    async def get_by_id(self, invoice_id: int) -> Invoice | None:
        m = await self._s.get(InvoiceModel, invoice_id)
        return _invoice_to_domain(m) if m else None

    async def exists_for_period(self, corporate_id, period_start, period_end) -> bool:
        found = await self._s.scalar(
            select(InvoiceModel.id).where(
                InvoiceModel.corporate_id == corporate_id,
                InvoiceModel.period_start == period_start,
                InvoiceModel.period_end == period_end,
            )
        )
        return found is not None

    async def count_with_prefix(self, prefix: str) -> int:
        total = await self._s.scalar(
            select(func.count(InvoiceModel.id)).where(
                InvoiceModel.invoice_number.like(f"{prefix}%")
            )
        )
        return total or 0

    async def list_page(
        self,
        corporate_id: int | None,
        status: InvoiceStatus | None,
        overdue_on: date | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Invoice], int]:
        query = select(InvoiceModel)
        if corporate_id is not None:
            query = query.where(InvoiceModel.corporate_id == corporate_id)
        if status is not None:
            query = query.where(InvoiceModel.status == status.value)
        if overdue_on is not None:
            query = query.where(_overdue(overdue_on))

        total = await self._s.scalar(select(func.count()).select_from(query.subquery()))
        result = await self._s.execute(
            query.order_by(InvoiceModel.created_at.desc(), InvoiceModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [_invoice_to_domain(m) for m in result.scalars()], total or 0

    async def list_overdue(self, today: date) -> list[Invoice]:
        result = await self._s.execute(
            select(InvoiceModel)
            .where(_overdue(today))
            .order_by(InvoiceModel.due_date, InvoiceModel.id)
        )
        return [_invoice_to_domain(m) for m in result.scalars()]

    async def summarize(self, corporate_id: int | None, today: date) -> InvoiceSummary:
        paid = InvoiceModel.status == InvoiceStatus.PAID.value
        unpaid = InvoiceModel.status == InvoiceStatus.UNPAID.value
        overdue = _overdue(today)
        count = func.count(InvoiceModel.id)
        amount = func.sum(InvoiceModel.grand_total)

        query = select(
            count,
            func.coalesce(amount, 0),
            count.filter(paid),
            func.coalesce(amount.filter(paid), 0),
            count.filter(unpaid),
            func.coalesce(amount.filter(unpaid), 0),
            count.filter(overdue),
            func.coalesce(amount.filter(overdue), 0),
        )
        if corporate_id is not None:
            query = query.where(InvoiceModel.corporate_id == corporate_id)

        row = (await self._s.execute(query)).one()
        return InvoiceSummary(
            total_count=row[0],
            total_amount=Decimal(row[1]),
            paid_count=row[2],
            paid_amount=Decimal(row[3]),
            unpaid_count=row[4],
            unpaid_amount=Decimal(row[5]),
            overdue_count=row[6],
            overdue_amount=Decimal(row[7]),
        )
