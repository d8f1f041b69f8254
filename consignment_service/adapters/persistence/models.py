"""SQLAlchemy ORM models — maps to PostgreSQL tables.

The exclusion constraint keeping active ranges disjoint lives in the
migration (``ex_assignments_active_range``); the ORM only needs its name to
recognise violations.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from consignment_service.adapters.persistence.database import Base

ACTIVE_RANGE_EXCLUSION = "ex_assignments_active_range"
USAGE_UNIQUE = "uq_usage_entity_number"
INVOICE_PERIOD_UNIQUE = "uq_invoice_corporate_period"
INVOICE_NUMBER_UNIQUE = "uq_invoice_number"


class CorporateModel(Base):
    __tablename__ = "corporates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    corporate_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    contact_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    fuel_charge_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)

    invoices: Mapped[list["InvoiceModel"]] = relationship(back_populates="corporate")


class OfficeUserModel(Base):
    __tablename__ = "office_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ConsignmentAssignmentModel(Base):
    __tablename__ = "consignment_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    assigned_to_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    start_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_numbers: Mapped[int] = mapped_column(BigInteger, nullable=False)
    assigned_by: Mapped[str] = mapped_column(String(200), nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (
        CheckConstraint("start_number <= end_number", name="ck_assignments_range_order"),
        CheckConstraint(
            "entity_type IN ('corporate', 'office_user')",
            name="ck_assignments_entity_type",
        ),
        Index("idx_assignments_owner", "entity_type", "entity_id"),
        Index("idx_assignments_end_number", "end_number"),
    )


class ConsignmentUsageModel(Base):
    __tablename__ = "consignment_usages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    consignment_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    booking_reference: Mapped[str] = mapped_column(String(100), nullable=False)
    booking_data: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    used_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    payment_status: Mapped[str] = mapped_column(String(20), nullable=False, default="unpaid")
    payment_type: Mapped[str] = mapped_column(String(5), nullable=False, default="FP")
    freight_charges: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    invoice_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("invoices.id"), nullable=True
    )

    invoice: Mapped["InvoiceModel | None"] = relationship(back_populates="usages")

    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", "consignment_number", name=USAGE_UNIQUE),
        Index("idx_usages_owner_used_at", "entity_type", "entity_id", "used_at"),
        Index("idx_usages_payment", "payment_status", "payment_type"),
    )


class InvoiceModel(Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_number: Mapped[str] = mapped_column(String(30), nullable=False)
    corporate_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("corporates.id"), nullable=False
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    lines: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    fuel_charge_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    awb_charges_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    fuel_surcharge_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    cgst_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    sgst_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    grand_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="unpaid")
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    corporate: Mapped["CorporateModel"] = relationship(back_populates="invoices")
    usages: Mapped[list["ConsignmentUsageModel"]] = relationship(back_populates="invoice")

    __table_args__ = (
        UniqueConstraint(
            "corporate_id", "period_start", "period_end", name=INVOICE_PERIOD_UNIQUE
        ),
        UniqueConstraint("invoice_number", name=INVOICE_NUMBER_UNIQUE),
        Index("idx_invoices_status_due", "status", "due_date"),
    )
