"""Initial schema — owners, consignment assignments, usages, invoices.

Revision ID: 001
Revises: None
Create Date: 2025-03-04
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Corporates
    op.create_table(
        "corporates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("corporate_code", sa.String(50), unique=True, nullable=False),
        sa.Column("company_name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(200), nullable=True),
        sa.Column("contact_number", sa.String(30), nullable=True),
        sa.Column("fuel_charge_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
    )

    # Office users
    op.create_table(
        "office_users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(200), unique=True, nullable=False),
        sa.Column("role", sa.String(50), nullable=True),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
    )

    # Consignment assignments
    op.create_table(
        "consignment_assignments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("entity_id", sa.Integer, nullable=False),
        sa.Column("assigned_to_name", sa.String(200), nullable=True),
        sa.Column("start_number", sa.BigInteger, nullable=False),
        sa.Column("end_number", sa.BigInteger, nullable=False),
        sa.Column("total_numbers", sa.BigInteger, nullable=False),
        sa.Column("assigned_by", sa.String(200), nullable=False),
        sa.Column(
            "assigned_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.CheckConstraint("start_number <= end_number", name="ck_assignments_range_order"),
        sa.CheckConstraint(
            "entity_type IN ('corporate', 'office_user')",
            name="ck_assignments_entity_type",
        ),
    )
    op.create_index(
        "idx_assignments_owner", "consignment_assignments", ["entity_type", "entity_id"]
    )
    op.create_index("idx_assignments_end_number", "consignment_assignments", ["end_number"])
    # Active ranges may never share a number
    op.execute(
        "ALTER TABLE consignment_assignments "
        "ADD CONSTRAINT ex_assignments_active_range "
        "EXCLUDE USING gist (int8range(start_number, end_number, '[]') WITH &&) "
        "WHERE (is_active)"
    )

    # Invoices
    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("invoice_number", sa.String(30), nullable=False),
        sa.Column(
            "corporate_id", sa.Integer, sa.ForeignKey("corporates.id"), nullable=False
        ),
        sa.Column("period_start", sa.Date, nullable=False),
        sa.Column("period_end", sa.Date, nullable=False),
        sa.Column("lines", JSONB, nullable=False, server_default="[]"),
        sa.Column("fuel_charge_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("awb_charges_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("fuel_surcharge_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("cgst_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("sgst_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("grand_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="unpaid"),
        sa.Column("due_date", sa.Date, nullable=True),
        sa.Column("created_by", sa.String(200), nullable=True),
        sa.Column(
            "created_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.UniqueConstraint(
            "corporate_id", "period_start", "period_end", name="uq_invoice_corporate_period"
        ),
        sa.UniqueConstraint("invoice_number", name="uq_invoice_number"),
    )
    op.create_index("idx_invoices_status_due", "invoices", ["status", "due_date"])

    # Consignment usages
    op.create_table(
        "consignment_usages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("entity_id", sa.Integer, nullable=False),
        sa.Column("consignment_number", sa.BigInteger, nullable=False),
        sa.Column("booking_reference", sa.String(100), nullable=False),
        sa.Column("booking_data", JSONB, nullable=False, server_default="{}"),
        sa.Column("used_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="unpaid"),
        sa.Column("payment_type", sa.String(5), nullable=False, server_default="FP"),
        sa.Column("freight_charges", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("invoice_id", sa.Integer, sa.ForeignKey("invoices.id"), nullable=True),
        sa.UniqueConstraint(
            "entity_type", "entity_id", "consignment_number", name="uq_usage_entity_number"
        ),
    )
    op.create_index(
        "idx_usages_owner_used_at",
        "consignment_usages",
        ["entity_type", "entity_id", "used_at"],
    )
    op.create_index(
        "idx_usages_payment", "consignment_usages", ["payment_status", "payment_type"]
    )


def downgrade() -> None:
    op.drop_table("consignment_usages")
    op.drop_table("invoices")
    op.drop_table("consignment_assignments")
    op.drop_table("office_users")
    op.drop_table("corporates")
