"""Initial database schema.

Revision ID: 001
Revises:
Create Date: 2026-10-18

Complete schema for the shop floor application:
- Users (operators, production managers, admins)
- Items with expected weight and tolerance
- Machines
- Operator assignments
- Sequence counters (global and per product)
- Production records with serial numbers and barcode payloads
- Reprint requests
- Label configurations
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import mysql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    # Users table
    op.create_table(
        "users",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("employee_code", sa.String(20), nullable=True),
        sa.Column(
            "role",
            sa.Enum("admin", "production_manager", "operator", name="userrole"),
            nullable=True,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=True, default=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    # Items table (product master)
    op.create_table(
        "items",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("product_code", sa.String(50), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("color", sa.String(100), nullable=True),
        sa.Column("length_yards", sa.Float(), nullable=True),
        sa.Column("width_inches", sa.Float(), nullable=True),
        sa.Column("expected_weight_kg", sa.Numeric(10, 3), nullable=True),
        sa.Column("weight_tolerance_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_code"),
    )

    # Machines table
    op.create_table(
        "machines",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("machine_code", sa.String(20), nullable=False),
        sa.Column("machine_name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=True, default=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("machine_code"),
    )

    # Operator assignments table
    op.create_table(
        "operator_assignments",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("operator_id", mysql.CHAR(36), nullable=False),
        sa.Column("item_id", mysql.CHAR(36), nullable=False),
        sa.Column("quantity_assigned", sa.Integer(), nullable=False),
        sa.Column("quantity_produced", sa.Integer(), server_default="0"),
        sa.Column("status", sa.Enum("active", "completed", name="assignmentstatus"), nullable=True),
        sa.Column("assigned_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["operator_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["item_id"], ["items.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_operator_assignments_operator_id", "operator_assignments", ["operator_id"])
    op.create_index("ix_operator_assignments_status", "operator_assignments", ["status"])

    # Sequence counters table ("global" and "item:<id>" scopes)
    op.create_table(
        "sequence_counters",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("scope", sa.String(100), nullable=False),
        sa.Column("value", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("scope"),
    )

    # Production records table
    op.create_table(
        "production_records",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("serial_number", sa.String(64), nullable=False),
        sa.Column("barcode_data", sa.String(128), nullable=False),
        sa.Column("operator_id", mysql.CHAR(36), nullable=False),
        sa.Column("machine_id", mysql.CHAR(36), nullable=True),
        sa.Column("item_id", mysql.CHAR(36), nullable=False),
        sa.Column("assignment_id", mysql.CHAR(36), nullable=True),
        sa.Column("weight_kg", sa.Numeric(10, 3), nullable=False),
        sa.Column("weight_out_of_range", sa.Boolean(), nullable=True, default=False),
        sa.Column("global_serial", sa.BigInteger(), nullable=False),
        sa.Column("item_serial", sa.BigInteger(), nullable=False),
        sa.Column("operator_sequence", sa.BigInteger(), nullable=False),
        sa.Column("produced_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["operator_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["machine_id"], ["machines.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["item_id"], ["items.id"]),
        sa.ForeignKeyConstraint(
            ["assignment_id"], ["operator_assignments.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("serial_number"),
    )
    op.create_index("ix_production_records_operator_id", "production_records", ["operator_id"])
    op.create_index("ix_production_records_item_id", "production_records", ["item_id"])
    op.create_index("ix_production_records_produced_at", "production_records", ["produced_at"])

    # Reprint requests table
    op.create_table(
        "reprint_requests",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("production_record_id", mysql.CHAR(36), nullable=False),
        sa.Column("operator_id", mysql.CHAR(36), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "rejected", name="reprintstatus"),
            nullable=True,
        ),
        sa.Column("requested_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("processed_by_id", mysql.CHAR(36), nullable=True),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["production_record_id"], ["production_records.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["operator_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["processed_by_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reprint_requests_status", "reprint_requests", ["status"])
    op.create_index("ix_reprint_requests_operator_id", "reprint_requests", ["operator_id"])

    # Label configurations table
    op.create_table(
        "label_configurations",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=True),
        sa.Column("logo_url", sa.String(512), nullable=True),
        sa.Column("label_width_mm", sa.Float(), nullable=False),
        sa.Column("label_height_mm", sa.Float(), nullable=False),
        sa.Column("orientation", sa.String(20), nullable=True),
        sa.Column("style_config", sa.JSON(), nullable=True),
        sa.Column("fields_config", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("label_configurations")
    op.drop_table("reprint_requests")
    op.drop_table("production_records")
    op.drop_table("sequence_counters")
    op.drop_table("operator_assignments")
    op.drop_table("machines")
    op.drop_table("items")
    op.drop_table("users")
