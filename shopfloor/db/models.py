"""SQLAlchemy database models."""

import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.mysql import CHAR
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys.

    Returns:
        str: UUID as 36-character string.
    """
    return str(uuid4())


class UserRole(str, enum.Enum):
    """User role enumeration."""

    ADMIN = "admin"
    PRODUCTION_MANAGER = "production_manager"
    OPERATOR = "operator"


class AssignmentStatus(str, enum.Enum):
    """Operator assignment status enumeration."""

    ACTIVE = "active"
    COMPLETED = "completed"


class ReprintStatus(str, enum.Enum):
    """Reprint request status enumeration."""

    PENDING = "pending"
    APPROVED = "approved"  # Label re-rendered and handed to the print surface
    REJECTED = "rejected"


class User(Base):
    """User model.

    Attributes:
        id: Primary key UUID.
        email: Login email.
        password_hash: Hashed password.
        full_name: User's full name.
        employee_code: Short operator code printed in serial numbers.
        role: User role (admin/production_manager/operator).
        is_active: Whether the user is active.
        created_at: Creation timestamp.
        last_login: Last login timestamp.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    employee_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=lambda x: [e.value for e in x]),
        default=UserRole.OPERATOR,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    last_login: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Relationships
    assignments: Mapped[list["OperatorAssignment"]] = relationship(
        "OperatorAssignment", back_populates="operator"
    )


class Item(Base):
    """Item master entry for a finished product.

    Attributes:
        id: Primary key UUID.
        product_code: Short product code encoded in barcode payloads.
        product_name: Display name.
        color: Optional colour description.
        length_yards: Optional roll length.
        width_inches: Optional roll width.
        expected_weight_kg: Expected unit weight; enables the variance check.
        weight_tolerance_percentage: Accepted deviation from the expected weight.
    """

    __tablename__ = "items"

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    product_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    color: Mapped[str | None] = mapped_column(String(100), nullable=True)
    length_yards: Mapped[float | None] = mapped_column(Float, nullable=True)
    width_inches: Mapped[float | None] = mapped_column(Float, nullable=True)
    expected_weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(10, 3), nullable=True)
    weight_tolerance_percentage: Mapped[Decimal | None] = mapped_column(
        Numeric(5, 2), nullable=True, default=Decimal("10")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class Machine(Base):
    """Production machine."""

    __tablename__ = "machines"

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    machine_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    machine_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class OperatorAssignment(Base):
    """Unit of work binding one operator to one product and a target quantity.

    Attributes:
        id: Primary key UUID.
        operator_id: FK to the operator.
        item_id: FK to the product being made.
        quantity_assigned: Target number of units.
        quantity_produced: Units recorded so far (the operator-local sequence).
        status: active until the target is reached.
    """

    __tablename__ = "operator_assignments"
    __table_args__ = (
        Index("ix_operator_assignments_operator_id", "operator_id"),
        Index("ix_operator_assignments_status", "status"),
    )

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    operator_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    item_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("items.id", ondelete="CASCADE"), nullable=False
    )
    quantity_assigned: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_produced: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    status: Mapped[AssignmentStatus] = mapped_column(
        Enum(AssignmentStatus, values_callable=lambda x: [e.value for e in x]),
        default=AssignmentStatus.ACTIVE,
    )
    assigned_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Relationships
    operator: Mapped["User"] = relationship("User", back_populates="assignments")
    item: Mapped["Item"] = relationship("Item")


class SequenceCounter(Base):
    """Last issued value of a named monotonic sequence.

    Scopes are ``global`` for the system-wide unit counter and
    ``item:<item_id>`` for per-product counters.
    """

    __tablename__ = "sequence_counters"

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    scope: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    value: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class ProductionRecord(Base):
    """One physical unit produced and labelled.

    Attributes:
        id: Primary key UUID.
        serial_number: Human-readable composite serial.
        barcode_data: Machine-readable composite payload.
        global_serial: System-wide sequence number.
        item_serial: Per-product sequence number.
        operator_sequence: Position within the assignment.
        weight_kg: Measured weight.
        weight_out_of_range: Operator confirmed an out-of-tolerance weight.
        produced_at: Timestamp the identifiers were derived from.
    """

    __tablename__ = "production_records"
    __table_args__ = (
        Index("ix_production_records_operator_id", "operator_id"),
        Index("ix_production_records_item_id", "item_id"),
        Index("ix_production_records_produced_at", "produced_at"),
    )

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    serial_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    barcode_data: Mapped[str] = mapped_column(String(128), nullable=False)
    operator_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("users.id"), nullable=False
    )
    machine_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("machines.id", ondelete="SET NULL"), nullable=True
    )
    item_id: Mapped[str] = mapped_column(CHAR(36), ForeignKey("items.id"), nullable=False)
    assignment_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("operator_assignments.id", ondelete="SET NULL"), nullable=True
    )
    weight_kg: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    weight_out_of_range: Mapped[bool] = mapped_column(Boolean, default=False)
    global_serial: Mapped[int] = mapped_column(BigInteger, nullable=False)
    item_serial: Mapped[int] = mapped_column(BigInteger, nullable=False)
    operator_sequence: Mapped[int] = mapped_column(BigInteger, nullable=False)
    produced_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    # Relationships
    operator: Mapped["User"] = relationship("User")
    machine: Mapped[Optional["Machine"]] = relationship("Machine")
    item: Mapped["Item"] = relationship("Item")


class ReprintRequest(Base):
    """Operator request to print a previously produced label again."""

    __tablename__ = "reprint_requests"
    __table_args__ = (
        Index("ix_reprint_requests_status", "status"),
        Index("ix_reprint_requests_operator_id", "operator_id"),
    )

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    production_record_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("production_records.id", ondelete="CASCADE"), nullable=False
    )
    operator_id: Mapped[str] = mapped_column(CHAR(36), ForeignKey("users.id"), nullable=False)
    status: Mapped[ReprintStatus] = mapped_column(
        Enum(ReprintStatus, values_callable=lambda x: [e.value for e in x]),
        default=ReprintStatus.PENDING,
    )
    requested_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    processed_by_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    production_record: Mapped["ProductionRecord"] = relationship("ProductionRecord")
    operator: Mapped["User"] = relationship("User", foreign_keys=[operator_id])
    processed_by: Mapped[Optional["User"]] = relationship("User", foreign_keys=[processed_by_id])


class LabelConfigurationRecord(Base):
    """Persisted label layout document.

    The most recently created row is the active configuration; saves update
    it in place.
    """

    __tablename__ = "label_configurations"

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    label_width_mm: Mapped[float] = mapped_column(Float, nullable=False)
    label_height_mm: Mapped[float] = mapped_column(Float, nullable=False)
    orientation: Mapped[str] = mapped_column(String(20), default="landscape")
    style_config: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    fields_config: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
