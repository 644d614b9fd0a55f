"""Pydantic schemas for production recording."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from shopfloor.db.models import AssignmentStatus


class ItemSummary(BaseModel):
    """Product fields shown next to an assignment."""

    id: str
    product_code: str
    product_name: str
    color: str | None = None
    length_yards: float | None = None
    width_inches: float | None = None
    expected_weight_kg: Decimal | None = None
    weight_tolerance_percentage: Decimal | None = None

    model_config = ConfigDict(from_attributes=True)


class AssignmentResponse(BaseModel):
    """Schema for an operator assignment."""

    id: str
    item: ItemSummary
    quantity_assigned: int
    quantity_produced: int
    status: AssignmentStatus
    assigned_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RecordProductionRequest(BaseModel):
    """Schema for recording one produced unit."""

    assignment_id: str
    weight_kg: Decimal = Field(..., gt=0, max_digits=10, decimal_places=3)
    machine_id: str | None = None
    confirm_out_of_range: bool = Field(
        False, description="Record even if the weight is outside tolerance"
    )


class ProductionRecordResponse(BaseModel):
    """Schema for a production record."""

    id: str
    serial_number: str
    barcode_data: str
    operator_id: str
    machine_id: str | None = None
    item_id: str
    assignment_id: str | None = None
    weight_kg: Decimal
    weight_out_of_range: bool
    global_serial: int
    item_serial: int
    operator_sequence: int
    produced_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RecordProductionResponse(BaseModel):
    """Recorded unit plus its print document."""

    record: ProductionRecordResponse
    assignment_status: AssignmentStatus
    quantity_produced: int
    label_html: str | None = None


class SerialSuggestion(BaseModel):
    """Serial autocomplete entry."""

    id: str
    serial_number: str
    product_code: str
    produced_at: datetime


class VarianceCheckRequest(BaseModel):
    """Schema for checking a weight against a product's tolerance."""

    item_id: str
    weight_kg: Decimal = Field(..., gt=0)


class VarianceResponse(BaseModel):
    """Schema for a variance check result."""

    in_range: bool
    deviation_percent: float | None = None
    is_over: bool | None = None
    min_weight: Decimal | None = None
    max_weight: Decimal | None = None

    model_config = ConfigDict(from_attributes=True)


class ScaleReadingResponse(BaseModel):
    """Schema for a scale reading."""

    weight: Decimal
    unit: str
    raw: str
    source: str

    model_config = ConfigDict(from_attributes=True)
