"""Pydantic schemas for reprint requests."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from shopfloor.db.models import ReprintStatus


class ReprintCreate(BaseModel):
    """Schema for requesting a reprint."""

    production_record_id: str
    notes: str | None = Field(None, max_length=1000)


class ReprintDecision(BaseModel):
    """Schema for approving or rejecting reprint requests."""

    ids: list[str] = Field(..., min_length=1, max_length=200)
    notes: str | None = Field(None, max_length=1000)


class ReprintResponse(BaseModel):
    """Schema for reprint request response."""

    id: str
    production_record_id: str
    serial_number: str
    barcode_data: str
    product_code: str
    product_name: str
    weight_kg: Decimal
    machine_code: str | None = None
    operator_id: str
    operator_name: str | None = None
    operator_code: str | None = None
    status: ReprintStatus
    requested_at: datetime
    processed_by_name: str | None = None
    processed_at: datetime | None = None
    notes: str | None = None


class ReprintApprovalResponse(BaseModel):
    """Approved requests with their labels, in request order."""

    approved: list[ReprintResponse]
    labels: list[str]  # one print document per request
    document: str  # all labels, one page each
