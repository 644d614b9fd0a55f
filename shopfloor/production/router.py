"""Production API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from shopfloor.config import get_settings
from shopfloor.dependencies import CurrentUser, DbSession
from shopfloor.production.scale import read_scale_weight
from shopfloor.production.schemas import (
    AssignmentResponse,
    ProductionRecordResponse,
    RecordProductionRequest,
    RecordProductionResponse,
    ScaleReadingResponse,
    SerialSuggestion,
    VarianceCheckRequest,
    VarianceResponse,
)
from shopfloor.production.service import ProductionService, get_production_service

router = APIRouter()


def get_service(
    db: DbSession,
    current_user: CurrentUser,
) -> ProductionService:
    """Get production service dependency."""
    return get_production_service(db, current_user)


@router.get("/assignments", response_model=list[AssignmentResponse])
async def list_assignments(
    service: Annotated[ProductionService, Depends(get_service)],
):
    """List the current operator's active assignments."""
    return service.list_active_assignments()


@router.post(
    "/records", response_model=RecordProductionResponse, status_code=status.HTTP_201_CREATED
)
async def record_production(
    data: RecordProductionRequest,
    service: Annotated[ProductionService, Depends(get_service)],
):
    """Record one produced unit.

    Returns the recorded unit with its serial number, barcode payload and
    print document. An out-of-tolerance weight is rejected with 409 unless
    ``confirm_out_of_range`` is set.
    """
    return service.record_production(data)


@router.get("/records/{serial_number}", response_model=ProductionRecordResponse)
async def get_record(
    serial_number: str,
    service: Annotated[ProductionService, Depends(get_service)],
):
    """Get a production record by serial number."""
    record = service.get_record_by_serial(serial_number)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Production record not found",
        )
    return record


@router.get("/serials", response_model=list[SerialSuggestion])
async def search_serials(
    service: Annotated[ProductionService, Depends(get_service)],
    q: str = Query(..., min_length=1, max_length=64),
    limit: int = Query(10, ge=1, le=50),
):
    """Autocomplete serial numbers."""
    return service.search_serials(q, limit=limit)


@router.post("/variance", response_model=VarianceResponse)
async def check_variance(
    data: VarianceCheckRequest,
    service: Annotated[ProductionService, Depends(get_service)],
):
    """Check a weight against the product's expected weight before recording."""
    return service.check_item_variance(data.item_id, data.weight_kg)


@router.get("/scale", response_model=ScaleReadingResponse)
def read_scale(current_user: CurrentUser):
    """Read the current weight from the configured scale."""
    return read_scale_weight(get_settings())
