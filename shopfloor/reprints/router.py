"""API router for reprint requests."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from shopfloor.db.models import ReprintStatus
from shopfloor.dependencies import CurrentManager, CurrentUser, DbSession
from shopfloor.reprints.schemas import (
    ReprintApprovalResponse,
    ReprintCreate,
    ReprintDecision,
    ReprintResponse,
)
from shopfloor.reprints.service import ReprintService, get_reprint_service

router = APIRouter()


def get_service(
    db: DbSession,
    current_user: CurrentUser,
) -> ReprintService:
    """Get reprint service dependency."""
    return get_reprint_service(db, current_user)


def get_review_service(
    db: DbSession,
    current_user: CurrentManager,
) -> ReprintService:
    """Get reprint service dependency for reviewers."""
    return get_reprint_service(db, current_user)


@router.post("", response_model=ReprintResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    data: ReprintCreate,
    service: Annotated[ReprintService, Depends(get_service)],
):
    """Request a reprint of a produced unit's label."""
    request = service.create_request(data)
    return service._request_to_response(service.get_request(request.id))


@router.get("", response_model=list[ReprintResponse])
async def list_requests(
    service: Annotated[ReprintService, Depends(get_service)],
    status: ReprintStatus | None = Query(ReprintStatus.PENDING),
):
    """List reprint requests, newest first (pending by default)."""
    return [service._request_to_response(r) for r in service.list_requests(status)]


@router.get("/history", response_model=list[ReprintResponse])
async def list_history(
    service: Annotated[ReprintService, Depends(get_review_service)],
    limit: int = Query(100, ge=1, le=500),
):
    """List processed reprint requests."""
    return [service._request_to_response(r) for r in service.history(limit)]


@router.get("/{request_id}", response_model=ReprintResponse)
async def get_request(
    request_id: str,
    service: Annotated[ReprintService, Depends(get_service)],
):
    """Get a reprint request by ID."""
    request = service.get_request(request_id)
    if not request:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reprint request not found",
        )
    return service._request_to_response(request)


@router.post("/approve", response_model=ReprintApprovalResponse)
async def approve_requests(
    data: ReprintDecision,
    service: Annotated[ReprintService, Depends(get_review_service)],
):
    """Approve pending requests and return their labels in request order."""
    return service.approve(data.ids, data.notes)


@router.post("/reject", response_model=list[ReprintResponse])
async def reject_requests(
    data: ReprintDecision,
    service: Annotated[ReprintService, Depends(get_review_service)],
):
    """Reject pending requests."""
    return [service._request_to_response(r) for r in service.reject(data.ids, data.notes)]
