"""Reprint request service layer."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from shopfloor.config import get_settings
from shopfloor.db.models import (
    ProductionRecord,
    ReprintRequest,
    ReprintStatus,
    User,
    UserRole,
)
from shopfloor.exceptions import InvalidStateTransition, NotFound, PersistenceFailure
from shopfloor.labels.engine import render, render_print_document
from shopfloor.labels.schemas import RenderTarget
from shopfloor.labels.service import LabelService, production_label_values
from shopfloor.reprints.schemas import ReprintApprovalResponse, ReprintCreate, ReprintResponse

logger = logging.getLogger(__name__)

settings = get_settings()


class ReprintService:
    """Service class for the reprint approval workflow."""

    def __init__(self, db: Session, user: User):
        """Initialize reprint service.

        Args:
            db: Database session.
            user: Current user.
        """
        self.db = db
        self.user = user

    @property
    def _is_reviewer(self) -> bool:
        return self.user.role in (UserRole.ADMIN, UserRole.PRODUCTION_MANAGER)

    def _query(self):
        return self.db.query(ReprintRequest).options(
            joinedload(ReprintRequest.production_record).joinedload(ProductionRecord.item),
            joinedload(ReprintRequest.production_record).joinedload(ProductionRecord.machine),
            joinedload(ReprintRequest.operator),
            joinedload(ReprintRequest.processed_by),
        )

    def _request_to_response(self, request: ReprintRequest) -> ReprintResponse:
        """Convert request model to response schema."""
        record = request.production_record
        return ReprintResponse(
            id=request.id,
            production_record_id=record.id,
            serial_number=record.serial_number,
            barcode_data=record.barcode_data,
            product_code=record.item.product_code,
            product_name=record.item.product_name,
            weight_kg=record.weight_kg,
            machine_code=record.machine.machine_code if record.machine else None,
            operator_id=request.operator_id,
            operator_name=request.operator.full_name if request.operator else None,
            operator_code=request.operator.employee_code if request.operator else None,
            status=request.status,
            requested_at=request.requested_at,
            processed_by_name=request.processed_by.full_name if request.processed_by else None,
            processed_at=request.processed_at,
            notes=request.notes,
        )

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise PersistenceFailure(f"Could not {action}") from e

    def create_request(self, data: ReprintCreate) -> ReprintRequest:
        """Ask for a reprint of a produced unit.

        Raises:
            NotFound: If the record does not exist or belongs to another operator.
            InvalidStateTransition: If a request for the record is already pending.
        """
        query = self.db.query(ProductionRecord).filter(
            ProductionRecord.id == data.production_record_id
        )
        if not self._is_reviewer:
            query = query.filter(ProductionRecord.operator_id == self.user.id)
        record = query.first()
        if not record:
            raise NotFound("Production record not found")

        pending = (
            self.db.query(ReprintRequest)
            .filter(
                ReprintRequest.production_record_id == record.id,
                ReprintRequest.status == ReprintStatus.PENDING,
            )
            .first()
        )
        if pending:
            raise InvalidStateTransition("A reprint of this label is already pending")

        request = ReprintRequest(
            production_record_id=record.id,
            operator_id=self.user.id,
            status=ReprintStatus.PENDING,
            requested_at=datetime.now(UTC).replace(tzinfo=None),
            notes=data.notes,
        )
        self.db.add(request)
        self._commit("create reprint request")
        self.db.refresh(request)
        logger.info(f"Reprint requested for {record.serial_number} by {self.user.email}")
        return request

    def get_request(self, request_id: str) -> ReprintRequest | None:
        query = self._query().filter(ReprintRequest.id == request_id)
        if not self._is_reviewer:
            query = query.filter(ReprintRequest.operator_id == self.user.id)
        return query.first()

    def list_requests(self, status: ReprintStatus | None = ReprintStatus.PENDING) -> list[ReprintRequest]:
        """List requests, newest first. Operators only see their own."""
        query = self._query()
        if status is not None:
            query = query.filter(ReprintRequest.status == status)
        if not self._is_reviewer:
            query = query.filter(ReprintRequest.operator_id == self.user.id)
        return query.order_by(ReprintRequest.requested_at.desc()).all()

    def history(self, limit: int = 100) -> list[ReprintRequest]:
        """Processed requests, most recently processed first."""
        return (
            self._query()
            .filter(ReprintRequest.status != ReprintStatus.PENDING)
            .order_by(ReprintRequest.processed_at.desc())
            .limit(limit)
            .all()
        )

    def _pending_in_order(self, ids: list[str]) -> list[ReprintRequest]:
        """Load pending requests in the order of ``ids``.

        Raises:
            NotFound: If any id does not exist.
            InvalidStateTransition: If any request is not pending.
        """
        ids = list(dict.fromkeys(ids))
        # Row locks hold off a concurrent reviewer until this transaction ends
        self.db.query(ReprintRequest.id).filter(ReprintRequest.id.in_(ids)).with_for_update().all()
        requests = {r.id: r for r in self._query().filter(ReprintRequest.id.in_(ids)).all()}
        missing = [i for i in ids if i not in requests]
        if missing:
            raise NotFound(f"Reprint request not found: {', '.join(missing)}")
        processed = [i for i in ids if requests[i].status != ReprintStatus.PENDING]
        if processed:
            raise InvalidStateTransition(
                f"Reprint request already processed: {', '.join(processed)}"
            )
        return [requests[i] for i in ids]

    def _mark_processed(
        self, requests: list[ReprintRequest], status: ReprintStatus, notes: str | None
    ) -> None:
        """Move pending requests to ``status`` and commit.

        The update only matches rows that are still pending, so a request
        decided by someone else in the meantime fails the whole batch.

        Raises:
            InvalidStateTransition: If any request is no longer pending.
            PersistenceFailure: If the commit fails.
        """
        ids = [r.id for r in requests]
        values = {
            "status": status,
            "processed_by_id": self.user.id,
            "processed_at": datetime.now(UTC).replace(tzinfo=None),
        }
        if notes:
            values["notes"] = notes
        updated = (
            self.db.query(ReprintRequest)
            .filter(ReprintRequest.id.in_(ids), ReprintRequest.status == ReprintStatus.PENDING)
            .update(values, synchronize_session=False)
        )
        if updated != len(ids):
            self.db.rollback()
            raise InvalidStateTransition("Reprint request was processed by another reviewer")
        self._commit(f"mark reprint requests {status.value}")

    def approve(self, ids: list[str], notes: str | None = None) -> ReprintApprovalResponse:
        """Approve pending requests and render their labels.

        Labels are rendered in parallel and returned in request order. The
        status change happens in one commit after every label rendered.
        """
        requests = self._pending_in_order(ids)
        configuration = LabelService(self.db).get_active_configuration()
        # Build values here: the session must not be used from worker threads
        values_list = [
            production_label_values(r.production_record, configuration.company_name)
            for r in requests
        ]

        with ThreadPoolExecutor(max_workers=settings.reprint_render_workers) as executor:
            rendered = list(
                executor.map(
                    lambda values: render(configuration, values, RenderTarget.PRINT),
                    values_list,
                )
            )

        self._mark_processed(requests, ReprintStatus.APPROVED, notes)

        for request in requests:
            self.db.refresh(request)
        logger.info(f"Approved {len(requests)} reprint request(s) by {self.user.email}")

        return ReprintApprovalResponse(
            approved=[self._request_to_response(r) for r in requests],
            labels=[r.html for r in rendered],
            document=render_print_document(
                configuration, [r.boxes for r in rendered], title="Reprint Labels"
            ),
        )

    def reject(self, ids: list[str], notes: str | None = None) -> list[ReprintRequest]:
        """Reject pending requests."""
        requests = self._pending_in_order(ids)
        self._mark_processed(requests, ReprintStatus.REJECTED, notes)

        for request in requests:
            self.db.refresh(request)
        logger.info(f"Rejected {len(requests)} reprint request(s) by {self.user.email}")
        return requests


def get_reprint_service(db: Session, user: User) -> ReprintService:
    """Factory function for ReprintService."""
    return ReprintService(db, user)
