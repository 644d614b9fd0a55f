"""Production recording service layer."""

import logging
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from shopfloor.config import get_settings
from shopfloor.db.models import (
    AssignmentStatus,
    Item,
    Machine,
    OperatorAssignment,
    ProductionRecord,
    User,
    UserRole,
)
from shopfloor.exceptions import (
    InvalidStateTransition,
    NotFound,
    PersistenceFailure,
    ShopfloorError,
    WeightOutOfRange,
)
from shopfloor.labels.service import LabelService
from shopfloor.production.counters import SequenceAllocator, allocation_lock
from shopfloor.production.schemas import (
    ProductionRecordResponse,
    RecordProductionRequest,
    RecordProductionResponse,
    SerialSuggestion,
)
from shopfloor.production.serials import build_unit_identifiers, to_production_time
from shopfloor.production.variance import VarianceResult, check_variance

logger = logging.getLogger(__name__)

settings = get_settings()


class ProductionService:
    """Service class for operator production recording."""

    def __init__(self, db: Session, user: User):
        """Initialize production service.

        Args:
            db: Database session.
            user: Current user.
        """
        self.db = db
        self.user = user

    @property
    def _sees_all(self) -> bool:
        return self.user.role in (UserRole.ADMIN, UserRole.PRODUCTION_MANAGER)

    def list_active_assignments(self) -> list[OperatorAssignment]:
        """List the current operator's active assignments, oldest first."""
        return (
            self.db.query(OperatorAssignment)
            .options(joinedload(OperatorAssignment.item))
            .filter(
                OperatorAssignment.operator_id == self.user.id,
                OperatorAssignment.status == AssignmentStatus.ACTIVE,
            )
            .order_by(OperatorAssignment.assigned_at)
            .all()
        )

    def check_item_variance(self, item_id: str, weight_kg: Decimal) -> VarianceResult:
        """Check a weight against a product's expected weight and tolerance.

        Raises:
            NotFound: If the product does not exist.
        """
        item = self.db.query(Item).filter(Item.id == item_id).first()
        if not item:
            raise NotFound("Item not found")
        return check_variance(weight_kg, item.expected_weight_kg, item.weight_tolerance_percentage)

    def _get_assignment(self, assignment_id: str) -> OperatorAssignment:
        assignment = (
            self.db.query(OperatorAssignment)
            .options(joinedload(OperatorAssignment.item))
            .filter(
                OperatorAssignment.id == assignment_id,
                OperatorAssignment.operator_id == self.user.id,
            )
            .first()
        )
        if not assignment:
            raise NotFound("Assignment not found")
        if assignment.status != AssignmentStatus.ACTIVE:
            raise InvalidStateTransition("Assignment is already completed")
        return assignment

    def _get_machine(self, machine_id: str | None) -> Machine | None:
        if not machine_id:
            return None
        machine = self.db.query(Machine).filter(Machine.id == machine_id).first()
        if not machine or not machine.is_active:
            raise NotFound("Machine not found")
        return machine

    def record_production(self, data: RecordProductionRequest) -> RecordProductionResponse:
        """Record one produced unit and render its label.

        Counters, the production record and the assignment progress are
        written in a single transaction: either all of them change or none.

        Args:
            data: Assignment, measured weight and optional machine.

        Returns:
            RecordProductionResponse: The recorded unit and its print document.

        Raises:
            NotFound: If the assignment or machine does not exist.
            InvalidStateTransition: If the assignment is completed.
            WeightOutOfRange: If the weight is outside tolerance and not confirmed.
            PersistenceFailure: If the transaction fails.
        """
        assignment = self._get_assignment(data.assignment_id)
        item = assignment.item
        machine = self._get_machine(data.machine_id)

        variance = check_variance(
            data.weight_kg, item.expected_weight_kg, item.weight_tolerance_percentage
        )
        if not variance.in_range and not data.confirm_out_of_range:
            direction = "over" if variance.is_over else "under"
            raise WeightOutOfRange(
                f"Weight {data.weight_kg} kg is {variance.deviation_percent}% {direction} "
                f"the expected {item.expected_weight_kg} kg",
                deviation_percent=variance.deviation_percent,
                is_over=variance.is_over,
            )

        # Wall-clock time on the floor; serials and stored timestamps both use it
        produced_at = to_production_time(
            datetime.now(UTC), settings.production_timezone
        ).replace(tzinfo=None)

        with allocation_lock():
            try:
                allocator = SequenceAllocator(self.db)
                global_serial = allocator.allocate_global()
                item_serial = allocator.allocate_for_item(item.id)
                operator_sequence = assignment.quantity_produced + 1

                identifiers = build_unit_identifiers(
                    operator_code=self.user.employee_code or settings.default_operator_code,
                    machine_code=machine.machine_code if machine else settings.default_machine_code,
                    timestamp=produced_at,
                    operator_sequence=operator_sequence,
                    global_sequence=global_serial,
                    product_code=item.product_code,
                    product_sequence=item_serial,
                    quantity=data.weight_kg,
                )

                record = ProductionRecord(
                    serial_number=identifiers.serial_number,
                    barcode_data=identifiers.barcode_payload,
                    operator_id=self.user.id,
                    machine_id=machine.id if machine else None,
                    item_id=item.id,
                    assignment_id=assignment.id,
                    weight_kg=data.weight_kg,
                    weight_out_of_range=not variance.in_range,
                    global_serial=global_serial,
                    item_serial=item_serial,
                    operator_sequence=operator_sequence,
                    produced_at=produced_at,
                )
                self.db.add(record)

                assignment.quantity_produced = operator_sequence
                if operator_sequence >= assignment.quantity_assigned:
                    assignment.status = AssignmentStatus.COMPLETED
                    assignment.completed_at = produced_at

                self.db.commit()
            except ShopfloorError:
                self.db.rollback()
                raise
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to record production for assignment {assignment.id}: {e}")
                raise PersistenceFailure("Production could not be recorded") from e

        self.db.refresh(record)
        logger.info(
            f"Recorded {record.serial_number} (global {global_serial}, "
            f"{item.product_code} #{item_serial}) by {self.user.email}"
        )

        return RecordProductionResponse(
            record=ProductionRecordResponse.model_validate(record),
            assignment_status=assignment.status,
            quantity_produced=assignment.quantity_produced,
            label_html=self._render_label(record),
        )

    def _render_label(self, record: ProductionRecord) -> str | None:
        # The unit is already committed; a label problem must not hide that
        try:
            return LabelService(self.db).label_for_record(record)
        except Exception:
            logger.exception(f"Label rendering failed for {record.serial_number}")
            return None

    def get_record_by_serial(self, serial_number: str) -> ProductionRecord | None:
        """Get a production record by serial number.

        Operators only see their own units.
        """
        query = (
            self.db.query(ProductionRecord)
            .options(
                joinedload(ProductionRecord.item),
                joinedload(ProductionRecord.machine),
                joinedload(ProductionRecord.operator),
            )
            .filter(ProductionRecord.serial_number == serial_number)
        )
        if not self._sees_all:
            query = query.filter(ProductionRecord.operator_id == self.user.id)
        return query.first()

    def search_serials(self, prefix: str, limit: int = 10) -> list[SerialSuggestion]:
        """Autocomplete serial numbers starting with ``prefix``, newest first."""
        prefix = prefix.strip()
        if not prefix:
            return []
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        query = (
            self.db.query(ProductionRecord)
            .options(joinedload(ProductionRecord.item))
            .filter(ProductionRecord.serial_number.like(f"{escaped}%", escape="\\"))
        )
        if not self._sees_all:
            query = query.filter(ProductionRecord.operator_id == self.user.id)
        records = query.order_by(ProductionRecord.produced_at.desc()).limit(limit).all()
        return [
            SerialSuggestion(
                id=r.id,
                serial_number=r.serial_number,
                product_code=r.item.product_code,
                produced_at=r.produced_at,
            )
            for r in records
        ]


def get_production_service(db: Session, user: User) -> ProductionService:
    """Factory function for ProductionService."""
    return ProductionService(db, user)
