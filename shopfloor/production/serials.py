"""Serial number and barcode payload formatting."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from shopfloor.exceptions import InvalidSequence

logger = logging.getLogger(__name__)

DEFAULT_OPERATOR_CODE = "00"
DEFAULT_MACHINE_CODE = "M1"

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class UnitIdentifiers:
    """The two printed identifiers of one produced unit."""

    serial_number: str
    barcode_payload: str


def _require_positive(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidSequence(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidSequence(f"{name} must be positive, got {value}")
    return value


def _quantity(value) -> Decimal:
    try:
        quantity = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidSequence(f"Quantity is not a number: {value!r}") from e
    if not quantity.is_finite():
        raise InvalidSequence(f"Quantity is not a number: {value!r}")
    return quantity.quantize(_CENTS, rounding=ROUND_HALF_UP)


def to_production_time(timestamp: datetime, timezone: str | None = None) -> datetime:
    """Convert an aware timestamp into the production timezone.

    Naive timestamps are returned unchanged. An empty ``timezone`` means the
    local time of the running process.
    """
    if timestamp.tzinfo is None:
        return timestamp
    if not timezone:
        return timestamp.astimezone()
    try:
        return timestamp.astimezone(ZoneInfo(timezone))
    except ZoneInfoNotFoundError:
        logger.warning(f"Unknown production timezone {timezone!r}, using local time")
        return timestamp.astimezone()


def format_serial_number(
    operator_code: str | None,
    machine_code: str | None,
    timestamp: datetime,
    operator_sequence: int,
    timezone: str | None = None,
) -> str:
    """Build the human-readable serial ``OP-MACHINE-DDMMYY-SSSSS-HHMM``.

    Args:
        operator_code: Operator short code; ``"00"`` when empty.
        machine_code: Machine short code; ``"M1"`` when empty.
        timestamp: Production time.
        operator_sequence: Position of the unit within the assignment.
        timezone: Production timezone for aware timestamps.

    Returns:
        str: Serial number, e.g. ``07-M2-040125-00003-0915``.

    Raises:
        InvalidSequence: If ``operator_sequence`` is not a positive integer.
    """
    operator_sequence = _require_positive("Operator sequence", operator_sequence)
    local = to_production_time(timestamp, timezone)
    operator = operator_code or DEFAULT_OPERATOR_CODE
    machine = machine_code or DEFAULT_MACHINE_CODE
    return (
        f"{operator}-{machine}-{local:%d%m%y}-{operator_sequence:05d}-{local:%H%M}"
    )


def format_barcode_payload(
    global_sequence: int,
    product_code: str,
    product_sequence: int,
    quantity,
) -> str:
    """Build the machine-readable payload ``GGGGGGGG:CODE:PPPPPP:Q.QQ``.

    Raises:
        InvalidSequence: If a sequence is not a positive integer or the
            quantity is not a number.
    """
    global_sequence = _require_positive("Global sequence", global_sequence)
    product_sequence = _require_positive("Product sequence", product_sequence)
    return (
        f"{global_sequence:08d}:{product_code}:{product_sequence:06d}:{_quantity(quantity)}"
    )


def build_unit_identifiers(
    *,
    operator_code: str | None,
    machine_code: str | None,
    timestamp: datetime,
    operator_sequence: int,
    global_sequence: int,
    product_code: str,
    product_sequence: int,
    quantity,
    timezone: str | None = None,
) -> UnitIdentifiers:
    """Format both identifiers of a unit from the same inputs."""
    return UnitIdentifiers(
        serial_number=format_serial_number(
            operator_code, machine_code, timestamp, operator_sequence, timezone
        ),
        barcode_payload=format_barcode_payload(
            global_sequence, product_code, product_sequence, quantity
        ),
    )
