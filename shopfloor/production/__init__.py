"""Production recording: counters, serial formatting and weight checks."""

from shopfloor.production.counters import SequenceAllocator, next_for_product, next_global
from shopfloor.production.serials import (
    UnitIdentifiers,
    build_unit_identifiers,
    format_barcode_payload,
    format_serial_number,
)
from shopfloor.production.variance import VarianceResult, check_variance

__all__ = [
    "SequenceAllocator",
    "UnitIdentifiers",
    "VarianceResult",
    "build_unit_identifiers",
    "check_variance",
    "format_barcode_payload",
    "format_serial_number",
    "next_for_product",
    "next_global",
]
