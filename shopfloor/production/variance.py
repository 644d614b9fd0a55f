"""Weight variance check against a product's expected weight."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from shopfloor.exceptions import InvalidTolerance

_HUNDRED = Decimal("100")
_ONE_DP = Decimal("0.1")


@dataclass(frozen=True)
class VarianceResult:
    """Outcome of a variance check.

    ``deviation_percent`` and ``is_over`` are only set when the measurement
    is out of range. ``min_weight``/``max_weight`` are set whenever a check
    was performed.
    """

    in_range: bool
    deviation_percent: float | None = None
    is_over: bool | None = None
    min_weight: Decimal | None = None
    max_weight: Decimal | None = None


def _decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def check_variance(measured, expected=None, tolerance_percent=None) -> VarianceResult:
    """Classify a measured weight against ``expected +/- tolerance_percent``.

    The range is inclusive at both ends. Without an expected weight or a
    tolerance (or with a non-positive expected weight) no check is performed.

    Args:
        measured: Measured weight.
        expected: Expected weight, or None.
        tolerance_percent: Allowed deviation in percent, or None.

    Returns:
        VarianceResult: Classification of the measurement.

    Raises:
        InvalidTolerance: If ``tolerance_percent`` is negative.
    """
    if tolerance_percent is not None and _decimal(tolerance_percent) < 0:
        raise InvalidTolerance(f"Tolerance cannot be negative: {tolerance_percent}")
    if expected is None or tolerance_percent is None:
        return VarianceResult(in_range=True)

    measured = _decimal(measured)
    expected = _decimal(expected)
    tolerance = _decimal(tolerance_percent)
    if expected <= 0:
        return VarianceResult(in_range=True)

    min_weight = expected * (1 - tolerance / _HUNDRED)
    max_weight = expected * (1 + tolerance / _HUNDRED)
    if min_weight <= measured <= max_weight:
        return VarianceResult(in_range=True, min_weight=min_weight, max_weight=max_weight)

    deviation = (abs(measured - expected) / expected * _HUNDRED).quantize(
        _ONE_DP, rounding=ROUND_HALF_UP
    )
    return VarianceResult(
        in_range=False,
        deviation_percent=float(deviation),
        is_over=measured > max_weight,
        min_weight=min_weight,
        max_weight=max_weight,
    )
