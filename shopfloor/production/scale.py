"""Weighing scale reader (network scale bridge over TCP)."""

import logging
import re
import socket
from dataclasses import dataclass
from decimal import Decimal

from shopfloor.config import Settings
from shopfloor.exceptions import ScaleUnavailable

logger = logging.getLogger(__name__)

# e.g. CAS indicators send "ST,GS,   12.34 kg"
_WEIGHT_PATTERN = re.compile(r"(\d+\.\d+)")
_FRAME_SIZE = 1024


@dataclass(frozen=True)
class ScaleReading:
    """One weight frame read from the scale."""

    weight: Decimal
    unit: str
    raw: str
    source: str


def parse_scale_reading(raw: str) -> Decimal | None:
    """Extract the first decimal number from a raw scale frame.

    Returns:
        Decimal | None: The weight, or None if the frame has no decimal number.
    """
    match = _WEIGHT_PATTERN.search(raw)
    if match is None:
        return None
    return Decimal(match.group(1))


def read_scale_weight(settings: Settings) -> ScaleReading:
    """Read one frame from the configured scale.

    Args:
        settings: Application settings with ``scale_host``/``scale_port``.

    Returns:
        ScaleReading: Parsed weight.

    Raises:
        ScaleUnavailable: If no scale is configured, the connection fails or
            the frame carries no weight.
    """
    if not settings.scale_host:
        raise ScaleUnavailable("Scale not configured")

    source = f"{settings.scale_host}:{settings.scale_port}"
    logger.info(f"Reading scale at {source}")
    try:
        with socket.create_connection(
            (settings.scale_host, settings.scale_port), timeout=settings.scale_timeout
        ) as conn:
            data = conn.recv(_FRAME_SIZE)
    except OSError as e:
        logger.error(f"Scale connection error at {source}: {e}")
        raise ScaleUnavailable(f"Scale not reachable at {source}") from e

    if not data:
        raise ScaleUnavailable("No data from scale")

    raw = data.decode("ascii", errors="replace").strip()
    logger.debug(f"Raw scale data: {raw!r}")
    weight = parse_scale_reading(raw)
    if weight is None:
        raise ScaleUnavailable(f"Unreadable scale frame: {raw!r}")
    return ScaleReading(weight=weight, unit="kg", raw=raw, source=source)
