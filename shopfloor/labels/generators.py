"""Barcode and QR code sub-renderers.

``encode_linear_barcode`` and ``encode_qr_code`` raise ``EncodeError``
subclasses. The label engine uses the non-raising ``linear_barcode`` and
``qr_code`` wrappers so that one bad payload only blanks its own field.
"""

import base64
import io
import logging
from dataclasses import dataclass

import qrcode
from barcode import Code128
from barcode.writer import ImageWriter
from PIL import Image
from qrcode.constants import ERROR_CORRECT_M
from qrcode.exceptions import DataOverflowError

from shopfloor.exceptions import EmptyPayload, EncodeError, PayloadTooLong, UnsupportedCharacter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BarcodeOptions:
    """Code 128 rendering options.

    Attributes:
        module_width: Width of the narrowest bar in mm.
        module_height: Bar height in mm.
        quiet_zone: Blank margin left and right in mm.
        show_value: Print the payload under the bars.
        font_size: Point size of the human-readable value.
        dpi: Resolution the writer draws at.
        width: Optional target width in pixels.
        height: Optional target height in pixels.
    """

    module_width: float = 0.3
    module_height: float = 10.0
    quiet_zone: float = 2.0
    show_value: bool = True
    font_size: int = 8
    dpi: int = 300
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True)
class QrOptions:
    """QR rendering options."""

    box_size: int = 10
    border: int = 1
    size: int | None = 200  # target edge in pixels


def _check_payload(payload: str | None) -> str:
    if payload is None or not payload.strip():
        raise EmptyPayload("Nothing to encode")
    return payload


def _resize(img: Image.Image, width: int | None, height: int | None) -> Image.Image:
    if width is None and height is None:
        return img
    target = (width or img.width, height or img.height)
    if target == img.size:
        return img
    # Nearest keeps bar and module edges sharp
    return img.resize(target, Image.Resampling.NEAREST)


def encode_linear_barcode(payload: str, options: BarcodeOptions | None = None) -> Image.Image:
    """Encode ``payload`` as a Code 128 bitmap.

    Args:
        payload: Text to encode; printable ASCII only.
        options: Rendering options.

    Returns:
        Image.Image: RGB bitmap.

    Raises:
        EmptyPayload: If the payload is empty or whitespace.
        UnsupportedCharacter: If the payload has non printable-ASCII characters.
    """
    options = options or BarcodeOptions()
    payload = _check_payload(payload)
    bad = sorted({ch for ch in payload if not 32 <= ord(ch) <= 126})
    if bad:
        raise UnsupportedCharacter(f"Code 128 cannot encode {''.join(bad)!r}")

    writer = ImageWriter()
    img = Code128(payload, writer=writer).render(
        {
            "module_width": options.module_width,
            "module_height": options.module_height,
            "quiet_zone": options.quiet_zone,
            "font_size": options.font_size,
            "text_distance": 3,
            "write_text": options.show_value,
            "dpi": options.dpi,
        }
    )
    return _resize(img.convert("RGB"), options.width, options.height)


def encode_qr_code(payload: str, options: QrOptions | None = None) -> Image.Image:
    """Encode ``payload`` as a QR bitmap (error correction M).

    Raises:
        EmptyPayload: If the payload is empty or whitespace.
        PayloadTooLong: If the payload exceeds QR version 40 capacity.
    """
    options = options or QrOptions()
    payload = _check_payload(payload)

    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=options.box_size,
        border=options.border,
    )
    qr.add_data(payload)
    try:
        qr.make(fit=True)
    except DataOverflowError as e:
        raise PayloadTooLong(f"QR payload too long ({len(payload)} characters)") from e

    img = qr.make_image(fill_color="black", back_color="white").convert("RGB")
    return _resize(img, options.size, options.size)


def linear_barcode(payload: str | None, options: BarcodeOptions | None = None) -> Image.Image | None:
    """Encode a Code 128 bitmap, or log and return None on failure."""
    try:
        return encode_linear_barcode(payload, options)
    except EncodeError as e:
        logger.warning(f"Barcode not rendered: {e.message}")
        return None


def qr_code(payload: str | None, options: QrOptions | None = None) -> Image.Image | None:
    """Encode a QR bitmap, or log and return None on failure."""
    try:
        return encode_qr_code(payload, options)
    except EncodeError as e:
        logger.warning(f"QR code not rendered: {e.message}")
        return None


def image_to_png(img: Image.Image, dpi: int | None = None) -> bytes:
    """Serialize a bitmap as PNG bytes."""
    buffer = io.BytesIO()
    if dpi:
        img.save(buffer, format="PNG", dpi=(dpi, dpi))
    else:
        img.save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_uri(img: Image.Image) -> str:
    """Embed a bitmap as a ``data:image/png`` URI."""
    return "data:image/png;base64," + base64.b64encode(image_to_png(img)).decode("ascii")


def generate_barcode_png(data: str, show_value: bool = True) -> bytes:
    """Generate a Code 128 barcode as PNG bytes.

    Raises:
        EncodeError: If the payload cannot be encoded.
    """
    return image_to_png(encode_linear_barcode(data, BarcodeOptions(show_value=show_value)))


def generate_qr_png(data: str, size: int = 200) -> bytes:
    """Generate a QR code as PNG bytes.

    Raises:
        EncodeError: If the payload cannot be encoded.
    """
    return image_to_png(encode_qr_code(data, QrOptions(size=size)))
