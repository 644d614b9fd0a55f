"""Tests for barcode and QR code generation."""

import io

import pytest
from PIL import Image

from shopfloor.exceptions import EmptyPayload, PayloadTooLong, UnsupportedCharacter
from shopfloor.labels.generators import (
    BarcodeOptions,
    QrOptions,
    encode_linear_barcode,
    encode_qr_code,
    generate_barcode_png,
    generate_qr_png,
    linear_barcode,
    png_data_uri,
    qr_code,
)

PAYLOAD = "00000152:2770:000044:1.25"


class TestLinearBarcode:
    """Tests for Code 128 encoding."""

    def test_encodes_payload(self):
        """A production payload encodes to an RGB bitmap."""
        img = encode_linear_barcode(PAYLOAD)
        assert img.mode == "RGB"
        assert img.width > img.height

    def test_target_size(self):
        """Width and height options resize the bitmap."""
        img = encode_linear_barcode(PAYLOAD, BarcodeOptions(width=400, height=120))
        assert img.size == (400, 120)

    @pytest.mark.parametrize("payload", ["", "   ", None])
    def test_empty(self, payload):
        """Empty payloads are rejected."""
        with pytest.raises(EmptyPayload):
            encode_linear_barcode(payload)

    def test_unsupported_character(self):
        """Non-ASCII text cannot be encoded."""
        with pytest.raises(UnsupportedCharacter):
            encode_linear_barcode("ÄBC-1")

    def test_wrapper_returns_none(self):
        """The non-raising wrapper blanks bad payloads."""
        assert linear_barcode("") is None
        assert linear_barcode("ÄBC") is None
        assert linear_barcode(PAYLOAD) is not None


class TestQrCode:
    """Tests for QR encoding."""

    def test_encodes_square(self):
        """QR codes are square at the requested size."""
        img = encode_qr_code(PAYLOAD, QrOptions(size=150))
        assert img.size == (150, 150)

    def test_unicode_allowed(self):
        """QR codes take any text."""
        assert encode_qr_code("Größe 40\" – Normal White") is not None

    def test_too_long(self):
        """Payloads over QR capacity are rejected."""
        with pytest.raises(PayloadTooLong):
            encode_qr_code("x" * 5000)

    def test_wrapper_returns_none(self):
        """The non-raising wrapper blanks bad payloads."""
        assert qr_code("x" * 5000) is None
        assert qr_code(None) is None


class TestPngHelpers:
    """Tests for PNG output."""

    def test_barcode_png(self):
        """Barcode PNG bytes carry the PNG signature."""
        data = generate_barcode_png(PAYLOAD, show_value=False)
        assert data[:8] == b"\x89PNG\r\n\x1a\n"

    def test_qr_png(self):
        """QR PNG bytes decode to the requested size."""
        data = generate_qr_png(PAYLOAD, size=120)
        assert Image.open(io.BytesIO(data)).size == (120, 120)

    def test_data_uri(self):
        """Bitmaps embed as base64 data URIs."""
        uri = png_data_uri(Image.new("RGB", (2, 2), "white"))
        assert uri.startswith("data:image/png;base64,")
