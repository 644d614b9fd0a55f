"""Tests for the weighing scale reader."""

from decimal import Decimal

import pytest

from shopfloor.config import Settings
from shopfloor.exceptions import ScaleUnavailable
from shopfloor.production import scale
from shopfloor.production.scale import parse_scale_reading, read_scale_weight


class FakeConnection:
    """Socket stand-in returning one frame."""

    def __init__(self, frame: bytes):
        self.frame = frame

    def recv(self, size):
        return self.frame[:size]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def scale_settings(**overrides) -> Settings:
    values = {"scale_host": "10.0.0.5", "scale_port": 5001, "scale_timeout": 1.0}
    values.update(overrides)
    return Settings(**values)


class TestParseScaleReading:
    """Tests for frame parsing."""

    def test_indicator_frame(self):
        """The first decimal number in the frame is the weight."""
        assert parse_scale_reading("ST,GS,   12.34 kg") == Decimal("12.34")

    def test_no_decimal(self):
        """Frames without a decimal number give None."""
        assert parse_scale_reading("ST,GS, ERR") is None
        assert parse_scale_reading("12 kg") is None


class TestReadScaleWeight:
    """Tests for reading from the scale."""

    def test_not_configured(self):
        """Without a host the scale is unavailable."""
        with pytest.raises(ScaleUnavailable):
            read_scale_weight(scale_settings(scale_host=""))

    def test_reads_frame(self, monkeypatch):
        """A good frame is parsed into a reading."""
        calls = []

        def fake_connect(address, timeout=None):
            calls.append((address, timeout))
            return FakeConnection(b"ST,GS,   12.34 kg\r\n")

        monkeypatch.setattr(scale.socket, "create_connection", fake_connect)
        reading = read_scale_weight(scale_settings())

        assert reading.weight == Decimal("12.34")
        assert reading.unit == "kg"
        assert reading.raw == "ST,GS,   12.34 kg"
        assert reading.source == "10.0.0.5:5001"
        assert calls == [(("10.0.0.5", 5001), 1.0)]

    def test_connection_error(self, monkeypatch):
        """Network errors become ScaleUnavailable."""

        def fake_connect(address, timeout=None):
            raise ConnectionRefusedError("refused")

        monkeypatch.setattr(scale.socket, "create_connection", fake_connect)
        with pytest.raises(ScaleUnavailable):
            read_scale_weight(scale_settings())

    @pytest.mark.parametrize("frame", [b"", b"ST,GS, ----"])
    def test_empty_or_unreadable_frame(self, monkeypatch, frame):
        """Empty or weightless frames are unavailable readings."""
        monkeypatch.setattr(
            scale.socket, "create_connection", lambda address, timeout=None: FakeConnection(frame)
        )
        with pytest.raises(ScaleUnavailable):
            read_scale_weight(scale_settings())
