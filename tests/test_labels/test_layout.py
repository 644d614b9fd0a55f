"""Tests for the label layout resolver."""

import pytest

from shopfloor.labels.layout import (
    Box,
    drawable_fields,
    fit_within,
    mm_to_px,
    pt_to_px,
    resolve_content,
    resolve_field,
    resolve_page,
    snap,
)
from shopfloor.labels.schemas import LabelField, LabelSettings


class TestUnits:
    """Tests for unit conversion."""

    def test_one_inch(self):
        """25.4 mm is one inch."""
        assert mm_to_px(25.4, 96) == pytest.approx(96)
        assert mm_to_px(25.4, 300) == pytest.approx(300)

    def test_points(self):
        """72 pt is one inch."""
        assert pt_to_px(72, 96) == pytest.approx(96)
        assert pt_to_px(12, 96) == pytest.approx(16)


class TestResolve:
    """Tests for page and field resolution."""

    def test_page_size(self):
        """A 100x60 mm label at 300 DPI."""
        page = resolve_page(LabelSettings(label_width_mm=100, label_height_mm=60), 300)
        assert page.width == pytest.approx(1181.1, abs=0.1)
        assert page.height == pytest.approx(708.66, abs=0.01)

    def test_field_scales_with_dpi(self):
        """The same field resolves proportionally at any density."""
        label_field = LabelField(id="f", x=10, y=5, width=20, height=8, padding=1)
        low = resolve_field(label_field, 96)
        high = resolve_field(label_field, 300)
        assert high.box.width / low.box.width == pytest.approx(300 / 96)
        assert low.content.x - low.box.x == pytest.approx(mm_to_px(1, 96))
        assert low.content.width == pytest.approx(mm_to_px(18, 96))

    def test_border_insets_content(self):
        """Content starts inside both the border and the padding."""
        label_field = LabelField(id="f", width=20, height=8, border_width=1, padding=0.5)
        resolved = resolve_field(label_field, 96)
        assert resolved.content.x - resolved.box.x == pytest.approx(mm_to_px(1.5, 96))
        assert resolved.content.width == pytest.approx(mm_to_px(17, 96))
        assert resolved.padding_px == pytest.approx(mm_to_px(0.5, 96))
        assert resolve_content(label_field).height == pytest.approx(5)

    def test_padding_never_negative(self):
        """Padding wider than the box leaves an empty content box."""
        resolved = resolve_field(LabelField(id="f", width=1, height=1, padding=3))
        assert resolved.content.width == 0
        assert resolved.content.height == 0


class TestDrawableFields:
    """Tests for draw order and filtering."""

    def test_hidden_and_disabled_dropped(self):
        """Fields with visible or enabled off are not drawn."""
        fields = [
            LabelField(id="a"),
            LabelField(id="b", visible=False),
            LabelField(id="c", enabled=False),
        ]
        assert [f.id for f in drawable_fields(fields)] == ["a"]

    def test_stable_z_order(self):
        """Fields sort by z_index, keeping list order on ties."""
        fields = [
            LabelField(id="top", z_index=5),
            LabelField(id="first", z_index=1),
            LabelField(id="second", z_index=1),
            LabelField(id="bottom", z_index=-2),
        ]
        assert [f.id for f in drawable_fields(fields)] == ["bottom", "first", "second", "top"]


class TestFitWithin:
    """Tests for aspect-preserving fit."""

    def test_wide_content_centered_vertically(self):
        """Wide content fills the width and is centred vertically."""
        fitted = fit_within(200, 50, Box(0, 0, 100, 100))
        assert (fitted.width, fitted.height) == (100, 25)
        assert fitted.y == pytest.approx(37.5)

    def test_degenerate(self):
        """Zero-sized content or box gives an empty box."""
        assert fit_within(0, 10, Box(1, 2, 10, 10)).width == 0
        assert fit_within(10, 10, Box(1, 2, 0, 10)).height == 0


class TestSnap:
    """Tests for grid snapping."""

    @pytest.mark.parametrize(
        "value,grid,expected",
        [(3.4, 1.0, 3.0), (3.6, 1.0, 4.0), (7.4, 2.5, 7.5), (3.3, 0, 3.3)],
    )
    def test_snap(self, value, grid, expected):
        """Values round to the nearest grid step."""
        assert snap(value, grid) == pytest.approx(expected)


class TestRotation:
    """Tests for rotation normalization."""

    @pytest.mark.parametrize("rotation,expected", [(0, 0), (90, 90), (360, 0), (-90, 270), (450, 90)])
    def test_normalized(self, rotation, expected):
        """Rotation is stored within [0, 360)."""
        assert LabelField(id="f", rotation=rotation).rotation == expected
