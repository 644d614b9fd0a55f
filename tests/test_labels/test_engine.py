"""Tests for the label template engine."""

import io
import random

import pytest
from PIL import Image

from shopfloor.labels.engine import render, render_batch_pdf, render_batch_print, render_raster
from shopfloor.labels.layout import PREVIEW_DPI, mm_to_px, resolve_field
from shopfloor.labels.presets import default_configuration
from shopfloor.labels.schemas import FieldKind, LabelConfiguration, LabelField, RenderTarget

VALUES = {
    "company_name": "Acme Textiles",
    "item_name": "Fusible Interlining",
    "item_code": "2770",
    "length": "65 yds",
    "width": '40"',
    "color": "Normal White",
    "weight": "1.25 kg",
    "serial_no": "07-M2-040125-00003-0915",
    "barcode": "00000152:2770:000044:1.25",
    "qrcode": "00000152:2770:000044:1.25",
}


def small_config(*fields: LabelField, **settings) -> LabelConfiguration:
    settings.setdefault("label_width_mm", 50)
    settings.setdefault("label_height_mm", 30)
    return LabelConfiguration(fields=list(fields), **settings)


def random_field(rng: random.Random, field_id: str, **overrides) -> LabelField:
    attrs = {
        "id": field_id,
        "name": field_id,
        "kind": rng.choice(list(FieldKind)),
        "x": rng.uniform(-10, 60),
        "y": rng.uniform(-10, 40),
        "width": rng.uniform(0, 50),
        "height": rng.uniform(0, 30),
        "rotation": rng.uniform(-720, 720),
        "font_size": rng.uniform(1, 30),
        "font_weight": rng.choice(["normal", "semibold", "bold"]),
        "text_align": rng.choice(["left", "center", "right"]),
        "border_width": rng.choice([0, 0.3, 1]),
        "border_radius": rng.choice([0, 1]),
        "padding": rng.uniform(0, 3),
        "opacity": rng.random(),
        "z_index": rng.randint(-5, 5),
        "background_color": rng.choice(["transparent", "#ffeeaa", "red"]),
    }
    attrs.update(overrides)
    return LabelField(**attrs)


class TestHiddenFields:
    """Hidden or disabled fields never appear in any output."""

    @pytest.mark.parametrize("seed", range(25))
    def test_hidden_field_absent_everywhere(self, seed):
        """A hidden field leaves no trace in preview boxes or print HTML."""
        rng = random.Random(seed)
        hidden_id = f"hidden{seed:04d}zz"
        secret = f"SECRET-{seed}-{rng.randint(10**6, 10**7)}"
        flag = rng.choice([{"visible": False}, {"enabled": False}])
        hidden = random_field(rng, hidden_id, kind=FieldKind.TEXT, **flag)
        others = [random_field(rng, f"other{i}") for i in range(3)]
        config = small_config(*others, hidden)
        values = {hidden_id: secret, **{f.id: f"value {f.id}" for f in others}}

        preview = render(config, values, RenderTarget.PREVIEW)
        assert hidden_id not in [box.field_id for box in preview.boxes]
        assert all(box.text != secret for box in preview.boxes)

        printed = render(config, values, RenderTarget.PRINT)
        assert hidden_id not in printed.html
        assert secret not in printed.html

    def test_hidden_field_not_rasterized(self):
        """A hidden opaque field does not change the raster."""
        visible = LabelField(id="text", x=2, y=2, width=30, height=6)
        blocker = LabelField(
            id="blocker", x=0, y=0, width=50, height=30,
            background_color="#ff0000", z_index=10, visible=False,
        )
        with_hidden = render_raster(small_config(visible, blocker), {"text": "A"}, dpi=72)
        without = render_raster(small_config(visible), {"text": "A"}, dpi=72)
        assert with_hidden.tobytes() == without.tobytes()


class TestPreview:
    """Tests for the preview tree."""

    def test_boxes_follow_z_order(self):
        """Boxes come out bottom to top."""
        config = small_config(
            LabelField(id="a", z_index=3),
            LabelField(id="b", z_index=1),
            LabelField(id="c", z_index=1),
        )
        preview = render(config, {"a": "A", "b": "B", "c": "C"}, RenderTarget.PREVIEW)
        assert [box.field_id for box in preview.boxes] == ["b", "c", "a"]

    def test_placeholders_default_on(self):
        """Preview shows field names for missing values."""
        config = small_config(LabelField(id="weight", name="Weight"))
        box = render(config, {}, RenderTarget.PREVIEW).boxes[0]
        assert box.text == "Weight"
        assert box.placeholder is True

    def test_print_has_no_placeholders(self):
        """Final output leaves missing values blank."""
        config = small_config(LabelField(id="weight", name="Weight"))
        printed = render(config, {}, RenderTarget.PRINT)
        assert printed.boxes[0].text is None
        assert "Weight" not in printed.html

    def test_empty_barcode_does_not_block_label(self):
        """A barcode that cannot be encoded blanks only its own field."""
        config = small_config(
            LabelField(id="barcode", kind=FieldKind.BARCODE, y=10, height=15),
            LabelField(id="item_code", y=0),
            LabelField(id="weight", y=5),
        )
        values = {"barcode": "", "item_code": "2770", "weight": "1.25 kg"}
        for target in (RenderTarget.PREVIEW, RenderTarget.PRINT):
            rendered = render(config, values, target)
            boxes = {box.field_id: box for box in rendered.boxes}
            assert boxes["barcode"].image is None
            assert boxes["item_code"].text == "2770"
            assert boxes["weight"].text == "1.25 kg"

        png = render(config, values, RenderTarget.PNG, dpi=100)
        assert png.data[:8] == b"\x89PNG\r\n\x1a\n"

    def test_codes_embedded_as_data_uri(self):
        """Barcode and QR fields carry PNG data URIs fitted into the box."""
        config = small_config(
            LabelField(id="barcode", kind=FieldKind.BARCODE, width=45, height=12),
            LabelField(id="qrcode", kind=FieldKind.QRCODE, y=12, width=15, height=15),
        )
        preview = render(config, VALUES, RenderTarget.PREVIEW)
        for box in preview.boxes:
            assert box.image.startswith("data:image/png;base64,")
            assert box.image_box.width <= box.box.width
            assert box.image_box.height <= box.box.height

    def test_rotation_in_style(self):
        """Rotated fields carry a CSS transform."""
        config = small_config(LabelField(id="a", rotation=-90))
        box = render(config, {"a": "A"}, RenderTarget.PREVIEW).boxes[0]
        assert box.style["transform"] == "rotate(270deg)"

    def test_logo_placeholder(self):
        """An image field without a logo shows a dashed placeholder in preview."""
        config = small_config(LabelField(id="logo", kind=FieldKind.IMAGE, width=10, height=10))
        box = render(config, {}, RenderTarget.PREVIEW).boxes[0]
        assert box.placeholder is True
        assert "dashed" in box.style["border"]

    def test_logo_url_used(self):
        """An image field shows the configured logo URL."""
        config = small_config(
            LabelField(id="logo", kind=FieldKind.IMAGE, width=10, height=10),
            logo_url="/media/logo.png",
        )
        box = render(config, {}, RenderTarget.PRINT).boxes[0]
        assert box.image == "/media/logo.png"


class TestPrintDocument:
    """Tests for the print HTML."""

    def test_page_size_and_zero_margin(self):
        """The print document is sized to the label with no margin."""
        html = render(default_configuration(), VALUES, RenderTarget.PRINT).html
        assert "size: 100mm 60mm;" in html
        assert "margin: 0;" in html
        assert VALUES["serial_no"] in html
        assert "Acme Textiles" in html

    def test_values_escaped(self):
        """Field values are HTML-escaped."""
        config = small_config(LabelField(id="a"))
        html = render(config, {"a": "<b>bold</b>"}, RenderTarget.PRINT).html
        assert "<b>bold</b>" not in html
        assert "&lt;b&gt;" in html

    def test_batch_print(self):
        """A batch document has one label block per value set."""
        html = render_batch_print(default_configuration(), [VALUES, {**VALUES, "item_code": "9999"}])
        assert html.count('class="label"') == 2
        assert "9999" in html


class TestRaster:
    """Tests for PNG and PDF output."""

    def test_png_size_at_dpi(self):
        """PNG dimensions follow the label size and DPI."""
        rendered = render(default_configuration(), VALUES, RenderTarget.PNG, dpi=150)
        img = Image.open(io.BytesIO(rendered.data))
        assert img.size == (round(100 * 150 / 25.4), round(60 * 150 / 25.4))
        assert rendered.media_type == "image/png"

    def test_pdf(self):
        """PDF output starts with the PDF signature."""
        rendered = render(default_configuration(), VALUES, RenderTarget.PDF, dpi=100)
        assert rendered.data[:4] == b"%PDF"
        assert rendered.media_type == "application/pdf"

    def test_batch_pdf_pages(self):
        """A batch PDF has one page per label."""
        data = render_batch_pdf(default_configuration(), [VALUES, VALUES, VALUES], dpi=72)
        assert data[:4] == b"%PDF"
        assert data.count(b"/Type /Page") - data.count(b"/Type /Pages") == 3

    @pytest.mark.parametrize("seed", range(10))
    def test_random_layouts_rasterize(self, seed):
        """Arbitrary geometry, rotation and opacity never break rasterization."""
        rng = random.Random(seed)
        config = small_config(*[random_field(rng, f"f{i}") for i in range(6)])
        values = {f.id: VALUES["barcode"] for f in config.fields}
        img = render_raster(config, values, dpi=72)
        assert img.size == (round(50 * 72 / 25.4), round(30 * 72 / 25.4))

    def test_logo_drawn(self):
        """A supplied logo bitmap is pasted into the image field."""
        config = small_config(LabelField(id="logo", kind=FieldKind.IMAGE, width=50, height=30, padding=0))
        logo = Image.new("RGBA", (10, 10), (0, 0, 255, 255))
        img = render_raster(config, {}, dpi=72, logo=logo)
        center = img.getpixel((img.width // 2, img.height // 2))
        assert center == (0, 0, 255)


class TestSharedGeometry:
    """Every target places field content at the same offset."""

    def bordered_logo(self) -> LabelConfiguration:
        return small_config(
            LabelField(
                id="logo", kind=FieldKind.IMAGE, x=5, y=5, width=20, height=20,
                border_width=1, border_color="#000000", padding=0.5,
            ),
            logo_url="/media/logo.png",
        )

    def test_html_content_offset_includes_border(self):
        """CSS border plus padding lands on the resolved content edge."""
        config = small_config(LabelField(id="a", border_width=1, padding=0.5))
        box = render(config, {"a": "A"}, RenderTarget.PRINT).boxes[0]
        border = float(box.style["border"].split("px")[0])
        padding = float(box.style["padding"].removesuffix("px"))
        resolved = resolve_field(config.fields[0], PREVIEW_DPI)
        assert border + padding == pytest.approx(resolved.content.x - resolved.box.x, abs=0.01)
        assert border + padding == pytest.approx(mm_to_px(1.5), abs=0.01)

    def test_html_image_starts_after_padding(self):
        """Images are placed from the padding edge, past the border."""
        box = render(self.bordered_logo(), {}, RenderTarget.PREVIEW).boxes[0]
        assert box.image_box.x == pytest.approx(mm_to_px(0.5), abs=0.01)
        assert box.image_box.width == pytest.approx(mm_to_px(17), abs=0.01)

    def test_raster_content_inside_border_and_padding(self):
        """The raster leaves border and padding clear before the logo."""
        logo = Image.new("RGBA", (10, 10), (0, 0, 255, 255))
        img = render_raster(self.bordered_logo(), {}, dpi=96, logo=logo)
        field_left = round(mm_to_px(5))
        content_left = field_left + mm_to_px(1.5)
        middle = round(mm_to_px(15))
        assert img.getpixel((field_left + 1, middle)) == (0, 0, 0)
        assert img.getpixel((round(content_left) - 2, middle)) != (0, 0, 255)
        assert img.getpixel((round(content_left) + 2, middle)) == (0, 0, 255)
