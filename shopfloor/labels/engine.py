"""Label template engine.

Renders a ``LabelConfiguration`` against a mapping of field values onto one
of four targets:

* ``PREVIEW``: a positioned tree of styled boxes for the designer and the
  operator screen.
* ``PRINT``: a self-contained HTML document sized to the label at zero margin.
* ``PNG``: a Pillow raster (300 DPI unless told otherwise).
* ``PDF``: the PNG raster placed on a ReportLab page of the label's size.

All geometry comes from :mod:`shopfloor.labels.layout`.
"""

import io
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import reportlab
from jinja2 import Environment, FileSystemLoader, select_autoescape
from PIL import Image, ImageColor, ImageDraw, ImageFont
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from shopfloor.labels.generators import (
    BarcodeOptions,
    QrOptions,
    image_to_png,
    linear_barcode,
    png_data_uri,
    qr_code,
)
from shopfloor.labels.layout import (
    PREVIEW_DPI,
    Box,
    ResolvedField,
    drawable_fields,
    fit_within,
    mm_to_px,
    resolve_content,
    resolve_field,
    resolve_page,
)
from shopfloor.labels.schemas import FieldKind, LabelConfiguration, LabelField, RenderTarget

logger = logging.getLogger(__name__)

DEFAULT_RASTER_DPI = 300
# Code bitmaps are drawn at this density and scaled into their boxes
CODE_DPI = 300
LINE_HEIGHT = 1.2

_FONT_WEIGHTS = {"normal": "400", "semibold": "600", "bold": "700"}
_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
_REPORTLAB_FONTS = Path(reportlab.__file__).resolve().parent / "fonts"


def _px(value: float) -> str:
    return f"{value:.2f}px"


def _css(style: dict[str, str]) -> str:
    return " ".join(f"{k}: {v};" for k, v in style.items())


_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)
_env.filters["css"] = _css
_env.filters["px"] = _px


@dataclass
class RenderedBox:
    """One field as drawn on an HTML surface (pixels at ``PREVIEW_DPI``)."""

    field_id: str
    kind: FieldKind
    box: Box
    z_index: int
    style: dict[str, str]
    text: str | None = None
    image: str | None = None  # data URI or logo URL
    image_box: Box | None = None  # relative to the field's padding edge
    placeholder: bool = False


@dataclass
class RenderedLabel:
    """Result of a render.

    ``boxes`` is filled for ``PREVIEW`` and ``PRINT``; ``html`` for ``PRINT``;
    ``data`` holds the file bytes for ``PNG`` and ``PDF``.
    """

    target: RenderTarget
    width: float
    height: float
    dpi: int
    style: dict[str, str] = field(default_factory=dict)
    boxes: list[RenderedBox] = field(default_factory=list)
    html: str | None = None
    data: bytes | None = None

    @property
    def media_type(self) -> str:
        return {
            RenderTarget.PREVIEW: "application/json",
            RenderTarget.PRINT: "text/html",
            RenderTarget.PNG: "image/png",
            RenderTarget.PDF: "application/pdf",
        }[self.target]


# ============================================================================
# Field content
# ============================================================================


def _field_text(label_field: LabelField, values: dict, placeholders: bool) -> tuple[str | None, bool]:
    """Text of a text field and whether it is a placeholder."""
    value = values.get(label_field.id)
    if value is not None and str(value) != "":
        return str(value), False
    if placeholders:
        return label_field.name or label_field.id, True
    return None, False


def _code_bitmap(resolved: ResolvedField, values: dict) -> Image.Image | None:
    """Encode the barcode/QR payload of a field, None when it cannot be encoded."""
    label_field = resolved.field
    payload = values.get(label_field.id)
    payload = None if payload is None else str(payload)
    content_mm = resolve_content(label_field)

    if label_field.kind == FieldKind.BARCODE:
        # Leave room for the human-readable line under the bars
        text_mm = 4.0 if label_field.show_value else 0.0
        return linear_barcode(
            payload,
            BarcodeOptions(
                module_height=max(2.0, content_mm.height - text_mm),
                quiet_zone=1.0,
                show_value=label_field.show_value,
                dpi=CODE_DPI,
            ),
        )
    return qr_code(payload, QrOptions(box_size=10, border=1, size=None))


def _rgba(color: str | None) -> tuple[int, int, int, int] | None:
    if not color or color == "transparent":
        return None
    try:
        return ImageColor.getcolor(color, "RGBA")
    except ValueError:
        logger.warning(f"Ignoring invalid colour {color!r}")
        return None


# ============================================================================
# HTML surfaces (PREVIEW / PRINT)
# ============================================================================


def _box_style(resolved: ResolvedField, placeholder: bool) -> dict[str, str]:
    f = resolved.field
    style = {
        "left": _px(resolved.box.x),
        "top": _px(resolved.box.y),
        "width": _px(resolved.box.width),
        "height": _px(resolved.box.height),
        "padding": _px(resolved.padding_px),
        "z-index": str(f.z_index),
        "opacity": f"{f.opacity:g}",
        "background-color": f.background_color,
    }
    if f.kind == FieldKind.TEXT:
        style.update(
            {
                "font-family": f"'{f.font_family}', sans-serif",
                "font-size": _px(resolved.font_px),
                "font-weight": _FONT_WEIGHTS[f.font_weight],
                "color": f.color,
                "text-align": f.text_align,
            }
        )
    if f.border_width > 0:
        style["border"] = f"{_px(resolved.border_px)} solid {f.border_color}"
    elif placeholder and f.kind == FieldKind.IMAGE:
        style["border"] = "1px dashed #999999"
    if f.border_radius > 0:
        style["border-radius"] = _px(resolved.radius_px)
    if f.rotation:
        style["transform"] = f"rotate({f.rotation:g}deg)"
        style["transform-origin"] = "center center"
    if placeholder:
        style["color"] = "#999999"
    return style


def _html_box(
    resolved: ResolvedField,
    values: dict,
    placeholders: bool,
    logo_url: str | None,
) -> RenderedBox:
    f = resolved.field
    # Children of the box are positioned from its padding edge
    inner = Box(
        resolved.content.x - resolved.box.x - resolved.border_px,
        resolved.content.y - resolved.box.y - resolved.border_px,
        resolved.content.width,
        resolved.content.height,
    )
    text = image = image_box = None
    placeholder = False

    if f.kind == FieldKind.TEXT:
        text, placeholder = _field_text(f, values, placeholders)
    elif f.kind in (FieldKind.BARCODE, FieldKind.QRCODE):
        bitmap = _code_bitmap(resolved, values)
        if bitmap is not None:
            image = png_data_uri(bitmap)
            image_box = fit_within(bitmap.width, bitmap.height, inner)
    elif f.kind == FieldKind.IMAGE:
        if logo_url:
            image = logo_url
            image_box = inner
        else:
            placeholder = placeholders

    return RenderedBox(
        field_id=f.id,
        kind=f.kind,
        box=resolved.box,
        z_index=f.z_index,
        style=_box_style(resolved, placeholder),
        text=text,
        image=image,
        image_box=image_box,
        placeholder=placeholder,
    )


def _page_style(config: LabelConfiguration, page: Box) -> dict[str, str]:
    style = {
        "width": _px(page.width),
        "height": _px(page.height),
        "background-color": config.background_color,
    }
    if config.border_width > 0:
        style["border"] = f"{_px(mm_to_px(config.border_width))} solid {config.border_color}"
    return style


def _html_boxes(config: LabelConfiguration, values: dict, placeholders: bool) -> list[RenderedBox]:
    return [
        _html_box(resolve_field(f, PREVIEW_DPI), values, placeholders, config.logo_url)
        for f in drawable_fields(config.fields)
    ]


def render_print_document(
    config: LabelConfiguration,
    labels: list[list[RenderedBox]],
    title: str = "Production Label",
) -> str:
    """Render already laid-out labels into one printable HTML document."""
    page = resolve_page(config, PREVIEW_DPI)
    template = _env.get_template("label_print.html")
    return template.render(
        title=title,
        width_mm=f"{config.label_width_mm:g}",
        height_mm=f"{config.label_height_mm:g}",
        labels=[{"style": _page_style(config, page), "boxes": boxes} for boxes in labels],
    )


# ============================================================================
# Raster surface (PNG / PDF)
# ============================================================================


@lru_cache(maxsize=64)
def _load_font(weight: str, size_px: int) -> ImageFont.ImageFont:
    """Load a TrueType font, falling back to Pillow's built-in one."""
    if weight == "normal":
        candidates = ["DejaVuSans.ttf", str(_REPORTLAB_FONTS / "Vera.ttf")]
    else:
        candidates = ["DejaVuSans-Bold.ttf", str(_REPORTLAB_FONTS / "VeraBd.ttf")]

    for path in candidates:
        try:
            return ImageFont.truetype(path, size_px)
        except OSError:
            continue
    return ImageFont.load_default(size=size_px)


def _wrap_text_pil(text: str, font, max_width: float, draw: ImageDraw.ImageDraw) -> list[str]:
    """Wrap text to fit within max_width pixels, keeping explicit line breaks."""
    lines = []
    for paragraph in text.split("\n"):
        current_line = []
        for word in paragraph.split():
            test_line = " ".join(current_line + [word])
            bbox = draw.textbbox((0, 0), test_line, font=font)
            if bbox[2] <= max_width or not current_line:
                current_line.append(word)
            else:
                lines.append(" ".join(current_line))
                current_line = [word]
        lines.append(" ".join(current_line))
    return lines


def _draw_tile(
    resolved: ResolvedField,
    text: str | None,
    bitmap: Image.Image | None,
    placeholder: bool,
) -> Image.Image:
    """Draw one field (unrotated) on its own transparent tile."""
    f = resolved.field
    width = max(1, round(resolved.box.width))
    height = max(1, round(resolved.box.height))
    tile = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(tile)

    fill = _rgba(f.background_color)
    outline = _rgba(f.border_color) if f.border_width > 0 else None
    border = max(1, round(resolved.border_px)) if outline else 0
    if fill or outline:
        draw.rounded_rectangle(
            [0, 0, width - 1, height - 1],
            radius=round(resolved.radius_px),
            fill=fill,
            outline=outline,
            width=border,
        )
    elif placeholder and f.kind == FieldKind.IMAGE:
        for x in range(0, width, 8):
            draw.line([(x, 0), (min(x + 4, width), 0)], fill=(153, 153, 153, 255))
            draw.line([(x, height - 1), (min(x + 4, width), height - 1)], fill=(153, 153, 153, 255))
        for y in range(0, height, 8):
            draw.line([(0, y), (0, min(y + 4, height))], fill=(153, 153, 153, 255))
            draw.line([(width - 1, y), (width - 1, min(y + 4, height))], fill=(153, 153, 153, 255))

    content = Box(
        resolved.content.x - resolved.box.x,
        resolved.content.y - resolved.box.y,
        resolved.content.width,
        resolved.content.height,
    )

    if text is not None:
        font = _load_font(f.font_weight, max(1, round(resolved.font_px)))
        color = (153, 153, 153, 255) if placeholder else (_rgba(f.color) or (0, 0, 0, 255))
        line_height = resolved.font_px * LINE_HEIGHT
        y = content.y
        # Overflowing lines are still drawn and clipped by the tile edge
        for line in _wrap_text_pil(text, font, content.width, draw):
            line_width = draw.textlength(line, font=font)
            if f.text_align == "center":
                x = content.x + (content.width - line_width) / 2
            elif f.text_align == "right":
                x = content.x + content.width - line_width
            else:
                x = content.x
            draw.text((x, y), line, fill=color, font=font)
            y += line_height

    if bitmap is not None:
        target = fit_within(bitmap.width, bitmap.height, content)
        if target.width >= 1 and target.height >= 1:
            resample = (
                Image.Resampling.NEAREST
                if f.kind in (FieldKind.BARCODE, FieldKind.QRCODE)
                else Image.Resampling.LANCZOS
            )
            scaled = bitmap.convert("RGBA").resize(
                (round(target.width), round(target.height)), resample
            )
            tile.paste(scaled, (round(target.x), round(target.y)), scaled)

    if f.opacity < 1:
        alpha = tile.getchannel("A").point(lambda a: round(a * f.opacity))
        tile.putalpha(alpha)
    return tile


def render_raster(
    config: LabelConfiguration,
    values: dict,
    *,
    dpi: int = DEFAULT_RASTER_DPI,
    placeholders: bool = False,
    logo: Image.Image | None = None,
) -> Image.Image:
    """Rasterize a label with Pillow."""
    page = resolve_page(config, dpi)
    width = max(1, round(page.width))
    height = max(1, round(page.height))
    background = _rgba(config.background_color) or (255, 255, 255, 255)
    img = Image.new("RGB", (width, height), background[:3])

    for label_field in drawable_fields(config.fields):
        resolved = resolve_field(label_field, dpi)
        text = bitmap = None
        placeholder = False
        if label_field.kind == FieldKind.TEXT:
            text, placeholder = _field_text(label_field, values, placeholders)
        elif label_field.kind in (FieldKind.BARCODE, FieldKind.QRCODE):
            bitmap = _code_bitmap(resolved, values)
        elif label_field.kind == FieldKind.IMAGE:
            bitmap = logo
            placeholder = logo is None and placeholders

        tile = _draw_tile(resolved, text, bitmap, placeholder)
        if label_field.rotation:
            # PIL rotates counter-clockwise, CSS clockwise
            tile = tile.rotate(-label_field.rotation, expand=True, resample=Image.Resampling.BICUBIC)
        cx, cy = resolved.box.center
        img.paste(tile, (round(cx - tile.width / 2), round(cy - tile.height / 2)), tile)

    if config.border_width > 0:
        border_color = _rgba(config.border_color) or (0, 0, 0, 255)
        border = max(1, round(mm_to_px(config.border_width, dpi)))
        ImageDraw.Draw(img).rectangle(
            [0, 0, width - 1, height - 1], outline=border_color[:3], width=border
        )
    return img


def _pdf_pages(config: LabelConfiguration, rasters: list[Image.Image]) -> bytes:
    page_width = config.label_width_mm * mm
    page_height = config.label_height_mm * mm
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(page_width, page_height))

    for i, raster in enumerate(rasters):
        if i > 0:
            c.showPage()
        img_buffer = io.BytesIO(image_to_png(raster))
        c.drawImage(ImageReader(img_buffer), 0, 0, width=page_width, height=page_height)

    c.save()
    buffer.seek(0)
    return buffer.getvalue()


# ============================================================================
# Entry points
# ============================================================================


def render(
    config: LabelConfiguration,
    values: dict,
    target: RenderTarget,
    *,
    placeholders: bool | None = None,
    logo: Image.Image | None = None,
    dpi: int | None = None,
) -> RenderedLabel:
    """Render a label.

    Args:
        config: Layout to render.
        values: Field values keyed by field id.
        target: Output surface.
        placeholders: Show field names for missing text values. Defaults to
            on for ``PREVIEW`` and off for every final output.
        logo: Preloaded logo bitmap for ``PNG``/``PDF``; HTML targets use
            ``config.logo_url``.
        dpi: Raster density for ``PNG``/``PDF``.

    Returns:
        RenderedLabel: The rendered artifact.
    """
    if placeholders is None:
        placeholders = target == RenderTarget.PREVIEW

    if target in (RenderTarget.PREVIEW, RenderTarget.PRINT):
        page = resolve_page(config, PREVIEW_DPI)
        boxes = _html_boxes(config, values, placeholders)
        rendered = RenderedLabel(
            target=target,
            width=page.width,
            height=page.height,
            dpi=PREVIEW_DPI,
            style=_page_style(config, page),
            boxes=boxes,
        )
        if target == RenderTarget.PRINT:
            rendered.html = render_print_document(config, [boxes])
        return rendered

    dpi = dpi or DEFAULT_RASTER_DPI
    raster = render_raster(config, values, dpi=dpi, placeholders=placeholders, logo=logo)
    if target == RenderTarget.PNG:
        data = image_to_png(raster, dpi)
    else:
        data = _pdf_pages(config, [raster])
    return RenderedLabel(
        target=target, width=raster.width, height=raster.height, dpi=dpi, data=data
    )


def render_batch_pdf(
    config: LabelConfiguration,
    values_list: list[dict],
    *,
    logo: Image.Image | None = None,
    dpi: int = DEFAULT_RASTER_DPI,
) -> bytes:
    """Render one PDF page per set of values."""
    rasters = [render_raster(config, values, dpi=dpi, logo=logo) for values in values_list]
    return _pdf_pages(config, rasters)


def render_batch_print(config: LabelConfiguration, values_list: list[dict]) -> str:
    """Render several labels into one print document, one page each."""
    return render_print_document(
        config,
        [_html_boxes(config, values, False) for values in values_list],
        title="Production Labels",
    )
