"""Field layout resolver shared by every render target.

All geometry in a label document is in millimetres. Targets ask this module
for absolute boxes at their own pixel density; no target converts units on
its own.
"""

from dataclasses import dataclass

from shopfloor.labels.schemas import LabelField, LabelSettings

MM_PER_INCH = 25.4
PREVIEW_DPI = 96  # CSS pixel
POINTS_PER_INCH = 72


def mm_to_px(value_mm: float, dpi: float = PREVIEW_DPI) -> float:
    """Convert millimetres to pixels at ``dpi``."""
    return value_mm * dpi / MM_PER_INCH


def pt_to_px(value_pt: float, dpi: float = PREVIEW_DPI) -> float:
    """Convert a font size in points to pixels at ``dpi``."""
    return value_pt * dpi / POINTS_PER_INCH


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle (before rotation) in some unit."""

    x: float
    y: float
    width: float
    height: float

    def scaled(self, factor: float) -> "Box":
        return Box(self.x * factor, self.y * factor, self.width * factor, self.height * factor)

    def inset(self, amount: float) -> "Box":
        """Shrink by ``amount`` on every side, never below zero size."""
        return Box(
            self.x + amount,
            self.y + amount,
            max(0.0, self.width - 2 * amount),
            max(0.0, self.height - 2 * amount),
        )

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass(frozen=True)
class ResolvedField:
    """A field's geometry resolved for one pixel density."""

    field: LabelField
    box: Box  # outer box in pixels
    content: Box  # box minus border and padding, in pixels
    font_px: float
    border_px: float
    padding_px: float
    radius_px: float


def resolve_page(settings: LabelSettings, dpi: float = PREVIEW_DPI) -> Box:
    """Label page in pixels at ``dpi``."""
    return Box(0.0, 0.0, settings.label_width_mm, settings.label_height_mm).scaled(
        dpi / MM_PER_INCH
    )


def resolve_box(field: LabelField) -> Box:
    """Absolute field box in millimetres."""
    return Box(field.x, field.y, field.width, field.height)


def resolve_content(field: LabelField) -> Box:
    """Field content box in millimetres, inside the border and the padding."""
    return resolve_box(field).inset(field.border_width + field.padding)


def resolve_field(field: LabelField, dpi: float = PREVIEW_DPI) -> ResolvedField:
    """Resolve a field into pixel geometry at ``dpi``.

    ``content`` starts inside the border and the padding. Every target lays
    text and bitmaps out from it.
    """
    factor = dpi / MM_PER_INCH
    box_mm = resolve_box(field)
    return ResolvedField(
        field=field,
        box=box_mm.scaled(factor),
        content=resolve_content(field).scaled(factor),
        font_px=pt_to_px(field.font_size, dpi),
        border_px=mm_to_px(field.border_width, dpi),
        padding_px=mm_to_px(field.padding, dpi),
        radius_px=mm_to_px(field.border_radius, dpi),
    )


def drawable_fields(fields: list[LabelField]) -> list[LabelField]:
    """Fields to draw, bottom to top.

    Hidden and disabled fields are dropped. ``sorted`` is stable, so fields
    with the same ``z_index`` keep their list order.
    """
    return sorted(
        (f for f in fields if f.visible and f.enabled),
        key=lambda f: f.z_index,
    )


def fit_within(
    content_width: float, content_height: float, box: Box
) -> Box:
    """Scale ``content`` to fit ``box`` preserving aspect ratio, centred."""
    if content_width <= 0 or content_height <= 0 or box.width <= 0 or box.height <= 0:
        return Box(box.x, box.y, 0.0, 0.0)
    scale = min(box.width / content_width, box.height / content_height)
    width = content_width * scale
    height = content_height * scale
    return Box(
        box.x + (box.width - width) / 2,
        box.y + (box.height - height) / 2,
        width,
        height,
    )


def snap(value: float, grid_size: float) -> float:
    """Round ``value`` to the nearest grid step."""
    if grid_size <= 0:
        return value
    return round(value / grid_size) * grid_size
