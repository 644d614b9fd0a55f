"""Schemas for label layouts and rendering requests."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class FieldKind(str, Enum):
    """What a label field draws."""

    TEXT = "text"
    BARCODE = "barcode"  # Code 128
    QRCODE = "qrcode"
    IMAGE = "image"  # company logo


class RenderTarget(str, Enum):
    """Output surface of a render."""

    PREVIEW = "preview"
    PRINT = "print"
    PNG = "png"
    PDF = "pdf"


# ============================================================================
# Layout document
# ============================================================================


class LabelField(BaseModel):
    """One positioned element on a label. Geometry is in millimetres."""

    id: str = Field(..., min_length=1, max_length=64)
    name: str = ""
    kind: FieldKind = FieldKind.TEXT
    x: float = 0.0
    y: float = 0.0
    width: float = Field(40.0, ge=0)
    height: float = Field(6.0, ge=0)
    rotation: float = 0.0
    font_family: str = "Arial"
    font_size: float = Field(10.0, gt=0, description="Point size")
    font_weight: Literal["normal", "semibold", "bold"] = "normal"
    color: str = "#000000"
    background_color: str = "transparent"
    text_align: Literal["left", "center", "right"] = "left"
    border_width: float = Field(0.0, ge=0)
    border_color: str = "#000000"
    border_radius: float = Field(0.0, ge=0)
    padding: float = Field(0.5, ge=0)
    opacity: float = Field(1.0, ge=0, le=1)
    z_index: int = 0
    visible: bool = True
    enabled: bool = True
    locked: bool = False  # blocks designer edits only
    show_value: bool = True  # human-readable text under barcodes

    @field_validator("rotation")
    @classmethod
    def normalize_rotation(cls, v: float) -> float:
        """Normalize rotation into [0, 360)."""
        return v % 360


class LabelSettings(BaseModel):
    """Page-level settings of a label layout."""

    label_width_mm: float = Field(100.0, gt=0)
    label_height_mm: float = Field(60.0, gt=0)
    orientation: Literal["landscape", "portrait"] = "landscape"
    company_name: str = ""
    logo_url: str | None = None
    background_color: str = "#ffffff"
    border_width: float = Field(0.0, ge=0)
    border_color: str = "#000000"
    show_grid: bool = False
    snap_to_grid: bool = True
    grid_size: float = Field(1.0, gt=0, description="Grid step in mm")


class LabelConfiguration(LabelSettings):
    """The active label layout: page settings plus its fields."""

    fields: list[LabelField] = Field(default_factory=list)

    def settings(self) -> LabelSettings:
        """Page settings without the field list."""
        return LabelSettings(**self.model_dump(exclude={"fields"}))


class LabelDocument(BaseModel):
    """JSON backup/restore format: ``{"config": {...}, "fields": [...]}``."""

    config: LabelSettings
    fields: list[LabelField] = Field(default_factory=list)

    @classmethod
    def from_configuration(cls, configuration: LabelConfiguration) -> "LabelDocument":
        return cls(config=configuration.settings(), fields=list(configuration.fields))

    def to_configuration(self) -> LabelConfiguration:
        return LabelConfiguration(**self.config.model_dump(), fields=list(self.fields))


# ============================================================================
# API schemas
# ============================================================================


class LabelConfigResponse(LabelConfiguration):
    """Active configuration as returned by the API."""

    id: str | None = Field(None, description="None while the built-in default is in use")
    is_default: bool = False


class PresetInfo(BaseModel):
    """A built-in layout preset."""

    id: str
    name: str
    label_width_mm: float
    label_height_mm: float
    orientation: str
    field_count: int


class RenderRequest(BaseModel):
    """Render a label from field values.

    Without ``configuration`` the active configuration is used.
    """

    values: dict[str, str] = Field(default_factory=dict)
    configuration: LabelConfiguration | None = None
    placeholders: bool | None = None
    dpi: int | None = Field(None, ge=72, le=1200)


class BatchRenderRequest(BaseModel):
    """Render several labels into one document."""

    labels: list[dict[str, str]] = Field(..., min_length=1, max_length=500)
    configuration: LabelConfiguration | None = None


class RenderedBoxResponse(BaseModel):
    """A positioned preview box."""

    field_id: str
    kind: FieldKind
    left: float
    top: float
    width: float
    height: float
    z_index: int
    style: dict[str, str]
    text: str | None = None
    image: str | None = None  # data URI or URL
    image_box: dict[str, float] | None = None
    placeholder: bool = False


class PreviewResponse(BaseModel):
    """Preview tree of a label."""

    width: float
    height: float
    dpi: int
    style: dict[str, str]
    boxes: list[RenderedBoxResponse]
