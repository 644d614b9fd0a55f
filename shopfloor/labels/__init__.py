"""Label layouts, rendering and barcode generation."""

from shopfloor.labels.designer import LabelDesigner
from shopfloor.labels.engine import RenderedLabel, render, render_batch_pdf
from shopfloor.labels.schemas import (
    FieldKind,
    LabelConfiguration,
    LabelDocument,
    LabelField,
    RenderTarget,
)

__all__ = [
    "FieldKind",
    "LabelConfiguration",
    "LabelDesigner",
    "LabelDocument",
    "LabelField",
    "RenderTarget",
    "RenderedLabel",
    "render",
    "render_batch_pdf",
]
