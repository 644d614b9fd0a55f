"""Labels API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import HTMLResponse, Response

from shopfloor.dependencies import CurrentManager, CurrentUser, DbSession
from shopfloor.labels.engine import RenderedBox
from shopfloor.labels.generators import generate_barcode_png, generate_qr_png
from shopfloor.labels.schemas import (
    BatchRenderRequest,
    LabelConfigResponse,
    LabelConfiguration,
    LabelDocument,
    PresetInfo,
    PreviewResponse,
    RenderedBoxResponse,
    RenderRequest,
    RenderTarget,
)
from shopfloor.labels.service import LabelService, get_label_service

router = APIRouter()


def get_service(db: DbSession) -> LabelService:
    """Get label service dependency."""
    return get_label_service(db)


def _box_response(box: RenderedBox) -> RenderedBoxResponse:
    image_box = box.image_box
    return RenderedBoxResponse(
        field_id=box.field_id,
        kind=box.kind,
        left=box.box.x,
        top=box.box.y,
        width=box.box.width,
        height=box.box.height,
        z_index=box.z_index,
        style=box.style,
        text=box.text,
        image=box.image,
        image_box=(
            {"left": image_box.x, "top": image_box.y, "width": image_box.width, "height": image_box.height}
            if image_box
            else None
        ),
        placeholder=box.placeholder,
    )


# ============================================================================
# Configuration
# ============================================================================


@router.get("/config", response_model=LabelConfigResponse)
async def get_config(
    current_user: CurrentUser,
    service: Annotated[LabelService, Depends(get_service)],
):
    """Get the active label configuration (built-in default if none saved)."""
    return service.get_active()


@router.put("/config", response_model=LabelConfigResponse)
async def save_config(
    data: LabelConfiguration,
    current_user: CurrentManager,
    service: Annotated[LabelService, Depends(get_service)],
):
    """Overwrite the active label configuration."""
    return service.save(data)


@router.get("/config/export", response_model=LabelDocument)
async def export_config(
    current_user: CurrentUser,
    service: Annotated[LabelService, Depends(get_service)],
):
    """Download the active configuration as a JSON document."""
    document = service.export_document()
    return Response(
        content=document.model_dump_json(indent=2),
        media_type="application/json",
        headers={"Content-Disposition": "attachment; filename=label-config.json"},
    )


@router.post("/config/import", response_model=LabelConfigResponse)
async def import_config(
    data: LabelDocument,
    current_user: CurrentManager,
    service: Annotated[LabelService, Depends(get_service)],
):
    """Replace the active configuration with an exported document."""
    return service.import_document(data)


@router.get("/presets", response_model=list[PresetInfo])
async def list_presets(
    current_user: CurrentUser,
    service: Annotated[LabelService, Depends(get_service)],
):
    """List built-in label presets."""
    return service.list_presets()


@router.post("/presets/{name}", response_model=LabelConfigResponse)
async def apply_preset(
    name: str,
    current_user: CurrentManager,
    service: Annotated[LabelService, Depends(get_service)],
):
    """Apply a built-in preset to the active configuration."""
    return service.apply_preset(name)


@router.post("/logo", response_model=LabelConfigResponse)
async def upload_logo(
    current_user: CurrentManager,
    service: Annotated[LabelService, Depends(get_service)],
    file: UploadFile = File(...),
):
    """Upload a company logo and make it the active logo.

    Raises:
        HTTPException: If the file is not a supported image.
    """
    content = await file.read()
    try:
        return service.upload_logo(file.filename or "", content)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ============================================================================
# Rendering
# ============================================================================


@router.post("/preview", response_model=PreviewResponse)
async def preview_label(
    data: RenderRequest,
    current_user: CurrentUser,
    service: Annotated[LabelService, Depends(get_service)],
):
    """Render the on-screen preview tree of a label."""
    rendered = service.render_label(
        data.values, RenderTarget.PREVIEW, data.configuration, data.placeholders
    )
    return PreviewResponse(
        width=rendered.width,
        height=rendered.height,
        dpi=rendered.dpi,
        style=rendered.style,
        boxes=[_box_response(box) for box in rendered.boxes],
    )


@router.post("/print", response_class=HTMLResponse)
async def print_label(
    data: RenderRequest,
    current_user: CurrentUser,
    service: Annotated[LabelService, Depends(get_service)],
):
    """Render a self-contained print document sized to the label."""
    rendered = service.render_label(
        data.values, RenderTarget.PRINT, data.configuration, data.placeholders
    )
    return HTMLResponse(content=rendered.html)


@router.post("/render.png")
async def render_png(
    data: RenderRequest,
    current_user: CurrentUser,
    service: Annotated[LabelService, Depends(get_service)],
):
    """Render a label as a PNG raster.

    Returns:
        Response: PNG image.
    """
    rendered = service.render_label(
        data.values, RenderTarget.PNG, data.configuration, data.placeholders, data.dpi
    )
    return Response(
        content=rendered.data,
        media_type=rendered.media_type,
        headers={"Content-Disposition": "inline; filename=label.png"},
    )


@router.post("/render.pdf")
async def render_pdf(
    data: RenderRequest,
    current_user: CurrentUser,
    service: Annotated[LabelService, Depends(get_service)],
):
    """Render a one-page PDF sized to the label.

    Returns:
        Response: PDF file.
    """
    rendered = service.render_label(
        data.values, RenderTarget.PDF, data.configuration, data.placeholders, data.dpi
    )
    return Response(
        content=rendered.data,
        media_type=rendered.media_type,
        headers={"Content-Disposition": "inline; filename=label.pdf"},
    )


@router.post("/batch.pdf")
async def render_batch_pdf(
    data: BatchRenderRequest,
    current_user: CurrentUser,
    service: Annotated[LabelService, Depends(get_service)],
):
    """Render one PDF page per set of field values."""
    content = service.render_batch(data.labels, RenderTarget.PDF, data.configuration)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": "inline; filename=labels.pdf"},
    )


@router.get("/barcode")
async def get_barcode(
    current_user: CurrentUser,
    data: str = Query(..., min_length=1, max_length=200),
    show_value: bool = Query(True),
):
    """Encode text as a Code 128 PNG.

    Returns:
        Response: PNG image.
    """
    return Response(
        content=generate_barcode_png(data, show_value=show_value),
        media_type="image/png",
        headers={"Content-Disposition": "inline; filename=barcode.png"},
    )


@router.get("/qr")
async def get_qr(
    current_user: CurrentUser,
    data: str = Query(..., min_length=1, max_length=2000),
    size: int = Query(200, ge=50, le=1000),
):
    """Encode text as a QR code PNG.

    Returns:
        Response: PNG image.
    """
    return Response(
        content=generate_qr_png(data, size=size),
        media_type="image/png",
        headers={"Content-Disposition": "inline; filename=qr.png"},
    )
