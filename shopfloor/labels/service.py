"""Label configuration service layer."""

import io
import logging
from pathlib import Path
from uuid import uuid4

import httpx
from PIL import Image, UnidentifiedImageError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopfloor.config import get_settings
from shopfloor.db.models import LabelConfigurationRecord, ProductionRecord
from shopfloor.exceptions import MissingConfiguration, NotFound, PersistenceFailure
from shopfloor.labels import presets
from shopfloor.labels.engine import RenderedLabel, render, render_batch_pdf, render_batch_print
from shopfloor.labels.schemas import (
    LabelConfigResponse,
    LabelConfiguration,
    LabelDocument,
    LabelField,
    RenderTarget,
)
from shopfloor.sync import SingleFlightCache

logger = logging.getLogger(__name__)

settings = get_settings()

ACTIVE_CONFIG_KEY = "label-config:active"
LOGO_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp"}
MAX_LOGO_BYTES = 2 * 1024 * 1024

# Shared by every request so polling terminals coalesce onto one query
config_cache = SingleFlightCache(ttl=settings.config_cache_ttl)


def _format_number(value, suffix: str = "") -> str:
    if value is None:
        return ""
    return f"{float(value):g}{suffix}"


def production_label_values(record: ProductionRecord, company_name: str = "") -> dict[str, str]:
    """Field values of the label of one produced unit."""
    item = record.item
    operator = record.operator
    return {
        "company_name": company_name,
        "item_name": item.product_name,
        "item_code": item.product_code,
        "length": _format_number(item.length_yards, " yds"),
        "width": _format_number(item.width_inches, '"'),
        "color": item.color or "",
        "weight": f"{record.weight_kg:.2f} kg",
        "operator": (operator.employee_code or operator.full_name) if operator else "",
        "machine": record.machine.machine_code if record.machine else "",
        "serial_no": record.serial_number,
        "barcode": record.barcode_data,
        "qrcode": record.barcode_data,
    }


class LabelService:
    """Service class for the active label configuration and rendering."""

    def __init__(self, db: Session, cache: SingleFlightCache = config_cache):
        """Initialize label service.

        Args:
            db: Database session.
            cache: Cache holding the active configuration.
        """
        self.db = db
        self.cache = cache

    # ------------------------------------------------------------------
    # Active configuration
    # ------------------------------------------------------------------

    def _latest_record(self) -> LabelConfigurationRecord | None:
        return (
            self.db.query(LabelConfigurationRecord)
            .order_by(LabelConfigurationRecord.created_at.desc())
            .first()
        )

    @staticmethod
    def _record_to_configuration(record: LabelConfigurationRecord) -> LabelConfiguration:
        style = record.style_config or {}
        return LabelConfiguration(
            **style,
            label_width_mm=record.label_width_mm,
            label_height_mm=record.label_height_mm,
            orientation=record.orientation,
            company_name=record.company_name or "",
            logo_url=record.logo_url,
            fields=[LabelField.model_validate(f) for f in record.fields_config or []],
        )

    def load_active(self) -> LabelConfigResponse:
        """Load the active configuration from storage.

        Raises:
            MissingConfiguration: If no configuration has been saved.
        """
        record = self._latest_record()
        if record is None:
            raise MissingConfiguration("No label configuration saved")
        configuration = self._record_to_configuration(record)
        return LabelConfigResponse(**configuration.model_dump(), id=record.id)

    def _load_or_default(self) -> LabelConfigResponse:
        try:
            return self.load_active()
        except MissingConfiguration:
            logger.info("No label configuration saved, using built-in default")
            return LabelConfigResponse(
                **presets.default_configuration().model_dump(), is_default=True
            )

    def get_active(self) -> LabelConfigResponse:
        """Get the active configuration, or the built-in default when none is saved."""
        return self.cache.get(ACTIVE_CONFIG_KEY, self._load_or_default)

    def get_active_configuration(self) -> LabelConfiguration:
        """Active configuration without the API metadata."""
        active = self.get_active()
        return LabelConfiguration(**active.model_dump(exclude={"id", "is_default"}))

    def save(self, configuration: LabelConfiguration) -> LabelConfigResponse:
        """Overwrite the active configuration, creating it on first save.

        Raises:
            PersistenceFailure: If the write fails.
        """
        style = configuration.model_dump(
            mode="json",
            exclude={
                "fields",
                "label_width_mm",
                "label_height_mm",
                "orientation",
                "company_name",
                "logo_url",
            },
        )
        fields = [f.model_dump(mode="json") for f in configuration.fields]

        record = self._latest_record()
        if record is None:
            record = LabelConfigurationRecord()
            self.db.add(record)
        record.company_name = configuration.company_name
        record.logo_url = configuration.logo_url
        record.label_width_mm = configuration.label_width_mm
        record.label_height_mm = configuration.label_height_mm
        record.orientation = configuration.orientation
        record.style_config = style
        record.fields_config = fields

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save label configuration: {e}")
            raise PersistenceFailure("Label configuration could not be saved") from e
        finally:
            self.cache.invalidate(ACTIVE_CONFIG_KEY)

        self.db.refresh(record)
        logger.info(f"Label configuration saved ({len(fields)} fields)")
        return LabelConfigResponse(**configuration.model_dump(), id=record.id)

    # ------------------------------------------------------------------
    # Backup / presets
    # ------------------------------------------------------------------

    def export_document(self) -> LabelDocument:
        """Export the active configuration as a ``{config, fields}`` document."""
        return LabelDocument.from_configuration(self.get_active_configuration())

    def import_document(self, document: LabelDocument) -> LabelConfigResponse:
        """Replace the active configuration with an exported document."""
        return self.save(document.to_configuration())

    def list_presets(self) -> list[dict]:
        return presets.list_presets()

    def apply_preset(self, name: str) -> LabelConfigResponse:
        """Replace size and fields with a preset, keeping branding and style.

        Raises:
            NotFound: If the preset does not exist.
        """
        try:
            preset = presets.get_preset(name)
        except KeyError:
            raise NotFound(f"Label preset not found: {name}")

        current = self.get_active_configuration()
        branding = current.settings().model_dump(
            exclude={"label_width_mm", "label_height_mm", "orientation"}
        )
        configuration = LabelConfiguration(
            **branding,
            label_width_mm=preset.label_width_mm,
            label_height_mm=preset.label_height_mm,
            orientation=preset.orientation,
            fields=preset.fields,
        )
        return self.save(configuration)

    # ------------------------------------------------------------------
    # Logo
    # ------------------------------------------------------------------

    def upload_logo(self, filename: str, content: bytes) -> LabelConfigResponse:
        """Store a logo under the media directory and make it the active logo.

        Raises:
            ValueError: If the file is not a supported image.
        """
        suffix = Path(filename or "").suffix.lower()
        if suffix not in LOGO_EXTENSIONS:
            raise ValueError(f"Unsupported logo type: {suffix or 'none'}")
        if len(content) > MAX_LOGO_BYTES:
            raise ValueError("Logo file too large (max 2 MB)")
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.verify()
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError("Logo file is not a valid image") from e

        media_dir = Path(settings.media_dir)
        media_dir.mkdir(parents=True, exist_ok=True)
        name = f"logo-{uuid4().hex}{suffix}"
        (media_dir / name).write_bytes(content)
        logger.info(f"Stored logo {name}")

        configuration = self.get_active_configuration()
        configuration.logo_url = f"{settings.media_url_prefix.rstrip('/')}/{name}"
        return self.save(configuration)

    def load_logo(self, url: str | None) -> Image.Image | None:
        """Load a logo bitmap for raster rendering.

        Local media URLs are read from disk, http(s) URLs are fetched. A logo
        that cannot be loaded is logged and skipped.
        """
        if not url:
            return None

        prefix = settings.media_url_prefix.rstrip("/") + "/"
        try:
            if url.startswith(prefix):
                path = Path(settings.media_dir) / Path(url[len(prefix):]).name
                data = path.read_bytes()
            elif url.startswith(("http://", "https://")):
                response = httpx.get(url, timeout=settings.logo_fetch_timeout, follow_redirects=True)
                response.raise_for_status()
                data = response.content
            else:
                logger.warning(f"Unsupported logo URL: {url}")
                return None
            img = Image.open(io.BytesIO(data))
            img.load()
            return img.convert("RGBA")
        except (OSError, httpx.HTTPError, UnidentifiedImageError) as e:
            logger.warning(f"Logo not loaded from {url}: {e}")
            return None

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def resolve_configuration(self, configuration: LabelConfiguration | None) -> LabelConfiguration:
        return configuration if configuration is not None else self.get_active_configuration()

    def render_label(
        self,
        values: dict,
        target: RenderTarget,
        configuration: LabelConfiguration | None = None,
        placeholders: bool | None = None,
        dpi: int | None = None,
    ) -> RenderedLabel:
        """Render a label with the active (or given) configuration."""
        configuration = self.resolve_configuration(configuration)
        logo = None
        if target in (RenderTarget.PNG, RenderTarget.PDF):
            logo = self.load_logo(configuration.logo_url)
        return render(
            configuration,
            values,
            target,
            placeholders=placeholders,
            logo=logo,
            dpi=dpi or (settings.raster_dpi if target != RenderTarget.PREVIEW else None),
        )

    def render_batch(
        self,
        values_list: list[dict],
        target: RenderTarget,
        configuration: LabelConfiguration | None = None,
    ) -> bytes | str:
        """Render several labels into one PDF or print document."""
        configuration = self.resolve_configuration(configuration)
        if target == RenderTarget.PDF:
            logo = self.load_logo(configuration.logo_url)
            return render_batch_pdf(configuration, values_list, logo=logo, dpi=settings.raster_dpi)
        return render_batch_print(configuration, values_list)

    def label_for_record(self, record: ProductionRecord, configuration: LabelConfiguration | None = None) -> str:
        """Print document of one produced unit."""
        configuration = self.resolve_configuration(configuration)
        values = production_label_values(record, configuration.company_name)
        return self.render_label(values, RenderTarget.PRINT, configuration).html


def get_label_service(db: Session) -> LabelService:
    """Factory function for LabelService."""
    return LabelService(db)

