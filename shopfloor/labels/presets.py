"""Built-in label layouts."""

from shopfloor.labels.schemas import FieldKind, LabelConfiguration, LabelField

# Field ids filled in for every produced unit
AVAILABLE_FIELDS = {
    "company_name": "Company Name",
    "logo": "Logo",
    "item_name": "Item Name",
    "item_code": "Item Code",
    "length": "Length",
    "width": "Width",
    "color": "Color",
    "weight": "Weight",
    "operator": "Operator",
    "machine": "Machine",
    "serial_no": "Serial Number",
    "barcode": "Barcode",
    "qrcode": "QR Code",
}

_KINDS = {
    "logo": FieldKind.IMAGE,
    "barcode": FieldKind.BARCODE,
    "qrcode": FieldKind.QRCODE,
}


def _field(field_id: str, x: float, y: float, width: float, height: float, **style) -> dict:
    return {
        "id": field_id,
        "name": AVAILABLE_FIELDS[field_id],
        "kind": _KINDS.get(field_id, FieldKind.TEXT),
        "x": x,
        "y": y,
        "width": width,
        "height": height,
        **style,
    }


PRESETS = {
    "product": {
        "name": "Product Label",
        "config": {"label_width_mm": 100, "label_height_mm": 60, "orientation": "landscape"},
        "fields": [
            _field("company_name", 3, 3, 94, 6, font_size=14, font_weight="bold"),
            _field("item_name", 3, 10, 94, 5, font_size=11, font_weight="semibold"),
            _field("item_code", 3, 15.5, 94, 4.5, font_size=9),
            _field("length", 3, 20.5, 46, 4.5, font_size=9),
            _field("width", 51, 20.5, 46, 4.5, font_size=9),
            _field("color", 3, 25.5, 46, 4.5, font_size=9),
            _field("weight", 51, 25.5, 46, 4.5, font_size=9),
            _field("serial_no", 3, 30.5, 94, 4.5, font_size=8),
            _field("barcode", 3, 36, 94, 21, font_size=8),
        ],
    },
    "shipping": {
        "name": "Shipping Label",
        "config": {"label_width_mm": 100, "label_height_mm": 80, "orientation": "portrait"},
        "fields": [
            _field("company_name", 3, 3, 94, 7, font_size=13, font_weight="bold"),
            _field("item_code", 3, 12, 94, 5, font_size=11),
            _field("weight", 3, 32, 94, 5, font_size=10),
            _field("serial_no", 3, 40, 94, 5, font_size=9),
            _field("qrcode", 3, 47, 30, 30, font_size=8),
        ],
    },
    "minimal": {
        "name": "Minimal Label",
        "config": {"label_width_mm": 80, "label_height_mm": 40, "orientation": "landscape"},
        "fields": [
            _field("item_code", 3, 3, 74, 6, font_size=11, font_weight="bold"),
            _field("barcode", 3, 10, 74, 27, font_size=8),
        ],
    },
}

DEFAULT_PRESET = "product"


def get_preset(name: str) -> LabelConfiguration:
    """Build the configuration of a preset.

    Raises:
        KeyError: If the preset does not exist.
    """
    preset = PRESETS[name]
    fields = [
        LabelField(**definition, z_index=index, padding=0.5)
        for index, definition in enumerate(preset["fields"])
    ]
    return LabelConfiguration(**preset["config"], fields=fields)


def list_presets() -> list[dict]:
    """List the built-in presets."""
    return [
        {
            "id": key,
            "name": preset["name"],
            "label_width_mm": preset["config"]["label_width_mm"],
            "label_height_mm": preset["config"]["label_height_mm"],
            "orientation": preset["config"]["orientation"],
            "field_count": len(preset["fields"]),
        }
        for key, preset in PRESETS.items()
    ]


def default_configuration() -> LabelConfiguration:
    """Layout used while no configuration has been saved."""
    return get_preset(DEFAULT_PRESET)
