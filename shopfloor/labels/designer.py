"""Interactive label designer session.

One ``LabelDesigner`` per editing session. Every edit replaces the working
configuration with a new immutable copy and pushes the old one on a bounded
undo stack.
"""

import logging
from itertools import count
from typing import Any

from shopfloor.exceptions import FieldLocked, NotFound
from shopfloor.labels.layout import snap
from shopfloor.labels.presets import AVAILABLE_FIELDS, get_preset
from shopfloor.labels.schemas import FieldKind, LabelConfiguration, LabelDocument, LabelField

logger = logging.getLogger(__name__)

DUPLICATE_OFFSET_MM = 5.0


class LabelDesigner:
    """Editor for one label configuration with undo/redo."""

    def __init__(self, configuration: LabelConfiguration, history_limit: int = 50):
        """Initialize designer.

        Args:
            configuration: Layout to edit.
            history_limit: Maximum number of undo steps kept.
        """
        self.configuration = configuration.model_copy(deep=True)
        self.history_limit = history_limit
        self._undo: list[LabelConfiguration] = []
        self._redo: list[LabelConfiguration] = []
        self._ids = count(1)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _commit(self, configuration: LabelConfiguration) -> None:
        self._undo.append(self.configuration)
        if len(self._undo) > self.history_limit:
            self._undo.pop(0)
        self._redo.clear()
        self.configuration = configuration

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def undo(self) -> bool:
        """Revert the last edit. Returns False when there is nothing to undo."""
        if not self._undo:
            return False
        self._redo.append(self.configuration)
        self.configuration = self._undo.pop()
        return True

    def redo(self) -> bool:
        """Re-apply the last undone edit. Returns False when there is nothing to redo."""
        if not self._redo:
            return False
        self._undo.append(self.configuration)
        self.configuration = self._redo.pop()
        return True

    # ------------------------------------------------------------------
    # Field helpers
    # ------------------------------------------------------------------

    def get_field(self, field_id: str) -> LabelField:
        for label_field in self.configuration.fields:
            if label_field.id == field_id:
                return label_field
        raise NotFound(f"Label field not found: {field_id}")

    def _editable(self, field_id: str) -> LabelField:
        label_field = self.get_field(field_id)
        if label_field.locked:
            raise FieldLocked(f"Label field is locked: {field_id}")
        return label_field

    def _snap(self, value: float) -> float:
        if self.configuration.snap_to_grid:
            return snap(value, self.configuration.grid_size)
        return value

    def _top_z(self) -> int:
        return max((f.z_index for f in self.configuration.fields), default=-1) + 1

    def _unique_id(self, base: str) -> str:
        taken = {f.id for f in self.configuration.fields}
        if base not in taken:
            return base
        while True:
            candidate = f"{base}_{next(self._ids)}"
            if candidate not in taken:
                return candidate

    def _replace(self, updated: LabelField) -> None:
        fields = [updated if f.id == updated.id else f for f in self.configuration.fields]
        self._commit(self.configuration.model_copy(update={"fields": fields}))

    def _with_changes(self, label_field: LabelField, changes: dict[str, Any]) -> LabelField:
        # Revalidate so rotation and bounds rules apply to edits too
        return LabelField.model_validate({**label_field.model_dump(), **changes})

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def add_field(self, kind: FieldKind = FieldKind.TEXT, field_id: str | None = None, **attrs) -> LabelField:
        """Add a field on top of the others.

        Args:
            kind: Field kind.
            field_id: Requested id; made unique if taken. Defaults to the kind.
            **attrs: Other field attributes.

        Returns:
            LabelField: The new field.
        """
        new_id = self._unique_id(field_id or kind.value)
        attrs.setdefault("name", AVAILABLE_FIELDS.get(new_id, new_id))
        attrs.setdefault("z_index", self._top_z())
        attrs["x"] = self._snap(attrs.get("x", 0.0))
        attrs["y"] = self._snap(attrs.get("y", 0.0))
        label_field = LabelField(id=new_id, kind=kind, **attrs)
        self._commit(
            self.configuration.model_copy(
                update={"fields": [*self.configuration.fields, label_field]}
            )
        )
        return label_field

    def update_field(self, field_id: str, **changes) -> LabelField:
        """Change attributes of a field.

        A locked field only accepts a change of its ``locked`` flag.

        Raises:
            FieldLocked: If the field is locked.
            NotFound: If the field does not exist.
        """
        label_field = self.get_field(field_id)
        if label_field.locked and set(changes) - {"locked"}:
            raise FieldLocked(f"Label field is locked: {field_id}")
        changes.pop("id", None)
        updated = self._with_changes(label_field, changes)
        self._replace(updated)
        return updated

    def set_locked(self, field_id: str, locked: bool = True) -> LabelField:
        return self.update_field(field_id, locked=locked)

    def move_field(self, field_id: str, x: float, y: float) -> LabelField:
        """Move a field, snapping to the grid when enabled."""
        label_field = self._editable(field_id)
        updated = self._with_changes(label_field, {"x": self._snap(x), "y": self._snap(y)})
        self._replace(updated)
        return updated

    def resize_field(self, field_id: str, width: float, height: float) -> LabelField:
        """Resize a field, snapping to the grid when enabled."""
        label_field = self._editable(field_id)
        updated = self._with_changes(
            label_field,
            {"width": max(0.0, self._snap(width)), "height": max(0.0, self._snap(height))},
        )
        self._replace(updated)
        return updated

    def duplicate_field(self, field_id: str) -> LabelField:
        """Copy a field with a new id, offset and on top of every other field."""
        source = self.get_field(field_id)
        copy = self._with_changes(
            source,
            {
                "id": self._unique_id(f"{source.id}_copy"),
                "x": source.x + DUPLICATE_OFFSET_MM,
                "y": source.y + DUPLICATE_OFFSET_MM,
                "z_index": self._top_z(),
                "locked": False,
            },
        )
        self._commit(
            self.configuration.model_copy(update={"fields": [*self.configuration.fields, copy]})
        )
        return copy

    def delete_field(self, field_id: str) -> None:
        """Remove a field.

        Raises:
            FieldLocked: If the field is locked.
        """
        self._editable(field_id)
        fields = [f for f in self.configuration.fields if f.id != field_id]
        self._commit(self.configuration.model_copy(update={"fields": fields}))

    def bring_to_front(self, field_id: str) -> LabelField:
        label_field = self._editable(field_id)
        others = [f.z_index for f in self.configuration.fields if f.id != field_id]
        if not others or label_field.z_index > max(others):
            return label_field
        updated = self._with_changes(label_field, {"z_index": self._top_z()})
        self._replace(updated)
        return updated

    def send_to_back(self, field_id: str) -> LabelField:
        label_field = self._editable(field_id)
        bottom = min(f.z_index for f in self.configuration.fields) - 1
        updated = self._with_changes(label_field, {"z_index": bottom})
        self._replace(updated)
        return updated

    def update_settings(self, **changes) -> LabelConfiguration:
        """Change page settings (size, colours, grid...)."""
        changes.pop("fields", None)
        configuration = LabelConfiguration.model_validate(
            {**self.configuration.model_dump(), **changes}
        )
        self._commit(configuration)
        return configuration

    def apply_preset(self, name: str) -> LabelConfiguration:
        """Replace size and fields with a built-in preset, keeping branding.

        Raises:
            NotFound: If the preset does not exist.
        """
        try:
            preset = get_preset(name)
        except KeyError:
            raise NotFound(f"Label preset not found: {name}")
        configuration = preset.model_copy(
            update={
                "company_name": self.configuration.company_name,
                "logo_url": self.configuration.logo_url,
                "background_color": self.configuration.background_color,
            }
        )
        self._commit(configuration)
        logger.info(f"Applied label preset {name}")
        return configuration

    def document(self) -> LabelDocument:
        """Export the working configuration."""
        return LabelDocument.from_configuration(self.configuration)
