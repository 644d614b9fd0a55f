"""Tests for the interactive label designer."""

import pytest

from shopfloor.exceptions import FieldLocked, NotFound
from shopfloor.labels import LabelDesigner
from shopfloor.labels.presets import default_configuration
from shopfloor.labels.schemas import FieldKind, LabelConfiguration, LabelField


@pytest.fixture
def designer():
    return LabelDesigner(
        LabelConfiguration(
            fields=[
                LabelField(id="item_code", x=2, y=2, z_index=0),
                LabelField(id="weight", x=2, y=10, z_index=1),
            ]
        )
    )


class TestHistory:
    """Tests for undo and redo."""

    def test_undo_redo(self, designer):
        """Edits can be undone and redone."""
        designer.move_field("weight", 20, 20)
        assert designer.get_field("weight").x == 20

        assert designer.undo() is True
        assert designer.get_field("weight").x == 2
        assert designer.can_redo

        assert designer.redo() is True
        assert designer.get_field("weight").x == 20

    def test_new_edit_clears_redo(self, designer):
        """Editing after an undo drops the redo stack."""
        designer.move_field("weight", 20, 20)
        designer.undo()
        designer.move_field("item_code", 5, 5)
        assert designer.can_redo is False
        assert designer.redo() is False

    def test_nothing_to_undo(self, designer):
        """A fresh designer has no history."""
        assert designer.can_undo is False
        assert designer.undo() is False

    def test_history_bounded(self):
        """Only the configured number of steps is kept."""
        designer = LabelDesigner(LabelConfiguration(fields=[LabelField(id="a")]), history_limit=3)
        for x in range(10):
            designer.move_field("a", x, 0)
        undone = 0
        while designer.undo():
            undone += 1
        assert undone == 3

    def test_source_not_mutated(self):
        """The designer edits a copy of the given configuration."""
        original = LabelConfiguration(fields=[LabelField(id="a", x=1)])
        designer = LabelDesigner(original)
        designer.move_field("a", 30, 0)
        assert original.fields[0].x == 1


class TestLocking:
    """Tests for locked fields."""

    def test_locked_field_rejects_edits(self, designer):
        """Move, resize, update and delete fail on a locked field."""
        designer.set_locked("weight")
        with pytest.raises(FieldLocked):
            designer.move_field("weight", 5, 5)
        with pytest.raises(FieldLocked):
            designer.resize_field("weight", 10, 10)
        with pytest.raises(FieldLocked):
            designer.update_field("weight", font_size=20)
        with pytest.raises(FieldLocked):
            designer.delete_field("weight")

    def test_unlock(self, designer):
        """A locked field can still be unlocked."""
        designer.set_locked("weight")
        designer.set_locked("weight", False)
        assert designer.move_field("weight", 5, 5).x == 5

    def test_locked_field_still_rendered(self, designer):
        """Locking only affects editing."""
        designer.set_locked("weight")
        assert designer.get_field("weight").visible is True


class TestEdits:
    """Tests for field edits."""

    def test_add_field_unique_id_on_top(self, designer):
        """New fields get a free id and the highest z_index."""
        added = designer.add_field(FieldKind.TEXT, field_id="weight")
        assert added.id != "weight"
        assert added.z_index == 2
        assert len(designer.configuration.fields) == 3

    def test_add_known_field_named(self, designer):
        """Known field ids get their display name."""
        added = designer.add_field(FieldKind.QRCODE, field_id="qrcode")
        assert added.name == "QR Code"
        assert added.kind == FieldKind.QRCODE

    def test_snap_to_grid(self, designer):
        """Moves and resizes snap to the grid when enabled."""
        moved = designer.move_field("weight", 3.4, 7.6)
        assert (moved.x, moved.y) == (3.0, 8.0)
        resized = designer.resize_field("weight", 10.3, 4.6)
        assert (resized.width, resized.height) == (10.0, 5.0)

    def test_no_snap_when_disabled(self, designer):
        """Free positioning when snapping is off."""
        designer.update_settings(snap_to_grid=False)
        assert designer.move_field("weight", 3.4, 7.6).x == 3.4

    def test_duplicate(self, designer):
        """Duplicates are offset, on top and unlocked."""
        designer.set_locked("item_code")
        copy = designer.duplicate_field("item_code")
        assert copy.id == "item_code_copy"
        assert (copy.x, copy.y) == (7, 7)
        assert copy.z_index == 2
        assert copy.locked is False
        assert designer.duplicate_field("item_code").id != copy.id

    def test_delete(self, designer):
        """Deleted fields are gone."""
        designer.delete_field("weight")
        with pytest.raises(NotFound):
            designer.get_field("weight")

    def test_update_rotation_normalized(self, designer):
        """Updates are validated like new fields."""
        assert designer.update_field("weight", rotation=-45).rotation == 315

    def test_layer_order(self, designer):
        """Fields can be moved to the front or the back."""
        assert designer.bring_to_front("item_code").z_index == 2
        assert designer.send_to_back("item_code").z_index == 0

    def test_apply_preset_keeps_branding(self, designer):
        """Presets replace geometry but keep company branding."""
        designer.update_settings(company_name="Acme", background_color="#fafafa")
        configuration = designer.apply_preset("shipping")
        assert configuration.company_name == "Acme"
        assert configuration.background_color == "#fafafa"
        assert configuration.label_height_mm == 80
        with pytest.raises(NotFound):
            designer.apply_preset("nope")

    def test_document_round_trip(self):
        """The exported document rebuilds the same configuration."""
        designer = LabelDesigner(default_configuration())
        assert designer.document().to_configuration() == designer.configuration
