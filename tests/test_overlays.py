"""Tests for text overlays: model, gestures and compositing."""

import math

import pytest
from PIL import Image
from pydantic import ValidationError as PydanticValidationError

from thumbnail_ai.editor.overlays import (
    MAX_TEXT_SIZE,
    MIN_TEXT_SIZE,
    GlowEffect,
    OverlayEditor,
    Position,
    ShadowEffect,
    TextOverlay,
    measure,
    render_overlays,
)


@pytest.fixture
def editor():
    return OverlayEditor(canvas_size=(800, 600))


class TestTextOverlayModel:
    def test_defaults(self):
        overlay = TextOverlay()
        assert overlay.size == 84
        assert overlay.color == "#ffffff"
        assert overlay.font == "Arial"
        assert overlay.glow == GlowEffect(enabled=False, color="#00ff00", size=20)
        assert overlay.shadow == ShadowEffect(enabled=False, color="#000000", blur=15, offset_x=5, offset_y=5)

    def test_unique_ids(self):
        assert TextOverlay().id != TextOverlay().id

    def test_unset_position_means_center(self):
        assert TextOverlay().anchor(800, 600) == (400, 300)
        assert TextOverlay(position=Position(x=10, y=20)).anchor(800, 600) == (10, 20)

    def test_zero_position_stays_at_edge(self):
        assert TextOverlay(position=Position(x=0, y=0)).anchor(800, 600) == (0, 0)
        assert TextOverlay(position=Position(x=0)).anchor(800, 600) == (0, 300)

    def test_invalid_color_rejected(self):
        with pytest.raises(PydanticValidationError):
            TextOverlay(color="not-a-color")


class TestOverlayEditor:
    def test_add_minimizes_previous_and_activates_new(self, editor):
        first = editor.add_text("one")
        second = editor.add_text("two")
        assert editor.get(first.id).minimized
        assert not second.minimized
        assert editor.active_id == second.id
        assert [o.text for o in editor.overlays] == ["one", "two"]

    def test_remove_clears_active(self, editor):
        overlay = editor.add_text("bye")
        editor.remove_text(overlay.id)
        assert editor.overlays == []
        assert editor.active_id is None

    def test_update_validates(self, editor):
        overlay = editor.add_text("hi")
        editor.update_text(overlay.id, color="#ff0000", bold=True)
        assert editor.get(overlay.id).color == "#ff0000"
        with pytest.raises(PydanticValidationError):
            editor.update_text(overlay.id, color="nope")

    def test_drag_moves_anchor(self, editor):
        overlay = editor.add_text("DRAG ME", size=80)
        assert editor.pointer_down(405, 302)
        assert editor.gesture == "drag"
        editor.pointer_move(505, 352)
        editor.pointer_up()
        moved = editor.get(overlay.id)
        assert moved.position.x == pytest.approx(500)
        assert moved.position.y == pytest.approx(350)
        assert editor.gesture is None

    def test_drag_to_canvas_corner(self, editor):
        overlay = editor.add_text("EDGE", size=80)
        assert editor.pointer_down(400, 300)
        editor.pointer_move(0, 0)
        editor.pointer_up()
        assert editor.get(overlay.id).anchor(800, 600) == (0, 0)

    def test_resize_from_corner_is_clamped(self, editor):
        overlay = editor.add_text("BIG", size=100)
        w, h = measure(overlay)
        corner = (400 + w / 2, 300 + h / 2)
        assert editor.pointer_down(*corner)
        assert editor.gesture == "resize"

        editor.pointer_move(corner[0] + 1000, corner[1])
        assert editor.get(overlay.id).size == MAX_TEXT_SIZE

        editor.pointer_move(corner[0] - 1000, corner[1])
        assert editor.get(overlay.id).size == MIN_TEXT_SIZE

    def test_rotate_from_handle(self, editor):
        overlay = editor.add_text("SPIN", size=60)
        handle = (400, 300 - 60 / 2 - 30)
        assert editor.pointer_down(*handle)
        assert editor.gesture == "rotate"
        # Quarter turn clockwise around the anchor
        editor.pointer_move(400 + 60, 300)
        assert editor.get(overlay.id).rotation == pytest.approx(math.pi / 2)

    def test_miss_does_nothing(self, editor):
        editor.add_text("HERE")
        assert editor.pointer_down(5, 5) is False
        assert editor.pointer_move(10, 10) is False

    def test_cursor_hints(self, editor):
        overlay = editor.add_text("HOVER", size=80)
        w, h = measure(overlay)
        assert editor.cursor(400, 300) == "move"
        assert editor.cursor(400 - w / 2, 300 - h / 2) == "nwse-resize"
        assert editor.cursor(2, 2) == "default"


class TestRendering:
    def test_returns_rgba_copy(self):
        base = Image.new("RGB", (200, 100), (0, 0, 0))
        result = render_overlays(base, [TextOverlay(text="HI", size=40)])
        assert result.mode == "RGBA"
        assert result.size == base.size
        assert base.getpixel((100, 50)) == (0, 0, 0)

    def test_text_changes_pixels(self):
        base = Image.new("RGB", (200, 100), (0, 0, 0))
        result = render_overlays(base, [TextOverlay(text="HELLO", size=40, color="#ffffff")])
        assert result.convert("L").getbbox() is not None

    def test_empty_text_skipped(self):
        base = Image.new("RGB", (50, 50), (10, 20, 30))
        result = render_overlays(base, [TextOverlay(text="")])
        assert result.convert("RGB").tobytes() == base.tobytes()

    def test_shadow_and_glow_draw_outside_the_glyphs(self):
        base = Image.new("RGB", (300, 150), (0, 0, 0))
        plain = render_overlays(base, [TextOverlay(text="GLOW", size=50, color="#000000")])
        styled = render_overlays(base, [TextOverlay(
            text="GLOW",
            size=50,
            color="#000000",
            glow=GlowEffect(enabled=True, color="#00ff00", size=10),
            shadow=ShadowEffect(enabled=True, color="#ff0000", blur=4),
        )])
        assert plain.convert("RGB").getbbox() is None
        assert styled.convert("RGB").getbbox() is not None

    def test_rotation_changes_layout(self):
        base = Image.new("RGB", (300, 300), (0, 0, 0))
        flat = render_overlays(base, [TextOverlay(text="ROTATE", size=40)])
        turned = render_overlays(base, [TextOverlay(text="ROTATE", size=40, rotation=math.pi / 2)])
        fw = flat.convert("L").getbbox()
        tw = turned.convert("L").getbbox()
        assert (fw[2] - fw[0]) > (fw[3] - fw[1])
        assert (tw[3] - tw[1]) > (tw[2] - tw[0])
