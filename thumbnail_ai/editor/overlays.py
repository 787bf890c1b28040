"""
Text overlays
=============

Styled captions placed on top of a thumbnail: model, pointer interaction
(drag, resize from a corner, rotate from the handle above the text) and
compositing with Pillow for the final download.

    editor = OverlayEditor()
    overlay = editor.add_text("WATCH THIS", size=120, color="#ffcc00")
    editor.update_text(overlay.id, glow=GlowEffect(enabled=True))
    result = render_overlays(image, editor.overlays)
"""

import logging
import math
import uuid
from functools import lru_cache
from typing import Annotated

from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageFont
from pydantic import AfterValidator, BaseModel, Field

logger = logging.getLogger(__name__)

MIN_TEXT_SIZE = 24
MAX_TEXT_SIZE = 300
HANDLE_RADIUS = 10
ROTATE_HANDLE_OFFSET = 30
GLOW_PASSES = 3


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------

def _check_color(value: str) -> str:
    try:
        ImageColor.getrgb(value)
    except ValueError as e:
        raise ValueError(f"Invalid color '{value}'") from e
    return value


Color = Annotated[str, AfterValidator(_check_color)]


class Position(BaseModel):
    # None centers the text on that axis
    x: float | None = None
    y: float | None = None


class GlowEffect(BaseModel):
    enabled: bool = False
    color: Color = "#00ff00"
    size: float = Field(default=20, ge=0, le=100)


class ShadowEffect(BaseModel):
    enabled: bool = False
    color: Color = "#000000"
    blur: float = Field(default=15, ge=0, le=100)
    offset_x: float = 5
    offset_y: float = 5


class TextOverlay(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    text: str = Field(default="", max_length=200)
    size: float = Field(default=84, ge=1, le=1000)
    color: Color = "#ffffff"
    position: Position = Field(default_factory=Position)
    font: str = "Arial"
    bold: bool = False
    minimized: bool = False
    rotation: float = 0.0  # radians, clockwise on screen
    glow: GlowEffect = Field(default_factory=GlowEffect)
    shadow: ShadowEffect = Field(default_factory=ShadowEffect)

    def anchor(self, width: int, height: int) -> tuple[float, float]:
        x = width / 2 if self.position.x is None else self.position.x
        y = height / 2 if self.position.y is None else self.position.y
        return x, y


# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------

# Common font paths across Linux and macOS
FALLBACK_FONTS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
]
FALLBACK_BOLD_FONTS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
]


@lru_cache(maxsize=64)
def load_font(name: str, size: int, bold: bool = False) -> ImageFont.ImageFont:
    """Resolve a font family name to a Pillow font, falling back to the default face."""
    base = name.replace(" ", "")
    candidates = [f"{base}-Bold.ttf", f"{base}bd.ttf", f"{base} Bold.ttf"] if bold else []
    candidates += [f"{base}.ttf", name]
    candidates += FALLBACK_BOLD_FONTS if bold else FALLBACK_FONTS
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    logger.debug("No TrueType font found for %s, using default", name)
    return ImageFont.load_default(size=size)


def font_for(overlay: TextOverlay):
    return load_font(overlay.font, max(1, round(overlay.size)), overlay.bold)


def measure(overlay: TextOverlay) -> tuple[float, float]:
    """Return the text box (width, height); height is the font size."""
    return font_for(overlay).getlength(overlay.text), overlay.size


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _text_layer(size, overlay: TextOverlay, xy, fill) -> Image.Image:
    layer = Image.new("RGBA", size, (0, 0, 0, 0))
    ImageDraw.Draw(layer).text(xy, overlay.text, font=font_for(overlay), fill=fill, anchor="mm")
    return layer


def render_overlay(image: Image.Image, overlay: TextOverlay) -> Image.Image:
    if not overlay.text:
        return image
    size = image.size
    x, y = overlay.anchor(*size)
    layer = Image.new("RGBA", size, (0, 0, 0, 0))

    if overlay.shadow.enabled:
        shadow = overlay.shadow
        shadow_layer = _text_layer(size, overlay, (x + shadow.offset_x, y + shadow.offset_y), shadow.color)
        if shadow.blur:
            shadow_layer = shadow_layer.filter(ImageFilter.GaussianBlur(shadow.blur / 2))
        layer = Image.alpha_composite(layer, shadow_layer)

    if overlay.glow.enabled:
        glow_layer = _text_layer(size, overlay, (x, y), overlay.glow.color)
        if overlay.glow.size:
            glow_layer = glow_layer.filter(ImageFilter.GaussianBlur(overlay.glow.size / 2))
        # Stacked passes for a stronger glow
        for _ in range(GLOW_PASSES):
            layer = Image.alpha_composite(layer, glow_layer)

    layer = Image.alpha_composite(layer, _text_layer(size, overlay, (x, y), overlay.color))

    if overlay.rotation:
        # Pillow rotates counter-clockwise for positive angles
        layer = layer.rotate(-math.degrees(overlay.rotation), center=(x, y), resample=Image.BICUBIC)

    return Image.alpha_composite(image, layer)


def render_overlays(image: Image.Image, overlays) -> Image.Image:
    """Composite every overlay onto a copy of ``image`` (RGBA result)."""
    result = image.convert("RGBA")
    for overlay in overlays:
        result = render_overlay(result, overlay)
    return result


# ---------------------------------------------------------------------------
# Interaction
# ---------------------------------------------------------------------------

class OverlayEditor:
    """Overlays keyed by id plus the drag/resize/rotate gesture in progress."""

    def __init__(self, canvas_size: tuple[int, int] = (0, 0)):
        self.canvas_size = canvas_size
        self._overlays: dict[str, TextOverlay] = {}
        self.active_id: str | None = None
        self.gesture: str | None = None
        self._gesture_start: dict = {}

    @property
    def overlays(self) -> list[TextOverlay]:
        return list(self._overlays.values())

    @property
    def active(self) -> TextOverlay | None:
        return self._overlays.get(self.active_id) if self.active_id else None

    def get(self, overlay_id: str) -> TextOverlay:
        return self._overlays[overlay_id]

    def add_text(self, text: str = "", **fields) -> TextOverlay:
        for existing in self._overlays.values():
            existing.minimized = True
        overlay = TextOverlay(text=text, **fields)
        self._overlays[overlay.id] = overlay
        self.active_id = overlay.id
        return overlay

    def remove_text(self, overlay_id: str):
        self._overlays.pop(overlay_id, None)
        if self.active_id == overlay_id:
            self.active_id = None

    def update_text(self, overlay_id: str, **changes) -> TextOverlay:
        current = self._overlays[overlay_id]
        updated = current.model_copy(update=changes)
        self._overlays[overlay_id] = TextOverlay.model_validate(updated.model_dump())
        return self._overlays[overlay_id]

    def clear(self):
        self._overlays.clear()
        self.active_id = None
        self.gesture = None

    # -- hit testing ------------------------------------------------------------

    def _geometry(self, overlay: TextOverlay):
        tx, ty = overlay.anchor(*self.canvas_size)
        w, h = measure(overlay)
        corners = [
            (tx - w / 2, ty - h / 2),
            (tx + w / 2, ty - h / 2),
            (tx - w / 2, ty + h / 2),
            (tx + w / 2, ty + h / 2),
        ]
        handle = (tx, ty - h / 2 - ROTATE_HANDLE_OFFSET)
        return tx, ty, w, h, corners, handle

    def hit_test(self, x: float, y: float) -> tuple[str, TextOverlay] | None:
        """Return ``(gesture, overlay)`` for the topmost overlay under the pointer."""
        reach = HANDLE_RADIUS * 2
        for overlay in reversed(self.overlays):
            if not overlay.text:
                continue
            tx, ty, w, h, corners, handle = self._geometry(overlay)
            if any(math.hypot(x - cx, y - cy) < reach for cx, cy in corners):
                return "resize", overlay
            if math.hypot(x - handle[0], y - handle[1]) < reach:
                return "rotate", overlay
            if math.hypot(x - tx, y - ty) < max(w / 2, h / 2):
                return "drag", overlay
        return None

    def cursor(self, x: float, y: float) -> str:
        hit = self.hit_test(x, y)
        if not hit:
            return "default"
        return "nwse-resize" if hit[0] == "resize" else "move"

    # -- gestures ---------------------------------------------------------------

    def pointer_down(self, x: float, y: float) -> bool:
        hit = self.hit_test(x, y)
        if not hit:
            return False
        gesture, overlay = hit
        tx, ty = overlay.anchor(*self.canvas_size)
        self.active_id = overlay.id
        self.gesture = gesture
        if gesture == "resize":
            self._gesture_start = {"x": x, "y": y, "size": overlay.size}
        elif gesture == "rotate":
            self._gesture_start = {"angle": math.atan2(y - ty, x - tx), "rotation": overlay.rotation}
        else:
            self._gesture_start = {"dx": x - tx, "dy": y - ty}
        return True

    def pointer_move(self, x: float, y: float) -> bool:
        overlay = self.active
        if not self.gesture or overlay is None:
            return False
        start = self._gesture_start
        if self.gesture == "resize":
            dx = x - start["x"]
            dy = y - start["y"]
            direction = 1 if dx > 0 else -1
            size = start["size"] + math.hypot(dx, dy) * direction
            self.update_text(overlay.id, size=max(MIN_TEXT_SIZE, min(MAX_TEXT_SIZE, size)))
        elif self.gesture == "rotate":
            tx, ty = overlay.anchor(*self.canvas_size)
            angle = math.atan2(y - ty, x - tx) - start["angle"]
            self.update_text(overlay.id, rotation=start["rotation"] + angle)
        else:
            self.update_text(overlay.id, position=Position(x=x - start["dx"], y=y - start["dy"]))
        return True

    def pointer_up(self):
        self.gesture = None
        self._gesture_start = {}
