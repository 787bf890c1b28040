"""Pointer position -> source-image pixel mapping."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BoundingRect:
    """Where the canvas sits on screen, in CSS pixels."""

    left: float
    top: float
    width: float
    height: float


def to_source(
    client_x: float,
    client_y: float,
    rect: BoundingRect,
    backing_width: int,
    backing_height: int,
) -> tuple[float, float]:
    """
    Map a pointer position to source-image pixels.

    The canvas backing store is the image's natural size while the element
    can be displayed at any size, so each axis gets its own scale.

    Raises:
        ValueError: If the canvas has not been laid out (zero displayed size).
    """
    if rect.width <= 0 or rect.height <= 0:
        raise ValueError("Canvas has no displayed size yet")
    scale_x = backing_width / rect.width
    scale_y = backing_height / rect.height
    return (client_x - rect.left) * scale_x, (client_y - rect.top) * scale_y
