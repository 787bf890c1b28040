"""Black/white inpainting masks. White marks the region to regenerate."""

from PIL import Image, ImageDraw

from thumbnail_ai.editor.selection import SelectionArea
from thumbnail_ai.images import encode_png_data_url

BLACK = 0
WHITE = 255


def build_mask(selection: SelectionArea, width: int, height: int) -> Image.Image:
    """
    Render a mask the size of the source image.

    ``width``/``height`` are the image's natural pixel dimensions, not its
    displayed size.
    """
    mask = Image.new("L", (width, height), BLACK)
    left, top, right, bottom = selection.box()
    if right > left and bottom > top:
        draw = ImageDraw.Draw(mask)
        # PIL rectangles include the far edge
        draw.rectangle(
            [round(left), round(top), round(right) - 1, round(bottom) - 1],
            fill=WHITE,
        )
    return mask


def mask_data_url(selection: SelectionArea, width: int, height: int) -> str:
    return encode_png_data_url(build_mask(selection, width, height))
