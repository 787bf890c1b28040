"""
Image Helpers
=============

Fetching, decoding and lossless encoding of images, shared by the backend
and the editor client.

Usage:
    from thumbnail_ai.images import encode_png_data_url, decode_data_url

    url = encode_png_data_url(img)      # "data:image/png;base64,..."
    img = decode_image(decode_data_url(url))
"""

import base64
import binascii
from io import BytesIO

import requests
from PIL import Image, UnidentifiedImageError

from thumbnail_ai.errors import DecodeError, NetworkError

DATA_URL_PREFIX = "data:"
PNG_MODES = {"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"}


def fetch_image_bytes(url: str, session: requests.Session | None = None, timeout: int = 60) -> bytes:
    """
    Download an image (or unpack a data URL).

    Raises:
        NetworkError: If the download fails or returns a non-200 status.
    """
    if url.startswith(DATA_URL_PREFIX):
        return decode_data_url(url)

    getter = session.get if session else requests.get
    try:
        r = getter(url, timeout=timeout)
    except requests.Timeout as e:
        raise NetworkError(f"Timed out downloading image: {e}", timed_out=True) from e
    except requests.RequestException as e:
        raise NetworkError(f"Failed to download image: {e}") from e
    if r.status_code != 200:
        raise NetworkError(f"Failed to download image: {r.status_code}")
    return r.content


def decode_image(data: bytes) -> Image.Image:
    """Decode bytes into a fully loaded Pillow image."""
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"Image failed to decode: {e}") from e
    return img


def encode_png(img: Image.Image) -> bytes:
    # CMYK, YCbCr etc. have no PNG representation
    if img.mode not in PNG_MODES:
        img = img.convert("RGBA")
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def encode_png_data_url(img: Image.Image) -> str:
    """Encode as a base64 PNG data URL (lossless)."""
    b64 = base64.b64encode(encode_png(img)).decode("ascii")
    return f"data:image/png;base64,{b64}"


def decode_data_url(url: str) -> bytes:
    """Return the raw bytes of a base64 data URL."""
    header, sep, payload = url.partition(",")
    if not sep or not header.startswith(DATA_URL_PREFIX) or ";base64" not in header:
        raise DecodeError("Not a base64 data URL")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 payload: {e}") from e
