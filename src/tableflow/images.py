"""Image decoding and scaling helpers."""

from functools import lru_cache
from io import BytesIO
from typing import Tuple

from reportlab.lib.utils import ImageReader

from .errors import SurfaceFailure


@lru_cache(maxsize=256)
def image_dimensions(image: bytes) -> Tuple[int, int]:
    """Return the native (width, height) in pixels of encoded image bytes."""
    try:
        width, height = ImageReader(BytesIO(image)).getSize()
    except Exception as exc:  # ReportLab/Pillow raise a variety of types here
        raise SurfaceFailure(f"Unable to decode image ({len(image)} bytes)") from exc
    return int(width), int(height)


def image_height(image: bytes, width: float) -> float:
    """Height of an image drawn at the given width, keeping its aspect ratio."""
    native_width, native_height = image_dimensions(image)
    return native_height * width / native_width


def scale_image_to_max_width(image: bytes, max_width: float) -> Tuple[float, float]:
    """
    Scale an image down so it is no wider than max_width.

    Images narrower than max_width keep their native size.

    Returns:
        Tuple of (image_width, image_height)
    """
    native_width, native_height = image_dimensions(image)
    image_width = min(native_width, max_width)
    return image_width, native_height * (image_width / native_width)
