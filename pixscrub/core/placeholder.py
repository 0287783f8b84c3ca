"""Minimal single-colour rasters that stand in for scrubbed images."""

from __future__ import annotations

import io
import logging

import numpy as np
from PIL import Image

from .errors import SynthesisError
from .formats import Format
from .index import GroupKey

__all__ = ["placeholder_name", "synthesize"]

logger = logging.getLogger(__name__)


def placeholder_name(key: GroupKey) -> str:
    """Return the staging file name for ``key``, e.g. ``100x50.png``."""

    return f"{key.width}x{key.height}.{key.format.extension}"


def _gray_canvas(width: int, height: int, fill: int) -> Image.Image:
    pixels = np.full((height, width), fill, dtype=np.uint8)
    return Image.fromarray(pixels)


def _encode(img: Image.Image, fmt: Format, jpeg_quality: int) -> bytes:
    buf = io.BytesIO()
    if fmt is Format.PNG:
        img.save(buf, format="PNG")
    elif fmt is Format.GIF:
        img.save(buf, format="GIF")
    elif fmt is Format.JPEG:
        img.save(buf, format="JPEG", quality=jpeg_quality)
    else:  # pragma: no cover - guarded by synthesize
        raise SynthesisError(f"unsupported format {fmt.value}")
    return buf.getvalue()


def synthesize(
    fmt: Format,
    width: int,
    height: int,
    *,
    fill: int = 0,
    jpeg_quality: int = 1,
) -> bytes:
    """Encode a ``width`` x ``height`` grayscale raster of one colour.

    Output depends only on the arguments, so two calls with the same
    inputs return identical bytes.  Degenerate geometry (either side zero)
    is rejected for every format rather than producing an empty raster.
    """

    if fmt is Format.NONE:
        raise SynthesisError("cannot synthesize a placeholder for a non-image format")
    if width <= 0 or height <= 0:
        raise SynthesisError(f"degenerate geometry {width}x{height} for {fmt.value}")
    if not 0 <= fill <= 255:
        raise SynthesisError(f"fill {fill} outside 0..255")

    try:
        return _encode(_gray_canvas(width, height, fill), fmt, jpeg_quality)
    except (OSError, ValueError, MemoryError) as exc:
        raise SynthesisError(f"{fmt.value} encoder failed for {width}x{height} ({exc})") from exc
