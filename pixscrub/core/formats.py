"""Map file names to the raster formats pixscrub knows how to scrub."""

from __future__ import annotations

import os
from enum import Enum
from typing import Dict, Optional

__all__ = ["Format", "classify", "EXTENSIONS"]


class Format(Enum):
    NONE = "none"
    PNG = "png"
    GIF = "gif"
    JPEG = "jpeg"

    @property
    def extension(self) -> str:
        """Native extension used for placeholder file names."""

        if self is Format.NONE:
            raise ValueError("Format.NONE has no native extension")
        return _NATIVE_EXTENSIONS[self]

    @property
    def pillow_name(self) -> Optional[str]:
        """Name of the Pillow plugin that decodes and encodes this format."""

        return _PILLOW_NAMES.get(self)


EXTENSIONS: Dict[str, Format] = {
    "png": Format.PNG,
    "gif": Format.GIF,
    "jpg": Format.JPEG,
    "jpeg": Format.JPEG,
    "jpe": Format.JPEG,
    "jif": Format.JPEG,
    "jfif": Format.JPEG,
    "jfi": Format.JPEG,
}

_NATIVE_EXTENSIONS = {
    Format.PNG: "png",
    Format.GIF: "gif",
    Format.JPEG: "jpg",
}

_PILLOW_NAMES = {
    Format.PNG: "PNG",
    Format.GIF: "GIF",
    Format.JPEG: "JPEG",
}


def classify(name: str | os.PathLike[str]) -> Format:
    """Return the :class:`Format` implied by the extension of ``name``.

    Only the base name is inspected and the comparison ignores case.  A
    name without a ``.`` or with an unknown extension is ``Format.NONE``.
    """

    base = os.path.basename(os.fspath(name))
    _, dot, ext = base.rpartition(".")
    if not dot:
        return Format.NONE
    return EXTENSIONS.get(ext.lower(), Format.NONE)
