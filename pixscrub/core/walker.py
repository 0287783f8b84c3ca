"""Depth-first walk of a source tree.

Each regular file goes through :func:`probe`, the single classify-or-open
step: a file whose extension names a known format and whose content fully
decodes under that format becomes an :class:`ImageEntry` and is recorded
in the :class:`GroupingIndex`.  Everything else is an :class:`OpaqueEntry`
and is copied verbatim into the target mirror while walking.
"""

from __future__ import annotations

import logging
import os
import stat
import struct
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Set, Tuple, Union

from PIL import Image, ImageSequence, UnidentifiedImageError

from .copier import copy_verbatim
from .errors import TraversalError
from .formats import Format, classify
from .index import GroupKey, GroupingIndex

__all__ = ["ImageEntry", "OpaqueEntry", "WalkResult", "probe", "walk"]

logger = logging.getLogger(__name__)

# Errors Pillow raises for malformed or truncated image data.
_DECODE_ERRORS = (UnidentifiedImageError, OSError, SyntaxError, ValueError, EOFError, IndexError, struct.error)


@dataclass(frozen=True)
class ImageEntry:
    path: str
    key: GroupKey


@dataclass(frozen=True)
class OpaqueEntry:
    path: str


Entry = Union[ImageEntry, OpaqueEntry]


@dataclass
class WalkResult:
    index: GroupingIndex = field(default_factory=GroupingIndex)
    directories: int = 0
    copied: int = 0
    bytes_copied: int = 0
    skipped: int = 0


@contextmanager
def _unbounded_pixels() -> Iterator[None]:
    # Lifts the pixel limit for a single decode only.
    limit = Image.MAX_IMAGE_PIXELS
    Image.MAX_IMAGE_PIXELS = None
    try:
        yield
    finally:
        Image.MAX_IMAGE_PIXELS = limit


def _decode_size(handle, fmt: Format) -> Tuple[int, int]:
    with _unbounded_pixels(), Image.open(handle, formats=[fmt.pillow_name]) as img:
        for frame in ImageSequence.Iterator(img):
            frame.load()
        return img.size


def probe(path: str) -> Entry:
    """Classify ``path`` and, for image extensions, fully decode it.

    Only the decoder selected by the extension is tried; content is never
    sniffed.  Failing to open the file is fatal, failing to decode it is
    not.  Images with a zero-length side are reported as opaque.
    """

    fmt = classify(path)
    if fmt is Format.NONE:
        return OpaqueEntry(path)

    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise TraversalError(f"cannot open file ({exc.strerror or exc})", path) from exc

    with handle:
        try:
            width, height = _decode_size(handle, fmt)
        except _DECODE_ERRORS as exc:
            logger.debug("Not a decodable %s image, treating as opaque: %s (%s)", fmt.value, path, exc)
            return OpaqueEntry(path)

    if width == 0 or height == 0:
        return OpaqueEntry(path)
    return ImageEntry(path, GroupKey(fmt, width, height))


class _Walker:
    def __init__(self, source_root: str, target_root: str) -> None:
        self.source_root = source_root
        self.target_root = target_root
        self._real_target = os.path.realpath(target_root)
        self.result = WalkResult()
        self._active: Set[Tuple[int, int]] = set()

    def mirror(self, rel: str) -> str:
        return os.path.join(self.target_root, rel) if rel else self.target_root

    def visit_dir(self, path: str, rel: str) -> None:
        try:
            info = os.stat(path)
        except OSError as exc:
            raise TraversalError(f"cannot stat directory ({exc.strerror or exc})", path) from exc

        ident = (info.st_dev, info.st_ino)
        if ident in self._active:
            raise TraversalError("directory cycle through symbolic link", path)

        real = os.path.realpath(path)
        if os.path.commonpath([real, self._real_target]) == self._real_target:
            raise TraversalError("directory resolves into the target tree", path)

        target_dir = self.mirror(rel)
        try:
            os.makedirs(target_dir, exist_ok=True)
        except OSError as exc:
            raise TraversalError(f"cannot create mirror directory ({exc.strerror or exc})", target_dir) from exc

        try:
            with os.scandir(path) as listing:
                names = sorted(entry.name for entry in listing)
        except OSError as exc:
            raise TraversalError(f"cannot list directory ({exc.strerror or exc})", path) from exc

        self.result.directories += 1
        logger.debug("Children of %s are %s", path, names)

        self._active.add(ident)
        try:
            for name in names:
                self.visit(os.path.join(path, name), os.path.join(rel, name) if rel else name)
        finally:
            self._active.discard(ident)

    def visit(self, path: str, rel: str) -> None:
        try:
            mode = os.stat(path).st_mode
        except OSError as exc:
            raise TraversalError(f"cannot stat entry ({exc.strerror or exc})", path) from exc

        if stat.S_ISDIR(mode):
            self.visit_dir(path, rel)
        elif stat.S_ISREG(mode):
            self.visit_file(path, rel)
        else:
            logger.warning("Skipping special file %s", path)
            self.result.skipped += 1

    def visit_file(self, path: str, rel: str) -> None:
        entry = probe(path)
        if isinstance(entry, ImageEntry):
            self.result.index.add(entry.key, path)
            return
        self.result.bytes_copied += copy_verbatim(path, self.mirror(rel))
        self.result.copied += 1


def walk(source: str, target: str) -> WalkResult:
    """Walk ``source`` depth-first, copying opaque files under ``target``.

    Children are visited in name order.  Every visited directory is
    recreated under ``target``.  Returns the populated index of image
    paths (absolute, on the source side) together with run counters.
    """

    walker = _Walker(os.path.abspath(source), os.path.abspath(target))
    walker.visit_dir(walker.source_root, "")
    return walker.result
