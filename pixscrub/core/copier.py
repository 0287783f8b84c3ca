"""Byte-for-byte copies of files that are not scrubbed images."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile

from .errors import CopyError

__all__ = ["copy_verbatim"]

logger = logging.getLogger(__name__)

_CHUNK = 1024 * 1024


def copy_verbatim(src: str, dst: str) -> int:
    """Copy ``src`` to ``dst`` and return the number of bytes written.

    Parent directories of ``dst`` are created first.  Data is streamed into
    a hidden sibling file which is flushed and fsynced before it is renamed
    onto ``dst``, so ``dst`` either holds the full content or does not exist.
    """

    parent = os.path.dirname(dst) or "."
    try:
        os.makedirs(parent, exist_ok=True)
    except OSError as exc:
        raise CopyError(f"cannot create directory ({exc.strerror or exc})", parent) from exc

    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".pixscrub-", suffix=".part", dir=parent)
    except OSError as exc:
        raise CopyError(f"cannot create temporary file ({exc.strerror or exc})", parent) from exc

    written = 0
    try:
        with os.fdopen(fd, "wb") as out, open(src, "rb") as handle:
            while True:
                chunk = handle.read(_CHUNK)
                if not chunk:
                    break
                out.write(chunk)
                written += len(chunk)
            out.flush()
            os.fsync(out.fileno())
        shutil.copymode(src, tmp_path)
        os.replace(tmp_path, dst)
    except OSError as exc:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise CopyError(f"copy to {dst} failed ({exc.strerror or exc})", src) from exc

    logger.debug("Copied non-image file %s -> %s (%d bytes)", src, dst, written)
    return written
