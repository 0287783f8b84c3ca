"""Sanitization driver.

``sanitize(source, target)`` produces a mirror of ``source`` under
``target`` in which non-image files are copied verbatim and every image
is a hard link to one placeholder per (format, width, height) stored in
the staging directory ``target/.sanitized``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .errors import (
    LinkError,
    SanitizeError,
    SourceMissingError,
    SourceNotDirectoryError,
    StagingCollisionError,
    SynthesisError,
    TargetExistsError,
    TargetInsideSourceError,
)
from .index import GroupKey, GroupingIndex
from .placeholder import placeholder_name, synthesize
from .walker import walk

__all__ = ["DEFAULT_STAGING_DIR", "SanitizeOptions", "SanitizeReport", "sanitize"]

logger = logging.getLogger(__name__)

DEFAULT_STAGING_DIR = ".sanitized"


@dataclass(frozen=True)
class SanitizeOptions:
    staging_dir: str = DEFAULT_STAGING_DIR
    fill: int = 0
    jpeg_quality: int = 1

    def __post_init__(self) -> None:
        name = self.staging_dir
        if not name or name in (".", "..") or os.sep in name or (os.altsep and os.altsep in name):
            raise ValueError(f"invalid staging directory name: {name!r}")
        if not 0 <= int(self.fill) <= 255:
            raise ValueError(f"placeholder fill must be within 0..255, got {self.fill}")
        if not 1 <= int(self.jpeg_quality) <= 95:
            raise ValueError(f"jpeg_quality must be within 1..95, got {self.jpeg_quality}")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SanitizeOptions":
        placeholder = config.get("placeholder") or {}
        if not isinstance(placeholder, Mapping):
            raise ValueError(f"placeholder settings must be an object, got {type(placeholder).__name__}")
        return cls(
            staging_dir=str(config.get("staging_dir", DEFAULT_STAGING_DIR)),
            fill=int(placeholder.get("fill", 0)),
            jpeg_quality=int(placeholder.get("jpeg_quality", 1)),
        )


@dataclass
class SanitizeReport:
    source: str
    target: str
    directories: int = 0
    copied: int = 0
    bytes_copied: int = 0
    skipped: int = 0
    images: int = 0
    placeholders: int = 0
    links: int = 0



def _check_preconditions(source: str, target: str, staging_dir: str) -> None:
    if not os.path.exists(source):
        raise SourceMissingError("source does not exist", source)
    if not os.path.isdir(source):
        raise SourceNotDirectoryError("source is not a directory", source)
    if os.path.lexists(target):
        raise TargetExistsError("target already exists", target)

    real_source = os.path.realpath(source)
    real_target = os.path.realpath(target)
    if os.path.commonpath([real_source, real_target]) == real_source:
        raise TargetInsideSourceError("target lies inside the source tree", target)
    if os.path.lexists(os.path.join(source, staging_dir)):
        raise StagingCollisionError(
            f"source already contains the reserved staging name {staging_dir!r}",
            os.path.join(source, staging_dir),
        )


def _write_placeholders(index: GroupingIndex, staging: str, options: SanitizeOptions) -> Dict[GroupKey, str]:
    placed: Dict[GroupKey, str] = {}
    for key in index:
        path = os.path.join(staging, placeholder_name(key))
        try:
            payload = synthesize(
                key.format, key.width, key.height, fill=options.fill, jpeg_quality=options.jpeg_quality
            )
        except SynthesisError as exc:
            raise SynthesisError(exc.message, path) from exc
        try:
            # "xb" never overwrites an existing placeholder.
            with open(path, "xb") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
        except OSError as exc:
            raise SynthesisError(f"cannot write placeholder ({exc.strerror or exc})", path) from exc
        logger.debug("Creating sanitized image file %s", path)
        placed[key] = path
    return placed


def _link_images(index: GroupingIndex, placed: Mapping[GroupKey, str], source: str, target: str) -> int:
    links = 0
    for key, paths in index.items():
        canonical = placed[key]
        for path in paths:
            mirror = os.path.join(target, os.path.relpath(path, source))
            try:
                os.makedirs(os.path.dirname(mirror), exist_ok=True)
                os.link(canonical, mirror)
            except OSError as exc:
                raise LinkError(f"cannot link to {canonical} ({exc.strerror or exc})", mirror) from exc
            logger.debug("Establishing a hard link from %s to sanitized %s", mirror, canonical)
            links += 1
    return links


def sanitize(source: str, target: str, options: Optional[SanitizeOptions] = None) -> SanitizeReport:
    """Build the sanitized mirror of ``source`` at ``target``.

    Raises a :class:`~pixscrub.core.errors.PreconditionError` subclass
    before touching the filesystem when ``source`` is not an existing
    directory or ``target`` already exists.  Later failures abort the run
    and leave whatever was created in place.
    """

    options = options or SanitizeOptions()
    source = os.path.abspath(source)
    target = os.path.abspath(target)
    _check_preconditions(source, target, options.staging_dir)

    staging = os.path.join(target, options.staging_dir)
    try:
        os.makedirs(staging)
    except OSError as exc:
        raise SanitizeError(f"cannot create staging directory ({exc.strerror or exc})", staging, step="setup") from exc
    logger.info("Sanitizing %s into %s", source, target)

    walked = walk(source, target)
    index = walked.index

    placed = _write_placeholders(index, staging, options)
    links = _link_images(index, placed, source, target)

    report = SanitizeReport(
        source=source,
        target=target,
        directories=walked.directories,
        copied=walked.copied,
        bytes_copied=walked.bytes_copied,
        skipped=walked.skipped,
        images=index.count(),
        placeholders=len(placed),
        links=links,
    )
    logger.info(
        "Sanitized %d image(s) into %d placeholder(s), copied %d file(s) across %d director%s",
        report.images,
        report.placeholders,
        report.copied,
        report.directories,
        "y" if report.directories == 1 else "ies",
    )
    return report
