"""Sanitization pipeline: classification, walking, synthesis and linking."""

from .errors import (
    CopyError,
    LinkError,
    PreconditionError,
    SanitizeError,
    SourceMissingError,
    SourceNotDirectoryError,
    StagingCollisionError,
    SynthesisError,
    TargetExistsError,
    TargetInsideSourceError,
    TraversalError,
)
from .formats import Format, classify
from .index import GroupKey, GroupingIndex
from .placeholder import placeholder_name, synthesize
from .sanitize import SanitizeOptions, SanitizeReport, sanitize
from .walker import ImageEntry, OpaqueEntry, WalkResult, probe, walk

__all__ = [
    "CopyError",
    "Format",
    "GroupKey",
    "GroupingIndex",
    "ImageEntry",
    "LinkError",
    "OpaqueEntry",
    "PreconditionError",
    "SanitizeError",
    "SanitizeOptions",
    "SanitizeReport",
    "SourceMissingError",
    "SourceNotDirectoryError",
    "StagingCollisionError",
    "SynthesisError",
    "TargetExistsError",
    "TargetInsideSourceError",
    "TraversalError",
    "WalkResult",
    "classify",
    "placeholder_name",
    "probe",
    "sanitize",
    "synthesize",
    "walk",
]
