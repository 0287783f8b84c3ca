"""Exceptions raised by the sanitization pipeline.

Every error names the filesystem ``path`` it concerns and the ``step`` of
the run that failed so a failed run can be diagnosed from its message
alone.  Codec decode failures are deliberately absent: a file that does
not decode is copied verbatim instead.
"""

from __future__ import annotations

import os
from typing import Optional, Union

PathLike = Union[str, "os.PathLike[str]"]


class SanitizeError(Exception):
    """Base class for every fatal condition of a sanitization run."""

    step = "sanitize"

    def __init__(self, message: str, path: Optional[PathLike] = None, *, step: Optional[str] = None) -> None:
        self.path = os.fspath(path) if path is not None else None
        if step is not None:
            self.step = step
        self.message = message
        super().__init__(self._render())

    def _render(self) -> str:
        if self.path is None:
            return f"{self.step}: {self.message}"
        return f"{self.step}: {self.message}: {self.path}"


class PreconditionError(SanitizeError):
    """Raised before any filesystem mutation happens."""

    step = "precondition"


class SourceMissingError(PreconditionError):
    pass


class SourceNotDirectoryError(PreconditionError):
    pass


class TargetExistsError(PreconditionError):
    pass


class TargetInsideSourceError(PreconditionError):
    pass


class StagingCollisionError(PreconditionError):
    pass


class TraversalError(SanitizeError):
    step = "walk"


class CopyError(TraversalError):
    step = "copy"


class SynthesisError(SanitizeError):
    step = "synthesize"


class LinkError(SanitizeError):
    step = "link"
