"""Grouping of decoded images by format and geometry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Set, Tuple

from .formats import Format

__all__ = ["GroupKey", "GroupingIndex"]


@dataclass(frozen=True)
class GroupKey:
    """Images sharing a key are interchangeable once their pixels are gone."""

    format: Format
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.format is Format.NONE:
            raise ValueError("GroupKey requires an image format")
        if self.width < 0 or self.height < 0:
            raise ValueError(f"negative geometry {self.width}x{self.height}")

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


class GroupingIndex:
    """Ordered mapping of :class:`GroupKey` to the source paths in that group.

    Keys keep first-seen order and paths keep insertion order, which is the
    walk order.  A path belongs to at most one group.
    """

    def __init__(self) -> None:
        self._groups: Dict[GroupKey, List[str]] = {}
        self._seen: Set[str] = set()

    def add(self, key: GroupKey, path: str) -> None:
        if path in self._seen:
            raise ValueError(f"path already grouped: {path}")
        self._seen.add(path)
        self._groups.setdefault(key, []).append(path)

    def paths_for(self, key: GroupKey) -> List[str]:
        return list(self._groups.get(key, ()))

    def keys(self) -> List[GroupKey]:
        return list(self._groups)

    def items(self) -> Iterator[Tuple[GroupKey, List[str]]]:
        for key, paths in self._groups.items():
            yield key, list(paths)

    def count(self) -> int:
        """Total number of grouped paths across every key."""

        return len(self._seen)

    def __contains__(self, key: object) -> bool:
        return key in self._groups

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self) -> Iterator[GroupKey]:
        return iter(list(self._groups))

    def __repr__(self) -> str:
        return f"GroupingIndex(groups={len(self._groups)}, paths={len(self._seen)})"
