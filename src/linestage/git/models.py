"""Data models for a single file's diff."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Origin(str, Enum):
    CONTEXT = "context"
    ADDITION = "addition"
    DELETION = "deletion"

    @property
    def prefix(self) -> str:
        """The unified-diff marker character for this origin."""
        return _PREFIX[self]


_PREFIX = {
    Origin.CONTEXT: " ",
    Origin.ADDITION: "+",
    Origin.DELETION: "-",
}


@dataclass(frozen=True, slots=True)
class DiffLine:
    """A single line of a hunk, as supplied by the diff provider."""

    origin: Origin
    content: str
    old_lineno: Optional[int] = None
    new_lineno: Optional[int] = None
    no_newline_at_eof: bool = False  # followed by "\ No newline at end of file"

    @property
    def is_change(self) -> bool:
        return self.origin is not Origin.CONTEXT


@dataclass(frozen=True, slots=True)
class HunkHeader:
    """Parsed ``@@ -old_start[,old_len] +new_start[,new_len] @@`` header."""

    old_start: int
    old_len: int
    new_start: int
    new_len: int
    section: str = ""  # trailing text after the closing @@


@dataclass(frozen=True)
class Hunk:
    """A contiguous block of changes with its original header text."""

    header: str
    lines: Tuple[DiffLine, ...] = ()

    @property
    def change_indices(self) -> Tuple[int, ...]:
        """Indices of the selectable (addition / deletion) lines."""
        return tuple(i for i, line in enumerate(self.lines) if line.is_change)


@dataclass(frozen=True)
class FileDiff:
    """Immutable snapshot of one file's diff between working tree and index."""

    path: str
    hunks: Tuple[Hunk, ...] = ()

    @property
    def is_new_file(self) -> bool:
        return bool(self.hunks) and self.hunks[0].header.startswith("@@ -0,0")

    @property
    def changed_line_count(self) -> int:
        return sum(len(h.change_indices) for h in self.hunks)

    def line(self, hunk_index: int, line_index: int) -> DiffLine:
        return self.hunks[hunk_index].lines[line_index]
