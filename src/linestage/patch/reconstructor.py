"""Hunk reconstruction — keep only the selected changes of one hunk.

Unselected additions vanish from both sides of the patch. Unselected
deletions are turned back into context so the line stays where it is in the
index. Lengths are always recounted from the surviving lines; the start
positions are taken from the original header.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import AbstractSet, List, Optional, Tuple

from linestage.git.models import DiffLine, Hunk, HunkHeader, Origin

NO_NEWLINE_MARKER = "\\ No newline at end of file"

_HUNK_HEADER_RE = re.compile(
    r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$"
)


class PatchError(Exception):
    """Raised when a patch cannot be built from the current selection."""


class HunkHeaderError(PatchError):
    """Raised when a hunk header does not match the unified-diff form."""

    def __init__(self, header: str, hunk_index: Optional[int] = None) -> None:
        self.header = header
        self.hunk_index = hunk_index
        where = f"hunk {hunk_index}" if hunk_index is not None else "hunk"
        super().__init__(f"{where}: malformed header {header!r}")


def parse_hunk_header(header: str) -> HunkHeader:
    """Parse ``@@ -a[,b] +c[,d] @@``. Missing lengths default to 1."""
    m = _HUNK_HEADER_RE.match(header.rstrip("\r\n"))
    if m is None:
        raise HunkHeaderError(header)
    old_start, old_len, new_start, new_len, section = m.groups()
    return HunkHeader(
        old_start=int(old_start),
        old_len=int(old_len) if old_len is not None else 1,
        new_start=int(new_start),
        new_len=int(new_len) if new_len is not None else 1,
        section=section.strip(),
    )


def _range(start: int, length: int, omit_unit_lengths: bool) -> str:
    if length == 1 and omit_unit_lengths:
        return str(start)
    return f"{start},{length}"


@dataclass(frozen=True)
class ReconstructedHunk:
    """A hunk reduced to the selected changes, with recounted lengths."""

    old_start: int
    old_len: int
    new_start: int
    new_len: int
    lines: Tuple[DiffLine, ...]
    source_index: int = 0  # position of the originating hunk in the FileDiff

    def header(self, *, omit_unit_lengths: bool = True) -> str:
        old = _range(self.old_start, self.old_len, omit_unit_lengths)
        new = _range(self.new_start, self.new_len, omit_unit_lengths)
        return f"@@ -{old} +{new} @@"

    def render(self, *, omit_unit_lengths: bool = True) -> List[str]:
        """Return the header and body as text lines (no terminators)."""
        out = [self.header(omit_unit_lengths=omit_unit_lengths)]
        for line in self.lines:
            out.append(line.origin.prefix + line.content)
            if line.no_newline_at_eof:
                out.append(NO_NEWLINE_MARKER)
        return out

    def with_new_start(self, new_start: int) -> "ReconstructedHunk":
        return replace(self, new_start=new_start)


def reconstruct_hunk(
    hunk: Hunk,
    selected: AbstractSet[int],
    *,
    hunk_index: int = 0,
) -> Optional[ReconstructedHunk]:
    """Reduce *hunk* to the lines in *selected* (indices into ``hunk.lines``).

    Returns ``None`` when no addition or deletion is selected. Raises
    HunkHeaderError when the original header cannot be parsed.
    """
    try:
        info = parse_hunk_header(hunk.header)
    except HunkHeaderError as exc:
        raise HunkHeaderError(hunk.header, hunk_index) from exc

    old_len = 0
    new_len = 0
    has_selection = False
    output: List[DiffLine] = []
    unterminated: Optional[int] = None  # output index of a kept "-" line lacking "\n"

    for index, line in enumerate(hunk.lines):
        if line.origin is Origin.CONTEXT:
            output.append(line)
            old_len += 1
            new_len += 1
        elif line.origin is Origin.ADDITION:
            if index in selected:
                output.append(line)
                new_len += 1
                has_selection = True
            # unselected additions exist on neither side
        elif line.origin is Origin.DELETION:
            if index in selected:
                output.append(line)
                old_len += 1
                has_selection = True
            else:
                if line.no_newline_at_eof:
                    unterminated = len(output)
                output.append(replace(line, origin=Origin.CONTEXT))
                old_len += 1
                new_len += 1

    if not has_selection:
        return None

    if unterminated is not None and unterminated < len(output) - 1:
        # The old last line has no newline but selected lines follow it, so
        # it cannot stay as context. Replace it with a terminated copy.
        original = output[unterminated]
        output[unterminated:unterminated + 1] = [
            replace(original, origin=Origin.DELETION),
            replace(original, origin=Origin.ADDITION, no_newline_at_eof=False),
        ]

    return ReconstructedHunk(
        old_start=info.old_start,
        old_len=old_len,
        new_start=info.new_start,
        new_len=new_len,
        lines=tuple(output),
        source_index=hunk_index,
    )
