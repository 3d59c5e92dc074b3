"""Unified diff parser — builds FileDiff snapshots from ``git diff`` output.

This is the git-backed side of the diff provider. Handles renames, new and
deleted files, binary markers, mode-only changes, hunk headers without
lengths, CRLF content, and "\\ No newline at end of file" markers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Generator, List, Optional

from linestage.git.models import DiffLine, FileDiff, Hunk, Origin

# --- Regex patterns for diff parsing ---

_DIFF_HEADER_RE = re.compile(r"^diff --git a/(.*) b/(.*)$")
_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_BINARY_RE = re.compile(r"^Binary files .* and .* differ$")
_RENAME_TO_RE = re.compile(r"^rename to (.+)$")
_NO_NEWLINE_RE = re.compile(r"^\\ No newline at end of file")
_FILE_HEADER_OLD = re.compile(r"^--- (?:a/|/dev/null)")
_FILE_HEADER_NEW = re.compile(r"^\+\+\+ (?:b/(.*)|/dev/null)$")
_SUB_HEADER_RE = re.compile(
    r"^(?:index |similarity index |dissimilarity index |old mode |new mode |"
    r"deleted file mode |new file mode |rename from |copy from |copy to )"
)

_ORIGINS = {
    " ": Origin.CONTEXT,
    "+": Origin.ADDITION,
    "-": Origin.DELETION,
}


@dataclass(frozen=True)
class FileSkipped:
    """Record of a file in the diff that has no line-level changes."""

    path: str
    reason: str  # 'binary', 'no_hunks'


class _HunkBuilder:
    """Accumulates lines for the hunk currently being read."""

    def __init__(self, header: str, old_start: int, old_len: int, new_start: int, new_len: int) -> None:
        self.header = header
        self.lines: List[DiffLine] = []
        self.old_no = old_start
        self.new_no = new_start
        self.old_left = old_len
        self.new_left = new_len

    @property
    def exhausted(self) -> bool:
        return self.old_left <= 0 and self.new_left <= 0

    def add(self, origin: Origin, content: str) -> None:
        old_lineno: Optional[int] = None
        new_lineno: Optional[int] = None
        if origin is not Origin.ADDITION:
            old_lineno = self.old_no
            self.old_no += 1
            self.old_left -= 1
        if origin is not Origin.DELETION:
            new_lineno = self.new_no
            self.new_no += 1
            self.new_left -= 1
        self.lines.append(DiffLine(origin, content, old_lineno, new_lineno))

    def mark_no_newline(self) -> None:
        if self.lines:
            last = self.lines[-1]
            self.lines[-1] = DiffLine(
                last.origin, last.content, last.old_lineno, last.new_lineno, True
            )

    def build(self) -> Hunk:
        return Hunk(header=self.header, lines=tuple(self.lines))


class DiffParser:
    """Parse unified diff text and yield FileDiff / FileSkipped objects.

    Usage::

        for item in DiffParser(diff_text).parse():
            if isinstance(item, FileSkipped):
                ...
            elif isinstance(item, FileDiff):
                ...
    """

    def __init__(self, diff_text: str) -> None:
        # Split on LF only so CRLF content keeps its carriage return.
        self._lines = diff_text.split("\n")
        if self._lines and self._lines[-1] == "":
            self._lines.pop()

    def parse(self) -> Generator[FileDiff | FileSkipped, None, None]:
        """Yield one FileDiff (or FileSkipped) per file in the diff."""
        idx = 0
        total = len(self._lines)
        current_file: Optional[str] = None
        hunks: List[Hunk] = []
        builder: Optional[_HunkBuilder] = None
        skipped: Optional[str] = None

        def flush() -> Optional[FileDiff | FileSkipped]:
            if current_file is None:
                return None
            if builder is not None:
                hunks.append(builder.build())
            if skipped is not None:
                return FileSkipped(path=current_file, reason=skipped)
            if not hunks:
                return FileSkipped(path=current_file, reason="no_hunks")
            return FileDiff(path=current_file, hunks=tuple(hunks))

        while idx < total:
            raw_line = self._lines[idx]

            # --- inside a hunk: content lines until the counts run out ---
            if builder is not None and not builder.exhausted:
                if raw_line == "":
                    # context line whose leading space was stripped
                    builder.add(Origin.CONTEXT, "")
                    idx += 1
                    continue
                origin = _ORIGINS.get(raw_line[0])
                if origin is not None:
                    builder.add(origin, raw_line[1:])
                    idx += 1
                    continue
            if builder is not None and _NO_NEWLINE_RE.match(raw_line):
                builder.mark_no_newline()
                idx += 1
                continue

            # --- diff --git header → new file context ---
            m = _DIFF_HEADER_RE.match(raw_line)
            if m:
                item = flush()
                if item is not None:
                    yield item
                current_file = m.group(2)
                hunks = []
                builder = None
                skipped = None
                idx += 1
                continue

            if _SUB_HEADER_RE.match(raw_line):
                idx += 1
                continue
            if (rt := _RENAME_TO_RE.match(raw_line)):
                current_file = rt.group(1)
                idx += 1
                continue
            if _BINARY_RE.match(raw_line):
                skipped = "binary"
                idx += 1
                continue

            # --- File headers (--- a/ and +++ b/) ---
            if _FILE_HEADER_OLD.match(raw_line):
                idx += 1
                continue
            fm = _FILE_HEADER_NEW.match(raw_line)
            if fm:
                if current_file is None:
                    # plain unified diff without a "diff --git" line
                    current_file = fm.group(1)
                idx += 1
                continue

            # --- Hunk header ---
            hm = _HUNK_HEADER_RE.match(raw_line)
            if hm and current_file is not None:
                if builder is not None:
                    hunks.append(builder.build())
                old_start, old_len, new_start, new_len = hm.groups()
                builder = _HunkBuilder(
                    raw_line,
                    int(old_start),
                    int(old_len) if old_len is not None else 1,
                    int(new_start),
                    int(new_len) if new_len is not None else 1,
                )
                idx += 1
                continue

            # Unknown line outside any hunk, skip
            idx += 1

        item = flush()
        if item is not None:
            yield item


def parse_file_diff(diff_text: str, path: str) -> FileDiff:
    """Return the FileDiff for *path*, or an empty one if it has no hunks."""
    for item in DiffParser(diff_text).parse():
        if isinstance(item, FileDiff) and item.path == path:
            return item
    return FileDiff(path=path)
