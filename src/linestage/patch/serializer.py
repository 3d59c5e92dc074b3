"""Patch serializer — turn a (FileDiff, SelectionState) pair into patch text.

The output is a single-file unified diff meant for ``git apply --cached``.
Building a patch is pure: the same diff and selection always produce the
same text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from linestage.config.schema import PatchConfig
from linestage.git.models import FileDiff
from linestage.patch.reconstructor import (
    HunkHeaderError,
    PatchError,
    ReconstructedHunk,
    reconstruct_hunk,
)
from linestage.selection.state import SelectionState

logger = logging.getLogger(__name__)


class StaleSelectionError(PatchError):
    """Raised when a selection was built against a different FileDiff."""


@dataclass(frozen=True)
class Patch:
    """A serialized selection of one file's changes."""

    path: str
    is_new_file: bool
    hunks: Tuple[ReconstructedHunk, ...]
    omit_unit_lengths: bool = True

    @property
    def is_empty(self) -> bool:
        """True when only the file header would be written."""
        return not self.hunks

    @property
    def header_lines(self) -> List[str]:
        old = "/dev/null" if self.is_new_file else f"a/{self.path}"
        return [f"--- {old}", f"+++ b/{self.path}"]

    @property
    def text(self) -> str:
        lines = list(self.header_lines)
        for hunk in self.hunks:
            lines.extend(hunk.render(omit_unit_lengths=self.omit_unit_lengths))
        # git apply requires the patch to end with a newline
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.text


def _first_line(start: int, length: int) -> int:
    """First line a hunk side covers. An empty side names the line before it."""
    return start if length > 0 else start + 1


def _shift_offsets(hunks: List[ReconstructedHunk]) -> List[ReconstructedHunk]:
    """Recompute new_start from old_start and the growth of earlier hunks."""
    shifted: List[ReconstructedHunk] = []
    delta = 0
    for hunk in hunks:
        first = _first_line(hunk.old_start, hunk.old_len) + delta
        new_start = first if hunk.new_len > 0 else first - 1
        shifted.append(hunk.with_new_start(max(new_start, 0)))
        delta += hunk.new_len - hunk.old_len
    return shifted


def build_patch(
    diff: FileDiff,
    selection: SelectionState,
    options: Optional[PatchConfig] = None,
) -> Patch:
    """Build the patch that stages exactly the selected lines of *diff*.

    Hunks without a selected change are left out. A hunk whose header cannot
    be parsed aborts the build with HunkHeaderError when it carries selected
    lines; otherwise it is skipped with a warning.
    """
    options = options or PatchConfig()
    if selection.diff is not diff:
        raise StaleSelectionError(
            f"selection for {selection.diff.path!r} does not belong to the diff "
            f"of {diff.path!r}"
        )

    survivors: List[ReconstructedHunk] = []
    for index, hunk in enumerate(diff.hunks):
        selected = selection.selected_in_hunk(index)
        try:
            rebuilt = reconstruct_hunk(hunk, selected, hunk_index=index)
        except HunkHeaderError:
            if selected:
                raise
            logger.warning("Skipping unselected hunk %d of %s: malformed header %r",
                           index, diff.path, hunk.header)
            continue
        if rebuilt is not None:
            survivors.append(rebuilt)

    if options.recompute_offsets:
        survivors = _shift_offsets(survivors)

    logger.debug("Built patch for %s: %d of %d hunks kept",
                 diff.path, len(survivors), len(diff.hunks))
    return Patch(
        path=diff.path,
        is_new_file=diff.is_new_file,
        hunks=tuple(survivors),
        omit_unit_lengths=options.omit_unit_lengths,
    )
