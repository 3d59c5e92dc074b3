"""Per-diff line selection — which changed lines the user wants to stage."""

from __future__ import annotations

from typing import FrozenSet, Iterator, NamedTuple, Set

from linestage.git.models import FileDiff


class SelectionError(Exception):
    """Raised when a selection key does not name a changed line of the diff."""


class SelectionKey(NamedTuple):
    hunk_index: int
    line_index: int


class SelectionState:
    """Set of selected ``(hunk_index, line_index)`` keys for one FileDiff.

    The state is bound to the diff instance it was created for. Indices are
    not stable across diff regenerations, so replacing the diff through
    :meth:`rebind` always empties the selection.
    """

    def __init__(self, diff: FileDiff) -> None:
        self._diff = diff
        self._keys: Set[SelectionKey] = set()

    @property
    def diff(self) -> FileDiff:
        return self._diff

    # ---- mutation ----

    def toggle_line(self, hunk_index: int, line_index: int) -> bool:
        """Flip one changed line. Returns True if it is now selected."""
        key = self._checked_key(hunk_index, line_index)
        if key in self._keys:
            self._keys.discard(key)
            return False
        self._keys.add(key)
        return True

    def set_hunk_selection(self, hunk_index: int, select: bool) -> None:
        """Select or deselect every changed line in a hunk."""
        hunk = self._checked_hunk(hunk_index)
        for line_index in hunk.change_indices:
            key = SelectionKey(hunk_index, line_index)
            if select:
                self._keys.add(key)
            else:
                self._keys.discard(key)

    def select_all(self) -> None:
        for hunk_index in range(len(self._diff.hunks)):
            self.set_hunk_selection(hunk_index, True)

    def clear(self) -> None:
        self._keys.clear()

    def rebind(self, diff: FileDiff) -> None:
        """Point the selection at a new diff. Existing keys are discarded."""
        self._diff = diff
        self._keys.clear()

    # ---- queries ----

    def is_selected(self, hunk_index: int, line_index: int) -> bool:
        return SelectionKey(hunk_index, line_index) in self._keys

    def selected_in_hunk(self, hunk_index: int) -> FrozenSet[int]:
        return frozenset(k.line_index for k in self._keys if k.hunk_index == hunk_index)

    def hunk_state(self, hunk_index: int) -> str:
        """Return ``"none"``, ``"partial"`` or ``"all"`` for checkbox display."""
        hunk = self._checked_hunk(hunk_index)
        selected = len(self.selected_in_hunk(hunk_index))
        if selected == 0:
            return "none"
        if selected == len(hunk.change_indices):
            return "all"
        return "partial"

    @property
    def is_empty(self) -> bool:
        return not self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __iter__(self) -> Iterator[SelectionKey]:
        return iter(sorted(self._keys))

    def __repr__(self) -> str:
        return f"<SelectionState {self._diff.path!r} {len(self._keys)} selected>"

    # ---- validation ----

    def _checked_hunk(self, hunk_index: int):
        if not 0 <= hunk_index < len(self._diff.hunks):
            raise SelectionError(
                f"hunk {hunk_index} out of range for {self._diff.path} "
                f"({len(self._diff.hunks)} hunks)"
            )
        return self._diff.hunks[hunk_index]

    def _checked_key(self, hunk_index: int, line_index: int) -> SelectionKey:
        hunk = self._checked_hunk(hunk_index)
        if not 0 <= line_index < len(hunk.lines):
            raise SelectionError(
                f"line {line_index} out of range for hunk {hunk_index} "
                f"({len(hunk.lines)} lines)"
            )
        if not hunk.lines[line_index].is_change:
            raise SelectionError(
                f"line {hunk_index}:{line_index} is context and cannot be selected"
            )
        return SelectionKey(hunk_index, line_index)
