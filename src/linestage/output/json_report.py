"""JSON rendering of diffs and patches for editor and script integrations."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from linestage.git.models import FileDiff
from linestage.patch.serializer import Patch
from linestage.selection.state import SelectionState


def diff_to_dict(diff: FileDiff, selection: Optional[SelectionState] = None) -> Dict[str, Any]:
    """Convert a FileDiff to the plain-data form accepted by the snapshot provider."""
    hunks: List[Dict[str, Any]] = []
    for h_index, hunk in enumerate(diff.hunks):
        lines: List[Dict[str, Any]] = []
        for l_index, line in enumerate(hunk.lines):
            lines.append({
                "origin": line.origin.value,
                "content": line.content,
                "old_lineno": line.old_lineno,
                "new_lineno": line.new_lineno,
                **({"no_newline_at_eof": True} if line.no_newline_at_eof else {}),
                **(
                    {"selected": selection.is_selected(h_index, l_index)}
                    if selection is not None and line.is_change else {}
                ),
            })
        hunks.append({"header": hunk.header, "lines": lines})

    return {
        "path": diff.path,
        "new_file": diff.is_new_file,
        "changed_lines": diff.changed_line_count,
        "hunks": hunks,
    }


def patch_to_dict(patch: Patch) -> Dict[str, Any]:
    return {
        "path": patch.path,
        "new_file": patch.is_new_file,
        "empty": patch.is_empty,
        "hunks": [
            {
                "source_hunk": h.source_index,
                "header": h.header(omit_unit_lengths=patch.omit_unit_lengths),
                "old_start": h.old_start,
                "old_len": h.old_len,
                "new_start": h.new_start,
                "new_len": h.new_len,
            }
            for h in patch.hunks
        ],
        "patch": patch.text,
    }


def render_diff(diff: FileDiff, selection: Optional[SelectionState] = None) -> str:
    """Return formatted JSON string."""
    return json.dumps(diff_to_dict(diff, selection), indent=2)


def render_patch(patch: Patch) -> str:
    return json.dumps(patch_to_dict(patch), indent=2)
