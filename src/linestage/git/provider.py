"""Diff providers — where a FileDiff snapshot comes from."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import yaml

from linestage.git.adapter import get_unstaged_diff
from linestage.git.diff_parser import parse_file_diff
from linestage.git.models import DiffLine, FileDiff, Hunk, Origin

logger = logging.getLogger(__name__)


class SnapshotError(Exception):
    """Raised when a diff snapshot file is missing or malformed."""


class DiffProvider(Protocol):
    def get_file_diff(self, path: str) -> FileDiff: ...


class GitDiffProvider:
    """Working tree vs index diff for files in one repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    def get_file_diff(self, path: str) -> FileDiff:
        diff_text = get_unstaged_diff(self.repo_root, path)
        diff = parse_file_diff(diff_text, path)
        logger.debug("Loaded diff for %s: %d hunks, %d changed lines",
                     path, len(diff.hunks), diff.changed_line_count)
        return diff


# ── snapshot files ────────────────────────────────────────────────────────────


def _line_from_data(data: Any) -> DiffLine:
    """Accept ``{origin, content, old_lineno, new_lineno}`` or ``[origin, content]``."""
    if isinstance(data, (list, tuple)) and len(data) == 2:
        data = {"origin": data[0], "content": data[1]}
    if not isinstance(data, dict):
        raise SnapshotError(f"Invalid diff line entry: {data!r}")
    try:
        origin = Origin(data["origin"])
    except (KeyError, ValueError) as exc:
        raise SnapshotError(f"Invalid line origin in {data!r}") from exc
    return DiffLine(
        origin=origin,
        content=str(data.get("content", "")),
        old_lineno=data.get("old_lineno"),
        new_lineno=data.get("new_lineno"),
        no_newline_at_eof=bool(data.get("no_newline_at_eof", False)),
    )


def file_diff_from_dict(data: Dict[str, Any]) -> FileDiff:
    """Build a FileDiff from its plain-data form."""
    if "path" not in data:
        raise SnapshotError("Diff snapshot entry has no 'path'")
    hunks: List[Hunk] = []
    for raw in data.get("hunks") or []:
        if not isinstance(raw, dict) or "header" not in raw:
            raise SnapshotError(f"Invalid hunk entry in {data['path']}: {raw!r}")
        lines = tuple(_line_from_data(line) for line in raw.get("lines") or [])
        hunks.append(Hunk(header=str(raw["header"]), lines=lines))
    return FileDiff(path=str(data["path"]), hunks=tuple(hunks))


class SnapshotDiffProvider:
    """Serve FileDiffs from a YAML (or JSON) snapshot file.

    The file holds either a single ``{path, hunks}`` mapping or
    ``{files: [{path, hunks}, ...]}``.
    """

    def __init__(self, diffs: Dict[str, FileDiff]) -> None:
        self._diffs = diffs

    @classmethod
    def from_file(cls, path: Path) -> "SnapshotDiffProvider":
        try:
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except OSError as exc:
            raise SnapshotError(f"Cannot read diff snapshot {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise SnapshotError(f"Failed to parse diff snapshot {path}: {exc}") from exc

        if not isinstance(raw, dict):
            raise SnapshotError(f"Diff snapshot {path} must contain a mapping")
        entries = raw["files"] if "files" in raw else [raw]
        diffs = {d.path: d for d in (file_diff_from_dict(e) for e in entries)}
        return cls(diffs)

    def get_file_diff(self, path: str) -> FileDiff:
        diff: Optional[FileDiff] = self._diffs.get(path)
        return diff if diff is not None else FileDiff(path=path)
