"""Git interface layer — adapter, diff parsing, models, providers."""

from linestage.git.adapter import (
    GitError,
    apply_patch_to_index,
    get_repo_root,
    get_staged_diff,
    get_unstaged_diff,
)
from linestage.git.diff_parser import DiffParser, FileSkipped, parse_file_diff
from linestage.git.models import DiffLine, FileDiff, Hunk, HunkHeader, Origin
from linestage.git.provider import DiffProvider, GitDiffProvider, SnapshotDiffProvider

__all__ = [
    "DiffLine",
    "DiffParser",
    "DiffProvider",
    "FileDiff",
    "FileSkipped",
    "GitDiffProvider",
    "GitError",
    "Hunk",
    "HunkHeader",
    "Origin",
    "SnapshotDiffProvider",
    "apply_patch_to_index",
    "get_repo_root",
    "get_staged_diff",
    "get_unstaged_diff",
    "parse_file_diff",
]
