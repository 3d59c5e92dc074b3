"""Git subprocess wrapper — repo root, per-file diff, index-only apply."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


def _run_git(
    args: Sequence[str],
    cwd: Path,
    timeout: int = 30,
    *,
    input: Optional[str] = None,
    strict: bool = False,
) -> str:
    """Run a git command and return stdout. Raises GitError on failure.

    With ``strict`` any non-zero exit is an error; otherwise only output
    containing "fatal" is (``git diff --no-index`` exits 1 on differences).
    """
    logger.debug("git %s (cwd=%s)", " ".join(args), cwd)
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            input=input,
            capture_output=True,
            text=True,
            timeout=timeout,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    if result.returncode != 0:
        stderr = result.stderr.strip()
        if strict:
            raise GitError(stderr or f"git {args[0]} exited with {result.returncode}", stderr)
        # Differences found is not an error
        if not stderr or "fatal" not in stderr.lower():
            return result.stdout
        raise GitError(f"git error: {stderr}", stderr)
    return result.stdout


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out.strip())


def relative_path(repo_root: Path, path: str) -> str:
    """Return *path* relative to the repo root, in git's slash form."""
    p = Path(path)
    if not p.is_absolute():
        p = Path.cwd() / p
    try:
        return p.resolve().relative_to(repo_root.resolve()).as_posix()
    except ValueError:
        raise GitError(f"{path} is outside the repository at {repo_root}")


def is_tracked(repo_root: Path, path: str) -> bool:
    """Return True if *path* has an entry in the index."""
    out = _run_git(["ls-files", "--", path], cwd=repo_root, strict=True)
    return bool(out.strip())


def get_unstaged_diff(repo_root: Path, path: str) -> str:
    """Return the working tree vs index diff for one file.

    Untracked files are diffed against /dev/null so every line shows as an
    addition under an ``@@ -0,0`` hunk.
    """
    if not is_tracked(repo_root, path):
        if not (repo_root / path).is_file():
            return ""
        return _run_git(
            ["diff", "--no-index", "--no-color", "--no-ext-diff", "--", "/dev/null", path],
            cwd=repo_root,
        )
    return _run_git(
        ["diff", "--no-color", "--no-ext-diff", "--", path],
        cwd=repo_root,
    )


def apply_patch_to_index(
    repo_root: Path,
    patch_text: str,
    *,
    timeout: int = 30,
    extra_args: Sequence[str] = (),
) -> None:
    """Apply *patch_text* to the index only. The working tree is not touched."""
    _run_git(
        ["apply", "--cached", *extra_args, "-"],
        cwd=repo_root,
        timeout=timeout,
        input=patch_text,
        strict=True,
    )


def get_staged_diff(repo_root: Path, path: Optional[str] = None) -> str:
    """Return the index vs HEAD diff (``--cached``), optionally for one file."""
    args = ["diff", "--cached", "--no-color", "--no-ext-diff"]
    if path:
        args += ["--", path]
    return _run_git(args, cwd=repo_root)
