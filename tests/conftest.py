"""Shared test fixtures — sample diffs, providers, temp git repos."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path
from typing import List, Optional

import pytest

from linestage.git.models import DiffLine, FileDiff, Hunk, Origin
from linestage.stage.coordinator import ApplyError


def ctx(content: str) -> DiffLine:
    return DiffLine(Origin.CONTEXT, content)


def add(content: str) -> DiffLine:
    return DiffLine(Origin.ADDITION, content)


def dele(content: str) -> DiffLine:
    return DiffLine(Origin.DELETION, content)


class StubProvider:
    """Diff provider that serves a fixed sequence of snapshots."""

    def __init__(self, *diffs: FileDiff) -> None:
        self._diffs = list(diffs)
        self.calls = 0

    def get_file_diff(self, path: str) -> FileDiff:
        diff = self._diffs[min(self.calls, len(self._diffs) - 1)]
        self.calls += 1
        return diff


class RecordingApplier:
    """Patch applier that records submissions and optionally rejects them."""

    def __init__(self, error: Optional[str] = None) -> None:
        self.error = error
        self.patches: List[str] = []

    async def apply_to_index(self, patch_text: str) -> None:
        self.patches.append(patch_text)
        if self.error is not None:
            raise ApplyError(self.error)


@pytest.fixture
def scenario_diff() -> FileDiff:
    """One hunk: context, deletion, two additions, context."""
    return FileDiff(
        path="src/app.py",
        hunks=(
            Hunk(
                header="@@ -10,4 +10,5 @@",
                lines=(ctx("a"), dele("b"), add("c"), add("d"), ctx("e")),
            ),
        ),
    )


@pytest.fixture
def new_file_diff() -> FileDiff:
    return FileDiff(
        path="foo.txt",
        hunks=(
            Hunk(
                header="@@ -0,0 +1,3 @@",
                lines=(add("first"), add("second"), add("third")),
            ),
        ),
    )


@pytest.fixture
def multi_hunk_diff() -> FileDiff:
    """Two hunks whose headers agree with their line counts."""
    return FileDiff(
        path="lib/util.py",
        hunks=(
            Hunk(
                header="@@ -3,4 +3,5 @@ def helper():",
                lines=(
                    ctx("x = 1"),
                    dele("y = 2"),
                    dele("z = 3"),
                    add("y = 20"),
                    add("z = 30"),
                    add("w = 40"),
                    ctx("return x"),
                ),
            ),
            Hunk(
                header="@@ -20,3 +21,2 @@",
                lines=(ctx("def main():"), dele("    debug()"), ctx("    run()")),
            ),
        ),
    )


@pytest.fixture
def sample_diff_modified() -> str:
    return textwrap.dedent("""\
        diff --git a/notes.txt b/notes.txt
        index 1234567..abcdef0 100644
        --- a/notes.txt
        +++ b/notes.txt
        @@ -1,5 +1,6 @@
         one
        -two
        +TWO
         three
         four
         five
        +six
    """)


@pytest.fixture
def sample_diff_new_file() -> str:
    return textwrap.dedent("""\
        diff --git a/hello.py b/hello.py
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/hello.py
        @@ -0,0 +1,3 @@
        +def greet(name):
        +    return f"Hello, {name}!"
        +
    """)


@pytest.fixture
def sample_diff_binary() -> str:
    return textwrap.dedent("""\
        diff --git a/image.png b/image.png
        new file mode 100644
        Binary files /dev/null and b/image.png differ
    """)


@pytest.fixture
def sample_diff_rename() -> str:
    return textwrap.dedent("""\
        diff --git a/old_name.py b/new_name.py
        similarity index 97%
        rename from old_name.py
        rename to new_name.py
        index abc1234..def5678 100644
        --- a/old_name.py
        +++ b/new_name.py
        @@ -1 +1,2 @@
         import os
        +# New line added after rename
    """)


@pytest.fixture
def sample_diff_mode_only() -> str:
    return textwrap.dedent("""\
        diff --git a/script.sh b/script.sh
        old mode 100644
        new mode 100755
    """)


@pytest.fixture
def sample_diff_no_newline() -> str:
    return textwrap.dedent("""\
        diff --git a/data.txt b/data.txt
        index 1234567..abcdef0 100644
        --- a/data.txt
        +++ b/data.txt
        @@ -1,2 +1,2 @@
         keep
        -old last
        \\ No newline at end of file
        +new last
        \\ No newline at end of file
    """)


def _git(repo: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=repo, capture_output=True, check=True)


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository for integration tests."""
    subprocess.run(["git", "init", str(tmp_path)], capture_output=True, check=True)
    _git(tmp_path, "config", "user.email", "test@test.com")
    _git(tmp_path, "config", "user.name", "Test")
    _git(tmp_path, "config", "core.autocrlf", "false")
    # Initial commit
    (tmp_path / "README.md").write_text("# Test\n")
    (tmp_path / "notes.txt").write_text("one\ntwo\nthree\nfour\nfive\n")
    _git(tmp_path, "add", ".")
    _git(tmp_path, "commit", "-m", "init")
    return tmp_path


def index_content(repo: Path, path: str) -> str:
    """Return the staged content of *path* (``git show :path``)."""
    result = subprocess.run(
        ["git", "show", f":{path}"], cwd=repo, capture_output=True, text=True, check=True
    )
    return result.stdout
