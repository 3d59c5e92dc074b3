"""Git-backed patch applier: ``git apply --cached`` run off the event loop."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Sequence

from linestage.git.adapter import GitError, apply_patch_to_index
from linestage.stage.coordinator import ApplyError


class GitIndexApplier:
    def __init__(self, repo_root: Path, *, timeout: int = 30, extra_args: Sequence[str] = ()) -> None:
        self.repo_root = repo_root
        self.timeout = timeout
        self.extra_args = list(extra_args)

    async def apply_to_index(self, patch_text: str) -> None:
        try:
            await asyncio.to_thread(
                apply_patch_to_index,
                self.repo_root,
                patch_text,
                timeout=self.timeout,
                extra_args=self.extra_args,
            )
        except GitError as exc:
            raise ApplyError(exc.stderr or str(exc)) from exc
