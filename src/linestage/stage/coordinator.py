"""Apply coordinator — submit a line selection to the index.

State per file path::

    Idle → Submitting → Idle (success: diff refreshed, selection cleared)
                      → Idle (failure: diff and selection untouched)

A second submission for a path that is still Submitting is rejected, not
queued. There is no cancellation; an in-flight apply runs to completion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Set

from linestage.config.schema import PatchConfig
from linestage.git.adapter import GitError
from linestage.git.models import FileDiff
from linestage.git.provider import DiffProvider, SnapshotError
from linestage.history.oplog import OperationLog
from linestage.patch.serializer import Patch, build_patch
from linestage.selection.state import SelectionState

logger = logging.getLogger(__name__)

STAGE_OPERATION = "stage_lines"


class StageError(Exception):
    """Raised when a stage request is refused before reaching the applier."""


class NothingToStageError(StageError):
    """Raised when the selection yields no hunks."""


class SubmissionInProgressError(StageError):
    """Raised when a path already has a submission in flight."""


class ApplyError(Exception):
    """Raised by a patch applier when the patch is rejected."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PatchApplier(Protocol):
    async def apply_to_index(self, patch_text: str) -> None: ...


class CoordinatorState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"


@dataclass(frozen=True)
class ApplyOutcome:
    path: str
    success: bool
    staged_lines: int = 0
    error: Optional[str] = None  # applier message, verbatim
    refresh_error: Optional[str] = None  # set when the post-stage diff reload failed


class StagingSession:
    """The diff currently shown for one file and the user's selection on it."""

    def __init__(self, path: str, provider: DiffProvider) -> None:
        self.path = path
        self._provider = provider
        self.selection = SelectionState(provider.get_file_diff(path))

    @property
    def diff(self) -> FileDiff:
        return self.selection.diff

    def refresh(self) -> FileDiff:
        """Reload the diff from the provider. Always empties the selection."""
        self.selection.rebind(self._provider.get_file_diff(self.path))
        return self.diff


class ApplyCoordinator:
    def __init__(
        self,
        applier: PatchApplier,
        *,
        options: Optional[PatchConfig] = None,
        oplog: Optional[OperationLog] = None,
    ) -> None:
        self._applier = applier
        self._options = options or PatchConfig()
        self._oplog = oplog
        self._busy: Set[str] = set()

    def state(self, path: str) -> CoordinatorState:
        return CoordinatorState.SUBMITTING if path in self._busy else CoordinatorState.IDLE

    def is_busy(self, path: str) -> bool:
        return path in self._busy

    def preview(self, session: StagingSession) -> Patch:
        """Build the patch for the session without submitting it."""
        return build_patch(session.diff, session.selection, self._options)

    async def stage_selected(self, session: StagingSession) -> ApplyOutcome:
        """Apply the selected lines of *session* to the index.

        Raises NothingToStageError / SubmissionInProgressError before anything
        is submitted, and PatchError if the patch cannot be built. Applier
        failures are returned as an unsuccessful ApplyOutcome.
        """
        path = session.path
        if path in self._busy:
            raise SubmissionInProgressError(f"A stage request for {path} is already in progress")
        if session.selection.is_empty:
            raise NothingToStageError(f"No lines selected in {path}")

        patch = self.preview(session)
        if patch.is_empty:
            raise NothingToStageError(f"Selection in {path} contains no changes")

        selected = len(session.selection)
        details = f"{path}: {selected} line(s) in {len(patch.hunks)} hunk(s)"
        self._busy.add(path)
        try:
            logger.info("Staging %s", details)
            try:
                await self._applier.apply_to_index(patch.text)
            except ApplyError as exc:
                logger.info("Stage rejected for %s: %s", path, exc.message)
                self._record(details, success=False, error=exc.message)
                return ApplyOutcome(path=path, success=False, error=exc.message)

            self._record(details, success=True)
            session.selection.clear()
            try:
                session.refresh()
            except (GitError, SnapshotError) as exc:
                logger.warning("Staged %s but could not reload its diff: %s", path, exc)
                return ApplyOutcome(
                    path=path, success=True, staged_lines=selected, refresh_error=str(exc)
                )
        finally:
            self._busy.discard(path)

        return ApplyOutcome(path=path, success=True, staged_lines=selected)

    def _record(self, details: str, *, success: bool, error: Optional[str] = None) -> None:
        if self._oplog is not None:
            self._oplog.log_operation(STAGE_OPERATION, details, success, error)
