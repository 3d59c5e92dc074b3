"""Submitting line selections to the index."""

from linestage.stage.applier import GitIndexApplier
from linestage.stage.coordinator import (
    ApplyCoordinator,
    ApplyError,
    ApplyOutcome,
    CoordinatorState,
    NothingToStageError,
    PatchApplier,
    StageError,
    StagingSession,
    SubmissionInProgressError,
)

__all__ = [
    "ApplyCoordinator",
    "ApplyError",
    "ApplyOutcome",
    "CoordinatorState",
    "GitIndexApplier",
    "NothingToStageError",
    "PatchApplier",
    "StageError",
    "StagingSession",
    "SubmissionInProgressError",
]
