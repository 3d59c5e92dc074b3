"""Hunk reconstruction and patch serialization."""

from linestage.patch.reconstructor import (
    HunkHeaderError,
    PatchError,
    ReconstructedHunk,
    parse_hunk_header,
    reconstruct_hunk,
)
from linestage.patch.serializer import Patch, StaleSelectionError, build_patch

__all__ = [
    "HunkHeaderError",
    "Patch",
    "PatchError",
    "ReconstructedHunk",
    "StaleSelectionError",
    "build_patch",
    "parse_hunk_header",
    "reconstruct_hunk",
]
