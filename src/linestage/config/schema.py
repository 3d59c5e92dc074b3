"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal

OutputFormat = Literal["terminal", "json"]

OUTPUT_FORMATS = ("terminal", "json")


@dataclass
class PatchConfig:
    omit_unit_lengths: bool = True  # write "@@ -3 +3,2 @@" rather than "-3,1"
    recompute_offsets: bool = False  # shift later new_start by earlier hunks' delta


@dataclass
class ApplyConfig:
    timeout: int = 30  # seconds allowed for `git apply --cached`
    extra_args: List[str] = field(default_factory=list)  # e.g. ["--whitespace=nowarn"]


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_line_numbers: bool = True


@dataclass
class LogConfig:
    enabled: bool = True
    directory: str = ".linestage"  # relative to the repo root


@dataclass
class LineStageConfig:
    version: str = "1.0"
    patch: PatchConfig = field(default_factory=PatchConfig)
    apply: ApplyConfig = field(default_factory=ApplyConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log: LogConfig = field(default_factory=LogConfig)
