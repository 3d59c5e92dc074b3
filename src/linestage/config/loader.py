"""Load and merge configuration from .linestage.toml and env vars."""

from __future__ import annotations

import dataclasses
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from linestage.config.schema import (
    OUTPUT_FORMATS,
    ApplyConfig,
    LineStageConfig,
    LogConfig,
    OutputConfig,
    PatchConfig,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".linestage.toml"

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _parse_bool(val: str) -> Optional[bool]:
    low = val.strip().lower()
    if low in _TRUE:
        return True
    if low in _FALSE:
        return False
    return None


def _merge_env_overrides(cfg: LineStageConfig) -> None:
    """Apply LINESTAGE_* environment variable overrides."""
    if val := os.environ.get("LINESTAGE_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("LINESTAGE_RECOMPUTE_OFFSETS"):
        flag = _parse_bool(val)
        if flag is not None:
            cfg.patch.recompute_offsets = flag
    if val := os.environ.get("LINESTAGE_APPLY_TIMEOUT"):
        try:
            cfg.apply.timeout = int(val)
        except ValueError:
            logger.warning("Ignoring non-integer LINESTAGE_APPLY_TIMEOUT=%r", val)
    if _parse_bool(os.environ.get("LINESTAGE_LOG_DISABLED", "")):
        cfg.log.enabled = False


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    unknown = set(raw) - valid_fields
    if unknown:
        logger.debug("Ignoring unknown keys in [%s]: %s", section, ", ".join(sorted(unknown)))
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> LineStageConfig:
    """Load, validate, and return a LineStageConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = LineStageConfig()
    else:
        logger.debug("Loading config from %s", config_path)
        raw = _parse_toml(config_path)
        cfg = LineStageConfig(
            version=raw.get("version", "1.0"),
            patch=_build_section(raw, PatchConfig, "patch"),
            apply=_build_section(raw, ApplyConfig, "apply"),
            output=_build_section(raw, OutputConfig, "output"),
            log=_build_section(raw, LogConfig, "log"),
        )
        if cfg.output.format not in OUTPUT_FORMATS:
            raise ConfigError(f"Invalid output format: {cfg.output.format!r}")

    _merge_env_overrides(cfg)
    return cfg
