"""Configuration loading, schema, and defaults."""

from linestage.config.loader import ConfigError, load_config
from linestage.config.schema import LineStageConfig, PatchConfig

__all__ = [
    "ConfigError",
    "LineStageConfig",
    "PatchConfig",
    "load_config",
]
