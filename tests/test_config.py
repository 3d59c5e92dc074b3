"""Tests for config loading, validation, and env var overrides."""

from pathlib import Path

import pytest

from linestage.config.defaults import DEFAULT_TOML
from linestage.config.loader import ConfigError, load_config


class TestConfigLoading:
    def test_default_config(self, tmp_path: Path):
        cfg = load_config(tmp_path)
        assert cfg.patch.omit_unit_lengths is True
        assert cfg.patch.recompute_offsets is False
        assert cfg.apply.timeout == 30
        assert cfg.output.format == "terminal"
        assert cfg.log.enabled is True

    def test_starter_template_parses(self, tmp_path: Path):
        (tmp_path / ".linestage.toml").write_text(DEFAULT_TOML)
        cfg = load_config(tmp_path)
        assert cfg.log.directory == ".linestage"

    def test_custom_toml(self, tmp_path: Path):
        (tmp_path / ".linestage.toml").write_text(
            'version = "1.0"\n'
            "[patch]\n"
            "recompute_offsets = true\n"
            "omit_unit_lengths = false\n"
            "[apply]\n"
            'extra_args = ["--whitespace=nowarn"]\n'
            "unknown_key = 1\n"
        )
        cfg = load_config(tmp_path)
        assert cfg.patch.recompute_offsets is True
        assert cfg.patch.omit_unit_lengths is False
        assert cfg.apply.extra_args == ["--whitespace=nowarn"]

    def test_config_override_path(self, tmp_path: Path):
        custom = tmp_path / "custom.toml"
        custom.write_text('[output]\nformat = "json"\n')
        cfg = load_config(tmp_path, config_override=str(custom))
        assert cfg.output.format == "json"

    def test_missing_override_raises(self, tmp_path: Path):
        with pytest.raises(ConfigError):
            load_config(tmp_path, config_override="/nonexistent/config.toml")

    def test_invalid_toml_raises(self, tmp_path: Path):
        (tmp_path / ".linestage.toml").write_text("this is not valid [toml")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_invalid_format_raises(self, tmp_path: Path):
        (tmp_path / ".linestage.toml").write_text('[output]\nformat = "sarif"\n')
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_section_must_be_table(self, tmp_path: Path):
        (tmp_path / ".linestage.toml").write_text('patch = "yes"\n')
        with pytest.raises(ConfigError):
            load_config(tmp_path)


class TestEnvVarOverrides:
    def test_format_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("LINESTAGE_FORMAT", "json")
        assert load_config(tmp_path).output.format == "json"

    def test_recompute_offsets_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("LINESTAGE_RECOMPUTE_OFFSETS", "true")
        assert load_config(tmp_path).patch.recompute_offsets is True

    def test_timeout_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("LINESTAGE_APPLY_TIMEOUT", "5")
        assert load_config(tmp_path).apply.timeout == 5

    def test_log_disabled(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("LINESTAGE_LOG_DISABLED", "1")
        assert load_config(tmp_path).log.enabled is False

    def test_invalid_env_ignored(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("LINESTAGE_FORMAT", "xml")
        monkeypatch.setenv("LINESTAGE_APPLY_TIMEOUT", "soon")
        monkeypatch.setenv("LINESTAGE_RECOMPUTE_OFFSETS", "maybe")
        cfg = load_config(tmp_path)
        assert cfg.output.format == "terminal"
        assert cfg.apply.timeout == 30
        assert cfg.patch.recompute_offsets is False
