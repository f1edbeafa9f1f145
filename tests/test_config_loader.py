"""Tests for the hierarchical YAML config loader."""

from pathlib import Path

import pytest
import yaml

from gmx_mirror.config_loader import (
    CONFIG_ENV_VAR,
    discover_config_files,
    ensure_config,
    interpolate_env_vars,
    load_hierarchical_config,
    resolve_config_path,
)


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run every test in an empty cwd with an empty home directory."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.chdir(work)
    return work


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Env var interpolation
# ---------------------------------------------------------------------------


class TestInterpolateEnvVars:
    def test_set_variable(self, monkeypatch):
        monkeypatch.setenv("GMX_TEST_DIR", "/games")
        assert interpolate_env_vars("${GMX_TEST_DIR}/example.gmx") == "/games/example.gmx"

    def test_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("GMX_TEST_UNSET", raising=False)
        assert interpolate_env_vars("${GMX_TEST_UNSET:-NiceObjects}") == "NiceObjects"

    def test_default_when_empty(self, monkeypatch):
        monkeypatch.setenv("GMX_TEST_EMPTY", "")
        assert interpolate_env_vars("${GMX_TEST_EMPTY:-x}") == "x"

    def test_unset_without_default(self, monkeypatch):
        monkeypatch.delenv("GMX_TEST_UNSET", raising=False)
        assert interpolate_env_vars("a${GMX_TEST_UNSET}b") == "ab"

    def test_unclosed_left_alone(self):
        assert interpolate_env_vars("${OPEN") == "${OPEN"


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class TestDiscovery:
    def test_nothing_found(self):
        assert discover_config_files() == []

    def test_precedence_order(self, isolated, tmp_path, monkeypatch):
        explicit = write(tmp_path / "explicit.yml", "{}")
        project = write(isolated / ".gmx_mirror" / "config.yml", "{}")
        user = write(tmp_path / "home" / ".config" / "gmx_mirror" / "config.yml", "{}")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(explicit))

        assert discover_config_files() == [explicit.resolve(), project, user]

    def test_yaml_extension(self, isolated):
        project = write(isolated / ".gmx_mirror" / "config.yaml", "{}")
        assert discover_config_files() == [project]

    def test_missing_explicit_file_is_skipped(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing.yml"))
        assert discover_config_files() == []


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoadHierarchicalConfig:
    def test_no_files(self):
        assert load_hierarchical_config() == {}

    def test_project_wins_per_top_level_key(self, isolated, tmp_path):
        write(
            tmp_path / "home" / ".config" / "gmx_mirror" / "config.yml",
            "sync:\n  reverb_spacing: 2.0\nlogging:\n  level: DEBUG\n",
        )
        write(isolated / ".gmx_mirror" / "config.yml", "sync:\n  dedup_spacing: 0.05\n")

        merged = load_hierarchical_config()
        assert merged["sync"] == {"dedup_spacing": 0.05}
        assert merged["logging"] == {"level": "DEBUG"}

    def test_interpolation(self, isolated, monkeypatch):
        monkeypatch.setenv("GMX_TEST_PROJECT", "/games/example.gmx")
        write(
            isolated / ".gmx_mirror" / "config.yml",
            "project:\n  path: ${GMX_TEST_PROJECT}\nmirror:\n  path: ${GMX_TEST_NONE:-NiceObjects}\n",
        )
        merged = load_hierarchical_config()
        assert merged["project"]["path"] == "/games/example.gmx"
        assert merged["mirror"]["path"] == "NiceObjects"

    def test_include(self, isolated):
        write(isolated / ".gmx_mirror" / "sync.yml", "reverb_spacing: 1.5\n")
        write(isolated / ".gmx_mirror" / "config.yml", "sync: !include sync.yml\n")
        assert load_hierarchical_config() == {"sync": {"reverb_spacing": 1.5}}

    def test_circular_include(self, isolated):
        write(isolated / ".gmx_mirror" / "a.yml", "x: !include b.yml\n")
        write(isolated / ".gmx_mirror" / "b.yml", "y: !include a.yml\n")
        write(isolated / ".gmx_mirror" / "config.yml", "sync: !include a.yml\n")
        with pytest.raises(ValueError, match="Circular include"):
            load_hierarchical_config()

    def test_missing_include(self, isolated):
        write(isolated / ".gmx_mirror" / "config.yml", "sync: !include nope.yml\n")
        with pytest.raises(FileNotFoundError, match="Include file not found"):
            load_hierarchical_config()

    def test_non_dict_root_skipped(self, isolated, caplog):
        write(isolated / ".gmx_mirror" / "config.yml", "- a\n- b\n")
        assert load_hierarchical_config() == {}
        assert "non-dict root" in caplog.text

    def test_invalid_yaml(self, isolated):
        write(isolated / ".gmx_mirror" / "config.yml", "sync: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_hierarchical_config()

    def test_safe_loader_untouched(self):
        assert "!include" not in yaml.SafeLoader.yaml_constructors


# ---------------------------------------------------------------------------
# Starter config
# ---------------------------------------------------------------------------


class TestEnsureConfig:
    def test_default_location(self, isolated):
        assert resolve_config_path() == isolated / ".gmx_mirror" / "config.yml"

    def test_writes_starter(self, isolated):
        path = ensure_config()
        assert path == isolated / ".gmx_mirror" / "config.yml"
        text = path.read_text(encoding="utf-8")
        assert "reverb_spacing" in text
        # Everything is commented out, so the starter file is an empty config.
        assert load_hierarchical_config() == {}

    def test_existing_file_kept(self, isolated):
        existing = write(isolated / ".gmx_mirror" / "config.yml", "sync: {}\n")
        assert ensure_config() == existing
        assert existing.read_text(encoding="utf-8") == "sync: {}\n"

    def test_explicit_target(self, tmp_path):
        target = tmp_path / "custom" / "config.yml"
        assert ensure_config(target) == target
        assert target.is_file()
