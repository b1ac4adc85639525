"""Tests for GhostpostConfig, TOML loading and env overrides."""

from pathlib import Path

import pytest

from ghostpost.config import GhostpostConfig, load_config
from ghostpost.errors import ConfigurationError
from ghostpost.shared.images import DEFAULT_MODEL


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove env vars that _apply_env_vars reads so tests see TOML values."""
    for key in (
        "GHOST_URL",
        "GHOST_ADMIN_API_KEY",
        "GOOGLE_AI_API_KEY",
        "IMAGE_MODEL",
        "GHOSTPOST_SESSION_FILE",
    ):
        monkeypatch.delenv(key, raising=False)


class TestDefaults:
    def test_defaults(self):
        cfg = GhostpostConfig()
        assert cfg.ghost.url == ""
        assert cfg.ghost.api_version == "v5.0"
        assert cfg.images.model == DEFAULT_MODEL
        assert cfg.session.state_file == ".ghostpost-session.json"

    def test_to_ghost_config(self):
        cfg = GhostpostConfig.model_validate(
            {"ghost": {"url": "https://blog.example.com", "admin_api_key": "a:bb", "timeout": 5}}
        )
        ghost = cfg.to_ghost_config()
        assert ghost.is_configured is True
        assert ghost.timeout == 5.0


class TestLoadConfig:
    def test_load_from_explicit_path(self, tmp_path: Path):
        toml_path = tmp_path / ".ghostpost.toml"
        toml_path.write_text(
            '[ghost]\nurl = "https://blog.example.com"\nadmin_api_key = "id:abcd"\n'
            '[session]\nstate_file = "/tmp/state.json"\n'
        )
        cfg = load_config(toml_path)
        assert cfg.ghost.url == "https://blog.example.com"
        assert cfg.ghost.admin_api_key == "id:abcd"
        assert cfg.session.state_file == "/tmp/state.json"

    def test_missing_explicit_path_fails(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nonexistent.toml")

    def test_searches_cwd(self, tmp_path: Path, monkeypatch):
        (tmp_path / ".ghostpost.toml").write_text('[images]\nmodel = "custom-model"\n')
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(
            "ghostpost.config.CONFIG_SEARCH_PATHS", [Path(".") / ".ghostpost.toml"]
        )
        assert load_config().images.model == "custom-model"

    def test_no_file_gives_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr("ghostpost.config.CONFIG_SEARCH_PATHS", [tmp_path / "none.toml"])
        assert load_config().ghost.url == ""

    def test_invalid_toml(self, tmp_path: Path):
        toml_path = tmp_path / "bad.toml"
        toml_path.write_text("[ghost\nurl = ")
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_config(toml_path)

    def test_invalid_value(self, tmp_path: Path):
        toml_path = tmp_path / "bad.toml"
        toml_path.write_text('[ghost]\ntimeout = "soon"\n')
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(toml_path)


class TestEnvOverrides:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        toml_path = tmp_path / ".ghostpost.toml"
        toml_path.write_text('[ghost]\nurl = "https://toml.example.com"\n')
        monkeypatch.setenv("GHOST_URL", "https://env.example.com")
        monkeypatch.setenv("GOOGLE_AI_API_KEY", "g-key")
        monkeypatch.setenv("GHOSTPOST_SESSION_FILE", "/tmp/env-state.json")

        cfg = load_config(toml_path)
        assert cfg.ghost.url == "https://env.example.com"
        assert cfg.images.api_key == "g-key"
        assert cfg.session.state_file == "/tmp/env-state.json"

    def test_empty_env_ignored(self, tmp_path: Path, monkeypatch):
        toml_path = tmp_path / ".ghostpost.toml"
        toml_path.write_text('[images]\nmodel = "from-toml"\n')
        monkeypatch.setenv("IMAGE_MODEL", "")
        assert load_config(toml_path).images.model == "from-toml"
