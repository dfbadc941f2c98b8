import json

import pytest

from obsidian_tmdb_notes.config import Configuration, ConfigStore, load_settings
from obsidian_tmdb_notes.errors import ConfigurationError


def test_load_without_file_uses_defaults(tmp_path):
    store = ConfigStore(tmp_path / "config.json")
    assert store.load() == Configuration(api_key="", result_language="pt-BR", notes_folder="")


def test_load_overlays_persisted_values(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"api_key": "abc", "legacy": "ignored"}), encoding="utf-8")
    config = ConfigStore(path).load()
    assert config.api_key == "abc"
    assert config.result_language == "pt-BR"
    assert config.notes_folder == ""


def test_load_malformed_file_falls_back(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    assert ConfigStore(path).load() == Configuration()


def test_update_persists_full_snapshot(tmp_path):
    path = tmp_path / "nested" / "config.json"
    store = ConfigStore(path)
    store.load()
    store.update("notes_folder", "Filmes")
    store.update("result_language", "en-US")

    assert json.loads(path.read_text(encoding="utf-8")) == {
        "api_key": "",
        "result_language": "en-US",
        "notes_folder": "Filmes",
    }
    assert ConfigStore(path).load().notes_folder == "Filmes"


def test_set_rejects_unknown_field(tmp_path):
    store = ConfigStore(tmp_path / "config.json")
    with pytest.raises(ConfigurationError):
        store.set("theme", "dark")


def test_load_settings_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("VAULT_PATH", str(tmp_path))
    monkeypatch.setenv("PORT", "9001")
    monkeypatch.setenv("TMDB_API_KEY", "env-key")
    monkeypatch.setenv("TMDB_NOTES_CONFIG", str(tmp_path / "cfg.json"))
    monkeypatch.delenv("MCP_SHARED_SECRET", raising=False)

    settings = load_settings()

    assert settings.vault.root == tmp_path.resolve()
    assert settings.port == 9001
    assert settings.shared_secret is None
    assert settings.defaults.api_key == "env-key"
    assert settings.config_path == tmp_path / "cfg.json"


def test_load_settings_requires_vault(monkeypatch):
    monkeypatch.setenv("VAULT_PATH", "")
    with pytest.raises(ConfigurationError):
        load_settings()


def test_load_undecodable_file_falls_back(tmp_path):
    path = tmp_path / "config.json"
    path.write_bytes(b'\xff\xfe{"api_key": 1}')
    assert ConfigStore(path).load() == Configuration()


def test_failed_save_keeps_previous_value(tmp_path):
    path = tmp_path / "config.json"
    path.mkdir()
    store = ConfigStore(path)

    with pytest.raises(OSError):
        store.update("api_key", "new")

    assert store.snapshot().api_key == ""
