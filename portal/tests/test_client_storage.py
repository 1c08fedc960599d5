from pathlib import Path

import pytest

from portal.client import ClientConfig, LocalStorage, Preferences


def test_missing_key_returns_default(tmp_path):
    storage = LocalStorage(tmp_path / "nested")
    assert storage.get("search_history", []) == []
    assert storage.set("search_history", ["hospital"]) is True
    assert storage.get("search_history") == ["hospital"]


def test_corrupt_file_is_ignored(tmp_path):
    (tmp_path / "fontSize.json").write_text("{oops", encoding="utf-8")
    assert LocalStorage(tmp_path).get("fontSize", "medium") == "medium"


def test_write_failures_are_swallowed(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    storage = LocalStorage(blocker)
    assert storage.set("epic-q-theme", "dark") is False
    assert storage.get("epic-q-theme", "light") == "light"
    assert storage.set("search_history", {1, 2}) is False


def test_preferences_defaults_and_validation(tmp_path):
    prefs = Preferences(LocalStorage(tmp_path))
    assert prefs.theme == "light"
    assert prefs.font_size == "medium"

    prefs.theme = "high-contrast"
    prefs.font_size = "large"
    assert Preferences(LocalStorage(tmp_path)).theme == "high-contrast"
    assert (tmp_path / "epic-q-theme.json").exists()
    assert (tmp_path / "fontSize.json").exists()

    with pytest.raises(ValueError):
        prefs.theme = "neon"
    LocalStorage(tmp_path).set("fontSize", "huge")
    assert prefs.font_size == "medium"


def test_config_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("EPICQ_API_URL", "https://portal.example.org/")
    monkeypatch.setenv("EPICQ_API_TOKEN", "abc")
    monkeypatch.setenv("EPICQ_STORAGE_DIR", str(tmp_path))
    monkeypatch.delenv("EPICQ_API_TIMEOUT", raising=False)
    config = ClientConfig.from_env()
    assert config.base_url == "https://portal.example.org"
    assert config.token == "abc"
    assert config.storage_dir == Path(tmp_path)
    assert config.timeout is None
