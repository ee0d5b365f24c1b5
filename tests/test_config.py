"""YAML configuration loading."""

import pytest

from voicedialer.config import Config, load_config


def test_defaults_without_file(tmp_path):
    config = load_config(tmp_path / "missing.yaml")
    assert config.get("session.sample_rate") == 11025
    assert config.get("session.allow_open_entries") is True
    assert config.get("phrases.at_home") == " at home"
    assert config.get("nothing.here", "fallback") == "fallback"


def test_file_overrides_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "session:\n"
        "  minimize_results: true\n"
        "recognizer:\n"
        "  factory: mypkg.engine:create\n"
    )
    config = load_config(path)
    assert config.get("session.minimize_results") is True
    assert config.get("session.sample_rate") == 11025
    assert config.get("recognizer.factory") == "mypkg.engine:create"
    assert config.path == path


def test_env_selects_config(tmp_path, monkeypatch):
    path = tmp_path / "other.yaml"
    path.write_text("system:\n  storage_path: /tmp/vd\n")
    monkeypatch.setenv("VOICEDIALER_CONFIG", str(path))
    assert str(load_config().storage_path) == "/tmp/vd"


def test_null_value_falls_back_to_default():
    config = Config({"contacts": {"file": None}})
    assert config.get("contacts.file", "x.json") == "x.json"


def test_set_creates_sections():
    config = Config()
    config.set("session_log.extra.depth", 3)
    assert config.get("session_log.extra.depth") == 3


def test_non_mapping_root_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        Config.from_file(path)


def test_repo_config_is_valid(monkeypatch):
    monkeypatch.delenv("VOICEDIALER_CONFIG", raising=False)
    config = load_config()
    assert config.get("recognizer.base_grammar") == "grammars/VoiceDialer.g2g"
