"""
Configuration

YAML-backed settings with dotted-key lookup, e.g.
config.get("recognizer.config_dir").
"""

import copy
import os
from pathlib import Path
from typing import Any, Optional

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"

DEFAULTS = {
    "system": {
        "storage_path": "~/.local/share/voicedialer",
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "console": True,
        "levels": {},
    },
    "recognizer": {
        "config_dir": "/usr/share/srec/config/en.us",
        "factory": None,
        "cache_dir": None,
        "base_grammar": "grammars/VoiceDialer.g2g",
    },
    "session": {
        "minimize_results": False,
        "allow_open_entries": True,
        "self_class_name": "voicedialer.VoiceDialerActivity",
        "sample_rate": 11025,
    },
    "contacts": {
        "db_path": None,
        "file": None,
    },
    "apps": {
        "file": None,
    },
    "session_log": {
        "enabled": False,
        "dir": None,
        "keep": 20,
    },
    "audio": {
        "mic_device": None,
        "chunk_seconds": 0.25,
        "max_seconds": 15,
    },
    "phrases": {
        "at_home": " at home",
        "on_mobile": " on mobile",
        "at_work": " at work",
        "at_other": " at other",
    },
}


def _merge(base: dict, override: dict) -> dict:
    """Recursively overlay override onto base (in place)."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class Config:
    """Dotted-key view over a nested settings dict."""

    def __init__(self, data: Optional[dict] = None, path: Optional[Path] = None):
        self._data = _merge(copy.deepcopy(DEFAULTS), data or {})
        self.path = path

    @classmethod
    def from_file(cls, path) -> "Config":
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config root must be a mapping: {path}")
        return cls(data, path)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up "section.name"; returns default when any part is missing."""
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return default if node is None else node

    def set(self, key: str, value: Any) -> None:
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value

    @property
    def storage_path(self) -> Path:
        return Path(self.get("system.storage_path")).expanduser()


def load_config(path=None) -> Config:
    """Load config from path, $VOICEDIALER_CONFIG, or the repo config.yaml."""
    if path is None:
        path = os.environ.get("VOICEDIALER_CONFIG") or DEFAULT_CONFIG_PATH
    path = Path(path)
    if not path.exists():
        return Config(path=path)
    return Config.from_file(path)
