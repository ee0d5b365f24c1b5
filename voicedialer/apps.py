"""
Launchable application records and directory sources.

Applications are identified by a component reference "package/class".
JsonAppDirectory reads them from an apps.json file:

    {"apps": [{"package": "org.gnome", "class": "Calculator",
               "label": "Calculator", "voice_launch": true}]}
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol

from voicedialer.logger import get_logger


@dataclass(frozen=True)
class AppRecord:
    package: str
    class_name: str
    label: str
    voice_launch: bool = False

    @property
    def component(self) -> str:
        return f"{self.package}/{self.class_name}"


def split_component(component: str) -> tuple:
    """'pkg.name/Cls' -> ('pkg.name', 'Cls'); split on the last '/'."""
    i = component.rfind("/")
    if i == -1:
        raise ValueError(f"Not a component reference: {component!r}")
    return component[:i], component[i + 1:]


class AppDirectory(Protocol):
    def query_launchable(self) -> List[AppRecord]:
        """Voice-launch apps first, then launcher apps."""
        ...

    def resolve(self, package: str, class_name: str) -> List[AppRecord]:
        """Currently installed apps matching a component reference."""
        ...


class JsonAppDirectory:
    """App directory backed by an apps.json snapshot."""

    def __init__(self, path, config=None):
        self.path = Path(path)
        self.logger = get_logger(__name__, config)

    def _load(self) -> List[AppRecord]:
        if not self.path.exists():
            self.logger.warning(f"{self.path} not found, no apps can be opened by voice")
            return []

        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)

        apps = []
        for item in data.get("apps", []) or []:
            package = str(item.get("package") or "").strip()
            class_name = str(item.get("class") or "").strip()
            label = str(item.get("label") or "").strip()
            if not package or not class_name:
                continue
            apps.append(AppRecord(package, class_name, label,
                                  bool(item.get("voice_launch", False))))
        return apps

    def query_launchable(self) -> List[AppRecord]:
        apps = self._load()
        voice = [a for a in apps if a.voice_launch]
        launcher = [a for a in apps if not a.voice_launch]
        self.logger.debug(f"Apps loaded: {len(voice)} voice-launch, {len(launcher)} launcher")
        return voice + launcher

    def resolve(self, package: str, class_name: str) -> List[AppRecord]:
        return [a for a in self._load()
                if a.package == package and a.class_name == class_name]


def load_app_directory(config) -> Optional[JsonAppDirectory]:
    path = config.get("apps.file")
    if not path:
        return None
    return JsonAppDirectory(Path(path).expanduser(), config)
