"""
Open-entry index: spoken label -> application components.

"open <label>" needs to know which apps a label refers to. The grammar
itself only carries the label (the recognizer limits the length of a
semantic string), so the mapping lives here and is persisted beside the
compiled grammar:

    {"calculator": "org.gnome/Calculator",
     "mail": "org.gnome/Evolution org.mozilla/Thunderbird"}

Labels mapped to more than RESULT_LIMIT components stay in the index but
are kept out of the grammar.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from voicedialer.apps import AppDirectory, AppRecord
from voicedialer.cache_files import delete_cached_grammar_files, open_entries_path
from voicedialer.cancellation import CancellationToken, ensure_token
from voicedialer.errors import CacheCorruption, GrammarBuildFailure
from voicedialer.logger import get_logger
from voicedialer.name_scrub import scrub_name


RESULT_LIMIT = 5

_STOPWORDS = {"and", "the"}


def add_component(entries: Dict[str, str], label: str,
                  package: str, class_name: str):
    """Map label to package/class_name, appending to any existing components."""
    component = f"{package}/{class_name}"
    key = label.lower()
    current = entries.get(key)

    if current is None:
        entries[key] = component
        return

    # Already present as a whole, space-delimited item
    index = current.find(component)
    while index != -1:
        after = index + len(component)
        if ((index == 0 or current[index - 1] == " ") and
                (after == len(current) or current[after] == " ")):
            return
        index = current.find(component, index + 1)

    entries[key] = f"{current} {component}"


def components_of(value: str) -> List[str]:
    return value.split()


def should_index_word(word: str) -> bool:
    """Words need three characters, or two if both are capitals."""
    length = len(word)
    if length <= 1:
        return False
    if length == 2 and not (word[0].isupper() and word[1].isupper()):
        return False
    return word.lower() not in _STOPWORDS


def build_open_entries(apps: Iterable[AppRecord], self_class_name: Optional[str] = None,
                       cancel: Optional[CancellationToken] = None) -> Dict[str, str]:
    """Index full labels and their individual words."""
    cancel = ensure_token(cancel)
    entries: Dict[str, str] = {}

    for app in apps:
        cancel.check("open entry scan")

        if self_class_name and app.class_name == self_class_name:
            continue

        label = scrub_name(app.label)
        if not label:
            continue

        add_component(entries, label, app.package, app.class_name)

        words = label.split(" ")
        if len(words) > 1:
            for word in words:
                word = word.strip()
                if should_index_word(word):
                    add_component(entries, word, app.package, app.class_name)

    return entries


def grammar_labels(entries: Dict[str, str]) -> List[str]:
    """Labels that fit in the grammar (at most RESULT_LIMIT components)."""
    return [label for label, value in entries.items()
            if len(components_of(value)) <= RESULT_LIMIT]


class OpenEntryIndex:
    """Persisted open-entry mapping, loaded lazily and cached in memory."""

    def __init__(self, cache_dir, config=None):
        self.cache_dir = Path(cache_dir)
        self.path = open_entries_path(self.cache_dir)
        self.logger = get_logger(__name__, config)
        self.entries: Optional[Dict[str, str]] = None

    @property
    def loaded(self) -> bool:
        return self.entries is not None

    def get(self, label: str) -> Optional[str]:
        if self.entries is None:
            return None
        return self.entries.get(label.lower())

    def load(self) -> Optional[Dict[str, str]]:
        """Read the persisted index. Returns None if there is no file.

        Raises:
            CacheCorruption: the file exists but can't be decoded; all
                cached grammar files have been deleted.
        """
        if not self.path.exists():
            return None

        self.logger.debug(f"Reading open entries {self.path}")
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict) or not all(
                    isinstance(k, str) and isinstance(v, str) for k, v in data.items()):
                raise ValueError("open entries must map strings to strings")
        except (OSError, ValueError) as e:
            self.logger.error(f"Open entries unreadable, clearing grammar cache: {e}")
            self.entries = None
            delete_cached_grammar_files(self.cache_dir)
            raise CacheCorruption(f"{self.path}: {e}") from e

        self.entries = data
        return data

    def save(self, entries: Dict[str, str]):
        self.logger.debug(f"Writing open entries {self.path} ({len(entries)} labels)")
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(entries, f, indent=1, sort_keys=True)
        except OSError as e:
            self.logger.error(f"Failed to write open entries: {e}")
            delete_cached_grammar_files(self.cache_dir)
            raise GrammarBuildFailure(f"{self.path}: {e}") from e
        self.entries = entries

    def invalidate(self):
        """Forget the in-memory index and delete it with the grammar built from it."""
        self.entries = None
        delete_cached_grammar_files(self.cache_dir)

    def get_or_build(self, app_directory: Optional[AppDirectory],
                     self_class_name: Optional[str] = None,
                     cancel: Optional[CancellationToken] = None) -> Dict[str, str]:
        """Return the index, loading it from disk or building and saving it."""
        if self.entries is not None:
            return self.entries

        entries = self.load()
        if entries is not None:
            return entries

        apps = app_directory.query_launchable() if app_directory is not None else []
        ensure_token(cancel).check("app query")
        entries = build_open_entries(apps, self_class_name, cancel)
        self.logger.info(f"Built open entries: {len(entries)} labels from {len(apps)} apps")
        self.save(entries)
        return entries
