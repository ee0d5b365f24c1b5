"""
Acoustic engine interface.

The recognizer itself is an external capability. This module defines
the shape the session expects from it and loads the concrete factory
named in config ("recognizer.factory: module:callable").
"""

import importlib
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Protocol

from voicedialer.errors import RecognizerUnavailable

# Result fields for Recognizer.get_result()
KEY_CONFIDENCE = "conf"
KEY_LITERAL = "literal"
KEY_MEANING = "meaning"

BLUETOOTH_SAMPLE_RATE = 8000
REGULAR_SAMPLE_RATE = 11025


class GrammarHandle(Protocol):
    def setup_recognizer(self) -> None: ...
    def reset_all_slots(self) -> None: ...
    def add_word_to_slot(self, slot: str, word: str, pronunciation: Optional[str],
                         weight: int, tag: str) -> None: ...
    def compile(self) -> None: ...
    def save(self, path: str) -> None: ...
    def destroy(self) -> None: ...


class Recognizer(Protocol):
    def new_grammar(self, path: str) -> GrammarHandle: ...
    def start(self) -> None: ...
    def advance(self) -> int: ...
    def put_audio(self, stream: BinaryIO) -> None: ...
    def get_result_count(self) -> int: ...
    def get_result(self, rank: int, key: str) -> str: ...
    def stop(self) -> None: ...
    def destroy(self) -> None: ...


RecognizerFactory = Callable[[str], Recognizer]


def parameter_file(config_dir, sample_rate: int) -> str:
    """Engine parameter file for a sample rate."""
    name = "baseline8k.par" if sample_rate == BLUETOOTH_SAMPLE_RATE else "baseline11k.par"
    return str(Path(config_dir) / name)


def load_factory(spec: Optional[str]) -> RecognizerFactory:
    """Import "package.module:attribute" and return the callable."""
    if not spec or ":" not in spec:
        raise RecognizerUnavailable(f"recognizer.factory not configured ({spec!r})")
    module_name, attr = spec.split(":", 1)
    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise RecognizerUnavailable(f"Cannot load recognizer factory {spec}: {e}") from e
    if not callable(factory):
        raise RecognizerUnavailable(f"Recognizer factory {spec} is not callable")
    return factory


def create_recognizer(factory: RecognizerFactory, config_dir, sample_rate: int) -> Recognizer:
    par = parameter_file(config_dir, sample_rate)
    try:
        return factory(par)
    except Exception as e:
        raise RecognizerUnavailable(f"Recognizer creation failed ({par}): {e}") from e

