"""Shared fixtures: a scripted fake recognizer, contacts, apps and config."""

import json
import wave
from pathlib import Path

import pytest

from voicedialer.apps import AppRecord
from voicedialer.config import Config
from voicedialer.contacts import ContactRecord
from voicedialer.events import RecognizerEvent


class FakeGrammar:
    """Grammar handle that records what was added to it."""

    def __init__(self, path, fail_after=None):
        self.path = path
        self.words = []
        self.setup = False
        self.reset = False
        self.compiled = False
        self.saved_to = None
        self.destroyed = 0
        self.fail_after = fail_after

    def setup_recognizer(self):
        self.setup = True

    def reset_all_slots(self):
        self.reset = True
        self.words = []

    def add_word_to_slot(self, slot, word, pronunciation, weight, tag):
        if self.fail_after is not None and len(self.words) >= self.fail_after:
            raise RuntimeError("slot full")
        self.words.append((slot, word, tag))

    def compile(self):
        self.compiled = True

    def save(self, path):
        Path(path).write_bytes(b"g2g")
        self.saved_to = path

    def destroy(self):
        self.destroyed += 1

    def slot(self, name):
        return [(word, tag) for slot, word, tag in self.words if slot == name]


class FakeRecognizer:
    """Recognizer driven by a list of events and a list of n-best results."""

    def __init__(self, events=None, results=None, par=None):
        self.par = par
        self.events = list(events or [])
        self.results = list(results or [])
        self.grammars = []
        self.audio_reads = []
        self.started = 0
        self.stopped = 0
        self.destroyed = 0
        self.fail_words_after = None
        self.stop_error = None

    def script(self, events, results=None):
        self.events = list(events)
        self.results = list(results or [])

    def new_grammar(self, path):
        grammar = FakeGrammar(path, self.fail_words_after)
        self.grammars.append(grammar)
        return grammar

    def start(self):
        self.started += 1

    def advance(self):
        if not self.events:
            return RecognizerEvent.RECOGNITION_TIMEOUT
        event = self.events.pop(0)
        return event() if callable(event) else event

    def put_audio(self, stream):
        self.audio_reads.append(stream.read())

    def get_result_count(self):
        return len(self.results)

    def get_result(self, rank, key):
        conf, literal, meaning = self.results[rank]
        return {"conf": str(conf), "literal": literal, "meaning": meaning}[key]

    def stop(self):
        self.stopped += 1
        if self.stop_error is not None:
            raise self.stop_error

    def destroy(self):
        self.destroyed += 1


class FakeFactory:
    """Engine factory that hands out FakeRecognizers and remembers them."""

    def __init__(self):
        self.created = []
        self.next_events = []
        self.next_results = []

    def __call__(self, par):
        recognizer = FakeRecognizer(self.next_events, self.next_results, par)
        self.created.append(recognizer)
        return recognizer

    @property
    def last(self):
        return self.created[-1]


class FakeAppDirectory:
    def __init__(self, apps):
        self.apps = list(apps)
        self.queries = 0

    def query_launchable(self):
        self.queries += 1
        return list(self.apps)

    def resolve(self, package, class_name):
        return [a for a in self.apps if a.package == package and a.class_name == class_name]


class FakeCallLog:
    def __init__(self, number=None):
        self.number = number

    def last_outgoing_number(self):
        return self.number


class ListContacts:
    def __init__(self, contacts):
        self.contacts = list(contacts)

    def get_contacts(self):
        return list(self.contacts)


def write_wav(path, seconds=0.1, sample_rate=11025):
    frames = int(seconds * sample_rate)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(b"\x01\x00" * frames)
    return path


@pytest.fixture
def config(tmp_path):
    return Config({
        "system": {"storage_path": str(tmp_path / "storage")},
        "logging": {"level": "DEBUG", "console": False},
        "recognizer": {
            "config_dir": str(tmp_path / "srec"),
            "cache_dir": str(tmp_path / "cache"),
            "base_grammar": "grammars/VoiceDialer.g2g",
        },
    })


@pytest.fixture
def cache_dir(tmp_path):
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def contacts():
    return [
        ContactRecord(1, "Jack Jones", primary_id=11, home_id=11, mobile_id=12),
        ContactRecord(2, "Jill Smith", primary_id=21, work_id=21, fallback_id=22),
        ContactRecord(3, "José Ñúñez", primary_id=31, mobile_id=31),
    ]


@pytest.fixture
def apps():
    return [
        AppRecord("com.example.maps", "com.example.maps.Main", "Maps", True),
        AppRecord("com.example.mail", "com.example.mail.Inbox", "Email Client", False),
        AppRecord("com.example.dialer", "voicedialer.VoiceDialerActivity", "Voice Dialer", True),
    ]


@pytest.fixture
def app_directory(apps):
    return FakeAppDirectory(apps)


@pytest.fixture
def apps_file(tmp_path, apps):
    path = tmp_path / "apps.json"
    path.write_text(json.dumps({"apps": [
        {"package": a.package, "class": a.class_name, "label": a.label, "voice_launch": a.voice_launch}
        for a in apps
    ]}))
    return path


@pytest.fixture
def wav_file(tmp_path):
    return write_wav(tmp_path / "call_jack_jones.wav")
