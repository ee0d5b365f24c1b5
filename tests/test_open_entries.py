"""Open-entry index: building, merge rules, persistence and corruption."""

import json

import pytest

from voicedialer.apps import AppRecord
from voicedialer.cache_files import grammar_path, open_entries_path
from voicedialer.cancellation import CancellationToken
from voicedialer.errors import CacheCorruption, Cancelled
from voicedialer.open_entries import (
    OpenEntryIndex,
    add_component,
    build_open_entries,
    grammar_labels,
    should_index_word,
)

from conftest import FakeAppDirectory


def test_add_component_merges_without_duplicates():
    entries = {}
    add_component(entries, "Maps", "com.a", "com.a.Main")
    add_component(entries, "maps", "com.b", "com.b.Main")
    add_component(entries, "MAPS", "com.a", "com.a.Main")
    assert entries == {"maps": "com.a/com.a.Main com.b/com.b.Main"}


def test_add_component_only_matches_whole_items():
    entries = {"mail": "com.a/com.a.MainX"}
    add_component(entries, "mail", "com.a", "com.a.Main")
    assert entries["mail"] == "com.a/com.a.MainX com.a/com.a.Main"


@pytest.mark.parametrize("word, indexed", [
    ("Email", True),
    ("abc", True),
    ("TV", True),
    ("Tv", False),
    ("x", False),
    ("and", False),
    ("The", False),
])
def test_should_index_word(word, indexed):
    assert should_index_word(word) is indexed


def test_build_indexes_labels_and_words(apps):
    entries = build_open_entries(apps, self_class_name="voicedialer.VoiceDialerActivity")

    assert entries["maps"] == "com.example.maps/com.example.maps.Main"
    assert entries["email client"] == "com.example.mail/com.example.mail.Inbox"
    assert entries["email"] == "com.example.mail/com.example.mail.Inbox"
    assert entries["client"] == "com.example.mail/com.example.mail.Inbox"
    # The dialer itself is never launchable by voice
    assert "voice dialer" not in entries
    assert "voice" not in entries


def test_build_skips_unpronounceable_labels():
    entries = build_open_entries([AppRecord("p", "p.C", "中文", False)])
    assert entries == {}


def test_build_honours_cancellation(apps):
    token = CancellationToken()
    token.cancel()
    with pytest.raises(Cancelled):
        build_open_entries(apps, cancel=token)


def test_grammar_labels_exclude_crowded_labels():
    entries = {
        "camera": " ".join(f"p{i}/p{i}.C" for i in range(5)),
        "app": " ".join(f"p{i}/p{i}.C" for i in range(6)),
    }
    # Kept in the index, left out of the grammar
    assert grammar_labels(entries) == ["camera"]


def test_get_or_build_saves_and_reloads(cache_dir, app_directory):
    index = OpenEntryIndex(cache_dir)
    entries = index.get_or_build(app_directory, "voicedialer.VoiceDialerActivity")

    assert index.loaded
    assert json.loads(open_entries_path(cache_dir).read_text()) == entries

    # A fresh index reads the file instead of querying apps again
    again = OpenEntryIndex(cache_dir)
    assert again.get_or_build(app_directory) == entries
    assert app_directory.queries == 1
    assert again.get("MAPS") == "com.example.maps/com.example.maps.Main"


def test_get_or_build_without_app_directory(cache_dir):
    index = OpenEntryIndex(cache_dir)
    assert index.get_or_build(None) == {}
    assert open_entries_path(cache_dir).exists()


def test_load_missing_file_returns_none(cache_dir):
    assert OpenEntryIndex(cache_dir).load() is None


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"maps": 3}'])
def test_corrupt_index_clears_cache(cache_dir, content):
    open_entries_path(cache_dir).write_text(content)
    stale = grammar_path(cache_dir, "abc")
    stale.write_bytes(b"old")

    index = OpenEntryIndex(cache_dir)
    with pytest.raises(CacheCorruption):
        index.load()

    assert not index.loaded
    assert not stale.exists()
    assert not open_entries_path(cache_dir).exists()


def test_invalidate_forgets_and_deletes(cache_dir):
    index = OpenEntryIndex(cache_dir)
    index.get_or_build(FakeAppDirectory([AppRecord("p", "p.C", "Notes", True)]))
    compiled = grammar_path(cache_dir, "0123456789abcdef.open")
    compiled.write_bytes(b"g2g")
    index.invalidate()

    assert not index.loaded
    assert index.get("notes") is None
    assert not open_entries_path(cache_dir).exists()
    assert not compiled.exists()
