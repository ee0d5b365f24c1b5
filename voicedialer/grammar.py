"""
Grammar cache.

Owns the compiled grammar for the current contact set. The grammar file
is named by the contact-set fingerprint, so an unchanged contact list
loads (or reuses) the existing grammar and a changed one rebuilds it:

    1. purge every *.g2g in the cache directory
    2. load the empty base grammar and reset its slots
    3. add one @Names word per contact, with semantic V='<7 ids>'
    4. optionally add one @Opens word per open-entry label, V='<label>'
    5. compile and save as voicedialer.<fingerprint>.g2g
       (voicedialer.<fingerprint>.open.g2g when @Opens words are included)

Builds are serialized per cache directory; two sessions pointed at the
same directory never rebuild it at the same time.
"""

import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from voicedialer.apps import AppDirectory
from voicedialer.cache_files import (
    delete_all_grammar_files,
    delete_cached_grammar_files,
    grammar_path,
)
from voicedialer.cancellation import CancellationToken, ensure_token
from voicedialer.contacts import ContactRecord, fingerprint
from voicedialer.engine import GrammarHandle, Recognizer
from voicedialer.errors import CacheCorruption, Cancelled, GrammarBuildFailure
from voicedialer.logger import get_logger
from voicedialer.name_scrub import scrub_name
from voicedialer.open_entries import OpenEntryIndex, grammar_labels


NAMES_SLOT = "@Names"
OPENS_SLOT = "@Opens"

# ---------------------------------------------------------------------------
# Per-directory build locks
# ---------------------------------------------------------------------------

_build_locks: Dict[str, threading.Lock] = {}
_build_locks_guard = threading.Lock()


def build_lock(cache_dir) -> threading.Lock:
    """Process-wide lock for a cache directory."""
    key = str(Path(cache_dir).expanduser().resolve())
    with _build_locks_guard:
        lock = _build_locks.get(key)
        if lock is None:
            lock = _build_locks[key] = threading.Lock()
        return lock


def grammar_key(contacts: Iterable[ContactRecord], allow_open_entries: bool) -> str:
    """File key for a contact set; grammars with @Opens words are kept apart."""
    contact_fp = fingerprint(contacts)
    return f"{contact_fp}.open" if allow_open_entries else contact_fp


def name_semantic(contact: ContactRecord) -> str:
    """Semantic tag for a contact: V='contact primary home mobile work other fallback'."""
    return "V='" + " ".join(str(i) for i in contact.phone_ids()) + "'"


class GrammarCache:
    """Builds, loads and holds the grammar handle for one session."""

    def __init__(self, cache_dir, base_grammar: str, config=None):
        self.cache_dir = Path(cache_dir)
        self.base_grammar = base_grammar
        self.config = config
        self.logger = get_logger(__name__, config)
        self.open_entries = OpenEntryIndex(self.cache_dir, config)

        self.handle: Optional[GrammarHandle] = None
        self.fingerprint: Optional[str] = None
        self.sample_rate: Optional[int] = None
        self.allow_open_entries: Optional[bool] = None

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def discard(self, forget_open_entries: bool = False):
        """Destroy the held grammar handle (files are left alone)."""
        if self.handle is not None:
            try:
                self.handle.destroy()
            except Exception as e:
                self.logger.error(f"Grammar destroy failed: {e}")
        self.handle = None
        self.fingerprint = None
        if forget_open_entries:
            self.open_entries.entries = None

    def clear(self):
        """Discard everything and delete the cached files."""
        self.discard(forget_open_entries=True)
        delete_cached_grammar_files(self.cache_dir)

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def ensure_ready(self, recognizer: Recognizer, contacts: Iterable[ContactRecord],
                     allow_open_entries: bool, sample_rate: int,
                     app_directory: Optional[AppDirectory] = None,
                     self_class_name: Optional[str] = None,
                     cancel: Optional[CancellationToken] = None) -> GrammarHandle:
        """
        Return a grammar handle that matches the contact set and settings.

        Args:
            recognizer: Engine instance the grammar is attached to
            contacts: Current contact snapshot
            allow_open_entries: Include "open <app>" labels
            sample_rate: Audio rate; a change discards the held grammar
            app_directory: Source of launchable apps for the open-entry index
            self_class_name: Class of this app, excluded from open entries
            cancel: Cancellation token checked during enumeration

        Raises:
            GrammarBuildFailure, Cancelled
        """
        cancel = ensure_token(cancel)
        contacts = list(contacts)

        with build_lock(self.cache_dir):
            if self.sample_rate != sample_rate:
                if self.handle is not None:
                    self.logger.info(f"Sample rate {self.sample_rate} -> {sample_rate}, discarding grammar")
                self.discard()
                self.sample_rate = sample_rate

            if self.allow_open_entries is not None and self.allow_open_entries != allow_open_entries:
                self.logger.info("Open entries setting changed, discarding grammar")
                self.discard(forget_open_entries=True)
            self.allow_open_entries = allow_open_entries

            try:
                return self._ensure(recognizer, contacts, allow_open_entries,
                                    app_directory, self_class_name, cancel)
            except CacheCorruption as e:
                # Cached files are gone by now; one more pass rebuilds them
                self.logger.warning(f"Grammar cache corrupt, rebuilding from scratch: {e}")
                self.discard(forget_open_entries=True)
                return self._ensure(recognizer, contacts, allow_open_entries,
                                    app_directory, self_class_name, cancel)

    def _ensure(self, recognizer: Recognizer, contacts: List[ContactRecord],
                allow_open_entries: bool, app_directory: Optional[AppDirectory],
                self_class_name: Optional[str], cancel: CancellationToken) -> GrammarHandle:
        contact_fp = grammar_key(contacts, allow_open_entries)
        g2g = grammar_path(self.cache_dir, contact_fp)

        if not g2g.exists():
            self._rebuild(recognizer, contacts, contact_fp, g2g,
                          allow_open_entries, app_directory, self_class_name, cancel)
        elif self.handle is None or self.fingerprint != contact_fp:
            self.discard()
            self._load(recognizer, contact_fp, g2g)
        else:
            self.logger.debug(f"Grammar {g2g.name} already loaded")

        if allow_open_entries and not self.open_entries.loaded:
            self.open_entries.get_or_build(app_directory, self_class_name, cancel)

        return self.handle

    # ------------------------------------------------------------------
    # Build / load
    # ------------------------------------------------------------------

    def _load(self, recognizer: Recognizer, contact_fp: str, g2g: Path):
        self.logger.debug(f"Loading grammar {g2g}")
        try:
            handle = recognizer.new_grammar(str(g2g))
            handle.setup_recognizer()
        except Exception as e:
            delete_all_grammar_files(self.cache_dir)
            raise GrammarBuildFailure(f"Cannot load grammar {g2g}: {e}") from e
        self.handle = handle
        self.fingerprint = contact_fp

    def _rebuild(self, recognizer: Recognizer, contacts: List[ContactRecord],
                 contact_fp: str, g2g: Path, allow_open_entries: bool,
                 app_directory: Optional[AppDirectory], self_class_name: Optional[str],
                 cancel: CancellationToken):
        removed = delete_all_grammar_files(self.cache_dir)
        self.discard()
        self.logger.info(f"Rebuilding grammar for {len(contacts)} contacts "
                         f"(removed {removed} stale grammar files)")

        try:
            handle = recognizer.new_grammar(self.base_grammar)
            self.handle = handle
            handle.setup_recognizer()
            handle.reset_all_slots()

            self.add_name_entries(handle, contacts, cancel)

            if allow_open_entries:
                entries = self.open_entries.get_or_build(app_directory, self_class_name, cancel)
                self.add_open_entries(handle, entries, cancel)

            handle.compile()

            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self.logger.debug(f"Saving grammar {g2g}")
            handle.save(str(g2g))
        except (Cancelled, GrammarBuildFailure):
            self.discard()
            raise
        except Exception as e:
            self.discard()
            delete_all_grammar_files(self.cache_dir)
            raise GrammarBuildFailure(f"Grammar build failed: {e}") from e

        self.fingerprint = contact_fp

    def add_name_entries(self, handle: GrammarHandle, contacts: List[ContactRecord],
                         cancel: Optional[CancellationToken] = None) -> int:
        """Add contacts to @Names. Returns how many were added.

        Contacts are taken in id order, so for a repeated scrubbed name the
        lowest ids win whatever order the snapshot came in. An insertion
        error stops the loop; the grammar keeps what was added so far.
        """
        cancel = ensure_token(cancel)
        seen = set()
        count = 0
        for contact in sorted(contacts, key=lambda c: (c.phone_ids(), c.name)):
            cancel.check("contact enumeration")
            name = scrub_name(contact.name)
            if not name or name in seen:
                continue
            seen.add(name)
            try:
                handle.add_word_to_slot(NAMES_SLOT, name, None, 1, name_semantic(contact))
            except Exception as e:
                self.logger.error(f"Cannot load all contacts to voice recognizer, loaded {count}: {e}")
                break
            count += 1
        self.logger.debug(f"Added {count} names to grammar")
        return count

    def add_open_entries(self, handle: GrammarHandle, entries: Dict[str, str],
                         cancel: Optional[CancellationToken] = None) -> int:
        """Add open-entry labels to @Opens; literal and semantic are the same label."""
        cancel = ensure_token(cancel)
        count = 0
        for label in grammar_labels(entries):
            cancel.check("open entry enumeration")
            handle.add_word_to_slot(OPENS_SLOT, label, None, 1, f"V='{label}'")
            count += 1
        self.logger.debug(f"Added {count} of {len(entries)} open entries to grammar")
        return count
