"""
Recognition Session

Owns one recognizer instance across repeated recognize() calls:

    IDLE -> GRAMMAR_READY -> LISTENING -> EVALUATING -> SUCCEEDED | FAILED | ERRORED -> IDLE

Each call ensures the grammar matches the current contacts, streams audio
from a WAV file or the microphone, advances the recognizer until it
produces a result (or gives up), and parses the result into actions.
The client hears exactly one of on_recognition_success/failure/error and
the same outcome is returned. Recognizer and grammar are kept between
calls; audio, recorder and the started recognizer are released on every
exit path.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Union

from voicedialer.apps import AppDirectory, load_app_directory
from voicedialer.audio import AudioSource, open_audio_source
from voicedialer.cancellation import CancellationToken, ensure_token
from voicedialer.contacts import CallLog, ContactDirectory, ContactRecord, ContactStore, JsonContactFile
from voicedialer.engine import (
    REGULAR_SAMPLE_RATE,
    Recognizer,
    RecognizerFactory,
    create_recognizer,
    load_factory,
)
from voicedialer.errors import NO_ACTIONS_GENERATED, Cancelled, VoiceDialerError
from voicedialer.events import CONTINUE_EVENTS, RecognizerEvent, SessionState
from voicedialer.grammar import GrammarCache
from voicedialer.logger import get_logger
from voicedialer.result_parser import SemanticResultParser, iter_hypotheses
from voicedialer.session_log import SessionRecorder, is_enabled


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Success:
    actions: List


@dataclass(frozen=True)
class Failure:
    reason: str


@dataclass(frozen=True)
class Error:
    detail: str
    exception: Optional[BaseException] = None


RecognitionOutcome = Union[Success, Failure, Error]


class RecognizerClient(Protocol):
    def on_microphone_start(self, source: AudioSource) -> None: ...
    def on_recognition_success(self, actions: List) -> None: ...
    def on_recognition_failure(self, reason: str) -> None: ...
    def on_recognition_error(self, detail: str) -> None: ...


class NullClient:
    """Client that ignores every callback; use the returned outcome instead."""

    def on_microphone_start(self, source):
        pass

    def on_recognition_success(self, actions):
        pass

    def on_recognition_failure(self, reason):
        pass

    def on_recognition_error(self, detail):
        pass


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class RecognitionSession:
    """Voice dialer recognition session."""

    def __init__(self, config,
                 contact_directory: Optional[ContactDirectory] = None,
                 call_log: Optional[CallLog] = None,
                 app_directory: Optional[AppDirectory] = None,
                 factory: Optional[RecognizerFactory] = None):
        self.config = config
        self.logger = get_logger(__name__, config)

        self.contact_directory = contact_directory
        self.app_directory = app_directory
        self._factory = factory

        self.config_dir = Path(config.get("recognizer.config_dir")).expanduser()
        base_grammar = Path(config.get("recognizer.base_grammar")).expanduser()
        if not base_grammar.is_absolute():
            base_grammar = self.config_dir / base_grammar
        cache_dir = config.get("recognizer.cache_dir")
        cache_dir = Path(cache_dir).expanduser() if cache_dir else config.storage_path / "grammar"

        self.grammar = GrammarCache(cache_dir, str(base_grammar), config)
        self.parser = SemanticResultParser(config, app_directory, call_log)

        self.minimize_results = bool(config.get("session.minimize_results", False))
        self.allow_open_entries = bool(config.get("session.allow_open_entries", True))
        self.self_class_name = config.get("session.self_class_name")
        contacts_file = config.get("contacts.file")
        self.contacts_file = JsonContactFile(Path(contacts_file).expanduser()) if contacts_file else None

        self.recognizer: Optional[Recognizer] = None
        self.sample_rate: Optional[int] = None
        self.state = SessionState.IDLE

    @classmethod
    def from_config(cls, config, factory: Optional[RecognizerFactory] = None) -> "RecognitionSession":
        """Session wired to the SQLite contact store and the apps.json directory."""
        store = ContactStore(config)
        return cls(config, contact_directory=store, call_log=store,
                   app_directory=load_app_directory(config), factory=factory)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_contacts_file(self, path):
        """Read contacts from a JSON file instead of the directory (None to revert)."""
        contacts_file = JsonContactFile(Path(path).expanduser()) if path else None
        if contacts_file != self.contacts_file:
            self.logger.info(f"Contacts file set to {path}")
            self.contacts_file = contacts_file
            self.grammar.discard(forget_open_entries=True)

    def set_minimize_results(self, minimize: bool):
        self.minimize_results = bool(minimize)

    def set_allow_open_entries(self, allow: bool):
        allow = bool(allow)
        if allow != self.allow_open_entries:
            self.allow_open_entries = allow
            self.grammar.discard(forget_open_entries=True)

    def clear_grammar_cache(self):
        """Drop the held grammar and delete cached grammar and open-entry files."""
        self.grammar.clear()

    # ------------------------------------------------------------------
    # Recognition
    # ------------------------------------------------------------------

    def recognize(self, client: Optional[RecognizerClient] = None, audio_file=None,
                  sample_rate: Optional[int] = None,
                  cancel: Optional[CancellationToken] = None) -> RecognitionOutcome:
        """
        Run one recognition.

        Args:
            client: Receives exactly one terminal callback
            audio_file: WAV file to recognize; None records from the microphone
            sample_rate: Audio rate (default session.sample_rate)
            cancel: Token checked between recognizer steps and during enumeration

        Returns:
            Success, Failure or Error
        """
        client = client if client is not None else NullClient()
        cancel = ensure_token(cancel)
        if sample_rate is None:
            sample_rate = int(self.config.get("session.sample_rate", REGULAR_SAMPLE_RATE))

        recorder = None
        audio = None
        started = False

        try:
            if is_enabled(self.config):
                recorder = SessionRecorder(self.config)

            recognizer = self._get_recognizer(sample_rate)

            contacts = self._get_contacts()
            cancel.check("contact query")
            if recorder is not None:
                recorder.log_contacts(contacts)

            self.grammar.ensure_ready(recognizer, contacts, self.allow_open_entries, sample_rate,
                                      app_directory=self.app_directory,
                                      self_class_name=self.self_class_name,
                                      cancel=cancel)
            self._set_state(SessionState.GRAMMAR_READY)

            audio = open_audio_source(audio_file, sample_rate, self.config)
            client.on_microphone_start(audio)
            if recorder is not None:
                audio = recorder.log_input_stream(audio, sample_rate)

            recognizer.start()
            started = True
            self._set_state(SessionState.LISTENING)

            outcome = self._run(recognizer, audio, cancel, recorder)

        except Cancelled as e:
            self.logger.info(f"Recognition cancelled: {e}")
            outcome = Error(str(e), e)
        except VoiceDialerError as e:
            self.logger.error(f"Recognition error: {e}")
            outcome = Error(str(e), e)
        except Exception as e:
            self.logger.error(f"Recognition error: {type(e).__name__}: {e}")
            outcome = Error(f"{type(e).__name__}: {e}", e)
        finally:
            self._cleanup(started, audio, recorder)

        try:
            self._report(client, outcome)
        finally:
            self._set_state(SessionState.IDLE)
        return outcome

    def _run(self, recognizer: Recognizer, audio: AudioSource,
             cancel: CancellationToken, recorder) -> RecognitionOutcome:
        """Advance the recognizer until a terminal event."""
        self._set_state(SessionState.EVALUATING)
        while True:
            cancel.check("recognition")
            event = recognizer.advance()

            if event in CONTINUE_EVENTS:
                continue

            if event == RecognizerEvent.NEED_MORE_AUDIO:
                recognizer.put_audio(audio)
                continue

            if event == RecognizerEvent.RECOGNITION_RESULT:
                actions = self.parser.parse(
                    iter_hypotheses(recognizer),
                    open_entries=self.grammar.open_entries,
                    minimize_results=self.minimize_results,
                    allow_open_entries=self.allow_open_entries,
                    recorder=recorder,
                )
                cancel.check("result parsing")
                if not actions:
                    return Failure(NO_ACTIONS_GENERATED)
                return Success(actions)

            reason = RecognizerEvent.describe(event)
            self.logger.info(f"Recognition ended with {reason}")
            return Failure(reason)

    def _report(self, client: RecognizerClient, outcome: RecognitionOutcome):
        if isinstance(outcome, Success):
            self._set_state(SessionState.SUCCEEDED)
            self.logger.info(f"Recognized {len(outcome.actions)} action(s)")
            client.on_recognition_success(outcome.actions)
        elif isinstance(outcome, Failure):
            self._set_state(SessionState.FAILED)
            client.on_recognition_failure(outcome.reason)
        else:
            self._set_state(SessionState.ERRORED)
            client.on_recognition_error(outcome.detail)

    def _cleanup(self, started: bool, audio: Optional[AudioSource], recorder):
        """Release per-call resources; each step runs even if another fails."""
        if started and self.recognizer is not None:
            try:
                self.recognizer.stop()
            except Exception as e:
                self.logger.error(f"Recognizer stop failed: {e}")
        if audio is not None:
            try:
                audio.close()
            except Exception as e:
                self.logger.error(f"Audio close failed: {e}")
        if recorder is not None:
            try:
                recorder.close()
            except Exception as e:
                self.logger.error(f"Session log close failed: {e}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_state(self, state: SessionState):
        self.logger.debug(f"{self.state.name} -> {state.name}")
        self.state = state

    def _get_recognizer(self, sample_rate: int) -> Recognizer:
        """Return the recognizer, recreating it if the sample rate changed."""
        if self.recognizer is not None and self.sample_rate != sample_rate:
            self.logger.info(f"Sample rate {self.sample_rate} -> {sample_rate}, recreating recognizer")
            self.grammar.discard()
            self._destroy_recognizer()

        if self.recognizer is None:
            if self._factory is None:
                self._factory = load_factory(self.config.get("recognizer.factory"))
            self.recognizer = create_recognizer(self._factory, self.config_dir, sample_rate)
            self.sample_rate = sample_rate
            self.logger.info(f"Recognizer created at {sample_rate} Hz")

        return self.recognizer

    def _get_contacts(self) -> List[ContactRecord]:
        if self.contacts_file is not None:
            self.logger.debug(f"Reading contacts from {self.contacts_file.path}")
            return self.contacts_file.get_contacts()
        if self.contact_directory is None:
            self.logger.warning("No contact directory configured")
            return []
        return self.contact_directory.get_contacts()

    def _destroy_recognizer(self):
        if self.recognizer is None:
            return
        try:
            self.recognizer.destroy()
        except Exception as e:
            self.logger.error(f"Recognizer destroy failed: {e}")
        self.recognizer = None
        self.sample_rate = None

    def close(self):
        """Release the grammar and recognizer held between calls."""
        self.grammar.discard()
        self._destroy_recognizer()
        self.logger.info("Recognition session closed")
