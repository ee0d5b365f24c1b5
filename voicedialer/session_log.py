"""
Session recorder.

Optional per-session capture for offline analysis: the audio the
recognizer heard (WAV), the contact snapshot, the n-best list and the
actions produced. Enabled with session_log.enabled; older sessions are
pruned so only the newest session_log.keep remain.
"""

import time
import wave
from pathlib import Path
from typing import Iterable, List

from voicedialer.actions import label_of
from voicedialer.contacts import ContactRecord
from voicedialer.logger import get_logger


def is_enabled(config) -> bool:
    return bool(config is not None and config.get("session_log.enabled", False))


class _TeeSource:
    """Audio source wrapper that copies everything read into a WAV file."""

    def __init__(self, source, wav: wave.Wave_write):
        self._source = source
        self._wav = wav
        self.sample_rate = source.sample_rate

    def read(self, n: int = -1) -> bytes:
        data = self._source.read(n)
        if data:
            self._wav.writeframes(data)
        return data

    def close(self):
        self._source.close()


class SessionRecorder:
    """Writes <stamp>.wav and <stamp>.log for one recognition session."""

    def __init__(self, config):
        self.config = config
        self.logger = get_logger(__name__, config)

        log_dir = config.get("session_log.dir")
        self.log_dir = Path(log_dir).expanduser() if log_dir else config.storage_path / "logs" / "sessions"
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._prune(config.get("session_log.keep", 20))

        stamp = time.strftime("%Y%m%d-%H%M%S") + f"-{int(time.time() * 1000) % 1000:03d}"
        self.base = self.log_dir / stamp
        self._text = open(self.base.with_suffix(".log"), "w", encoding="utf-8")
        self._wav = None
        self.logger.debug(f"Session log {self.base}")

    def _prune(self, keep: int):
        """Keep the newest keep-1 sessions so this one makes keep."""
        stamps = sorted({p.stem for p in self.log_dir.glob("*.log")})
        for stamp in stamps[:max(0, len(stamps) - (keep - 1))]:
            for suffix in (".log", ".wav"):
                (self.log_dir / stamp).with_suffix(suffix).unlink(missing_ok=True)

    def log_input_stream(self, source, sample_rate: int):
        """Return a source that also records its audio."""
        self._wav = wave.open(str(self.base.with_suffix(".wav")), "wb")
        self._wav.setnchannels(1)
        self._wav.setsampwidth(2)
        self._wav.setframerate(sample_rate)
        return _TeeSource(source, self._wav)

    def log_contacts(self, contacts: Iterable[ContactRecord]):
        contacts = list(contacts)
        self._text.write(f"contacts {len(contacts)}\n")
        for c in contacts:
            ids = " ".join(str(i) for i in c.phone_ids())
            self._text.write(f"  {ids} {c.name}\n")

    def log_nbest_header(self):
        self._text.write("nbest\n")

    def log_line(self, line: str):
        self._text.write(line + "\n")

    def log_actions(self, actions: List):
        self._text.write(f"actions {len(actions)}\n")
        for action in actions:
            self._text.write(f"  {type(action).__name__} {label_of(action)}\n")

    def close(self):
        try:
            if self._wav is not None:
                self._wav.close()
        finally:
            self._wav = None
            self._text.close()
