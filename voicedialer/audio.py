"""
Audio sources for the recognizer.

Both sources are byte streams of 16-bit mono PCM with read(n) and
close(); the recognizer pulls from them on NEED_MORE_AUDIO.

    - FileAudioSource: a WAV file; the RIFF header is parsed and skipped
    - MicrophoneSource: live capture through sounddevice
"""

import wave
from pathlib import Path
from typing import Optional, Protocol

import numpy as np

from voicedialer.errors import AudioIOFailure
from voicedialer.logger import get_logger


class AudioSource(Protocol):
    sample_rate: int

    def read(self, n: int = -1) -> bytes: ...
    def close(self) -> None: ...


class FileAudioSource:
    """PCM payload of a WAV file."""

    def __init__(self, path, sample_rate: Optional[int] = None, config=None):
        self.path = Path(path)
        self.logger = get_logger(__name__, config)
        try:
            self._wav = wave.open(str(self.path), "rb")
        except (OSError, EOFError, wave.Error) as e:
            raise AudioIOFailure(f"Cannot open {self.path}: {e}") from e

        self.channels = self._wav.getnchannels()
        self.sample_width = self._wav.getsampwidth()
        self.sample_rate = self._wav.getframerate()
        self._frame_bytes = self.channels * self.sample_width

        if self.sample_width != 2 or self.channels != 1:
            self.logger.warning(
                f"{self.path.name}: expected 16-bit mono, got "
                f"{self.sample_width * 8}-bit x{self.channels}"
            )
        if sample_rate and sample_rate != self.sample_rate:
            self.logger.warning(
                f"{self.path.name}: header says {self.sample_rate} Hz, session expects {sample_rate} Hz"
            )

    def read(self, n: int = -1) -> bytes:
        frames = self._wav.getnframes() if n is None or n < 0 else max(1, n // self._frame_bytes)
        try:
            return self._wav.readframes(frames)
        except (OSError, wave.Error) as e:
            raise AudioIOFailure(f"Read failed on {self.path}: {e}") from e

    def close(self):
        self._wav.close()


class MicrophoneSource:
    """Blocking microphone capture, int16 mono at the session sample rate."""

    def __init__(self, sample_rate: int, config=None):
        self.config = config
        self.logger = get_logger(__name__, config)
        self.sample_rate = sample_rate

        max_seconds = config.get("audio.max_seconds", 15) if config else 15
        chunk_seconds = config.get("audio.chunk_seconds", 0.25) if config else 0.25
        self._remaining = int(sample_rate * max_seconds)
        self._chunk_frames = max(1, int(sample_rate * chunk_seconds))

        self.mic_device_name = config.get("audio.mic_device") if config else None
        try:
            import sounddevice as sd
        except (ImportError, OSError) as e:
            raise AudioIOFailure(f"sounddevice unavailable: {e}") from e
        self._sd = sd
        self.mic_device_index = self._find_mic_device()

        self._stream = None
        try:
            self._stream = sd.InputStream(
                samplerate=sample_rate,
                channels=1,
                dtype="int16",
                device=self.mic_device_index,
            )
            self._stream.start()
        except Exception as e:
            if self._stream is not None:
                self._stream.close()
                self._stream = None
            raise AudioIOFailure(f"Cannot open microphone: {e}") from e

        self.logger.debug(f"Microphone open at {sample_rate} Hz (device {self.mic_device_index})")

    def _find_mic_device(self) -> Optional[int]:
        """Find microphone device index by name"""
        if not self.mic_device_name:
            return None

        devices = self._sd.query_devices()
        for i, dev in enumerate(devices):
            if (self.mic_device_name.lower() in dev['name'].lower() and
                    dev.get('max_input_channels', 0) > 0):
                return i

        self.logger.warning(f"Microphone '{self.mic_device_name}' not found, using default")
        return None

    def read(self, n: int = -1) -> bytes:
        """Read up to n bytes (one chunk by default); b"" once the capture limit is reached."""
        if self._remaining <= 0:
            return b""
        frames = self._chunk_frames if n is None or n < 0 else max(1, n // 2)
        frames = min(frames, self._remaining)
        try:
            data, overflowed = self._stream.read(frames)
        except Exception as e:
            raise AudioIOFailure(f"Microphone read failed: {e}") from e
        if overflowed:
            self.logger.warning("Microphone input overflow")
        self._remaining -= frames
        return np.ascontiguousarray(data[:, 0], dtype=np.int16).tobytes()

    def close(self):
        self._stream.stop()
        self._stream.close()


def open_audio_source(audio_file, sample_rate: int, config=None) -> AudioSource:
    if audio_file is not None:
        return FileAudioSource(audio_file, sample_rate, config)
    return MicrophoneSource(sample_rate, config)
