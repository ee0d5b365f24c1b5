"""WAV file and microphone audio sources."""

import sys
import types

import numpy as np
import pytest

from voicedialer.audio import FileAudioSource, MicrophoneSource, open_audio_source
from voicedialer.errors import AudioIOFailure

from conftest import write_wav


def test_file_source_skips_header(tmp_path):
    path = write_wav(tmp_path / "a.wav", seconds=0.01, sample_rate=8000)
    source = FileAudioSource(path, 8000)

    data = source.read()
    source.close()

    assert source.sample_rate == 8000
    assert data == b"\x01\x00" * 80


def test_file_source_reads_in_chunks(tmp_path):
    path = write_wav(tmp_path / "a.wav", seconds=0.01, sample_rate=8000)
    source = open_audio_source(path, 8000)

    first = source.read(100)
    rest = source.read()

    assert len(first) == 100
    assert len(first) + len(rest) == 160
    assert source.read() == b""


def test_file_source_rate_mismatch_still_opens(tmp_path):
    path = write_wav(tmp_path / "a.wav", sample_rate=8000)
    assert FileAudioSource(path, 11025).sample_rate == 8000


@pytest.mark.parametrize("content", [None, b"RIFF not really"])
def test_file_source_bad_file(tmp_path, content):
    path = tmp_path / "bad.wav"
    if content is not None:
        path.write_bytes(content)
    with pytest.raises(AudioIOFailure):
        FileAudioSource(path)


class FakeInputStream:
    def __init__(self, samplerate, channels, dtype, device):
        self.device = device
        self.reads = []
        self.started = False
        self.closed = False

    def start(self):
        self.started = True

    def read(self, frames):
        self.reads.append(frames)
        return np.full((frames, 1), 7, dtype=np.int16), False

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True


@pytest.fixture
def fake_sounddevice(monkeypatch):
    module = types.ModuleType("sounddevice")
    module.streams = []

    def input_stream(**kwargs):
        stream = FakeInputStream(**kwargs)
        module.streams.append(stream)
        return stream

    module.InputStream = input_stream
    module.query_devices = lambda: [
        {"name": "Speakers", "max_input_channels": 0},
        {"name": "USB Mic", "max_input_channels": 1},
    ]
    monkeypatch.setitem(sys.modules, "sounddevice", module)
    return module


def test_microphone_reads_chunks_until_limit(config, fake_sounddevice):
    config.set("audio.chunk_seconds", 0.5)
    config.set("audio.max_seconds", 1.2)
    config.set("audio.mic_device", "usb")

    mic = open_audio_source(None, 1000, config)
    chunks = [mic.read() for _ in range(4)]
    mic.close()

    stream = fake_sounddevice.streams[0]
    assert stream.device == 1
    assert stream.reads == [500, 500, 200]
    assert [len(c) for c in chunks] == [1000, 1000, 400, 0]
    assert chunks[0][:2] == b"\x07\x00"
    assert stream.closed


def test_microphone_unknown_device_uses_default(config, fake_sounddevice):
    config.set("audio.mic_device", "nonexistent")
    mic = MicrophoneSource(11025, config)
    assert fake_sounddevice.streams[0].device is None
    mic.close()


def test_microphone_open_failure(config, fake_sounddevice):
    def broken(**kwargs):
        raise OSError("no device")

    fake_sounddevice.InputStream = broken
    with pytest.raises(AudioIOFailure):
        MicrophoneSource(11025, config)


def test_microphone_start_failure_closes_stream(config, fake_sounddevice, monkeypatch):
    def refuse(self):
        raise OSError("device busy")

    monkeypatch.setattr(FakeInputStream, "start", refuse)
    with pytest.raises(AudioIOFailure):
        MicrophoneSource(11025, config)
    assert fake_sounddevice.streams[0].closed
