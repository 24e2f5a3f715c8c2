"""Sounddevice-backed chime playback for WAV files."""

import logging
import wave
from pathlib import Path
from typing import Optional

import numpy as np
import sounddevice as sd

from .errors import ChimeError


def load_wav(path: Path) -> tuple[np.ndarray, int]:
    """Read a 16-bit PCM WAV file into a float32 ``(frames, channels)`` array."""
    try:
        with wave.open(str(path), "rb") as reader:
            channels = reader.getnchannels()
            sample_width = reader.getsampwidth()
            sample_rate_hz = reader.getframerate()
            raw = reader.readframes(reader.getnframes())
    except (OSError, EOFError, wave.Error) as error:
        raise ChimeError(f"Cannot read WAV file {path}: {error}") from error

    if sample_width != 2:
        raise ChimeError(f"Unsupported sample width {sample_width * 8} bit in {path}")

    samples = np.frombuffer(raw, dtype="<i2").astype(np.float32) / 32768.0
    return samples.reshape(-1, channels), sample_rate_hz


class SoundDeviceChimeOutput:
    """Plays PCM arrays through a selected sounddevice output."""
    def __init__(
        self,
        output_device_index: Optional[int] = None,
        blocksize: int = 2048,
        logger: Optional[logging.Logger] = None,
    ):
        self._output_device_index = output_device_index
        self._blocksize = blocksize
        self._logger = logger or logging.getLogger("playback.sound_output")

    def play_file(self, path: Path) -> None:
        if Path(path).suffix.lower() != ".wav":
            raise ChimeError(f"sounddevice output only plays .wav files, got: {path}")
        wav, sample_rate_hz = load_wav(Path(path))
        self.play(wav, sample_rate_hz)

    def play(self, wav: np.ndarray, sample_rate_hz: int) -> None:
        if wav.ndim != 2:
            raise ChimeError("Expected a (frames, channels) PCM array for playback")
        if len(wav) == 0:
            raise ChimeError("Cannot play empty audio buffer")

        pos = 0

        def callback(outdata, frames, time_info, status):
            nonlocal pos
            if status:
                self._logger.warning("Sounddevice status: %s", status)

            end = pos + frames
            chunk = wav[pos:end]

            if len(chunk) < frames:
                outdata[: len(chunk)] = chunk
                outdata[len(chunk) :] = 0
                raise sd.CallbackStop()

            outdata[:] = chunk
            pos = end

        try:
            with sd.OutputStream(
                channels=wav.shape[1],
                samplerate=sample_rate_hz,
                blocksize=self._blocksize,
                dtype="float32",
                callback=callback,
                device=self._output_device_index,
            ):
                sd.sleep(int(len(wav) / sample_rate_hz * 1000) + 200)
        except Exception as error:
            raise ChimeError(f"Audio playback failed: {error}") from error
