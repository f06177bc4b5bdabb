"""
Audio feedback for disturbed particles.

Each event becomes one short decaying tone:
- timbre (waveform + base pitch) from the participant id
- pitch rises toward the top of the canvas
- frequency and gain fall exponentially over `tone_duration`

Tones are mixed into a single sounddevice output stream, created the first
time a tone is needed.
"""

from __future__ import annotations

import math
import threading

import numpy as np

WAVEFORMS = ("sine", "triangle", "square", "sawtooth")


def tone_frequency(timbre: int, y: float, height: float, params) -> float:
    base = params.tone_base_hz + (timbre * params.tone_step_hz) % params.tone_span_hz
    return base + (1.0 - y / max(1.0, float(height))) * params.tone_pitch_hz


def render_tone(timbre: int, freq: float, params) -> np.ndarray:
    sr = params.sample_rate
    dur = params.tone_duration
    t = np.arange(int(sr * dur), dtype=np.float64) / sr

    # f(t) = f0 * drop^(t/dur), integrated for the phase
    k = math.log(params.tone_drop) / dur
    phase = 2.0 * math.pi * freq * (np.exp(k * t) - 1.0) / k
    cycle = (phase / (2.0 * math.pi)) % 1.0

    kind = WAVEFORMS[timbre % len(WAVEFORMS)]
    if kind == "sine":
        wave = np.sin(phase)
    elif kind == "triangle":
        wave = 1.0 - 4.0 * np.abs(cycle - 0.5)
    elif kind == "square":
        wave = np.where(cycle < 0.5, 1.0, -1.0)
    else:
        wave = 2.0 * cycle - 1.0

    gain = params.tone_gain * (params.tone_floor / params.tone_gain) ** (t / dur)
    return (wave * gain).astype(np.float32)


class AudioBackend:
    """One mono output stream; every active voice is summed in the callback."""

    def __init__(self, sample_rate: int, max_voices: int = 32):
        self.sample_rate = int(sample_rate)
        self.max_voices = int(max_voices)
        self._voices = []  # [samples, offset]
        self._lock = threading.Lock()
        self._stream = None

    def start(self):
        import sounddevice as sd

        self._stream = sd.OutputStream(
            samplerate=self.sample_rate,
            channels=1,
            dtype="float32",
            callback=self._callback,
        )
        self._stream.start()

    @property
    def suspended(self) -> bool:
        return self._stream is None or not self._stream.active

    def resume(self):
        if self._stream is not None and not self._stream.active:
            self._stream.start()

    def close(self):
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def play(self, samples: np.ndarray) -> bool:
        with self._lock:
            if len(self._voices) >= self.max_voices:
                return False
            self._voices.append([samples, 0])
        return True

    def mix(self, frames: int) -> np.ndarray:
        out = np.zeros(frames, dtype=np.float32)
        with self._lock:
            alive = []
            for voice in self._voices:
                samples, offset = voice
                chunk = samples[offset:offset + frames]
                out[:len(chunk)] += chunk
                voice[1] = offset + len(chunk)
                if voice[1] < len(samples):
                    alive.append(voice)
            self._voices = alive
        return out

    @property
    def active_voices(self) -> int:
        with self._lock:
            return len(self._voices)

    def _callback(self, outdata, frames, t, status):
        outdata[:, 0] = self.mix(frames)


class FeedbackEmitter:
    def __init__(self, params, backend_factory=None):
        self.params = params
        self.backend_factory = backend_factory or (
            lambda: AudioBackend(params.sample_rate, params.max_voices)
        )
        self.backend = None
        self.available = True
        self.height = params.canvas_height

    def _ensure_backend(self):
        if self.backend is not None or not self.available:
            return self.backend
        backend = self.backend_factory()
        try:
            backend.start()
        except ImportError:
            print("⚠️  sounddevice not installed - audio disabled")
            self.available = False
            return None
        except Exception as e:
            print(f"⚠️  Audio init failed: {e}")
            self.available = False
            return None
        print("✅ Audio output started")
        self.backend = backend
        return backend

    def emit(self, timbre: int, y: float, height: float | None = None) -> bool:
        backend = self._ensure_backend()
        if backend is None:
            return False
        timbre = timbre or 0
        freq = tone_frequency(timbre, y, height or self.height, self.params)
        return backend.play(render_tone(timbre, freq, self.params))

    def on_event(self, event):
        self.emit(event.identity, event.y)

    def resume(self):
        """User gesture: wake a suspended stream (never creates one)."""
        if self.backend is not None:
            self.backend.resume()

    @property
    def suspended(self) -> bool:
        return self.backend is not None and self.backend.suspended

    def close(self):
        if self.backend is not None:
            self.backend.close()
            self.backend = None
