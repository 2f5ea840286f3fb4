from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import numpy as np
from fastapi.concurrency import run_in_threadpool

from lingocards.service.gemini_service import GeminiService
from lingocards.service.pcm_decoder import PcmBuffer, decode_pcm

logger = logging.getLogger(__name__)

StreamFactory = Callable[[Callable[..., None]], Tuple[Any, int]]


def _open_sounddevice_stream(callback: Callable[..., None]) -> Tuple[Any, int]:
    """Open a mono float32 output stream at the default device's native rate."""
    import sounddevice as sd

    device = sd.query_devices(kind="output")
    rate = int(device["default_samplerate"])
    stream = sd.OutputStream(samplerate=rate, channels=1, dtype="float32", callback=callback)
    return stream, rate


def resample(samples: np.ndarray, src_rate: int, dst_rate: int) -> np.ndarray:
    """Linear-interpolation resampling of a mono signal."""
    if src_rate == dst_rate or len(samples) == 0:
        return samples.astype(np.float32, copy=False)
    n_out = int(round(len(samples) * dst_rate / src_rate))
    positions = np.arange(n_out) * (src_rate / dst_rate)
    return np.interp(positions, np.arange(len(samples)), samples).astype(np.float32)


@dataclass
class _Source:
    samples: np.ndarray
    pos: int = 0


class PlaybackContext:
    """One output stream for the whole process.

    The stream is opened on the first `play` and kept open afterwards.
    Every queued buffer is mixed into the stream callback, so several
    sounds may overlap.
    """

    def __init__(self, stream_factory: StreamFactory | None = None):
        self._stream_factory = stream_factory or _open_sounddevice_stream
        self._stream: Any = None
        self.sample_rate: int | None = None
        self._sources: list[_Source] = []
        self._lock = threading.Lock()
        self._open_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def active_sources(self) -> int:
        with self._lock:
            return len(self._sources)

    def _ensure_stream(self) -> None:
        with self._open_lock:
            if self._stream is not None:
                return
            stream, rate = self._stream_factory(self._callback)
            try:
                stream.start()
            except Exception:
                stream.close()
                raise
            # published only once running, so a failed start is retried on the next play
            with self._lock:
                self._stream, self.sample_rate = stream, rate
        logger.info("Opened audio output stream at %d Hz", rate)

    def play(self, buffer: PcmBuffer) -> None:
        self._ensure_stream()
        mono = buffer.data.mean(axis=0) if buffer.channels > 1 else buffer.data[0]
        samples = resample(mono, buffer.sample_rate, self.sample_rate)
        with self._lock:
            self._sources.append(_Source(samples))

    def _callback(self, outdata: np.ndarray, frames: int, time: Any, status: Any) -> None:
        if status:
            logger.debug("Audio stream status: %s", status)
        mix = np.zeros(frames, dtype=np.float32)
        with self._lock:
            remaining = []
            for src in self._sources:
                chunk = src.samples[src.pos: src.pos + frames]
                mix[: len(chunk)] += chunk
                src.pos += len(chunk)
                if src.pos < len(src.samples):
                    remaining.append(src)
            self._sources = remaining
        np.clip(mix, -1.0, 1.0, out=mix)
        outdata[:, 0] = mix

    def close(self) -> None:
        with self._lock:
            stream, self._stream = self._stream, None
            self._sources = []
        if stream is not None:
            stream.stop()
            stream.close()


class PlaybackController:
    """Plays pronunciations, synthesizing them first when nothing is cached."""

    def __init__(self, gemini: GeminiService, context: PlaybackContext | None = None):
        self.gemini = gemini
        self.context = context or PlaybackContext()
        self._pending: set[str] = set()

    def is_pending(self, text: str) -> bool:
        return text in self._pending

    async def play_pronunciation(self, text: str, cached_audio: str | None = None) -> Optional[str]:
        """Play `text` and return the payload used, or None.

        A second request for the same text while the first is still
        fetching is dropped.
        """
        if text in self._pending:
            logger.debug("Pronunciation already in flight for %r", text)
            return None
        self._pending.add(text)
        try:
            audio = cached_audio
            if not audio:
                audio = await self.gemini.generate_speech(text)
                if not audio:
                    return None
            await run_in_threadpool(self._play, audio)
            return audio
        finally:
            self._pending.discard(text)

    def _play(self, audio: str) -> None:
        try:
            self.context.play(decode_pcm(audio))
        except Exception:
            logger.error("Error playing audio", exc_info=True)

    def close(self) -> None:
        self.context.close()
