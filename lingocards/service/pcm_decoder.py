from __future__ import annotations

import base64
from dataclasses import dataclass

import numpy as np

from lingocards.config import settings


@dataclass(frozen=True)
class PcmBuffer:
    """Decoded audio, laid out as (channels, frames) float32 samples."""
    sample_rate: int
    channels: int
    data: np.ndarray

    @property
    def frame_count(self) -> int:
        return int(self.data.shape[1])

    @property
    def duration(self) -> float:
        return self.frame_count / self.sample_rate


def decode_pcm(
    base64_data: str,
    sample_rate: int = settings.PCM_SAMPLE_RATE,
    channels: int = settings.PCM_CHANNELS,
) -> PcmBuffer:
    """Decode base64 signed 16-bit little-endian PCM into normalized floats.

    An odd trailing byte is dropped, as is any partial frame. Samples are
    divided by 32768.0, so the output lies in [-1.0, 1.0).
    """
    raw = base64.b64decode(base64_data)
    safe_len = len(raw) - (len(raw) % 2)
    samples = np.frombuffer(raw[:safe_len], dtype="<i2")

    frame_count = len(samples) // channels
    samples = samples[: frame_count * channels]

    # interleaved frames -> one row per channel
    data = (samples.astype(np.float32) / np.float32(32768.0)).reshape(frame_count, channels).T
    return PcmBuffer(sample_rate=sample_rate, channels=channels, data=np.ascontiguousarray(data))
