from __future__ import annotations

import base64

import numpy as np

from lingocards.service.pcm_decoder import decode_pcm


def b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def test_extreme_samples_decode_exactly():
    buf = decode_pcm(b64(bytes([0x00, 0x80, 0xFF, 0x7F, 0x00, 0x00])))

    assert buf.sample_rate == 24000
    assert buf.channels == 1
    assert buf.frame_count == 3
    assert buf.data.dtype == np.float32
    assert buf.data[0, 0] == -1.0
    assert buf.data[0, 1] == 32767 / 32768
    assert buf.data[0, 2] == 0.0


def test_odd_length_drops_last_byte():
    raw = bytes([0x10, 0x00, 0x20, 0xFF, 0x7F])
    odd = decode_pcm(b64(raw))
    even = decode_pcm(b64(raw[:-1]))

    assert odd.frame_count == 2
    np.testing.assert_array_equal(odd.data, even.data)


def test_decoding_is_deterministic():
    payload = b64(bytes(range(64)))
    np.testing.assert_array_equal(decode_pcm(payload).data, decode_pcm(payload).data)


def test_single_byte_and_empty_payloads_give_empty_buffer():
    assert decode_pcm(b64(b"\x01")).frame_count == 0
    assert decode_pcm("").frame_count == 0


def test_stereo_payload_is_split_per_channel():
    # frames: (L=1, R=-1), (L=2, R=-2)
    samples = np.array([1, -1, 2, -2], dtype="<i2").tobytes()
    buf = decode_pcm(b64(samples), sample_rate=48000, channels=2)

    assert buf.frame_count == 2
    assert buf.duration == 2 / 48000
    np.testing.assert_array_equal(buf.data[0], np.array([1, 2], dtype=np.float32) / 32768)
    np.testing.assert_array_equal(buf.data[1], np.array([-1, -2], dtype=np.float32) / 32768)
