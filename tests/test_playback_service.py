from __future__ import annotations

import asyncio
import base64

import numpy as np
import pytest

from conftest import FakeGemini
from lingocards.service.pcm_decoder import decode_pcm
from lingocards.service.playback_service import PlaybackContext, PlaybackController, resample

# two samples: 16384 (0.5) and -16384 (-0.5)
HALF = base64.b64encode(np.array([16384, -16384], dtype="<i2").tobytes()).decode()


class FakeStream:
    def __init__(self):
        self.started = False
        self.closed = False

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True


class StreamFactory:
    def __init__(self, rate: int = 24000):
        self.rate = rate
        self.opened: list[FakeStream] = []
        self.callback = None

    def __call__(self, callback):
        self.callback = callback
        stream = FakeStream()
        self.opened.append(stream)
        return stream, self.rate


def pull(factory: StreamFactory, frames: int) -> np.ndarray:
    out = np.zeros((frames, 1), dtype=np.float32)
    factory.callback(out, frames, None, None)
    return out[:, 0]


def test_context_opens_one_stream_lazily():
    factory = StreamFactory()
    ctx = PlaybackContext(factory)
    assert not ctx.is_open

    ctx.play(decode_pcm(HALF))
    ctx.play(decode_pcm(HALF))

    assert len(factory.opened) == 1
    assert factory.opened[0].started
    assert ctx.active_sources == 2


def test_callback_mixes_concurrent_sources_and_drains():
    factory = StreamFactory()
    ctx = PlaybackContext(factory)
    ctx.play(decode_pcm(HALF))
    ctx.play(decode_pcm(HALF))

    np.testing.assert_array_equal(pull(factory, 3), np.array([1.0, -1.0, 0.0], dtype=np.float32))
    assert ctx.active_sources == 0
    np.testing.assert_array_equal(pull(factory, 2), np.zeros(2, dtype=np.float32))


def test_context_resamples_to_device_rate():
    factory = StreamFactory(rate=48000)
    ctx = PlaybackContext(factory)
    ctx.play(decode_pcm(HALF))

    assert len(pull(factory, 4)) == 4
    assert ctx.active_sources == 0


def test_resample_length_and_identity():
    samples = np.linspace(-1, 1, 240, dtype=np.float32)
    assert len(resample(samples, 24000, 48000)) == 480
    assert len(resample(samples, 24000, 44100)) == 441
    assert resample(samples, 24000, 24000) is samples


def test_close_stops_stream():
    factory = StreamFactory()
    ctx = PlaybackContext(factory)
    ctx.play(decode_pcm(HALF))
    ctx.close()

    assert factory.opened[0].closed
    assert not ctx.is_open


@pytest.fixture
def factory() -> StreamFactory:
    return StreamFactory()


def test_cached_audio_skips_synthesis(factory):
    gemini = FakeGemini()
    controller = PlaybackController(gemini, PlaybackContext(factory))

    assert asyncio.run(controller.play_pronunciation("hola", HALF)) == HALF
    assert gemini.calls == []
    assert controller.context.active_sources == 1


def test_missing_audio_is_synthesized_and_returned(factory):
    gemini = FakeGemini(speech=HALF)
    controller = PlaybackController(gemini, PlaybackContext(factory))

    assert asyncio.run(controller.play_pronunciation("<b>hola</b>")) == HALF
    assert gemini.calls == [("speech", "<b>hola</b>")]
    assert controller.context.active_sources == 1


def test_synthesis_failure_is_silent(factory):
    controller = PlaybackController(FakeGemini(speech=None), PlaybackContext(factory))
    assert asyncio.run(controller.play_pronunciation("hola")) is None
    assert factory.opened == []


def test_playback_failure_is_logged_not_raised(caplog):
    def broken_factory(callback):
        raise OSError("PortAudio library not found")

    controller = PlaybackController(FakeGemini(), PlaybackContext(broken_factory))
    assert asyncio.run(controller.play_pronunciation("hola", HALF)) == HALF
    assert "Error playing audio" in caplog.text


def test_same_text_is_not_reentered(factory):
    class SlowSpeech(FakeGemini):
        async def generate_speech(self, text):
            await asyncio.sleep(0.01)
            return await super().generate_speech(text)

    gemini = SlowSpeech(speech=HALF)
    controller = PlaybackController(gemini, PlaybackContext(factory))

    async def run():
        return await asyncio.gather(
            controller.play_pronunciation("hola"),
            controller.play_pronunciation("hola"),
            controller.play_pronunciation("adiós"),
        )

    first, second, other = asyncio.run(run())
    assert first == HALF and other == HALF
    assert second is None
    assert sorted(c[1] for c in gemini.calls) == ["adiós", "hola"]
    assert not controller.is_pending("hola")


def test_failed_start_is_retried_on_next_play():
    class FlakyStream(FakeStream):
        fail = True

        def start(self):
            if FlakyStream.fail:
                FlakyStream.fail = False
                raise OSError("device busy")
            super().start()

    opened: list[FlakyStream] = []

    def flaky_factory(callback):
        stream = FlakyStream()
        opened.append(stream)
        return stream, 24000

    ctx = PlaybackContext(flaky_factory)
    with pytest.raises(OSError):
        ctx.play(decode_pcm(HALF))

    assert not ctx.is_open
    assert ctx.active_sources == 0
    assert opened[0].closed

    ctx.play(decode_pcm(HALF))
    assert len(opened) == 2
    assert ctx.is_open and opened[1].started
    assert ctx.active_sources == 1


def test_controller_recovers_after_device_failure(caplog):
    attempts = []

    def factory(callback):
        attempts.append(callback)
        if len(attempts) == 1:
            raise OSError("no default output device")
        return FakeStream(), 24000

    controller = PlaybackController(FakeGemini(), PlaybackContext(factory))
    asyncio.run(controller.play_pronunciation("hola", HALF))
    assert "Error playing audio" in caplog.text
    assert controller.context.active_sources == 0

    asyncio.run(controller.play_pronunciation("hola", HALF))
    assert len(attempts) == 2
    assert controller.context.active_sources == 1
