import asyncio
from types import SimpleNamespace

import httpx
import pytest

from shortgen.models import DecodedAudio, Scene

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
MP3_BYTES = b"ID3\x04\x00\x00" + b"\x00" * 42


class FakeChat:
    """Stands in for AsyncOpenAI: replies come from a list or a function."""

    def __init__(self, replies):
        self.replies = replies
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, model, messages):
        prompt = messages[0]["content"]
        self.calls.append((model, prompt))
        if callable(self.replies):
            reply = self.replies(model, prompt)
        else:
            reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=reply))]
        )

    async def close(self):
        pass


def media_http(routes):
    """httpx client serving ``routes`` (url -> bytes); other URLs are 404."""

    def handler(request):
        body = routes.get(str(request.url))
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, content=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FakeAssetClient:
    """Asset generator with scripted failures and a log of start/end events."""

    def __init__(self, image_failures=None, speech_failures=None):
        # scene id -> number of failing calls (-1 for always)
        self.image_failures = dict(image_failures or {})
        self.speech_failures = dict(speech_failures or {})
        self.image_calls = {}
        self.speech_calls = {}
        self.events = []

    @staticmethod
    def _should_fail(failures, key, call_number):
        remaining = failures.get(key, 0)
        return remaining == -1 or call_number <= remaining

    async def generate_image(self, visual_description, narration, scene_index, total_scenes):
        call = self.image_calls[scene_index] = self.image_calls.get(scene_index, 0) + 1
        self.events.append(("image-start", scene_index))
        await asyncio.sleep(0)
        self.events.append(("image-end", scene_index))
        if self._should_fail(self.image_failures, scene_index, call):
            raise RuntimeError(f"image {scene_index} failed")
        return PNG_BYTES + bytes([scene_index])

    async def generate_speech(self, text):
        scene_index = int(text.split()[-1])
        call = self.speech_calls[scene_index] = self.speech_calls.get(scene_index, 0) + 1
        self.events.append(("audio-start", scene_index))
        await asyncio.sleep(0)
        self.events.append(("audio-end", scene_index))
        if self._should_fail(self.speech_failures, scene_index, call):
            raise RuntimeError(f"speech {scene_index} failed")
        return MP3_BYTES + bytes([scene_index])


def fake_decoder(encoded):
    # Duration derived from the trailing scene byte so each scene differs.
    return DecodedAudio(samples=[0.0] * 4, sample_rate=24000, duration=10.0 + encoded[-1])


def make_scenes(count):
    return [
        Scene(
            id=i,
            title=f"Title {i}",
            narration=f"Narration for scene {i}",
            visual_description=f"Visual {i}",
            duration_hint=15.0,
        )
        for i in range(count)
    ]


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def no_sleep():
    return RecordingSleep()
