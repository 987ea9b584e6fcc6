import asyncio
import json

import pytest

from shortgen.errors import PersistenceError
from shortgen.models import DecodedAudio, ProjectState
from shortgen.storage import CURRENT_PROJECT_KEY, ProjectStore, rehydrate_audio

from conftest import MP3_BYTES, PNG_BYTES, fake_decoder, make_scenes


def scenes_with_assets():
    scenes = make_scenes(2)
    scenes[0].attach_image(PNG_BYTES)
    scenes[0].attach_audio(MP3_BYTES, DecodedAudio(samples=[0.0], sample_rate=24000, duration=12.5))
    return scenes


def test_snapshot_path_uses_key(tmp_path):
    store = ProjectStore(tmp_path)
    assert store.path == tmp_path / f"{CURRENT_PROJECT_KEY}.json"


def test_save_and_load_round_trip(tmp_path):
    store = ProjectStore(tmp_path / "state")

    asyncio.run(store.save(scenes_with_assets(), "Cats", ProjectState.COMPLETED))
    snapshot = asyncio.run(store.load())

    assert snapshot.topic == "Cats"
    assert snapshot.state is ProjectState.COMPLETED
    first, second = snapshot.scenes
    assert first.image_data == PNG_BYTES
    assert first.audio_data == MP3_BYTES
    assert first.actual_duration == 12.5
    # Decoded buffers are never persisted.
    assert first.audio is None
    assert second.image_data is None and second.audio_data is None


def test_snapshot_stores_media_as_base64(tmp_path):
    store = ProjectStore(tmp_path)
    asyncio.run(store.save(scenes_with_assets(), "Cats"))

    raw = json.loads(store.path.read_text(encoding="utf-8"))

    assert raw["state"] == "generating"
    assert isinstance(raw["scenes"][0]["image_data"], str)
    assert "audio" not in raw["scenes"][0]


def test_load_missing_returns_none(tmp_path):
    assert asyncio.run(ProjectStore(tmp_path).load()) is None


def test_load_corrupt_snapshot(tmp_path):
    store = ProjectStore(tmp_path)
    store.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        asyncio.run(store.load())


def test_clear(tmp_path):
    store = ProjectStore(tmp_path)
    asyncio.run(store.save(make_scenes(1), "Cats"))

    asyncio.run(store.clear())
    asyncio.run(store.clear())

    assert not store.path.exists()
    assert asyncio.run(store.load()) is None


def test_rehydrate_audio_restores_decoded_buffers(tmp_path):
    store = ProjectStore(tmp_path)
    asyncio.run(store.save(scenes_with_assets(), "Cats"))
    loaded = asyncio.run(store.load()).scenes

    restored = asyncio.run(rehydrate_audio(loaded, fake_decoder))

    assert restored[0].has_audio
    assert restored[0].actual_duration == fake_decoder(MP3_BYTES).duration
    assert not restored[1].has_audio
    assert loaded[0].audio is None


def test_rehydrate_audio_drops_undecodable_audio():
    scene = make_scenes(1)[0]
    scene.audio_data = b"garbage"
    scene.actual_duration = 3.0

    def broken(encoded):
        raise ValueError("cannot decode")

    restored = asyncio.run(rehydrate_audio([scene], broken))

    assert restored[0].audio_data is None
    assert restored[0].actual_duration is None
    assert not restored[0].has_audio
