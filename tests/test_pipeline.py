import asyncio

import pytest

from shortgen.config import Config
from shortgen.errors import ManifestError, PersistenceError, TotalFailureError
from shortgen.models import ProjectState
from shortgen.pipeline import AssetPipeline, AssetSlots, Progress
from shortgen.storage import ProjectStore

from conftest import MP3_BYTES, PNG_BYTES, FakeAssetClient, RecordingSleep, fake_decoder, make_scenes


def make_pipeline(client, store=None, **kwargs):
    kwargs.setdefault("sleep", RecordingSleep())
    return AssetPipeline(client, store=store, decoder=fake_decoder, **kwargs)


def peak_concurrency(events, kind):
    active = peak = 0
    for name, _ in events:
        if name == f"{kind}-start":
            active += 1
            peak = max(peak, active)
        elif name == f"{kind}-end":
            active -= 1
    return peak


def test_every_scene_gets_both_assets(tmp_path):
    client = FakeAssetClient()
    store = ProjectStore(tmp_path)
    scenes = make_scenes(7)

    outcome = asyncio.run(make_pipeline(client, store).run(scenes, "Cats"))

    assert outcome.complete
    assert outcome.valid_images == 7 and outcome.valid_audio == 7
    assert outcome.failed_scene_ids == []
    assert [scene.id for scene in outcome.scenes] == list(range(7))
    for scene in outcome.scenes:
        assert scene.image_data == PNG_BYTES + bytes([scene.id])
        assert scene.audio_data == MP3_BYTES + bytes([scene.id])
        assert scene.audio is not None
        assert scene.actual_duration == scene.audio.duration == 10.0 + scene.id
    # Input scenes are left untouched.
    assert all(scene.image_data is None for scene in scenes)

    snapshot = asyncio.run(store.load())
    assert snapshot.state is ProjectState.COMPLETED
    assert all(scene.image_data is not None for scene in snapshot.scenes)


class RecordingStore:
    """Store double that records every save and can fail incremental ones."""

    def __init__(self, fail_incremental=False):
        self.fail_incremental = fail_incremental
        self.saves = []

    async def save(self, scenes, topic, state=ProjectState.GENERATING):
        assets = sum(1 for scene in scenes if scene.has_image or scene.has_audio)
        self.saves.append((state, assets))
        if self.fail_incremental and state is ProjectState.GENERATING:
            raise PersistenceError("disk full")


def test_successes_trigger_incremental_saves():
    store = RecordingStore()

    asyncio.run(make_pipeline(FakeAssetClient(), store).run(make_scenes(7), "Cats"))

    states = [state for state, _ in store.saves]
    assert states[-1] is ProjectState.COMPLETED
    assert ProjectState.GENERATING in states[:-1]
    assert states.count(ProjectState.COMPLETED) == 1
    incremental = [assets for state, assets in store.saves if state is ProjectState.GENERATING]
    assert incremental[0] >= 1


def test_failing_incremental_saves_do_not_abort_the_run():
    store = RecordingStore(fail_incremental=True)

    outcome = asyncio.run(make_pipeline(FakeAssetClient(), store).run(make_scenes(5), "Cats"))

    assert outcome.complete
    assert any(state is ProjectState.GENERATING for state, _ in store.saves)
    assert store.saves[-1] == (ProjectState.COMPLETED, 5)


def test_batches_limit_concurrency_per_pipeline():
    client = FakeAssetClient()
    asyncio.run(make_pipeline(client, batch_size=3).run(make_scenes(7), "Cats"))

    assert peak_concurrency(client.events, "image") == 3
    assert peak_concurrency(client.events, "audio") == 3
    assert client.image_calls == {i: 1 for i in range(7)}


def test_persistent_image_failure_is_isolated():
    sleep = RecordingSleep()
    client = FakeAssetClient(image_failures={2: -1})

    outcome = asyncio.run(make_pipeline(client, sleep=sleep).run(make_scenes(7), "Cats"))

    assert client.image_calls[2] == 3
    assert outcome.scenes[2].image_data is None
    assert outcome.scenes[2].has_audio
    assert outcome.valid_images == 6
    assert outcome.valid_audio == 7
    assert outcome.failed_scene_ids == []
    assert not outcome.complete
    assert sleep.delays.count(2.0) >= 1 and 4.0 in sleep.delays


def test_transient_failure_recovers_on_retry():
    client = FakeAssetClient(image_failures={1: 1}, speech_failures={4: 2})

    outcome = asyncio.run(make_pipeline(client).run(make_scenes(5), "Cats"))

    assert client.image_calls[1] == 2
    assert client.speech_calls[4] == 3
    assert outcome.complete


def test_scene_without_any_asset_is_reported():
    client = FakeAssetClient(image_failures={4: -1}, speech_failures={4: -1})

    outcome = asyncio.run(make_pipeline(client).run(make_scenes(6), "Cats"))

    assert outcome.failed_scene_ids == [4]
    assert outcome.scenes[4].failed
    assert outcome.valid_images == 5 and outcome.valid_audio == 5


def test_total_failure(tmp_path):
    every = {i: -1 for i in range(3)}
    client = FakeAssetClient(image_failures=every, speech_failures=every)
    store = ProjectStore(tmp_path)

    with pytest.raises(TotalFailureError) as excinfo:
        asyncio.run(make_pipeline(client, store).run(make_scenes(3), "Cats"))

    assert excinfo.value.scene_count == 3
    assert asyncio.run(store.load()) is None


def test_partial_success_is_handed_off():
    every = {i: -1 for i in range(4)}
    client = FakeAssetClient(image_failures=every)

    outcome = asyncio.run(make_pipeline(client).run(make_scenes(4), "Cats"))

    assert outcome.valid_images == 0
    assert outcome.valid_audio == 4


def test_progress_reaches_completion():
    reports = []
    pipeline = make_pipeline(FakeAssetClient(image_failures={0: -1}), progress_cb=reports.append)

    asyncio.run(pipeline.run(make_scenes(4), "Cats"))

    assert reports[0] == Progress(images_done=0, audio_done=0, total=4)
    assert reports[-1].percent == 100
    percents = [report.percent for report in reports]
    assert percents == sorted(percents)
    assert len(reports) == 1 + 2 * 4


def test_resume_skips_existing_assets():
    scenes = make_scenes(3)
    scenes[0].attach_image(PNG_BYTES)
    scenes[0].attach_audio(MP3_BYTES, fake_decoder(MP3_BYTES))
    scenes[1].attach_image(PNG_BYTES)
    client = FakeAssetClient()

    outcome = asyncio.run(make_pipeline(client).run(scenes, "Cats"))

    assert set(client.image_calls) == {2}
    assert set(client.speech_calls) == {1, 2}
    assert outcome.scenes[0].image_data == PNG_BYTES
    assert outcome.complete


def test_scene_ids_must_match_positions():
    scenes = make_scenes(3)
    scenes = [scenes[0], scenes[2], scenes[1]]

    with pytest.raises(ManifestError):
        asyncio.run(make_pipeline(FakeAssetClient()).run(scenes, "Cats"))


def test_slots_merge_by_kind():
    scenes = make_scenes(2)
    slots = AssetSlots(2)
    slots.images[1] = PNG_BYTES

    merged = slots.merge(scenes)

    assert merged[0].image_data is None
    assert merged[1].image_data == PNG_BYTES
    assert not merged[1].has_audio


def test_from_config_applies_tuning():
    cfg = Config(api_key="k", image_retries=0, batch_size=2)
    client = FakeAssetClient(image_failures={0: 1})

    pipeline = AssetPipeline.from_config(
        client, cfg=cfg, decoder=fake_decoder, sleep=RecordingSleep()
    )
    outcome = asyncio.run(pipeline.run(make_scenes(3), "Cats"))

    assert client.image_calls[0] == 1
    assert outcome.scenes[0].image_data is None
    assert peak_concurrency(client.events, "image") == 2
