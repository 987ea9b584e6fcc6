"""Concurrent image and narration generation over a scene list."""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Sequence

from ..config import Config, config as default_config
from ..errors import GenerationError, PersistenceError, TotalFailureError
from ..models import DecodedAudio, ProjectState, Scene, check_scene_ids
from ..services import GenerationClient
from ..storage import ProjectStore, SaveGate
from .retry import Sleep, retry_async
from .scheduler import run_in_batches

logger = logging.getLogger(__name__)

AudioDecoder = Callable[[bytes], DecodedAudio]


@dataclass
class Progress:
    """Completed scenes per pipeline, successful or not."""

    images_done: int = 0
    audio_done: int = 0
    total: int = 0

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 100
        return round((self.images_done + self.audio_done) * 100 / (2 * self.total))


@dataclass
class AudioAsset:
    encoded: bytes
    decoded: DecodedAudio


class AssetSlots:
    """Per-scene result cells, one list per asset kind.

    The image pipeline only writes ``images`` and the audio pipeline only
    writes ``audio``; scenes are assembled from both on demand.
    """

    def __init__(self, size: int) -> None:
        self.images: List[Optional[bytes]] = [None] * size
        self.audio: List[Optional[AudioAsset]] = [None] * size

    def merge(self, scenes: Sequence[Scene]) -> List[Scene]:
        merged: List[Scene] = []
        for scene, image, audio in zip(scenes, self.images, self.audio):
            scene = scene.model_copy()
            if image is not None:
                scene.attach_image(image)
            if audio is not None:
                scene.attach_audio(audio.encoded, audio.decoded)
            merged.append(scene)
        return merged


@dataclass
class GenerationOutcome:
    """Scenes handed to playback and export, with asset counts."""

    scenes: List[Scene]
    valid_images: int
    valid_audio: int
    failed_scene_ids: List[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        total = len(self.scenes)
        return self.valid_images == total and self.valid_audio == total


def _default_decoder(encoded: bytes) -> DecodedAudio:
    from ..editor.audio import decode_audio

    return decode_audio(encoded)


class AssetPipeline:
    """Generates an illustration and a narration track for every scene.

    Two batch loops (images, audio) run side by side over the same scene
    list. Each scene's call is retried with exponential backoff; a scene
    that still fails is left without that asset and never blocks the
    others. Every success triggers a coalesced incremental save.
    """

    def __init__(
        self,
        client: GenerationClient,
        store: Optional[ProjectStore] = None,
        batch_size: int = 3,
        image_retries: int = 2,
        image_retry_delay: float = 2.0,
        speech_retries: int = 2,
        speech_retry_delay: float = 1.0,
        save_cooldown: float = 0.5,
        decoder: Optional[AudioDecoder] = None,
        progress_cb: Optional[Callable[[Progress], None]] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the pipeline.

        Args:
            client: Generation client used for images and speech.
            store: Snapshot store for incremental and final saves. Saving is
                skipped when None.
            batch_size: Scenes processed concurrently per wave.
            image_retries: Retries per image after the first attempt.
            image_retry_delay: Initial image retry delay in seconds.
            speech_retries: Retries per narration after the first attempt.
            speech_retry_delay: Initial speech retry delay in seconds.
            save_cooldown: Pause before a coalesced deferred save.
            decoder: Turns encoded audio into a decoded buffer.
                Defaults to the moviepy decoder.
            progress_cb: Called with a progress copy after each scene settles.
            sleep: Awaitable sleep used for backoff and cooldown.
        """
        self._client = client
        self._store = store
        self._batch_size = batch_size
        self._image_retries = image_retries
        self._image_retry_delay = image_retry_delay
        self._speech_retries = speech_retries
        self._speech_retry_delay = speech_retry_delay
        self._save_cooldown = save_cooldown
        self._decoder = decoder or _default_decoder
        self._progress_cb = progress_cb or (lambda progress: None)
        self._sleep = sleep

    @classmethod
    def from_config(
        cls,
        client: GenerationClient,
        store: Optional[ProjectStore] = None,
        cfg: Optional[Config] = None,
        **kwargs,
    ) -> "AssetPipeline":
        cfg = cfg or default_config
        return cls(
            client,
            store=store,
            batch_size=cfg.batch_size,
            image_retries=cfg.image_retries,
            image_retry_delay=cfg.image_retry_delay,
            speech_retries=cfg.speech_retries,
            speech_retry_delay=cfg.speech_retry_delay,
            save_cooldown=cfg.save_cooldown,
            **kwargs,
        )

    async def run(self, scenes: Sequence[Scene], topic: str) -> GenerationOutcome:
        """Generate missing assets for ``scenes``.

        Scenes that already carry an image or decoded audio (a resumed run)
        keep it and count as completed for that pipeline.

        Args:
            scenes: Reviewed scenes, ids equal to positions.
            topic: Project topic, stored with every snapshot.

        Returns:
            The merged scene list and asset counts.

        Raises:
            TotalFailureError: If no scene has an image or audio afterwards.
        """
        check_scene_ids(scenes)
        total = len(scenes)
        slots = AssetSlots(total)
        progress = Progress(total=total)

        gate: Optional[SaveGate] = None
        if self._store is not None:
            store = self._store

            async def save_progress() -> None:
                await store.save(slots.merge(scenes), topic, ProjectState.GENERATING)

            gate = SaveGate(save_progress, cooldown=self._save_cooldown, sleep=self._sleep)

        image_todo = [scene for scene in scenes if not scene.has_image]
        audio_todo = [scene for scene in scenes if not scene.has_audio]
        progress.images_done = total - len(image_todo)
        progress.audio_done = total - len(audio_todo)
        logger.info(
            f"Generating assets for {total} scenes "
            f"({len(image_todo)} images, {len(audio_todo)} narrations to do)"
        )
        self._report(progress)

        async def image_step(scene: Scene) -> None:
            await self._image_step(scene, total, slots, progress, gate)

        async def audio_step(scene: Scene) -> None:
            await self._audio_step(scene, slots, progress, gate)

        results = await asyncio.gather(
            run_in_batches(image_todo, image_step, self._batch_size, label="images"),
            run_in_batches(audio_todo, audio_step, self._batch_size, label="audio"),
            return_exceptions=True,
        )
        for name, result in zip(("Image", "Audio"), results):
            if isinstance(result, BaseException):
                logger.error(f"{name} pipeline aborted: {result}")

        if gate is not None:
            await gate.drain()

        merged = slots.merge(scenes)
        valid_images = sum(1 for scene in merged if scene.has_image)
        valid_audio = sum(1 for scene in merged if scene.has_audio)

        if valid_images == 0 and valid_audio == 0:
            logger.error("No assets generated for any scene")
            raise TotalFailureError(total)

        logger.info(
            f"Generation finished: {valid_images}/{total} images, "
            f"{valid_audio}/{total} narrations"
        )

        if self._store is not None:
            try:
                await self._store.save(merged, topic, ProjectState.COMPLETED)
            except PersistenceError as e:
                logger.error(f"Final save failed: {e}")

        return GenerationOutcome(
            scenes=merged,
            valid_images=valid_images,
            valid_audio=valid_audio,
            failed_scene_ids=[scene.id for scene in merged if scene.failed],
        )

    async def _image_step(
        self,
        scene: Scene,
        total: int,
        slots: AssetSlots,
        progress: Progress,
        gate: Optional[SaveGate],
    ) -> None:
        async def attempt() -> bytes:
            image = await self._client.generate_image(
                scene.visual_description, scene.narration, scene.id, total
            )
            if not image:
                raise GenerationError("Generated image data is empty")
            return image

        try:
            image = await retry_async(
                attempt,
                retries=self._image_retries,
                delay=self._image_retry_delay,
                label=f"Image for scene {scene.id + 1}",
                sleep=self._sleep,
            )
        except Exception as e:
            logger.error(f"Image failed for scene {scene.id + 1} after retries: {e}")
        else:
            slots.images[scene.id] = image
            if gate is not None:
                gate.request()
        finally:
            progress.images_done += 1
            self._report(progress)

    async def _audio_step(
        self,
        scene: Scene,
        slots: AssetSlots,
        progress: Progress,
        gate: Optional[SaveGate],
    ) -> None:
        async def attempt() -> AudioAsset:
            encoded = await self._client.generate_speech(scene.narration)
            decoded = await asyncio.to_thread(self._decoder, encoded)
            return AudioAsset(encoded=encoded, decoded=decoded)

        try:
            asset = await retry_async(
                attempt,
                retries=self._speech_retries,
                delay=self._speech_retry_delay,
                label=f"Audio for scene {scene.id + 1}",
                sleep=self._sleep,
            )
        except Exception as e:
            logger.error(f"Audio generation failed for scene {scene.id + 1} after retries: {e}")
        else:
            slots.audio[scene.id] = asset
            if gate is not None:
                gate.request()
        finally:
            progress.audio_done += 1
            self._report(progress)

    def _report(self, progress: Progress) -> None:
        self._progress_cb(replace(progress))
