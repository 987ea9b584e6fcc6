"""Durable key-value store for project snapshots."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from pydantic import ValidationError

from ..errors import PersistenceError
from ..models import DecodedAudio, ProjectSnapshot, ProjectState, Scene

logger = logging.getLogger(__name__)

CURRENT_PROJECT_KEY = "current_project"


class ProjectStore:
    """Stores one JSON snapshot per key under a state directory."""

    def __init__(self, root: Path, key: str = CURRENT_PROJECT_KEY) -> None:
        self._root = Path(root)
        self._key = key

    @property
    def path(self) -> Path:
        return self._root / f"{self._key}.json"

    async def save(
        self,
        scenes: Sequence[Scene],
        topic: str,
        state: ProjectState = ProjectState.GENERATING,
    ) -> None:
        """Overwrite the snapshot with the given scenes.

        Raises:
            PersistenceError: If the snapshot cannot be written.
        """
        snapshot = ProjectSnapshot(topic=topic, state=state, scenes=list(scenes))
        await asyncio.to_thread(self._write, snapshot.model_dump_json(indent=2))
        logger.debug(f"Saved snapshot {self.path} ({len(snapshot.scenes)} scenes, {state.value})")

    async def load(self) -> Optional[ProjectSnapshot]:
        """Read the snapshot, or return None when nothing is stored.

        Raises:
            PersistenceError: If the snapshot exists but cannot be read.
        """
        raw = await asyncio.to_thread(self._read)
        if raw is None:
            return None
        try:
            return ProjectSnapshot.model_validate_json(raw)
        except ValidationError as e:
            raise PersistenceError(f"Corrupt snapshot {self.path}: {e}") from e

    async def clear(self) -> None:
        """Delete the snapshot if present."""
        try:
            await asyncio.to_thread(self.path.unlink, missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to delete snapshot {self.path}: {e}") from e
        logger.info(f"Cleared snapshot {self.path}")

    def _write(self, payload: str) -> None:
        tmp_path = self.path.with_suffix(".json.tmp")
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"Failed to write snapshot {self.path}: {e}") from e

    def _read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to read snapshot {self.path}: {e}") from e


async def rehydrate_audio(
    scenes: Sequence[Scene],
    decoder: Callable[[bytes], DecodedAudio],
) -> List[Scene]:
    """Re-derive decoded audio for scenes loaded without it.

    Stored audio that no longer decodes is dropped so the pipeline
    regenerates it.
    """
    restored: List[Scene] = []
    for scene in scenes:
        scene = scene.model_copy()
        if scene.audio_data is not None and scene.audio is None:
            try:
                decoded = await asyncio.to_thread(decoder, scene.audio_data)
            except Exception as e:
                logger.warning(f"Could not decode stored audio for scene {scene.id + 1}: {e}")
                scene.audio_data = None
                scene.actual_duration = None
            else:
                scene.attach_audio(scene.audio_data, decoded)
        restored.append(scene)
    return restored
