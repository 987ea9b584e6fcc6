"""Scene timing shared by every consumer of a finished scene list.

The compositor and the timeline preview both derive scene lengths here, so
narration played at ``PLAYBACK_SPEED`` and the visual it belongs to always
end together.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence

from .models import Scene

PLAYBACK_SPEED = 1.5
DEFAULT_SCENE_SECONDS = 5.0
SCENE_END_BUFFER = 0.1
TITLE_CARD_SECONDS = 1.0
FPS = 30


def raw_duration(scene: Scene) -> float:
    """Measured narration length, else the model's estimate, else the default."""
    if scene.actual_duration is not None:
        return scene.actual_duration
    if scene.duration_hint is not None:
        return scene.duration_hint
    return DEFAULT_SCENE_SECONDS


def effective_duration(scene: Scene, speed: float = PLAYBACK_SPEED) -> float:
    """On-screen seconds of a scene once narration is sped up."""
    return raw_duration(scene) / speed


@dataclass(frozen=True)
class TimelineEntry:
    """Placement of one scene on the rendered timeline, in frames."""

    scene_id: int
    start_frame: int
    title_frames: int
    body_frames: int
    fps: int

    @property
    def body_start_frame(self) -> int:
        return self.start_frame + self.title_frames

    @property
    def end_frame(self) -> int:
        return self.body_start_frame + self.body_frames

    @property
    def body_start(self) -> float:
        return self.body_start_frame / self.fps

    @property
    def body_duration(self) -> float:
        return self.body_frames / self.fps

    @property
    def title_duration(self) -> float:
        return self.title_frames / self.fps


def build_timeline(
    scenes: Sequence[Scene],
    fps: int = FPS,
    speed: float = PLAYBACK_SPEED,
    buffer: float = SCENE_END_BUFFER,
    title_card: float = TITLE_CARD_SECONDS,
) -> List[TimelineEntry]:
    """Lay scenes out back to back.

    Every scene after the first is preceded by a title card. Scene bodies
    last ``ceil((effective_duration + buffer) * fps)`` frames.
    """
    entries: List[TimelineEntry] = []
    frame = 0
    for index, scene in enumerate(scenes):
        title_frames = round(title_card * fps) if index > 0 else 0
        body_frames = math.ceil((effective_duration(scene, speed) + buffer) * fps)
        entries.append(
            TimelineEntry(
                scene_id=scene.id,
                start_frame=frame,
                title_frames=title_frames,
                body_frames=body_frames,
                fps=fps,
            )
        )
        frame += title_frames + body_frames
    return entries


def total_frames(
    scenes: Sequence[Scene],
    fps: int = FPS,
    speed: float = PLAYBACK_SPEED,
    buffer: float = SCENE_END_BUFFER,
    title_card: float = TITLE_CARD_SECONDS,
) -> int:
    """Length of the whole timeline, consistent with :func:`build_timeline`."""
    entries = build_timeline(scenes, fps, speed, buffer, title_card)
    return entries[-1].end_frame if entries else 0
