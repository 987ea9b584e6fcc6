"""Offline compositor turning a finished scene list into a video file."""

import logging
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from moviepy import ColorClip, CompositeVideoClip, ImageClip, VideoClip, concatenate_videoclips

from ..errors import ManifestError
from ..media import image_extension
from ..models import Scene
from ..timing import FPS, PLAYBACK_SPEED, TimelineEntry, build_timeline
from .audio import load_audio, mix_music, pad_audio, speed_up, write_audio
from .overlays import text_card

logger = logging.getLogger(__name__)

FRAME_SIZE = (1080, 1920)


def resolve_media(
    scene: Scene,
    base_dir: Optional[Path],
    work_dir: Path,
) -> Tuple[Optional[Path], Optional[Path]]:
    """Return on-disk image and audio paths for a scene.

    Inline media is written to ``work_dir`` unchanged; file references are
    resolved against ``base_dir``.

    Raises:
        ManifestError: If a referenced file does not exist.
    """
    image_path: Optional[Path] = None
    audio_path: Optional[Path] = None

    if scene.image_data is not None:
        image_path = work_dir / f"{scene.id + 1}.{image_extension(scene.image_data)}"
        image_path.write_bytes(scene.image_data)
    elif scene.image_file is not None:
        image_path = (base_dir or Path(".")) / scene.image_file
        if not image_path.exists():
            raise ManifestError(f"Image not found for scene {scene.id + 1}: {image_path}")

    if scene.audio_data is not None:
        audio_path = write_audio(scene.audio_data, work_dir, str(scene.id + 1))
    elif scene.audio_file is not None:
        audio_path = (base_dir or Path(".")) / scene.audio_file
        if not audio_path.exists():
            raise ManifestError(f"Audio not found for scene {scene.id + 1}: {audio_path}")

    return image_path, audio_path


def fit_image(image_path: Path, size: Tuple[int, int], duration: float) -> CompositeVideoClip:
    """Scale an image to fit inside the frame, centered on black."""
    image = ImageClip(str(image_path))
    scale = min(size[0] / image.w, size[1] / image.h)
    image = image.resized(scale).with_duration(duration).with_position(("center", "center"))
    background = ColorClip(size=size, color=(0, 0, 0)).with_duration(duration)
    return CompositeVideoClip([background, image], size=size).with_duration(duration)


def scene_clip(
    scene: Scene,
    entry: TimelineEntry,
    size: Tuple[int, int],
    base_dir: Optional[Path],
    work_dir: Path,
    speed: float = PLAYBACK_SPEED,
) -> VideoClip:
    """Build the body of one scene: its image with narration at ``speed``."""
    duration = entry.body_duration
    image_path, audio_path = resolve_media(scene, base_dir, work_dir)

    if image_path is not None:
        visual = fit_image(image_path, size, duration)
    else:
        visual = text_card(scene.visual_description, size, duration, style_name="placeholder")

    if audio_path is None:
        return visual

    audio = speed_up(load_audio(audio_path), speed)
    if audio.duration > duration:
        logger.warning(
            f"Narration for scene {scene.id + 1} runs {audio.duration - duration:.2f}s "
            "past its slot and is trimmed"
        )
        audio = audio.subclipped(0, duration)
    return visual.with_audio(pad_audio(audio, duration))


def compose(
    scenes: Sequence[Scene],
    base_dir: Optional[Path],
    work_dir: Path,
    fps: int = FPS,
    size: Tuple[int, int] = FRAME_SIZE,
    music: Optional[Path] = None,
) -> VideoClip:
    """Lay out title cards and scene bodies following the shared timeline.

    With ``music`` set, the track is looped under the whole timeline at
    ``MUSIC_VOLUME``.

    Raises:
        ValueError: If ``scenes`` is empty.
    """
    if not scenes:
        raise ValueError("No scenes provided")

    timeline = build_timeline(scenes, fps=fps)
    clips: List[VideoClip] = []
    for scene, entry in zip(scenes, timeline):
        if entry.title_frames:
            clips.append(text_card(scene.title, size, entry.title_duration))
        clips.append(scene_clip(scene, entry, size, base_dir, work_dir))

    video = clips[0] if len(clips) == 1 else concatenate_videoclips(clips, method="compose")

    if music is not None:
        duration = timeline[-1].end_frame / fps
        video = video.with_audio(mix_music(video.audio, load_audio(music), duration))
    return video


def write_video(
    video: VideoClip,
    output_path: Path,
    fps: int = FPS,
    preset: str = "medium",
    bitrate: Optional[str] = None,
) -> Path:
    """Encode ``video`` as H.264/AAC mp4.

    Args:
        video: Composed timeline.
        output_path: Destination file; parent directories are created.
        fps: Output frame rate.
        preset: x264 preset (ultrafast for drafts, medium for final output).
        bitrate: Target video bitrate such as ``"8000k"``; None lets x264 decide.

    Returns:
        ``output_path``.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    params = {"fps": fps, "codec": "libx264", "audio_codec": "aac", "preset": preset}
    if bitrate:
        params["bitrate"] = bitrate
    video.write_videofile(str(output_path), **params)
    return output_path


def render_video(
    scenes: Sequence[Scene],
    output_path: Path,
    base_dir: Optional[Path] = None,
    fps: int = FPS,
    size: Tuple[int, int] = FRAME_SIZE,
    music: Optional[Path] = None,
    **encode_params,
) -> Path:
    """Render a scene list to a video file.

    Args:
        scenes: Scenes with inline media or file references.
        output_path: Destination video path.
        base_dir: Directory file references are relative to.
        fps: Output frame rate.
        size: Output frame size.
        music: Optional background track looped under the narration.
        **encode_params: Passed through to :func:`write_video`.

    Returns:
        Path to the rendered video.
    """
    with tempfile.TemporaryDirectory(prefix="shortgen_render_") as tmp:
        video = compose(scenes, base_dir, Path(tmp), fps=fps, size=size, music=music)
        try:
            logger.info(f"Rendering {len(scenes)} scenes ({video.duration:.1f}s) to {output_path}")
            return write_video(video, output_path, fps=fps, **encode_params)
        finally:
            video.close()
