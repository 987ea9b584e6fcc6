"""Audio decoding and processing for scenes."""

import tempfile
from pathlib import Path
from typing import Optional

from moviepy import AudioClip, AudioFileClip, CompositeAudioClip
from moviepy.audio.fx import AudioFadeOut
from moviepy.video.fx import MultiplySpeed

from ..media import audio_extension
from ..models import DecodedAudio


def load_audio(audio_path: Path) -> AudioFileClip:
    """Load an audio file.

    Args:
        audio_path: Path to the audio file.

    Returns:
        AudioFileClip instance.

    Raises:
        FileNotFoundError: If audio file doesn't exist.
    """
    if not audio_path.exists():
        raise FileNotFoundError(f"Audio file not found: {audio_path}")

    return AudioFileClip(str(audio_path))


def decode_audio(encoded: bytes) -> DecodedAudio:
    """Decode encoded narration (mp3, wav, ...) into samples.

    Blocking; the pipeline runs it in a worker thread.

    Args:
        encoded: Encoded audio bytes as served by the speech model.

    Returns:
        Decoded samples with their rate and duration.

    Raises:
        ValueError: If the bytes are empty or decode to no audio.
    """
    if not encoded:
        raise ValueError("Audio data is empty")

    with tempfile.TemporaryDirectory(prefix="shortgen_") as tmp:
        path = Path(tmp) / f"narration.{audio_extension(encoded)}"
        path.write_bytes(encoded)

        clip = AudioFileClip(str(path))
        try:
            duration = float(clip.duration or 0.0)
            if duration <= 0:
                raise ValueError("Decoded audio has no duration")
            samples = clip.to_soundarray()
            return DecodedAudio(samples=samples, sample_rate=int(clip.fps), duration=duration)
        finally:
            clip.close()


def write_audio(encoded: bytes, directory: Path, stem: str) -> Path:
    """Write encoded audio to ``directory`` with an extension matching its format."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{stem}.{audio_extension(encoded)}"
    path.write_bytes(encoded)
    return path


def speed_up(audio: AudioFileClip, factor: float) -> AudioFileClip:
    """Play audio ``factor`` times faster, shortening it accordingly.

    Args:
        audio: Audio clip to process.
        factor: Speed multiplier (1.5 = 50% faster).

    Returns:
        Audio clip with the speed applied.
    """
    if factor == 1.0:
        return audio
    return audio.with_effects([MultiplySpeed(factor)])


def pad_audio(audio: AudioFileClip, duration: float) -> CompositeAudioClip:
    """Extend audio with silence up to ``duration`` seconds.

    Args:
        audio: Audio clip to pad.
        duration: Target duration in seconds; never shorter than the clip.

    Returns:
        Audio clip lasting exactly ``duration`` seconds.
    """
    return CompositeAudioClip([audio]).with_duration(max(duration, audio.duration))



MUSIC_VOLUME = 0.15
MUSIC_FADE_OUT = 1.0


def loop_audio(audio: AudioClip, target_duration: float) -> AudioClip:
    """Repeat ``audio`` back to back and cut it at ``target_duration``."""
    if audio.duration >= target_duration:
        return audio.subclipped(0, target_duration)

    repeats = int(target_duration // audio.duration) + 1
    looped = CompositeAudioClip([audio.with_start(i * audio.duration) for i in range(repeats)])
    return looped.subclipped(0, target_duration)


def mix_music(
    narration: Optional[AudioClip],
    music: AudioClip,
    duration: float,
    volume: float = MUSIC_VOLUME,
    fade_out: float = MUSIC_FADE_OUT,
) -> AudioClip:
    """Lay a looped, quiet music bed under the narration track.

    Args:
        narration: Timeline narration, or None for a silent timeline.
        music: Background track of any length.
        duration: Length of the whole timeline in seconds.
        volume: Music gain relative to its source level.
        fade_out: Fade at the end of the timeline in seconds.

    Returns:
        Audio clip lasting exactly ``duration`` seconds.
    """
    bed = loop_audio(music, duration).with_volume_scaled(volume)
    if fade_out > 0:
        bed = bed.with_effects([AudioFadeOut(min(fade_out, duration))])
    if narration is None:
        return bed
    return CompositeAudioClip([narration, bed]).with_duration(duration)
