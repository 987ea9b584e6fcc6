import pytest
from moviepy import AudioClip

from shortgen.editor.audio import MUSIC_VOLUME, loop_audio, mix_music


def silence(duration):
    return AudioClip(lambda t: 0 * t, duration=duration, fps=44100)


def test_short_music_loops_up_to_target():
    looped = loop_audio(silence(2.0), 7.0)
    assert looped.duration == pytest.approx(7.0)


def test_long_music_is_trimmed():
    trimmed = loop_audio(silence(30.0), 12.5)
    assert trimmed.duration == pytest.approx(12.5)


def test_music_bed_spans_the_timeline():
    mixed = mix_music(silence(5.0), silence(2.0), duration=9.0)
    assert mixed.duration == pytest.approx(9.0)


def test_music_without_narration():
    bed = mix_music(None, silence(4.0), duration=10.0, fade_out=0.0)
    assert bed.duration == pytest.approx(10.0)


def test_default_music_volume():
    assert MUSIC_VOLUME == 0.15
