"""Audio decoding and offline video composition."""

from .compositor import (
    compose,
    write_video,
    fit_image,
    render_video,
    resolve_media,
    scene_clip,
)
from .overlays import (
    TextStyle,
    STYLES,
    get_style,
    render_text,
    text_card,
)
from .audio import (
    decode_audio,
    load_audio,
    loop_audio,
    mix_music,
    pad_audio,
    speed_up,
    write_audio,
)

__all__ = [
    # Compositor
    "compose",
    "write_video",
    "fit_image",
    "render_video",
    "resolve_media",
    "scene_clip",
    # Overlays
    "TextStyle",
    "STYLES",
    "get_style",
    "render_text",
    "text_card",
    # Audio
    "decode_audio",
    "load_audio",
    "loop_audio",
    "mix_music",
    "pad_audio",
    "speed_up",
    "write_audio",
]
