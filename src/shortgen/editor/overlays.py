"""Title cards and placeholder frames for the vertical timeline."""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from moviepy import ColorClip, CompositeVideoClip, TextClip


@dataclass
class TextStyle:
    """Look of on-screen text. ``font`` None uses the moviepy default."""

    font: Optional[str] = None
    font_size: int = 64
    color: str = "white"
    stroke_color: Optional[str] = "black"
    stroke_width: int = 2
    background_color: Optional[str] = None
    margin: Tuple[int, int] = field(default_factory=lambda: (20, 10))


# Card presets, sized for a 1080px wide frame
STYLES = {
    "default": TextStyle(),
    "title": TextStyle(font_size=110, stroke_width=4),
    "placeholder": TextStyle(font_size=52, stroke_color=None, stroke_width=0, color="#c8c8ff"),
}


def get_style(name: str) -> TextStyle:
    """Look up a card preset.

    Raises:
        ValueError: If no preset has that name.
    """
    try:
        return STYLES[name]
    except KeyError:
        raise ValueError(f"Unknown style: {name}. Available: {sorted(STYLES)}") from None


def render_text(
    text: str,
    style: Optional[TextStyle] = None,
    duration: Optional[float] = None,
    width: Optional[int] = None,
) -> TextClip:
    """Render ``text`` as a clip.

    With ``width`` set the text is wrapped and centred inside a box of that
    width, which long Chinese titles need on a portrait frame.
    """
    style = style or STYLES["default"]

    kwargs = dict(
        text=text,
        font=style.font,
        font_size=style.font_size,
        color=style.color,
        margin=style.margin,
    )
    if style.stroke_color and style.stroke_width > 0:
        kwargs.update(stroke_color=style.stroke_color, stroke_width=style.stroke_width)
    if style.background_color:
        kwargs["bg_color"] = style.background_color
    if width:
        kwargs.update(method="caption", size=(width, None), text_align="center")

    clip = TextClip(**kwargs)
    return clip if duration is None else clip.with_duration(duration)


def text_card(
    text: str,
    size: Tuple[int, int],
    duration: float,
    style_name: str = "title",
) -> CompositeVideoClip:
    """Centered text on a black frame.

    Used for the title card before each scene and as the stand-in for a
    scene whose illustration failed.

    Args:
        text: Text content.
        size: Frame size ``(width, height)``.
        duration: Card duration in seconds.
        style_name: Name of the text style preset.

    Returns:
        Composite clip of the requested size and duration.
    """
    background = ColorClip(size=size, color=(0, 0, 0)).with_duration(duration)
    caption = render_text(
        text,
        get_style(style_name),
        duration=duration,
        width=int(size[0] * 0.85),
    ).with_position(("center", "center"))
    return CompositeVideoClip([background, caption], size=size).with_duration(duration)
