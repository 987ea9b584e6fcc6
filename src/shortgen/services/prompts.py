"""Prompt templates and visual style selection."""

from enum import Enum
from typing import Callable


class VisualStyle(str, Enum):
    """Illustration modes, selected by scene position."""
    HIGH_IMPACT = "high_impact"
    INFORMATIONAL = "informational"


StyleSelector = Callable[[int, int], VisualStyle]


def positional_style(scene_index: int, total_scenes: int) -> VisualStyle:
    """Opening and closing scenes get the high-impact style, the rest are infographics."""
    if scene_index == 0 or scene_index == total_scenes - 1:
        return VisualStyle.HIGH_IMPACT
    return VisualStyle.INFORMATIONAL


SCRIPT_TEMPLATE = """\
Create a short vertical video script (TikTok/Shorts style) about "{topic}".

Context / detailed description / source material:
"{context}"

Goals:
1. Give the viewer a reason to finish watching: emotional value and high information density.
2. Open with genuine value, a relatable phenomenon, an event or a pain point. No clickbait.
3. Each scene must flow into the next with a natural transition.

Language: {language}, conversational and spoken.

Respond with a JSON object {{"scenes": [...]}} containing exactly {scene_count} scenes.
Each scene has:
- "title": a short punchy title (2-6 characters).
- "narration": natural spoken narration, at most 150 characters.
- "durationInSeconds": between 15 and 22.
- "visual_description": a concise description for a vertical 9:16 image with bold
  colors and a centered composition. Key terms shown as text must be written in {language}.
"""

HIGH_IMPACT_TEMPLATE = """\
Create a vertical (9:16) image for scene #{scene_number} of a short video.

Style: modern pop art / 2.5D vector illustration.
Visuals: high saturation, bold colors, explosive composition, sticker art aesthetics.
Composition: center-focused, keep the top 10% and bottom 20% relatively clear for UI.

Input context:
Visual: {visual_description}
Narration: {narration}

Requirements:
- Render any requested text clearly in {language}.
- Strict illustration style, no realistic photos.
"""

INFORMATIONAL_TEMPLATE = """\
Extract the core theme and key points of the input and draw a cartoon infographic.
- Hand-drawn style, vertical (9:16) composition.
- Add a few simple cartoon elements or icons to make it memorable.
- Everything hand-drawn, no photorealistic elements.
- Text in {language} unless requested otherwise.
- Keep it concise: highlight keywords and core concepts, leave plenty of white space.

Scene description: {visual_description}
(Narration: {narration})
"""

STYLE_TEMPLATES = {
    VisualStyle.HIGH_IMPACT: HIGH_IMPACT_TEMPLATE,
    VisualStyle.INFORMATIONAL: INFORMATIONAL_TEMPLATE,
}


def build_script_prompt(topic: str, context: str, scene_count: int, language: str) -> str:
    return SCRIPT_TEMPLATE.format(
        topic=topic,
        context=context,
        scene_count=scene_count,
        language=language,
    )


def build_image_prompt(
    style: VisualStyle,
    visual_description: str,
    narration: str,
    scene_index: int,
    language: str,
) -> str:
    return STYLE_TEMPLATES[style].format(
        scene_number=scene_index + 1,
        visual_description=visual_description,
        narration=narration,
        language=language,
    )
