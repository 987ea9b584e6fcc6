"""External service integrations."""

from .client import GenerationClient
from .prompts import StyleSelector, VisualStyle, positional_style

__all__ = [
    "GenerationClient",
    "StyleSelector",
    "VisualStyle",
    "positional_style",
]
