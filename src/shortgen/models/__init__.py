"""Data models for the short video generator."""

from .scene import DecodedAudio, Scene
from .storyboard import Storyboard, StoryboardScene
from .manifest import Manifest, check_scene_ids
from .project import ProjectSnapshot, ProjectState

__all__ = [
    "DecodedAudio",
    "Scene",
    "Storyboard",
    "StoryboardScene",
    "Manifest",
    "check_scene_ids",
    "ProjectSnapshot",
    "ProjectState",
]
