"""Manifest data model."""

import json
from pathlib import Path
from typing import List, Sequence

from pydantic import BaseModel, Field
import yaml

from ..errors import ManifestError
from .scene import Scene


def check_scene_ids(scenes: Sequence[Scene]) -> None:
    """Ensure scene ids are exactly their list positions."""
    for position, scene in enumerate(scenes):
        if scene.id != position:
            raise ManifestError(
                f"Scene at position {position} has id {scene.id}; "
                "ids must run 0..N-1 in order"
            )


class Manifest(BaseModel):
    """Video project manifest."""

    topic: str = Field(..., description="Video topic")
    context: str = Field(default="", description="Source material given with the topic")
    scenes: List[Scene] = Field(default_factory=list, description="List of scenes")

    @classmethod
    def from_yaml(cls, path: Path) -> "Manifest":
        """Load manifest from YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        # The YAML holds the JSON-mode dump (inline media as base64).
        manifest = cls.model_validate_json(json.dumps(data))
        check_scene_ids(manifest.scenes)
        return manifest

    def dump_yaml(self) -> str:
        """Render the manifest as YAML text."""
        return yaml.safe_dump(
            self.model_dump(mode="json"),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )

    def to_yaml(self, path: Path) -> None:
        """Save manifest to YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.dump_yaml())
