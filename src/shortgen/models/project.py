"""Project snapshot model."""

from datetime import datetime, timezone
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .scene import Scene


class ProjectState(str, Enum):
    """Project state enum."""
    SCRIPTED = "scripted"
    GENERATING = "generating"
    COMPLETED = "completed"


class ProjectSnapshot(BaseModel):
    """Durable state of one run.

    The decoded audio buffer never reaches the snapshot; loaders re-derive
    it from ``audio_data``.
    """

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    topic: str = Field(..., description="Video topic")
    state: ProjectState = Field(default=ProjectState.GENERATING, description="Run state")
    scenes: List[Scene] = Field(default_factory=list, description="Scenes in script order")
    saved_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the snapshot was written"
    )
