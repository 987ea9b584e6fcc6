"""Storyboard returned by the script model."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .scene import Scene


class StoryboardScene(BaseModel):
    """A scene as written by the script model, before any asset exists."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., description="Short punchy title")
    narration: str = Field(..., description="Spoken narration")
    visual_description: str = Field(..., description="Description of the 9:16 image")
    duration_in_seconds: float = Field(
        5.0, alias="durationInSeconds", gt=0, description="Estimated duration"
    )


class Storyboard(BaseModel):
    """Ordered scenes of one script."""

    scenes: List[StoryboardScene] = Field(..., min_length=1)

    def to_scenes(self) -> List[Scene]:
        """Number the storyboard scenes into pipeline scenes.

        Ids are assigned once here, equal to the list position.
        """
        return [
            Scene(
                id=i,
                title=item.title,
                narration=item.narration,
                visual_description=item.visual_description,
                duration_hint=item.duration_in_seconds,
            )
            for i, item in enumerate(self.scenes)
        ]
