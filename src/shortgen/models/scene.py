"""Scene data model."""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..errors import ManifestError


@dataclass
class DecodedAudio:
    """Decoded narration audio.

    Attributes:
        samples: Sample array shaped ``(frames, channels)``.
        sample_rate: Samples per second.
        duration: Length in seconds.
    """

    samples: Any
    sample_rate: int
    duration: float


class Scene(BaseModel):
    """One unit of the video timeline and the assets generated for it."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )

    id: int = Field(..., description="Ordinal position in the script", ge=0)
    title: str = Field(..., description="Short on-screen title")
    narration: str = Field(..., description="Text voiced by the narrator")
    visual_description: str = Field(..., description="Prompt for the illustration")
    duration_hint: Optional[float] = Field(
        None, description="Model-estimated duration in seconds", gt=0
    )

    image_data: Optional[bytes] = Field(None, description="Encoded still image")
    image_file: Optional[str] = Field(None, description="Package-relative image path")
    audio_data: Optional[bytes] = Field(None, description="Encoded narration audio")
    audio_file: Optional[str] = Field(None, description="Package-relative audio path")
    actual_duration: Optional[float] = Field(
        None, description="Decoded narration length in seconds"
    )
    audio: Optional[DecodedAudio] = Field(None, exclude=True)

    @model_validator(mode="after")
    def _check_media_exclusive(self) -> "Scene":
        if self.image_data is not None and self.image_file is not None:
            raise ManifestError(f"Scene {self.id} has both inline and file image data")
        if self.audio_data is not None and self.audio_file is not None:
            raise ManifestError(f"Scene {self.id} has both inline and file audio data")
        return self

    @property
    def has_image(self) -> bool:
        return self.image_data is not None or self.image_file is not None

    @property
    def has_audio(self) -> bool:
        return self.audio is not None

    @property
    def failed(self) -> bool:
        """True when neither asset kind was produced for this scene."""
        return not self.has_image and not self.has_audio

    def attach_image(self, encoded: bytes) -> None:
        self.image_data = encoded
        self.image_file = None

    def attach_audio(self, encoded: bytes, decoded: DecodedAudio) -> None:
        """Set the encoded audio together with its decoded buffer and duration."""
        self.audio_data = encoded
        self.audio_file = None
        self.audio = decoded
        self.actual_duration = decoded.duration
