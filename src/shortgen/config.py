"""Configuration management."""

import os
from pathlib import Path
from pydantic import BaseModel, Field
from dotenv import load_dotenv

from .errors import MissingCredentialError

# Load environment variables
load_dotenv()


def _api_key_from_env() -> str:
    for name in ("POE_API_KEY", "GEMINI_API_KEY", "API_KEY"):
        value = os.getenv(name, "")
        if value:
            return value
    return ""


class Config(BaseModel):
    """Application configuration."""

    # API access
    api_key: str = Field(
        default_factory=_api_key_from_env,
        description="Generation API key (POE_API_KEY, GEMINI_API_KEY or API_KEY)"
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("SHORTGEN_BASE_URL", "https://api.poe.com/v1"),
        description="OpenAI-compatible chat completions endpoint"
    )

    # Models
    script_model: str = Field(
        default_factory=lambda: os.getenv("SHORTGEN_SCRIPT_MODEL", "gemini-3-pro"),
        description="Model used to write the storyboard"
    )
    image_model: str = Field(
        default_factory=lambda: os.getenv("SHORTGEN_IMAGE_MODEL", "nano-banana-pro"),
        description="Model used to draw scene illustrations"
    )
    speech_model: str = Field(
        default_factory=lambda: os.getenv("SHORTGEN_SPEECH_MODEL", "gemini-2.5-pro-tts"),
        description="Model used to voice the narration"
    )
    language: str = Field(
        default="Simplified Chinese",
        description="Language of narration and on-image text"
    )

    # Paths
    workspace: Path = Field(
        default_factory=lambda: Path(os.getenv("SHORTGEN_WORKSPACE", ".")),
        description="Workspace directory"
    )

    # Pipeline tuning
    scene_count: int = Field(default=11, ge=1, description="Scenes requested per script")
    batch_size: int = Field(default=3, ge=1, description="Scenes generated concurrently per wave")
    image_retries: int = Field(default=2, ge=0, description="Retries per image after the first attempt")
    image_retry_delay: float = Field(default=2.0, ge=0, description="Initial image retry delay (seconds)")
    speech_retries: int = Field(default=2, ge=0, description="Retries per narration after the first attempt")
    speech_retry_delay: float = Field(default=1.0, ge=0, description="Initial speech retry delay (seconds)")
    save_cooldown: float = Field(default=0.5, ge=0, description="Pause before a coalesced deferred save")
    fetch_timeout: float = Field(default=60.0, gt=0, description="Media download timeout (seconds)")

    @property
    def state_dir(self) -> Path:
        """Directory holding the project snapshot store."""
        return self.workspace / ".shortgen"

    def validate_required(self) -> None:
        """Validate that required credentials are set."""
        if not self.api_key:
            raise MissingCredentialError(
                "API key not set. Set POE_API_KEY (or GEMINI_API_KEY / API_KEY)."
            )


# Global config instance
config = Config()
