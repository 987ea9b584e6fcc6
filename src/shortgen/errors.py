"""Exception types raised across the generator."""


class ShortgenError(Exception):
    """Base class for all generator errors."""


class MissingCredentialError(ShortgenError, ValueError):
    """Raised when the generation API key is not configured."""


class GenerationError(ShortgenError):
    """A remote generation call failed."""


class MalformedResponseError(GenerationError):
    """The script model returned text without a usable JSON storyboard."""


class NoResourceFoundError(GenerationError):
    """An image or speech response did not contain a resource URL."""


class ResourceFetchError(GenerationError):
    """A located media resource could not be downloaded."""


class PersistenceError(ShortgenError):
    """Reading or writing the project snapshot failed."""


class TotalFailureError(ShortgenError):
    """No scene obtained an image or an audio track."""

    def __init__(self, scene_count: int) -> None:
        self.scene_count = scene_count
        super().__init__(
            f"No assets were generated for any of the {scene_count} scenes. "
            "Check the API key, quota and network connectivity."
        )


class ManifestError(ShortgenError):
    """A manifest or scene carries inconsistent media references."""
