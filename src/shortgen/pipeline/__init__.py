"""Asset generation pipeline."""

from .assets import AssetPipeline, AssetSlots, GenerationOutcome, Progress
from .retry import retry_async, with_retry
from .scheduler import partition, run_in_batches

__all__ = [
    "AssetPipeline",
    "AssetSlots",
    "GenerationOutcome",
    "Progress",
    "retry_async",
    "with_retry",
    "partition",
    "run_in_batches",
]
