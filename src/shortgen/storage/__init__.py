"""Project snapshot persistence."""

from .gate import GateState, SaveGate
from .store import CURRENT_PROJECT_KEY, ProjectStore, rehydrate_audio

__all__ = [
    "GateState",
    "SaveGate",
    "CURRENT_PROJECT_KEY",
    "ProjectStore",
    "rehydrate_audio",
]
