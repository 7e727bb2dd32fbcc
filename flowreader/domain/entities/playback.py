"""Playback state entities for the reader."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .pacing import PacingConfig

MIN_SPEED = 100
MAX_SPEED = 1200
DEFAULT_SPEED = 300

MIN_ANCHOR_POSITION = 0.2
MAX_ANCHOR_POSITION = 0.6
DEFAULT_ANCHOR_POSITION = 0.35

ANCHOR_PRESETS = {
    "left": 0.25,
    "default": 0.35,
    "center": 0.5,
}


def clamp_speed(wpm: int) -> int:
    """Clamp a words-per-minute value into the supported range."""
    return int(min(MAX_SPEED, max(MIN_SPEED, wpm)))


def clamp_anchor_position(position: float) -> float:
    """Clamp an anchor preference into the supported range."""
    return min(MAX_ANCHOR_POSITION, max(MIN_ANCHOR_POSITION, position))


class PlaybackState(str, Enum):
    """Playback engine state."""

    STOPPED = "stopped"
    PAUSED = "paused"
    PLAYING = "playing"


class PauseReason(str, Enum):
    """Why playback left the playing state."""

    USER = "user"
    FINISHED = "finished"
    SUSPENDED = "suspended"
    CLOSED = "closed"


class ControlOutcome(str, Enum):
    """Result of a playback control call."""

    APPLIED = "applied"
    NO_OP = "no_op"
    NO_ACTIVE_DOCUMENT = "no_active_document"


class AnchorSplit(BaseModel):
    """A word split around its fixation letter."""

    model_config = ConfigDict(frozen=True)

    before: str = ""
    anchor: str = ""
    after: str = ""
    index: int = Field(default=0, ge=0)


class PlaybackSnapshot(BaseModel):
    """Read-only view of the engine for presentation layers."""

    model_config = ConfigDict(frozen=True)

    state: PlaybackState
    current_word_index: int = Field(ge=0)
    word_count: int = Field(ge=0)
    current_word: Optional[str] = None
    speed: int
    pacing: PacingConfig

    @property
    def is_playing(self) -> bool:
        return self.state == PlaybackState.PLAYING
