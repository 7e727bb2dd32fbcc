"""Event entities emitted by the playback engine and reader session."""

from dataclasses import dataclass

from .pacing import PacingConfig
from .playback import PauseReason
from .progress import ReadingSessionRecord, SessionCheckpoint


class PlaybackEvent:
    """Base class for playback events."""

    pass


@dataclass
class DocumentLoaded(PlaybackEvent):
    """A word sequence was loaded into the engine."""

    word_count: int
    index: int


@dataclass
class DocumentUnloaded(PlaybackEvent):
    """The engine went back to the stopped state."""

    index: int


@dataclass
class PlaybackStarted(PlaybackEvent):
    """Playback entered the playing state."""

    index: int


@dataclass
class PlaybackPaused(PlaybackEvent):
    """Playback left the playing state."""

    index: int
    reason: PauseReason = PauseReason.USER


@dataclass
class WordAdvanced(PlaybackEvent):
    """The stepping loop moved to the next word."""

    index: int


@dataclass
class PositionChanged(PlaybackEvent):
    """The position was set explicitly (jump, skip or rewind)."""

    previous_index: int
    index: int


@dataclass
class SpeedChanged(PlaybackEvent):
    """Speed setting changed."""

    speed: int


@dataclass
class PacingChanged(PlaybackEvent):
    """Pacing configuration changed."""

    pacing: PacingConfig


@dataclass
class CheckpointSaved(PlaybackEvent):
    """A checkpoint save attempt finished."""

    checkpoint: SessionCheckpoint
    success: bool


@dataclass
class SessionRecorded(PlaybackEvent):
    """A reading session record append attempt finished."""

    record: ReadingSessionRecord
    success: bool
