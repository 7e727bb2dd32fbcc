"""Domain entities for the reader."""

from .document import Document
from .events import (
    CheckpointSaved,
    DocumentLoaded,
    DocumentUnloaded,
    PacingChanged,
    PlaybackEvent,
    PlaybackPaused,
    PlaybackStarted,
    PositionChanged,
    SessionRecorded,
    SpeedChanged,
    WordAdvanced,
)
from .pacing import PACING_PRESETS, PacingConfig, PacingPreset, match_preset
from .playback import (
    ANCHOR_PRESETS,
    DEFAULT_ANCHOR_POSITION,
    DEFAULT_SPEED,
    MAX_ANCHOR_POSITION,
    MAX_SPEED,
    MIN_ANCHOR_POSITION,
    MIN_SPEED,
    AnchorSplit,
    ControlOutcome,
    PauseReason,
    PlaybackSnapshot,
    PlaybackState,
    clamp_anchor_position,
    clamp_speed,
)
from .preferences import ReaderPreferences
from .progress import ReadingSessionRecord, ReadingStats, SessionCheckpoint

__all__ = [
    # Document entities
    "Document",
    # Pacing entities
    "PacingConfig",
    "PacingPreset",
    "PACING_PRESETS",
    "match_preset",
    # Playback entities
    "AnchorSplit",
    "ControlOutcome",
    "PauseReason",
    "PlaybackSnapshot",
    "PlaybackState",
    "ANCHOR_PRESETS",
    "DEFAULT_ANCHOR_POSITION",
    "DEFAULT_SPEED",
    "MAX_ANCHOR_POSITION",
    "MAX_SPEED",
    "MIN_ANCHOR_POSITION",
    "MIN_SPEED",
    "clamp_anchor_position",
    "clamp_speed",
    # Preference entities
    "ReaderPreferences",
    # Progress entities
    "SessionCheckpoint",
    "ReadingSessionRecord",
    "ReadingStats",
    # Event entities
    "PlaybackEvent",
    "DocumentLoaded",
    "DocumentUnloaded",
    "PlaybackStarted",
    "PlaybackPaused",
    "WordAdvanced",
    "PositionChanged",
    "SpeedChanged",
    "PacingChanged",
    "CheckpointSaved",
    "SessionRecorded",
]
