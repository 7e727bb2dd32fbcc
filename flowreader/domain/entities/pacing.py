"""Pacing (timing settings) entities for the reader."""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PacingPreset(str, Enum):
    """Named pacing presets offered in the settings screen."""

    UNIFORM = "uniform"
    SMOOTH = "smooth"
    RELAXED = "relaxed"
    SPEED = "speed"


class PacingConfig(BaseModel):
    """Tunable parameters controlling extra display time per word.

    Values are clamped instead of rejected so the stepping loop can always
    produce a duration: the threshold never drops below one character and
    the millisecond fields never go negative.
    """

    model_config = ConfigDict(frozen=True)

    long_word_threshold: int = Field(default=6, ge=1, description="Characters before extra time is added")
    ms_per_extra_char: float = Field(default=20, ge=0, description="Milliseconds per character past the threshold")
    sentence_pause_ms: float = Field(default=150, ge=0, description="Pause after . ! ?")
    clause_pause_ms: float = Field(default=75, ge=0, description="Pause after , ; :")

    @field_validator("long_word_threshold", mode="before")
    @classmethod
    def _clamp_threshold(cls, value):
        if isinstance(value, (int, float)) and value < 1:
            return 1
        return value

    @field_validator("ms_per_extra_char", "sentence_pause_ms", "clause_pause_ms", mode="before")
    @classmethod
    def _clamp_non_negative(cls, value):
        if isinstance(value, (int, float)) and value < 0:
            return 0
        return value

    @classmethod
    def from_preset(cls, preset: Union["PacingPreset", str]) -> "PacingConfig":
        """Return the canonical config for a preset or its string key.

        Raises:
            ValueError: If the key does not name a preset.
        """
        return PACING_PRESETS[PacingPreset(preset)]


PACING_PRESETS: dict[PacingPreset, PacingConfig] = {
    PacingPreset.UNIFORM: PacingConfig(
        long_word_threshold=6, ms_per_extra_char=0, sentence_pause_ms=0, clause_pause_ms=0
    ),
    PacingPreset.SMOOTH: PacingConfig(
        long_word_threshold=6, ms_per_extra_char=20, sentence_pause_ms=150, clause_pause_ms=75
    ),
    PacingPreset.RELAXED: PacingConfig(
        long_word_threshold=5, ms_per_extra_char=30, sentence_pause_ms=250, clause_pause_ms=125
    ),
    PacingPreset.SPEED: PacingConfig(
        long_word_threshold=8, ms_per_extra_char=10, sentence_pause_ms=75, clause_pause_ms=30
    ),
}


def match_preset(config: PacingConfig) -> Optional[PacingPreset]:
    """Return the preset exactly equal to ``config``, if any."""
    for preset, preset_config in PACING_PRESETS.items():
        if preset_config == config:
            return preset
    return None
