"""Reader preference entities supplied by the settings source."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .pacing import PacingConfig, PacingPreset
from .playback import (
    DEFAULT_ANCHOR_POSITION,
    DEFAULT_SPEED,
    clamp_anchor_position,
    clamp_speed,
)


class ReaderPreferences(BaseModel):
    """User-level reading preferences.

    These outlive any single document. When ``pacing_preset`` is set it
    wins over ``pacing``.
    """

    speed: int = Field(default=DEFAULT_SPEED, description="Words per minute, clamped to 100-1200")
    anchor_position: float = Field(default=DEFAULT_ANCHOR_POSITION, description="Fixation fraction, clamped to 0.2-0.6")
    pacing: PacingConfig = Field(default_factory=PacingConfig)
    pacing_preset: Optional[PacingPreset] = None

    @field_validator("speed")
    @classmethod
    def _clamp_speed(cls, value: int) -> int:
        return clamp_speed(value)

    @field_validator("anchor_position")
    @classmethod
    def _clamp_anchor(cls, value: float) -> float:
        return clamp_anchor_position(value)

    @model_validator(mode="after")
    def _apply_preset(self) -> "ReaderPreferences":
        if self.pacing_preset is not None:
            self.pacing = PacingConfig.from_preset(self.pacing_preset)
        return self
