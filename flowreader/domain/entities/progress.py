"""Progress entities: resume checkpoints, session records and statistics."""

import uuid
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SessionCheckpoint(BaseModel):
    """Durable resume point for one document.

    Repositories keep one checkpoint per document and only ever move its
    ``word_index`` forward, so replays of older checkpoints are harmless.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "document_id": "doc-42",
                "word_index": 1280,
                "speed": 450,
            }
        },
    )

    document_id: str = Field(min_length=1)
    word_index: int = Field(ge=0)
    speed: int = Field(ge=1)
    saved_at: datetime = Field(default_factory=datetime.utcnow)


class ReadingSessionRecord(BaseModel):
    """Immutable summary of one continuous play interval."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid.uuid4)
    document_id: str = Field(min_length=1)
    start_index: int = Field(ge=0)
    end_index: int = Field(ge=0)
    speed: int = Field(ge=1)
    duration_seconds: int = Field(ge=0)
    started_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def words_read(self) -> int:
        return max(0, self.end_index - self.start_index)


class ReadingStats(BaseModel):
    """Aggregate statistics for the play intervals of one open document."""

    words_read: int = 0
    elapsed_seconds: float = 0.0
    effective_wpm: int = 0
