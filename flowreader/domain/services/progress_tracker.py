"""Progress tracking: checkpoint gating, session intervals and statistics."""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..entities.progress import ReadingSessionRecord, ReadingStats, SessionCheckpoint
from ..interfaces.scheduler import Scheduler

logger = logging.getLogger(__name__)

DEFAULT_CHECKPOINT_DISTANCE = 5
DEFAULT_MIN_SESSION_SECONDS = 5


def merge_checkpoint(
    existing: Optional[SessionCheckpoint],
    incoming: SessionCheckpoint,
) -> SessionCheckpoint:
    """Reconcile a stored checkpoint with an incoming one, advance-only.

    The incoming checkpoint wins unless it would move ``word_index``
    backwards, so replays and late deliveries never regress progress.
    """
    if existing is None or incoming.word_index >= existing.word_index:
        return incoming
    return existing


@dataclass
class _OpenInterval:
    start_index: int
    started_at: float
    started_wall: datetime


class ProgressTracker:
    """
    Observes playback for one document and decides what to persist.

    The tracker never writes anything itself; it answers whether a
    checkpoint is due and builds the records a caller hands to the
    progress repository. For guest documents (``document_id`` is None)
    nothing is ever emitted.
    """

    def __init__(
        self,
        document_id: Optional[str],
        clock: Scheduler,
        checkpoint_distance: int = DEFAULT_CHECKPOINT_DISTANCE,
        min_session_seconds: float = DEFAULT_MIN_SESSION_SECONDS,
    ):
        self.document_id = document_id
        self._clock = clock
        self.checkpoint_distance = max(1, checkpoint_distance)
        self.min_session_seconds = min_session_seconds
        self.last_saved_index = 0
        self._interval: Optional[_OpenInterval] = None
        self._words_read = 0
        self._elapsed_seconds = 0.0

    @property
    def persistent(self) -> bool:
        return self.document_id is not None

    @property
    def interval_open(self) -> bool:
        return self._interval is not None

    # ===== Checkpoints =====

    def seed(self, resume_index: int) -> None:
        """Treat the resume position as already saved."""
        self.last_saved_index = max(0, resume_index)

    def should_checkpoint(self, last_saved_index: int, current_index: int) -> bool:
        """True once forward progress since the last save reaches the distance gate."""
        return current_index > 0 and current_index - last_saved_index >= self.checkpoint_distance

    def checkpoint_due(self, current_index: int) -> bool:
        return self.persistent and self.should_checkpoint(self.last_saved_index, current_index)

    def build_checkpoint(self, document_id: str, current_index: int, speed: int) -> SessionCheckpoint:
        return SessionCheckpoint(document_id=document_id, word_index=current_index, speed=speed)

    def current_checkpoint(self, current_index: int, speed: int) -> Optional[SessionCheckpoint]:
        """Checkpoint for the tracked document, or None for guest documents."""
        if not self.persistent:
            return None
        return self.build_checkpoint(self.document_id, current_index, speed)

    def record_saved(self, checkpoint: SessionCheckpoint) -> None:
        """Note a successful save. The saved index only moves forward."""
        self.last_saved_index = max(self.last_saved_index, checkpoint.word_index)

    def reset(self) -> None:
        """Forget saved progress after an explicit reset."""
        self.last_saved_index = 0

    # ===== Session intervals =====

    def begin_interval(self, start_index: int) -> None:
        """Open a play interval unless one is already open."""
        if self._interval is not None:
            return
        self._interval = _OpenInterval(
            start_index=start_index,
            started_at=self._clock.time(),
            started_wall=datetime.utcnow(),
        )
        logger.debug(f"Session interval opened at index {start_index}")

    def end_interval(self, end_index: int, speed: int) -> Optional[ReadingSessionRecord]:
        """Close the open interval and build its record if it counts.

        Intervals of ``min_session_seconds`` or less, and intervals without
        forward progress, are dropped.

        Returns:
            Optional[ReadingSessionRecord]: The record to persist, if any.
        """
        if self._interval is None:
            return None

        interval = self._interval
        self._interval = None
        elapsed = self._clock.time() - interval.started_at
        duration = math.floor(elapsed)

        self._elapsed_seconds += max(0.0, elapsed)
        self._words_read += max(0, end_index - interval.start_index)

        record = self._build_record(interval, end_index, speed, duration)
        if record is None:
            logger.debug(
                f"Discarding session interval {interval.start_index}->{end_index} ({duration}s)"
            )
        return record

    def open_interval_record(self, end_index: int, speed: int) -> Optional[ReadingSessionRecord]:
        """Record for the open interval as if it ended now, leaving it open."""
        if self._interval is None:
            return None
        duration = math.floor(self._clock.time() - self._interval.started_at)
        return self._build_record(self._interval, end_index, speed, duration)

    def _build_record(
        self,
        interval: _OpenInterval,
        end_index: int,
        speed: int,
        duration: int,
    ) -> Optional[ReadingSessionRecord]:
        if not self.persistent:
            return None
        if duration <= self.min_session_seconds or end_index <= interval.start_index:
            return None
        return ReadingSessionRecord(
            document_id=self.document_id,
            start_index=interval.start_index,
            end_index=end_index,
            speed=speed,
            duration_seconds=duration,
            started_at=interval.started_wall,
        )

    # ===== Statistics =====

    def stats(self, current_index: Optional[int] = None) -> ReadingStats:
        """Words read, elapsed time and effective speed over all intervals.

        When ``current_index`` is given, an open interval counts up to it.
        """
        words_read = self._words_read
        elapsed = self._elapsed_seconds
        if self._interval is not None and current_index is not None:
            words_read += max(0, current_index - self._interval.start_index)
            elapsed += max(0.0, self._clock.time() - self._interval.started_at)

        effective_wpm = round(words_read / (elapsed / 60)) if elapsed > 0 else 0
        return ReadingStats(
            words_read=words_read,
            elapsed_seconds=round(elapsed, 3),
            effective_wpm=effective_wpm,
        )
