"""Adaptive RSVP playback engine."""

import logging
import math
from typing import Callable, Optional, Sequence

from ..entities.events import (
    DocumentLoaded,
    DocumentUnloaded,
    PacingChanged,
    PlaybackEvent,
    PlaybackPaused,
    PlaybackStarted,
    PositionChanged,
    SpeedChanged,
    WordAdvanced,
)
from ..entities.pacing import PacingConfig
from ..entities.playback import (
    DEFAULT_SPEED,
    ControlOutcome,
    PauseReason,
    PlaybackSnapshot,
    PlaybackState,
    clamp_speed,
)
from ..exceptions import InvalidInputError, NoActiveDocumentError
from ..interfaces.scheduler import Scheduler
from .timer import CancellableTimer
from .timing import compute_display_duration_ms

logger = logging.getLogger(__name__)

PlaybackListener = Callable[[PlaybackEvent], None]


class PlaybackEngine:
    """
    Stateful core that steps through a word sequence.

    The engine owns:
    - The loaded word sequence and current index
    - Play/pause state, speed and pacing
    - A single step timer, re-armed for every word with a freshly computed
      duration (adaptive, not fixed-interval)

    Speed and pacing changes are picked up when the next step is scheduled;
    a wait already in flight keeps its duration. Pausing, jumping, loading
    and unloading cancel the in-flight wait synchronously.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        speed: int = DEFAULT_SPEED,
        pacing: Optional[PacingConfig] = None,
    ):
        self._scheduler = scheduler
        self._step_timer = CancellableTimer(scheduler, name="playback step")
        self._words: list[str] = []
        self._index = 0
        self._playing = False
        self._speed = clamp_speed(speed)
        self._pacing = pacing or PacingConfig()
        self._listeners: list[PlaybackListener] = []

    # ===== Read-only state =====

    @property
    def state(self) -> PlaybackState:
        if not self._words:
            return PlaybackState.STOPPED
        return PlaybackState.PLAYING if self._playing else PlaybackState.PAUSED

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def current_word_index(self) -> int:
        return self._index

    @property
    def current_word(self) -> Optional[str]:
        if not self._words:
            return None
        return self._words[self._index]

    @property
    def words(self) -> tuple[str, ...]:
        return tuple(self._words)

    @property
    def word_count(self) -> int:
        return len(self._words)

    @property
    def speed(self) -> int:
        return self._speed

    @property
    def pacing(self) -> PacingConfig:
        return self._pacing

    @property
    def step_pending(self) -> bool:
        return self._step_timer.pending

    def snapshot(self) -> PlaybackSnapshot:
        """Get a consistent read-only view of the engine."""
        return PlaybackSnapshot(
            state=self.state,
            current_word_index=self._index,
            word_count=len(self._words),
            current_word=self.current_word,
            speed=self._speed,
            pacing=self._pacing,
        )

    def require_document(self) -> None:
        """Raise if no document is loaded.

        Raises:
            NoActiveDocumentError: If the engine is stopped.
        """
        if not self._words:
            raise NoActiveDocumentError("No document is loaded")

    # ===== Observers =====

    def on_state_change(self, listener: PlaybackListener) -> Callable[[], None]:
        """Register a listener for playback events.

        Returns:
            A callable that unregisters the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: PlaybackEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Playback listener failed on {type(event).__name__}: {e}", exc_info=True)

    # ===== Document lifecycle =====

    def load(self, words: Sequence[str], resume_index: int = 0) -> None:
        """Replace the word sequence and park at ``resume_index`` (clamped), paused.

        Raises:
            InvalidInputError: If ``words`` is empty.
        """
        if not words:
            raise InvalidInputError("Cannot load an empty word sequence")

        self._step_timer.cancel()
        self._words = list(words)
        self._index = self._clamp_index(resume_index)
        self._playing = False

        logger.info(f"Loaded {len(self._words)} words, resuming at index {self._index}")
        self._emit(DocumentLoaded(word_count=len(self._words), index=self._index))

    def unload(self) -> None:
        """Discard the word sequence and return to the stopped state."""
        if not self._words:
            return

        self._step_timer.cancel()
        index = self._index
        self._words = []
        self._index = 0
        self._playing = False

        logger.info("Unloaded word sequence")
        self._emit(DocumentUnloaded(index=index))

    # ===== Playback controls =====

    def play(self) -> ControlOutcome:
        """Start stepping from the current index."""
        if not self._words:
            logger.warning("play() ignored: no active document")
            return ControlOutcome.NO_ACTIVE_DOCUMENT
        if self._playing:
            return ControlOutcome.NO_OP

        self._playing = True
        self._schedule_step()
        logger.debug(f"Playback started at index {self._index}, {self._speed} wpm")
        self._emit(PlaybackStarted(index=self._index))
        return ControlOutcome.APPLIED

    def pause(self, reason: PauseReason = PauseReason.USER) -> ControlOutcome:
        """Stop stepping, cancelling any pending advance."""
        if not self._words:
            logger.warning("pause() ignored: no active document")
            return ControlOutcome.NO_ACTIVE_DOCUMENT
        if not self._playing:
            return ControlOutcome.NO_OP

        self._step_timer.cancel()
        self._playing = False
        logger.debug(f"Playback paused at index {self._index} ({reason.value})")
        self._emit(PlaybackPaused(index=self._index, reason=reason))
        return ControlOutcome.APPLIED

    def toggle(self) -> ControlOutcome:
        """Play if paused, pause if playing."""
        if self._playing:
            return self.pause()
        return self.play()

    def set_speed(self, wpm: int) -> int:
        """Set the speed, clamped to the supported range.

        Returns:
            int: The speed now in effect.

        Raises:
            InvalidInputError: If ``wpm`` is not positive.
        """
        if wpm <= 0:
            raise InvalidInputError(f"Speed must be positive, got {wpm}", {"wpm": wpm})
        return self._apply_speed(clamp_speed(wpm))

    def adjust_speed(self, delta: int) -> int:
        """Change the speed by ``delta`` words per minute, re-clamped."""
        return self._apply_speed(clamp_speed(self._speed + delta))

    def _apply_speed(self, speed: int) -> int:
        if speed != self._speed:
            self._speed = speed
            self._emit(SpeedChanged(speed=speed))
        return self._speed

    def set_pacing(self, pacing: PacingConfig) -> None:
        """Replace the pacing config; applies from the next scheduled word."""
        if pacing == self._pacing:
            return
        self._pacing = pacing
        self._emit(PacingChanged(pacing=pacing))

    def jump_to(self, index: int) -> ControlOutcome:
        """Move to ``index`` (clamped) without changing the play state.

        While playing, the pending advance is superseded by a fresh wait for
        the word at the new index.
        """
        if not self._words:
            logger.warning("jump_to() ignored: no active document")
            return ControlOutcome.NO_ACTIVE_DOCUMENT

        previous = self._index
        self._index = self._clamp_index(index)
        if self._playing:
            self._schedule_step()
        self._emit(PositionChanged(previous_index=previous, index=self._index))
        return ControlOutcome.APPLIED

    def rewind_by_seconds(self, seconds: float) -> ControlOutcome:
        """Jump back roughly ``seconds`` of reading at the current speed.

        Pacing pauses are ignored; this is a coarse gesture, not a seek.

        Raises:
            InvalidInputError: If ``seconds`` is negative.
        """
        if seconds < 0:
            raise InvalidInputError(f"Rewind seconds must not be negative, got {seconds}")
        words_back = math.floor(self._speed / 60 * seconds)
        return self.jump_to(max(0, self._index - words_back))

    # ===== Stepping loop =====

    def _schedule_step(self) -> None:
        # Read speed, pacing and index together for this step.
        word = self._words[self._index]
        duration_ms = compute_display_duration_ms(word, self._speed, self._pacing)
        self._step_timer.arm(duration_ms / 1000, self._advance)

    def _advance(self) -> None:
        if not self._playing or not self._words:
            return

        if self._index >= len(self._words) - 1:
            self._playing = False
            logger.info(f"Reached end of sequence at index {self._index}")
            self._emit(PlaybackPaused(index=self._index, reason=PauseReason.FINISHED))
            return

        self._index += 1
        self._schedule_step()
        self._emit(WordAdvanced(index=self._index))

    def _clamp_index(self, index: int) -> int:
        return min(max(0, index), len(self._words) - 1)
