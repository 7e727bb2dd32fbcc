"""Reader session: the per-document composition of playback and progress."""

import asyncio
import logging
from typing import Callable, Optional, Sequence, Union

from ..entities.document import Document
from ..entities.events import (
    CheckpointSaved,
    PlaybackEvent,
    PlaybackPaused,
    PlaybackStarted,
    PositionChanged,
    SessionRecorded,
    WordAdvanced,
)
from ..entities.pacing import PacingConfig, PacingPreset, match_preset
from ..entities.playback import (
    AnchorSplit,
    ControlOutcome,
    PauseReason,
    PlaybackSnapshot,
    PlaybackState,
    clamp_anchor_position,
)
from ..entities.preferences import ReaderPreferences
from ..entities.progress import ReadingSessionRecord, ReadingStats, SessionCheckpoint
from ..exceptions import InvalidInputError, PersistenceUnavailableError
from ..interfaces.fallback_store import FallbackStore
from ..interfaces.progress_repository import ProgressRepository
from ..interfaces.scheduler import Scheduler
from .anchor import split_at_anchor
from .navigation import skip_backward, skip_forward
from .playback_engine import PlaybackEngine, PlaybackListener
from .progress_tracker import (
    DEFAULT_CHECKPOINT_DISTANCE,
    DEFAULT_MIN_SESSION_SECONDS,
    ProgressTracker,
)
from .timer import CancellableTimer

logger = logging.getLogger(__name__)

DEFAULT_CHECKPOINT_DEBOUNCE_MS = 500


class ReaderSession:
    """
    Binds playback, navigation and progress tracking to one open document.

    This session owns:
    - The PlaybackEngine and its step timer
    - A ProgressTracker per opened document
    - The checkpoint debounce timer
    - The asyncio tasks that carry saves to the progress repository

    Saves are fire-and-forget: a failing repository is logged and reported
    through ``CheckpointSaved``/``SessionRecorded`` events, and playback
    carries on regardless. Persistence tasks need a running event loop; a
    save triggered by the scheduler without one is logged and dropped.
    """

    def __init__(
        self,
        repository: ProgressRepository,
        scheduler: Scheduler,
        preferences: Optional[ReaderPreferences] = None,
        fallback_store: Optional[FallbackStore] = None,
        checkpoint_distance: int = DEFAULT_CHECKPOINT_DISTANCE,
        checkpoint_debounce_ms: int = DEFAULT_CHECKPOINT_DEBOUNCE_MS,
        min_session_seconds: float = DEFAULT_MIN_SESSION_SECONDS,
    ):
        preferences = preferences or ReaderPreferences()

        self._repository = repository
        self._scheduler = scheduler
        self._fallback_store = fallback_store
        self.checkpoint_distance = checkpoint_distance
        self.checkpoint_debounce_ms = checkpoint_debounce_ms
        self.min_session_seconds = min_session_seconds

        self.engine = PlaybackEngine(scheduler, speed=preferences.speed, pacing=preferences.pacing)
        self.anchor_position = preferences.anchor_position

        self._document: Optional[Document] = None
        self._tracker: Optional[ProgressTracker] = None
        self._save_timer = CancellableTimer(scheduler, name="checkpoint debounce")
        self._checkpoint_in_flight = False
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[PlaybackListener] = []

        self.engine.on_state_change(self._on_playback_event)

    # ===== Read-only state =====

    @property
    def document(self) -> Optional[Document]:
        return self._document

    @property
    def document_id(self) -> Optional[str]:
        return self._document.document_id if self._document else None

    @property
    def tracker(self) -> Optional[ProgressTracker]:
        return self._tracker

    @property
    def current_word_index(self) -> int:
        return self.engine.current_word_index

    @property
    def is_playing(self) -> bool:
        return self.engine.is_playing

    @property
    def speed(self) -> int:
        return self.engine.speed

    @property
    def pacing_preset(self) -> Optional[PacingPreset]:
        return match_preset(self.engine.pacing)

    def snapshot(self) -> PlaybackSnapshot:
        return self.engine.snapshot()

    def current_anchor(self) -> AnchorSplit:
        """Anchor split of the word on screen."""
        return split_at_anchor(self.engine.current_word or "", self.anchor_position)

    def stats(self) -> ReadingStats:
        if self._tracker is None:
            return ReadingStats()
        return self._tracker.stats(self.engine.current_word_index)

    def on_state_change(self, listener: PlaybackListener) -> Callable[[], None]:
        """Register a listener for playback and persistence events.

        Returns:
            A callable that unregisters the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ===== Document lifecycle =====

    async def open(
        self,
        document_id: Optional[str],
        words: Sequence[str],
        resume_index: Optional[int] = None,
        title: str = "",
    ) -> PlaybackSnapshot:
        """
        Open a document, closing the current one first.

        When ``resume_index`` is None and the document is persistent, the
        stored checkpoint seeds the position. Progress stashed by an earlier
        page close is replayed into the repository before that lookup.

        Args:
            document_id: Storage id, or None for a guest document
            words: Tokenized words
            resume_index: Explicit start position (clamped)
            title: Display title

        Returns:
            Snapshot of the loaded, paused engine

        Raises:
            InvalidInputError: If ``words`` is empty. The session is left as
                it was before the call.
        """
        if not words:
            raise InvalidInputError("Cannot open a document without words", {"document_id": document_id})

        if self._document is not None:
            await self.close()

        if document_id is not None:
            await self._replay_stash(document_id)
            if resume_index is None:
                resume_index = await self._load_resume_index(document_id)

        document = Document(document_id=document_id, title=title, words=list(words))
        tracker = ProgressTracker(
            document_id,
            self._scheduler,
            checkpoint_distance=self.checkpoint_distance,
            min_session_seconds=self.min_session_seconds,
        )

        self._document = document
        self._tracker = tracker
        self.engine.load(document.words, resume_index or 0)
        tracker.seed(self.engine.current_word_index)

        logger.info(
            f"Opened document {document_id or '<guest>'} ({document.word_count} words) "
            f"at index {self.engine.current_word_index}"
        )
        return self.engine.snapshot()

    async def open_document(self, document: Document, resume_index: Optional[int] = None) -> PlaybackSnapshot:
        """Open a Document entity from a document provider."""
        return await self.open(document.document_id, document.words, resume_index, title=document.title)

    async def close(self) -> Optional[ReadingStats]:
        """
        Finalize the open document and return to the stopped state.

        An open play interval is ended (emitting its record if it counts),
        the latest position is saved, and pending saves are awaited.

        Returns:
            Stats for the closed document, or None if nothing was open
        """
        if self._document is None:
            return None

        document_id = self._document.document_id
        self._save_timer.cancel()

        self.engine.pause(PauseReason.CLOSED)
        await self.flush_checkpoint()
        stats = self.stats()

        # A live close supersedes anything stashed for this document.
        if document_id is not None:
            self._discard_stash(document_id)

        self.engine.unload()
        self._document = None
        self._tracker = None
        await self.drain()

        logger.info(f"Closed document {document_id or '<guest>'}: {stats.words_read} words read")
        return stats

    async def suspend(self) -> None:
        """Handle visibility loss: pause, end the interval and save now."""
        if self._document is None:
            return
        self.engine.pause(PauseReason.SUSPENDED)
        await self.flush_checkpoint()
        await self.drain()

    def stash_for_unload(self) -> bool:
        """
        Synchronously stash the position and open interval for a closing page.

        The stash is replayed the next time this document is opened.

        Returns:
            True if anything was stashed
        """
        if self._fallback_store is None or self._tracker is None or not self._tracker.persistent:
            return False

        index = self.engine.current_word_index
        checkpoint = self._tracker.current_checkpoint(index, self.engine.speed)
        self._fallback_store.stash_checkpoint(checkpoint)

        record = self._tracker.open_interval_record(index, self.engine.speed)
        if record is not None:
            self._fallback_store.stash_session_record(record)

        logger.info(f"Stashed unsaved progress for document {checkpoint.document_id} at index {index}")
        return True

    async def reset_progress(self) -> None:
        """Delete the stored checkpoint for the open document."""
        if self._tracker is None or not self._tracker.persistent:
            return

        document_id = self._tracker.document_id
        self._save_timer.cancel()
        if self._fallback_store is not None:
            self._fallback_store.pop_checkpoint(document_id)
        await self._repository.delete_checkpoint(document_id)
        self._tracker.reset()
        logger.info(f"Reset progress for document {document_id}")

    # ===== Playback controls =====

    def play(self) -> ControlOutcome:
        return self.engine.play()

    def pause(self) -> ControlOutcome:
        return self.engine.pause()

    def toggle(self) -> ControlOutcome:
        return self.engine.toggle()

    def set_speed(self, wpm: int) -> int:
        return self.engine.set_speed(wpm)

    def adjust_speed(self, delta: int) -> int:
        return self.engine.adjust_speed(delta)

    def set_pacing(self, pacing: PacingConfig) -> None:
        self.engine.set_pacing(pacing)

    def apply_pacing_preset(self, preset: Union[PacingPreset, str]) -> PacingConfig:
        pacing = PacingConfig.from_preset(preset)
        self.engine.set_pacing(pacing)
        return pacing

    def set_anchor_position(self, position: float) -> float:
        self.anchor_position = clamp_anchor_position(position)
        return self.anchor_position

    def apply_preferences(self, preferences: ReaderPreferences) -> None:
        """Push updated user preferences into the session."""
        self.engine.set_speed(preferences.speed)
        self.engine.set_pacing(preferences.pacing)
        self.anchor_position = preferences.anchor_position

    def jump_to(self, index: int) -> ControlOutcome:
        return self.engine.jump_to(index)

    def rewind_by_seconds(self, seconds: float) -> ControlOutcome:
        return self.engine.rewind_by_seconds(seconds)

    def skip_forward(self) -> ControlOutcome:
        """Jump to the start of the next sentence."""
        if self._document is None:
            return ControlOutcome.NO_ACTIVE_DOCUMENT
        target = skip_forward(self._document.words, self.engine.current_word_index)
        return self.engine.jump_to(target)

    def skip_backward(self) -> ControlOutcome:
        """Jump to the start of the previous sentence."""
        if self._document is None:
            return ControlOutcome.NO_ACTIVE_DOCUMENT
        target = skip_backward(self._document.words, self.engine.current_word_index)
        return self.engine.jump_to(target)

    # ===== Summarization boundary =====

    def get_summary_prefix(self) -> str:
        """Words before the current one, joined by single spaces."""
        if self._document is None:
            return ""
        return " ".join(self._document.words[:self.engine.current_word_index])

    def resume_after_summary(self) -> ControlOutcome:
        """Continue playback once the summary has been shown."""
        return self.engine.play()

    # ===== Event handling =====

    def _on_playback_event(self, event: PlaybackEvent) -> None:
        tracker = self._tracker
        try:
            if tracker is not None and self.engine.state != PlaybackState.STOPPED:
                if isinstance(event, PlaybackStarted):
                    tracker.begin_interval(event.index)
                elif isinstance(event, PlaybackPaused):
                    self._finish_interval(event.index)
                elif isinstance(event, (WordAdvanced, PositionChanged)):
                    self._maybe_schedule_checkpoint(event.index)
        finally:
            self._emit(event)

    def _emit(self, event: PlaybackEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Session listener failed on {type(event).__name__}: {e}", exc_info=True)

    def _finish_interval(self, end_index: int) -> None:
        record = self._tracker.end_interval(end_index, self.engine.speed)
        if record is not None:
            self._spawn(self._append_record(record))

    def _maybe_schedule_checkpoint(self, index: int) -> None:
        if self._save_timer.pending or self._checkpoint_in_flight:
            return
        if self._tracker.checkpoint_due(index):
            self._save_timer.arm(self.checkpoint_debounce_ms / 1000, self._dispatch_checkpoint)

    def _dispatch_checkpoint(self) -> None:
        tracker = self._tracker
        if tracker is None:
            return
        index = self.engine.current_word_index
        if not tracker.checkpoint_due(index):
            return
        self._checkpoint_in_flight = True
        checkpoint = tracker.current_checkpoint(index, self.engine.speed)
        if not self._spawn(self._save_debounced_checkpoint(checkpoint)):
            self._checkpoint_in_flight = False

    # ===== Persistence =====

    async def flush_checkpoint(self) -> bool:
        """Save the current position now if it is ahead of the last save."""
        self._save_timer.cancel()
        tracker = self._tracker
        if tracker is None or not tracker.persistent:
            return False

        index = self.engine.current_word_index
        if index <= tracker.last_saved_index:
            return False
        return await self._save_checkpoint(tracker.current_checkpoint(index, self.engine.speed))

    async def drain(self) -> None:
        """Wait for all in-flight persistence tasks."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro) -> bool:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, dropping {coro.__qualname__}")
            coro.close()
            return False
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _save_debounced_checkpoint(self, checkpoint: SessionCheckpoint) -> bool:
        try:
            return await self._save_checkpoint(checkpoint)
        finally:
            self._checkpoint_in_flight = False

    async def _save_checkpoint(self, checkpoint: SessionCheckpoint) -> bool:
        try:
            success = await self._repository.save_checkpoint(checkpoint)
        except PersistenceUnavailableError as e:
            logger.warning(f"Checkpoint save failed for {checkpoint.document_id}: {e}")
            success = False
        except Exception as e:
            logger.error(f"Error saving checkpoint for {checkpoint.document_id}: {e}", exc_info=True)
            success = False

        if success and self._tracker is not None and self._tracker.document_id == checkpoint.document_id:
            self._tracker.record_saved(checkpoint)
        if success:
            logger.debug(f"Checkpoint saved: {checkpoint.document_id} @ {checkpoint.word_index}")

        self._emit(CheckpointSaved(checkpoint=checkpoint, success=success))
        return success

    async def _append_record(self, record: ReadingSessionRecord) -> bool:
        try:
            success = await self._repository.append_session_record(record)
        except PersistenceUnavailableError as e:
            logger.warning(f"Session record append failed for {record.document_id}: {e}")
            success = False
        except Exception as e:
            logger.error(f"Error appending session record for {record.document_id}: {e}", exc_info=True)
            success = False

        if success:
            logger.info(
                f"Recorded session {record.document_id}: {record.start_index}->{record.end_index} "
                f"in {record.duration_seconds}s"
            )

        self._emit(SessionRecorded(record=record, success=success))
        return success

    def _discard_stash(self, document_id: str) -> None:
        if self._fallback_store is None:
            return
        try:
            self._fallback_store.pop_checkpoint(document_id)
            self._fallback_store.pop_session_records(document_id)
        except OSError as e:
            logger.error(f"Could not clear stashed progress for {document_id}: {e}")

    async def _replay_stash(self, document_id: str) -> None:
        if self._fallback_store is None:
            return

        checkpoint = self._fallback_store.pop_checkpoint(document_id)
        if checkpoint is not None:
            logger.info(f"Replaying stashed checkpoint for {document_id} at index {checkpoint.word_index}")
            await self._save_checkpoint(checkpoint)

        for record in self._fallback_store.pop_session_records(document_id):
            await self._append_record(record)

    async def _load_resume_index(self, document_id: str) -> int:
        try:
            checkpoint = await self._repository.load_checkpoint(document_id)
        except PersistenceUnavailableError as e:
            logger.warning(f"Could not load checkpoint for {document_id}, starting at 0: {e}")
            return 0
        return checkpoint.word_index if checkpoint is not None else 0
