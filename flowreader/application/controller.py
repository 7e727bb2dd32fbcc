"""Reader Controller for wiring sessions to their collaborators."""

import logging
from typing import Optional

from fastapi import WebSocket

from ..domain.entities.preferences import ReaderPreferences
from ..domain.interfaces.document_provider import DocumentProvider
from ..domain.interfaces.fallback_store import FallbackStore
from ..domain.interfaces.progress_repository import ProgressRepository
from ..domain.services.progress_tracker import DEFAULT_CHECKPOINT_DISTANCE, DEFAULT_MIN_SESSION_SECONDS
from ..domain.services.reader_session import DEFAULT_CHECKPOINT_DEBOUNCE_MS, ReaderSession
from ..infrastructure.asyncio_scheduler import AsyncioScheduler
from .websocket_handler import ReaderWebSocketHandler

logger = logging.getLogger(__name__)


class ReaderController:
    """
    Controller for coordinating reader sessions.

    This controller is injected with all necessary providers and builds one
    ReaderSession per websocket connection, keeping the API layer thin.
    """

    def __init__(
        self,
        document_provider: DocumentProvider,
        progress_repository: ProgressRepository,
        fallback_store: Optional[FallbackStore] = None,
        default_preferences: Optional[ReaderPreferences] = None,
        checkpoint_distance: int = DEFAULT_CHECKPOINT_DISTANCE,
        checkpoint_debounce_ms: int = DEFAULT_CHECKPOINT_DEBOUNCE_MS,
        min_session_seconds: float = DEFAULT_MIN_SESSION_SECONDS,
    ):
        """
        Initialize the controller with injected dependencies.

        Args:
            document_provider: Source of tokenized documents
            progress_repository: Repository for checkpoints and session records
            fallback_store: Optional stash for progress captured at shutdown
            default_preferences: Preferences for new sessions
            checkpoint_distance: Words of forward progress between saves
            checkpoint_debounce_ms: Delay before a due checkpoint is saved
            min_session_seconds: Shortest play interval that gets recorded
        """
        self.document_provider = document_provider
        self.progress_repository = progress_repository
        self.fallback_store = fallback_store
        self.default_preferences = default_preferences or ReaderPreferences()
        self.checkpoint_distance = checkpoint_distance
        self.checkpoint_debounce_ms = checkpoint_debounce_ms
        self.min_session_seconds = min_session_seconds
        self._active_sessions: set[ReaderSession] = set()

        logger.info("ReaderController initialized with providers")

    def create_session(self, preferences: Optional[ReaderPreferences] = None) -> ReaderSession:
        """Build a reader session on the running event loop."""
        return ReaderSession(
            repository=self.progress_repository,
            scheduler=AsyncioScheduler(),
            preferences=preferences or self.default_preferences,
            fallback_store=self.fallback_store,
            checkpoint_distance=self.checkpoint_distance,
            checkpoint_debounce_ms=self.checkpoint_debounce_ms,
            min_session_seconds=self.min_session_seconds,
        )

    async def handle_websocket_connection(self, websocket: WebSocket) -> None:
        logger.info(f"Handling new WebSocket connection from {websocket.client}")

        session = self.create_session()
        handler = ReaderWebSocketHandler(session=session, document_provider=self.document_provider)
        self._active_sessions.add(session)

        try:
            await handler.handle_websocket(websocket)
        finally:
            self._active_sessions.discard(session)
            # Final save on disconnect
            stats = await session.close()
            if stats is not None:
                logger.info(f"Session closed on disconnect after {stats.words_read} words")

    def stash_active_sessions(self) -> int:
        """
        Stash progress of every live session into the fallback store.

        Used on shutdown, when there is no time left to reach the repository.

        Returns:
            Number of sessions stashed
        """
        stashed = 0
        for session in list(self._active_sessions):
            try:
                if session.stash_for_unload():
                    stashed += 1
            except OSError as e:
                logger.error(f"Failed to stash progress for {session.document_id}: {e}")
        if stashed:
            logger.info(f"Stashed progress for {stashed} active sessions")
        return stashed

    async def get_progress(self, document_id: str) -> dict:
        """
        Get the stored checkpoint and session records for a document.

        Args:
            document_id: The document identifier.

        Returns:
            Dict with the checkpoint (or None) and session records.
        """
        checkpoint = await self.progress_repository.load_checkpoint(document_id)
        records = await self.progress_repository.list_session_records(document_id)
        return {
            "document_id": document_id,
            "checkpoint": checkpoint.model_dump(mode="json") if checkpoint else None,
            "sessions": [record.model_dump(mode="json") for record in records],
        }

    def get_health_status(self) -> dict:
        """
        Get application health status.

        Returns:
            Dict containing health status information
        """
        return {
            "status": "healthy",
            "active_sessions": len(self._active_sessions),
            "providers": {
                "document_provider": type(self.document_provider).__name__,
                "progress_repository": type(self.progress_repository).__name__,
                "fallback_store": type(self.fallback_store).__name__ if self.fallback_store else None,
            },
        }
