"""Fallback store interface for progress captured while a page is closing."""

from typing import Optional, Protocol

from ..entities.progress import ReadingSessionRecord, SessionCheckpoint


class FallbackStore(Protocol):
    """Protocol for a synchronous, local stash of unsaved progress.

    A closing page cannot wait for the progress repository, so it writes
    here instead. The stash is replayed into the repository the next time
    the same document is opened.
    """

    def stash_checkpoint(self, checkpoint: SessionCheckpoint) -> None:
        """Stash a checkpoint, replacing any earlier stash for the document."""
        ...

    def stash_session_record(self, record: ReadingSessionRecord) -> None:
        """Stash a session record."""
        ...

    def pop_checkpoint(self, document_id: str) -> Optional[SessionCheckpoint]:
        """Remove and return the stashed checkpoint for a document."""
        ...

    def pop_session_records(self, document_id: str) -> list[ReadingSessionRecord]:
        """Remove and return the stashed session records for a document."""
        ...
