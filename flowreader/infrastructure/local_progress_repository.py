"""Local in-memory implementation of Progress Repository."""

from typing import Dict, Optional

from ..domain.entities.progress import ReadingSessionRecord, SessionCheckpoint
from ..domain.interfaces.progress_repository import ProgressRepository
from ..domain.services.progress_tracker import merge_checkpoint


class LocalProgressRepository(ProgressRepository):
    """Local in-memory implementation of the Progress Repository.

    Stores checkpoints and session records in dictionaries for testing and
    development purposes.
    """

    def __init__(self):
        """Initialize the local progress repository with empty storage."""
        self._checkpoints: Dict[str, SessionCheckpoint] = {}
        self._records: Dict[str, list[ReadingSessionRecord]] = {}

    async def save_checkpoint(self, checkpoint: SessionCheckpoint) -> bool:
        """Apply a checkpoint, never moving the stored index backwards.

        Args:
            checkpoint: The checkpoint to apply.

        Returns:
            bool: Always True; the store holds this checkpoint or a newer one.
        """
        existing = self._checkpoints.get(checkpoint.document_id)
        self._checkpoints[checkpoint.document_id] = merge_checkpoint(existing, checkpoint)
        return True

    async def load_checkpoint(self, document_id: str) -> Optional[SessionCheckpoint]:
        """Retrieve the checkpoint for a document.

        Args:
            document_id: The document identifier.

        Returns:
            Optional[SessionCheckpoint]: The checkpoint, or None.
        """
        return self._checkpoints.get(document_id)

    async def delete_checkpoint(self, document_id: str) -> None:
        """Delete the checkpoint for a document, if any.

        Args:
            document_id: The document identifier.
        """
        self._checkpoints.pop(document_id, None)

    async def append_session_record(self, record: ReadingSessionRecord) -> bool:
        """Append a session record.

        Args:
            record: The session record to store.

        Returns:
            bool: Always True.
        """
        self._records.setdefault(record.document_id, []).append(record)
        return True

    async def list_session_records(self, document_id: str) -> list[ReadingSessionRecord]:
        """List session records for a document in append order.

        Args:
            document_id: The document identifier.

        Returns:
            list[ReadingSessionRecord]: Stored records.
        """
        return list(self._records.get(document_id, []))

    def clear(self) -> None:
        """Clear all checkpoints and records."""
        self._checkpoints.clear()
        self._records.clear()

    def get_all_checkpoints(self) -> Dict[str, SessionCheckpoint]:
        """Get all checkpoints.

        Returns:
            Dict[str, SessionCheckpoint]: Checkpoints keyed by document id.
        """
        return self._checkpoints.copy()
