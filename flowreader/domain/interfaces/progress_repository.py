"""Progress Repository interface."""

from typing import Optional, Protocol, runtime_checkable

from ..entities.progress import ReadingSessionRecord, SessionCheckpoint


@runtime_checkable
class ProgressRepository(Protocol):
    """Protocol defining the interface for progress persistence.

    This interface can be implemented by different storage backends
    (in-memory, DynamoDB, etc.). Checkpoints are advance-only: saving a
    checkpoint older than the stored one must leave the stored one in place.
    """

    async def save_checkpoint(self, checkpoint: SessionCheckpoint) -> bool:
        """Save a resume checkpoint.

        Args:
            checkpoint: The checkpoint to apply.

        Returns:
            bool: True if the store now holds this checkpoint or a newer one.

        Raises:
            PersistenceUnavailableError: If the backing store cannot be reached.
        """
        ...

    async def load_checkpoint(self, document_id: str) -> Optional[SessionCheckpoint]:
        """Load the stored checkpoint for a document.

        Args:
            document_id: The document identifier.

        Returns:
            Optional[SessionCheckpoint]: The checkpoint, or None if never saved.
        """
        ...

    async def delete_checkpoint(self, document_id: str) -> None:
        """Delete the checkpoint for a document (explicit progress reset).

        Args:
            document_id: The document identifier.
        """
        ...

    async def append_session_record(self, record: ReadingSessionRecord) -> bool:
        """Append a reading session record.

        Args:
            record: The completed session record.

        Returns:
            bool: True if the record was stored.
        """
        ...

    async def list_session_records(self, document_id: str) -> list[ReadingSessionRecord]:
        """List stored session records for a document.

        Args:
            document_id: The document identifier.

        Returns:
            list[ReadingSessionRecord]: Records in append order.
        """
        ...
