"""DynamoDB implementation of Progress Repository."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import aioboto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from ..domain.entities.progress import ReadingSessionRecord, SessionCheckpoint
from ..domain.exceptions import PersistenceUnavailableError
from ..domain.interfaces.progress_repository import ProgressRepository

logger = logging.getLogger(__name__)


class DynamoDBProgressRepository(ProgressRepository):
    """DynamoDB repository for checkpoints and reading session records.

    Checkpoints live in a table keyed by ``document_id``. A conditional put
    keeps ``word_index`` advance-only on the server side, so a delayed or
    replayed save can never regress the stored position.

    Session records live in a second table keyed by ``document_id`` with a
    ``record_key`` sort key (``<started_at>#<id>``) so queries return them
    in time order.
    """

    def __init__(
        self,
        checkpoints_table: str,
        sessions_table: str,
        region_name: str = "us-east-1",
    ):
        """Initialize the DynamoDB progress repository.

        Args:
            checkpoints_table: Table holding one checkpoint per document.
            sessions_table: Table holding session records.
            region_name: AWS region name (default: us-east-1).
        """
        self.checkpoints_table = checkpoints_table
        self.sessions_table = sessions_table
        self.region_name = region_name
        self._session = aioboto3.Session()

    async def save_checkpoint(self, checkpoint: SessionCheckpoint) -> bool:
        """Save a checkpoint unless a newer one is already stored.

        Args:
            checkpoint: The checkpoint to apply.

        Returns:
            bool: True; a failed condition means a newer checkpoint exists.

        Raises:
            PersistenceUnavailableError: If DynamoDB cannot be reached.
        """
        try:
            async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
                table = await dynamodb.Table(self.checkpoints_table)
                await table.put_item(
                    Item=self._checkpoint_to_item(checkpoint),
                    ConditionExpression="attribute_not_exists(document_id) OR word_index <= :idx",
                    ExpressionAttributeValues={":idx": checkpoint.word_index},
                )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                logger.debug(
                    f"Stored checkpoint for {checkpoint.document_id} is ahead of {checkpoint.word_index}"
                )
                return True
            raise PersistenceUnavailableError(f"Checkpoint save failed: {e}") from e
        except BotoCoreError as e:
            raise PersistenceUnavailableError(f"Checkpoint save failed: {e}") from e
        return True

    async def load_checkpoint(self, document_id: str) -> Optional[SessionCheckpoint]:
        """Retrieve the checkpoint for a document from DynamoDB.

        Args:
            document_id: The document identifier.

        Returns:
            Optional[SessionCheckpoint]: The checkpoint, or None if never saved.

        Raises:
            PersistenceUnavailableError: If DynamoDB cannot be reached.
        """
        try:
            async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
                table = await dynamodb.Table(self.checkpoints_table)
                response = await table.get_item(Key={"document_id": document_id})
        except (BotoCoreError, ClientError) as e:
            raise PersistenceUnavailableError(f"Checkpoint load failed: {e}") from e

        if "Item" not in response:
            return None
        return self._item_to_checkpoint(response["Item"])

    async def delete_checkpoint(self, document_id: str) -> None:
        """Delete the checkpoint for a document.

        Args:
            document_id: The document identifier.

        Raises:
            PersistenceUnavailableError: If DynamoDB cannot be reached.
        """
        try:
            async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
                table = await dynamodb.Table(self.checkpoints_table)
                await table.delete_item(Key={"document_id": document_id})
        except (BotoCoreError, ClientError) as e:
            raise PersistenceUnavailableError(f"Checkpoint delete failed: {e}") from e

    async def append_session_record(self, record: ReadingSessionRecord) -> bool:
        """Append a session record to DynamoDB.

        Args:
            record: The session record to store.

        Returns:
            bool: True once stored.

        Raises:
            PersistenceUnavailableError: If DynamoDB cannot be reached.
        """
        try:
            async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
                table = await dynamodb.Table(self.sessions_table)
                await table.put_item(Item=self._record_to_item(record))
        except (BotoCoreError, ClientError) as e:
            raise PersistenceUnavailableError(f"Session record append failed: {e}") from e
        return True

    async def list_session_records(self, document_id: str) -> list[ReadingSessionRecord]:
        """List session records for a document in time order.

        Args:
            document_id: The document identifier.

        Returns:
            list[ReadingSessionRecord]: Stored records.

        Raises:
            PersistenceUnavailableError: If DynamoDB cannot be reached.
        """
        items: list[Dict[str, Any]] = []
        try:
            async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
                table = await dynamodb.Table(self.sessions_table)
                query: Dict[str, Any] = {"KeyConditionExpression": Key("document_id").eq(document_id)}
                while True:
                    response = await table.query(**query)
                    items.extend(response.get("Items", []))
                    if "LastEvaluatedKey" not in response:
                        break
                    query["ExclusiveStartKey"] = response["LastEvaluatedKey"]
        except (BotoCoreError, ClientError) as e:
            raise PersistenceUnavailableError(f"Session record query failed: {e}") from e

        return [self._item_to_record(item) for item in items]

    def _checkpoint_to_item(self, checkpoint: SessionCheckpoint) -> Dict[str, Any]:
        """Convert a checkpoint to a DynamoDB item."""
        return {
            "document_id": checkpoint.document_id,
            "word_index": checkpoint.word_index,
            "speed": checkpoint.speed,
            "saved_at": checkpoint.saved_at.isoformat(),
        }

    def _item_to_checkpoint(self, item: Dict[str, Any]) -> SessionCheckpoint:
        """Convert a DynamoDB item to a checkpoint."""
        return SessionCheckpoint(
            document_id=item["document_id"],
            word_index=int(item["word_index"]),
            speed=int(item["speed"]),
            saved_at=datetime.fromisoformat(item["saved_at"]),
        )

    def _record_to_item(self, record: ReadingSessionRecord) -> Dict[str, Any]:
        """Convert a session record to a DynamoDB item."""
        return {
            "document_id": record.document_id,
            "record_key": f"{record.started_at.isoformat()}#{record.id}",
            "id": str(record.id),
            "start_index": record.start_index,
            "end_index": record.end_index,
            "speed": record.speed,
            "duration_seconds": record.duration_seconds,
            "started_at": record.started_at.isoformat(),
        }

    def _item_to_record(self, item: Dict[str, Any]) -> ReadingSessionRecord:
        """Convert a DynamoDB item to a session record."""
        return ReadingSessionRecord(
            id=item["id"],
            document_id=item["document_id"],
            start_index=int(item["start_index"]),
            end_index=int(item["end_index"]),
            speed=int(item["speed"]),
            duration_seconds=int(item["duration_seconds"]),
            started_at=datetime.fromisoformat(item["started_at"]),
        )
