"""Tests for DynamoDB progress repository."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch
import uuid

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from flowreader.domain.entities.progress import ReadingSessionRecord, SessionCheckpoint
from flowreader.domain.exceptions import PersistenceUnavailableError
from flowreader.infrastructure.dynamodb_progress_repository import DynamoDBProgressRepository


@pytest.fixture
def mock_dynamodb_table():
    """Create a mock DynamoDB table."""
    mock_table = AsyncMock()
    return mock_table


@pytest.fixture
def mock_dynamodb_resource(mock_dynamodb_table):
    """Create a mock DynamoDB resource."""
    mock_resource = MagicMock()
    mock_resource.Table = AsyncMock(return_value=mock_dynamodb_table)
    return mock_resource


@pytest.fixture
def mock_aioboto3_session(mock_dynamodb_resource):
    """Create a mock aioboto3 session."""
    with patch("flowreader.infrastructure.dynamodb_progress_repository.aioboto3.Session") as mock_session_class:
        mock_session_instance = MagicMock()
        mock_session_class.return_value = mock_session_instance

        # Setup async context manager for resource
        mock_session_instance.resource.return_value.__aenter__ = AsyncMock(return_value=mock_dynamodb_resource)
        mock_session_instance.resource.return_value.__aexit__ = AsyncMock(return_value=None)

        yield mock_session_instance


@pytest.fixture
def repository(mock_aioboto3_session):
    """Create a DynamoDB progress repository instance."""
    return DynamoDBProgressRepository(
        checkpoints_table="test-progress",
        sessions_table="test-sessions",
        region_name="us-east-1",
    )


@pytest.fixture
def sample_checkpoint():
    """Create a sample checkpoint."""
    return SessionCheckpoint(
        document_id="doc-xyz",
        word_index=1280,
        speed=450,
        saved_at=datetime(2026, 1, 13, 10, 30, 0),
    )


@pytest.fixture
def sample_record():
    """Create a sample session record."""
    return ReadingSessionRecord(
        id=uuid.UUID("12345678-1234-5678-1234-567812345678"),
        document_id="doc-xyz",
        start_index=1000,
        end_index=1280,
        speed=450,
        duration_seconds=40,
        started_at=datetime(2026, 1, 13, 10, 0, 0),
    )


@pytest.fixture
def sample_record_item():
    """Create a sample DynamoDB session record item."""
    return {
        "document_id": "doc-xyz",
        "record_key": "2026-01-13T10:00:00#12345678-1234-5678-1234-567812345678",
        "id": "12345678-1234-5678-1234-567812345678",
        "start_index": 1000,
        "end_index": 1280,
        "speed": 450,
        "duration_seconds": 40,
        "started_at": "2026-01-13T10:00:00",
    }


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "PutItem")


class TestDynamoDBProgressRepository:
    """Test cases for DynamoDBProgressRepository."""

    def test_init(self, repository):
        """Test repository initialization."""
        assert repository.checkpoints_table == "test-progress"
        assert repository.sessions_table == "test-sessions"
        assert repository.region_name == "us-east-1"

    @pytest.mark.asyncio
    async def test_save_checkpoint(self, repository, mock_dynamodb_table, sample_checkpoint):
        """Test saving a checkpoint with the advance-only condition."""
        assert await repository.save_checkpoint(sample_checkpoint)

        mock_dynamodb_table.put_item.assert_called_once()
        call_args = mock_dynamodb_table.put_item.call_args
        item = call_args.kwargs["Item"]

        assert item["document_id"] == "doc-xyz"
        assert item["word_index"] == 1280
        assert item["speed"] == 450
        assert item["saved_at"] == "2026-01-13T10:30:00"
        assert "word_index <= :idx" in call_args.kwargs["ConditionExpression"]
        assert call_args.kwargs["ExpressionAttributeValues"] == {":idx": 1280}

    @pytest.mark.asyncio
    async def test_save_older_checkpoint_is_not_an_error(self, repository, mock_dynamodb_table, sample_checkpoint):
        """Test that a failed advance-only condition counts as applied."""
        mock_dynamodb_table.put_item.side_effect = _client_error("ConditionalCheckFailedException")

        assert await repository.save_checkpoint(sample_checkpoint)

    @pytest.mark.asyncio
    async def test_save_checkpoint_client_error(self, repository, mock_dynamodb_table, sample_checkpoint):
        """Test that other client errors surface as unavailable persistence."""
        mock_dynamodb_table.put_item.side_effect = _client_error("ProvisionedThroughputExceededException")

        with pytest.raises(PersistenceUnavailableError):
            await repository.save_checkpoint(sample_checkpoint)

    @pytest.mark.asyncio
    async def test_save_checkpoint_connection_error(self, repository, mock_dynamodb_table, sample_checkpoint):
        """Test that connection failures surface as unavailable persistence."""
        mock_dynamodb_table.put_item.side_effect = EndpointConnectionError(endpoint_url="https://dynamodb")

        with pytest.raises(PersistenceUnavailableError):
            await repository.save_checkpoint(sample_checkpoint)

    @pytest.mark.asyncio
    async def test_load_checkpoint_success(self, repository, mock_dynamodb_table):
        """Test successful checkpoint retrieval."""
        mock_dynamodb_table.get_item.return_value = {
            "Item": {
                "document_id": "doc-xyz",
                "word_index": 1280,
                "speed": 450,
                "saved_at": "2026-01-13T10:30:00",
            }
        }

        result = await repository.load_checkpoint("doc-xyz")

        assert isinstance(result, SessionCheckpoint)
        assert result.word_index == 1280
        assert result.speed == 450
        assert result.saved_at == datetime(2026, 1, 13, 10, 30, 0)
        mock_dynamodb_table.get_item.assert_called_once_with(Key={"document_id": "doc-xyz"})

    @pytest.mark.asyncio
    async def test_load_checkpoint_not_found(self, repository, mock_dynamodb_table):
        """Test checkpoint not found scenario."""
        mock_dynamodb_table.get_item.return_value = {}

        assert await repository.load_checkpoint("doc-xyz") is None

    @pytest.mark.asyncio
    async def test_delete_checkpoint(self, repository, mock_dynamodb_table):
        """Test deleting a checkpoint."""
        await repository.delete_checkpoint("doc-xyz")

        mock_dynamodb_table.delete_item.assert_called_once_with(Key={"document_id": "doc-xyz"})

    @pytest.mark.asyncio
    async def test_append_session_record(self, repository, mock_dynamodb_table, sample_record):
        """Test appending a session record."""
        assert await repository.append_session_record(sample_record)

        item = mock_dynamodb_table.put_item.call_args.kwargs["Item"]
        assert item["record_key"] == "2026-01-13T10:00:00#12345678-1234-5678-1234-567812345678"
        assert item["start_index"] == 1000
        assert item["end_index"] == 1280
        assert item["duration_seconds"] == 40

    @pytest.mark.asyncio
    async def test_list_session_records_pages(self, repository, mock_dynamodb_table, sample_record_item):
        """Test that paged query results are concatenated."""
        second_item = {**sample_record_item, "start_index": 1280, "end_index": 1500}
        mock_dynamodb_table.query.side_effect = [
            {"Items": [sample_record_item], "LastEvaluatedKey": {"document_id": "doc-xyz"}},
            {"Items": [second_item]},
        ]

        records = await repository.list_session_records("doc-xyz")

        assert [(r.start_index, r.end_index) for r in records] == [(1000, 1280), (1280, 1500)]
        assert mock_dynamodb_table.query.call_count == 2
        second_call = mock_dynamodb_table.query.call_args_list[1]
        assert second_call.kwargs["ExclusiveStartKey"] == {"document_id": "doc-xyz"}

    def test_record_to_item(self, repository, sample_record, sample_record_item):
        """Test conversion of a session record to a DynamoDB item."""
        assert repository._record_to_item(sample_record) == sample_record_item

    def test_item_to_record(self, repository, sample_record, sample_record_item):
        """Test conversion of a DynamoDB item to a session record."""
        assert repository._item_to_record(sample_record_item) == sample_record
