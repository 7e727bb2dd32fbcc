"""Tests for protocol conformance and the local document provider."""

import pytest

from flowreader.domain.entities.document import Document
from flowreader.domain.exceptions import DocumentNotFoundError
from flowreader.domain.interfaces import DocumentProvider, ProgressRepository
from flowreader.infrastructure import (
    DynamoDBProgressRepository,
    LocalDocumentProvider,
    LocalProgressRepository,
)


class TestProtocolConformance:
    """Test that implementations satisfy their protocols."""

    def test_local_progress_repository(self):
        assert isinstance(LocalProgressRepository(), ProgressRepository)

    def test_dynamodb_progress_repository(self):
        repository = DynamoDBProgressRepository(checkpoints_table="a", sessions_table="b")
        assert isinstance(repository, ProgressRepository)

    def test_local_document_provider(self):
        assert isinstance(LocalDocumentProvider(), DocumentProvider)


@pytest.fixture
def provider():
    """Create a provider holding one document."""
    provider = LocalDocumentProvider()
    provider.add_document(Document(document_id="doc-1", title="Essay", words=["Hello", "world."]))
    return provider


class TestLocalDocumentProvider:
    """Test cases for LocalDocumentProvider."""

    def test_get_document(self, provider):
        document = provider.get_document("doc-1")
        assert document.title == "Essay"
        assert document.words == ["Hello", "world."]

    def test_get_missing_document(self, provider):
        with pytest.raises(DocumentNotFoundError, match="Document with id missing not found"):
            provider.get_document("missing")

    def test_guest_documents_cannot_be_stored(self, provider):
        with pytest.raises(ValueError):
            provider.add_document(Document(words=["a"]))

    def test_delete_document(self, provider):
        provider.delete_document("doc-1")
        with pytest.raises(DocumentNotFoundError):
            provider.get_document("doc-1")
        with pytest.raises(DocumentNotFoundError):
            provider.delete_document("doc-1")

    def test_clear(self, provider):
        provider.clear()
        with pytest.raises(DocumentNotFoundError):
            provider.get_document("doc-1")
