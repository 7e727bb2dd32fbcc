"""Local in-memory implementation of DocumentProvider."""

from typing import Dict

from ..domain.entities.document import Document
from ..domain.exceptions import DocumentNotFoundError
from ..domain.interfaces.document_provider import DocumentProvider


class LocalDocumentProvider(DocumentProvider):
    """Local in-memory implementation of the DocumentProvider protocol.

    Stores tokenized documents in a dictionary for testing and development
    purposes.
    """

    def __init__(self):
        """Initialize the local document provider with an empty dictionary."""
        self._documents: Dict[str, Document] = {}

    def get_document(self, document_id: str) -> Document:
        """Retrieve a document by ID from the in-memory dictionary.

        Args:
            document_id: The unique identifier of the document.

        Returns:
            Document: The document entity.

        Raises:
            DocumentNotFoundError: If the document is not found.
        """
        if document_id not in self._documents:
            raise DocumentNotFoundError(f"Document with id {document_id} not found")

        return self._documents[document_id]

    def add_document(self, document: Document) -> None:
        """Add or replace a document.

        Args:
            document: A persistent document (``document_id`` must be set).

        Raises:
            ValueError: If the document has no id.
        """
        if document.document_id is None:
            raise ValueError("Only persistent documents can be stored")
        self._documents[document.document_id] = document

    def delete_document(self, document_id: str) -> None:
        """Delete a document from the dictionary.

        Args:
            document_id: The unique identifier of the document.

        Raises:
            DocumentNotFoundError: If the document is not found.
        """
        if document_id not in self._documents:
            raise DocumentNotFoundError(f"Document with id {document_id} not found")

        del self._documents[document_id]

    def clear(self) -> None:
        """Clear all documents from the dictionary."""
        self._documents.clear()
