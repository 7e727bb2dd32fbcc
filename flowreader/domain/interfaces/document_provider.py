"""Document provider protocol."""

from typing import Protocol, runtime_checkable

from ..entities.document import Document


@runtime_checkable
class DocumentProvider(Protocol):
    """Protocol for document sources.

    Ingestion and tokenization happen elsewhere; providers hand back
    documents whose words are already split.
    """

    def get_document(self, document_id: str) -> Document:
        """Retrieve a document by ID.

        Args:
            document_id: The unique identifier of the document.

        Returns:
            Document: The tokenized document.

        Raises:
            DocumentNotFoundError: If the document is not found.
        """
        ...
