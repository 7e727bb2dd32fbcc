"""Exception classes for the playback core."""

from typing import Any, Dict, Optional


class FlowReaderError(Exception):
    """Base exception for all reader errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(FlowReaderError, ValueError):
    """Raised for structurally invalid calls (empty word list, negative WPM)."""
    pass


class NoActiveDocumentError(FlowReaderError):
    """Raised when a playback operation requires a loaded document."""
    pass


class PersistenceUnavailableError(FlowReaderError):
    """Raised by a progress repository when the backing store cannot be reached."""
    pass


class DocumentNotFoundError(FlowReaderError, ValueError):
    """Raised by a document provider when a document does not exist."""
    pass
