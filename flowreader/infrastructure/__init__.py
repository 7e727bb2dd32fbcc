"""Infrastructure layer components."""

from .asyncio_scheduler import AsyncioScheduler
from .dynamodb_progress_repository import DynamoDBProgressRepository
from .json_fallback_store import JsonFileFallbackStore
from .local_document_provider import LocalDocumentProvider
from .local_progress_repository import LocalProgressRepository
from .manual_scheduler import ManualScheduler

__all__ = [
    "AsyncioScheduler",
    "DynamoDBProgressRepository",
    "JsonFileFallbackStore",
    "LocalDocumentProvider",
    "LocalProgressRepository",
    "ManualScheduler",
]
