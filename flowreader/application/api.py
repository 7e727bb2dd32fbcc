"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, settings
from .controller import ReaderController
from ..domain.entities.document import Document
from ..domain.exceptions import PersistenceUnavailableError
from ..domain.interfaces.progress_repository import ProgressRepository
from ..infrastructure.dynamodb_progress_repository import DynamoDBProgressRepository
from ..infrastructure.json_fallback_store import JsonFileFallbackStore
from ..infrastructure.local_document_provider import LocalDocumentProvider
from ..infrastructure.local_progress_repository import LocalProgressRepository

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def build_progress_repository(config: Settings) -> ProgressRepository:
    """Pick the progress repository for the configured backend."""
    if config.progress_backend == "dynamodb":
        return DynamoDBProgressRepository(
            checkpoints_table=config.checkpoints_table_name,
            sessions_table=config.sessions_table_name,
            region_name=config.aws_region,
        )
    return LocalProgressRepository()


# Initialize providers (backend is chosen by configuration)
document_provider = LocalDocumentProvider()
progress_repository = build_progress_repository(settings)
fallback_store = JsonFileFallbackStore(settings.fallback_dir) if settings.fallback_dir else None

# Initialize controller with injected dependencies
controller = ReaderController(
    document_provider=document_provider,
    progress_repository=progress_repository,
    fallback_store=fallback_store,
    default_preferences=settings.default_preferences(),
    checkpoint_distance=settings.checkpoint_distance,
    checkpoint_debounce_ms=settings.checkpoint_debounce_ms,
    min_session_seconds=settings.min_session_seconds,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # No time to reach the repository on shutdown; stash what is live
    controller.stash_active_sessions()


# Create FastAPI app instance
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return controller.get_health_status()


@app.post("/documents", status_code=201)
async def add_document(document: Document):
    """Register a tokenized document so sessions can open it by id."""
    if document.document_id is None:
        raise HTTPException(status_code=422, detail="document_id is required")
    if not document.words:
        raise HTTPException(status_code=422, detail="words must not be empty")
    document_provider.add_document(document)
    return {"document_id": document.document_id, "word_count": document.word_count}


@app.get("/documents/{document_id}/progress")
async def get_progress(document_id: str):
    """Get the stored reading position and session history of a document.

    Args:
        document_id: The document identifier.

    Returns:
        Checkpoint (or null) and session records, oldest first.
    """
    try:
        return await controller.get_progress(document_id)
    except PersistenceUnavailableError as e:
        logger.error(f"Progress store unavailable for {document_id}: {e}")
        raise HTTPException(status_code=503, detail="Progress store unavailable")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for reader sessions.

    Connection lifecycle:
    1. Client connects
    2. Client sends session.open (words, or the id of a registered document)
    3. Server responds with session.opened followed by state pushes
    4. Client sends playback/navigation/summary commands
    5. session.close (or a disconnect) finalizes progress
    """
    await websocket.accept()

    try:
        await controller.handle_websocket_connection(websocket)
    except Exception as e:
        logger.error(f"Error handling websocket connection: {e}", exc_info=True)
        try:
            await websocket.close()
        except Exception:
            logger.debug("WebSocket already closed")
