"""JSON file implementation of the unsaved-progress fallback store."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

from pydantic import ValidationError

from ..domain.entities.progress import ReadingSessionRecord, SessionCheckpoint
from ..domain.interfaces.fallback_store import FallbackStore

logger = logging.getLogger(__name__)


class JsonFileFallbackStore(FallbackStore):
    """Stashes unsaved progress as one JSON file per document.

    Writes are synchronous so they can run while a page or process is
    going away. A corrupt file is logged and treated as empty, and invalid
    entries are logged and dropped when popped.
    """

    def __init__(self, directory: Union[str, Path]):
        """Initialize the store.

        Args:
            directory: Directory for stash files; created if missing.
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def stash_checkpoint(self, checkpoint: SessionCheckpoint) -> None:
        data = self._read(checkpoint.document_id)
        data["checkpoint"] = checkpoint.model_dump(mode="json")
        self._write(checkpoint.document_id, data)

    def stash_session_record(self, record: ReadingSessionRecord) -> None:
        data = self._read(record.document_id)
        data["sessions"].append(record.model_dump(mode="json"))
        self._write(record.document_id, data)

    def pop_checkpoint(self, document_id: str) -> Optional[SessionCheckpoint]:
        data = self._read(document_id)
        raw = data.pop("checkpoint", None)
        data["checkpoint"] = None
        self._write(document_id, data)
        if not raw:
            return None
        try:
            return SessionCheckpoint.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Discarding invalid stashed checkpoint for {document_id}: {e}")
            return None

    def pop_session_records(self, document_id: str) -> list[ReadingSessionRecord]:
        data = self._read(document_id)
        raw_records = data["sessions"]
        data["sessions"] = []
        self._write(document_id, data)

        records = []
        for raw in raw_records:
            try:
                records.append(ReadingSessionRecord.model_validate(raw))
            except ValidationError as e:
                logger.error(f"Discarding invalid stashed session record for {document_id}: {e}")
        return records

    def _path(self, document_id: str) -> Path:
        return self.directory / f"unsaved-progress-{quote(document_id, safe='')}.json"

    def _read(self, document_id: str) -> Dict[str, Any]:
        path = self._path(document_id)
        empty: Dict[str, Any] = {"checkpoint": None, "sessions": []}
        if not path.exists():
            return empty
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Unreadable fallback file {path}: {e}")
            return empty
        if not isinstance(data, dict):
            logger.error(f"Fallback file {path} does not hold an object, ignoring it")
            return empty
        data.setdefault("checkpoint", None)
        if not isinstance(data.get("sessions"), list):
            data["sessions"] = []
        return data

    def _write(self, document_id: str, data: Dict[str, Any]) -> None:
        path = self._path(document_id)
        if data.get("checkpoint") is None and not data.get("sessions"):
            path.unlink(missing_ok=True)
            return
        path.write_text(json.dumps(data), encoding="utf-8")
