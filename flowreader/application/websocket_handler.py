import asyncio
import json
import logging

from pydantic import BaseModel, ValidationError
from starlette.websockets import WebSocket, WebSocketDisconnect

from ..domain.entities import (
    Document,
    DocumentLoaded,
    DocumentUnloaded,
    PacingChanged,
    PlaybackEvent,
    PlaybackPaused,
    PlaybackStarted,
    PositionChanged,
    SpeedChanged,
    WordAdvanced,
)
from ..domain.entities.playback import ControlOutcome
from ..domain.entities.websocket_messages import (
    AdjustSpeed,
    ErrorCode,
    ErrorMessage,
    JumpTo,
    PlaybackCommand,
    ReaderState,
    Rewind,
    SessionCommand,
    SessionEnded,
    SessionOpen,
    SessionOpened,
    SetPacing,
    SetSpeed,
    SkipCommand,
    SummaryCommand,
    SummaryPrefix,
    parse_client_message,
)
from ..domain.exceptions import DocumentNotFoundError, FlowReaderError, InvalidInputError
from ..domain.interfaces.document_provider import DocumentProvider
from ..domain.services import ReaderSession

logger = logging.getLogger(__name__)

# Wire names for the playback events pushed to the client
_EVENT_NAMES = {
    DocumentLoaded: "document.loaded",
    DocumentUnloaded: "document.unloaded",
    PlaybackStarted: "playback.started",
    PlaybackPaused: "playback.paused",
    WordAdvanced: "word.advanced",
    PositionChanged: "position.changed",
    SpeedChanged: "speed.changed",
    PacingChanged: "pacing.changed",
}


class ReaderWebSocketHandler:

    def __init__(self, session: ReaderSession, document_provider: DocumentProvider):
        self._session = session
        self._document_provider = document_provider
        self.outbound_queue: asyncio.Queue[BaseModel] = asyncio.Queue()
        self._closing = False
        self._unsubscribe = session.on_state_change(self._on_session_event)

    async def handle_websocket(self, websocket: WebSocket) -> None:
        # Note: websocket.accept() is called by the API endpoint before this
        send_task = asyncio.create_task(self._send_loop(websocket))
        receive_task = asyncio.create_task(self._receive_loop(websocket))
        done, pending = await asyncio.wait(
            {send_task, receive_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        try:
            for task in done:
                exc = task.exception()
                if exc:
                    raise exc
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected: {websocket.client}")
        except Exception as e:
            logger.error(f"WebSocket error: {e}", exc_info=True)
        finally:
            self._unsubscribe()
            for t in (send_task, receive_task):
                if not t.done():
                    t.cancel()
            await asyncio.gather(send_task, receive_task, return_exceptions=True)

            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"WebSocket already closed: {e}")
            logger.info(f"WebSocket connection closed: {websocket.client}")

    async def _send_loop(self, websocket: WebSocket) -> None:
        while True:
            item = await self.outbound_queue.get()
            await websocket.send_text(item.model_dump_json())
            if self._closing and isinstance(item, SessionEnded):
                break

    async def _receive_loop(self, websocket: WebSocket) -> None:
        """Receive control messages from the client and apply them to the session."""
        while True:
            data = await websocket.receive()

            if data.get("type") == "websocket.disconnect":
                logger.info(f"Client disconnected - received disconnect message: {data}")
                break

            if data.get("type") != "websocket.receive" or data.get("text") is None:
                self._send_error(ErrorCode.INVALID_MESSAGE, "Only JSON text messages are supported")
                continue

            try:
                message = parse_client_message(json.loads(data["text"]))
            except json.JSONDecodeError as e:
                logger.warning(f"Invalid JSON message: {e}")
                self._send_error(ErrorCode.INVALID_MESSAGE, f"Invalid JSON: {e}")
                continue
            except ValidationError as e:
                logger.warning(f"Unknown or malformed message: {e}")
                self._send_error(ErrorCode.INVALID_MESSAGE, str(e))
                continue

            try:
                await self._handle_message(message)
            except DocumentNotFoundError as e:
                self._send_error(ErrorCode.DOCUMENT_NOT_FOUND, e.message)
            except InvalidInputError as e:
                self._send_error(ErrorCode.INVALID_INPUT, e.message)
            except FlowReaderError as e:
                logger.error(f"Reader error handling {message.type}: {e}")
                self._send_error(ErrorCode.INTERNAL_ERROR, e.message)
            except Exception as e:
                logger.error(f"Error handling {message.type}: {e}", exc_info=True)
                self._send_error(ErrorCode.INTERNAL_ERROR, "Internal error")

    async def _handle_message(self, message) -> None:
        session = self._session

        match message:
            case SessionOpen():
                await self._open(message)

            case PlaybackCommand(type="playback.play"):
                self._report(session.play())
            case PlaybackCommand(type="playback.pause"):
                self._report(session.pause())
            case PlaybackCommand(type="playback.toggle"):
                self._report(session.toggle())

            case SetSpeed():
                session.set_speed(message.wpm)
            case AdjustSpeed():
                session.adjust_speed(message.delta)
            case SetPacing():
                if message.preset is not None:
                    session.apply_pacing_preset(message.preset)
                elif message.pacing is not None:
                    session.set_pacing(message.pacing)
                else:
                    raise InvalidInputError("playback.set_pacing needs a preset or pacing values")

            case JumpTo():
                self._report(session.jump_to(message.index))
            case Rewind():
                self._report(session.rewind_by_seconds(message.seconds))

            case SkipCommand(type="navigation.skip_forward"):
                self._report(session.skip_forward())
            case SkipCommand(type="navigation.skip_backward"):
                self._report(session.skip_backward())

            case SummaryCommand(type="summary.prefix"):
                if session.document is None:
                    self._report(ControlOutcome.NO_ACTIVE_DOCUMENT)
                    return
                session.pause()
                self.outbound_queue.put_nowait(
                    SummaryPrefix(text=session.get_summary_prefix(), word_count=session.current_word_index)
                )
            case SummaryCommand(type="summary.resume"):
                self._report(session.resume_after_summary())

            case SessionCommand(type="session.suspend"):
                await session.suspend()
            case SessionCommand(type="session.close"):
                stats = await session.close()
                self._closing = True
                self.outbound_queue.put_nowait(SessionEnded(reason="closed", stats=stats))

    async def _open(self, message: SessionOpen) -> None:
        if message.words is not None:
            document = Document(document_id=message.document_id, title=message.title, words=message.words)
        elif message.document_id is not None:
            document = self._document_provider.get_document(message.document_id)
        else:
            raise InvalidInputError("session.open needs words or a document_id")

        snapshot = await self._session.open_document(document, message.resume_index)
        self.outbound_queue.put_nowait(
            SessionOpened(
                document_id=document.document_id,
                title=document.title,
                word_count=snapshot.word_count,
                current_word_index=snapshot.current_word_index,
            )
        )
        self.outbound_queue.put_nowait(self._build_state("document.loaded"))

    def _on_session_event(self, event: PlaybackEvent) -> None:
        name = _EVENT_NAMES.get(type(event))
        # SessionOpened carries the load, persistence results stay server side
        if name is None or isinstance(event, DocumentLoaded):
            return
        self.outbound_queue.put_nowait(self._build_state(name))

    def _build_state(self, event_name: str) -> ReaderState:
        snapshot = self._session.snapshot()
        return ReaderState(
            event=event_name,
            state=snapshot.state,
            current_word_index=snapshot.current_word_index,
            word_count=snapshot.word_count,
            speed=snapshot.speed,
            word=snapshot.current_word,
            anchor=self._session.current_anchor(),
            pacing_preset=self._session.pacing_preset,
        )

    def _report(self, outcome: ControlOutcome) -> None:
        if outcome == ControlOutcome.NO_ACTIVE_DOCUMENT:
            self._send_error(ErrorCode.NO_ACTIVE_DOCUMENT, "No document is open")

    def _send_error(self, code: ErrorCode, message: str) -> None:
        self.outbound_queue.put_nowait(ErrorMessage(code=code, message=message))
