"""WebSocket message models for the reader control surface."""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from .pacing import PacingConfig, PacingPreset
from .playback import AnchorSplit, PlaybackState
from .progress import ReadingStats


# ===== Client → Server Messages =====


class SessionOpen(BaseModel):
    """Open a document. Either ``words`` or a known ``document_id`` is required."""

    type: Literal["session.open"] = "session.open"
    document_id: Optional[str] = None
    title: str = ""
    words: Optional[list[str]] = None
    resume_index: Optional[int] = Field(default=None, ge=0)


class PlaybackCommand(BaseModel):
    """Play, pause or toggle."""

    type: Literal["playback.play", "playback.pause", "playback.toggle"]


class SetSpeed(BaseModel):
    """Set an absolute speed."""

    type: Literal["playback.set_speed"] = "playback.set_speed"
    wpm: int


class AdjustSpeed(BaseModel):
    """Change speed by a relative amount."""

    type: Literal["playback.adjust_speed"] = "playback.adjust_speed"
    delta: int


class SetPacing(BaseModel):
    """Replace the pacing config, by preset key or explicit values."""

    type: Literal["playback.set_pacing"] = "playback.set_pacing"
    preset: Optional[PacingPreset] = None
    pacing: Optional[PacingConfig] = None


class JumpTo(BaseModel):
    """Jump to an explicit word index."""

    type: Literal["playback.jump"] = "playback.jump"
    index: int


class Rewind(BaseModel):
    """Rewind by an approximate number of seconds."""

    type: Literal["playback.rewind"] = "playback.rewind"
    seconds: float = 10


class SkipCommand(BaseModel):
    """Skip to the next or previous sentence."""

    type: Literal["navigation.skip_forward", "navigation.skip_backward"]


class SummaryCommand(BaseModel):
    """Request the summary prefix, or resume once the summary was read."""

    type: Literal["summary.prefix", "summary.resume"]


class SessionCommand(BaseModel):
    """Suspend (visibility lost) or close the session."""

    type: Literal["session.suspend", "session.close"]


ClientMessage = Annotated[
    Union[
        SessionOpen,
        PlaybackCommand,
        SetSpeed,
        AdjustSpeed,
        SetPacing,
        JumpTo,
        Rewind,
        SkipCommand,
        SummaryCommand,
        SessionCommand,
    ],
    Field(discriminator="type"),
]

_client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(data: Any) -> ClientMessage:
    """Validate a decoded JSON payload into a client message.

    Raises:
        pydantic.ValidationError: If the payload is not a known message.
    """
    return _client_message_adapter.validate_python(data)


# ===== Server → Client Messages =====


class SessionOpened(BaseModel):
    """Document opened confirmation from server."""

    type: Literal["session.opened"] = "session.opened"
    document_id: Optional[str] = None
    title: str = ""
    word_count: int
    current_word_index: int


class ReaderState(BaseModel):
    """Playback state pushed after every playback event."""

    type: Literal["state"] = "state"
    event: str
    state: PlaybackState
    current_word_index: int
    word_count: int
    speed: int
    word: Optional[str] = None
    anchor: AnchorSplit = Field(default_factory=AnchorSplit)
    pacing_preset: Optional[PacingPreset] = None


class SummaryPrefix(BaseModel):
    """Text read so far, for the summarization collaborator."""

    type: Literal["summary.prefix"] = "summary.prefix"
    text: str
    word_count: int


class SessionEnded(BaseModel):
    """Session ended message from server."""

    type: Literal["session.ended"] = "session.ended"
    reason: str
    stats: Optional[ReadingStats] = None


class ServerNotice(BaseModel):
    """Server notice message."""

    type: Literal["server_notice"] = "server_notice"
    message: str


class ErrorCode(str, Enum):
    """Error codes for WebSocket errors."""

    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_INPUT = "INVALID_INPUT"
    NO_ACTIVE_DOCUMENT = "NO_ACTIVE_DOCUMENT"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorMessage(BaseModel):
    """Error message from server."""

    type: Literal["error"] = "error"
    code: ErrorCode
    message: str


# Union type for all server messages
ServerMessage = Union[SessionOpened, ReaderState, SummaryPrefix, SessionEnded, ServerNotice, ErrorMessage]
