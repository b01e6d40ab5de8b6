"""
Signaling event names and inbound payload schemas.

Frames on the socket are JSON objects ``{"type": <event>, "data": {...}}``.
Payload keys are camelCase on the wire and snake_case here.
"""

from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field, ValidationError, field_validator

from errors import InvalidInputError
from schemas.rooms import WireModel


class EventType(str, Enum):
    # Presence
    JOIN_ROOM = "join-room"
    LEAVE_ROOM = "leave-room"
    ROOM_JOINED = "room-joined"
    JOIN_ERROR = "join-error"
    PARTICIPANT_JOINED = "participant-joined"
    PARTICIPANT_LEFT = "participant-left"

    # Signaling relay
    OFFER = "offer"
    ANSWER = "answer"
    ICE_CANDIDATE = "ice-candidate"

    # Room broadcast
    MEDIA_STATE_CHANGED = "media-state-changed"
    PARTICIPANT_MEDIA_CHANGED = "participant-media-changed"
    SCREEN_SHARE_STARTED = "screen-share-started"
    SCREEN_SHARE_STOPPED = "screen-share-stopped"
    PARTICIPANT_SCREEN_SHARE_STARTED = "participant-screen-share-started"
    PARTICIPANT_SCREEN_SHARE_STOPPED = "participant-screen-share-stopped"
    CHAT_MESSAGE = "chat-message"
    REACTION = "reaction"
    SPEAKING_CHANGED = "speaking-changed"
    PARTICIPANT_SPEAKING_CHANGED = "participant-speaking-changed"

    # Host controls
    MUTE_PARTICIPANT = "mute-participant"
    KICK_PARTICIPANT = "kick-participant"
    FORCE_MUTE = "force-mute"
    KICKED_FROM_ROOM = "kicked-from-room"

    ERROR = "error"


class ChatType(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class Identity(WireModel):
    id: Optional[str] = None
    name: Optional[str] = None


class JoinRoomRequest(WireModel):
    room_id: str = Field(..., min_length=1)
    identity: Optional[Identity] = None
    # Older clients send userData, or only a userId
    user_data: Optional[Identity] = None
    user_id: Optional[str] = None

    def resolve_identity(self) -> Identity:
        if self.identity is not None:
            return self.identity
        if self.user_data is not None:
            return self.user_data
        return Identity(id=self.user_id)


class RelayRequest(WireModel):
    """offer / answer / ice-candidate. Everything but targetId is relayed untouched."""

    model_config = ConfigDict(extra="allow")

    target_id: str


class MediaStateRequest(WireModel):
    is_muted: Optional[bool] = None
    is_camera_off: Optional[bool] = None
    is_screen_sharing: Optional[bool] = None


class ChatMessageRequest(WireModel):
    content: Optional[str] = None
    type: ChatType = ChatType.PUBLIC
    recipient_id: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def default_unknown_type(cls, value):
        # Anything other than "private" is a public message
        return ChatType.PRIVATE if value == ChatType.PRIVATE.value else ChatType.PUBLIC


class ReactionRequest(WireModel):
    emoji: Optional[str] = None


class SpeakingRequest(WireModel):
    is_speaking: bool = False


class HostActionRequest(WireModel):
    participant_id: str


def parse_payload(model, data):
    """Validate an inbound payload, mapping validation failures to InvalidInputError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {model.__name__} payload", details={"errors": e.errors()})
