"""
Room-scoped fan-out: media state, screen share, chat, reactions, speaking.

State changes are applied to the canonical Participant (shared by the room
map and the participant index) before the derived event goes out.
"""

import uuid

from backend import MemoryBackend
from connections import ConnectionHub
from constants import DEFAULT_SENDER_NAME
from errors import NotFoundError
from logging_config import get_logger
from schemas.events import (
    ChatMessageRequest,
    ChatType,
    EventType,
    MediaStateRequest,
    ReactionRequest,
    SpeakingRequest,
    parse_payload,
)
from schemas.rooms import Participant, utcnow

logger = get_logger(__name__)


class BroadcastEngine:
    def __init__(self, backend: MemoryBackend, hub: ConnectionHub):
        self.backend = backend
        self.hub = hub

    def _sender(self, connection_id: str) -> Participant:
        sender = self.backend.participants.get(connection_id)
        if sender is None:
            raise NotFoundError(f"Connection {connection_id} is not in a room")
        return sender

    def media_state_changed(self, connection_id: str, data: dict):
        sender = self._sender(connection_id)
        request = parse_payload(MediaStateRequest, data)
        # Only the media flags a client actually sent are applied and echoed
        changes = request.model_dump(exclude_none=True)
        for field, value in changes.items():
            setattr(sender, field, value)

        event = {"participantId": sender.id}
        event.update(request.model_dump(by_alias=True, exclude_none=True))
        self.hub.emit_to_room(sender.room_id, EventType.PARTICIPANT_MEDIA_CHANGED, event, skip=connection_id)
        logger.debug(f"Participant {sender.id} media state changed: {changes}")

    def screen_share_started(self, connection_id: str, data: dict):
        self._screen_share(connection_id, True)

    def screen_share_stopped(self, connection_id: str, data: dict):
        self._screen_share(connection_id, False)

    def _screen_share(self, connection_id: str, sharing: bool):
        sender = self._sender(connection_id)
        sender.is_screen_sharing = sharing
        event = EventType.PARTICIPANT_SCREEN_SHARE_STARTED if sharing else EventType.PARTICIPANT_SCREEN_SHARE_STOPPED
        self.hub.emit_to_room(sender.room_id, event, {"participantId": sender.id}, skip=connection_id)
        logger.info(f"Participant {sender.id} {'started' if sharing else 'stopped'} screen sharing in room {sender.room_id}")

    def chat_message(self, connection_id: str, data: dict):
        request = parse_payload(ChatMessageRequest, data)
        content = (request.content or "").strip()
        if not content:
            logger.debug(f"Dropping empty chat message from connection {connection_id}")
            return
        sender = self._sender(connection_id)

        private = request.type == ChatType.PRIVATE and bool(request.recipient_id)
        recipient = None
        if private:
            recipient = self.backend.participants.find_by_participant_id(request.recipient_id, sender.room_id)
            if recipient is None:
                raise NotFoundError(f"Chat recipient {request.recipient_id} is not in room {sender.room_id}")

        message = {
            "id": str(uuid.uuid4()),
            "senderId": sender.id,
            "senderName": sender.name or DEFAULT_SENDER_NAME,
            "content": content,
            "timestamp": utcnow().isoformat(),
            "type": (ChatType.PRIVATE if private else ChatType.PUBLIC).value,
            "recipientId": request.recipient_id,
        }
        if recipient is not None:
            self.hub.emit(recipient.connection_id, EventType.CHAT_MESSAGE, message)
            logger.debug(f"Private chat message from {sender.id} to {recipient.id} in room {sender.room_id}")
        else:
            self.hub.emit_to_room(sender.room_id, EventType.CHAT_MESSAGE, message, skip=connection_id)
            logger.debug(f"Chat message from {sender.id} in room {sender.room_id}")

    def reaction(self, connection_id: str, data: dict):
        sender = self._sender(connection_id)
        request = parse_payload(ReactionRequest, data)
        reaction = {
            "id": str(uuid.uuid4()),
            "participantId": sender.id,
            "participantName": sender.name,
            "emoji": request.emoji,
            "timestamp": utcnow().isoformat(),
        }
        # The sender sees its own reaction too
        self.hub.emit_to_room(sender.room_id, EventType.REACTION, reaction)

    def speaking_changed(self, connection_id: str, data: dict):
        sender = self._sender(connection_id)
        request = parse_payload(SpeakingRequest, data)
        sender.is_speaking = request.is_speaking
        self.hub.emit_to_room(sender.room_id, EventType.PARTICIPANT_SPEAKING_CHANGED, {
            "participantId": sender.id,
            "isSpeaking": request.is_speaking,
        }, skip=connection_id)
