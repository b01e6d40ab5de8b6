"""
Inbound event dispatch.

Parses socket frames, routes each event to exactly one service handler and
applies the error policy at the handler boundary:

- surfaced SignalingErrors (room full, invalid input) go back to the sender as
  ``join-error`` for joins and ``error`` otherwise;
- silent ones (relay/target misses, unauthorized host actions) are only logged;
- anything unexpected is logged with a traceback and reported as a generic
  internal error, never propagated to the socket loop.
"""

import json
from typing import Any, Callable, Dict

from backend import MemoryBackend
from connections import ConnectionHub
from errors import InvalidInputError, SignalingError, internal_error_payload
from logging_config import get_logger
from schemas.events import EventType
from schemas.rooms import utcnow
from services.broadcast import BroadcastEngine
from services.host_controls import HostControlAuthority
from services.presence import PresenceController
from services.signaling import SignalingRouter

logger = get_logger(__name__)

Handler = Callable[[str, dict], Any]


class EventDispatcher:
    def __init__(self, backend: MemoryBackend, hub: ConnectionHub):
        self.backend = backend
        self.hub = hub
        self.presence = PresenceController(backend, hub)
        self.signaling = SignalingRouter(backend, hub)
        self.broadcast = BroadcastEngine(backend, hub)
        self.host_controls = HostControlAuthority(backend, hub, self.presence)

        self.handlers: Dict[EventType, Handler] = {
            EventType.JOIN_ROOM: self.presence.join,
            EventType.LEAVE_ROOM: self.presence.leave,
            EventType.OFFER: self.signaling.offer,
            EventType.ANSWER: self.signaling.answer,
            EventType.ICE_CANDIDATE: self.signaling.ice_candidate,
            EventType.MEDIA_STATE_CHANGED: self.broadcast.media_state_changed,
            EventType.SCREEN_SHARE_STARTED: self.broadcast.screen_share_started,
            EventType.SCREEN_SHARE_STOPPED: self.broadcast.screen_share_stopped,
            EventType.CHAT_MESSAGE: self.broadcast.chat_message,
            EventType.REACTION: self.broadcast.reaction,
            EventType.SPEAKING_CHANGED: self.broadcast.speaking_changed,
            EventType.MUTE_PARTICIPANT: self.host_controls.mute_participant,
            EventType.KICK_PARTICIPANT: self.host_controls.kick_participant,
        }

    def dispatch_raw(self, connection_id: str, raw: str):
        """Handle one text frame from a connection."""
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Malformed frame from connection {connection_id}: not JSON")
            self.hub.emit(connection_id, EventType.ERROR, InvalidInputError("Frames must be JSON objects").to_payload())
            return
        if not isinstance(message, dict):
            logger.warning(f"Malformed frame from connection {connection_id}: not an object")
            self.hub.emit(connection_id, EventType.ERROR, InvalidInputError("Frames must be JSON objects").to_payload())
            return
        self.dispatch(connection_id, message.get("type"), message.get("data"))

    def dispatch(self, connection_id: str, event: Any, data: Any = None):
        try:
            event_type = EventType(event)
        except ValueError:
            event_type = None
        handler = self.handlers.get(event_type) if event_type is not None else None
        if handler is None:
            logger.warning(f"Unknown event {event!r} from connection {connection_id}")
            self.hub.emit(connection_id, EventType.ERROR, InvalidInputError(f"Unknown event: {event}").to_payload())
            return

        error_event = EventType.JOIN_ERROR if event_type == EventType.JOIN_ROOM else EventType.ERROR
        if data is None:
            data = {}
        if not isinstance(data, dict):
            logger.warning(f"Malformed {event_type.value} from connection {connection_id}: data is not an object")
            self.hub.emit(connection_id, error_event, InvalidInputError("Event data must be an object").to_payload())
            return

        logger.debug(f"Dispatching {event_type.value} from connection {connection_id}")
        self._touch(connection_id)
        try:
            handler(connection_id, data)
        except SignalingError as e:
            if e.surfaced:
                logger.info(f"{event_type.value} from connection {connection_id} rejected: {e.message} {e.details}")
                self.hub.emit(connection_id, error_event, e.to_payload())
            else:
                logger.debug(f"{event_type.value} from connection {connection_id} dropped: {e.message} {e.details}")
        except Exception as e:
            logger.error(f"Error handling {event_type.value} from connection {connection_id}: {e}", exc_info=True)
            self.hub.emit(connection_id, error_event, internal_error_payload())

    def disconnect(self, connection_id: str):
        try:
            self.presence.disconnect(connection_id)
        except Exception as e:
            logger.error(f"Error cleaning up connection {connection_id}: {e}", exc_info=True)

    def _touch(self, connection_id: str):
        participant = self.backend.participants.get(connection_id)
        if participant is not None:
            participant.last_seen = utcnow()
