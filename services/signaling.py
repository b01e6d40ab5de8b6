from backend import MemoryBackend
from connections import ConnectionHub
from errors import NotFoundError
from logging_config import get_logger
from schemas.events import EventType, RelayRequest, parse_payload
from schemas.rooms import Participant

logger = get_logger(__name__)


class SignalingRouter:
    """One-to-one relay of offer / answer / ice-candidate between members of a room.

    Misses on either end raise NotFoundError, which the dispatcher drops
    without telling the sender: a peer that left mid-handshake is not an error
    the sender can act on.
    """

    def __init__(self, backend: MemoryBackend, hub: ConnectionHub):
        self.backend = backend
        self.hub = hub

    def resolve_sender(self, connection_id: str) -> Participant:
        sender = self.backend.participants.get(connection_id)
        if sender is None:
            raise NotFoundError(f"Connection {connection_id} is not in a room")
        return sender

    def resolve_target(self, participant_id: str, room_id: str) -> Participant:
        target = self.backend.participants.find_by_participant_id(participant_id, room_id)
        if target is None:
            raise NotFoundError(f"Participant {participant_id} is not in room {room_id}")
        return target

    def relay(self, event: EventType, connection_id: str, data: dict):
        sender = self.resolve_sender(connection_id)
        request = parse_payload(RelayRequest, data)
        target = self.resolve_target(request.target_id, sender.room_id)

        message = {"fromId": sender.id}
        message.update(request.model_extra or {})
        self.hub.emit(target.connection_id, event, message)
        logger.debug(f"Relayed {event.value} from {sender.id} to {target.id} in room {sender.room_id}")

    def offer(self, connection_id: str, data: dict):
        self.relay(EventType.OFFER, connection_id, data)

    def answer(self, connection_id: str, data: dict):
        self.relay(EventType.ANSWER, connection_id, data)

    def ice_candidate(self, connection_id: str, data: dict):
        self.relay(EventType.ICE_CANDIDATE, connection_id, data)
