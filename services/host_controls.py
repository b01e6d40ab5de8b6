from backend import MemoryBackend
from connections import ConnectionHub
from errors import NotFoundError, UnauthorizedError
from logging_config import get_logger
from schemas.events import EventType, HostActionRequest, parse_payload
from schemas.rooms import Participant
from services.presence import PresenceController

logger = get_logger(__name__)


class HostControlAuthority:
    """mute-participant and kick-participant, for hosts and co-hosts only.

    Callers without rights get UnauthorizedError, which is never reported back,
    so probing for host actions yields no observable signal.
    """

    def __init__(self, backend: MemoryBackend, hub: ConnectionHub, presence: PresenceController):
        self.backend = backend
        self.hub = hub
        self.presence = presence

    def authorize(self, connection_id: str) -> Participant:
        caller = self.backend.participants.get(connection_id)
        if caller is None or not (caller.is_host or caller.is_co_host):
            raise UnauthorizedError(f"Connection {connection_id} may not use host controls")
        return caller

    def _target(self, caller: Participant, data: dict) -> Participant:
        request = parse_payload(HostActionRequest, data)
        target = self.backend.participants.find_by_participant_id(request.participant_id, caller.room_id)
        if target is None:
            raise NotFoundError(f"Participant {request.participant_id} is not in room {caller.room_id}")
        return target

    def mute_participant(self, connection_id: str, data: dict):
        caller = self.authorize(connection_id)
        target = self._target(caller, data)
        # The target's client mutes itself and reports back with media-state-changed
        self.hub.emit(target.connection_id, EventType.FORCE_MUTE, {})
        logger.info(f"{caller.id} asked {target.id} to mute in room {caller.room_id}")

    def kick_participant(self, connection_id: str, data: dict):
        caller = self.authorize(connection_id)
        target = self._target(caller, data)
        self.presence.kick(target)
        logger.info(f"{caller.id} kicked {target.id} from room {caller.room_id}")
