from typing import Dict, Iterator, Optional

from constants import MAX_PARTICIPANTS
from logging_config import get_logger
from schemas.rooms import Participant, Room, RoomSettings

logger = get_logger(__name__)


class RoomExistsError(Exception):
    pass


class RoomRegistry:
    """room id -> Room. Plain map operations, no protocol logic."""

    def __init__(self):
        self._rooms: Dict[str, Room] = {}

    def create(self, room_id: str, host_id: str, max_participants: int = MAX_PARTICIPANTS) -> Room:
        if room_id in self._rooms:
            raise RoomExistsError(room_id)
        room = Room(id=room_id, host_id=host_id, settings=RoomSettings(max_participants=max_participants))
        self._rooms[room_id] = room
        logger.info(f"Created room {room_id} with host {host_id} (max {max_participants} participants)")
        return room

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def delete(self, room_id: str):
        if self._rooms.pop(room_id, None) is not None:
            logger.info(f"Deleted room {room_id}")

    def count(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))

    def clear(self):
        self._rooms.clear()


class ParticipantIndex:
    """connection id -> Participant.

    The Participant objects are the same instances held in their Room's
    participant map, so state changes made through either side are shared.
    """

    def __init__(self):
        self._by_connection: Dict[str, Participant] = {}

    def put(self, connection_id: str, participant: Participant):
        self._by_connection[connection_id] = participant

    def get(self, connection_id: str) -> Optional[Participant]:
        return self._by_connection.get(connection_id)

    def remove(self, connection_id: str) -> Optional[Participant]:
        return self._by_connection.pop(connection_id, None)

    def find_by_participant_id(self, participant_id: str, room_id: str) -> Optional[Participant]:
        """Resolve a logical participant id to its live entry. Linear in connected participants."""
        for participant in self._by_connection.values():
            if participant.id == participant_id and participant.room_id == room_id:
                return participant
        return None

    def count(self) -> int:
        return len(self._by_connection)

    def __iter__(self) -> Iterator[Participant]:
        return iter(list(self._by_connection.values()))

    def clear(self):
        self._by_connection.clear()


class MemoryBackend:
    """Owner of the two registries for this process.

    All mutation happens synchronously on the event loop thread, inside the
    protocols in services/, so no locking is needed.
    """

    def __init__(self):
        self.rooms = RoomRegistry()
        self.participants = ParticipantIndex()
        logger.info("Initialized in-memory room and participant registries")

    def stats(self) -> Dict[str, int]:
        return {"rooms": self.rooms.count(), "participants": self.participants.count()}

    def clear(self):
        self.rooms.clear()
        self.participants.clear()


memory_backend = MemoryBackend()
