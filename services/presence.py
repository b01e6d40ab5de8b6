"""
Presence protocol: join, leave, disconnect, kick removal and host transfer.

Every method runs to completion without awaiting, so the registries are never
observed half-updated by another connection's event.
"""

import uuid
from typing import Optional

from backend import MemoryBackend
from connections import ConnectionHub
from constants import MAX_PARTICIPANTS
from errors import InvalidInputError, RoomFullError, UnauthorizedError
from logging_config import get_logger
from schemas.events import EventType, JoinRoomRequest, parse_payload
from schemas.rooms import Participant, Room

logger = get_logger(__name__)


def default_display_name(connection_id: str) -> str:
    return f"User_{connection_id[:8]}"


class PresenceController:
    def __init__(self, backend: MemoryBackend, hub: ConnectionHub):
        self.backend = backend
        self.hub = hub

    def join(self, connection_id: str, data: dict) -> Participant:
        """Join (creating if needed) a room.

        Raises RoomFullError when the room is at capacity and InvalidInputError
        for a bad payload or a participant id already present in the room. In
        both cases nothing has been mutated.
        """
        request = parse_payload(JoinRoomRequest, data)
        # Room ids are opaque: blank ones are rejected, others are kept as sent
        room_id = request.room_id
        if not room_id.strip():
            raise InvalidInputError("roomId must not be empty")

        identity = request.resolve_identity()
        participant_id = (identity.id or "").strip() or uuid.uuid4().hex
        name = (identity.name or "").strip() or default_display_name(connection_id)

        current = self.backend.participants.get(connection_id)
        self._check_can_join(room_id, participant_id, current)

        # One participant per connection: joining again means leaving first
        if current is not None:
            logger.info(f"Connection {connection_id} is switching rooms, leaving current room first")
            self.leave(connection_id)

        room = self.backend.rooms.get(room_id)
        if room is None:
            room = self.backend.rooms.create(room_id, participant_id, MAX_PARTICIPANTS)

        participant = Participant(
            id=participant_id,
            connection_id=connection_id,
            room_id=room_id,
            name=name,
            is_host=participant_id == room.host_id,
        )
        room.participants[participant_id] = participant
        self.backend.participants.put(connection_id, participant)
        self.hub.enter_room(connection_id, room_id)

        current_user = participant.to_wire()
        others = [p.to_wire() for p in room.participants.values() if p.id != participant_id]
        self.hub.emit(connection_id, EventType.ROOM_JOINED, {
            "roomId": room_id,
            "participants": others,
            "currentUser": current_user,
        })
        self.hub.emit_to_room(room_id, EventType.PARTICIPANT_JOINED, current_user, skip=connection_id)

        logger.info(
            f"Participant {participant_id} ({name}) joined room {room_id} "
            f"({len(room.participants)}/{room.settings.max_participants}, host={participant.is_host})"
        )
        return participant

    def _check_can_join(self, room_id: str, participant_id: str, current: Optional[Participant]):
        """Capacity and duplicate-id checks, run before anything is mutated.

        A connection re-joining the room it is already in gives up its own seat.
        """
        room = self.backend.rooms.get(room_id)
        if room is None:
            return
        own_seat = current if current is not None and current.room_id == room_id else None

        occupied = len(room.participants) - (1 if own_seat is not None else 0)
        if occupied >= room.settings.max_participants:
            logger.warning(
                f"Join rejected: room {room_id} is full "
                f"({len(room.participants)}/{room.settings.max_participants})"
            )
            raise RoomFullError(room_id, room.settings.max_participants)

        if participant_id in room.participants and not (own_seat is not None and own_seat.id == participant_id):
            logger.warning(f"Join rejected: participant {participant_id} is already in room {room_id}")
            raise InvalidInputError("Participant is already in this room")

    def leave(self, connection_id: str, data: Optional[dict] = None) -> Optional[Participant]:
        participant = self._remove(connection_id)
        if participant is None:
            logger.debug(f"Leave from connection {connection_id} with no room, ignoring")
            return None
        self.hub.emit_to_room(participant.room_id, EventType.PARTICIPANT_LEFT, {"participantId": participant.id})
        logger.info(f"Participant {participant.id} ({participant.name}) left room {participant.room_id}")
        return participant

    def disconnect(self, connection_id: str) -> Optional[Participant]:
        """Transport-level disconnect. Same protocol as an explicit leave."""
        participant = self.leave(connection_id)
        if participant is not None:
            logger.info(f"Participant {participant.id} disconnected from room {participant.room_id}")
        return participant

    def kick(self, target: Participant) -> Participant:
        room = self.backend.rooms.get(target.room_id)
        if target.is_host or (room is not None and room.host_id == target.id):
            raise UnauthorizedError("The host cannot be kicked")

        # The kicked connection hears about it before the rest of the room
        self.hub.emit(target.connection_id, EventType.KICKED_FROM_ROOM, {})
        self._remove(target.connection_id)
        self.hub.emit_to_room(target.room_id, EventType.PARTICIPANT_LEFT, {"participantId": target.id})
        logger.info(f"Participant {target.id} ({target.name}) was kicked from room {target.room_id}")
        return target

    def _remove(self, connection_id: str) -> Optional[Participant]:
        """Drop a participant from both registries, deleting or re-hosting its room."""
        participant = self.backend.participants.remove(connection_id)
        if participant is None:
            return None
        self.hub.leave_room(connection_id, participant.room_id)

        room = self.backend.rooms.get(participant.room_id)
        if room is None:
            return participant

        room.participants.pop(participant.id, None)
        if not room.participants:
            self.backend.rooms.delete(room.id)
        elif participant.is_host or room.host_id == participant.id:
            self._transfer_host(room)
        return participant

    def _transfer_host(self, room: Room):
        # Earliest remaining joiner, never random
        new_host = next(iter(room.participants.values()))
        for member in room.participants.values():
            member.is_host = member is new_host
        room.host_id = new_host.id
        logger.info(f"Host of room {room.id} transferred to {new_host.id} ({new_host.name})")
