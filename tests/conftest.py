"""
Shared fixtures.

Protocol tests run against fresh registries and a hub that records every
outbound frame instead of writing to sockets.
"""

from enum import Enum

import pytest

from backend import MemoryBackend, memory_backend
from connections import ConnectionHub
from dispatcher import EventDispatcher


class RecordingHub(ConnectionHub):
    """ConnectionHub whose deliveries are captured as (connection_id, event, data)."""

    def __init__(self):
        super().__init__()
        self.sent = []

    def emit(self, connection_id, event, data=None):
        name = event.value if isinstance(event, Enum) else event
        self.sent.append((connection_id, name, data if data is not None else {}))

    def events_for(self, connection_id):
        return [(event, data) for conn_id, event, data in self.sent if conn_id == connection_id]

    def names_for(self, connection_id):
        return [event for event, _ in self.events_for(connection_id)]

    def reset(self):
        self.sent.clear()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def hub():
    return RecordingHub()


@pytest.fixture
def dispatcher(backend, hub):
    return EventDispatcher(backend, hub)


@pytest.fixture
def join(dispatcher):
    """Join ``connection_id`` to ``room_id`` as participant ``participant_id``."""

    def _join(connection_id, room_id, participant_id, name=None):
        identity = {"id": participant_id}
        if name is not None:
            identity["name"] = name
        dispatcher.dispatch(connection_id, "join-room", {"roomId": room_id, "identity": identity})

    return _join


@pytest.fixture
def check_invariants(backend):
    """Assert the registry invariants hold for ``backend``."""

    def _check():
        for room in backend.rooms:
            # Empty rooms never linger
            assert room.participants, f"room {room.id} is empty"
            assert len(room.participants) <= room.settings.max_participants
            hosts = [p for p in room.participants.values() if p.is_host]
            assert [p.id for p in hosts] == [room.host_id]
            for participant_id, participant in room.participants.items():
                assert participant.id == participant_id
                assert participant.room_id == room.id
                assert backend.participants.get(participant.connection_id) is participant

        indexed = list(backend.participants)
        assert len({p.connection_id for p in indexed}) == len(indexed)
        for participant in indexed:
            room = backend.rooms.get(participant.room_id)
            assert room is not None
            assert room.participants.get(participant.id) is participant
        assert sum(len(room.participants) for room in backend.rooms) == len(indexed)

    return _check


@pytest.fixture
def clean_state():
    memory_backend.clear()
    yield
    memory_backend.clear()
