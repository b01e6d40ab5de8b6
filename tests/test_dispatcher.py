import json
import logging

from schemas.events import EventType
from schemas.rooms import utcnow


def test_dispatch_raw_routes_json_frames(dispatcher, backend, hub):
    dispatcher.dispatch_raw("c1", json.dumps({"type": "join-room", "data": {"roomId": "r1", "identity": {"id": "A"}}}))

    assert backend.rooms.get("r1") is not None
    assert hub.names_for("c1") == ["room-joined"]


def test_non_json_frame_is_reported(dispatcher, hub):
    dispatcher.dispatch_raw("c1", "not json at all")

    (event, payload), = hub.events_for("c1")
    assert event == "error"
    assert payload["code"] == "invalid_input"


def test_non_object_frame_is_reported(dispatcher, hub):
    dispatcher.dispatch_raw("c1", json.dumps(["join-room"]))
    assert hub.names_for("c1") == ["error"]


def test_unknown_event_is_reported(dispatcher, hub):
    dispatcher.dispatch("c1", "launch-rockets", {})

    (event, payload), = hub.events_for("c1")
    assert event == "error"
    assert payload == {"message": "Unknown event: launch-rockets", "code": "invalid_input"}


def test_outbound_only_event_names_are_not_accepted(dispatcher, hub):
    dispatcher.dispatch("c1", "force-mute", {})
    assert hub.names_for("c1") == ["error"]


def test_non_object_data_is_reported_as_join_error(dispatcher, hub):
    dispatcher.dispatch("c1", "join-room", "r1")
    assert hub.names_for("c1") == ["join-error"]


def test_unexpected_fault_becomes_generic_error(dispatcher, backend, hub, join, monkeypatch, check_invariants):
    join("c1", "r1", "A")
    hub.reset()

    def explode(connection_id, data):
        raise RuntimeError("boom")

    monkeypatch.setitem(dispatcher.handlers, EventType.REACTION, explode)
    dispatcher.dispatch("c1", "reaction", {"emoji": "👍"})

    assert hub.sent == [("c1", "error", {"message": "Internal server error", "code": "internal_error"})]
    check_invariants()


def test_unexpected_fault_during_join_becomes_join_error(dispatcher, hub, monkeypatch):
    def explode(connection_id, data):
        raise RuntimeError("boom")

    monkeypatch.setitem(dispatcher.handlers, EventType.JOIN_ROOM, explode)
    dispatcher.dispatch("c1", "join-room", {"roomId": "r1"})

    assert hub.sent == [("c1", "join-error", {"message": "Internal server error", "code": "internal_error"})]


def test_events_refresh_last_seen(dispatcher, backend, join):
    join("c1", "r1", "A")
    participant = backend.participants.get("c1")
    participant.last_seen = participant.last_seen.replace(year=2000)

    dispatcher.dispatch("c1", "speaking-changed", {"isSpeaking": False})

    assert participant.last_seen.year == utcnow().year


def test_disconnect_of_unknown_connection_is_noop(dispatcher, hub):
    dispatcher.disconnect("c1")
    assert hub.sent == []


def test_rejection_details_are_logged(dispatcher, backend, hub, join, caplog):
    join("c1", "r1", "A")
    backend.rooms.get("r1").settings.max_participants = 1

    with caplog.at_level(logging.INFO, logger="dispatcher"):
        join("c2", "r1", "B")

    assert hub.names_for("c2") == ["join-error"]
    rejected = [r.getMessage() for r in caplog.records if r.name == "dispatcher"]
    assert len(rejected) == 1
    assert "Room is full" in rejected[0]
    assert "'max_participants': 1" in rejected[0]
    assert "'room_id': 'r1'" in rejected[0]
