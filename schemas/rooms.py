from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from constants import MAX_PARTICIPANTS


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WireModel(BaseModel):
    """Base for everything that goes over the wire: camelCase on the outside."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class RoomSettings(WireModel):
    max_participants: int = MAX_PARTICIPANTS
    require_password: bool = False
    password: Optional[str] = None
    allow_screen_share: bool = True
    allow_chat: bool = True
    record_meeting: bool = False


class Participant(WireModel):
    id: str
    connection_id: str
    room_id: str
    name: str
    is_host: bool = False
    is_co_host: bool = False
    is_muted: bool = False
    is_camera_off: bool = False
    is_screen_sharing: bool = False
    is_speaking: bool = False
    joined_at: datetime = Field(default_factory=utcnow)
    last_seen: datetime = Field(default_factory=utcnow)


class Room(WireModel):
    id: str
    host_id: str
    # participant id -> Participant, in join order
    participants: Dict[str, Participant] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    settings: RoomSettings = Field(default_factory=RoomSettings)


class RoomDetailsResponse(WireModel):
    id: str
    participant_count: int
    max_participants: int
    created_at: datetime
    require_password: bool


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    rooms: int
    participants: int
