from fastapi import APIRouter, HTTPException, Request
from backend import memory_backend
from schemas.rooms import RoomDetailsResponse
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/api/rooms", tags=["rooms"])


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse, response_model_by_alias=True)
async def get_room_details(room_id: str, request: Request = None):
    """
    Read-only room lookup.

    Returns:
    - id: Room identifier
    - participantCount: Current number of participants
    - maxParticipants: Room capacity
    - createdAt: Room creation timestamp
    - requirePassword: Whether the room is password protected
    """
    client_host = request.client.host if request and request.client else 'unknown'
    logger.info(f"Room details request for {room_id} from {client_host}")

    room = memory_backend.rooms.get(room_id)
    if not room:
        logger.info(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomDetailsResponse(
        id=room.id,
        participant_count=len(room.participants),
        max_participants=room.settings.max_participants,
        created_at=room.created_at,
        require_password=room.settings.require_password,
    )
