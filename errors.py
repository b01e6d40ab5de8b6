"""
Signaling error taxonomy.

Every failure the core can produce is one of these exceptions. Each carries a
machine-readable code that is sent to the client alongside the human-readable
message when the failure is surfaced (see dispatcher.EventDispatcher).
"""

from enum import Enum
from typing import Optional, Dict, Any


class SignalingErrorCode(str, Enum):
    ROOM_FULL = "room_full"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    INVALID_INPUT = "invalid_input"
    INTERNAL_ERROR = "internal_error"


class SignalingError(Exception):
    """Base exception for signaling errors."""

    error_code = SignalingErrorCode.INTERNAL_ERROR
    # Whether the initiating connection is told about the failure
    surfaced = True

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        """Body of the error event sent back to the initiating connection."""
        return {"message": self.message, "code": self.error_code.value}


class RoomFullError(SignalingError):
    """Join rejected because the room reached its capacity."""

    error_code = SignalingErrorCode.ROOM_FULL

    def __init__(self, room_id: str, max_participants: int):
        super().__init__(
            "Room is full",
            details={"room_id": room_id, "max_participants": max_participants},
        )


class NotFoundError(SignalingError):
    """The other party of a relay or host action is not in the sender's room."""

    error_code = SignalingErrorCode.NOT_FOUND
    surfaced = False


class UnauthorizedError(SignalingError):
    """A participant without host or co-host rights attempted a host action."""

    error_code = SignalingErrorCode.UNAUTHORIZED
    surfaced = False


class InvalidInputError(SignalingError):
    error_code = SignalingErrorCode.INVALID_INPUT


def internal_error_payload() -> Dict[str, Any]:
    return {"message": "Internal server error", "code": SignalingErrorCode.INTERNAL_ERROR.value}
