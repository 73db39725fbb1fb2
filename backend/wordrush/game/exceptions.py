from __future__ import annotations


class GameError(Exception):
    """Base class for errors reported privately to the offending connection."""

    code = "error"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class RoomNotFound(GameError):
    code = "room_not_found"

    def __init__(self, message: str = "Room not found.") -> None:
        super().__init__(message)


class NotAllowed(GameError):
    """Raised when the caller may not perform the action in the room's current state."""

    code = "not_allowed"


class InvalidPayload(GameError):
    code = "invalid_payload"


class AnswerRejected(GameError):
    """Raised when a submission fails validation; the turn keeps running."""

    code = "answer_rejected"
