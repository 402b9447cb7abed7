from enum import Enum


class ErrorCode(str, Enum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BANNED = "banned"
    INVALID_REQUEST = "invalid_request"
    UNKNOWN_MESSAGE = "unknown_message"
    INTERNAL_ERROR = "internal_error"


class LobbyError(Exception):
    """Base error for a single failed request.

    The message is human readable and goes to the client as-is; ``code`` is
    the stable kind clients can branch on.
    """

    code = ErrorCode.INTERNAL_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_message(self) -> dict:
        return {"type": "error", "message": self.message, "code": self.code.value}


class Unauthorized(LobbyError):
    code = ErrorCode.UNAUTHORIZED
    default_message = "You are not logged in"


class Forbidden(LobbyError):
    code = ErrorCode.FORBIDDEN
    default_message = "You do not have admin rights"


class NotFound(LobbyError):
    code = ErrorCode.NOT_FOUND
    default_message = "Not found"


class RoomNotFound(NotFound):
    default_message = "Room not found"


class NotInRoom(NotFound):
    default_message = "You are not in this room"


class NotInAnyRoom(NotFound):
    default_message = "You are not in any room"


class PlayerNotFound(NotFound):
    default_message = "Player is not in any room"


class Conflict(LobbyError):
    code = ErrorCode.CONFLICT
    default_message = "Conflict"


class AlreadyInRoom(Conflict):
    default_message = "You are already in this room"


class RoomFull(Conflict):
    default_message = "Room is full"


class GameAlreadyStarted(Conflict):
    default_message = "Game has already started"


class NotEnoughPlayers(Conflict):
    default_message = "Not enough players to start the game"


class Banned(LobbyError):
    code = ErrorCode.BANNED
    default_message = "You are banned"


class InvalidRequest(LobbyError):
    code = ErrorCode.INVALID_REQUEST
    default_message = "Invalid message format"


class UnknownMessage(LobbyError):
    code = ErrorCode.UNKNOWN_MESSAGE
    default_message = "Unknown message type"
