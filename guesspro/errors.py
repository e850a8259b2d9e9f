"""Error taxonomy shared by the registries and the request boundary.

Every failure a client can trigger is a ``GameError`` carrying a stable
``code``, a human readable ``message`` and the HTTP ``status`` it maps to.
Blueprints render them as ``{"success": false, "error": code, "message": message}``.
"""


class GameError(Exception):
    code = 'GAME_ERROR'
    status = 400
    default_message = 'Request failed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'success': False, 'error': self.code, 'message': self.message}


class ValidationError(GameError):
    code = 'VALIDATION_ERROR'
    status = 400
    default_message = 'Invalid request'


class InvalidSession(GameError):
    code = 'INVALID_SESSION'
    status = 401
    default_message = 'Invalid or expired session'


class NotHost(GameError):
    code = 'NOT_HOST'
    status = 403
    default_message = 'Only the host may do that'


class RoomNotFound(GameError):
    code = 'ROOM_NOT_FOUND'
    status = 404
    default_message = 'Room not found'


class PlayerNotFound(GameError):
    code = 'PLAYER_NOT_FOUND'
    status = 404
    default_message = 'Player not found'


class RoomUnavailable(GameError):
    code = 'ROOM_UNAVAILABLE'
    status = 409
    default_message = 'Room is not available'


class RoomFull(GameError):
    code = 'ROOM_FULL'
    status = 409
    default_message = 'Room is full'


class AlreadyJoined(GameError):
    code = 'ALREADY_JOINED'
    status = 409
    default_message = 'Already in room'


class InvalidState(GameError):
    code = 'INVALID_STATE'
    status = 409
    default_message = 'Action not allowed in the current room state'


class NoGuessesLeft(GameError):
    code = 'NO_GUESSES_LEFT'
    status = 409
    default_message = 'No guesses left'


class CapacityExceeded(GameError):
    code = 'CAPACITY_EXCEEDED'
    status = 503
    default_message = 'Maximum sessions reached'


class DataUnavailable(GameError):
    code = 'DATA_UNAVAILABLE'
    status = 503
    default_message = 'Player data is unavailable'


class EmptyPool(GameError):
    code = 'EMPTY_POOL'
    status = 503
    default_message = 'No players available for this difficulty'


class NoTarget(GameError):
    # Unreachable through the state machine; surfaced as a server error.
    code = 'NO_TARGET'
    status = 500
    default_message = 'Target player not set'
