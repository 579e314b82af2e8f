class GameError(Exception):
    """Base class for errors raised by the room engine."""

    reason = "game_error"


class RoomNotFound(GameError):
    reason = "room_not_found"

    def __init__(self, code: str):
        super().__init__(f"Room {code!r} not found.")
        self.code = code


class RoomFull(GameError):
    reason = "room_full"


class IllegalTransition(GameError):
    """An event that is not valid for the current phase or sender.

    Raised by the reducers and dropped at the event boundary.
    """

    reason = "illegal_transition"


class InvariantViolation(RuntimeError):
    """A state the engine must never reach (two live timers, absent drawer)."""
