from __future__ import annotations


class GameError(Exception):
    """Base class for rejected actions.

    ``user_visible`` errors are reported back to the requesting client;
    the rest are dropped silently by the dispatch layer.
    """

    code = "game_error"
    message = "Action not allowed"
    user_visible = True

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class RoomNotFound(GameError):
    code = "room_not_found"
    message = "Room not found"


class RoomFull(GameError):
    code = "room_full"
    message = "Room is full"


class GameInProgress(GameError):
    code = "game_in_progress"
    message = "Game already in progress"


class InsufficientPlayers(GameError):
    code = "insufficient_players"
    message = "Need at least 4 players to start"


class NotHost(GameError):
    code = "only_host"
    message = "Only the host can start the game"


class InvalidPayload(GameError):
    code = "invalid_payload"
    message = "Invalid request"


class PreconditionUnmet(GameError):
    code = "precondition_unmet"
    user_visible = False


class KillOnCooldown(PreconditionUnmet):
    code = "kill_cooldown"
    user_visible = True

    def __init__(self, remaining_sec: int) -> None:
        super().__init__(f"Kill on cooldown ({remaining_sec}s)")
        self.remaining_sec = remaining_sec
