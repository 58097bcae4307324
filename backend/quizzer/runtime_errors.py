from __future__ import annotations


class RoomError(Exception):
    message = "Unknown error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class RoomNotFound(RoomError):
    message = "Room not found"


class PlayerNotFound(RoomError):
    message = "Player not found"


class RoomFull(RoomError):
    message = "Room is full"


class GameAlreadyStarted(RoomError):
    message = "Game has already started"


class GameNotStarted(RoomError):
    message = "Game not loaded"


class NoActiveQuestion(RoomError):
    message = "No active question"


class AlreadyAnswered(RoomError):
    message = "Already answered"


class RoomCodeExhausted(RoomError):
    message = "Could not generate room code"


class GameNotFound(RoomError):
    message = "Game not found"


class QuestionViewError(RoomError):
    message = "No more questions available"
