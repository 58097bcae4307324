from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from quizzer.runtime_constants import DEFAULT_TIMER_DURATION, MAX_TIMER_DURATION


class RoomMessage(BaseModel):
    roomCode: str = Field(min_length=1, max_length=16)

    @field_validator("roomCode")
    @classmethod
    def normalize_room_code(cls, value: str) -> str:
        return value.strip().upper()


class JoinMessage(RoomMessage):
    type: Literal["join"]
    playerId: str = Field(min_length=1, max_length=128)
    username: str = Field(min_length=1, max_length=64)
    profilePicture: str = Field(default="", max_length=2048)
    mode: Literal["pro", "kid"] = "pro"


class JoinAsViewerMessage(RoomMessage):
    type: Literal["joinAsViewer"]
    viewerId: str = Field(min_length=1, max_length=128)


class RejoinMessage(RoomMessage):
    type: Literal["rejoin"]
    playerId: str = Field(min_length=1, max_length=128)


class LeaveMessage(RoomMessage):
    type: Literal["leave"]
    playerId: str = Field(min_length=1, max_length=128)


class StartMessage(RoomMessage):
    type: Literal["start"]
    gameId: str = Field(min_length=1, max_length=128)
    timerDuration: int = Field(default=DEFAULT_TIMER_DURATION, ge=1, le=MAX_TIMER_DURATION)


class AnswerMessage(RoomMessage):
    type: Literal["answer"]
    playerId: str = Field(min_length=1, max_length=128)
    answer: str = Field(max_length=256)


class NextQuestionMessage(RoomMessage):
    type: Literal["nextQuestion"]


class NewGameMessage(RoomMessage):
    type: Literal["newGame"]


ClientMessage = Annotated[
    Union[
        JoinMessage,
        JoinAsViewerMessage,
        RejoinMessage,
        LeaveMessage,
        StartMessage,
        AnswerMessage,
        NextQuestionMessage,
        NewGameMessage,
    ],
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def parse_client_message(raw: str | bytes) -> ClientMessage:
    return client_message_adapter.validate_json(raw)
