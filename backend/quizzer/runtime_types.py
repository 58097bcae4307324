from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Literal

from fastapi import WebSocket

RoomStatus = Literal["waiting", "playing", "finished"]
PlayerMode = Literal["pro", "kid"]
GameType = Literal["multiple-choice", "autocomplete"]
ConnectionRole = Literal["player", "viewer"]
ClockState = Literal["idle", "counting", "revealing", "game-over"]


@dataclass(frozen=True)
class QuizOption:
    id: str
    text: str


@dataclass(frozen=True)
class Question:
    id: int
    question: str
    type: str
    answer: str


@dataclass
class Game:
    id: str
    title: str
    image: str
    type: GameType
    questions: list[Question]
    options: list[QuizOption] = field(default_factory=list)
    placeholder: str | None = None


@dataclass(frozen=True)
class User:
    player_id: str
    username: str
    profile_picture: str = ""
    mode: PlayerMode = "pro"


@dataclass
class Player:
    id: str
    username: str
    profile_picture: str
    mode: PlayerMode
    score: int = 0
    has_answered: bool = False
    is_connected: bool = True


@dataclass
class Viewer:
    id: str
    is_connected: bool = True


@dataclass
class QuestionView:
    id: int
    question: str
    type: str
    options: list[QuizOption]
    kid_options: list[QuizOption]
    placeholder: str | None
    question_number: int
    total_questions: int


@dataclass
class Room:
    code: str
    creator_id: str
    timer_duration: int
    status: RoomStatus = "waiting"
    players: list[Player] = field(default_factory=list)
    viewers: list[Viewer] = field(default_factory=list)
    current_question_index: int = 0
    current_question: QuestionView | None = None
    started_at: int | None = None
    game: Game | None = None

    def get_player(self, player_id: str) -> Player | None:
        return next((player for player in self.players if player.id == player_id), None)

    def get_viewer(self, viewer_id: str) -> Viewer | None:
        return next((viewer for viewer in self.viewers if viewer.id == viewer_id), None)

    def find_question(self, question_id: int) -> Question | None:
        if self.game is None:
            return None
        return next((q for q in self.game.questions if q.id == question_id), None)


@dataclass
class NextQuestionResult:
    room: Room
    question: QuestionView | None
    is_game_over: bool


@dataclass
class AnswerResult:
    room: Room
    is_correct: bool


@dataclass
class ClientConnection:
    websocket: WebSocket
    role: ConnectionRole | None = None
    room_code: str | None = None
    member_id: str | None = None


@dataclass
class RoomChannel:
    code: str
    players: dict[str, WebSocket] = field(default_factory=dict)
    viewers: dict[str, WebSocket] = field(default_factory=dict)
    timer: asyncio.Task[None] | None = None
    clock: ClockState = "idle"
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def is_idle(self) -> bool:
        return not self.players and not self.viewers

    def sockets(
        self,
        exclude_id: str | None = None,
        exclude_role: ConnectionRole = "player",
    ) -> list[tuple[str, WebSocket]]:
        skip_player = exclude_id if exclude_role == "player" else None
        skip_viewer = exclude_id if exclude_role == "viewer" else None
        targets = [(pid, ws) for pid, ws in self.players.items() if pid != skip_player]
        targets.extend((vid, ws) for vid, ws in self.viewers.items() if vid != skip_viewer)
        return targets

