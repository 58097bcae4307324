from __future__ import annotations

import logging
import random
from typing import Callable

from .question_bank import QuestionBank
from .runtime_constants import (
    DEFAULT_TIMER_DURATION,
    MAX_PLAYERS,
    POINTS_PER_CORRECT,
    ROOM_CODE_ATTEMPTS,
)
from .runtime_errors import (
    AlreadyAnswered,
    GameAlreadyStarted,
    GameNotStarted,
    NoActiveQuestion,
    PlayerNotFound,
    QuestionViewError,
    RoomCodeExhausted,
    RoomFull,
    RoomNotFound,
)
from .runtime_questions import build_question_view
from .runtime_store import InMemoryRoomStore, RoomStore
from .runtime_types import AnswerResult, NextQuestionResult, Player, Room, User, Viewer
from .runtime_utils import now_ms, random_room_code

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Owns every live room; each method applies one whole state transition.

    Methods never await, so on a single event loop each call is atomic with
    respect to other coroutines. Callers that chain several calls with
    awaits in between (the connection hub) serialize per room themselves.
    """

    def __init__(
        self,
        question_bank: QuestionBank,
        *,
        store: RoomStore | None = None,
        rng: random.Random | None = None,
        code_factory: Callable[[], str] | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.question_bank = question_bank
        self.store: RoomStore = store if store is not None else InMemoryRoomStore()
        self.rng = rng or random.Random()
        self._code_factory = code_factory or (lambda: random_room_code(self.rng))
        self._clock = clock

    def __len__(self) -> int:
        return len(self.store)

    def _generate_code(self) -> str:
        for _ in range(ROOM_CODE_ATTEMPTS):
            code = self._code_factory()
            if code not in self.store:
                return code
            logger.warning("Room code collision on %s, retrying", code)
        raise RoomCodeExhausted()

    def create_room(self, creator_id: str) -> Room:
        room = Room(
            code=self._generate_code(),
            creator_id=creator_id,
            timer_duration=DEFAULT_TIMER_DURATION,
        )
        self.store.save(room)
        logger.info("Created room %s for creator %s", room.code, creator_id)
        return room

    def get_room(self, code: str) -> Room:
        room = self.store.get(code)
        if room is None:
            raise RoomNotFound()
        return room

    def _get_player(self, room: Room, player_id: str) -> Player:
        player = room.get_player(player_id)
        if player is None:
            raise PlayerNotFound()
        return player

    def join_room(self, code: str, user: User) -> Room:
        room = self.get_room(code)
        if room.status != "waiting":
            raise GameAlreadyStarted()
        if len(room.players) >= MAX_PLAYERS:
            raise RoomFull()

        existing = room.get_player(user.player_id)
        if existing is not None:
            # Joining again with a known id refreshes the profile and wipes the score.
            existing.is_connected = True
            existing.username = user.username
            existing.profile_picture = user.profile_picture
            existing.mode = user.mode
            existing.has_answered = False
            existing.score = 0
        else:
            room.players.append(
                Player(
                    id=user.player_id,
                    username=user.username,
                    profile_picture=user.profile_picture,
                    mode=user.mode,
                )
            )
        self.store.save(room)
        return room

    def rejoin_room(self, code: str, player_id: str) -> Room:
        room = self.get_room(code)
        player = self._get_player(room, player_id)
        player.is_connected = True
        self.store.save(room)
        return room

    def leave_room(self, code: str, player_id: str) -> Room | None:
        """Returns the room, or None when the last waiting player left and it was deleted."""
        room = self.get_room(code)
        player = self._get_player(room, player_id)

        if room.status != "waiting":
            player.is_connected = False
            self.store.save(room)
            return room

        room.players = [player for player in room.players if player.id != player_id]
        if not room.players:
            self.store.delete(code)
            logger.info("Room %s deleted after last player left", code)
            return None

        if room.creator_id == player_id:
            room.creator_id = room.players[0].id
            logger.info("Room %s creator passed to %s", code, room.creator_id)
        self.store.save(room)
        return room

    def add_viewer(self, code: str, viewer_id: str) -> Room:
        room = self.get_room(code)
        viewer = room.get_viewer(viewer_id)
        if viewer is None:
            room.viewers.append(Viewer(id=viewer_id))
        else:
            viewer.is_connected = True
        self.store.save(room)
        return room

    def disconnect_viewer(self, code: str, viewer_id: str) -> Room:
        room = self.get_room(code)
        viewer = room.get_viewer(viewer_id)
        if viewer is not None:
            viewer.is_connected = False
            self.store.save(room)
        return room

    def start_game(self, code: str, game_id: str, timer_duration: int = DEFAULT_TIMER_DURATION) -> Room:
        room = self.get_room(code)
        if room.status != "waiting":
            raise GameAlreadyStarted()

        game = self.question_bank.load_game(game_id, self.rng)
        question = build_question_view(game, 0, self.rng)

        room.game = game
        room.status = "playing"
        room.started_at = self._clock()
        room.current_question_index = 0
        room.timer_duration = timer_duration
        room.current_question = question
        for player in room.players:
            player.has_answered = False
        self.store.save(room)
        logger.info("Room %s started quiz %s (%d questions)", code, game.id, len(game.questions))
        return room

    def submit_answer(self, code: str, player_id: str, answer: str) -> AnswerResult:
        room = self.get_room(code)
        if room.status != "playing" or room.current_question is None:
            raise NoActiveQuestion()
        player = self._get_player(room, player_id)
        if player.has_answered:
            raise AlreadyAnswered()

        question = room.find_question(room.current_question.id)
        is_correct = question is not None and question.answer == answer
        if is_correct:
            player.score += POINTS_PER_CORRECT
        player.has_answered = True
        self.store.save(room)
        return AnswerResult(room=room, is_correct=is_correct)

    def next_question(self, code: str) -> NextQuestionResult:
        room = self.get_room(code)
        if room.game is None:
            raise GameNotStarted()

        room.current_question_index += 1
        if room.current_question_index >= len(room.game.questions):
            return self._finish(room)

        for player in room.players:
            player.has_answered = False
        try:
            question = build_question_view(room.game, room.current_question_index, self.rng)
        except QuestionViewError:
            logger.warning(
                "Room %s could not build question %d, ending game",
                code,
                room.current_question_index,
                exc_info=True,
            )
            return self._finish(room)

        room.current_question = question
        self.store.save(room)
        return NextQuestionResult(room=room, question=question, is_game_over=False)

    def _finish(self, room: Room) -> NextQuestionResult:
        room.status = "finished"
        room.current_question = None
        self.store.save(room)
        return NextQuestionResult(room=room, question=None, is_game_over=True)

    def get_correct_answer(self, code: str, question_id: int) -> str | None:
        room = self.get_room(code)
        question = room.find_question(question_id)
        return question.answer if question is not None else None

    def reset_game(self, code: str) -> Room:
        room = self.get_room(code)
        room.status = "waiting"
        room.game = None
        room.current_question_index = 0
        room.current_question = None
        room.started_at = None
        for player in room.players:
            player.has_answered = False
            player.score = 0
        self.store.save(room)
        logger.info("Room %s reset", code)
        return room

    def close(self) -> None:
        self.store.clear()
