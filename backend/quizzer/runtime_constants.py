from __future__ import annotations

from .runtime_types import GameType

MAX_PLAYERS = 10
POINTS_PER_CORRECT = 100
DEFAULT_TIMER_DURATION = 15
MAX_TIMER_DURATION = 300
ROOM_CODE_LENGTH = 6
ROOM_CODE_ATTEMPTS = 10
# No I or O: they read as 1 and 0 when codes are typed by hand.
ROOM_CODE_CHARS = "ABCDEFGHJKLMNPQRSTUVWXYZ"
DISTRACTOR_COUNT = 3
GAME_TYPES: tuple[GameType, GameType] = ("multiple-choice", "autocomplete")
SERVICE_NAME = "quizzer-server"
