from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Any

from .runtime_constants import GAME_TYPES
from .runtime_errors import GameNotFound
from .runtime_types import Game, Question, QuizOption
from .runtime_utils import shuffled

logger = logging.getLogger(__name__)


def _sanitize_option(raw: Any) -> QuizOption | None:
    if not isinstance(raw, dict):
        return None
    option_id = str(raw.get("id") or "").strip()
    text = str(raw.get("text") or "").strip()
    if not option_id or not text:
        return None
    return QuizOption(id=option_id, text=text)


def _sanitize_question(raw: Any) -> Question | None:
    if not isinstance(raw, dict):
        return None

    try:
        question_id = int(raw.get("id"))
    except (TypeError, ValueError):
        return None

    text = str(raw.get("question") or "").strip()
    answer = str(raw.get("answer") or "").strip()
    if not text or not answer:
        return None

    return Question(
        id=question_id,
        question=text,
        type=str(raw.get("type") or "text").strip() or "text",
        answer=answer,
    )


def parse_game(payload: Any) -> Game | None:
    if not isinstance(payload, dict):
        return None

    game_id = str(payload.get("id") or "").strip()
    game_type = str(payload.get("type") or "").strip()
    if not game_id or game_type not in GAME_TYPES:
        return None

    questions_raw = payload.get("questions")
    if not isinstance(questions_raw, list):
        return None
    questions = [q for q in (_sanitize_question(item) for item in questions_raw) if q]
    if not questions:
        return None

    options_raw = payload.get("options")
    options = (
        [o for o in (_sanitize_option(item) for item in options_raw) if o]
        if isinstance(options_raw, list)
        else []
    )
    placeholder = payload.get("placeholder")

    return Game(
        id=game_id,
        title=str(payload.get("title") or game_id).strip(),
        image=str(payload.get("image") or "").strip(),
        type=game_type,  # type: ignore[arg-type]
        questions=questions,
        options=options,
        placeholder=str(placeholder) if placeholder is not None else None,
    )


class QuestionBank:
    def __init__(self, games: list[Game]) -> None:
        self._games: dict[str, Game] = {}
        for game in games:
            if game.id in self._games:
                logger.warning("Duplicate quiz id %s ignored", game.id)
                continue
            self._games[game.id] = game

    @classmethod
    def from_directory(cls, data_dir: Path) -> "QuestionBank":
        games: list[Game] = []
        for path in sorted(Path(data_dir).glob("*.json")):
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                logger.warning("Skipping unreadable quiz dataset %s", path, exc_info=True)
                continue
            game = parse_game(payload)
            if game is None:
                logger.warning("Skipping invalid quiz dataset %s", path)
                continue
            games.append(game)
        logger.info("Loaded %d quiz datasets from %s", len(games), data_dir)
        return cls(games)

    def list_previews(self) -> list[dict[str, Any]]:
        return [
            {
                "id": game.id,
                "title": game.title,
                "image": game.image,
                "questionsCount": len(game.questions),
            }
            for game in self._games.values()
        ]

    def load_game(self, game_id: str, rng: random.Random) -> Game:
        game = self._games.get(game_id)
        if game is None:
            raise GameNotFound()
        return Game(
            id=game.id,
            title=game.title,
            image=game.image,
            type=game.type,
            questions=shuffled(game.questions, rng),
            options=list(game.options),
            placeholder=game.placeholder,
        )
