from __future__ import annotations

import random

from .runtime_constants import DISTRACTOR_COUNT
from .runtime_errors import QuestionViewError
from .runtime_types import Game, Question, QuestionView, QuizOption


def build_choice_options(game: Game, question: Question, rng: random.Random) -> list[QuizOption]:
    correct = next((option for option in game.options if option.id == question.answer), None)
    if correct is None:
        raise QuestionViewError(f"Correct option {question.answer!r} missing from quiz {game.id}")

    wrong_pool = [option for option in game.options if option.id != question.answer]
    if len(wrong_pool) < DISTRACTOR_COUNT:
        raise QuestionViewError(f"Quiz {game.id} has too few options for distractors")

    choices = [correct, *rng.sample(wrong_pool, DISTRACTOR_COUNT)]
    rng.shuffle(choices)
    return choices


def _kid_options(game: Game, question: Question, rng: random.Random) -> list[QuizOption]:
    if game.type == "multiple-choice":
        return build_choice_options(game, question, rng)
    try:
        return build_choice_options(game, question, rng)
    except QuestionViewError:
        return []


def build_question_view(game: Game, index: int, rng: random.Random) -> QuestionView:
    if index < 0 or index >= len(game.questions):
        raise QuestionViewError()

    question = game.questions[index]
    kid_options = _kid_options(game, question, rng)
    if game.type == "multiple-choice":
        options = kid_options
    else:
        options = list(game.options)

    return QuestionView(
        id=question.id,
        question=question.question,
        type=question.type,
        options=options,
        kid_options=kid_options,
        placeholder=game.placeholder if game.type == "autocomplete" else None,
        question_number=index + 1,
        total_questions=len(game.questions),
    )
