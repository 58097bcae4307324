from __future__ import annotations

from typing import Any

from .runtime_types import Player, QuestionView, QuizOption, Room, Viewer


def serialize_option(option: QuizOption) -> dict[str, str]:
    return {"id": option.id, "text": option.text}


def serialize_player(player: Player) -> dict[str, Any]:
    return {
        "id": player.id,
        "username": player.username,
        "profilePicture": player.profile_picture,
        "mode": player.mode,
        "score": player.score,
        "hasAnswered": player.has_answered,
        "isConnected": player.is_connected,
    }


def serialize_viewer(viewer: Viewer) -> dict[str, Any]:
    return {"id": viewer.id, "isConnected": viewer.is_connected}


def serialize_question(view: QuestionView | None) -> dict[str, Any] | None:
    if view is None:
        return None
    return {
        "id": view.id,
        "question": view.question,
        "type": view.type,
        "options": [serialize_option(option) for option in view.options],
        "kidOptions": [serialize_option(option) for option in view.kid_options],
        "placeholder": view.placeholder,
        "questionNumber": view.question_number,
        "totalQuestions": view.total_questions,
    }


def serialize_room(room: Room) -> dict[str, Any]:
    game_preview = None
    if room.game is not None:
        game_preview = {
            "id": room.game.id,
            "title": room.game.title,
            "image": room.game.image,
            "questionsCount": len(room.game.questions),
        }

    return {
        "code": room.code,
        "game": game_preview,
        "creatorId": room.creator_id,
        "timerDuration": room.timer_duration,
        "players": [serialize_player(player) for player in room.players],
        "viewers": [serialize_viewer(viewer) for viewer in room.viewers],
        "status": room.status,
        "currentQuestionIndex": room.current_question_index,
        "currentQuestion": serialize_question(room.current_question),
        "startedAt": room.started_at,
    }


def build_score_map(room: Room) -> dict[str, int]:
    return {player.id: player.score for player in room.players}


def build_final_scores(room: Room) -> list[dict[str, Any]]:
    ranked = sorted(room.players, key=lambda player: player.score, reverse=True)
    return [serialize_player(player) for player in ranked]
