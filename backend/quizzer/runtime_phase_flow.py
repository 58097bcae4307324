from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .runtime_errors import RoomError
from .runtime_snapshot import build_final_scores, build_score_map, serialize_question

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .runtime import ConnectionHub
    from .runtime_types import Room, RoomChannel


def all_connected_answered(room: "Room") -> bool:
    return all(player.has_answered for player in room.players if player.is_connected)


async def start_question_clock(hub: "ConnectionHub", channel: "RoomChannel", duration: int) -> None:
    hub.cancel_timer(channel)
    channel.clock = "counting"
    await hub.broadcast(channel, {"type": "timerTick", "timeLeft": duration})

    async def countdown() -> None:
        time_left = duration
        while True:
            await asyncio.sleep(hub.tick_seconds)
            async with channel.lock:
                if not hub.is_current_timer(channel):
                    return
                time_left -= 1
                await hub.broadcast(channel, {"type": "timerTick", "timeLeft": max(0, time_left)})
                if time_left <= 0:
                    channel.timer = None
                    await reveal_question(hub, channel)
                    return

    hub.schedule_timer(channel, countdown, "question")
    hub._log_ws_event("timer_armed", roomCode=channel.code, duration=duration)


async def reveal_question(hub: "ConnectionHub", channel: "RoomChannel") -> None:
    if channel.clock in ("revealing", "game-over"):
        return

    try:
        room = hub.registry.get_room(channel.code)
    except RoomError:
        return
    if room.status != "playing" or room.current_question is None:
        return

    hub.cancel_timer(channel)
    channel.clock = "revealing"
    correct_answer = hub.registry.get_correct_answer(channel.code, room.current_question.id)
    await hub.broadcast(
        channel,
        {
            "type": "questionResult",
            "correctAnswer": correct_answer or "",
            "scores": build_score_map(room),
        },
    )
    hub._log_ws_event(
        "reveal",
        roomCode=channel.code,
        questionNumber=room.current_question.question_number,
    )

    async def pause_then_advance() -> None:
        await asyncio.sleep(hub.reveal_pause_seconds)
        async with channel.lock:
            if not hub.is_current_timer(channel):
                return
            channel.timer = None
            await advance_question(hub, channel)

    hub.schedule_timer(channel, pause_then_advance, "reveal")


async def advance_question(hub: "ConnectionHub", channel: "RoomChannel") -> None:
    hub.cancel_timer(channel)
    try:
        result = hub.registry.next_question(channel.code)
    except RoomError as exc:
        logger.info("advance_question skipped room=%s reason=%s", channel.code, exc.message)
        return

    if result.is_game_over or result.question is None:
        await finish_game(hub, channel, result.room)
        return

    await hub.broadcast(channel, {"type": "newQuestion", "question": serialize_question(result.question)})
    await start_question_clock(hub, channel, result.room.timer_duration)


async def finish_game(hub: "ConnectionHub", channel: "RoomChannel", room: "Room") -> None:
    hub.cancel_timer(channel)
    channel.clock = "game-over"
    await hub.broadcast(channel, {"type": "gameEnded", "finalScores": build_final_scores(room)})
    hub._log_ws_event("game_over", roomCode=channel.code, players=len(room.players))
