from __future__ import annotations

from typing import TYPE_CHECKING

from .runtime_errors import GameNotStarted, NoActiveQuestion, RoomError
from .runtime_phase_flow import (
    advance_question,
    all_connected_answered,
    reveal_question,
    start_question_clock,
)
from .runtime_snapshot import serialize_room, serialize_viewer
from .runtime_types import User
from .schemas.messages import (
    AnswerMessage,
    ClientMessage,
    JoinAsViewerMessage,
    JoinMessage,
    LeaveMessage,
    NewGameMessage,
    NextQuestionMessage,
    RejoinMessage,
    StartMessage,
)

if TYPE_CHECKING:
    from .runtime import ConnectionHub
    from .runtime_types import ClientConnection, RoomChannel


async def handle_message(
    hub: "ConnectionHub",
    connection: "ClientConnection",
    channel: "RoomChannel",
    message: ClientMessage,
) -> None:
    registry = hub.registry
    code = channel.code

    if isinstance(message, JoinMessage):
        room = registry.join_room(
            code,
            User(
                player_id=message.playerId,
                username=message.username,
                profile_picture=message.profilePicture,
                mode=message.mode,
            ),
        )
        hub.bind(connection, channel, "player", message.playerId)
        await hub.send(connection.websocket, {"type": "roomState", "room": serialize_room(room)}, code)
        player = hub.player_payload(room, message.playerId)
        if player is not None:
            await hub.broadcast(channel, {"type": "playerJoined", "player": player}, exclude_id=message.playerId)
        hub._log_ws_event("join", roomCode=code, playerId=message.playerId, players=len(room.players))
        return

    if isinstance(message, JoinAsViewerMessage):
        room = registry.add_viewer(code, message.viewerId)
        hub.bind(connection, channel, "viewer", message.viewerId)
        await hub.send(connection.websocket, {"type": "roomState", "room": serialize_room(room)}, code)
        viewer = room.get_viewer(message.viewerId)
        if viewer is not None:
            await hub.broadcast(
                channel,
                {"type": "viewerJoined", "viewer": serialize_viewer(viewer)},
                exclude_id=message.viewerId,
                exclude_role="viewer",
            )
        hub._log_ws_event("join_viewer", roomCode=code, viewerId=message.viewerId)
        return

    if isinstance(message, RejoinMessage):
        try:
            room = registry.rejoin_room(code, message.playerId)
        except RoomError:
            raise RoomError("Could not rejoin room") from None
        hub.bind(connection, channel, "player", message.playerId)
        await hub.send(connection.websocket, {"type": "roomState", "room": serialize_room(room)}, code)
        await hub.broadcast(
            channel,
            {"type": "playerReconnected", "playerId": message.playerId},
            exclude_id=message.playerId,
        )
        hub._log_ws_event("rejoin", roomCode=code, playerId=message.playerId)
        return

    if isinstance(message, LeaveMessage):
        try:
            room = registry.leave_room(code, message.playerId)
        except RoomError:
            room = None
            left = False
        else:
            left = True
        if connection.room_code == code and connection.member_id == message.playerId:
            hub.unbind(connection)
        channel.players.pop(message.playerId, None)
        hub._log_ws_event("leave", roomCode=code, playerId=message.playerId, roomDeleted=left and room is None)
        if left:
            await hub.after_player_departure(channel, message.playerId, room)
        else:
            hub.release_if_idle(channel)
        return

    if isinstance(message, StartMessage):
        room = registry.start_game(code, message.gameId, message.timerDuration)
        await hub.broadcast(channel, {"type": "gameStarted", "room": serialize_room(room)})
        await start_question_clock(hub, channel, room.timer_duration)
        return

    if isinstance(message, AnswerMessage):
        if channel.clock in ("revealing", "game-over"):
            raise NoActiveQuestion()
        result = registry.submit_answer(code, message.playerId, message.answer)
        await hub.broadcast(channel, {"type": "playerAnswered", "playerId": message.playerId})
        if all_connected_answered(result.room):
            hub.cancel_timer(channel)
            await reveal_question(hub, channel)
        return

    if isinstance(message, NextQuestionMessage):
        room = registry.get_room(code)
        if room.game is None:
            raise GameNotStarted()
        await advance_question(hub, channel)
        return

    if isinstance(message, NewGameMessage):
        room = registry.reset_game(code)
        hub.cancel_timer(channel)
        channel.clock = "idle"
        await hub.broadcast(channel, {"type": "gameReset", "room": serialize_room(room)})
        hub._log_ws_event("reset", roomCode=code)
        return
