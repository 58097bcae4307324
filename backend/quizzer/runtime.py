from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from .config import settings
from .question_bank import QuestionBank
from .runtime_errors import RoomError, RoomNotFound
from .runtime_message_handlers import handle_message as handle_room_message
from .runtime_phase_flow import (
    all_connected_answered,
    reveal_question as reveal_room_question,
)
from .runtime_registry import RoomRegistry
from .runtime_snapshot import serialize_player
from .runtime_types import ClientConnection, ConnectionRole, Room, RoomChannel, User
from .schemas.messages import ClientMessage, LeaveMessage, parse_client_message

logger = logging.getLogger(__name__)


class ConnectionHub:
    def __init__(
        self,
        registry: RoomRegistry,
        *,
        tick_ms: int = 1000,
        reveal_pause_ms: int = 2000,
        send_timeout_ms: int = 2000,
    ) -> None:
        self.registry = registry
        self.channels: dict[str, RoomChannel] = {}
        self.tick_seconds = max(0.001, tick_ms / 1000)
        self.reveal_pause_seconds = max(0.0, reveal_pause_ms / 1000)
        self.send_timeout_seconds = max(0.01, send_timeout_ms / 1000)

    @property
    def active_rooms_count(self) -> int:
        return len(self.registry)

    def _log_ws_event(self, event: str, level: int = logging.INFO, **fields: object) -> None:
        logger.log(
            level,
            "ws.%s %s",
            event,
            json.dumps(fields, ensure_ascii=False, separators=(",", ":"), default=str),
        )

    def channel_for(self, code: str) -> RoomChannel | None:
        channel = self.channels.get(code)
        if channel is None and code in self.registry.store:
            channel = RoomChannel(code=code)
            self.channels[code] = channel
        return channel

    async def create_room(self, user: User) -> Room:
        room = self.registry.create_room(user.player_id)
        room = self.registry.join_room(room.code, user)
        self._log_ws_event("room_created", roomCode=room.code, creatorId=user.player_id)
        return room

    async def shutdown(self) -> None:
        channels = list(self.channels.values())
        self.channels.clear()
        for channel in channels:
            self.cancel_timer(channel)
        self.registry.close()

    async def handle_websocket(self, websocket: WebSocket) -> None:
        await websocket.accept()
        connection = ClientConnection(websocket=websocket)
        self._log_ws_event("connect")

        disconnect_code: int | None = None
        disconnect_reason = "unknown"
        try:
            while True:
                raw = await websocket.receive_text()
                await self.handle_raw(connection, raw)
        except WebSocketDisconnect as exc:
            disconnect_code = exc.code
            disconnect_reason = "websocket_disconnect"
        except Exception:
            disconnect_reason = "server_error"
            logger.exception(
                "Unexpected websocket error for room %s member %s",
                connection.room_code,
                connection.member_id,
            )
        finally:
            await self.handle_disconnect(connection, reason=disconnect_reason, close_code=disconnect_code)

    async def handle_raw(self, connection: ClientConnection, raw: str | bytes) -> None:
        try:
            message = parse_client_message(raw)
        except ValidationError:
            await self.send_error(connection.websocket, "Invalid message format")
            return
        await self.dispatch(connection, message)

    async def dispatch(self, connection: ClientConnection, message: ClientMessage) -> None:
        channel = self.channel_for(message.roomCode)
        try:
            if channel is None:
                if isinstance(message, LeaveMessage):
                    self.unbind(connection)
                    return
                raise RoomNotFound()
            async with channel.lock:
                await handle_room_message(self, connection, channel, message)
        except RoomError as exc:
            await self.send_error(connection.websocket, exc.message)
        except Exception:
            logger.exception("Failed to handle %s for room %s", message.type, message.roomCode)
            await self.send_error(connection.websocket, "Internal error")

    async def handle_disconnect(
        self,
        connection: ClientConnection,
        reason: str = "unknown",
        close_code: int | None = None,
    ) -> None:
        role, code, member_id = connection.role, connection.room_code, connection.member_id
        if role is None or code is None or member_id is None:
            return
        channel = self.channels.get(code)
        if channel is None:
            connection.role = connection.room_code = connection.member_id = None
            return

        async with channel.lock:
            sockets = channel.players if role == "player" else channel.viewers
            if sockets.get(member_id) is not connection.websocket:
                # Superseded by a newer socket for the same id.
                self._log_ws_event(
                    "disconnect_stale_ignored",
                    roomCode=code,
                    memberId=member_id,
                    role=role,
                    reason=reason,
                    closeCode=close_code,
                )
                connection.role = connection.room_code = connection.member_id = None
                return

            self.unbind(connection)
            self._log_ws_event(
                "disconnect",
                roomCode=code,
                memberId=member_id,
                role=role,
                reason=reason,
                closeCode=close_code,
            )

            if role == "viewer":
                try:
                    self.registry.disconnect_viewer(code, member_id)
                except RoomError as exc:
                    logger.debug("Viewer disconnect ignored for room %s: %s", code, exc.message)
                return

            try:
                room = self.registry.leave_room(code, member_id)
            except RoomError as exc:
                logger.debug("Leave on disconnect failed for room %s: %s", code, exc.message)
                room = None
            await self.after_player_departure(channel, member_id, room)

    async def after_player_departure(self, channel: RoomChannel, player_id: str, room: Room | None) -> None:
        await self.broadcast(channel, {"type": "playerLeft", "playerId": player_id})

        if channel.code not in self.registry.store:
            self.drop_channel(channel)
            return
        if self.release_if_idle(channel):
            return
        # A reveal pause owns the timer slot until it advances.
        if channel.clock != "counting":
            return
        if room is not None and room.status == "playing" and all_connected_answered(room):
            self.cancel_timer(channel)
            await reveal_room_question(self, channel)

    def bind(
        self,
        connection: ClientConnection,
        channel: RoomChannel,
        role: ConnectionRole,
        member_id: str,
    ) -> None:
        if (connection.room_code, connection.member_id, connection.role) != (channel.code, member_id, role):
            self.unbind(connection, release=connection.room_code != channel.code)

        sockets = channel.players if role == "player" else channel.viewers
        previous = sockets.get(member_id)
        if previous is not None and previous is not connection.websocket:
            self._log_ws_event("connect_handoff", roomCode=channel.code, memberId=member_id, role=role)
        sockets[member_id] = connection.websocket
        connection.role = role
        connection.room_code = channel.code
        connection.member_id = member_id

    def unbind(self, connection: ClientConnection, release: bool = True) -> None:
        role, code, member_id = connection.role, connection.room_code, connection.member_id
        connection.role = connection.room_code = connection.member_id = None
        if role is None or code is None or member_id is None:
            return
        channel = self.channels.get(code)
        if channel is None:
            return
        sockets = channel.players if role == "player" else channel.viewers
        if sockets.get(member_id) is connection.websocket:
            sockets.pop(member_id, None)
        if release:
            self.release_if_idle(channel)

    def release_if_idle(self, channel: RoomChannel) -> bool:
        if not channel.is_idle:
            return False
        if channel.timer is not None:
            self._log_ws_event("timer_released", roomCode=channel.code)
        self.cancel_timer(channel)
        channel.clock = "idle"
        return True

    def drop_channel(self, channel: RoomChannel) -> None:
        self.cancel_timer(channel)
        if self.channels.get(channel.code) is channel:
            self.channels.pop(channel.code, None)
        self._log_ws_event("room_closed", roomCode=channel.code)

    def cancel_timer(self, channel: RoomChannel) -> None:
        task = channel.timer
        channel.timer = None
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            return
        task.cancel()

    def schedule_timer(self, channel: RoomChannel, coro_factory: Callable[[], Awaitable[None]], name: str) -> None:
        self.cancel_timer(channel)

        async def runner() -> None:
            try:
                await coro_factory()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Timer %s failed for room %s", name, channel.code)

        channel.timer = asyncio.create_task(runner(), name=f"{channel.code}:{name}")

    def is_current_timer(self, channel: RoomChannel) -> bool:
        return channel.timer is not None and channel.timer is asyncio.current_task()

    async def send_error(self, websocket: WebSocket, message: str) -> None:
        await self._send_safe(websocket, {"type": "error", "message": message})

    async def send(self, websocket: WebSocket, data: dict[str, Any], room_code: str | None = None) -> None:
        await self._send_safe(websocket, data, room_code=room_code)

    async def broadcast(
        self,
        channel: RoomChannel,
        data: dict[str, Any],
        exclude_id: str | None = None,
        exclude_role: ConnectionRole = "player",
    ) -> None:
        targets = channel.sockets(exclude_id, exclude_role)
        if not targets:
            return
        await asyncio.gather(
            *(
                self._send_safe(websocket, data, room_code=channel.code, member_id=member_id)
                for member_id, websocket in targets
            )
        )

    async def _send_safe(
        self,
        websocket: WebSocket,
        data: dict[str, Any],
        room_code: str | None = None,
        member_id: str | None = None,
    ) -> None:
        try:
            await asyncio.wait_for(websocket.send_json(data), timeout=self.send_timeout_seconds)
        except Exception as exc:
            # Connection may already be closed.
            logger.debug(
                "[SEND_FAIL] room=%s member=%s type=%s reason=%s",
                room_code or "-",
                member_id or "-",
                data.get("type"),
                repr(exc),
            )

    def player_payload(self, room: Room, player_id: str) -> dict[str, Any] | None:
        player = room.get_player(player_id)
        return serialize_player(player) if player is not None else None


question_bank = QuestionBank.from_directory(settings.quiz_data_dir)
registry = RoomRegistry(question_bank)
runtime = ConnectionHub(
    registry,
    tick_ms=settings.question_tick_ms,
    reveal_pause_ms=settings.reveal_pause_ms,
    send_timeout_ms=settings.send_timeout_ms,
)
