from __future__ import annotations

from fastapi import APIRouter, HTTPException

from quizzer.runtime import runtime
from quizzer.runtime_constants import MAX_PLAYERS
from quizzer.runtime_errors import RoomCodeExhausted, RoomNotFound
from quizzer.runtime_snapshot import serialize_room
from quizzer.runtime_types import User
from quizzer.runtime_utils import sanitize_room_code
from quizzer.schemas.rooms import CreateRoomRequest

router = APIRouter(tags=["rooms"])


@router.post("/room/create")
async def create_room(payload: CreateRoomRequest) -> dict[str, object]:
    try:
        room = await runtime.create_room(
            User(
                player_id=payload.playerId,
                username=payload.username,
                profile_picture=payload.profilePicture,
                mode=payload.mode,
            )
        )
    except RoomCodeExhausted as exc:
        raise HTTPException(status_code=503, detail=exc.message) from exc
    return serialize_room(room)


@router.get("/room/{code}")
async def room_snapshot(code: str) -> dict[str, object]:
    try:
        room = runtime.registry.get_room(sanitize_room_code(code))
    except RoomNotFound as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return serialize_room(room)


@router.get("/room/{code}/exists")
async def room_exists(code: str) -> dict[str, object]:
    try:
        room = runtime.registry.get_room(sanitize_room_code(code))
    except RoomNotFound as exc:
        return {"exists": False, "canJoin": False, "error": exc.message}

    if room.status != "waiting":
        return {"exists": True, "canJoin": False, "error": "Game has already started"}
    if len(room.players) >= MAX_PLAYERS:
        return {"exists": True, "canJoin": False, "error": "Room is full"}

    return {"exists": True, "canJoin": True, "playerCount": len(room.players)}
