from __future__ import annotations

from fastapi import APIRouter, WebSocket

from quizzer.runtime import runtime

router = APIRouter(tags=["websocket"])


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket) -> None:
    await runtime.handle_websocket(ws)
