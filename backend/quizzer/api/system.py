from __future__ import annotations

from fastapi import APIRouter

from quizzer.runtime import runtime
from quizzer.runtime_constants import SERVICE_NAME

router = APIRouter(tags=["system"])


@router.get("/health")
async def health() -> dict[str, object]:
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "activeRooms": runtime.active_rooms_count,
    }


@router.get("/games")
async def list_games() -> list[dict[str, object]]:
    return runtime.registry.question_bank.list_previews()
