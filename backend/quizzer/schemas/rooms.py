from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class CreateRoomRequest(BaseModel):
    playerId: str = Field(min_length=1, max_length=128)
    username: str = Field(min_length=1, max_length=64)
    profilePicture: str = Field(default="", max_length=2048)
    mode: Literal["pro", "kid"] = Field(default="pro")
