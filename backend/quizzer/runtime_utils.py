from __future__ import annotations

import random
import time

from .runtime_constants import ROOM_CODE_CHARS, ROOM_CODE_LENGTH


def now_ms() -> int:
    return int(time.time() * 1000)


def random_room_code(rng: random.Random, length: int = ROOM_CODE_LENGTH) -> str:
    return "".join(rng.choice(ROOM_CODE_CHARS) for _ in range(length))


def sanitize_room_code(raw: str | None) -> str:
    return str(raw or "").strip().upper()


def shuffled(items: list, rng: random.Random) -> list:
    copy = list(items)
    rng.shuffle(copy)
    return copy
