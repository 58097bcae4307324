from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATA_DIR = Path(__file__).resolve().parent / "data"


class Settings:
    def __init__(self) -> None:
        self.port = int(os.getenv("PORT", "3001"))
        self.allowed_origins = [
            origin.strip()
            for origin in os.getenv("ALLOWED_ORIGIN", "*").split(",")
            if origin.strip()
        ] or ["*"]
        self.quiz_data_dir = Path(
            os.getenv("QUIZ_DATA_DIR", "").strip() or DEFAULT_DATA_DIR
        )
        self.question_tick_ms = max(10, int(os.getenv("QUESTION_TICK_MS", "1000")))
        self.reveal_pause_ms = max(0, int(os.getenv("REVEAL_PAUSE_MS", "2000")))
        self.send_timeout_ms = max(100, int(os.getenv("SEND_TIMEOUT_MS", "2000")))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"


settings = Settings()
