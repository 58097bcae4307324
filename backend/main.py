from __future__ import annotations

import logging

from quizzer.config import settings

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

from quizzer.application import app  # noqa: E402

__all__ = ["app"]
