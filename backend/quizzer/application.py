from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quizzer.api.router import api_router
from quizzer.config import settings
from quizzer.runtime import runtime

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Quizzer Backend", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials="*" not in settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(api_router)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        logger.info("Shutting down, closing %d rooms", runtime.active_rooms_count)
        await runtime.shutdown()

    return app


app = create_app()
