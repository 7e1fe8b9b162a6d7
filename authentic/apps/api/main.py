"""FastAPI application entrypoint for the journaling companion."""

from __future__ import annotations

import logging

from authentic.libs.logging_utils import colorize, configure_logging

configure_logging()

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authentic import __version__
from authentic.apps.api.routes import chat, health, insights, reflection
from authentic.libs.schemas.settings import get_settings
from authentic.libs.store import StoreError

LOGGER = logging.getLogger(__name__)
SETTINGS = get_settings()

app = FastAPI(title=f"{SETTINGS.app_name} API", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        SETTINGS.app_url,
        "http://localhost:8081",
        "http://127.0.0.1:8081",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    LOGGER.error(
        colorize("store failure", "red"),
        extra={"event": "store_error", "path": request.url.path, "table": exc.table, "error": str(exc)},
    )
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": "storage unavailable"})


app.include_router(health.router)
app.include_router(reflection.router)
app.include_router(chat.router)
app.include_router(insights.router)

LOGGER.info(
    colorize("API ready", "cyan"),
    extra={"event": "startup", "environment": SETTINGS.environment, "model_chat": SETTINGS.model_chat},
)


__all__ = ["app"]
