from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import config as config_router, events, pull, tags
from .core.dependencies import get_config_service

app = FastAPI(
    title="Telemetry Pull Service",
    version="0.1.0",
)

logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(config_router.router)
app.include_router(pull.router)
app.include_router(tags.router)
app.include_router(events.router)


@app.on_event("startup")
async def startup_event() -> None:
    logger.info("Starting up application; loading configuration")
    config = get_config_service().load()
    logger.info("Telemetry endpoint: %s", config.telemetry.base_url)
    if not config.telemetry.api_key:
        logger.warning("No telemetry API key configured; requests must send X-API-Key")
    logger.info("Startup initialization complete")


@app.get("/health")
async def health():
    return {"status": "ok"}
