"""
Entrypoint for the CUI settings web service.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from services.logging_config import apply_log_level
from services.webapp import routes
from services.webapp.dependencies import get_model_info_service, get_store

app = FastAPI(
    title="cui-settings",
    description="Settings store and system endpoints for the CUI server",
    version="0.1.0",
)

logger = logging.getLogger(__name__)

app.include_router(routes.router, prefix="/api")


@app.on_event("startup")
async def _startup() -> None:
    store = get_store()
    await store.initialize()
    apply_log_level(store.get_config().get("logLevel", "info"))
    logger.info("Settings loaded from %s.", store.path)
    get_model_info_service().initialize()
