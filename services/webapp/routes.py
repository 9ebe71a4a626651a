"""
HTTP route handlers for the FastAPI web application.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, validator

import config
from services.logging_config import apply_log_level
from services.models.model_info import ModelInfoService
from services.storage.schemas import ColorScheme, LogLevel
from services.storage.settings_store import (
    ConfigStore,
    ConfigStoreError,
    StoreNotInitializedError,
)
from services.webapp.dependencies import get_model_info_service, get_store

logger = logging.getLogger(__name__)

router = APIRouter()

_LANGUAGE_CODE = re.compile(r"^[a-z]{2}$")


class ModelInfoPayload(BaseModel):
    value: str
    label: str
    description: str = ""


class NotificationSettingsPayload(BaseModel):
    enabled: Optional[bool] = None
    showOnSuccess: Optional[bool] = None
    showOnError: Optional[bool] = None
    showOnStart: Optional[bool] = None

    class Config:
        extra = "allow"


class InterfaceSettingsPayload(BaseModel):
    """Partial update of the interface section."""

    colorScheme: Optional[ColorScheme] = None
    language: Optional[str] = Field(None, description="ISO-639-1 language code (e.g. en).")
    notifications: Optional[NotificationSettingsPayload] = None

    class Config:
        extra = "allow"

    @validator("language")
    def _check_language(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        normalized = value.strip().lower()
        if not _LANGUAGE_CODE.match(normalized):
            raise ValueError("language must be a two-letter ISO-639-1 code.")
        return normalized


class SettingsPayload(BaseModel):
    """Partial update of the full settings document."""

    claudeExecutablePath: Optional[str] = None
    logLevel: Optional[LogLevel] = None
    serverPort: Optional[int] = Field(None, ge=1, le=65535)
    maxConversations: Optional[int] = Field(None, ge=1)
    conversationTimeout: Optional[int] = Field(None, ge=0, description="Milliseconds.")
    healthCheckInterval: Optional[int] = Field(None, ge=0, description="Milliseconds.")
    models: Optional[Dict[str, List[ModelInfoPayload]]] = None
    interface: Optional[InterfaceSettingsPayload] = None

    class Config:
        extra = "allow"


def _http_error(exc: ConfigStoreError) -> HTTPException:
    if isinstance(exc, StoreNotInitializedError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    logger.error("Settings update failed: %s", exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save settings.")


@router.get("/health", summary="Service health probe")
def health_check() -> dict:
    """Return a static payload for uptime checks."""
    return {"status": "ok"}


@router.get("/hello", summary="Greeting probe")
def hello() -> dict:
    return {"message": "Hello from CUI!"}


@router.get("/config", summary="Read the full settings document")
def read_config(store: ConfigStore = Depends(get_store)) -> dict:
    try:
        return store.get_config()
    except ConfigStoreError as exc:
        raise _http_error(exc) from exc


@router.put("/config", summary="Merge a partial settings document")
async def update_config(payload: SettingsPayload, store: ConfigStore = Depends(get_store)) -> dict:
    """Deep-merge the request body onto the stored settings and return the result."""
    changes = payload.dict(exclude_unset=True, exclude_none=True)
    try:
        await store.update_config(changes)
        document = store.get_config()
    except ConfigStoreError as exc:
        raise _http_error(exc) from exc
    if "logLevel" in changes:
        apply_log_level(document["logLevel"])
    return document


@router.get("/config/interface", summary="Read interface preferences")
def read_interface(store: ConfigStore = Depends(get_store)) -> dict:
    try:
        return store.get_interface()
    except ConfigStoreError as exc:
        raise _http_error(exc) from exc


@router.put("/config/interface", summary="Merge partial interface preferences")
async def update_interface(
    payload: InterfaceSettingsPayload,
    store: ConfigStore = Depends(get_store),
) -> dict:
    try:
        await store.update_interface(payload.dict(exclude_unset=True, exclude_none=True))
        return store.get_interface()
    except ConfigStoreError as exc:
        raise _http_error(exc) from exc


def _probe_cli(executable: str) -> tuple[str, str]:
    """Return ``(version, path)`` for the configured CLI, ``unknown`` on failure."""
    path = shutil.which(executable)
    if path is None:
        logger.warning("CLI executable %s not found on PATH.", executable)
        return "unknown", "unknown"
    try:
        completed = subprocess.run(
            [path, "--version"],
            capture_output=True,
            text=True,
            timeout=config.CLI_TIMEOUT_SECONDS,
            check=True,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("Failed to get CLI version information: %s", exc)
        return "unknown", path
    return completed.stdout.strip() or "unknown", path


@router.get("/system/status", summary="System status")
def system_status(store: ConfigStore = Depends(get_store)) -> dict:
    try:
        settings = store.get_config()
    except ConfigStoreError as exc:
        raise _http_error(exc) from exc
    version, path = _probe_cli(settings.get("claudeExecutablePath") or "claude")
    return {
        "claudeVersion": version,
        "claudePath": path,
        "configPath": str(store.path),
        "machineId": settings.get("machineId"),
    }


@router.get("/system/models", summary="Available models")
def list_models(service: ModelInfoService = Depends(get_model_info_service)) -> dict:
    data = service.get_model_data()
    logger.debug("Models retrieved: %d (from cache: %s)", len(data["models"]), data["fromCache"])
    return data


@router.post("/system/models/refresh", summary="Re-resolve the model list")
def refresh_models(
    use_cli: bool = False,
    service: ModelInfoService = Depends(get_model_info_service),
) -> dict:
    service.refresh_models(use_cli=use_cli)
    return service.get_model_data()
