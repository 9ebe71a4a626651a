"""
Application-wide dependency providers for the web service.

The functions declared here are meant to be used with FastAPI's dependency
injection framework while keeping instantiation logic in one place. Every
consumer receives the same ``ConfigStore`` handle; none of them touch the
settings file directly.
"""

from __future__ import annotations

from functools import lru_cache

from services.models.model_info import ModelInfoService
from services.notifications.dispatcher import NotificationService
from services.storage.settings_store import ConfigStore, get_config_store, reset_config_store


def get_store() -> ConfigStore:
    """Return the process-wide settings store."""
    return get_config_store()


@lru_cache(maxsize=1)
def get_model_info_service() -> ModelInfoService:
    """Provide a shared model resolver bound to the settings store."""
    return ModelInfoService(get_config_store())


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationService:
    """Provide a shared notification dispatcher without a push transport."""
    return NotificationService(get_config_store())


def reset_dependencies() -> None:
    """Drop cached providers and the store singleton (test isolation)."""
    get_model_info_service.cache_clear()
    get_notification_service.cache_clear()
    reset_config_store()
