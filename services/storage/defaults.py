"""
Canonical default settings used as the merge baseline on every load.
"""

from __future__ import annotations

import copy
import uuid
from typing import Optional

from services.storage.schemas import SettingsDocument

_DEFAULT_SETTINGS: SettingsDocument = {
    "claudeExecutablePath": "claude",
    "logLevel": "info",
    "serverPort": 3001,
    "maxConversations": 10,
    "conversationTimeout": 3_600_000,
    "healthCheckInterval": 30_000,
    "interface": {
        "colorScheme": "auto",
        "language": "en",
        "notifications": {
            "enabled": True,
            "showOnSuccess": False,
            "showOnError": True,
            "showOnStart": True,
        },
    },
}


def generate_machine_id() -> str:
    """Return a new opaque installation identifier."""
    return uuid.uuid4().hex


def default_settings(machine_id: Optional[str] = None) -> SettingsDocument:
    """
    Return a fresh, deeply copied default document.

    A new ``machineId`` is generated unless one is supplied. Loaded values
    win over defaults during merge, so only the first persisted id sticks.
    """
    document: SettingsDocument = copy.deepcopy(_DEFAULT_SETTINGS)
    document["machineId"] = machine_id or generate_machine_id()
    return document
