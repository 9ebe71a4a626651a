"""
Typed shapes of the persisted settings document.

The on-disk JSON keeps camelCase keys, so the TypedDicts mirror them
verbatim. ``Partial*`` variants are used for update requests: a key that is
absent means "leave unchanged", an empty nested mapping means "present but
nothing to change".
"""

from __future__ import annotations

from typing import Dict, List, Literal, TypedDict

LogLevel = Literal["debug", "info", "warn", "error"]
ColorScheme = Literal["auto", "light", "dark", "system"]


class ModelInfo(TypedDict):
    value: str
    label: str
    description: str


class NotificationSettings(TypedDict, total=False):
    """Push notification toggles; unknown legacy keys are kept as-is."""

    enabled: bool
    showOnSuccess: bool
    showOnError: bool
    showOnStart: bool


class InterfaceSettings(TypedDict, total=False):
    colorScheme: ColorScheme
    language: str
    notifications: NotificationSettings


class SettingsDocument(TypedDict, total=False):
    claudeExecutablePath: str
    logLevel: LogLevel
    serverPort: int
    maxConversations: int
    conversationTimeout: int
    healthCheckInterval: int
    machineId: str
    models: Dict[str, List[ModelInfo]]
    interface: InterfaceSettings


class PartialNotificationSettings(TypedDict, total=False):
    enabled: bool
    showOnSuccess: bool
    showOnError: bool
    showOnStart: bool


class PartialInterfaceSettings(TypedDict, total=False):
    colorScheme: ColorScheme
    language: str
    notifications: PartialNotificationSettings


class PartialSettingsDocument(TypedDict, total=False):
    claudeExecutablePath: str
    logLevel: LogLevel
    serverPort: int
    maxConversations: int
    conversationTimeout: int
    healthCheckInterval: int
    machineId: str
    models: Dict[str, List[ModelInfo]]
    interface: PartialInterfaceSettings


