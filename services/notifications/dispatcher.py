"""
Browser push notifications gated by the interface notification settings.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from services.storage.settings_store import ConfigStore, ConfigStoreError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PermissionRequest:
    """A tool invocation waiting for user approval."""

    id: str
    tool_name: str
    streaming_id: str
    tool_input: Dict[str, Any] = field(default_factory=dict)


class PushTransport(Protocol):
    """Delivery channel for push payloads (e.g. Web Push subscriptions)."""

    @property
    def enabled(self) -> bool:
        """Whether the transport is able to deliver notifications."""

    async def initialize(self) -> None:
        """Prepare keys or subscriptions before the first broadcast."""

    async def broadcast(self, payload: Dict[str, Any]) -> None:
        """Send the payload to every subscriber."""


class NotificationService:
    """Sends push notifications when the user has enabled them."""

    def __init__(self, store: ConfigStore, transport: PushTransport | None = None) -> None:
        self._store = store
        self._transport = transport

    def is_enabled(self) -> bool:
        try:
            interface = self._store.get_interface()
        except ConfigStoreError as exc:
            logger.debug("Notification settings unavailable: %s", exc)
            return False
        notifications = interface.get("notifications") if isinstance(interface, dict) else None
        if not isinstance(notifications, dict):
            return False
        return bool(notifications.get("enabled", False))

    async def send_permission_notification(
        self,
        request: PermissionRequest,
        session_id: Optional[str] = None,
        summary: Optional[str] = None,
    ) -> bool:
        if summary:
            message = f"{summary} - {request.tool_name}"
        else:
            message = f"{request.tool_name} tool: {json.dumps(request.tool_input)[:100]}..."
        return await self._dispatch(
            {
                "title": "CUI Permission Request",
                "message": message,
                "tag": "cui-permission",
                "data": {
                    "sessionId": session_id or "unknown",
                    "streamingId": request.streaming_id,
                    "permissionRequestId": request.id,
                    "type": "permission",
                },
            }
        )

    async def send_conversation_end_notification(
        self,
        streaming_id: str,
        session_id: str,
        summary: Optional[str] = None,
    ) -> bool:
        return await self._dispatch(
            {
                "title": "Task Finished",
                "message": summary or "Task completed",
                "tag": "cui-complete",
                "data": {
                    "sessionId": session_id,
                    "streamingId": streaming_id,
                    "type": "conversation-end",
                },
            }
        )

    async def _dispatch(self, payload: Dict[str, Any]) -> bool:
        """Return True when the payload was handed to the transport."""
        if not self.is_enabled():
            logger.debug("Notifications disabled; skipping %s.", payload["tag"])
            return False
        if self._transport is None:
            logger.debug("No push transport configured; skipping %s.", payload["tag"])
            return False
        try:
            await self._transport.initialize()
            if not self._transport.enabled:
                logger.debug("Push transport not enabled; skipping %s.", payload["tag"])
                return False
            await self._transport.broadcast(payload)
        except Exception as exc:  # transport failures are non-critical
            logger.debug("Failed to send push notification %s: %s", payload["tag"], exc)
            return False
        logger.info("Push notification sent: %s", payload["tag"])
        return True
